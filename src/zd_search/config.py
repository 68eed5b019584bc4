"""Centralized configuration for zd-search using Pydantic Settings."""

import logging
from pathlib import Path
import re

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from zd_search.search.tokenizer import DEFAULT_NON_TOKEN_PATTERN, Tokenizer


DEFAULT_DATA_DIR = Path(__file__).resolve().parent / "data"

DEFAULT_DATA_FILES = {
    "organization": "organizations.json",
    "ticket": "tickets.json",
    "user": "users.json",
}

_LOG_LEVELS = ("critical", "error", "warning", "info", "debug")


class Settings(BaseSettings):
    """Strictly typed configuration loaded from ``ZD_SEARCH_*`` environment variables.

    Data file lists are JSON arrays when given through the environment, e.g.
    ``ZD_SEARCH_USER_DATA='["a.json", "b.json"]'``.
    """

    model_config = SettingsConfigDict(
        env_prefix="ZD_SEARCH_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        validate_default=True,
        extra="ignore",
    )

    # Data sources
    data_dir: Path = Field(default=DEFAULT_DATA_DIR, description="Directory holding the default JSON data files")
    organization_data: list[Path] = Field(default_factory=list, description="Organization JSON files")
    ticket_data: list[Path] = Field(default_factory=list, description="Ticket JSON files")
    user_data: list[Path] = Field(default_factory=list, description="User JSON files")

    # Tokenization
    literal_fields: str = Field(
        default="url,_id,email,domain_names,external_id,organization_id,submitter_id,assignee_id",
        description="Comma-separated field names whose strings are indexed whole, without splitting or lowercasing",
    )
    token_pattern: str = Field(
        default=DEFAULT_NON_TOKEN_PATTERN,
        description="Regular expression matching the separators between string tokens",
    )

    # Logging
    log_level: str = Field(default="warning", description="Logging level")
    log_json: bool = Field(default=False, description="Emit structured JSON logs")

    # Shell
    prompt: str = Field(default="zd-search> ", description="Interactive shell prompt")

    @field_validator("token_pattern")
    @classmethod
    def _check_token_pattern(cls, value: str) -> str:
        try:
            re.compile(value)
        except re.error as exc:
            raise ValueError(f"Invalid token pattern {value!r}: {exc}") from exc
        return value

    @field_validator("log_level")
    @classmethod
    def _check_log_level(cls, value: str) -> str:
        normalized = value.lower()
        if normalized not in _LOG_LEVELS:
            raise ValueError(f"Unknown log level {value!r}. Available: {list(_LOG_LEVELS)}")
        return normalized

    def get_literal_fields(self) -> frozenset[str]:
        """Get the set of literal field names."""
        return frozenset(name.strip() for name in self.literal_fields.split(",") if name.strip())

    def data_sources(self) -> dict[str, list[Path]]:
        """Map each object type to its data files, falling back to ``data_dir``."""
        configured = {
            "organization": self.organization_data,
            "ticket": self.ticket_data,
            "user": self.user_data,
        }
        return {
            object_type: list(paths) or [self.data_dir / DEFAULT_DATA_FILES[object_type]]
            for object_type, paths in configured.items()
        }

    def build_tokenizer(self) -> Tokenizer:
        return Tokenizer(pattern=self.token_pattern, literal_fields=self.get_literal_fields())

    def logging_level(self) -> int:
        return getattr(logging, self.log_level.upper())
