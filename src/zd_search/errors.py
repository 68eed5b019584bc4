"""Error types raised by the search core and its collaborators."""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Any


class ZDSearchError(Exception):
    """Base error for zd-search."""


class UnsupportedValueTypeError(ZDSearchError, TypeError):
    """Raised when a value cannot be tokenized (nested objects, null, ...)."""

    def __init__(self, value: Any, field_name: str | None = None) -> None:
        self.value = value
        self.field_name = field_name
        location = f" in field '{field_name}'" if field_name is not None else ""
        super().__init__(f"Cannot tokenize {value!r}{location}: {type(value).__name__} values are not supported")


class ParseErrorCode(str, Enum):
    """Reasons a shell command could not be turned into a command object."""

    NO_OBJECT_TYPE = "err_no_object_type"
    NO_FIELD_NAME = "err_no_field_name"
    INVALID_OBJECT_TYPE = "err_invalid_object_type"
    NO_SEARCH_TERM = "err_no_search_term"
    EXTRA_ARGUMENTS = "err_extra_arguments"

    @property
    def message(self) -> str:
        return _PARSE_ERROR_MESSAGES[self]


_PARSE_ERROR_MESSAGES = {
    ParseErrorCode.NO_OBJECT_TYPE: "No object type given",
    ParseErrorCode.NO_FIELD_NAME: "No field name given",
    ParseErrorCode.INVALID_OBJECT_TYPE: "Unknown object type",
    ParseErrorCode.NO_SEARCH_TERM: "No search term given",
    ParseErrorCode.EXTRA_ARGUMENTS: "Too many arguments",
}


class CommandParseError(ZDSearchError, ValueError):
    """Raised when command tokens are malformed."""

    def __init__(self, code: ParseErrorCode) -> None:
        self.code = code
        super().__init__(f"{code.message} ({code.value})")


class IndexFrozenError(ZDSearchError, RuntimeError):
    """Raised when records are indexed after the index was built."""


class RecordLoadError(ZDSearchError, RuntimeError):
    """Raised when a data file cannot be turned into records."""

    def __init__(self, path: Path, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Failed to load {path}: {reason}")
