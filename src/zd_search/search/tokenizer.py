"""Turns record field values into index tokens.

Numbers and booleans tokenize to themselves. Strings are split on runs of
characters that cannot appear in a word, lowercased, and blank fragments are
dropped. Arrays are tokenized element by element. A string or array that yields
nothing is indexed as the single empty-string token so that blank fields can be
found by searching for ``""``.
"""

from __future__ import annotations

from collections.abc import Iterable
from enum import Enum
import re
from typing import Any, Union

from zd_search.errors import UnsupportedValueTypeError


Token = Union[bool, int, float, str]

# Letters, digits and apostrophes survive so contractions stay whole.
DEFAULT_NON_TOKEN_PATTERN = r"[^A-Za-z0-9']+"

EMPTY_TOKEN = ""


class TokenType(str, Enum):
    """Index partitions, one per scalar kind."""

    INTEGER = "integer"
    FLOAT = "float"
    BOOLEAN = "boolean"
    STRING = "string"


def token_type_of(token: Any) -> TokenType:
    """Classify a token into its partition.

    ``bool`` is checked first because it subclasses ``int`` and the two must
    never share a partition.
    """
    if isinstance(token, bool):
        return TokenType.BOOLEAN
    if isinstance(token, int):
        return TokenType.INTEGER
    if isinstance(token, float):
        return TokenType.FLOAT
    if isinstance(token, str):
        return TokenType.STRING
    raise UnsupportedValueTypeError(token)


class Tokenizer:
    """Splits values into tokens; shared by indexing and querying."""

    def __init__(
        self,
        *,
        pattern: str = DEFAULT_NON_TOKEN_PATTERN,
        literal_fields: Iterable[str] = (),
    ) -> None:
        self.pattern = re.compile(pattern)
        self.literal_fields = frozenset(literal_fields)

    def is_literal(self, field_name: str | None) -> bool:
        return field_name is not None and field_name in self.literal_fields

    def tokenize(self, value: Any, field_name: str | None = None) -> list[Token]:
        """Return the tokens for ``value``.

        Strings in literal fields are kept whole and unchanged (URLs, emails,
        identifiers).

        Raises:
            UnsupportedValueTypeError: ``value`` is not a scalar or an array of scalars.
        """
        literal = self.is_literal(field_name)
        if isinstance(value, list):
            tokens: list[Token] = []
            for element in value:
                if isinstance(element, (list, dict)):
                    raise UnsupportedValueTypeError(element, field_name)
                tokens.extend(self._tokenize_scalar(element, field_name, literal))
            return tokens or [EMPTY_TOKEN]
        return self._tokenize_scalar(value, field_name, literal)

    def _tokenize_scalar(self, value: Any, field_name: str | None, literal: bool) -> list[Token]:
        if isinstance(value, (bool, int, float)):
            return [value]
        if isinstance(value, str):
            if literal:
                return [value]
            return self._split(value) or [EMPTY_TOKEN]
        raise UnsupportedValueTypeError(value, field_name)

    def _split(self, text: str) -> list[Token]:
        return [fragment.lower() for fragment in self.pattern.split(text) if fragment]

    def __call__(self, value: Any, field_name: str | None = None) -> list[Token]:
        return self.tokenize(value, field_name)
