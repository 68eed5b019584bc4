"""Type-partitioned inverted index over in-memory records.

The index is built in two phases. A ``SearchIndexBuilder`` collects tokens and
the records they came from, then ``build()`` freezes everything into a
``SearchIndex`` that only answers queries. Because nothing is inserted after the
freeze, each partition is a plain binary tree that gets balanced exactly once
instead of a self-balancing structure.

Tokens are partitioned by kind (integer, float, boolean, string): the kinds are
not mutually comparable, and booleans must never collide with the integers 0
and 1.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable, Mapping
import logging
from types import MappingProxyType
from typing import Any

from zd_search.errors import IndexFrozenError
from zd_search.search.binary_tree import BinaryTree
from zd_search.search.models import TYPE_FIELD, Match, Record
from zd_search.search.tokenizer import Token, Tokenizer, TokenType, token_type_of


logger = logging.getLogger(__name__)

MatchTree = BinaryTree[Any, list[Match]]


class SearchIndexBuilder:
    """Accumulates matches for every token of every indexed record."""

    def __init__(self, tokenizer: Tokenizer) -> None:
        self.tokenizer = tokenizer
        self._trees: dict[TokenType, MatchTree] = {token_type: BinaryTree() for token_type in TokenType}
        self._fields_by_type: defaultdict[str, set[str]] = defaultdict(set)
        self._record_count = 0
        self._built = False

    @property
    def record_count(self) -> int:
        return self._record_count

    def index(self, record: Record) -> None:
        """Tokenize every field of ``record`` and file the matches by token.

        Raises:
            UnsupportedValueTypeError: a field holds a value that cannot be tokenized.
                The builder is unusable afterwards.
            IndexFrozenError: ``build()`` was already called.
        """
        if self._built:
            raise IndexFrozenError("Cannot index records after build() has been called")

        # Keyed by (type, token) so that True, 1 and 1.0 stay distinct.
        matches_by_token: dict[tuple[TokenType, Token], list[Match]] = {}
        for field_name, value in record.items():
            for token in self.tokenizer.tokenize(value, field_name):
                key = (token_type_of(token), token)
                matches_by_token.setdefault(key, []).append(Match(record, field_name))

        for (token_type, token), matches in matches_by_token.items():
            tree = self._trees[token_type]
            existing = tree.get(token)
            if existing is None:
                tree.set(token, matches)
            else:
                existing.extend(matches)

        object_type = record.get(TYPE_FIELD)
        if isinstance(object_type, str):
            self._fields_by_type[object_type].update(record.keys())
        self._record_count += 1

    def index_all(self, records: Iterable[Record]) -> SearchIndexBuilder:
        for record in records:
            self.index(record)
        return self

    def build(self) -> SearchIndex:
        """Balance each partition and freeze the result into a ``SearchIndex``."""
        if self._built:
            raise IndexFrozenError("build() has already been called on this builder")
        self._built = True

        balanced: dict[TokenType, MatchTree] = {}
        for token_type, tree in self._trees.items():
            balanced[token_type] = tree.balanced_copy()
            before, after = tree.height(), balanced[token_type].height()
            logger.debug(
                "Balanced %s partition: %d keys, height %d -> %d",
                token_type.value,
                len(tree),
                before,
                after,
                extra={"partition": token_type.value, "keys": len(tree), "height_before": before, "height": after},
            )

        fields = {object_type: frozenset(names) for object_type, names in self._fields_by_type.items()}
        logger.info(
            "Built search index over %d record(s)",
            self._record_count,
            extra={"records": self._record_count, "object_types": sorted(fields)},
        )
        return SearchIndex(
            trees=balanced,
            tokenizer=self.tokenizer,
            fields_by_type=fields,
            record_count=self._record_count,
        )


class SearchIndex:
    """Read-only exact-match index. Safe to share between concurrent readers."""

    def __init__(
        self,
        *,
        trees: Mapping[TokenType, MatchTree],
        tokenizer: Tokenizer,
        fields_by_type: Mapping[str, frozenset[str]] | None = None,
        record_count: int = 0,
    ) -> None:
        self._trees = MappingProxyType(dict(trees))
        self._tokenizer = tokenizer
        self._fields_by_type = MappingProxyType(dict(fields_by_type or {}))
        self._record_count = record_count

    @property
    def tokenizer(self) -> Tokenizer:
        return self._tokenizer

    @property
    def record_count(self) -> int:
        return self._record_count

    def matches_for(
        self,
        term: Any,
        restrict_field: str | None = None,
        restrict_type: str | None = None,
    ) -> list[Match]:
        """Return the matches for the first token of ``term``.

        The term goes through the same tokenizer used at build time, so
        ``"TeXT..."`` finds records indexed from ``"text"``. Only the first
        token is looked up. The returned list is a fresh copy.

        Raises:
            UnsupportedValueTypeError: ``term`` cannot be tokenized.
        """
        tokens = self._tokenizer.tokenize(term, restrict_field)
        if not tokens:
            return []
        token = tokens[0]

        matches = self._trees[token_type_of(token)].get(token)
        if matches is None:
            return []

        return [
            match
            for match in matches
            if (restrict_field is None or match.field == restrict_field)
            and (restrict_type is None or match.object_type == restrict_type)
        ]

    def records_for(
        self,
        term: Any,
        restrict_field: str | None = None,
        restrict_type: str | None = None,
    ) -> list[Record]:
        """Like ``matches_for`` but returns only the matched records."""
        return [match.record for match in self.matches_for(term, restrict_field, restrict_type)]

    def fields_for(self, object_type: str) -> list[str]:
        """Distinct field names seen on records of ``object_type``, sorted."""
        return sorted(self._fields_by_type.get(object_type, ()))

    def object_types(self) -> list[str]:
        return sorted(self._fields_by_type)

    def stats(self) -> dict[str, dict[str, int]]:
        """Key count and height of each partition."""
        return {
            token_type.value: {"keys": len(tree), "height": tree.height()}
            for token_type, tree in self._trees.items()
        }
