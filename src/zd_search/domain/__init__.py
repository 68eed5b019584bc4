"""Domain layer - shell commands and record relationships.

This layer turns shell words into immutable command objects and knows how the
record types relate to each other:
- Commands: ``search`` and ``fields``, validated before touching the index
- Relations: foreign-key joins used to denormalize search results
"""

from zd_search.domain.commands import (
    OBJECT_TYPES,
    RELATIONS,
    FieldsCommand,
    Relation,
    SearchCommand,
    coerce_term,
    enrich,
    parse_fields_command,
    parse_search_command,
    summarize,
)


__all__ = [
    "OBJECT_TYPES",
    "RELATIONS",
    "FieldsCommand",
    "Relation",
    "SearchCommand",
    "coerce_term",
    "enrich",
    "parse_fields_command",
    "parse_search_command",
    "summarize",
]
