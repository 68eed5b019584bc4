"""Shell commands and the relationship rules used to enrich search results.

Commands are built from a line the shell has already split into words, so they
can be tested without any I/O. A malformed line raises ``CommandParseError``
before the index is touched.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
import re
from typing import Any

from pydantic import BaseModel, ConfigDict

from zd_search.errors import CommandParseError, ParseErrorCode
from zd_search.search.index import SearchIndex
from zd_search.search.models import ID_FIELD, Record


OBJECT_TYPES: tuple[str, ...] = ("organization", "ticket", "user")

_INTEGER_TERM = re.compile(r"[0-9]+")
_FLOAT_TERM = re.compile(r"[0-9]+\.[0-9]+")

SearchTerm = bool | int | float | str


@dataclass(frozen=True, slots=True)
class Relation:
    """A foreign-key join from a matched record to records of another type.

    Related records are those of ``target_type`` whose ``target_field`` equals
    the matched record's ``source_field``. Each is reduced to ``summary_fields``
    and attached under ``key``.
    """

    key: str
    source_field: str
    target_type: str
    target_field: str
    summary_fields: tuple[str, ...]

    def resolve(self, index: SearchIndex, record: Record) -> list[dict[str, Any]]:
        value = record.get(self.source_field)
        if value is None:
            return []
        # The index only narrows candidates by first token; the join needs equality.
        summaries: list[dict[str, Any]] = []
        seen: set[int] = set()
        for other in index.records_for(value, restrict_field=self.target_field, restrict_type=self.target_type):
            if id(other) in seen or other.get(self.target_field) != value:
                continue
            seen.add(id(other))
            summaries.append(summarize(other, self.summary_fields))
        return summaries


_ORGANIZATION_SUMMARY = (ID_FIELD, "name")
_USER_SUMMARY = (ID_FIELD, "name")
_TICKET_SUMMARY = (ID_FIELD, "subject")

RELATIONS: dict[str, tuple[Relation, ...]] = {
    "organization": (
        Relation("_tickets", ID_FIELD, "ticket", "organization_id", _TICKET_SUMMARY),
        Relation("_users", ID_FIELD, "user", "organization_id", _USER_SUMMARY),
    ),
    "ticket": (
        Relation("_assignee", "assignee_id", "user", ID_FIELD, _USER_SUMMARY),
        Relation("_submitter", "submitter_id", "user", ID_FIELD, _USER_SUMMARY),
        Relation("_organization", "organization_id", "organization", ID_FIELD, _ORGANIZATION_SUMMARY),
    ),
    "user": (
        Relation("_assigned_tickets", ID_FIELD, "ticket", "assignee_id", _TICKET_SUMMARY),
        Relation("_submitted_tickets", ID_FIELD, "ticket", "submitter_id", _TICKET_SUMMARY),
        Relation("_organization", "organization_id", "organization", ID_FIELD, _ORGANIZATION_SUMMARY),
    ),
}


def summarize(record: Record, fields: Sequence[str]) -> dict[str, Any]:
    """Project ``record`` onto ``fields``, skipping fields it lacks."""
    return {name: record[name] for name in fields if name in record}


def enrich(index: SearchIndex, record: Record, object_type: str) -> dict[str, Any]:
    """Return a new dict with related-record summaries merged into ``record``.

    The record's own fields win over the relationship keys when names clash.
    """
    enriched: dict[str, Any] = {
        relation.key: relation.resolve(index, record) for relation in RELATIONS.get(object_type, ())
    }
    enriched.update(record)
    return enriched


def coerce_term(text: str) -> SearchTerm:
    """Interpret a shell word as an int, float or bool when it looks like one."""
    if _INTEGER_TERM.fullmatch(text):
        return int(text)
    if _FLOAT_TERM.fullmatch(text):
        return float(text)
    lowered = text.lower()
    if lowered == "true":
        return True
    if lowered == "false":
        return False
    return text


class SearchCommand(BaseModel):
    """``search <type>.<field> <term>``"""

    model_config = ConfigDict(frozen=True)

    object_type: str
    field_name: str
    term: SearchTerm

    def execute(self, index: SearchIndex) -> list[dict[str, Any]]:
        """Run the search and denormalize related records into each result."""
        matches = index.records_for(self.term, restrict_field=self.field_name, restrict_type=self.object_type)
        return [enrich(index, record, self.object_type) for record in matches]


class FieldsCommand(BaseModel):
    """``fields <type>``"""

    model_config = ConfigDict(frozen=True)

    object_type: str

    def execute(self, index: SearchIndex) -> list[str]:
        return index.fields_for(self.object_type)


def parse_search_command(tokens: Sequence[str], object_types: Sequence[str] = OBJECT_TYPES) -> SearchCommand:
    """Parse ``["search", "<type>.<field>", "<term>"]``.

    Raises:
        CommandParseError: the tokens do not describe a valid search.
    """
    if len(tokens) < 2:
        raise CommandParseError(ParseErrorCode.NO_OBJECT_TYPE)

    object_type, _, field_name = tokens[1].partition(".")
    if not object_type:
        raise CommandParseError(ParseErrorCode.NO_OBJECT_TYPE)
    if not field_name:
        raise CommandParseError(ParseErrorCode.NO_FIELD_NAME)
    if object_type not in object_types:
        raise CommandParseError(ParseErrorCode.INVALID_OBJECT_TYPE)

    if len(tokens) < 3:
        raise CommandParseError(ParseErrorCode.NO_SEARCH_TERM)
    if len(tokens) > 3:
        raise CommandParseError(ParseErrorCode.EXTRA_ARGUMENTS)

    return SearchCommand(object_type=object_type, field_name=field_name, term=coerce_term(tokens[2]))


def parse_fields_command(tokens: Sequence[str], object_types: Sequence[str] = OBJECT_TYPES) -> FieldsCommand:
    """Parse ``["fields", "<type>"]``.

    Raises:
        CommandParseError: the tokens do not name exactly one known type.
    """
    if len(tokens) < 2 or not tokens[1]:
        raise CommandParseError(ParseErrorCode.NO_OBJECT_TYPE)
    if tokens[1] not in object_types:
        raise CommandParseError(ParseErrorCode.INVALID_OBJECT_TYPE)
    if len(tokens) > 2:
        raise CommandParseError(ParseErrorCode.EXTRA_ARGUMENTS)
    return FieldsCommand(object_type=tokens[1])
