"""Search data models."""

from dataclasses import dataclass
from typing import Any


Record = dict[str, Any]

TYPE_FIELD = "_type"
ID_FIELD = "_id"


@dataclass(frozen=True, slots=True)
class Match:
    """A token occurrence: the token was derived from ``record[field]``.

    The record is shared with the caller that indexed it, never copied.
    """

    record: Record
    field: str

    @property
    def object_type(self) -> Any:
        return self.record.get(TYPE_FIELD)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for display."""
        return {"field": self.field, "_type": self.object_type, "_id": self.record.get(ID_FIELD)}
