"""Reads JSON data files into records and feeds them to an index builder."""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
import logging
from pathlib import Path

import orjson

from zd_search.errors import RecordLoadError
from zd_search.search.index import SearchIndexBuilder
from zd_search.search.models import TYPE_FIELD, Record
from zd_search.search.tokenizer import Tokenizer


logger = logging.getLogger(__name__)


def load_file(path: Path, object_type: str) -> list[Record]:
    """Parse a JSON array of objects and stamp each with ``_type``.

    Raises:
        RecordLoadError: the file is unreadable, not JSON, or not an array of objects.
    """
    try:
        payload = orjson.loads(path.read_bytes())
    except OSError as exc:
        raise RecordLoadError(path, exc.strerror or str(exc)) from exc
    except orjson.JSONDecodeError as exc:
        raise RecordLoadError(path, f"invalid JSON ({exc})") from exc

    if not isinstance(payload, list):
        raise RecordLoadError(path, f"expected a JSON array, found {type(payload).__name__}")

    records: list[Record] = []
    for position, item in enumerate(payload):
        if not isinstance(item, dict):
            raise RecordLoadError(path, f"element {position} is {type(item).__name__}, expected an object")
        item[TYPE_FIELD] = object_type
        records.append(item)

    logger.info(
        "Loaded %d %s record(s) from %s",
        len(records),
        object_type,
        path,
        extra={"object_type": object_type, "records": len(records), "source": path},
    )
    return records


def load_records(sources: Mapping[str, Sequence[Path]]) -> list[Record]:
    """Load every file of every object type, in the order given."""
    records: list[Record] = []
    for object_type, paths in sources.items():
        for path in paths:
            records.extend(load_file(path, object_type))
    return records


def index_records(records: Iterable[Record], tokenizer: Tokenizer) -> SearchIndexBuilder:
    """Index ``records`` into a fresh builder, ready for ``build()``."""
    return SearchIndexBuilder(tokenizer).index_all(records)
