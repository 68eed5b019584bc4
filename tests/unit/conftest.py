"""Collection hooks for the unit suite."""

from pathlib import Path

import pytest


UNIT_DIR = Path(__file__).resolve().parent


def pytest_collection_modifyitems(config, items):
    """Mark tests collected below this directory as unit tests.

    Collection hooks see every item in the session, so filter by path.
    """
    for item in items:
        if UNIT_DIR in Path(item.path).resolve().parents:
            item.add_marker(pytest.mark.unit)
