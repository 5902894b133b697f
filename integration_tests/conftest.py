"""Fixtures for the end-to-end sync tests.

Everything collected from this directory talks to a real sync server app and
is marked ``integration``, so ``pytest -m "not integration"`` runs the unit
suite on its own.
"""

from pathlib import Path

import pytest

from liftlog.db import init_db
from liftlog.web.app import create_app

INTEGRATION_DIR = Path(__file__).parent


def pytest_collection_modifyitems(items):
    for item in items:
        if INTEGRATION_DIR in item.path.parents:
            item.add_marker(pytest.mark.integration)


@pytest.fixture
async def app(tmp_path):
    """A sync server app backed by a fresh SQLite file."""
    # ASGITransport does not run the lifespan, so create the schema here
    db_path = tmp_path / "server.db"
    await init_db(db_path)
    return create_app(db_path)
