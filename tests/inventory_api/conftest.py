from typing import Optional

import pytest
from fastapi.testclient import TestClient

from dal.backend_mode import BackendMode
from dal.database import Database
from inventory_api.app import create_app
from inventory_api.settings import InventorySettings


@pytest.fixture
def demo_client():
    app = create_app(database=Database(BackendMode.DEMO), settings=InventorySettings())
    with TestClient(app) as client:
        yield client


@pytest.fixture
def make_client():
    """Build a client around a given database, entering the app lifespan."""
    clients = []

    def _make(database, settings: Optional[InventorySettings] = None) -> TestClient:
        app = create_app(database=database, settings=settings or InventorySettings())
        client = TestClient(app)
        client.__enter__()
        clients.append(client)
        return client

    yield _make
    for client in clients:
        client.__exit__(None, None, None)
