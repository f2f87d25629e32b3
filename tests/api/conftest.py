"""API test fixtures - full app over in-memory collaborators."""

import pytest
from starlette.testclient import TestClient

from api.app import create_app


@pytest.fixture
def app(config, credentials, orders, store, event_bus):
    """Gateway app wired exactly as in production, minus Valkey and Vault."""
    return create_app(config, credentials, orders, store, event_bus=event_bus)


@pytest.fixture
def client(app):
    return TestClient(app, raise_server_exceptions=False)
