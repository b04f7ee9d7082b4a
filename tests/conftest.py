import itertools

import pytest
from fastapi.testclient import TestClient

from app import create_app
from backend import BrokerBackend


def sequential_codes(start: int = 100000):
    counter = itertools.count(start)
    return lambda: str(next(counter))


@pytest.fixture
def backend():
    return BrokerBackend(roles=("vent", "listen"), code_factory=sequential_codes())


@pytest.fixture
def router(backend):
    return backend.router


@pytest.fixture
def connect(router):
    """Register a connection and return its id, discarding the welcome event."""

    def _connect(connection_id=None):
        connection_id, _ = router.connect(connection_id)
        return connection_id

    return _connect


@pytest.fixture
def client(backend):
    # Entering the client keeps one event loop for every websocket session,
    # which the per-connection writer tasks rely on.
    with TestClient(create_app(backend)) as test_client:
        yield test_client


def events(outbound):
    """Flatten outbound events to comparable (connection_id, event, data) tuples."""
    return [(item.connection_id, item.event, item.data) for item in outbound]
