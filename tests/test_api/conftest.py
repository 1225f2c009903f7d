"""Pytest configuration for API tests."""

import pytest
from fastapi import FastAPI

from dicetable.api.routes import router
from dicetable.api.table_manager import table_manager
from dicetable.api.websocket import websocket_manager
from dicetable.services.replication import InMemoryReplicationChannel


def _clear():
    table_manager.tables.clear()
    table_manager.hosts.clear()
    table_manager.bots.clear()
    table_manager.dealer_selections.clear()
    table_manager._round_unsubscribes.clear()
    websocket_manager.active_connections.clear()
    websocket_manager.seats.clear()


@pytest.fixture(autouse=True)
def reset_table_manager():
    """Give every test a fresh in-memory table manager to avoid state pollution."""
    _clear()
    table_manager.set_services(InMemoryReplicationChannel(), None)
    table_manager.bot_think_time = 0

    yield

    _clear()


@pytest.fixture
def test_app():
    """Create a test FastAPI app without lifespan dependencies."""
    app = FastAPI()
    app.include_router(router)
    return app
