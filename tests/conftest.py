"""
Test Configuration
==================

Pytest fixtures for partner graph tests.
"""

import os
from collections.abc import AsyncGenerator
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

# Set test environment
os.environ["ENVIRONMENT"] = "testing"

from shared.config.settings import GraphDialect  # noqa: E402


@pytest.fixture(scope="session")
def anyio_backend() -> str:
    """Use asyncio backend for async tests."""
    return "asyncio"


@pytest.fixture
def mock_graph() -> MagicMock:
    """Graph client double; writes report one matched row by default."""
    graph = MagicMock()
    graph.dialect = GraphDialect.NEO4J
    graph.connect = AsyncMock()
    graph.close = AsyncMock()
    graph.run_query = AsyncMock(return_value=[])
    graph.run_write_query = AsyncMock(return_value=[{"id": 1}])
    graph.health_check = AsyncMock(return_value={"status": "healthy", "latency_ms": 1.0})
    return graph


@pytest.fixture
def mock_engine() -> MagicMock:
    """Recommendation engine double."""
    engine = MagicMock()
    engine.get_recommendations = AsyncMock(return_value=[])
    engine.get_all_recommendations = AsyncMock()
    engine.get_connection_analysis = AsyncMock()
    return engine


@pytest_asyncio.fixture
async def connection_analyzer_client(
    mock_engine: MagicMock,
    mock_graph: MagicMock,
) -> AsyncGenerator[AsyncClient, None]:
    """Create test client for the Connection Analyzer Service."""
    from services.connection_analyzer.main import app
    from services.connection_analyzer.routes.connections import get_engine

    app.dependency_overrides[get_engine] = lambda: mock_engine
    app.state.graph = mock_graph

    async with AsyncClient(
        transport=ASGITransport(app=app, raise_app_exceptions=False),
        base_url="http://test",
    ) as client:
        yield client

    app.dependency_overrides.clear()
    del app.state.graph


@pytest.fixture
def user_row() -> dict[str, Any]:
    """users row image as emitted by Debezium."""
    return {
        "id": 7,
        "first_name": "Ada",
        "last_name": "Lovelace",
        "login_email": "ada@example.com",
        "password_hash": "not-mirrored",
        "active": 1,
        "email_verified": 0,
        "created_at": "2024-03-01T10:00:00Z",
        "updated_at": 1709287200000,
    }


@pytest.fixture
def business_row() -> dict[str, Any]:
    """businesses row image."""
    return {
        "id": 1,
        "operator_user_id": 7,
        "name": "Acme Analytics",
        "tagline": "Numbers, fast",
        "business_type": "Technology",
        "business_category": "B2B",
        "business_phase": "Growth",
        "description": None,
        "website": "https://acme.example.com",
        "active": True,
        "created_at": "2024-03-01T10:00:00Z",
        "updated_at": "2024-03-01T10:00:00Z",
    }


@pytest.fixture
def connection_row() -> dict[str, Any]:
    """business_connections row image."""
    return {
        "id": 99,
        "initiating_business_id": 1,
        "receiving_business_id": 2,
        "connection_type": "Partnership",
        "status": "active",
        "initiated_by_user_id": 7,
        "notes": "Met at expo",
        "created_at": "2024-03-02T09:00:00Z",
        "updated_at": "2024-03-02T09:00:00Z",
    }
