"""Pytest configuration and fixtures."""

from typing import Any
from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from txparser.infrastructure.blockchain import ChainClient, ChainClientError


def make_block(number: str, transactions: list[dict[str, Any]]) -> dict[str, Any]:
    """Build a block object shaped like eth_getBlockByNumber output."""
    return {"number": number, "hash": f"0xblock{number}", "transactions": transactions}


@pytest.fixture
def scenario_blocks() -> dict[int, dict[str, Any]]:
    """Three blocks: two matching transfers for 0x123 and one unrelated."""
    return {
        1: make_block(
            "0x1",
            [
                {"hash": "0xtx1", "from": "0xABCDEF", "to": "0x123", "value": "0x10"},
                {"hash": "0xtx2", "from": "0x555", "to": "0x666", "value": "0x20"},
            ],
        ),
        2: make_block(
            "0x2",
            [{"hash": "0xtx3", "from": "0x123", "to": "0xABCDEF", "value": "0x15"}],
        ),
        3: make_block("0x3", []),
    }


@pytest.fixture
def chain_client(scenario_blocks) -> AsyncMock:
    """Chain client serving the scenario blocks with the tip at 0x3."""
    client = AsyncMock(spec=ChainClient)
    client.block_number.return_value = "0x3"

    async def get_block_by_number(height: int) -> dict[str, Any]:
        if height not in scenario_blocks:
            raise ChainClientError(f"block {height} not found")
        return scenario_blocks[height]

    client.get_block_by_number.side_effect = get_block_by_number
    return client


@pytest.fixture
def idle_chain_client() -> AsyncMock:
    """Chain client whose tip never moves past genesis."""
    client = AsyncMock(spec=ChainClient)
    client.block_number.return_value = "0x0"
    return client


@pytest.fixture(scope="function")
def settings():
    """Create settings instance for testing."""
    from txparser.core.config import Settings

    return Settings(environment="testing", poll_interval=0.01, log_level="WARNING")


@pytest.fixture
def app(settings, idle_chain_client):
    """Create FastAPI application for testing."""
    from txparser.main import create_app

    return create_app(settings=settings, chain_client=idle_chain_client)


@pytest.fixture
def client(app):
    """Create test client."""
    with TestClient(app) as client:
        yield client
