"""
Oracle test fixtures.

Hermes is an external HTTP service. All requests MUST be mocked in tests.
"""
import pytest
from unittest.mock import MagicMock

from wager_client.oracle import HermesClient

ETH_USD = "ff61491a931112ddf1bd8147cd1b641375f79f5825126d665480874634fd0ace"
UPDATE_HEX = "504e41550100000003b801000000040d00"


class FakeResponse:
    """Async context manager mimicking aiohttp.ClientResponse."""

    def __init__(self, status=200, payload=None, text=""):
        self.status = status
        self._payload = payload
        self._text = text

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        return False

    async def json(self):
        if isinstance(self._payload, Exception):
            raise self._payload
        return self._payload

    async def text(self):
        return self._text


def hermes_payload(*feed_ids, data=None, encoding="hex"):
    """Build a /v2/updates/price/latest response body."""
    return {
        "binary": {
            "encoding": encoding,
            "data": [UPDATE_HEX] if data is None else data,
        },
        "parsed": [
            {
                "id": feed_id,
                "price": {
                    "price": "345678000000",
                    "conf": "120000000",
                    "expo": -8,
                    "publish_time": 1760000000,
                },
                "ema_price": {
                    "price": "345000000000",
                    "conf": "110000000",
                    "expo": -8,
                    "publish_time": 1760000000,
                },
                "metadata": {"slot": 1, "proof_available_time": 1760000001},
            }
            for feed_id in feed_ids
        ],
    }


@pytest.fixture
def mock_session():
    """Mock aiohttp session returning a single ETH/USD update."""
    session = MagicMock()
    session.request = MagicMock(return_value=FakeResponse(payload=hermes_payload(ETH_USD)))
    return session


@pytest.fixture
def hermes(mock_session):
    """HermesClient using the mock session and no retry delay."""
    return HermesClient(
        session=mock_session,
        base_url="https://hermes.test",
        max_retries=3,
        retry_delay=0,
    )


@pytest.fixture
def fake_response():
    """Factory for FakeResponse objects."""
    return FakeResponse


@pytest.fixture
def payload():
    """Factory for Hermes response bodies."""
    return hermes_payload
