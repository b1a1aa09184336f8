"""
Tracking test fixtures.

Receipts come from a mocked ledger gateway; notifications go to a mock sink
so tests can count exactly how many events fired.
"""
import pytest
from unittest.mock import AsyncMock, MagicMock

from wager_client.ledger import Receipt, SubmissionHandle
from wager_client.tracking import TransactionFlowTracker

TX_HASH = "0x" + "ab" * 32


@pytest.fixture
def handle():
    """Handle for a submitted stake."""
    return SubmissionHandle(tx_hash=TX_HASH, action="placeBet", bet_id=1)


@pytest.fixture
def confirmed_receipt():
    return Receipt(tx_hash=TX_HASH, status=1, block_number=100)


@pytest.fixture
def reverted_receipt():
    return Receipt(tx_hash=TX_HASH, status=0, block_number=100)


@pytest.fixture
def receipt_source(confirmed_receipt):
    """Gateway stand-in: pending for two polls, then mined."""
    source = MagicMock()
    source.get_receipt = AsyncMock(side_effect=[None, None, confirmed_receipt])
    source.explorer_url = MagicMock(side_effect=lambda h: f"https://explorer.test/tx/{h.tx_hash}")
    return source


@pytest.fixture
def notifier():
    """Mock sink recording every event."""
    sink = MagicMock()
    sink.on_submitted = AsyncMock(return_value=True)
    sink.on_confirmed = AsyncMock(return_value=True)
    sink.on_failed = AsyncMock(return_value=True)
    return sink


@pytest.fixture
def tracker(receipt_source, notifier):
    """Tracker that polls without delay."""
    return TransactionFlowTracker(receipt_source, notifier=notifier, poll_interval=0)


@pytest.fixture
def never_mined_source(receipt_source):
    """Gateway stand-in whose transaction never gets a receipt."""
    receipt_source.get_receipt = AsyncMock(return_value=None)
    return receipt_source
