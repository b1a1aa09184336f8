"""
Lifecycle test fixtures.

Validators are pure, so no mocks are needed here.
"""
import pytest

from wager_client.lifecycle import Bet


ONE_ETH = 10 ** 18


@pytest.fixture
def open_bet():
    """Active bet with some stake on both sides."""
    return Bet(
        id=7,
        title="ETH > 5000",
        threshold=5000,
        pool_exceed=ONE_ETH,
        pool_not_exceed=2 * ONE_ETH,
        epoch_ended=False,
    )


@pytest.fixture
def ended_bet():
    """Bet whose epoch has been resolved."""
    return Bet(
        id=3,
        title="BTC > 100000",
        threshold=100000,
        pool_exceed=ONE_ETH,
        pool_not_exceed=0,
        epoch_ended=True,
    )


@pytest.fixture
def evidence():
    """One non-empty oracle update blob."""
    return [b"PNAU\x01\x00" + b"\xab" * 32]
