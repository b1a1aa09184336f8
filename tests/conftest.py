"""
Shared test fixtures for end-to-end scenarios.

This file provides fixtures that span multiple components,
unlike component-specific fixtures in src/wager_client/{component}/tests/conftest.py

The ledger is an in-memory stand-in with the same surface as LedgerGateway:
writes queue a pending transaction, and the first receipt lookup applies it.
"""
import itertools
from dataclasses import replace
from typing import Dict, List, Optional, Tuple

import pytest
from unittest.mock import AsyncMock, MagicMock

from wager_client.exceptions import SubmissionError
from wager_client.ledger import Receipt, SubmissionHandle
from wager_client.lifecycle import Bet, BetSide, CreateRequest, EndEpochRequest, StakeRequest
from wager_client.service import ServiceConfig, WagerService
from wager_client.tracking import TransactionFlowTracker

ETH_USD = "ff61491a931112ddf1bd8147cd1b641375f79f5825126d665480874634fd0ace"
PROTOCOL_FEE = 10 ** 16


class FakeLedger:
    """In-memory wager contract."""

    def __init__(self):
        self.bets: Dict[int, Bet] = {}
        self.writes: List[Tuple[str, object]] = []
        self.revert_next = False
        self._reverts: set = set()
        self._pending: Dict[str, Tuple[str, object]] = {}
        self._tx_counter = itertools.count(1)

    @property
    def write_count(self) -> int:
        return len(self.writes)

    async def create_bet(self, request: CreateRequest) -> SubmissionHandle:
        return self._queue("createBet", request)

    async def place_stake(self, request: StakeRequest) -> SubmissionHandle:
        # Mirrors the contract's require(): gas estimation fails on ended bets
        bet = self.bets.get(request.bet_id)
        if bet is None or bet.epoch_ended:
            raise SubmissionError("placeBet", RuntimeError("execution reverted: Epoch ended"))
        return self._queue("placeBet", request, bet_id=request.bet_id)

    async def end_epoch(self, request: EndEpochRequest) -> SubmissionHandle:
        bet = self.bets.get(request.bet_id)
        if bet is None or bet.epoch_ended:
            raise SubmissionError("endEpoch", RuntimeError("execution reverted: Epoch ended"))
        if request.fee < PROTOCOL_FEE:
            raise SubmissionError("endEpoch", RuntimeError("execution reverted: Insufficient fee"))
        return self._queue("endEpoch", request, bet_id=request.bet_id)

    async def list_bets(self) -> List[Bet]:
        return [self.bets[bet_id] for bet_id in sorted(self.bets)]

    async def get_receipt(self, handle: SubmissionHandle) -> Optional[Receipt]:
        action, request = self._pending.pop(handle.tx_hash)
        if handle.tx_hash in self._reverts:
            return Receipt(tx_hash=handle.tx_hash, status=0, block_number=1)
        self._apply(action, request)
        return Receipt(tx_hash=handle.tx_hash, status=1, block_number=1)

    def explorer_url(self, handle: SubmissionHandle) -> str:
        return f"https://explorer.test/tx/{handle.tx_hash}"

    def _queue(self, action: str, request, bet_id: Optional[int] = None) -> SubmissionHandle:
        tx_hash = f"0x{next(self._tx_counter):064x}"
        self.writes.append((action, request))
        self._pending[tx_hash] = (action, request)
        if self.revert_next:
            self._reverts.add(tx_hash)
            self.revert_next = False
        return SubmissionHandle(tx_hash=tx_hash, action=action, bet_id=bet_id)

    def _apply(self, action: str, request) -> None:
        if action == "createBet":
            bet_id = len(self.bets)
            self.bets[bet_id] = Bet(id=bet_id, title=request.title, threshold=request.threshold)
        elif action == "placeBet":
            bet = self.bets[request.bet_id]
            if request.side == BetSide.EXCEED:
                self.bets[bet.id] = replace(bet, pool_exceed=bet.pool_exceed + request.amount)
            else:
                self.bets[bet.id] = replace(bet, pool_not_exceed=bet.pool_not_exceed + request.amount)
        elif action == "endEpoch":
            self.bets[request.bet_id] = replace(self.bets[request.bet_id], epoch_ended=True)


@pytest.fixture
def ledger():
    """Empty in-memory ledger."""
    return FakeLedger()


@pytest.fixture
def oracle():
    """Oracle stand-in returning one fresh update blob."""
    client = MagicMock()
    client.fetch_update_evidence = AsyncMock(return_value=[b"PNAU\x01\x00"])
    return client


@pytest.fixture
def notifier():
    """Mock sink recording every event."""
    sink = MagicMock()
    sink.on_submitted = AsyncMock(return_value=True)
    sink.on_confirmed = AsyncMock(return_value=True)
    sink.on_failed = AsyncMock(return_value=True)
    return sink


@pytest.fixture
async def service(ledger, oracle, notifier):
    """Service wired to the fake ledger, polling without delay."""
    tracker = TransactionFlowTracker(ledger, notifier=notifier, poll_interval=0)
    wager_service = WagerService(
        ledger,
        oracle,
        tracker,
        ServiceConfig(price_feed_ids=[ETH_USD], protocol_fee_wei=PROTOCOL_FEE),
    )

    yield wager_service

    await wager_service.close()
