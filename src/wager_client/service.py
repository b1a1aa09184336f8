"""
WagerService - Facade for the bet lifecycle.

Coordinates the lifecycle validators, LedgerGateway, HermesClient and
TransactionFlowTracker:

    1. Validate and shape the request (no I/O on failure)
    2. For endEpoch only: fetch fresh oracle evidence
    3. Submit to the ledger
    4. Watch the transaction until it settles
    5. Refetch bets after every confirmed write

The UI layer (main.py) should talk to this class, not to the components.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Dict, List, Optional, Tuple, Union

from wager_client.exceptions import BetNotFoundError, StaleBetError
from wager_client.lifecycle import (
    Bet,
    BetSide,
    validate_create,
    validate_end_epoch,
    validate_stake,
)

if TYPE_CHECKING:
    from wager_client.ledger import LedgerGateway, SubmissionHandle
    from wager_client.oracle import HermesClient
    from wager_client.tracking import TransactionFlow, TransactionFlowTracker

logger = logging.getLogger(__name__)


@dataclass
class ServiceConfig:
    """Configuration for the wager service."""

    price_feed_ids: List[str] = field(default_factory=list)
    protocol_fee_wei: int = 10 ** 16  # 0.01 native units
    refresh_on_confirm: bool = True


class WagerService:
    """
    Runs user intents through validate -> submit -> track -> refresh.

    Usage:
        service = WagerService(gateway, oracle, tracker, config)
        await service.refresh_bets()

        flow = await service.create_bet("ETH > 5000", "5000")
        flow = await service.place_stake(0, BetSide.EXCEED, "0.5")
        flow = await service.end_epoch(0)

        flow = await service.wait(flow)  # optional: block until settled
    """

    def __init__(
        self,
        gateway: "LedgerGateway",
        oracle: "HermesClient",
        tracker: "TransactionFlowTracker",
        config: Optional[ServiceConfig] = None,
    ) -> None:
        """
        Initialize the service.

        Args:
            gateway: Ledger gateway for writes and reads
            oracle: Hermes client for resolution evidence
            tracker: Transaction tracker for submitted writes
            config: Service configuration
        """
        self._gateway = gateway
        self._oracle = oracle
        self._tracker = tracker
        self._config = config or ServiceConfig()

        # Latest snapshot, replaced wholesale on refresh
        self._bets: Tuple[Bet, ...] = ()
        self._handles: Dict[str, "SubmissionHandle"] = {}

    @property
    def bets(self) -> Tuple[Bet, ...]:
        """Latest bet snapshot. May be stale; call refresh_bets() for fresh state."""
        return self._bets

    @property
    def tracker(self) -> "TransactionFlowTracker":
        return self._tracker

    async def refresh_bets(self) -> List[Bet]:
        """
        Replace the snapshot with a fresh read from the ledger.

        Raises:
            LedgerReadError: If the ledger read fails
        """
        bets = await self._gateway.list_bets()
        self._bets = tuple(bets)
        logger.debug(f"Bet snapshot refreshed: {len(bets)} bets")
        return list(bets)

    def get_bet(self, bet_id: int) -> Bet:
        """
        Look up a bet in the current snapshot.

        Raises:
            BetNotFoundError: If no bet has this id
        """
        for bet in self._bets:
            if bet.id == bet_id:
                return bet
        raise BetNotFoundError(bet_id)

    async def create_bet(self, title: str, threshold: str) -> "TransactionFlow":
        """
        Propose a new bet.

        Raises:
            ValidationError: If title or threshold is invalid
            SubmissionError: If the ledger rejects the write
        """
        self._begin()
        request = validate_create(title, threshold).unwrap()
        handle = await self._gateway.create_bet(request)
        return await self._track(handle)

    async def place_stake(
        self,
        bet_id: int,
        side: Union[BetSide, str, bool],
        amount: str,
    ) -> "TransactionFlow":
        """
        Stake `amount` (decimal string, native units) on one side of a bet.

        Raises:
            BetNotFoundError: If the bet is not in the snapshot
            StaleBetError: If the bet's epoch has ended
            ValidationError: If side or amount is invalid
            SubmissionError: If the ledger rejects the write
        """
        self._begin()
        bet = await self._lookup(bet_id)
        request = validate_stake(bet, side, amount).unwrap()
        handle = await self._gateway.place_stake(request)
        return await self._track(handle)

    async def end_epoch(self, bet_id: int) -> "TransactionFlow":
        """
        Resolve a bet with fresh oracle evidence.

        Evidence is fetched before anything is sent to the ledger; if the
        oracle is unavailable no ledger call is made.

        Raises:
            BetNotFoundError: If the bet is not in the snapshot
            StaleBetError: If the bet's epoch has already ended
            OracleUnavailableError: If evidence cannot be fetched
            SubmissionError: If the ledger rejects the write
        """
        self._begin()
        bet = await self._lookup(bet_id)

        # Ended bets never reach the oracle
        if bet.epoch_ended:
            raise StaleBetError(bet.id)

        evidence = await self._oracle.fetch_update_evidence(self._config.price_feed_ids)
        request = validate_end_epoch(bet, evidence, self._config.protocol_fee_wei).unwrap()
        handle = await self._gateway.end_epoch(request)
        return await self._track(handle)

    async def wait(self, flow: "TransactionFlow") -> "TransactionFlow":
        """Wait for a flow returned by this service to settle."""
        if flow.is_terminal:
            return flow
        handle = self._handles[flow.reference]
        return await self._tracker.wait(handle)

    async def close(self) -> None:
        """Stop watching pending transactions."""
        await self._tracker.close()

    def _begin(self) -> None:
        """Start a new action: reset the tracker and drop handles it has forgotten."""
        self._tracker.reset()
        self._handles = {
            ref: handle for ref, handle in self._handles.items()
            if self._tracker.get_flow(ref) is not None
        }

    async def _lookup(self, bet_id: int) -> Bet:
        """Find a bet, refreshing once if the snapshot doesn't have it yet."""
        try:
            return self.get_bet(bet_id)
        except BetNotFoundError:
            await self.refresh_bets()
            return self.get_bet(bet_id)

    async def _track(self, handle: "SubmissionHandle") -> "TransactionFlow":
        self._handles[handle.tx_hash] = handle
        on_terminal = self._on_terminal if self._config.refresh_on_confirm else None
        return await self._tracker.watch(handle, on_terminal=on_terminal)

    async def _on_terminal(self, flow: "TransactionFlow") -> None:
        """Refetch after confirmation: the previous snapshot is stale."""
        if flow.succeeded:
            await self.refresh_bets()
