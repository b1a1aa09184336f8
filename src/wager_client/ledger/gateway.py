"""
Ledger Gateway for the wager contract.

Typed async interface over the contract's three writes and one read.
Writes are built, signed locally and broadcast; the gateway returns a
SubmissionHandle as soon as the node accepts the raw transaction. It does
NOT wait for inclusion - that is TransactionFlowTracker's job.

Anything that goes wrong before a transaction hash exists (revert during
gas estimation, insufficient funds, RPC failure, bad arguments) surfaces
immediately as SubmissionError.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Dict, List, Optional

import aiohttp
from web3 import Web3
from web3.exceptions import TransactionNotFound, Web3Exception

from wager_client.exceptions import LedgerReadError, SubmissionError
from wager_client.lifecycle import Bet, CreateRequest, EndEpochRequest, StakeRequest

from .abi import WAGER_ABI

if TYPE_CHECKING:
    from eth_account.signers.local import LocalAccount
    from web3 import AsyncWeb3

logger = logging.getLogger(__name__)

# Errors that mean "the node never accepted this write"
_SUBMIT_ERRORS = (Web3Exception, ValueError, aiohttp.ClientError, asyncio.TimeoutError)


@dataclass(frozen=True)
class SubmissionHandle:
    """Reference to a broadcast transaction awaiting confirmation."""

    tx_hash: str
    action: str
    bet_id: Optional[int] = None
    submitted_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass(frozen=True)
class Receipt:
    """Inclusion result of a transaction."""

    tx_hash: str
    status: int
    block_number: Optional[int] = None
    gas_used: Optional[int] = None

    @property
    def succeeded(self) -> bool:
        return self.status == 1


@dataclass
class LedgerConfig:
    """Configuration for the ledger gateway."""

    explorer_tx_url: str = "https://explorer-holesky.morphl2.io/tx/{tx_hash}"
    nonce_block: str = "pending"  # Nonce includes in-flight txs


class LedgerGateway:
    """
    Async gateway to the wager contract.

    The web3 connection and the signing account are injected, so nothing
    here depends on process-wide wallet state.

    Usage:
        w3 = AsyncWeb3(AsyncWeb3.AsyncHTTPProvider(rpc_url))
        account = Account.from_key(private_key)
        gateway = LedgerGateway(w3, contract_address, account)

        bets = await gateway.list_bets()
        handle = await gateway.place_stake(stake_request)
        receipt = await gateway.get_receipt(handle)  # None while pending
    """

    def __init__(
        self,
        web3: "AsyncWeb3",
        contract_address: str,
        account: Optional["LocalAccount"] = None,
        config: Optional[LedgerConfig] = None,
    ) -> None:
        """
        Initialize the gateway.

        Args:
            web3: Connected AsyncWeb3 instance
            contract_address: Wager contract address
            account: Local signing account (None for read-only use)
            config: Gateway configuration
        """
        self._web3 = web3
        self._account = account
        self._config = config or LedgerConfig()
        self._contract = web3.eth.contract(
            address=Web3.to_checksum_address(contract_address),
            abi=WAGER_ABI,
        )

    async def create_bet(self, request: CreateRequest) -> SubmissionHandle:
        """
        Submit createBet(title, threshold).

        Raises:
            SubmissionError: If the write is rejected before broadcast
        """
        call = self._contract.functions.createBet(request.title, request.threshold)
        return await self._submit("createBet", call, value=0)

    async def place_stake(self, request: StakeRequest) -> SubmissionHandle:
        """
        Submit placeBet(betId, side) transferring `amount` wei.

        Raises:
            SubmissionError: If the write is rejected before broadcast
        """
        call = self._contract.functions.placeBet(request.bet_id, request.side.as_ledger_flag())
        return await self._submit("placeBet", call, value=request.amount, bet_id=request.bet_id)

    async def end_epoch(self, request: EndEpochRequest) -> SubmissionHandle:
        """
        Submit endEpoch(betId, evidence) transferring the protocol fee.

        Raises:
            SubmissionError: If the write is rejected before broadcast
        """
        call = self._contract.functions.endEpoch(request.bet_id, list(request.evidence))
        return await self._submit("endEpoch", call, value=request.fee, bet_id=request.bet_id)

    async def list_bets(self) -> List[Bet]:
        """
        Read every bet from the ledger.

        Returns:
            Full snapshot in ledger order (by id)

        Raises:
            LedgerReadError: If the call fails or returns malformed data
        """
        try:
            raw_bets = await self._contract.functions.getAllBets().call()
        except _SUBMIT_ERRORS as e:
            logger.error(f"Failed to read bets: {e}")
            raise LedgerReadError(f"getAllBets failed: {e}") from e

        try:
            bets = [Bet.from_ledger_tuple(raw) for raw in raw_bets]
        except (TypeError, ValueError) as e:
            raise LedgerReadError(f"getAllBets returned malformed data: {e}") from e

        logger.debug(f"Fetched {len(bets)} bets")
        return bets

    async def get_receipt(self, handle: SubmissionHandle) -> Optional[Receipt]:
        """
        Look up the receipt for a submitted transaction.

        Returns:
            Receipt once mined, None while still pending
        """
        try:
            raw = await self._web3.eth.get_transaction_receipt(handle.tx_hash)
        except TransactionNotFound:
            return None

        if raw is None:
            return None

        return Receipt(
            tx_hash=handle.tx_hash,
            status=int(raw["status"]),
            block_number=raw.get("blockNumber"),
            gas_used=raw.get("gasUsed"),
        )

    def explorer_url(self, handle: SubmissionHandle) -> str:
        """Block explorer link for a submitted transaction."""
        return self._config.explorer_tx_url.format(tx_hash=handle.tx_hash)

    async def _submit(
        self,
        action: str,
        call: Any,
        value: int,
        bet_id: Optional[int] = None,
    ) -> SubmissionHandle:
        """Build, sign and broadcast a contract call."""
        if self._account is None:
            raise SubmissionError(action, RuntimeError("no signing account configured"))

        try:
            tx_params: Dict[str, Any] = {
                "from": self._account.address,
                "value": value,
                "nonce": await self._web3.eth.get_transaction_count(
                    self._account.address, self._config.nonce_block
                ),
                "chainId": await self._web3.eth.chain_id,
            }
            # build_transaction estimates gas, so contract reverts surface here
            tx = await call.build_transaction(tx_params)
            signed = self._account.sign_transaction(tx)
            tx_hash = await self._web3.eth.send_raw_transaction(signed.raw_transaction)

        except _SUBMIT_ERRORS as e:
            logger.error(f"Failed to submit {action} (bet={bet_id}, value={value}): {e}")
            raise SubmissionError(action, e) from e

        handle = SubmissionHandle(
            tx_hash=Web3.to_hex(tx_hash),
            action=action,
            bet_id=bet_id,
        )
        logger.info(f"Submitted {action} {handle.tx_hash} (bet={bet_id}, value={value})")
        return handle
