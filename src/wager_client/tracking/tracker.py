"""
Transaction Flow Tracker.

Observes a SubmissionHandle until the ledger reports a terminal result:

    IDLE -> PENDING -> CONFIRMED
                    -> FAILED

PENDING is entered the moment a handle is watched. CONFIRMED requires a
mined receipt with status 1. FAILED means a reverted receipt
(ConfirmationFailure) or an error raised while waiting. Transport errors
are never read as confirmation.

Each watch fires on_submitted once and exactly one terminal notification.
There is no timeout; cancel() or close() abandons observation silently.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import TYPE_CHECKING, Awaitable, Callable, Dict, Optional, Protocol

from wager_client.exceptions import ConfirmationFailure

from .notifications import LoggingNotifier, NotificationSink

if TYPE_CHECKING:
    from wager_client.ledger import Receipt, SubmissionHandle

logger = logging.getLogger(__name__)

TerminalCallback = Callable[["TransactionFlow"], Awaitable[None]]


class ReceiptSource(Protocol):
    """Anything that can report the receipt for a handle (LedgerGateway)."""

    async def get_receipt(self, handle: "SubmissionHandle") -> Optional["Receipt"]: ...

    def explorer_url(self, handle: "SubmissionHandle") -> str: ...


class FlowStatus(Enum):
    """Status of a transaction flow."""

    IDLE = "idle"
    PENDING = "pending"
    CONFIRMED = "confirmed"
    FAILED = "failed"


@dataclass
class TransactionFlow:
    """Transient state of one submitted write."""

    action: str
    reference: Optional[str] = None
    status: FlowStatus = FlowStatus.IDLE
    bet_id: Optional[int] = None
    explorer_url: Optional[str] = None
    error: Optional[BaseException] = None
    receipt: Optional["Receipt"] = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: Optional[datetime] = None

    @property
    def is_terminal(self) -> bool:
        return self.status in (FlowStatus.CONFIRMED, FlowStatus.FAILED)

    @property
    def succeeded(self) -> bool:
        return self.status == FlowStatus.CONFIRMED

    def _transition(self, status: FlowStatus) -> None:
        if self.is_terminal:
            raise RuntimeError(
                f"Flow {self.reference} already {self.status.value}, cannot become {status.value}"
            )
        self.status = status
        self.updated_at = datetime.now(timezone.utc)

    def confirm(self, receipt: "Receipt") -> None:
        self._transition(FlowStatus.CONFIRMED)
        self.receipt = receipt

    def fail(self, error: BaseException, receipt: Optional["Receipt"] = None) -> None:
        self._transition(FlowStatus.FAILED)
        self.error = error
        self.receipt = receipt


class TransactionFlowTracker:
    """
    Watches submitted transactions and emits one event per transition.

    Several watches may run at once; starting a new one replaces `current`
    but does not cancel earlier watches.

    Usage:
        tracker = TransactionFlowTracker(gateway, notifier=LoggingNotifier())

        flow = await tracker.watch(handle, on_terminal=refresh)
        flow = await tracker.wait(handle)
        if flow.succeeded:
            print(flow.explorer_url)

        await tracker.close()  # abandon anything still pending
    """

    def __init__(
        self,
        receipt_source: ReceiptSource,
        notifier: Optional[NotificationSink] = None,
        poll_interval: float = 2.0,
    ) -> None:
        """
        Initialize the tracker.

        Args:
            receipt_source: Ledger gateway used to poll receipts
            notifier: Sink for lifecycle events (logs by default)
            poll_interval: Seconds between receipt polls
        """
        self._source = receipt_source
        self._notifier = notifier or LoggingNotifier()
        self._poll_interval = poll_interval

        self._current: Optional[TransactionFlow] = None
        self._flows: Dict[str, TransactionFlow] = {}
        self._tasks: Dict[str, asyncio.Task] = {}

    @property
    def current(self) -> Optional[TransactionFlow]:
        """Flow of the most recent action, None when idle."""
        return self._current

    @property
    def status(self) -> FlowStatus:
        return self._current.status if self._current else FlowStatus.IDLE

    @property
    def active_count(self) -> int:
        return len(self._tasks)

    def get_flow(self, reference: str) -> Optional[TransactionFlow]:
        return self._flows.get(reference)

    def reset(self) -> None:
        """
        Discard the current flow when a new action begins.

        Settled or abandoned flows are forgotten; running watches continue.
        """
        self._current = None
        for reference in [ref for ref in self._flows if ref not in self._tasks]:
            del self._flows[reference]

    async def watch(
        self,
        handle: "SubmissionHandle",
        on_terminal: Optional[TerminalCallback] = None,
    ) -> TransactionFlow:
        """
        Start observing a handle.

        Args:
            handle: Handle returned by the ledger gateway
            on_terminal: Awaited after the terminal notification

        Returns:
            The flow, already in PENDING
        """
        if handle.tx_hash in self._flows:
            return self._flows[handle.tx_hash]

        flow = TransactionFlow(
            action=handle.action,
            reference=handle.tx_hash,
            bet_id=handle.bet_id,
            explorer_url=self._source.explorer_url(handle),
        )
        flow._transition(FlowStatus.PENDING)
        self._current = flow
        self._flows[handle.tx_hash] = flow

        await self._emit("on_submitted", flow)

        task = asyncio.create_task(
            self._observe(handle, flow, on_terminal),
            name=f"watch-{handle.tx_hash[:10]}",
        )
        self._tasks[handle.tx_hash] = task
        task.add_done_callback(lambda _t, ref=handle.tx_hash: self._tasks.pop(ref, None))
        return flow

    async def wait(self, handle: "SubmissionHandle") -> TransactionFlow:
        """
        Wait until a watched handle reaches a terminal state.

        Returns the flow as-is if the watch was cancelled first.

        Raises:
            KeyError: If the handle was never watched, or was forgotten by reset()
        """
        flow = self._flows[handle.tx_hash]
        task = self._tasks.get(handle.tx_hash)
        if task is not None:
            await asyncio.wait({task})
        return flow

    async def cancel(self, handle: "SubmissionHandle") -> bool:
        """
        Abandon observation of one handle without notifying.

        Returns:
            True if a running watch was cancelled
        """
        task = self._tasks.pop(handle.tx_hash, None)
        if task is None:
            return False
        task.cancel()
        await asyncio.gather(task, return_exceptions=True)
        logger.debug(f"Stopped watching {handle.tx_hash}")
        return True

    async def close(self) -> None:
        """Abandon every running watch."""
        tasks = list(self._tasks.values())
        self._tasks.clear()
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
            logger.info(f"Abandoned {len(tasks)} pending transaction watch(es)")

    async def _observe(
        self,
        handle: "SubmissionHandle",
        flow: TransactionFlow,
        on_terminal: Optional[TerminalCallback],
    ) -> None:
        """Poll for a receipt and record the terminal state."""
        try:
            while True:
                receipt = await self._source.get_receipt(handle)
                if receipt is not None:
                    break
                await asyncio.sleep(self._poll_interval)

        except asyncio.CancelledError:
            logger.debug(f"Watch for {handle.tx_hash} cancelled")
            raise

        except Exception as e:
            # Recorded on the flow and reported; never read as confirmation
            logger.error(f"Error while waiting for {handle.action} {handle.tx_hash}: {e}")
            flow.fail(e)

        else:
            if receipt.succeeded:
                flow.confirm(receipt)
                logger.info(
                    f"Confirmed {handle.action} {handle.tx_hash} in block {receipt.block_number}"
                )
            else:
                flow.fail(ConfirmationFailure(handle.tx_hash), receipt=receipt)
                logger.warning(f"Reverted {handle.action} {handle.tx_hash}")

        await self._emit("on_confirmed" if flow.succeeded else "on_failed", flow)

        if on_terminal is not None:
            try:
                await on_terminal(flow)
            except Exception as e:
                logger.error(f"Terminal callback failed for {handle.tx_hash}: {e}")

    async def _emit(self, event: str, flow: TransactionFlow) -> None:
        """Deliver one event; sink errors never affect the flow."""
        try:
            await getattr(self._notifier, event)(flow)
        except Exception as e:
            logger.error(f"Notifier {event} failed for {flow.reference}: {e}")
