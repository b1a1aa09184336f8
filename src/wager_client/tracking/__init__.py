"""
Transaction Flow Tracker - Observe submitted writes until they settle.

This module provides:
    - TransactionFlowTracker: Polls receipts, emits one terminal event per handle
    - TransactionFlow: Per-transaction state (status, reference, error, explorer link)
    - FlowStatus: IDLE / PENDING / CONFIRMED / FAILED
    - NotificationSink: Protocol for lifecycle events
    - LoggingNotifier, TelegramNotifier, MultiNotifier: Sink implementations
"""

from .notifications import (
    LoggingNotifier,
    MultiNotifier,
    NotificationSink,
    TelegramNotifier,
)
from .tracker import (
    FlowStatus,
    ReceiptSource,
    TransactionFlow,
    TransactionFlowTracker,
)

__all__ = [
    # Tracker
    "FlowStatus",
    "ReceiptSource",
    "TransactionFlow",
    "TransactionFlowTracker",
    # Notifications
    "LoggingNotifier",
    "MultiNotifier",
    "NotificationSink",
    "TelegramNotifier",
]
