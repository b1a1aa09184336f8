"""
Ledger Gateway - Typed access to the wager contract.

This module provides:
    - LedgerGateway: createBet / placeBet / endEpoch writes and getAllBets read
    - LedgerConfig: Configuration for the gateway
    - SubmissionHandle: Reference to a broadcast, not yet confirmed, write
    - Receipt: Inclusion result used by the transaction tracker
    - WAGER_ABI: Contract ABI fragments

Writes return as soon as the node accepts the signed transaction.
Rejections before that point raise SubmissionError; reverts after
inclusion are reported by the tracker as ConfirmationFailure.
"""

from .abi import WAGER_ABI
from .gateway import (
    LedgerConfig,
    LedgerGateway,
    Receipt,
    SubmissionHandle,
)

__all__ = [
    "LedgerConfig",
    "LedgerGateway",
    "Receipt",
    "SubmissionHandle",
    "WAGER_ABI",
]
