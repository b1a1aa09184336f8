"""
Error taxonomy for the wager client.

Errors are split by WHEN they happen relative to the ledger:

    - ValidationError: bad user input, raised before any external call
    - OracleUnavailableError: resolution evidence could not be fetched
    - SubmissionError: the ledger refused the write before a hash existed
    - ConfirmationFailure: the write was mined but reverted
    - ConfigurationError: a setting is malformed, raised before any command runs

None of these are retried automatically. Retrying a failed stake could
double-submit funds, so the user decides.
"""
from __future__ import annotations

from typing import Optional


class WagerClientError(Exception):
    """Base class for all wager client errors."""


class ValidationError(WagerClientError):
    """Raised when user input is malformed or out of range."""

    def __init__(self, message: str, field: Optional[str] = None):
        self.field = field
        super().__init__(message)


class StaleBetError(ValidationError):
    """Raised when an operation targets a bet whose epoch already ended."""

    def __init__(self, bet_id: int):
        self.bet_id = bet_id
        super().__init__(f"Bet {bet_id} has already ended", field="bet")


class BetNotFoundError(ValidationError):
    """Raised when a bet id is not present in the latest snapshot."""

    def __init__(self, bet_id: int):
        self.bet_id = bet_id
        super().__init__(f"Bet {bet_id} not found", field="bet")


class SubmissionError(WagerClientError):
    """
    Raised when a write is rejected before entering the pending state.

    Covers reverts detected during gas estimation, insufficient funds,
    malformed arguments and RPC transport failures.
    """

    def __init__(self, action: str, cause: Optional[BaseException] = None):
        self.action = action
        self.cause = cause
        detail = f": {cause}" if cause is not None else ""
        super().__init__(f"{action} submission failed{detail}")


class LedgerReadError(WagerClientError):
    """Raised when reading bet state from the ledger fails."""


class OracleUnavailableError(WagerClientError):
    """Raised when price update evidence cannot be fetched."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class ConfirmationFailure(WagerClientError):
    """Raised when a submitted transaction was included but reverted."""

    def __init__(self, tx_hash: str, message: str = "Transaction reverted"):
        self.tx_hash = tx_hash
        super().__init__(f"{message} ({tx_hash})")


class ConfigurationError(WagerClientError):
    """Raised when an environment setting is missing or malformed."""
