"""
Bet Lifecycle Engine - Transport-independent validation and request shaping.

This module provides:
    - Bet: Read-only projection of a ledger bet
    - BetSide: Exceed / Not Exceed
    - CreateRequest, StakeRequest, EndEpochRequest: Canonical ledger payloads
    - validate_create / validate_stake / validate_end_epoch: Pure validators
    - Ok / Err / Result: Tagged validation result
    - parse_units / format_units: Exact decimal <-> wei conversion

Lifecycle:
    Created -> (Staked)* -> Ended

    Staking is a repeatable self-loop. Ended is terminal: once a bet's
    epoch_ended flag is set, every transition is rejected with StaleBetError.

Usage:
    from wager_client.lifecycle import validate_stake, BetSide

    request = validate_stake(bet, BetSide.EXCEED, "0.5").unwrap()
"""

from .models import (
    Bet,
    BetSide,
    CreateRequest,
    EndEpochRequest,
    StakeRequest,
)
from .units import (
    NATIVE_DECIMALS,
    THRESHOLD_DECIMALS,
    format_units,
    parse_units,
)
from .validation import (
    Err,
    Ok,
    Result,
    validate_create,
    validate_end_epoch,
    validate_stake,
)

__all__ = [
    # Models
    "Bet",
    "BetSide",
    "CreateRequest",
    "EndEpochRequest",
    "StakeRequest",
    # Units
    "NATIVE_DECIMALS",
    "THRESHOLD_DECIMALS",
    "format_units",
    "parse_units",
    # Validation
    "Err",
    "Ok",
    "Result",
    "validate_create",
    "validate_end_epoch",
    "validate_stake",
]
