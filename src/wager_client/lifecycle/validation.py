"""
Pure validators for bet lifecycle transitions.

Each validator decides, without any I/O, whether a requested transition is
well-formed and shapes the canonical request payload. Validators return a
tagged result instead of raising, so callers can render the error inline:

    result = validate_stake(bet, BetSide.EXCEED, "0.5")
    if result.ok:
        handle = await gateway.place_stake(result.value)
    else:
        show(result.error)

Use result.unwrap() to get the value or raise the ValidationError.

Transitions: Created -> (Staked)* -> Ended. Ended is terminal, so every
validator that targets an existing bet rejects ended bets with StaleBetError.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, Iterable, Optional, TypeVar, Union

from wager_client.exceptions import StaleBetError, ValidationError

from .models import Bet, BetSide, CreateRequest, EndEpochRequest, StakeRequest
from .units import NATIVE_DECIMALS, THRESHOLD_DECIMALS, parse_units

T = TypeVar("T")

MAX_TITLE_LENGTH = 256


@dataclass(frozen=True)
class Ok(Generic[T]):
    """Successful validation carrying the shaped request."""

    value: T
    ok = True
    error = None

    def unwrap(self) -> T:
        return self.value


@dataclass(frozen=True)
class Err:
    """Failed validation carrying the error."""

    error: ValidationError
    ok = False
    value = None

    @property
    def kind(self) -> str:
        return type(self.error).__name__

    @property
    def message(self) -> str:
        return str(self.error)

    def unwrap(self):
        raise self.error


Result = Union[Ok[T], Err]


def _positive_units(value: str, field: str, decimals: int) -> int:
    scaled = parse_units(value, decimals=decimals, field=field)
    if scaled <= 0:
        raise ValidationError(f"{field} must be greater than zero, got {value!r}", field=field)
    return scaled


def validate_create(
    title: str,
    threshold: str,
    decimals: int = THRESHOLD_DECIMALS,
) -> Result[CreateRequest]:
    """
    Validate a new bet proposal.

    The threshold is sent to createBet as entered, so "5000" becomes 5000.

    Args:
        title: Claim description, must be non-empty after stripping
        threshold: Positive whole-number string
        decimals: Fixed-point scale applied to the threshold (default unscaled)

    Returns:
        Ok(CreateRequest) or Err(ValidationError)
    """
    clean_title = (title or "").strip()
    if not clean_title:
        return Err(ValidationError("Title is required", field="title"))
    if len(clean_title) > MAX_TITLE_LENGTH:
        return Err(ValidationError(
            f"Title must be at most {MAX_TITLE_LENGTH} characters", field="title"
        ))

    try:
        scaled = _positive_units(threshold, "threshold", decimals)
    except ValidationError as e:
        return Err(e)

    return Ok(CreateRequest(title=clean_title, threshold=scaled))


def validate_stake(
    bet: Bet,
    side: Union[BetSide, str, bool],
    amount: str,
    decimals: int = NATIVE_DECIMALS,
) -> Result[StakeRequest]:
    """
    Validate a stake placement on an open bet.

    The amount is converted from decimal to wei exactly; "0.1" becomes
    100000000000000000 with no rounding.

    Returns:
        Ok(StakeRequest), or Err(StaleBetError) if the bet has ended,
        or Err(ValidationError) for a bad side or amount
    """
    if bet.epoch_ended:
        return Err(StaleBetError(bet.id))

    try:
        parsed_side = BetSide.parse(side)
    except ValueError as e:
        return Err(ValidationError(str(e), field="side"))

    try:
        scaled = _positive_units(amount, "amount", decimals)
    except ValidationError as e:
        return Err(e)

    return Ok(StakeRequest(bet_id=bet.id, side=parsed_side, amount=scaled))


def validate_end_epoch(
    bet: Bet,
    evidence: Optional[Iterable[bytes]],
    fee: int,
) -> Result[EndEpochRequest]:
    """
    Validate an epoch-ending request.

    Args:
        bet: Bet to resolve, must still be open
        evidence: Oracle update payloads, at least one non-empty blob
        fee: Protocol fee in wei attached as transferred value

    Returns:
        Ok(EndEpochRequest), or Err(StaleBetError) if already ended,
        or Err(ValidationError) for missing evidence or a bad fee
    """
    if bet.epoch_ended:
        return Err(StaleBetError(bet.id))

    blobs = tuple(evidence or ())
    if not blobs:
        return Err(ValidationError("Resolution evidence is required", field="evidence"))
    if any(not isinstance(blob, (bytes, bytearray)) or not blob for blob in blobs):
        return Err(ValidationError("Resolution evidence contains an empty payload", field="evidence"))

    if fee <= 0:
        return Err(ValidationError(f"Protocol fee must be positive, got {fee}", field="fee"))

    return Ok(EndEpochRequest(
        bet_id=bet.id,
        evidence=tuple(bytes(blob) for blob in blobs),
        fee=fee,
    ))
