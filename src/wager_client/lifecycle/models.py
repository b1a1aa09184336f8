"""
Data models for the bet lifecycle.

Bets are read-only projections of ledger state. They are frozen and replaced
wholesale on every refetch, never patched in place.

IMPORTANT: All monetary fields (pools, amounts, fees) are integers
in the smallest denomination (wei). Use format_units() for display only.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Sequence, Tuple, Union

from .units import THRESHOLD_DECIMALS, format_units


class BetSide(str, Enum):
    """Side of a stake."""

    EXCEED = "exceed"
    NOT_EXCEED = "not_exceed"

    def as_ledger_flag(self) -> bool:
        """Contract encoding: True means the stake is on Exceed."""
        return self is BetSide.EXCEED

    @classmethod
    def parse(cls, value: Union[str, bool, "BetSide"]) -> "BetSide":
        """
        Parse a side from user input.

        Accepts BetSide members, booleans (True = Exceed) and the strings
        "exceed", "not_exceed", "not-exceed", "yes", "no", "true", "false".
        """
        if isinstance(value, BetSide):
            return value
        if isinstance(value, bool):
            return cls.EXCEED if value else cls.NOT_EXCEED

        normalized = str(value).strip().lower().replace("-", "_")
        if normalized in ("exceed", "yes", "true", "over"):
            return cls.EXCEED
        if normalized in ("not_exceed", "no", "false", "under"):
            return cls.NOT_EXCEED
        raise ValueError(f"Unknown bet side: {value!r}")


@dataclass(frozen=True)
class Bet:
    """
    A threshold proposition with two opposing stake pools.

    Attributes:
        id: Ledger-assigned identifier, never reused
        title: Free-text claim, e.g. "ETH > 5000"
        threshold: Whole-number value the claim is measured against (unscaled)
        pool_exceed: Total staked on Exceed (wei)
        pool_not_exceed: Total staked on Not Exceed (wei)
        epoch_ended: True once resolved; terminal
    """

    id: int
    title: str
    threshold: int
    pool_exceed: int = 0
    pool_not_exceed: int = 0
    epoch_ended: bool = False

    def __post_init__(self):
        if self.pool_exceed < 0 or self.pool_not_exceed < 0:
            raise ValueError(
                f"Bet {self.id} has negative pool: "
                f"exceed={self.pool_exceed}, not_exceed={self.pool_not_exceed}"
            )

    @classmethod
    def from_ledger_tuple(cls, raw: Sequence[Any]) -> "Bet":
        """Build from the (id, title, threshold, poolExceed, poolNotExceed, ended) struct."""
        bet_id, title, threshold, pool_exceed, pool_not_exceed, epoch_ended = raw
        return cls(
            id=int(bet_id),
            title=str(title),
            threshold=int(threshold),
            pool_exceed=int(pool_exceed),
            pool_not_exceed=int(pool_not_exceed),
            epoch_ended=bool(epoch_ended),
        )

    @property
    def total_pool(self) -> int:
        return self.pool_exceed + self.pool_not_exceed

    @property
    def status(self) -> str:
        return "Ended" if self.epoch_ended else "Active"

    @property
    def threshold_display(self) -> str:
        return format_units(self.threshold, THRESHOLD_DECIMALS)

    @property
    def pool_exceed_display(self) -> str:
        return format_units(self.pool_exceed)

    @property
    def pool_not_exceed_display(self) -> str:
        return format_units(self.pool_not_exceed)

    def pool_for(self, side: BetSide) -> int:
        """Get the pool total for one side."""
        return self.pool_exceed if side is BetSide.EXCEED else self.pool_not_exceed


@dataclass(frozen=True)
class CreateRequest:
    """Canonical payload for createBet."""

    title: str
    threshold: int


@dataclass(frozen=True)
class StakeRequest:
    """Canonical payload for placeBet. `amount` is the value transferred."""

    bet_id: int
    side: BetSide
    amount: int


@dataclass(frozen=True)
class EndEpochRequest:
    """Canonical payload for endEpoch. `fee` is the value transferred."""

    bet_id: int
    evidence: Tuple[bytes, ...] = field(default_factory=tuple)
    fee: int = 0
