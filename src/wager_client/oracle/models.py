"""
Pydantic models for Hermes (Pyth price service) responses.

Only the fields the client uses are modelled; anything else in the payload
is ignored.
"""
from __future__ import annotations

import base64
import binascii
from datetime import datetime, timezone
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, field_validator


def normalize_feed_id(feed_id: str) -> str:
    """
    Normalise a Pyth feed id to lowercase 64-char hex without 0x.

    Raises:
        ValueError: If the id is not 32 bytes of hex
    """
    text = str(feed_id).strip().lower()
    if text.startswith("0x"):
        text = text[2:]
    if len(text) != 64:
        raise ValueError(f"Feed id must be 64 hex characters, got {feed_id!r}")
    try:
        bytes.fromhex(text)
    except ValueError:
        raise ValueError(f"Feed id is not valid hex: {feed_id!r}")
    return text


class PriceQuote(BaseModel):
    """A single Pyth price: value = price * 10**expo."""

    model_config = ConfigDict(extra="ignore")

    price: int
    conf: int
    expo: int
    publish_time: int

    @property
    def value(self) -> Decimal:
        return Decimal(self.price).scaleb(self.expo)

    @property
    def confidence(self) -> Decimal:
        return Decimal(self.conf).scaleb(self.expo)

    @property
    def published_at(self) -> datetime:
        return datetime.fromtimestamp(self.publish_time, tz=timezone.utc)


class ParsedPriceUpdate(BaseModel):
    """Decoded view of one feed in an update. The id is stored normalised."""

    model_config = ConfigDict(extra="ignore")

    id: str
    price: PriceQuote
    ema_price: Optional[PriceQuote] = None

    @field_validator("id")
    @classmethod
    def check_feed_id(cls, v):
        return normalize_feed_id(v)

    @property
    def feed_id(self) -> str:
        return self.id


class BinaryUpdate(BaseModel):
    """Signed update blobs to be passed to the contract verbatim."""

    model_config = ConfigDict(extra="ignore")

    encoding: str = "hex"
    data: List[str] = []

    def decode(self) -> List[bytes]:
        """
        Decode each blob to raw bytes.

        Raises:
            ValueError: On an unknown encoding or undecodable blob
        """
        blobs = []
        for item in self.data:
            if self.encoding == "hex":
                text = item[2:] if item.startswith("0x") else item
                blobs.append(bytes.fromhex(text))
            elif self.encoding == "base64":
                try:
                    blobs.append(base64.b64decode(item, validate=True))
                except binascii.Error as e:
                    raise ValueError(f"Invalid base64 update data: {e}")
            else:
                raise ValueError(f"Unsupported update encoding: {self.encoding}")
        return blobs


class HermesUpdateResponse(BaseModel):
    """Response of GET /v2/updates/price/latest."""

    model_config = ConfigDict(extra="ignore")

    binary: BinaryUpdate
    parsed: Optional[List[ParsedPriceUpdate]] = None

    def feed_ids(self) -> set:
        return {update.feed_id for update in self.parsed or []}
