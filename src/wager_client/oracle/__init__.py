"""
Oracle Client - Pyth price update evidence from Hermes.

This module provides:
    - HermesClient: Fresh fetch of signed update blobs and decoded prices
    - HermesUpdateResponse, BinaryUpdate, ParsedPriceUpdate, PriceQuote: Response models
    - normalize_feed_id: Feed id validation

Evidence is only needed to end an epoch, and is never cached.
"""

from .client import HermesClient
from .models import (
    BinaryUpdate,
    HermesUpdateResponse,
    ParsedPriceUpdate,
    PriceQuote,
    normalize_feed_id,
)

__all__ = [
    "HermesClient",
    "BinaryUpdate",
    "HermesUpdateResponse",
    "ParsedPriceUpdate",
    "PriceQuote",
    "normalize_feed_id",
]
