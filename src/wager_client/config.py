"""
Configuration for the wager client.

Loaded from environment variables (see WagerConfig.from_env). The wallet and
chain connection are NOT global state: main.py builds them from this config
and injects them into the ledger gateway and oracle client.

Environment Variables:
    WAGER_RPC_URL             JSON-RPC endpoint of the chain hosting the contract
    WAGER_CONTRACT_ADDRESS    Wager contract address (required for ledger access)
    WAGER_PRIVATE_KEY         Signing key for writes (required for writes)
    HERMES_URL                Pyth price service base URL
    PRICE_FEED_IDS            Comma-separated feed ids used as resolution evidence
    PROTOCOL_FEE              Fee attached to endEpoch, in native units (default: 0.01)
    EXPLORER_TX_URL           Block explorer template containing {tx_hash}
    RECEIPT_POLL_INTERVAL     Seconds between receipt polls (default: 2.0)
    ORACLE_TIMEOUT            Oracle request timeout in seconds (default: 10.0)
    ORACLE_MAX_RETRIES        Oracle attempts per fetch (default: 3)
    TELEGRAM_BOT_TOKEN        Telegram bot token for transaction notifications
    TELEGRAM_CHAT_ID          Telegram chat ID for transaction notifications
"""
from __future__ import annotations

import os
import re
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import List, Optional

from web3 import Web3

from wager_client.exceptions import ConfigurationError, ValidationError
from wager_client.lifecycle import parse_units
from wager_client.oracle import normalize_feed_id

DEFAULT_RPC_URL = "https://rpc-quicknode-holesky.morphl2.io"
DEFAULT_HERMES_URL = "https://hermes.pyth.network"
DEFAULT_EXPLORER_TX_URL = "https://explorer-holesky.morphl2.io/tx/{tx_hash}"

# Pyth ETH/USD
ETH_USD_FEED_ID = "0xff61491a931112ddf1bd8147cd1b641375f79f5825126d665480874634fd0ace"

_PRIVATE_KEY_PATTERN = re.compile(r"^(0x)?[0-9a-fA-F]{64}$")


@dataclass
class WagerConfig:
    """Complete client configuration."""

    # Ledger
    rpc_url: str = DEFAULT_RPC_URL
    contract_address: str = ""
    private_key: Optional[str] = None

    # Oracle
    hermes_url: str = DEFAULT_HERMES_URL
    price_feed_ids: List[str] = field(default_factory=lambda: [ETH_USD_FEED_ID])
    oracle_timeout: float = 10.0
    oracle_max_retries: int = 3

    # Value attached to endEpoch; must match the fee the contract checks
    protocol_fee: Decimal = Decimal("0.01")

    # Tracking
    explorer_tx_url: str = DEFAULT_EXPLORER_TX_URL
    receipt_poll_interval: float = 2.0

    # Notifications
    telegram_bot_token: Optional[str] = None
    telegram_chat_id: Optional[str] = None

    @property
    def protocol_fee_wei(self) -> int:
        """Protocol fee in the smallest denomination."""
        return parse_units(format(self.protocol_fee, "f"), field="protocol_fee")

    @property
    def can_sign(self) -> bool:
        return bool(self.private_key)

    def validate(self) -> None:
        """
        Check settings that would otherwise fail deep inside a command.

        Raises:
            ConfigurationError: On the first malformed setting
        """
        if not self.price_feed_ids:
            raise ConfigurationError("PRICE_FEED_IDS must list at least one feed id")
        for feed_id in self.price_feed_ids:
            try:
                normalize_feed_id(feed_id)
            except ValueError as e:
                raise ConfigurationError(f"PRICE_FEED_IDS: {e}")

        if not self.protocol_fee.is_finite() or self.protocol_fee <= 0:
            raise ConfigurationError(f"PROTOCOL_FEE must be positive, got {self.protocol_fee}")
        try:
            self.protocol_fee_wei
        except ValidationError as e:
            raise ConfigurationError(f"PROTOCOL_FEE: {e}")

        if self.contract_address and not Web3.is_address(self.contract_address):
            raise ConfigurationError(
                f"WAGER_CONTRACT_ADDRESS is not a valid address: {self.contract_address!r}"
            )
        if self.private_key and not _PRIVATE_KEY_PATTERN.match(self.private_key):
            raise ConfigurationError("WAGER_PRIVATE_KEY must be 32 bytes of hex")

    @classmethod
    def from_env(cls) -> "WagerConfig":
        """
        Load and validate configuration from environment variables.

        Raises:
            ConfigurationError: If a variable is malformed
        """
        feed_ids = os.environ.get("PRICE_FEED_IDS", ETH_USD_FEED_ID)
        try:
            config = cls(
                rpc_url=os.environ.get("WAGER_RPC_URL", DEFAULT_RPC_URL),
                contract_address=os.environ.get("WAGER_CONTRACT_ADDRESS", ""),
                private_key=os.environ.get("WAGER_PRIVATE_KEY") or None,
                hermes_url=os.environ.get("HERMES_URL", DEFAULT_HERMES_URL),
                price_feed_ids=[f.strip() for f in feed_ids.split(",") if f.strip()],
                oracle_timeout=float(os.environ.get("ORACLE_TIMEOUT", "10.0")),
                oracle_max_retries=int(os.environ.get("ORACLE_MAX_RETRIES", "3")),
                protocol_fee=Decimal(os.environ.get("PROTOCOL_FEE", "0.01")),
                explorer_tx_url=os.environ.get("EXPLORER_TX_URL", DEFAULT_EXPLORER_TX_URL),
                receipt_poll_interval=float(os.environ.get("RECEIPT_POLL_INTERVAL", "2.0")),
                telegram_bot_token=os.environ.get("TELEGRAM_BOT_TOKEN"),
                telegram_chat_id=os.environ.get("TELEGRAM_CHAT_ID"),
            )
        except (ValueError, InvalidOperation) as e:
            raise ConfigurationError(f"Invalid numeric setting: {e}")

        config.validate()
        return config
