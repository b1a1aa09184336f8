"""
Notification sinks for transaction flows.

The tracker calls exactly one of on_confirmed / on_failed per submitted
transaction, after one on_submitted. Sinks must not raise into the tracker;
a failed delivery is logged and reported as False.
"""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING, List, Optional, Protocol

import aiohttp

if TYPE_CHECKING:
    from .tracker import TransactionFlow

logger = logging.getLogger(__name__)


class NotificationSink(Protocol):
    """Receives transaction lifecycle events."""

    async def on_submitted(self, flow: "TransactionFlow") -> bool: ...

    async def on_confirmed(self, flow: "TransactionFlow") -> bool: ...

    async def on_failed(self, flow: "TransactionFlow") -> bool: ...


def _describe(flow: "TransactionFlow") -> str:
    target = f" on bet {flow.bet_id}" if flow.bet_id is not None else ""
    return f"{flow.action}{target}"


class LoggingNotifier:
    """Default sink: writes transaction events to the log."""

    async def on_submitted(self, flow: "TransactionFlow") -> bool:
        logger.info(f"Transaction pending: {_describe(flow)} ({flow.reference})")
        return True

    async def on_confirmed(self, flow: "TransactionFlow") -> bool:
        logger.info(f"Transaction successful: {_describe(flow)} - {flow.explorer_url}")
        return True

    async def on_failed(self, flow: "TransactionFlow") -> bool:
        logger.error(f"Transaction failed: {_describe(flow)} - {flow.error}")
        return True


class TelegramNotifier:
    """
    Sends transaction events to a Telegram chat.

    Usage:
        async with TelegramNotifier(bot_token="...", chat_id="...") as notifier:
            tracker = TransactionFlowTracker(gateway, notifier)
    """

    API_URL = "https://api.telegram.org"

    def __init__(
        self,
        bot_token: Optional[str] = None,
        chat_id: Optional[str] = None,
        session: Optional[aiohttp.ClientSession] = None,
        timeout: float = 10.0,
        notify_submitted: bool = True,
    ) -> None:
        """
        Initialize the notifier.

        Args:
            bot_token: Bot token from @BotFather
            chat_id: Chat ID to send messages to
            session: Optional aiohttp session (created on first send)
            timeout: Request timeout in seconds
            notify_submitted: Also send a message when a transaction is broadcast
        """
        self._bot_token = bot_token
        self._chat_id = chat_id
        self._session = session
        self._owns_session = session is None
        self._timeout = aiohttp.ClientTimeout(total=timeout)
        self._notify_submitted = notify_submitted

    @property
    def is_configured(self) -> bool:
        return bool(self._bot_token and self._chat_id)

    async def __aenter__(self) -> "TelegramNotifier":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def close(self) -> None:
        if self._owns_session and self._session:
            await self._session.close()
            self._session = None

    async def on_submitted(self, flow: "TransactionFlow") -> bool:
        if not self._notify_submitted:
            return False
        return await self._send(f"⏳ *Transaction Pending*\n{_describe(flow)}\n`{flow.reference}`")

    async def on_confirmed(self, flow: "TransactionFlow") -> bool:
        return await self._send(
            f"✅ *Transaction Successful*\n{_describe(flow)}\n[View on explorer]({flow.explorer_url})"
        )

    async def on_failed(self, flow: "TransactionFlow") -> bool:
        return await self._send(f"❌ *Transaction Failed*\n{_describe(flow)}\n{flow.error}")

    async def _send(self, text: str) -> bool:
        """Send message via Telegram API."""
        if not self.is_configured:
            logger.warning("Telegram credentials not configured")
            return False

        if self._session is None:
            self._session = aiohttp.ClientSession(timeout=self._timeout)
            self._owns_session = True

        url = f"{self.API_URL}/bot{self._bot_token}/sendMessage"
        payload = {
            "chat_id": self._chat_id,
            "text": text,
            "parse_mode": "Markdown",
        }

        try:
            async with self._session.post(url, json=payload) as response:
                response.raise_for_status()
            logger.debug(f"Sent Telegram notification: {text[:50]}...")
            return True
        except aiohttp.ClientError as e:
            logger.error(f"Failed to send Telegram notification: {e}")
            return False


class MultiNotifier:
    """Fans events out to several sinks."""

    def __init__(self, sinks: List[NotificationSink]) -> None:
        self._sinks = list(sinks)

    async def on_submitted(self, flow: "TransactionFlow") -> bool:
        return all([await sink.on_submitted(flow) for sink in self._sinks])

    async def on_confirmed(self, flow: "TransactionFlow") -> bool:
        return all([await sink.on_confirmed(flow) for sink in self._sinks])

    async def on_failed(self, flow: "TransactionFlow") -> bool:
        return all([await sink.on_failed(flow) for sink in self._sinks])

    async def close(self) -> None:
        for sink in self._sinks:
            close = getattr(sink, "close", None)
            if close is not None:
                await close()
