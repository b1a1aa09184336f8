"""
Hermes client for Pyth price update evidence.

Ending an epoch requires a freshly signed price update: the contract checks
the publish time, so evidence is NEVER cached. Every call hits Hermes.

If Hermes is unreachable, errors, or omits a requested feed, the call fails
with OracleUnavailableError and the caller must not submit endEpoch.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, Iterable, List, Optional

import aiohttp
from pydantic import ValidationError as PydanticValidationError

from wager_client.exceptions import OracleUnavailableError

from .models import HermesUpdateResponse, PriceQuote, normalize_feed_id

logger = logging.getLogger(__name__)


class HermesClient:
    """
    Async client for the Pyth Hermes price service.

    Features:
        - Fresh fetch on every call (evidence freshness is enforced on-chain)
        - Retries with exponential backoff on timeouts, 429 and 5xx
        - Feed coverage check: every requested feed must be in the response

    Usage:
        async with HermesClient() as oracle:
            evidence = await oracle.fetch_update_evidence([ETH_USD_FEED_ID])
            prices = await oracle.fetch_latest_prices([ETH_USD_FEED_ID])
    """

    HERMES_API = "https://hermes.pyth.network"

    def __init__(
        self,
        session: Optional[aiohttp.ClientSession] = None,
        base_url: str = HERMES_API,
        timeout: float = 10.0,
        max_retries: int = 3,
        retry_delay: float = 0.5,
    ):
        """
        Initialize the Hermes client.

        Args:
            session: Optional aiohttp session (created if not provided)
            base_url: Hermes base URL
            timeout: Request timeout in seconds
            max_retries: Number of attempts per fetch
            retry_delay: Base delay between retries (exponential backoff)
        """
        self._session = session
        self._owns_session = session is None
        self._base_url = base_url.rstrip("/")
        self._timeout = aiohttp.ClientTimeout(total=timeout)
        self._max_retries = max(1, max_retries)
        self._retry_delay = retry_delay

    async def __aenter__(self) -> "HermesClient":
        if self._session is None:
            self._session = aiohttp.ClientSession(timeout=self._timeout)
            self._owns_session = True
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def close(self) -> None:
        """Close the client session if we own it."""
        if self._owns_session and self._session:
            await self._session.close()
            self._session = None

    async def fetch_update_evidence(self, feed_ids: Iterable[str]) -> List[bytes]:
        """
        Fetch signed price update blobs for the given feeds.

        Args:
            feed_ids: Pyth feed ids (64 hex chars, 0x prefix optional)

        Returns:
            Non-empty list of update blobs, ready for endEpoch

        Raises:
            ValueError: If a feed id is malformed (no request is made)
            OracleUnavailableError: If evidence cannot be obtained
        """
        response = await self._fetch_latest(feed_ids)

        try:
            blobs = response.binary.decode()
        except ValueError as e:
            raise OracleUnavailableError(f"Undecodable price update data: {e}")

        if not blobs or any(not blob for blob in blobs):
            raise OracleUnavailableError("Hermes returned no price update data")

        logger.info(f"Fetched {len(blobs)} price update blob(s) from Hermes")
        return blobs

    async def fetch_latest_prices(self, feed_ids: Iterable[str]) -> Dict[str, PriceQuote]:
        """
        Fetch the latest decoded prices, keyed by normalised feed id.

        Raises:
            OracleUnavailableError: If prices cannot be obtained
        """
        response = await self._fetch_latest(feed_ids)
        return {update.feed_id: update.price for update in response.parsed or []}

    async def _fetch_latest(self, feed_ids: Iterable[str]) -> HermesUpdateResponse:
        """Fetch and validate the latest update for the requested feeds."""
        requested = [normalize_feed_id(f) for f in feed_ids]
        if not requested:
            raise ValueError("At least one feed id is required")

        params = [("ids[]", f"0x{feed_id}") for feed_id in requested]
        params.append(("encoding", "hex"))
        params.append(("parsed", "true"))

        data = await self._request("GET", f"{self._base_url}/v2/updates/price/latest", params=params)

        try:
            response = HermesUpdateResponse.model_validate(data)
        except PydanticValidationError as e:
            raise OracleUnavailableError(f"Malformed Hermes response: {e}")

        missing = set(requested) - response.feed_ids()
        if missing:
            raise OracleUnavailableError(
                f"Hermes returned no data for feed(s): {', '.join(sorted(missing))}"
            )

        return response

    async def _request(self, method: str, url: str, **kwargs) -> Any:
        """
        Make an HTTP request with retries.

        Raises:
            OracleUnavailableError: On any failure after retries
            asyncio.CancelledError: When task is cancelled (re-raised)
        """
        if self._session is None:
            self._session = aiohttp.ClientSession(timeout=self._timeout)
            self._owns_session = True

        last_error: Optional[OracleUnavailableError] = None

        for attempt in range(self._max_retries):
            try:
                async with self._session.request(method, url, **kwargs) as response:
                    if response.status == 429 or response.status >= 500:
                        text = await response.text()
                        raise OracleUnavailableError(
                            f"Hermes error: {response.status} - {text}",
                            status_code=response.status,
                        )

                    # 4xx client errors (except 429) - don't retry
                    if response.status >= 400:
                        text = await response.text()
                        raise OracleUnavailableError(
                            f"Hermes rejected request: {response.status} - {text}",
                            status_code=response.status,
                        )

                    return await response.json()

            except OracleUnavailableError as e:
                if e.status_code is not None and e.status_code < 500 and e.status_code != 429:
                    raise
                last_error = e
                logger.warning(f"{e}, retry {attempt + 1}/{self._max_retries}")

            except asyncio.TimeoutError:
                last_error = OracleUnavailableError("Hermes request timed out")
                logger.warning(f"Hermes request timeout, retry {attempt + 1}/{self._max_retries}")

            except asyncio.CancelledError:
                logger.debug("Hermes request cancelled")
                raise

            except aiohttp.ClientError as e:
                last_error = OracleUnavailableError(f"Hermes unreachable: {e}")
                logger.warning(f"Hermes request failed: {e}, retry {attempt + 1}/{self._max_retries}")

            except ValueError as e:
                raise OracleUnavailableError(f"Invalid JSON from Hermes: {e}")

            if attempt < self._max_retries - 1:
                await asyncio.sleep(self._retry_delay * (2 ** attempt))

        raise last_error or OracleUnavailableError("Hermes request failed after retries")
