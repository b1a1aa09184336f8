"""
Tests for the Hermes oracle client.

Evidence must be fetched fresh every call, and every failure mode must
surface as OracleUnavailableError.
"""
import asyncio
from decimal import Decimal

import aiohttp
import pytest
from unittest.mock import MagicMock

from wager_client.exceptions import OracleUnavailableError
from wager_client.oracle import HermesClient, normalize_feed_id

ETH_USD = "ff61491a931112ddf1bd8147cd1b641375f79f5825126d665480874634fd0ace"
BTC_USD = "e62df6c8b4a85fe1a67db44dc12de5db330f7ac66b72dc658afedf0f4a415b43"


@pytest.fixture
def respond(mock_session):
    """Replace the session's responses with a sequence."""
    def _set(*responses):
        mock_session.request.side_effect = list(responses)
    return _set


class TestFetchUpdateEvidence:
    """Tests for signed update retrieval."""

    @pytest.mark.asyncio
    async def test_returns_decoded_blobs(self, hermes):
        evidence = await hermes.fetch_update_evidence([ETH_USD])

        assert evidence == [bytes.fromhex("504e41550100000003b801000000040d00")]

    @pytest.mark.asyncio
    async def test_requests_latest_update_with_hex_encoding(self, hermes, mock_session):
        await hermes.fetch_update_evidence(["0x" + ETH_USD.upper()])

        method, url = mock_session.request.call_args[0]
        params = mock_session.request.call_args[1]["params"]
        assert method == "GET"
        assert url == "https://hermes.test/v2/updates/price/latest"
        assert ("ids[]", "0x" + ETH_USD) in params
        assert ("encoding", "hex") in params

    @pytest.mark.asyncio
    async def test_never_caches(self, hermes, mock_session):
        """Each call must hit Hermes: stale evidence is rejected on-chain."""
        await hermes.fetch_update_evidence([ETH_USD])
        await hermes.fetch_update_evidence([ETH_USD])

        assert mock_session.request.call_count == 2

    @pytest.mark.asyncio
    async def test_missing_feed_is_unavailable(self, hermes, respond, fake_response, payload):
        """A requested feed absent from the response fails the whole fetch."""
        respond(fake_response(payload=payload(ETH_USD)))

        with pytest.raises(OracleUnavailableError) as exc_info:
            await hermes.fetch_update_evidence([ETH_USD, BTC_USD])

        assert BTC_USD in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_empty_binary_data_is_unavailable(self, hermes, respond, fake_response, payload):
        respond(fake_response(payload=payload(ETH_USD, data=[])))

        with pytest.raises(OracleUnavailableError):
            await hermes.fetch_update_evidence([ETH_USD])

    @pytest.mark.asyncio
    async def test_malformed_payload_is_unavailable(self, hermes, respond, fake_response):
        respond(fake_response(payload={"unexpected": True}))

        with pytest.raises(OracleUnavailableError):
            await hermes.fetch_update_evidence([ETH_USD])

    @pytest.mark.asyncio
    async def test_undecodable_hex_is_unavailable(self, hermes, respond, fake_response, payload):
        respond(fake_response(payload=payload(ETH_USD, data=["zz"])))

        with pytest.raises(OracleUnavailableError):
            await hermes.fetch_update_evidence([ETH_USD])

    @pytest.mark.asyncio
    async def test_malformed_feed_id_in_response_is_unavailable(self, hermes, respond, fake_response, payload):
        """A bad id from Hermes is an upstream failure, not a caller error."""
        respond(fake_response(payload=payload("zz")))

        with pytest.raises(OracleUnavailableError) as exc_info:
            await hermes.fetch_update_evidence([ETH_USD])

        assert "Malformed Hermes response" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_response_feed_ids_are_normalised(self, hermes, respond, fake_response, payload):
        respond(fake_response(payload=payload("0x" + ETH_USD.upper())))

        prices = await hermes.fetch_latest_prices([ETH_USD])

        assert list(prices) == [ETH_USD]

    @pytest.mark.asyncio
    async def test_base64_encoding(self, hermes, respond, fake_response, payload):
        respond(fake_response(payload=payload(ETH_USD, data=["UE5BVQ=="], encoding="base64")))

        assert await hermes.fetch_update_evidence([ETH_USD]) == [b"PNAU"]

    @pytest.mark.asyncio
    async def test_invalid_feed_id_makes_no_request(self, hermes, mock_session):
        with pytest.raises(ValueError):
            await hermes.fetch_update_evidence(["0x1234"])

        mock_session.request.assert_not_called()


class TestRetries:
    """Tests for transport-level retries within a single fetch."""

    @pytest.mark.asyncio
    async def test_retries_server_error(self, hermes, respond, fake_response, payload, mock_session):
        respond(
            fake_response(status=503, text="unavailable"),
            fake_response(payload=payload(ETH_USD)),
        )

        evidence = await hermes.fetch_update_evidence([ETH_USD])

        assert len(evidence) == 1
        assert mock_session.request.call_count == 2

    @pytest.mark.asyncio
    async def test_gives_up_after_max_retries(self, hermes, respond, fake_response, mock_session):
        respond(*[fake_response(status=502, text="bad gateway")] * 3)

        with pytest.raises(OracleUnavailableError) as exc_info:
            await hermes.fetch_update_evidence([ETH_USD])

        assert exc_info.value.status_code == 502
        assert mock_session.request.call_count == 3

    @pytest.mark.asyncio
    async def test_client_error_not_retried(self, hermes, respond, fake_response, mock_session):
        respond(fake_response(status=404, text="Price ids not found"))

        with pytest.raises(OracleUnavailableError) as exc_info:
            await hermes.fetch_update_evidence([ETH_USD])

        assert exc_info.value.status_code == 404
        assert mock_session.request.call_count == 1

    @pytest.mark.asyncio
    async def test_network_failure(self, hermes, mock_session):
        """Unreachable Hermes is OracleUnavailableError after retries."""
        mock_session.request.side_effect = aiohttp.ClientConnectionError("connection refused")

        with pytest.raises(OracleUnavailableError) as exc_info:
            await hermes.fetch_update_evidence([ETH_USD])

        assert "unreachable" in str(exc_info.value)
        assert mock_session.request.call_count == 3

    @pytest.mark.asyncio
    async def test_timeout(self, hermes, mock_session):
        mock_session.request.side_effect = asyncio.TimeoutError()

        with pytest.raises(OracleUnavailableError):
            await hermes.fetch_update_evidence([ETH_USD])

    @pytest.mark.asyncio
    async def test_invalid_json(self, hermes, respond, fake_response):
        respond(fake_response(payload=ValueError("Expecting value")))

        with pytest.raises(OracleUnavailableError):
            await hermes.fetch_update_evidence([ETH_USD])


class TestLatestPrices:
    """Tests for decoded price retrieval."""

    @pytest.mark.asyncio
    async def test_returns_scaled_price(self, hermes):
        prices = await hermes.fetch_latest_prices([ETH_USD])

        quote = prices[ETH_USD]
        assert quote.value == Decimal("3456.78000000")
        assert quote.confidence == Decimal("1.20000000")
        assert quote.published_at.year == 2025


class TestSessionLifecycle:
    """Tests for session ownership."""

    @pytest.mark.asyncio
    async def test_does_not_close_injected_session(self, mock_session):
        mock_session.close = MagicMock()

        async with HermesClient(session=mock_session):
            pass

        mock_session.close.assert_not_called()


class TestNormalizeFeedId:
    """Tests for feed id validation."""

    def test_strips_prefix_and_lowercases(self):
        assert normalize_feed_id("0x" + ETH_USD.upper()) == ETH_USD

    @pytest.mark.parametrize("feed_id", ["", "0x", "abc", "g" * 64, ETH_USD + "00"])
    def test_rejects_invalid(self, feed_id):
        with pytest.raises(ValueError):
            normalize_feed_id(feed_id)
