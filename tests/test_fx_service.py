"""Tests for the USD->EUR rate provider and its fallback."""

from decimal import Decimal

import httpx
import pytest

from agency_console.config import settings
from agency_console.services.payouts.fx_service import get_usd_eur_rate


def _client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


class TestGetRate:
    async def test_api_rate(self) -> None:
        async with _client(lambda request: httpx.Response(200, json={"amount": 1.0, "rates": {"EUR": 0.9134}})) as client:
            quote = await get_usd_eur_rate(client)
        assert quote.source == "api"
        assert quote.rate == Decimal("0.9134")

    async def test_flat_rate_payload(self) -> None:
        async with _client(lambda request: httpx.Response(200, json={"rate": "0.95"})) as client:
            quote = await get_usd_eur_rate(client)
        assert quote.rate == Decimal("0.95")

    @pytest.mark.parametrize("response", [
        httpx.Response(503, text="down"),
        httpx.Response(200, json={"rates": {}}),
        httpx.Response(200, json={"rates": {"EUR": -1}}),
        httpx.Response(200, text="not json"),
    ])
    async def test_bad_responses_fall_back(self, response) -> None:
        async with _client(lambda request: response) as client:
            quote = await get_usd_eur_rate(client)
        assert quote.source == "fallback"
        assert quote.rate == Decimal(str(settings.FX_FALLBACK_RATE))

    async def test_timeout_falls_back(self) -> None:
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        async with _client(handler) as client:
            quote = await get_usd_eur_rate(client)
        assert quote.source == "fallback"

    async def test_connection_error_falls_back(self) -> None:
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        async with _client(handler) as client:
            quote = await get_usd_eur_rate(client)
        assert quote.source == "fallback"
        assert quote.rate == Decimal("0.92")
