"""
USD -> EUR Exchange Rate Service

Fetches the current rate from an external provider. Any failure (timeout,
HTTP error, bad payload) falls back to the configured rate; the caller
never sees an exception. No retries.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from typing import Literal, Optional

import httpx

from agency_console.config import settings
from agency_console.services.payouts.currency import to_decimal

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FxQuote:
    """A USD->EUR multiplier and where it came from."""
    rate: Decimal
    source: Literal["api", "fallback"]
    as_of: datetime


def fallback_quote() -> FxQuote:
    return FxQuote(
        rate=to_decimal(settings.FX_FALLBACK_RATE),
        source="fallback",
        as_of=datetime.now(timezone.utc),
    )


def _extract_rate(payload: dict) -> Optional[Decimal]:
    """Accepts {"rates": {"EUR": x}} or {"rate": x}."""
    raw = None
    if isinstance(payload.get("rates"), dict):
        raw = payload["rates"].get("EUR")
    if raw is None:
        raw = payload.get("rate")
    if raw is None:
        return None
    try:
        rate = to_decimal(raw)
    except ValueError:
        return None
    return rate if rate > 0 else None


async def get_usd_eur_rate(client: Optional[httpx.AsyncClient] = None) -> FxQuote:
    """
    Get the USD->EUR rate.

    Args:
        client: Optional HTTP client (tests pass one with a mock transport)

    Returns:
        FxQuote with source "api", or the configured fallback on any failure
    """
    if not settings.FX_API_URL:
        logger.debug("FX lookup skipped: no FX_API_URL configured")
        return fallback_quote()

    headers = {}
    if settings.FX_API_KEY:
        headers["Authorization"] = f"Bearer {settings.FX_API_KEY}"

    try:
        if client is None:
            async with httpx.AsyncClient(timeout=settings.FX_TIMEOUT_SECONDS) as own_client:
                response = await own_client.get(settings.FX_API_URL, headers=headers)
        else:
            response = await client.get(
                settings.FX_API_URL,
                headers=headers,
                timeout=settings.FX_TIMEOUT_SECONDS,
            )

        if response.status_code != 200:
            logger.warning(f"FX API error: HTTP {response.status_code}; using fallback rate")
            return fallback_quote()

        rate = _extract_rate(response.json())
        if rate is None:
            logger.warning("FX API returned no usable EUR rate; using fallback rate")
            return fallback_quote()

        logger.debug(f"FX rate USD->EUR {rate}")
        return FxQuote(rate=rate, source="api", as_of=datetime.now(timezone.utc))

    except httpx.TimeoutException:
        logger.warning("FX API timed out; using fallback rate")
        return fallback_quote()
    except Exception as e:
        logger.warning(f"FX API error: {e}; using fallback rate")
        return fallback_quote()
