"""Binance public REST adapter for 24h ticker statistics."""
from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

import httpx

from ..config import Settings, get_settings
from ..errors import DataFetchFailure
from ..observability import record_fetch_latency
from .base import MarketDataProvider

LOGGER = logging.getLogger(__name__)

TICKER_24H_PATH = "/api/v3/ticker/24hr"


class BinanceAdapter(MarketDataProvider):
    """Fetch ``/api/v3/ticker/24hr`` through one shared async client."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        *,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.settings = settings or get_settings()
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            base_url=self.settings.api_base_url,
            timeout=self.settings.request_timeout_sec,
            verify=self.settings.ca_bundle_path or True,
        )

    async def fetch_24h_stats(self, symbol: str) -> Mapping[str, Any]:
        try:
            with record_fetch_latency():
                response = await self._client.get(TICKER_24H_PATH, params={"symbol": symbol})
            response.raise_for_status()
            body = response.json()
        except httpx.HTTPStatusError as exc:
            raise DataFetchFailure(symbol, f"HTTP {exc.response.status_code}") from exc
        except httpx.HTTPError as exc:
            raise DataFetchFailure(symbol, f"{type(exc).__name__}: {exc}") from exc
        except ValueError as exc:
            raise DataFetchFailure(symbol, "response body is not JSON") from exc
        if not isinstance(body, Mapping):
            raise DataFetchFailure(symbol, f"unexpected body type {type(body).__name__}")
        LOGGER.debug("24h stats for %s: lastPrice=%s", symbol, body.get("lastPrice"))
        return body

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()


__all__ = ["BinanceAdapter", "TICKER_24H_PATH"]
