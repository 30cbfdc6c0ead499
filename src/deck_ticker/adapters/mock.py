import random
from typing import Any, Dict, Mapping, Optional

from .base import MarketDataProvider

_BASE_PRICES = {
    "BTCUSDT": 65000.0,
    "ETHUSDT": 3200.0,
    "SOLUSDT": 150.0,
    "DOGEUSDT": 0.15,
    "SHIBUSDT": 0.000024,
}


class MockAdapter(MarketDataProvider):
    """Offline provider: a random walk per symbol, shaped like the Binance response."""

    def __init__(self, rng: Optional[random.Random] = None) -> None:
        self._rng = rng or random.Random()
        self._open: Dict[str, float] = {}
        self._last: Dict[str, float] = {}

    async def fetch_24h_stats(self, symbol: str) -> Mapping[str, Any]:
        open_price = self._open.setdefault(symbol, _BASE_PRICES.get(symbol, 1.0))
        last = self._last.get(symbol, open_price) * self._rng.uniform(0.98, 1.02)
        self._last[symbol] = last
        change = last - open_price
        return {
            "symbol": symbol,
            "lastPrice": f"{last:.8f}",
            "priceChange": f"{change:.8f}",
            "priceChangePercent": f"{change / open_price * 100.0:.3f}",
            "openPrice": f"{open_price:.8f}",
        }
