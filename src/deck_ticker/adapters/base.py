from abc import ABC, abstractmethod
from typing import Any, Mapping


class MarketDataProvider(ABC):
    @abstractmethod
    async def fetch_24h_stats(self, symbol: str) -> Mapping[str, Any]:
        """Return 24h statistics with ``lastPrice``, ``priceChange`` and
        ``priceChangePercent`` as numeric strings.

        Raises ``DataFetchFailure`` for every kind of failure.
        """

    async def aclose(self) -> None:
        return None
