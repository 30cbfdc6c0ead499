"""Wire providers, engine, registry and host into a running plugin."""
from __future__ import annotations

import logging
from typing import Optional

from .adapters.base import MarketDataProvider
from .adapters.binance import BinanceAdapter
from .adapters.mock import MockAdapter
from .config import Settings, get_settings
from .engine.registry import InstanceRegistry
from .engine.updater import PriceUpdateEngine
from .host.streamdeck import StreamDeckHost

LOGGER = logging.getLogger(__name__)


def make_adapter(settings: Optional[Settings] = None) -> MarketDataProvider:
    settings = settings or get_settings()
    return MockAdapter() if settings.use_mock_adapter else BinanceAdapter(settings)


def build_plugin(
    host: StreamDeckHost,
    settings: Optional[Settings] = None,
    provider: Optional[MarketDataProvider] = None,
) -> InstanceRegistry:
    settings = settings or get_settings()
    provider = provider or make_adapter(settings)
    engine = PriceUpdateEngine(provider, host, settings)
    registry = InstanceRegistry(engine, host, settings)
    host.attach(registry)
    return registry


async def run_plugin(host: StreamDeckHost, settings: Optional[Settings] = None) -> None:
    registry = build_plugin(host, settings)
    try:
        await host.run()
    finally:
        await registry.close()
        await registry.engine.close()
        await registry.engine.provider.aclose()
        LOGGER.info("Plugin stopped")
