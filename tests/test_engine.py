import asyncio
from typing import Dict, Optional

import pytest

from deck_ticker.adapters.base import MarketDataProvider
from deck_ticker.config import Settings
from deck_ticker.core.render import render_badge
from deck_ticker.engine.updater import ERROR_TITLE, PriceUpdateEngine, RefreshOutcome
from deck_ticker.errors import DataFetchFailure, HostUnavailable
from deck_ticker.host.base import HostSurface
from deck_ticker.models import DisplayPayload, Trend

GOOD_STATS = {"lastPrice": "67321.45", "priceChange": "812.3", "priceChangePercent": "1.22"}


class ScriptedProvider(MarketDataProvider):
    def __init__(self, *results):
        self.results = list(results)
        self.symbols = []

    async def fetch_24h_stats(self, symbol: str):
        self.symbols.append(symbol)
        result = self.results.pop(0) if self.results else DataFetchFailure(symbol, "no script")
        if isinstance(result, Exception):
            raise result
        return result


class RecordingHost(HostSurface):
    def __init__(self):
        self.images = []
        self.titles = []

    async def set_image(self, instance_id, image):
        self.images.append((instance_id, image))

    async def set_title(self, instance_id, title):
        self.titles.append((instance_id, title))

    async def get_settings(self, instance_id):
        return None


class DictStore:
    def __init__(self, *active):
        self.states: Dict[str, Optional[DisplayPayload]] = {key: None for key in active}

    def is_active(self, instance_id):
        return instance_id in self.states

    def last_good_state(self, instance_id):
        return self.states.get(instance_id)

    def commit(self, instance_id, payload):
        if instance_id not in self.states:
            return False
        self.states[instance_id] = payload
        return True


def _engine(provider, host, clear_sec=0.05):
    return PriceUpdateEngine(provider, host, Settings(error_title_clear_sec=clear_sec))


@pytest.mark.asyncio
async def test_successful_refresh_commits_and_renders():
    provider = ScriptedProvider(GOOD_STATS)
    host = RecordingHost()
    store = DictStore("key-1")
    engine = _engine(provider, host)

    outcome = await engine.refresh("key-1", {"symbol": "btcusdt"}, store)

    assert outcome is RefreshOutcome.UPDATED
    assert provider.symbols == ["BTCUSDT"]
    payload = store.states["key-1"]
    assert payload.formatted_price == "67,321.45"
    assert payload.trend is Trend.UP
    assert host.images == [("key-1", render_badge(payload))]
    assert host.titles == []


@pytest.mark.asyncio
async def test_missing_symbol_uses_default():
    provider = ScriptedProvider(GOOD_STATS)
    engine = _engine(provider, RecordingHost())
    await engine.refresh("key-1", {}, DictStore("key-1"))
    assert provider.symbols == ["BTCUSDT"]


@pytest.mark.asyncio
async def test_failure_after_success_rerenders_cached_payload():
    provider = ScriptedProvider(GOOD_STATS, DataFetchFailure("BTCUSDT", "HTTP 503"))
    host = RecordingHost()
    store = DictStore("key-1")
    engine = _engine(provider, host)

    await engine.refresh("key-1", {}, store)
    cached = store.states["key-1"]
    outcome = await engine.refresh("key-1", {}, store)

    assert outcome is RefreshOutcome.FALLBACK
    assert store.states["key-1"] is cached
    assert host.images[0] == host.images[1]
    assert host.titles == [("key-1", "")]


@pytest.mark.asyncio
async def test_failures_without_history_flash_one_error_title():
    provider = ScriptedProvider(
        DataFetchFailure("BTCUSDT", "timeout"),
        DataFetchFailure("BTCUSDT", "timeout"),
        {"lastPrice": "garbage"},
    )
    host = RecordingHost()
    store = DictStore("key-1")
    engine = _engine(provider, host, clear_sec=0.05)

    outcomes = [await engine.refresh("key-1", {}, store) for _ in range(3)]

    assert outcomes == [RefreshOutcome.ERROR] * 3
    assert host.titles == [("key-1", ERROR_TITLE)]
    assert engine.error_pending("key-1")

    await asyncio.sleep(0.1)

    assert host.titles == [("key-1", ERROR_TITLE), ("key-1", "")]
    assert host.images == []
    assert store.states["key-1"] is None
    assert not engine.error_pending("key-1")


@pytest.mark.asyncio
async def test_unexpected_provider_exception_is_absorbed():
    provider = ScriptedProvider(KeyError("lastPrice"))
    host = RecordingHost()
    engine = _engine(provider, host)
    outcome = await engine.refresh("key-1", {}, DictStore("key-1"))
    assert outcome is RefreshOutcome.ERROR
    await engine.close()


@pytest.mark.asyncio
async def test_results_for_removed_key_are_discarded():
    provider = ScriptedProvider(GOOD_STATS, DataFetchFailure("BTCUSDT", "boom"))
    host = RecordingHost()
    store = DictStore()
    engine = _engine(provider, host)

    assert await engine.refresh("gone", {}, store) is RefreshOutcome.DISCARDED
    assert await engine.refresh("gone", {}, store) is RefreshOutcome.DISCARDED
    assert host.images == []
    assert host.titles == []
    assert store.states == {}


@pytest.mark.asyncio
async def test_host_failure_does_not_escape_refresh():
    class BrokenHost(RecordingHost):
        async def set_image(self, instance_id, image):
            raise HostUnavailable("closed")

    store = DictStore("key-1")
    engine = _engine(ScriptedProvider(GOOD_STATS), BrokenHost())
    assert await engine.refresh("key-1", {}, store) is RefreshOutcome.UPDATED
    assert store.states["key-1"] is not None


@pytest.mark.asyncio
async def test_close_cancels_pending_error_clear():
    host = RecordingHost()
    engine = _engine(ScriptedProvider(), host, clear_sec=10)
    await engine.refresh("key-1", {}, DictStore("key-1"))
    assert engine.error_pending("key-1")
    await engine.close()
    assert not engine.error_pending("key-1")
    assert host.titles == [("key-1", ERROR_TITLE)]
