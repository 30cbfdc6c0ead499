"""Fetch, format and render one refresh of a ticker key."""
from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Protocol, Set

from ..config import Settings, get_settings
from ..core.formatting import build_payload, normalize_symbol
from ..core.render import render_badge
from ..adapters.base import MarketDataProvider
from ..host.base import HostSurface
from ..models import DisplayPayload
from ..observability import record_refresh

LOGGER = logging.getLogger(__name__)

ERROR_TITLE = "Error"


class RefreshOutcome(str, Enum):
    UPDATED = "updated"
    FALLBACK = "fallback"
    ERROR = "error"
    DISCARDED = "discarded"


class StateStore(Protocol):
    def is_active(self, instance_id: str) -> bool:
        ...

    def last_good_state(self, instance_id: str) -> Optional[DisplayPayload]:
        ...

    def commit(self, instance_id: str, payload: DisplayPayload) -> bool:
        ...


class PriceUpdateEngine:
    """Produce a badge for one key and fall back to its last good payload on failure.

    Failures never leave :meth:`refresh`; they are logged and rendered as either
    the cached payload or a short-lived "Error" title.
    """

    def __init__(
        self,
        provider: MarketDataProvider,
        host: HostSurface,
        settings: Optional[Settings] = None,
    ) -> None:
        self.provider = provider
        self.host = host
        self.settings = settings or get_settings()
        self._error_clears: Dict[str, asyncio.Task[None]] = {}
        self._clear_tasks: Set[asyncio.Task[None]] = set()

    async def refresh(
        self,
        instance_id: str,
        config: Optional[Mapping[str, Any]],
        store: StateStore,
    ) -> RefreshOutcome:
        symbol = normalize_symbol(config, self.settings.default_symbol)
        try:
            stats = await self.provider.fetch_24h_stats(symbol)
            payload = build_payload(symbol, stats)
        except Exception as exc:
            outcome = await self._fallback(instance_id, symbol, exc, store)
        else:
            if store.commit(instance_id, payload):
                await self._render(instance_id, payload)
                outcome = RefreshOutcome.UPDATED
            else:
                LOGGER.debug("Dropping %s result for removed key %s", symbol, instance_id)
                outcome = RefreshOutcome.DISCARDED
        record_refresh(outcome.value)
        return outcome

    async def _fallback(
        self,
        instance_id: str,
        symbol: str,
        exc: Exception,
        store: StateStore,
    ) -> RefreshOutcome:
        if not store.is_active(instance_id):
            LOGGER.debug("Ignoring %s failure for removed key %s: %s", symbol, instance_id, exc)
            return RefreshOutcome.DISCARDED
        cached = store.last_good_state(instance_id)
        if cached is not None:
            await self._render(instance_id, cached)
            await self._set_title(instance_id, "")
            outcome = RefreshOutcome.FALLBACK
        else:
            await self._show_transient_error(instance_id)
            outcome = RefreshOutcome.ERROR
        LOGGER.warning("Ticker fetch failed for %s (%s): %s", instance_id, symbol, exc)
        return outcome

    async def _render(self, instance_id: str, payload: DisplayPayload) -> None:
        try:
            await self.host.set_image(instance_id, render_badge(payload))
        except Exception as exc:
            LOGGER.warning("setImage failed for %s: %s", instance_id, exc)

    async def _set_title(self, instance_id: str, title: str) -> None:
        try:
            await self.host.set_title(instance_id, title)
        except Exception as exc:
            LOGGER.warning("setTitle failed for %s: %s", instance_id, exc)

    async def _show_transient_error(self, instance_id: str) -> None:
        # one "Error" per burst of failures; the clear is armed before the title is sent
        if self.error_pending(instance_id):
            return
        task = asyncio.create_task(self._clear_error_later(instance_id))
        self._error_clears[instance_id] = task
        self._clear_tasks.add(task)
        task.add_done_callback(lambda t, key=instance_id: self._forget_clear(key, t))
        await self._set_title(instance_id, ERROR_TITLE)

    async def _clear_error_later(self, instance_id: str) -> None:
        await asyncio.sleep(self.settings.error_title_clear_sec)
        await self._set_title(instance_id, "")

    def _forget_clear(self, instance_id: str, task: asyncio.Task[None]) -> None:
        self._clear_tasks.discard(task)
        if self._error_clears.get(instance_id) is task:
            del self._error_clears[instance_id]

    def error_pending(self, instance_id: str) -> bool:
        task = self._error_clears.get(instance_id)
        return task is not None and not task.done()

    def forget_error(self, instance_id: str) -> None:
        """Drop the pending-error marker for a removed key; its scheduled clear still runs."""
        self._error_clears.pop(instance_id, None)

    async def close(self) -> None:
        tasks = list(self._clear_tasks)
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self._error_clears.clear()
        self._clear_tasks.clear()


__all__ = ["ERROR_TITLE", "PriceUpdateEngine", "RefreshOutcome", "StateStore"]
