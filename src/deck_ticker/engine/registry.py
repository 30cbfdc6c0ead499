"""Per-key lifecycle bookkeeping: refresh timers, cached payloads, key-press cooldown."""
from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, Mapping, Optional

from ..config import Settings, get_settings
from ..host.base import HostSurface
from ..models import DisplayPayload
from ..observability import record_manual_dropped, set_active_instances
from .updater import PriceUpdateEngine, RefreshOutcome

LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class InstanceRecord:
    """Bookkeeping for one visible key, owned by :class:`InstanceRegistry`."""

    instance_id: str
    config: Dict[str, Any] = field(default_factory=dict)
    timer: Optional[asyncio.Task[None]] = None
    last_good_state: Optional[DisplayPayload] = None
    last_manual_refresh_at: Optional[float] = None


class InstanceRegistry:
    """Track visible ticker keys by host id and drive their refreshes.

    Every record is looked up by id at the moment it is needed; timers and
    in-flight refreshes never hold on to a record, so a key that disappears
    mid-fetch cannot be written back into the registry.
    """

    def __init__(
        self,
        engine: PriceUpdateEngine,
        host: HostSurface,
        settings: Optional[Settings] = None,
    ) -> None:
        self.engine = engine
        self.host = host
        self.settings = settings or get_settings()
        self._records: Dict[str, InstanceRecord] = {}

    # ------------------------------------------------------------------
    # state store used by the engine
    # ------------------------------------------------------------------
    def is_active(self, instance_id: str) -> bool:
        return instance_id in self._records

    def last_good_state(self, instance_id: str) -> Optional[DisplayPayload]:
        record = self._records.get(instance_id)
        return record.last_good_state if record else None

    def commit(self, instance_id: str, payload: DisplayPayload) -> bool:
        record = self._records.get(instance_id)
        if record is None:
            return False
        record.last_good_state = payload
        return True

    def __contains__(self, instance_id: object) -> bool:
        return instance_id in self._records

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._records))

    def get(self, instance_id: str) -> Optional[InstanceRecord]:
        return self._records.get(instance_id)

    # ------------------------------------------------------------------
    # host events
    # ------------------------------------------------------------------
    def register(self, instance_id: str, config: Optional[Mapping[str, Any]] = None) -> InstanceRecord:
        """Create or reset the record for a key and cancel its previous timer.

        Synchronous so a dispatcher can apply appear and disappear in the order
        the host sent them.
        """
        record = self._records.get(instance_id)
        if record is None:
            record = InstanceRecord(instance_id=instance_id)
            self._records[instance_id] = record
            set_active_instances(len(self._records))
        self._cancel_timer(record)
        record.config = dict(config or {})
        return record

    async def activate(self, instance_id: str) -> Optional[RefreshOutcome]:
        """Refresh a registered key immediately, then arm its periodic timer."""
        record = self._records.get(instance_id)
        if record is None:
            LOGGER.debug("Key %s disappeared before its first refresh", instance_id)
            return None

        outcome = await self.engine.refresh(instance_id, record.config, self)

        # the key may have disappeared (or re-appeared) while the fetch was in flight
        if self._records.get(instance_id) is record:
            self._arm_timer(record)
        return outcome

    async def on_appear(
        self, instance_id: str, config: Optional[Mapping[str, Any]] = None
    ) -> Optional[RefreshOutcome]:
        self.register(instance_id, config)
        return await self.activate(instance_id)

    async def on_config_changed(
        self, instance_id: str, config: Optional[Mapping[str, Any]] = None
    ) -> Optional[RefreshOutcome]:
        record = self._records.get(instance_id)
        if record is None:
            LOGGER.debug("Settings for unknown key %s ignored", instance_id)
            return None
        record.config = dict(config or {})
        return await self.engine.refresh(instance_id, record.config, self)

    async def on_manual_trigger(
        self,
        instance_id: str,
        config: Optional[Mapping[str, Any]] = None,
        now: Optional[float] = None,
    ) -> bool:
        """Refresh on key press unless one was accepted within the cooldown window."""
        record = self._records.get(instance_id)
        if record is None:
            LOGGER.debug("Key press for unknown key %s ignored", instance_id)
            return False
        now = time.monotonic() if now is None else now
        last = record.last_manual_refresh_at
        if last is not None and now - last < self.settings.manual_refresh_cooldown_sec:
            LOGGER.info(
                "Key press on %s skipped: %.1fs since last manual refresh",
                instance_id,
                now - last,
            )
            record_manual_dropped()
            return False
        record.last_manual_refresh_at = now
        if config is not None:
            record.config = dict(config)
        await self.engine.refresh(instance_id, record.config, self)
        return True

    def on_disappear(self, instance_id: str) -> None:
        record = self._records.pop(instance_id, None)
        if record is None:
            return
        self._cancel_timer(record)
        self.engine.forget_error(instance_id)
        set_active_instances(len(self._records))
        LOGGER.debug("Key %s removed", instance_id)

    async def close(self) -> None:
        """Cancel every timer and forget all keys."""
        records = list(self._records.values())
        self._records.clear()
        timers = [record.timer for record in records if record.timer is not None]
        for record in records:
            self._cancel_timer(record)
        await asyncio.gather(*timers, return_exceptions=True)
        set_active_instances(0)

    # ------------------------------------------------------------------
    # timers
    # ------------------------------------------------------------------
    def _arm_timer(self, record: InstanceRecord) -> None:
        self._cancel_timer(record)
        record.timer = asyncio.create_task(
            self._run_timer(record.instance_id),
            name=f"ticker-timer-{record.instance_id}",
        )

    @staticmethod
    def _cancel_timer(record: InstanceRecord) -> None:
        timer, record.timer = record.timer, None
        if timer is not None and not timer.done():
            timer.cancel()

    async def _run_timer(self, instance_id: str) -> None:
        interval = self.settings.refresh_interval_sec
        while True:
            await asyncio.sleep(interval)
            if instance_id not in self._records:
                return
            config = await self._current_config(instance_id)
            try:
                await self.engine.refresh(instance_id, config, self)
            except Exception:  # pragma: no cover - refresh absorbs its own failures
                LOGGER.exception("Timer refresh for %s failed", instance_id)

    async def _current_config(self, instance_id: str) -> Mapping[str, Any]:
        """Settings as the host holds them now, else the last ones we were given."""
        try:
            current = await self.host.get_settings(instance_id)
        except Exception as exc:
            LOGGER.warning("getSettings failed for %s: %s", instance_id, exc)
            current = None
        record = self._records.get(instance_id)
        if current is None:
            return dict(record.config) if record else {}
        if record is not None:
            record.config = dict(current)
        return current


__all__ = ["InstanceRecord", "InstanceRegistry"]
