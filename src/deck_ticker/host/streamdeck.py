"""Stream Deck plugin WebSocket connection."""
from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, AsyncContextManager, Awaitable, Callable, Dict, Mapping, Optional, Set

from websockets.exceptions import ConnectionClosed

from ..errors import HostUnavailable
from .base import HostSurface

LOGGER = logging.getLogger(__name__)

WS_URL_TEMPLATE = "ws://127.0.0.1:{port}"

# setImage/setTitle target: hardware and software keys
TARGET_BOTH = 0


class StreamDeckHost(HostSurface):
    """Register with the Stream Deck application and route key events to the registry.

    ``registry`` is anything with plain ``register``/``on_disappear`` methods and
    ``activate``/``on_config_changed``/``on_manual_trigger`` coroutines.
    """

    def __init__(
        self,
        port: int,
        plugin_uuid: str,
        register_event: str,
        *,
        websocket_factory: Optional[Callable[[str], AsyncContextManager[Any]]] = None,
    ) -> None:
        self.url = WS_URL_TEMPLATE.format(port=port)
        self.plugin_uuid = plugin_uuid
        self.register_event = register_event
        self.registry: Any = None
        self._websocket_factory = websocket_factory or self._default_factory
        self._ws: Any = None
        self._settings: Dict[str, Dict[str, Any]] = {}
        self._tasks: Set[asyncio.Task[Any]] = set()

    def attach(self, registry: Any) -> None:
        self.registry = registry

    def _default_factory(self, url: str) -> AsyncContextManager[Any]:  # pragma: no cover - network path
        import websockets

        return websockets.connect(url, max_size=None)

    async def run(self) -> None:
        """Connect, register, and dispatch events until the host closes the socket."""
        if self.registry is None:
            raise RuntimeError("attach() a registry before run()")
        async with self._websocket_factory(self.url) as ws:
            self._ws = ws
            try:
                await ws.send(json.dumps({"event": self.register_event, "uuid": self.plugin_uuid}))
                LOGGER.info("Registered plugin %s with Stream Deck at %s", self.plugin_uuid, self.url)
                async for raw in ws:
                    await self._handle_message(raw)
            except ConnectionClosed as exc:
                LOGGER.info("Stream Deck connection closed: %s", exc)
            finally:
                self._ws = None
        await self.drain()

    async def drain(self) -> None:
        """Wait for dispatched event handlers to finish."""
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def _handle_message(self, raw: Any) -> None:
        message = self._decode(raw)
        if message is None:
            return
        event = message.get("event")
        context = message.get("context")
        if not event or not context:
            LOGGER.debug("Ignoring host message without event/context: %s", message)
            return
        payload = message.get("payload") or {}
        settings = payload.get("settings") if isinstance(payload, Mapping) else None
        settings = dict(settings) if isinstance(settings, Mapping) else {}

        # register/on_disappear run inline so appear and disappear apply in frame order
        if event == "willAppear":
            self._settings[context] = settings
            self.registry.register(context, settings)
            self._spawn(self.registry.activate(context))
        elif event == "didReceiveSettings":
            self._settings[context] = settings
            self._spawn(self.registry.on_config_changed(context, settings))
        elif event == "keyDown":
            self._settings[context] = settings
            self._spawn(self.registry.on_manual_trigger(context, settings))
        elif event == "willDisappear":
            self._settings.pop(context, None)
            self.registry.on_disappear(context)
        else:
            LOGGER.debug("Unhandled host event %s for %s", event, context)

    def _spawn(self, coro: Awaitable[Any]) -> None:
        task = asyncio.ensure_future(coro)
        self._tasks.add(task)
        task.add_done_callback(self._task_done)

    def _task_done(self, task: asyncio.Task[Any]) -> None:
        self._tasks.discard(task)
        if not task.cancelled() and task.exception() is not None:
            LOGGER.error("Host event handler failed", exc_info=task.exception())

    @staticmethod
    def _decode(raw: Any) -> Optional[Mapping[str, Any]]:
        if isinstance(raw, bytes):
            raw = raw.decode("utf-8", errors="replace")
        try:
            message = json.loads(raw)
        except (TypeError, json.JSONDecodeError):
            LOGGER.debug("Undecodable host frame: %r", raw)
            return None
        return message if isinstance(message, Mapping) else None

    async def _send(self, message: Mapping[str, Any]) -> None:
        if self._ws is None:
            raise HostUnavailable(f"not connected; dropped {message.get('event')}")
        await self._ws.send(json.dumps(message))

    async def set_image(self, instance_id: str, image: str) -> None:
        await self._send(
            {"event": "setImage", "context": instance_id, "payload": {"image": image, "target": TARGET_BOTH}}
        )

    async def set_title(self, instance_id: str, title: str) -> None:
        await self._send(
            {"event": "setTitle", "context": instance_id, "payload": {"title": title, "target": TARGET_BOTH}}
        )

    async def get_settings(self, instance_id: str) -> Optional[Mapping[str, Any]]:
        settings = self._settings.get(instance_id)
        return dict(settings) if settings is not None else None


__all__ = ["StreamDeckHost", "TARGET_BOTH", "WS_URL_TEMPLATE"]
