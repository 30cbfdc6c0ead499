"""Plugin entry point, launched by the Stream Deck application."""
from __future__ import annotations

import argparse
import asyncio
import json
import logging
from typing import Optional, Sequence

from .app import run_plugin
from .config import get_settings
from .host.streamdeck import StreamDeckHost
from .logging_config import configure_logging
from .observability import set_enabled, start_metrics_server

LOGGER = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    # Stream Deck passes single-dash long options
    parser = argparse.ArgumentParser(prog="deck-ticker", description="Stream Deck price ticker plugin")
    parser.add_argument("-port", dest="port", type=int, required=True)
    parser.add_argument("-pluginUUID", dest="plugin_uuid", required=True)
    parser.add_argument("-registerEvent", dest="register_event", required=True)
    parser.add_argument("-info", dest="info", default="{}")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    settings = get_settings()
    configure_logging(settings.log_level, settings.log_file)
    set_enabled(settings.metrics_enabled)

    try:
        info = json.loads(args.info)
        LOGGER.info("Stream Deck %s", info.get("application", {}).get("version", "?"))
    except (json.JSONDecodeError, AttributeError):
        LOGGER.warning("Could not parse -info payload")

    if settings.metrics_enabled and settings.metrics_port:
        start_metrics_server(settings.metrics_port)
        LOGGER.info("Metrics on :%d", settings.metrics_port)

    host = StreamDeckHost(args.port, args.plugin_uuid, args.register_event)
    try:
        asyncio.run(run_plugin(host, settings))
    except KeyboardInterrupt:
        LOGGER.info("Interrupted")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
