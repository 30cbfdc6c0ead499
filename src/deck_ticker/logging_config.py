"""
Logging configuration for the ticker plugin.

The plugin runs as a child process of the Stream Deck application, so its
stdout is usually captured by the host. A file log is the practical way to
diagnose fetch failures after the fact.
"""
import logging
import sys
from pathlib import Path
from typing import Optional, Union

_NOISY_LOGGERS = (
    "httpx",
    "httpcore",
    "websockets",
    "websockets.client",
    "websockets.protocol",
    "asyncio",
)


def configure_logging(
    log_level: str = "INFO",
    log_file: Optional[Union[str, Path]] = None,
    enable_console_logging: bool = True,
) -> None:
    """
    Configure process-wide logging for the plugin.

    This function:
    1. Sets up a console handler with a compact format
    2. Adds a file handler with a detailed format when ``log_file`` is given
    3. Holds HTTP and WebSocket library loggers at WARNING
    4. Keeps ``deck_ticker`` logs at the requested level

    Args:
        log_level: Application logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional path to a log file; parent directories are created
        enable_console_logging: Whether to log to stdout

    Example:
        >>> from deck_ticker.logging_config import configure_logging
        >>> configure_logging(log_level="DEBUG")
    """
    level = getattr(logging, log_level.upper(), logging.INFO)
    handlers: list[logging.Handler] = []

    if enable_console_logging:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(level)
        console_handler.setFormatter(
            logging.Formatter(
                '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
                datefmt='%Y-%m-%d %H:%M:%S',
            )
        )
        handlers.append(console_handler)

    if log_file is not None:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(path, encoding='utf-8')
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(
            logging.Formatter(
                '%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s',
                datefmt='%Y-%m-%d %H:%M:%S',
            )
        )
        handlers.append(file_handler)

    # Root at DEBUG when a file is attached so the handler levels decide.
    root_level = logging.DEBUG if log_file is not None else level
    logging.basicConfig(level=root_level, handlers=handlers, force=True)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.getLogger('deck_ticker').setLevel(root_level)
    logging.getLogger('__main__').setLevel(root_level)

    logger = logging.getLogger(__name__)
    logger.info("Logging configured (level=%s, file=%s)", log_level.upper(), log_file or "-")
