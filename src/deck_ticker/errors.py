"""Exceptions raised at the plugin's collaborator boundaries."""
from __future__ import annotations


class DataFetchFailure(RuntimeError):
    """Raised when 24h statistics for a symbol cannot be fetched or parsed."""

    def __init__(self, symbol: str, reason: str) -> None:
        super().__init__(f"{symbol}: {reason}")
        self.symbol = symbol
        self.reason = reason


class HostUnavailable(RuntimeError):
    """Raised when a command is sent to the host without an open connection."""
