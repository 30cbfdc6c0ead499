"""Symbol normalisation, price formatting and payload construction."""
from __future__ import annotations

from decimal import ROUND_DOWN, ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Mapping, Optional, Union

from ..errors import DataFetchFailure
from ..models import DisplayPayload, Trend

DEFAULT_SYMBOL = "BTCUSDT"
QUOTE_SUFFIXES = ("USDT", "USDC")
SIGNIFICANT_CHARS = 8

_EIGHT_PLACES = Decimal("1e-8")
_TWO_PLACES = Decimal("0.01")
_UNIT = Decimal(1)

Number = Union[Decimal, float, int, str]


def normalize_symbol(config: Optional[Mapping[str, Any]], default: str = DEFAULT_SYMBOL) -> str:
    """Return the upper-cased trading pair for a key's settings."""
    raw = (config or {}).get("symbol")
    text = str(raw).strip() if raw is not None else ""
    return (text or default).upper()


def currency_label(symbol: str) -> str:
    """Strip one known quote-asset suffix: ``BTCUSDT`` -> ``BTC``."""
    for suffix in QUOTE_SUFFIXES:
        if symbol.endswith(suffix):
            return symbol[: -len(suffix)]
    return symbol


def parse_decimal(value: Any) -> Optional[Decimal]:
    """Parse an API numeric string; ``None`` when it is missing or garbage."""
    if value is None or isinstance(value, bool):
        return None
    try:
        return Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return None


def format_price(price: Number) -> str:
    """
    Format a last price with magnitude-dependent precision.

    - ``>= 100000``: rounded to an integer, thousands-grouped
    - ``100 .. 100000``: two decimals, thousands-grouped
    - ``1 .. 100``: eight characters of digits and point, extra decimals truncated
    - ``< 1``: up to eight decimals with trailing zeros removed
    """
    p = price if isinstance(price, Decimal) else Decimal(str(price))
    if p >= 100000:
        return f"{p.quantize(_UNIT, rounding=ROUND_HALF_UP):,.0f}"
    if p >= 100:
        return f"{p.quantize(_TWO_PLACES, rounding=ROUND_HALF_UP):,.2f}"

    rounded = p.quantize(_EIGHT_PLACES, rounding=ROUND_HALF_UP)
    if p >= 1:
        int_digits = len(str(int(rounded)))
        decimals = max(0, SIGNIFICANT_CHARS - int_digits - 1)
        truncated = rounded.quantize(_UNIT.scaleb(-decimals), rounding=ROUND_DOWN)
        return f"{truncated:,.{decimals}f}"

    text = f"{rounded:.8f}"
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


def classify_trend(price_change: Optional[Decimal]) -> Trend:
    # unparseable or NaN change renders flat
    if price_change is None or price_change.is_nan():
        return Trend.FLAT
    if price_change > 0:
        return Trend.UP
    if price_change < 0:
        return Trend.DOWN
    return Trend.FLAT


def format_change_percent(percent: Decimal) -> str:
    return f"{abs(percent).quantize(_TWO_PLACES, rounding=ROUND_HALF_UP):.2f}%"


def _require_finite(symbol: str, stats: Mapping[str, Any], field: str) -> Decimal:
    value = parse_decimal(stats.get(field))
    if value is None or not value.is_finite():
        raise DataFetchFailure(symbol, f"malformed {field}: {stats.get(field)!r}")
    return value


def build_payload(symbol: str, stats: Mapping[str, Any]) -> DisplayPayload:
    """Derive the badge contents from a 24h statistics response."""
    last_price = _require_finite(symbol, stats, "lastPrice")
    change_percent = _require_finite(symbol, stats, "priceChangePercent")
    trend = classify_trend(parse_decimal(stats.get("priceChange")))
    return DisplayPayload(
        currency_label=currency_label(symbol),
        formatted_price=format_price(last_price),
        trend=trend,
        change_percent_text=format_change_percent(change_percent),
    )
