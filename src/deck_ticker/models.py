"""Display-side data types for ticker badges."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class Trend(str, Enum):
    UP = "up"
    DOWN = "down"
    FLAT = "flat"

    @property
    def arrow(self) -> str:
        return _TREND_STYLES[self][0]

    @property
    def arrow_color(self) -> str:
        return _TREND_STYLES[self][1]

    @property
    def ticker_color(self) -> str:
        """Tint at the bottom of the badge gradient."""
        return _TREND_STYLES[self][2]


# arrow glyph, arrow/text colour, background tint
_TREND_STYLES = {
    Trend.UP: ("▲", "#34C759", "#275C35"),
    Trend.DOWN: ("▼", "#FF3B30", "#650212"),
    Trend.FLAT: ("■", "#5c5c5c", "#4b4b4b"),
}


@dataclass(frozen=True, slots=True)
class DisplayPayload:
    """Render-ready strings for one successful refresh of a key."""

    currency_label: str
    formatted_price: str
    trend: Trend
    change_percent_text: str

    @property
    def arrow(self) -> str:
        return self.trend.arrow

    @property
    def arrow_color(self) -> str:
        return self.trend.arrow_color

    @property
    def ticker_color(self) -> str:
        return self.trend.ticker_color
