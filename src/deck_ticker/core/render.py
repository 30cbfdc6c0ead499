"""SVG badge rendering for ticker keys."""
from __future__ import annotations

from urllib.parse import quote
from xml.sax.saxutils import escape

from ..models import DisplayPayload

BADGE_SIZE = 100
SVG_DATA_URL_PREFIX = "data:image/svg+xml,"

_TEMPLATE = """<svg width="{size}" height="{size}" xmlns="http://www.w3.org/2000/svg">
<defs>
<linearGradient id="grad" x1="0" y1="0" x2="0" y2="1">
<stop offset="0%" stop-color="#000000"/>
<stop offset="30%" stop-color="#000000"/>
<stop offset="100%" stop-color="{ticker_color}"/>
</linearGradient>
</defs>
<rect width="{size}" height="{size}" fill="url(#grad)"/>
<text x="6" y="24" font-size="24" font-weight="900" fill="white" font-family="Arial">{label}</text>
<text x="72" y="88" font-size="17" font-weight="900" fill="{arrow_color}" font-family="Arial">{arrow}</text>
<text x="6" y="50" font-size="17" font-weight="700" fill="white" font-family="Arial">{price}</text>
<text x="6" y="88" font-size="17" font-weight="700" fill="{arrow_color}" font-family="Arial">{change}</text>
</svg>"""


def render_svg(payload: DisplayPayload) -> str:
    return _TEMPLATE.format(
        size=BADGE_SIZE,
        ticker_color=payload.ticker_color,
        arrow_color=payload.arrow_color,
        arrow=payload.arrow,
        label=escape(payload.currency_label),
        price=escape(payload.formatted_price),
        change=escape(payload.change_percent_text),
    )


def to_data_url(svg: str) -> str:
    return SVG_DATA_URL_PREFIX + quote(svg, safe="")


def render_badge(payload: DisplayPayload) -> str:
    """Return the payload as a percent-encoded SVG data URL for ``setImage``."""
    return to_data_url(render_svg(payload))
