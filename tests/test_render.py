from urllib.parse import unquote

from deck_ticker.core.render import SVG_DATA_URL_PREFIX, render_badge, render_svg
from deck_ticker.models import DisplayPayload, Trend


def _payload(**overrides):
    values = dict(currency_label="BTC", formatted_price="67,321.45", trend=Trend.UP, change_percent_text="1.19%")
    values.update(overrides)
    return DisplayPayload(**values)


def test_svg_contains_fields_and_trend_colours():
    svg = render_svg(_payload())
    assert svg.startswith("<svg")
    assert ">BTC</text>" in svg
    assert ">67,321.45</text>" in svg
    assert ">1.19%</text>" in svg
    assert "▲" in svg
    assert 'stop-color="#275C35"' in svg
    assert 'fill="#34C759"' in svg


def test_svg_escapes_user_text():
    svg = render_svg(_payload(currency_label="A<B&C"))
    assert "A&lt;B&amp;C" in svg


def test_badge_is_percent_encoded_data_url():
    payload = _payload(trend=Trend.DOWN)
    url = render_badge(payload)
    assert url.startswith(SVG_DATA_URL_PREFIX)
    assert " " not in url
    assert unquote(url[len(SVG_DATA_URL_PREFIX):]) == render_svg(payload)


def test_same_payload_renders_identically():
    assert render_badge(_payload()) == render_badge(_payload())
