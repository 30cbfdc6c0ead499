import pytest
from pydantic import ValidationError

from deck_ticker.config import Settings


def test_defaults():
    settings = Settings()
    assert settings.default_symbol == "BTCUSDT"
    assert settings.refresh_interval_sec == 60.0
    assert settings.manual_refresh_cooldown_sec == 60.0
    assert settings.error_title_clear_sec == 3.0
    assert settings.api_base_url == "https://api.binance.com"


def test_env_overrides(monkeypatch):
    monkeypatch.setenv("TICKER_DEFAULT_SYMBOL", "ethusdt")
    monkeypatch.setenv("TICKER_REFRESH_INTERVAL_SEC", "15")
    monkeypatch.setenv("TICKER_API_BASE_URL", "https://example.test/")
    settings = Settings()
    assert settings.default_symbol == "ETHUSDT"
    assert settings.refresh_interval_sec == 15.0
    assert settings.api_base_url == "https://example.test"


@pytest.mark.parametrize(
    "overrides",
    [
        {"refresh_interval_sec": 0},
        {"error_title_clear_sec": -1},
        {"manual_refresh_cooldown_sec": -5},
        {"default_symbol": ""},
    ],
)
def test_invalid_values_rejected(overrides):
    with pytest.raises(ValidationError):
        Settings(**overrides)
