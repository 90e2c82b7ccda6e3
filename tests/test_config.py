from storefront import config
from storefront.config import DEFAULT_SOURCE_IDS, Settings


def test_defaults(monkeypatch):
    for key in (
        "STOREFRONT_API_BASE_URL",
        "STOREFRONT_SOURCE_IDS",
        "STOREFRONT_ORDER_FORM_ID",
        "STOREFRONT_REQUEST_TIMEOUT",
        "STOREFRONT_SHIPPING_FEE",
        "STOREFRONT_ENV",
        "STOREFRONT_DEV_ORDER_FALLBACK",
    ):
        monkeypatch.delenv(key, raising=False)

    settings = Settings()
    assert settings.api_base_url == "https://api.jotform.com"
    assert settings.source_ids == list(DEFAULT_SOURCE_IDS)
    assert settings.request_timeout_seconds == 12.0
    assert settings.shipping_fee == 4.99
    assert settings.is_production is True
    assert settings.resolved_order_form_id == DEFAULT_SOURCE_IDS[0]
    assert settings.allows_dev_order_fallback is False


def test_refresh_reads_environment(monkeypatch):
    monkeypatch.setenv("STOREFRONT_SOURCE_IDS", " 11, 22 ,,33 ")
    monkeypatch.setenv("STOREFRONT_SHIPPING_FEE", "0")
    monkeypatch.setenv("STOREFRONT_REQUEST_TIMEOUT", "not-a-number")
    monkeypatch.setenv("STOREFRONT_ENV", "development")
    monkeypatch.setenv("STOREFRONT_DEV_ORDER_FALLBACK", "yes")
    monkeypatch.delenv("STOREFRONT_ORDER_FORM_ID", raising=False)
    config.clear_runtime_overrides()

    settings = config.refresh_settings()
    assert settings.source_ids == ["11", "22", "33"]
    assert settings.shipping_fee == 0.0
    assert settings.request_timeout_seconds == 12.0
    assert settings.resolved_order_form_id == "11"
    assert settings.allows_dev_order_fallback is True
    assert config.get_settings() is settings


def test_runtime_overrides_apply_to_current_settings(monkeypatch):
    monkeypatch.setattr(config, "_settings", None)
    try:
        settings = config.get_settings()
        config.update_runtime_overrides({"shipping_fee": 0.0, "api_key": None, "unknown": 1})
        assert settings.shipping_fee == 0.0
        assert not hasattr(settings, "unknown")
        assert config.refresh_settings().shipping_fee == 0.0
    finally:
        config.clear_runtime_overrides()
