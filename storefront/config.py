from __future__ import annotations

from dataclasses import dataclass, field
import os
from typing import Any

from dotenv import find_dotenv, load_dotenv

DEFAULT_SOURCE_IDS = ("251074098711961", "251074116166956", "251073669442965")


def _load_env() -> None:
    env_path = find_dotenv(usecwd=True)
    if env_path:
        load_dotenv(env_path, override=False)


_load_env()


def _get_env(key: str, default: str | None = None) -> str | None:
    value = os.getenv(key)
    if value is None or value == "":
        return default
    return value


def _get_bool(key: str, default: bool = False) -> bool:
    value = os.getenv(key)
    if value is None:
        return default
    return value.lower() in {"1", "true", "yes", "on"}


def _get_float(key: str, default: float) -> float:
    value = os.getenv(key)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        return default


def _get_list(key: str, default: tuple[str, ...]) -> list[str]:
    value = os.getenv(key)
    if not value:
        return list(default)
    items = [item.strip() for item in value.split(",") if item.strip()]
    return items or list(default)


@dataclass
class Settings:
    api_base_url: str = field(
        default_factory=lambda: _get_env("STOREFRONT_API_BASE_URL", "https://api.jotform.com")
    )
    api_key: str | None = field(default_factory=lambda: _get_env("STOREFRONT_API_KEY"))
    source_ids: list[str] = field(
        default_factory=lambda: _get_list("STOREFRONT_SOURCE_IDS", DEFAULT_SOURCE_IDS)
    )
    order_form_id: str | None = field(default_factory=lambda: _get_env("STOREFRONT_ORDER_FORM_ID"))
    request_timeout_seconds: float = field(
        default_factory=lambda: _get_float("STOREFRONT_REQUEST_TIMEOUT", 12.0)
    )
    shipping_fee: float = field(default_factory=lambda: _get_float("STOREFRONT_SHIPPING_FEE", 4.99))

    environment: str = field(default_factory=lambda: _get_env("STOREFRONT_ENV", "production") or "production")
    dev_order_fallback: bool = field(default_factory=lambda: _get_bool("STOREFRONT_DEV_ORDER_FALLBACK", False))
    synthetic_fallback: bool = field(default_factory=lambda: _get_bool("STOREFRONT_SYNTHETIC_FALLBACK", True))

    confirmation_reset_seconds: float = field(
        default_factory=lambda: _get_float("STOREFRONT_CONFIRMATION_RESET", 3.0)
    )
    verify_submission: bool = field(default_factory=lambda: _get_bool("STOREFRONT_VERIFY_SUBMISSION", False))
    verify_delay_seconds: float = field(default_factory=lambda: _get_float("STOREFRONT_VERIFY_DELAY", 2.0))

    storage_url: str = field(
        default_factory=lambda: _get_env("STOREFRONT_STORAGE_URL", "sqlite:///./storefront.db")
    )

    @property
    def is_production(self) -> bool:
        return self.environment.strip().lower() == "production"

    @property
    def resolved_order_form_id(self) -> str:
        if self.order_form_id:
            return self.order_form_id
        return self.source_ids[0] if self.source_ids else DEFAULT_SOURCE_IDS[0]

    @property
    def allows_dev_order_fallback(self) -> bool:
        return self.dev_order_fallback and not self.is_production


_settings: Settings | None = None
_runtime_overrides: dict[str, Any] = {}


def _apply_runtime_overrides(settings: Settings) -> None:
    if not _runtime_overrides:
        return
    for key, value in _runtime_overrides.items():
        if value is None:
            continue
        if hasattr(settings, key):
            setattr(settings, key, value)


def update_runtime_overrides(overrides: dict[str, Any]) -> None:
    if not overrides:
        return
    for key, value in overrides.items():
        if value is None:
            continue
        _runtime_overrides[key] = value
    if _settings is not None:
        _apply_runtime_overrides(_settings)


def clear_runtime_overrides() -> None:
    _runtime_overrides.clear()


def get_settings() -> Settings:
    global _settings
    if _settings is None:
        _settings = Settings()
    _apply_runtime_overrides(_settings)
    return _settings


def refresh_settings() -> Settings:
    """Rebuild settings from environment variables."""
    global _settings
    _settings = Settings()
    _apply_runtime_overrides(_settings)
    return _settings


__all__ = [
    "DEFAULT_SOURCE_IDS",
    "Settings",
    "get_settings",
    "refresh_settings",
    "update_runtime_overrides",
    "clear_runtime_overrides",
]
