"""Cart, checkout and catalog core for a form-builder backed storefront."""

from .app import StorefrontApp
from .config import Settings, get_settings, refresh_settings

__all__ = ["StorefrontApp", "Settings", "get_settings", "refresh_settings"]

__version__ = "0.1.0"
