"""
Centralized access to the order engine settings.

Values come from ``settings.ORDER_ENGINE``; anything missing falls back to
DEFAULTS. The accessor is lazy so importing it never touches settings before
Django is configured.
"""
from decimal import Decimal
from typing import Any, Dict, Optional
from django.conf import settings
from django.core.exceptions import ImproperlyConfigured
import logging

logger = logging.getLogger(__name__)


DEFAULTS: Dict[str, Any] = {
    "MAX_ADVANCE_DAYS": 7,
    "DEFAULT_MINIMUM_STOCK": 10,
    "BASE_PREPARATION_MINUTES": 20,
    "MINUTES_PER_QUEUED_ORDER": 5,
    "MAX_QUEUE_SIZE": 100,
    "AUTO_RECOMPUTE_AVAILABILITY": True,
    "DEFAULT_MINIMUM_ORDER_AMOUNTS": {},
    "OPERATING_HOURS_CACHE_TIMEOUT": 300,
}


class EngineSettings:
    """
    A LAZY singleton over ``settings.ORDER_ENGINE``.

    Attributes are resolved on access, so tests that use ``override_settings``
    see the overridden values without having to reload anything.
    """

    _instance: Optional["EngineSettings"] = None

    def __new__(cls) -> "EngineSettings":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def _user_settings(self) -> Dict[str, Any]:
        value = getattr(settings, "ORDER_ENGINE", {}) or {}
        if not isinstance(value, dict):
            raise ImproperlyConfigured("ORDER_ENGINE must be a dict")
        return value

    def __getattr__(self, name: str) -> Any:
        if name not in DEFAULTS:
            raise AttributeError(f"'EngineSettings' object has no attribute '{name}'")
        return self._user_settings().get(name, DEFAULTS[name])

    def minimum_order_amount(self, order_type: str) -> Decimal:
        """Tenant-wide fallback minimum for an order type (0 when unset)."""
        amounts = self.DEFAULT_MINIMUM_ORDER_AMOUNTS or {}
        return Decimal(str(amounts.get(order_type, "0")))


engine_settings = EngineSettings()
