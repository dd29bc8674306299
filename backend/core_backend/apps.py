from django.apps import AppConfig
from django.conf import settings
from django.core.exceptions import ImproperlyConfigured
import logging

logger = logging.getLogger(__name__)


class CoreBackendConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "core_backend"

    def ready(self):
        """
        Check the order engine settings when Django starts up, so a bad
        value fails at boot instead of on the first order.
        """
        from .config import DEFAULTS, engine_settings

        configured = getattr(settings, "ORDER_ENGINE", {}) or {}
        if not isinstance(configured, dict):
            raise ImproperlyConfigured("ORDER_ENGINE must be a dict")

        unknown = sorted(set(configured) - set(DEFAULTS))
        if unknown:
            logger.warning(f"Ignoring unknown ORDER_ENGINE keys: {', '.join(unknown)}")

        for key in ("MAX_QUEUE_SIZE", "MAX_ADVANCE_DAYS"):
            value = getattr(engine_settings, key)
            if not isinstance(value, int) or value < 1:
                raise ImproperlyConfigured(f"ORDER_ENGINE['{key}'] must be a positive integer, got {value!r}")

        logger.debug(
            f"Order engine configured: queue size {engine_settings.MAX_QUEUE_SIZE}, "
            f"advance window {engine_settings.MAX_ADVANCE_DAYS} days"
        )
