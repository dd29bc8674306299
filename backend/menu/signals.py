from django.dispatch import receiver
from core_backend.config import engine_settings
from inventory.signals import stock_changed
import logging

logger = logging.getLogger(__name__)


@receiver(stock_changed)
def schedule_availability_recompute(sender, tenant_id, outlet_id, **kwargs):
    """Recompute an outlet's menu availability whenever its stock changed"""
    if not engine_settings.AUTO_RECOMPUTE_AVAILABILITY:
        return

    # Import here to avoid circular imports
    from .tasks import recompute_outlet_availability

    recompute_outlet_availability.delay(str(tenant_id), outlet_id)
    logger.debug(f"Scheduled availability recompute for outlet {outlet_id} ({kwargs.get('reason')})")
