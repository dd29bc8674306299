from django.db.models.signals import post_save, post_delete
from django.dispatch import receiver
from .models import Outlet, OperatingHours
from .services import OperatingHoursService
import logging

logger = logging.getLogger(__name__)


@receiver(post_save, sender=OperatingHours)
@receiver(post_delete, sender=OperatingHours)
def clear_operating_hours_cache(sender, instance, **kwargs):
    """Clear cache when operating hours are updated or deleted"""
    OperatingHoursService.clear_cache(instance.tenant_id, instance.outlet_id)
    logger.debug(f"Cleared operating hours cache for outlet {instance.outlet_id}")


@receiver(post_save, sender=Outlet)
def clear_outlet_hours_cache(sender, instance, created, **kwargs):
    """Timezone changes affect every cached window of the outlet"""
    if not created:
        OperatingHoursService.clear_cache(instance.tenant_id, instance.pk)
