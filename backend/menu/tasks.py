from celery import shared_task
from django.db import DatabaseError
import logging

from outlets.exceptions import OutletNotFoundError
from .services import AvailabilitySynchronizer

logger = logging.getLogger(__name__)


@shared_task(bind=True, max_retries=3, default_retry_delay=60)
def recompute_outlet_availability(self, tenant_id, outlet_id):
    """
    Recompute menu availability of one outlet after its stock changed.

    Enqueued by the stock_changed receiver once the ledger transaction has
    committed.

    Returns:
        dict: Status and counts of the recompute
    """
    from tenant.models import Tenant

    try:
        tenant = Tenant.objects.get(pk=tenant_id, is_active=True)
    except Tenant.DoesNotExist:
        logger.error(f"Tenant {tenant_id} not found for availability recompute")
        return {
            "status": "failed",
            "error": "Tenant not found",
            "outlet_id": outlet_id,
        }

    try:
        records = AvailabilitySynchronizer.recompute_for_outlet(tenant, outlet_id)
    except OutletNotFoundError:
        logger.error(f"Outlet {outlet_id} not found for availability recompute")
        return {
            "status": "failed",
            "error": "Outlet not found",
            "outlet_id": outlet_id,
        }
    except DatabaseError as exc:
        logger.error(f"Error recomputing availability for outlet {outlet_id}: {exc}")
        raise self.retry(exc=exc)

    return {
        "status": "completed",
        "outlet_id": outlet_id,
        "items": len(records),
        "unavailable": sum(1 for record in records if not record.is_available),
    }


@shared_task
def apply_time_windows(tenant_id=None):
    """
    Apply operating hours to the menu of every active outlet.

    Meant to be scheduled externally (e.g. celery beat every few minutes);
    the engine itself runs no timers.
    """
    from outlets.models import Outlet

    outlets = Outlet.all_objects.filter(is_active=True, tenant__is_active=True).select_related('tenant')
    if tenant_id is not None:
        outlets = outlets.filter(tenant_id=tenant_id)

    processed = 0
    for outlet in outlets:
        AvailabilitySynchronizer.apply_time_window(outlet.tenant, outlet.pk)
        processed += 1

    logger.info(f"Applied time windows for {processed} outlet(s)")
    return {"status": "completed", "outlets": processed}
