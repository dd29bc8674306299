from datetime import datetime
from decimal import Decimal
from typing import Iterable, Optional

from django.utils import timezone

from menu.models import MenuItem
from outlets.services import OperatingHoursService, OutletService
from tenant.managers import tenant_context
from .checks import (
    DeliveryAreaCheck,
    InventoryAvailabilityCheck,
    MinimumOrderCheck,
    PromotionCheck,
    RequestShapeCheck,
    StoreHoursCheck,
)
from .results import OrderRequest, ValidationContext, ValidationResult
import logging

logger = logging.getLogger(__name__)


class ValidationPipeline:
    """
    Runs every order check and accumulates their findings.

    The result is valid only when no check reported an error. An unknown
    outlet is not a validation finding and raises OutletNotFoundError.
    """

    DEFAULT_CHECKS = (
        RequestShapeCheck,
        StoreHoursCheck,
        InventoryAvailabilityCheck,
        PromotionCheck,
        DeliveryAreaCheck,
        MinimumOrderCheck,
    )

    def __init__(self, checks: Optional[Iterable] = None):
        self.checks = [check() for check in (self.DEFAULT_CHECKS if checks is None else checks)]

    def validate(self, tenant, order_request: OrderRequest, now: Optional[datetime] = None) -> ValidationResult:
        outlet = OutletService.get_outlet(tenant, order_request.outlet_id)

        with tenant_context(tenant):
            context = self._build_context(tenant, outlet, order_request, now)
            result = ValidationResult(subtotal=context.subtotal)

            for check in self.checks:
                check.run(context, result)

        if result.is_valid:
            logger.info(
                f"Order request for outlet {outlet.pk} passed validation"
                + (f" with {len(result.warnings)} warning(s)" if result.warnings else "")
            )
        else:
            logger.info(
                f"Order request for outlet {outlet.pk} rejected: "
                + ", ".join(issue.code for issue in result.errors)
            )
        return result

    @staticmethod
    def _build_context(tenant, outlet, order_request: OrderRequest, now: Optional[datetime]) -> ValidationContext:
        now = now or timezone.now()
        hours = OperatingHoursService(outlet)

        scheduled = order_request.scheduled_time
        if scheduled is not None:
            scheduled = hours.localize(scheduled)
        now = hours.localize(now)

        menu_item_ids = {line.menu_item_id for line in order_request.items}
        menu_items = {
            item.pk: item
            for item in MenuItem.objects.filter(pk__in=menu_item_ids, is_active=True).prefetch_related(
                'recipe_lines__ingredient', 'outlets'
            )
        }

        # Prices always come from the catalog
        subtotal = Decimal("0.00")
        for line in order_request.items:
            menu_item = menu_items.get(line.menu_item_id)
            if menu_item is None or line.quantity < 1 or not menu_item.is_offered_at(outlet):
                continue
            subtotal += menu_item.price * line.quantity

        return ValidationContext(
            tenant=tenant,
            outlet=outlet,
            request=order_request,
            now=now,
            target_time=scheduled or now,
            scheduled_time=scheduled,
            menu_items=menu_items,
            subtotal=subtotal,
        )
