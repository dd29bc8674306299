"""
Order checks

Each check inspects one business rule and records errors or warnings on the
result. Checks never raise for business conditions and never depend on each
other's outcome, so every failing rule is reported at once.
"""
from abc import ABC, abstractmethod
from collections import OrderedDict
from datetime import timedelta
from decimal import Decimal

from core_backend.config import engine_settings
from inventory.exceptions import InvalidQuantityError
from inventory.services import StockLedger
from menu.models import MenuItemAvailability
from menu.services import MenuCatalogService
from outlets.models import DeliveryZone, OrderType
from outlets.services import OperatingHoursService, OutletService
from promotions.services import PromotionService
from .results import ItemAvailability, ValidationContext, ValidationResult
import logging

logger = logging.getLogger(__name__)


class OrderCheck(ABC):
    """The interface for an order check."""

    name = None

    @abstractmethod
    def run(self, context: ValidationContext, result: ValidationResult) -> None:
        pass

    def error(self, result, code, message, menu_item_id=None):
        result.add_error(self.name, code, message, menu_item_id)

    def warning(self, result, code, message, menu_item_id=None):
        result.add_warning(self.name, code, message, menu_item_id)


class RequestShapeCheck(OrderCheck):
    """Rejects requests that are malformed regardless of outlet state."""

    name = "REQUEST"

    def run(self, context, result):
        request = context.request
        if request.order_type not in OrderType.values:
            self.error(result, "INVALID_ORDER_TYPE", f"Unsupported order type: {request.order_type}")
        if not request.items:
            self.error(result, "EMPTY_ORDER", "Order must contain at least one item")


class StoreHoursCheck(OrderCheck):
    """The outlet must be open at the requested (or current) time."""

    name = "STORE_HOURS"

    def run(self, context, result):
        scheduled = context.scheduled_time
        if scheduled is not None:
            if scheduled < context.now:
                self.error(result, "SCHEDULED_IN_PAST", "Cannot schedule order for past time")
                return

            max_days = engine_settings.MAX_ADVANCE_DAYS
            if scheduled > context.now + timedelta(days=max_days):
                self.error(
                    result,
                    "BEYOND_ADVANCE_WINDOW",
                    f"Orders can only be scheduled up to {max_days} days in advance",
                )
                return

        service = OperatingHoursService(context.outlet)
        if service.is_open(context.target_time):
            return

        local_date = context.target_time.date()
        hours = service.hours_for_date(local_date)
        if hours['is_closed']:
            self.error(result, "OUTLET_CLOSED_TODAY", f"Store is closed on {hours['day_name']}")
        else:
            self.error(
                result,
                "OUTLET_CLOSED",
                f"Store is closed at the requested time. Operating hours: {service.describe_hours(local_date)}",
            )


class InventoryAvailabilityCheck(OrderCheck):
    """
    Every line must be on the outlet's menu and its recipe covered by stock.

    Lines are checked one by one; the order as a whole is checked afterwards
    so two lines that each fit but together do not are still caught.
    """

    name = "INVENTORY"

    def run(self, context, result):
        outlet = context.outlet
        line_requirements = []
        for line in context.request.items:
            menu_item = context.menu_items.get(line.menu_item_id)
            availability = ItemAvailability(
                menu_item_id=line.menu_item_id,
                name=menu_item.name if menu_item else str(line.menu_item_id),
                requested_quantity=line.quantity,
                is_available=True,
            )
            result.item_availability.append(availability)

            if menu_item is None:
                self._reject(result, availability, "UNKNOWN_MENU_ITEM", f"Menu item {line.menu_item_id} not found")
                continue
            if not menu_item.is_offered_at(outlet):
                self._reject(result, availability, "NOT_OFFERED_AT_OUTLET", f"{menu_item.name} is not available at this outlet")
                continue
            if line.quantity < 1:
                self._reject(result, availability, "INVALID_QUANTITY", f"Invalid quantity for {menu_item.name}: {line.quantity}")
                continue

            try:
                requirements = StockLedger.aggregate_requirements(
                    MenuCatalogService.recipe_lines_for(menu_item), line.quantity
                )
            except InvalidQuantityError:
                self._reject(result, availability, "INVALID_QUANTITY", f"Invalid quantity for {menu_item.name}: {line.quantity}")
                continue
            line_requirements.append((menu_item, line, availability, requirements))

        names = {name for _, _, _, requirements in line_requirements for name in requirements}
        checks = StockLedger.check_many(context.tenant, outlet, {name: Decimal("0") for name in names})
        flagged = self._flagged_unavailable(outlet, [menu_item for menu_item, _, _, _ in line_requirements])

        totals = OrderedDict()
        short_names = set()
        low_warned = set()
        for menu_item, line, availability, requirements in line_requirements:
            for name, required in requirements.items():
                totals[name] = totals.get(name, Decimal("0")) + required
                check = checks[name]

                if check.current_stock <= 0:
                    short_names.add(name)
                    self._reject(result, availability, "OUT_OF_STOCK", f"{menu_item.name} is out of stock", menu_item.pk)
                elif check.current_stock < required:
                    short_names.add(name)
                    per_unit = required / line.quantity
                    servings = int(check.current_stock // per_unit)
                    self._reject(
                        result,
                        availability,
                        "INSUFFICIENT_STOCK",
                        f"{menu_item.name}: Only {servings} available, requested {line.quantity}",
                        menu_item.pk,
                    )
                elif check.current_stock - required <= check.minimum_stock and name not in low_warned:
                    low_warned.add(name)
                    self.warning(
                        result,
                        "LOW_STOCK",
                        f"{menu_item.name}: {name} is running low at this outlet",
                        menu_item.pk,
                    )

            if availability.is_available and menu_item.pk in flagged:
                self.warning(
                    result,
                    "ITEM_FLAGGED_UNAVAILABLE",
                    f"{menu_item.name} is currently marked unavailable",
                    menu_item.pk,
                )

        for name, total in totals.items():
            if name in short_names:
                continue
            available = checks[name].current_stock
            if total > available:
                self.error(
                    result,
                    "ORDER_EXCEEDS_STOCK",
                    f"Not enough {name} for the whole order: required {total}, available {available}",
                )

    def _reject(self, result, availability, code, message, menu_item_id=None):
        availability.is_available = False
        availability.messages.append(message)
        self.error(result, code, message, menu_item_id if menu_item_id is not None else availability.menu_item_id)

    @staticmethod
    def _flagged_unavailable(outlet, menu_items):
        if not menu_items:
            return set()
        return set(
            MenuItemAvailability.objects.filter(
                outlet=outlet, menu_item__in=menu_items, is_available=False
            ).values_list('menu_item_id', flat=True)
        )


class PromotionCheck(OrderCheck):
    """A supplied promotion code must exist and be redeemable for this order."""

    name = "PROMOTION"

    def run(self, context, result):
        code = (context.request.promotion_code or "").strip()
        if not code:
            return

        promotion = PromotionService.get_by_code(context.tenant, code)
        if promotion is None:
            self.error(result, "UNKNOWN_PROMOTION", "Invalid promotion code")
            return

        errors = PromotionService.validate_eligibility(
            promotion,
            context.subtotal,
            customer_id=context.request.customer_id,
            at=context.now,
        )
        for error_code, message in errors:
            self.error(result, error_code, message)

        if not errors:
            result.promotion = promotion
            result.discount = promotion.calculate_discount(context.subtotal)


class DeliveryAreaCheck(OrderCheck):
    """Delivery orders need an outlet that delivers and an address it covers."""

    name = "DELIVERY_AREA"

    def run(self, context, result):
        if context.request.order_type != OrderType.DELIVERY:
            return

        zones = OutletService.delivery_zones(context.outlet)
        if not zones:
            self.error(result, "DELIVERY_UNAVAILABLE", "Delivery not available from this outlet")
            return

        address = context.request.delivery_address
        if not address:
            self.error(result, "ADDRESS_REQUIRED", "Delivery address is required for delivery orders")
            return

        if not isinstance(address, dict):
            self.error(result, "INVALID_ADDRESS", "Delivery address is malformed")
            return
        has_coordinates = address.get("latitude") is not None or address.get("longitude") is not None
        if has_coordinates and DeliveryZone.parse_coordinates(address) is None:
            self.error(result, "INVALID_ADDRESS", "Delivery address coordinates are invalid")
            return

        if not any(zone.covers(address) for zone in zones):
            self.error(result, "ADDRESS_OUT_OF_AREA", "Delivery not available to this address")


class MinimumOrderCheck(OrderCheck):
    """The subtotal must reach the outlet's minimum for the order type."""

    name = "MINIMUM_ORDER"

    def run(self, context, result):
        order_type = context.request.order_type
        if order_type not in OrderType.values:
            return

        minimum = OutletService.minimum_order_amount(context.outlet, order_type)
        if context.subtotal < minimum:
            self.error(
                result,
                "BELOW_MINIMUM_ORDER",
                f"Minimum order amount for {OrderType(order_type).label.lower()} orders is {minimum}",
            )
