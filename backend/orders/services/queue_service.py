from dataclasses import dataclass
from decimal import Decimal
from typing import List, Optional

from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import Max
from django.utils import timezone

from core_backend.config import engine_settings
from inventory.exceptions import InsufficientStockError, InvalidQuantityError
from inventory.services import StockLedger
from menu.exceptions import MenuItemNotFoundError
from menu.models import MenuItem
from menu.services import MenuCatalogService
from outlets.services import OutletService
from promotions.exceptions import PromotionUnavailableError
from promotions.services import PromotionService
from tenant.managers import tenant_context
from ..exceptions import (
    IllegalStateTransitionError,
    OrderNotFoundError,
    QueueFullError,
    ValidationFailedError,
)
from ..models import Order, OrderItem
from ..signals import order_admitted, order_status_changed
from ..validation import OrderRequest, ValidationResult
import logging

logger = logging.getLogger(__name__)


@dataclass
class QueueTicket:
    """What the caller gets back for an admitted order."""
    order: Order
    position: int
    estimated_minutes: int


@dataclass
class QueueEntry:
    order: Order
    position: Optional[int]
    estimated_minutes: Optional[int]


class FulfillmentQueue:
    """
    Per-outlet FIFO of admitted orders and their status state machine.

    Queue operations on one outlet are serialised by locking the outlet row;
    different outlets never wait on each other.
    """

    VALID_STATUS_TRANSITIONS = {
        Order.OrderStatus.PENDING: [
            Order.OrderStatus.CONFIRMED,
            Order.OrderStatus.CANCELLED,
        ],
        Order.OrderStatus.CONFIRMED: [
            Order.OrderStatus.PREPARING,
            Order.OrderStatus.CANCELLED,
        ],
        Order.OrderStatus.PREPARING: [
            Order.OrderStatus.READY_FOR_PICKUP,
            Order.OrderStatus.OUT_FOR_DELIVERY,
            Order.OrderStatus.CANCELLED,
        ],
        Order.OrderStatus.READY_FOR_PICKUP: [
            Order.OrderStatus.DELIVERED,
            Order.OrderStatus.CANCELLED,
        ],
        Order.OrderStatus.OUT_FOR_DELIVERY: [
            Order.OrderStatus.DELIVERED,
            Order.OrderStatus.CANCELLED,
        ],
        Order.OrderStatus.DELIVERED: [],
        Order.OrderStatus.CANCELLED: [],
    }

    # Handover statuses that only exist for one order type
    STATUS_ORDER_TYPES = {
        Order.OrderStatus.READY_FOR_PICKUP: Order.OrderType.PICKUP,
        Order.OrderStatus.OUT_FOR_DELIVERY: Order.OrderType.DELIVERY,
    }

    STATUS_TIMESTAMPS = {
        Order.OrderStatus.CONFIRMED: "confirmed_at",
        Order.OrderStatus.PREPARING: "preparing_at",
        Order.OrderStatus.READY_FOR_PICKUP: "ready_at",
        Order.OrderStatus.OUT_FOR_DELIVERY: "ready_at",
        Order.OrderStatus.DELIVERED: "completed_at",
        Order.OrderStatus.CANCELLED: "cancelled_at",
    }

    WAITING_STATUSES = [Order.OrderStatus.PENDING, Order.OrderStatus.CONFIRMED]

    @staticmethod
    def estimate_minutes(position: int) -> int:
        return (
            engine_settings.BASE_PREPARATION_MINUTES
            + max(position - 1, 0) * engine_settings.MINUTES_PER_QUEUED_ORDER
        )

    @staticmethod
    def order_number(outlet, sequence: int, created_at) -> str:
        return f"ONL-{outlet.pk:04d}-{created_at:%Y%m%d}-{sequence:06d}"

    # ------------------------------------------------------------------
    # Admission
    # ------------------------------------------------------------------

    @staticmethod
    def enqueue(tenant, outlet_id, order_request: OrderRequest, customer_id=None) -> QueueTicket:
        """
        Admit an order into the outlet's queue.

        In one transaction: check queue capacity, create the PENDING order,
        deduct the whole order's ingredients in a single ledger call and
        redeem its promotion. Any failure rolls all of it back.

        Raises:
            QueueFullError, InsufficientStockError, ValidationFailedError
            (promotion ran out meanwhile), MenuItemNotFoundError
        """
        customer_id = customer_id if customer_id is not None else order_request.customer_id

        with tenant_context(tenant):
            with transaction.atomic():
                outlet = OutletService.get_outlet(tenant, outlet_id, lock=True)

                max_size = engine_settings.MAX_QUEUE_SIZE
                active = Order.objects.filter(outlet=outlet, status__in=Order.ACTIVE_STATUSES).count()
                if active >= max_size:
                    logger.warning(f"Rejected order for outlet {outlet.pk}: queue full ({active}/{max_size})")
                    raise QueueFullError(outlet, max_size)

                lines = FulfillmentQueue._resolve_lines(outlet, order_request)
                subtotal = sum((menu_item.price * line.quantity for menu_item, line in lines), Decimal("0.00"))

                promotion = None
                discount = Decimal("0.00")
                code = (order_request.promotion_code or "").strip()
                if code:
                    promotion = PromotionService.get_by_code(tenant, code)
                    if promotion is None:
                        raise ValidationFailedError(
                            ValidationResult.single_error("PROMOTION", "UNKNOWN_PROMOTION", "Invalid promotion code")
                        )
                    errors = PromotionService.validate_eligibility(promotion, subtotal, customer_id=customer_id)
                    if errors:
                        error_code, message = errors[0]
                        raise ValidationFailedError(ValidationResult.single_error("PROMOTION", error_code, message))
                    discount = promotion.calculate_discount(subtotal)

                sequence = (
                    Order.objects.filter(outlet=outlet).aggregate(last=Max("queue_sequence"))["last"] or 0
                ) + 1
                created_at = timezone.now()
                order = Order.objects.create(
                    tenant=tenant,
                    outlet=outlet,
                    order_number=FulfillmentQueue.order_number(outlet, sequence, created_at),
                    order_type=order_request.order_type,
                    status=Order.OrderStatus.PENDING,
                    queue_sequence=sequence,
                    customer_id=str(customer_id or ""),
                    delivery_address=order_request.delivery_address,
                    scheduled_time=order_request.scheduled_time,
                    notes=order_request.notes or "",
                    promotion_code=promotion.code if promotion else "",
                    subtotal=subtotal,
                    discount_total=discount,
                    total=subtotal - discount,
                    created_at=created_at,
                )
                OrderItem.objects.bulk_create([
                    OrderItem(
                        tenant=tenant,
                        order=order,
                        menu_item=menu_item,
                        name=menu_item.name,
                        quantity=line.quantity,
                        unit_price=menu_item.price,
                        line_total=menu_item.price * line.quantity,
                        notes=line.notes or "",
                    )
                    for menu_item, line in lines
                ])

                recipe_lines = [
                    recipe_line
                    for menu_item, line in lines
                    for recipe_line in MenuCatalogService.recipe_lines_for(menu_item, line.quantity)
                ]
                if recipe_lines:
                    consumption = StockLedger.consume(
                        tenant, outlet, recipe_lines, multiplier=1, reference_id=order.order_number
                    )
                    if not consumption.success:
                        raise InsufficientStockError(consumption.shortages)
                order.ingredients_consumed = True
                order.save(update_fields=["ingredients_consumed", "updated_at"])

                if promotion is not None:
                    try:
                        PromotionService.redeem(promotion, order, discount, customer_id=customer_id)
                    except PromotionUnavailableError as e:
                        raise ValidationFailedError(
                            ValidationResult.single_error("PROMOTION", e.code, str(e))
                        ) from e

                position = active + 1
                estimated_minutes = FulfillmentQueue.estimate_minutes(position)
                transaction.on_commit(
                    lambda: order_admitted.send(
                        sender=FulfillmentQueue,
                        order=order,
                        position=position,
                        estimated_minutes=estimated_minutes,
                    )
                )

        logger.info(
            f"Admitted order {order.order_number} at outlet {outlet.pk}: "
            f"position {position}, ~{estimated_minutes} min"
        )
        return QueueTicket(order=order, position=position, estimated_minutes=estimated_minutes)

    @staticmethod
    def _resolve_lines(outlet, order_request: OrderRequest):
        if not order_request.items:
            raise InvalidQuantityError("Order must contain at least one item")

        menu_items = {
            item.pk: item
            for item in MenuItem.objects.filter(
                pk__in={line.menu_item_id for line in order_request.items}, is_active=True
            ).prefetch_related("recipe_lines__ingredient", "outlets")
        }

        lines = []
        for line in order_request.items:
            menu_item = menu_items.get(line.menu_item_id)
            if menu_item is None or not menu_item.is_offered_at(outlet):
                raise MenuItemNotFoundError(line.menu_item_id)
            if line.quantity < 1:
                raise InvalidQuantityError(f"Invalid quantity for {menu_item.name}: {line.quantity}")
            lines.append((menu_item, line))
        return lines

    # ------------------------------------------------------------------
    # Queue reads
    # ------------------------------------------------------------------

    @staticmethod
    def position(order: Order) -> Optional[int]:
        """1-based rank among the outlet's active orders, recomputed on every read."""
        if order.is_terminal:
            return None
        return Order.all_objects.filter(
            tenant_id=order.tenant_id,
            outlet_id=order.outlet_id,
            status__in=Order.ACTIVE_STATUSES,
            queue_sequence__lte=order.queue_sequence,
        ).count()

    @staticmethod
    def queue(tenant, outlet_id, status: Optional[str] = None) -> List[QueueEntry]:
        """
        Active orders of an outlet in FIFO order with their positions.

        ``status`` narrows the listing without changing the positions.
        """
        outlet = OutletService.get_outlet(tenant, outlet_id)
        with tenant_context(tenant):
            orders = list(
                Order.objects.filter(outlet=outlet, status__in=Order.ACTIVE_STATUSES)
                .prefetch_related("items")
                .order_by("queue_sequence")
            )

        entries = [
            QueueEntry(order=order, position=position, estimated_minutes=FulfillmentQueue.estimate_minutes(position))
            for position, order in enumerate(orders, start=1)
        ]
        if status is not None:
            entries = [entry for entry in entries if entry.order.status == status]
        return entries

    # ------------------------------------------------------------------
    # State machine
    # ------------------------------------------------------------------

    @staticmethod
    def process_next(tenant, outlet_id) -> Optional[Order]:
        """
        Move the oldest waiting order of an outlet into PREPARING.

        Returns None when nothing is waiting.
        """
        with tenant_context(tenant):
            with transaction.atomic():
                outlet = OutletService.get_outlet(tenant, outlet_id, lock=True)
                order = (
                    Order.objects.select_for_update()
                    .filter(outlet=outlet, status__in=FulfillmentQueue.WAITING_STATUSES)
                    .order_by("queue_sequence")
                    .first()
                )
                if order is None:
                    return None

                if order.status == Order.OrderStatus.PENDING:
                    FulfillmentQueue._apply_transition(order, Order.OrderStatus.CONFIRMED)
                FulfillmentQueue._apply_transition(order, Order.OrderStatus.PREPARING)

        logger.info(f"Outlet {outlet.pk} started preparing order {order.order_number}")
        return order

    @staticmethod
    def transition(tenant, order_id, new_status: str, reason: str = "") -> Order:
        """
        Move an order along the state machine.

        Raises:
            OrderNotFoundError, IllegalStateTransitionError
        """
        with tenant_context(tenant):
            with transaction.atomic():
                try:
                    order = Order.objects.select_for_update().get(pk=order_id)
                except (Order.DoesNotExist, ValidationError, ValueError):
                    raise OrderNotFoundError(order_id)

                FulfillmentQueue._apply_transition(order, new_status, reason)

        return order

    @staticmethod
    def cancel(tenant, order_id, reason: str = "") -> Order:
        """Cancel an order. Consumed ingredients are not returned to stock."""
        return FulfillmentQueue.transition(tenant, order_id, Order.OrderStatus.CANCELLED, reason)

    @staticmethod
    def _apply_transition(order: Order, new_status: str, reason: str = "") -> None:
        old_status = order.status

        if new_status not in FulfillmentQueue.VALID_STATUS_TRANSITIONS.get(old_status, []):
            logger.error(f"Illegal transition for order {order.order_number}: {old_status} -> {new_status}")
            raise IllegalStateTransitionError(order, old_status, new_status)

        required_type = FulfillmentQueue.STATUS_ORDER_TYPES.get(new_status)
        if required_type is not None and order.order_type != required_type:
            logger.error(
                f"Illegal transition for {order.order_type} order {order.order_number}: {old_status} -> {new_status}"
            )
            raise IllegalStateTransitionError(
                order,
                old_status,
                new_status,
                f"Cannot transition {order.order_type} order to {new_status}.",
            )

        if new_status == Order.OrderStatus.DELIVERED and not order.ingredients_consumed:
            logger.error(f"Order {order.order_number} reached delivery without consumed ingredients")
            raise IllegalStateTransitionError(
                order,
                old_status,
                new_status,
                f"Order {order.order_number} cannot be delivered before its ingredients are consumed.",
            )

        order.status = new_status
        update_fields = ["status", "updated_at"]

        timestamp_field = FulfillmentQueue.STATUS_TIMESTAMPS.get(new_status)
        if timestamp_field:
            setattr(order, timestamp_field, timezone.now())
            update_fields.append(timestamp_field)
        if new_status == Order.OrderStatus.CANCELLED:
            order.cancellation_reason = reason or ""
            update_fields.append("cancellation_reason")

        order.save(update_fields=update_fields)
        logger.info(f"Order {order.order_number}: {old_status} -> {new_status}")

        transaction.on_commit(
            lambda: order_status_changed.send(
                sender=FulfillmentQueue,
                order=order,
                old_status=old_status,
                new_status=new_status,
            )
        )
