import uuid
from decimal import Decimal

from django.db import models
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from outlets.models import OrderType
from tenant.managers import TenantManager


class Order(models.Model):
    """
    An order admitted into an outlet's fulfillment queue.

    Ingredients are consumed when the order is admitted; status changes never
    move stock. The queue position is derived from ``queue_sequence`` on read.
    """

    class OrderStatus(models.TextChoices):
        PENDING = "PENDING", _("Pending")
        CONFIRMED = "CONFIRMED", _("Confirmed")
        PREPARING = "PREPARING", _("Preparing")
        READY_FOR_PICKUP = "READY_FOR_PICKUP", _("Ready for Pickup")
        OUT_FOR_DELIVERY = "OUT_FOR_DELIVERY", _("Out for Delivery")
        DELIVERED = "DELIVERED", _("Delivered")
        CANCELLED = "CANCELLED", _("Cancelled")

    OrderType = OrderType

    ACTIVE_STATUSES = [
        OrderStatus.PENDING,
        OrderStatus.CONFIRMED,
        OrderStatus.PREPARING,
        OrderStatus.READY_FOR_PICKUP,
        OrderStatus.OUT_FOR_DELIVERY,
    ]
    TERMINAL_STATUSES = [OrderStatus.DELIVERED, OrderStatus.CANCELLED]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    tenant = models.ForeignKey(
        'tenant.Tenant',
        on_delete=models.CASCADE,
        related_name='orders'
    )
    outlet = models.ForeignKey(
        'outlets.Outlet',
        on_delete=models.PROTECT,
        related_name='orders'
    )
    order_number = models.CharField(max_length=50)
    order_type = models.CharField(max_length=20, choices=OrderType.choices)
    status = models.CharField(
        max_length=20,
        choices=OrderStatus.choices,
        default=OrderStatus.PENDING,
    )
    queue_sequence = models.PositiveIntegerField(
        help_text=_("Admission order within the outlet; lower is older")
    )

    customer_id = models.CharField(max_length=100, blank=True)
    delivery_address = models.JSONField(null=True, blank=True)
    scheduled_time = models.DateTimeField(null=True, blank=True)
    notes = models.TextField(blank=True)

    # --- Financial Fields ---
    promotion_code = models.CharField(max_length=50, blank=True)
    subtotal = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal("0.00"))
    discount_total = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal("0.00"))
    total = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal("0.00"))

    ingredients_consumed = models.BooleanField(
        default=False,
        help_text=_("Set once the whole recipe of the order has been deducted from stock")
    )

    created_at = models.DateTimeField(default=timezone.now, editable=False)
    updated_at = models.DateTimeField(auto_now=True)
    confirmed_at = models.DateTimeField(null=True, blank=True)
    preparing_at = models.DateTimeField(null=True, blank=True)
    ready_at = models.DateTimeField(null=True, blank=True)
    completed_at = models.DateTimeField(null=True, blank=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)
    cancellation_reason = models.TextField(blank=True)

    objects = TenantManager()
    all_objects = models.Manager()

    class Meta:
        ordering = ["outlet", "queue_sequence"]
        verbose_name = _("Order")
        verbose_name_plural = _("Orders")
        indexes = [
            models.Index(fields=['tenant', 'status'], name='order_tenant_stat_idx'),
            models.Index(fields=['tenant', 'outlet', 'status'], name='order_ten_outlet_stat_idx'),
            models.Index(fields=['tenant', 'created_at'], name='order_tenant_created_idx'),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=["outlet", "queue_sequence"],
                name="unique_queue_sequence_per_outlet",
            ),
            models.UniqueConstraint(
                fields=["tenant", "order_number"],
                name="unique_order_number_per_tenant",
            ),
        ]

    def __str__(self):
        return f"{self.order_number} ({self.get_status_display()})"

    @property
    def is_terminal(self):
        return self.status in self.TERMINAL_STATUSES


class OrderItem(models.Model):
    tenant = models.ForeignKey(
        'tenant.Tenant',
        on_delete=models.CASCADE,
        related_name='order_items'
    )
    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name="items")
    menu_item = models.ForeignKey(
        'menu.MenuItem',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="order_items"
    )
    name = models.CharField(
        max_length=200,
        help_text=_("Menu item name at the time of ordering")
    )
    quantity = models.PositiveIntegerField(default=1)
    unit_price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        help_text=_("Catalog price at the time of ordering")
    )
    line_total = models.DecimalField(max_digits=10, decimal_places=2)
    notes = models.TextField(blank=True)

    objects = TenantManager()
    all_objects = models.Manager()

    class Meta:
        ordering = ["order", "id"]
        indexes = [
            models.Index(fields=['tenant', 'order'], name='order_item_tenant_order_idx'),
        ]

    def __str__(self):
        return f"{self.quantity} of {self.name} in Order {self.order.order_number}"
