from decimal import Decimal

from django.core.validators import MinValueValidator
from django.db import models
from django.db.models import F, Q
from django.utils.translation import gettext_lazy as _

from tenant.managers import TenantManager


class Ingredient(models.Model):
    """
    Stable, outlet independent identity of a stock keeping unit.

    Recipes reference ingredients by id; outlets hold stock of them through
    InventoryItem rows.
    """

    tenant = models.ForeignKey(
        'tenant.Tenant',
        on_delete=models.CASCADE,
        related_name='ingredients'
    )
    name = models.CharField(max_length=200)
    unit = models.CharField(
        max_length=20,
        default='piece',
        help_text=_("Unit the stock is counted in (e.g. kg, L, piece).")
    )
    created_at = models.DateTimeField(auto_now_add=True)

    objects = TenantManager()
    all_objects = models.Manager()

    class Meta:
        ordering = ['name']
        constraints = [
            models.UniqueConstraint(
                fields=['tenant', 'name'],
                name='unique_ingredient_name_per_tenant'
            ),
        ]

    def __str__(self):
        return self.name


class InventoryItem(models.Model):
    """
    Tracks the quantity of one ingredient at one outlet.

    Only the StockLedger mutates ``current_stock``.
    """

    tenant = models.ForeignKey(
        'tenant.Tenant',
        on_delete=models.CASCADE,
        related_name='inventory_items'
    )
    outlet = models.ForeignKey(
        'outlets.Outlet',
        on_delete=models.CASCADE,
        related_name='inventory_items'
    )
    ingredient = models.ForeignKey(
        Ingredient,
        on_delete=models.RESTRICT,
        related_name='inventory_items'
    )
    current_stock = models.DecimalField(
        max_digits=12,
        decimal_places=3,
        default=Decimal('0'),
        help_text=_("Quantity of stock on hand."),
    )
    minimum_stock = models.DecimalField(
        max_digits=12,
        decimal_places=3,
        default=Decimal('10'),
        validators=[MinValueValidator(Decimal('0'))],
        help_text=_("At or below this level the item is considered low."),
    )
    maximum_stock = models.DecimalField(
        max_digits=12,
        decimal_places=3,
        null=True,
        blank=True,
        validators=[MinValueValidator(Decimal('0'))],
    )
    unit_cost = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        default=Decimal('0'),
        help_text=_("Cost per unit from the most recent receipt."),
    )
    last_restocked_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = TenantManager()
    all_objects = models.Manager()

    class Meta:
        verbose_name = _("Inventory Item")
        verbose_name_plural = _("Inventory Items")
        ordering = ['outlet', 'ingredient__name']
        constraints = [
            models.UniqueConstraint(
                fields=['outlet', 'ingredient'],
                name='unique_inventory_item_per_outlet'
            ),
            models.CheckConstraint(
                condition=Q(current_stock__gte=0),
                name='inventory_item_stock_non_negative'
            ),
            models.CheckConstraint(
                condition=Q(maximum_stock__isnull=True) | Q(maximum_stock__gte=F('minimum_stock')),
                name='inventory_item_min_lte_max'
            ),
        ]
        indexes = [
            models.Index(fields=['tenant', 'outlet'], name='inv_item_tenant_outlet_idx'),
            models.Index(fields=['tenant', 'current_stock'], name='inv_item_tenant_stock_idx'),
        ]

    def __str__(self):
        return f"{self.ingredient.name} at {self.outlet.name}: {self.current_stock}"

    @property
    def name(self):
        return self.ingredient.name

    @property
    def unit(self):
        return self.ingredient.unit

    @property
    def is_low_stock(self):
        """Returns True if the current quantity is at or below the minimum."""
        return self.current_stock <= self.minimum_stock

    @property
    def is_out_of_stock(self):
        return self.current_stock <= 0


class StockMovement(models.Model):
    """
    Append-only audit trail of every ledger mutation.
    """

    class MovementType(models.TextChoices):
        RECEIPT = 'RECEIPT', _('Stock Received')
        CONSUMPTION = 'CONSUMPTION', _('Recipe Consumption')
        TRANSFER_OUT = 'TRANSFER_OUT', _('Transfer to Outlet')
        TRANSFER_IN = 'TRANSFER_IN', _('Transfer from Outlet')
        ADJUSTMENT = 'ADJUSTMENT', _('Stock Count Adjustment')
        WASTE = 'WASTE', _('Waste')

    tenant = models.ForeignKey(
        'tenant.Tenant',
        on_delete=models.CASCADE,
        related_name='stock_movements'
    )
    outlet = models.ForeignKey(
        'outlets.Outlet',
        on_delete=models.CASCADE,
        related_name='stock_movements'
    )
    inventory_item = models.ForeignKey(
        InventoryItem,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='movements'
    )
    ingredient_name = models.CharField(
        max_length=200,
        help_text=_("Kept so history survives removal of the inventory item")
    )
    movement_type = models.CharField(max_length=20, choices=MovementType.choices)
    quantity_change = models.DecimalField(
        max_digits=12,
        decimal_places=3,
        help_text=_("Change in quantity (positive for additions, negative for removals)")
    )
    previous_quantity = models.DecimalField(max_digits=12, decimal_places=3)
    new_quantity = models.DecimalField(max_digits=12, decimal_places=3)
    unit_cost = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    reference_id = models.CharField(
        max_length=100,
        blank=True,
        help_text=_("Reference linking related movements (receipt batch, order id)")
    )
    reason = models.CharField(max_length=255, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    objects = TenantManager()
    all_objects = models.Manager()

    class Meta:
        verbose_name = _("Stock Movement")
        verbose_name_plural = _("Stock Movements")
        ordering = ['-created_at', '-id']
        indexes = [
            models.Index(fields=['tenant', 'outlet', 'created_at'], name='stock_mov_ten_outlet_time_idx'),
            models.Index(fields=['tenant', 'movement_type'], name='stock_mov_ten_type_idx'),
            models.Index(fields=['tenant', 'reference_id'], name='stock_mov_ten_reference_idx'),
        ]

    def __str__(self):
        return f"{self.movement_type}: {self.ingredient_name} ({self.quantity_change:+.3f})"
