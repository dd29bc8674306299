from decimal import Decimal

from django.core.validators import MinValueValidator
from django.db import models
from django.db.models import Q
from django.utils.translation import gettext_lazy as _

from tenant.managers import TenantManager


class MenuItem(models.Model):
    """
    A sellable item of the tenant's catalog.

    An empty ``outlets`` set means the item is offered at every outlet.
    """

    tenant = models.ForeignKey(
        'tenant.Tenant',
        on_delete=models.CASCADE,
        related_name='menu_items'
    )
    name = models.CharField(max_length=200)
    description = models.TextField(blank=True)
    price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal('0'))]
    )
    outlets = models.ManyToManyField(
        'outlets.Outlet',
        blank=True,
        related_name='menu_items',
        help_text=_("Outlets offering this item. Leave empty for all outlets.")
    )
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = TenantManager()
    all_objects = models.Manager()

    class Meta:
        ordering = ['name']
        constraints = [
            models.UniqueConstraint(
                fields=['tenant', 'name'],
                name='unique_menu_item_name_per_tenant'
            ),
        ]
        indexes = [
            models.Index(fields=['tenant', 'is_active'], name='menu_item_tenant_active_idx'),
        ]

    def __str__(self):
        return self.name

    def is_offered_at(self, outlet) -> bool:
        outlet_ids = {o.pk for o in self.outlets.all()}
        return not outlet_ids or outlet.pk in outlet_ids


class RecipeLine(models.Model):
    """
    Quantity of an ingredient consumed per unit of a menu item.

    Bound to the ingredient id, not to its name, when the recipe is edited.
    """

    tenant = models.ForeignKey(
        'tenant.Tenant',
        on_delete=models.CASCADE,
        related_name='recipe_lines'
    )
    menu_item = models.ForeignKey(
        MenuItem,
        on_delete=models.CASCADE,
        related_name='recipe_lines'
    )
    ingredient = models.ForeignKey(
        'inventory.Ingredient',
        on_delete=models.RESTRICT,
        related_name='recipe_lines'
    )
    quantity_per_unit = models.DecimalField(max_digits=12, decimal_places=3)

    objects = TenantManager()
    all_objects = models.Manager()

    class Meta:
        ordering = ['menu_item', 'id']
        constraints = [
            models.UniqueConstraint(
                fields=['menu_item', 'ingredient'],
                name='unique_recipe_line_per_ingredient'
            ),
            models.CheckConstraint(
                condition=Q(quantity_per_unit__gt=0),
                name='recipe_line_quantity_positive'
            ),
        ]

    def __str__(self):
        return f"{self.menu_item.name}: {self.quantity_per_unit} x {self.ingredient.name}"


class MenuItemAvailability(models.Model):
    """
    Per-outlet availability flag of a menu item.

    ``is_available`` is true only while the item is both stocked
    (``inventory_available``) and inside the outlet's operating hours
    (``within_hours``).
    """

    tenant = models.ForeignKey(
        'tenant.Tenant',
        on_delete=models.CASCADE,
        related_name='menu_item_availability'
    )
    menu_item = models.ForeignKey(
        MenuItem,
        on_delete=models.CASCADE,
        related_name='availability'
    )
    outlet = models.ForeignKey(
        'outlets.Outlet',
        on_delete=models.CASCADE,
        related_name='menu_item_availability'
    )
    is_available = models.BooleanField(default=True)
    inventory_available = models.BooleanField(default=True)
    within_hours = models.BooleanField(default=True)
    blocking_ingredients = models.JSONField(
        default=list,
        blank=True,
        help_text=_("Ingredients at or below minimum stock during the last recompute")
    )
    updated_at = models.DateTimeField(auto_now=True)

    objects = TenantManager()
    all_objects = models.Manager()

    class Meta:
        verbose_name_plural = 'Menu item availability'
        constraints = [
            models.UniqueConstraint(
                fields=['menu_item', 'outlet'],
                name='unique_availability_per_outlet'
            ),
        ]
        indexes = [
            models.Index(fields=['tenant', 'outlet', 'is_available'], name='menu_avail_outlet_idx'),
        ]

    def __str__(self):
        state = 'available' if self.is_available else 'unavailable'
        return f"{self.menu_item} at {self.outlet}: {state}"

    def refresh_flag(self):
        self.is_available = self.inventory_available and self.within_hours
