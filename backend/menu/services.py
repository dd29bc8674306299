from decimal import Decimal
from typing import Dict, Iterable, List, Optional
from datetime import datetime

from django.db import transaction
from django.db.models import Q

from inventory.exceptions import InvalidQuantityError
from inventory.models import Ingredient
from inventory.services import StockLedger, normalize_name, to_decimal
from outlets.models import Outlet
from outlets.services import OperatingHoursService, OutletService
from tenant.managers import tenant_context
from .exceptions import MenuItemNotFoundError
from .models import MenuItem, MenuItemAvailability, RecipeLine
import logging

logger = logging.getLogger(__name__)


class MenuCatalogService:
    """Read access to the menu catalog plus recipe maintenance."""

    @staticmethod
    def items_for_outlet(outlet: Outlet):
        """
        Active menu items offered at ``outlet``.

        Must be evaluated inside the outlet tenant's context.
        """
        return (
            MenuItem.objects.filter(is_active=True)
            .filter(Q(outlets=outlet) | Q(outlets__isnull=True))
            .distinct()
            .order_by('name')
        )

    @staticmethod
    def get_menu_item(tenant, menu_item_id) -> MenuItem:
        with tenant_context(tenant):
            try:
                return MenuItem.objects.prefetch_related('recipe_lines__ingredient', 'outlets').get(pk=menu_item_id)
            except (MenuItem.DoesNotExist, ValueError, TypeError):
                raise MenuItemNotFoundError(menu_item_id)

    @staticmethod
    @transaction.atomic
    def set_recipe(tenant, menu_item_id, lines: Iterable[dict]) -> List[RecipeLine]:
        """
        Replace the recipe of a menu item.

        Ingredient names are resolved to catalog ingredients here, once;
        unknown names are added to the tenant's ingredient catalog. Repeated
        names are merged.
        """
        menu_item = MenuCatalogService.get_menu_item(tenant, menu_item_id)

        quantities: Dict[str, Decimal] = {}
        for line in lines:
            name = normalize_name(line.get('name'))
            per_unit = to_decimal(line.get('quantity_per_unit'))
            if per_unit <= 0:
                raise InvalidQuantityError(f"Invalid quantity for {name}: {per_unit}")
            quantities[name] = quantities.get(name, Decimal('0')) + per_unit

        with tenant_context(tenant):
            RecipeLine.objects.filter(menu_item=menu_item).delete()
            recipe = []
            for name, per_unit in quantities.items():
                ingredient, _ = Ingredient.objects.get_or_create(tenant=tenant, name=name)
                recipe.append(RecipeLine.objects.create(
                    tenant=tenant,
                    menu_item=menu_item,
                    ingredient=ingredient,
                    quantity_per_unit=per_unit,
                ))

        logger.info(f"Recipe for {menu_item.name} set to {len(recipe)} ingredient(s)")
        return recipe

    @staticmethod
    def recipe_lines_for(menu_item: MenuItem, quantity=1) -> List[dict]:
        """Recipe of ``menu_item`` scaled to ``quantity`` units, as ledger lines."""
        return [
            {
                'name': line.ingredient.name,
                'quantity_per_unit': line.quantity_per_unit * quantity,
            }
            for line in menu_item.recipe_lines.all()
        ]


class AvailabilitySynchronizer:
    """
    Derives per-outlet menu item availability from stock and operating hours.

    Stock and hours are tracked as separate parts of the record, so an item
    that is back inside its window stays disabled while an ingredient is
    still short, and vice versa.
    """

    @staticmethod
    def recompute_for_outlet(tenant, outlet_id) -> List[MenuItemAvailability]:
        """
        Re-evaluate stock based availability of every item offered at an outlet.

        An item is unavailable when any of its ingredients is at or below its
        minimum threshold; ingredients the outlet never stocked count as empty.
        Only this outlet's records are written.
        """
        outlet = OutletService.get_outlet(tenant, outlet_id)

        with tenant_context(tenant):
            menu_items = list(
                MenuCatalogService.items_for_outlet(outlet).prefetch_related('recipe_lines__ingredient')
            )
            blocking = AvailabilitySynchronizer._blocking_ingredients(tenant, outlet, menu_items)

            records = [
                AvailabilitySynchronizer._store(
                    outlet,
                    menu_item,
                    inventory_available=not blocking[menu_item.pk],
                    blocking_ingredients=blocking[menu_item.pk],
                )
                for menu_item in menu_items
            ]

        unavailable = sum(1 for record in records if not record.is_available)
        logger.info(
            f"Recomputed availability for outlet {outlet.pk}: "
            f"{len(records)} item(s), {unavailable} unavailable"
        )
        return records

    @staticmethod
    def apply_time_window(tenant, outlet_id, at: Optional[datetime] = None) -> List[MenuItemAvailability]:
        """
        Disable every item of the outlet outside operating hours and re-enable
        items inside them, unless stock still blocks them.
        """
        outlet = OutletService.get_outlet(tenant, outlet_id)
        within_hours = OperatingHoursService(outlet).is_open(at)

        with tenant_context(tenant):
            menu_items = list(
                MenuCatalogService.items_for_outlet(outlet).prefetch_related('recipe_lines__ingredient')
            )
            existing = {
                record.menu_item_id: record
                for record in MenuItemAvailability.objects.filter(outlet=outlet, menu_item__in=menu_items)
            }

            # Items never evaluated get their stock state on first write
            unevaluated = [item for item in menu_items if item.pk not in existing]
            blocking = AvailabilitySynchronizer._blocking_ingredients(tenant, outlet, unevaluated)

            records = []
            for menu_item in menu_items:
                if menu_item.pk in existing:
                    records.append(AvailabilitySynchronizer._store(outlet, menu_item, within_hours=within_hours))
                else:
                    records.append(AvailabilitySynchronizer._store(
                        outlet,
                        menu_item,
                        inventory_available=not blocking[menu_item.pk],
                        blocking_ingredients=blocking[menu_item.pk],
                        within_hours=within_hours,
                    ))

        logger.info(
            f"Applied time window for outlet {outlet.pk}: "
            f"{'open' if within_hours else 'closed'}, {len(records)} item(s)"
        )
        return records

    @staticmethod
    def is_available(tenant, outlet_id, menu_item_id) -> bool:
        """Current flag of one item; items never evaluated read as available."""
        outlet = OutletService.get_outlet(tenant, outlet_id)
        with tenant_context(tenant):
            record = MenuItemAvailability.objects.filter(outlet=outlet, menu_item_id=menu_item_id).first()
        return record.is_available if record else True

    @staticmethod
    def outlet_status(tenant, outlet_id) -> dict:
        """Summary counts of available and unavailable items at an outlet."""
        outlet = OutletService.get_outlet(tenant, outlet_id)

        with tenant_context(tenant):
            item_ids = list(MenuCatalogService.items_for_outlet(outlet).values_list('pk', flat=True))
            unavailable = MenuItemAvailability.objects.filter(
                outlet=outlet, menu_item_id__in=item_ids, is_available=False
            ).count()

        total = len(item_ids)
        available = total - unavailable
        return {
            'outlet_id': outlet.pk,
            'total_items': total,
            'available_items': available,
            'unavailable_items': unavailable,
            'availability_percentage': round(available / total * 100, 2) if total else 0,
        }

    @staticmethod
    def _blocking_ingredients(tenant, outlet: Outlet, menu_items) -> Dict[int, List[str]]:
        names = {
            line.ingredient.name
            for menu_item in menu_items
            for line in menu_item.recipe_lines.all()
        }
        checks = StockLedger.check_many(tenant, outlet, {name: Decimal('0') for name in names})

        return {
            menu_item.pk: sorted({
                line.ingredient.name
                for line in menu_item.recipe_lines.all()
                if checks[line.ingredient.name].is_low
            })
            for menu_item in menu_items
        }

    @staticmethod
    def _store(outlet: Outlet, menu_item: MenuItem, inventory_available=None, blocking_ingredients=None, within_hours=None) -> MenuItemAvailability:
        """Upsert one record in its own transaction."""
        with transaction.atomic():
            record, created = MenuItemAvailability.objects.select_for_update().get_or_create(
                tenant_id=outlet.tenant_id,
                menu_item=menu_item,
                outlet=outlet,
            )
            if inventory_available is not None:
                record.inventory_available = inventory_available
                record.blocking_ingredients = list(blocking_ingredients or [])
            if within_hours is not None:
                record.within_hours = within_hours

            was_available = record.is_available
            record.refresh_flag()
            record.save()

        if not created and was_available != record.is_available:
            logger.info(
                f"{menu_item.name} at outlet {outlet.pk} is now "
                f"{'available' if record.is_available else 'unavailable'}"
            )
        return record
