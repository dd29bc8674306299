from django.apps import apps
from django.db.models import ProtectedError
from django.db.models.signals import pre_delete
from django.dispatch import Signal, receiver
from .models import InventoryItem
import logging

logger = logging.getLogger(__name__)

# Sent after commit of every ledger call that changed stock.
# kwargs: tenant_id, outlet_id, ingredient_ids, reason ('receipt' | 'consumption' | 'transfer' | 'adjustment' | 'waste')
stock_changed = Signal()


@receiver(pre_delete, sender=InventoryItem)
def protect_referenced_inventory_item(sender, instance, **kwargs):
    """Block deletion of stock that a recipe still draws from"""
    # Cascades from outlet or tenant removal are not blocked
    origin = kwargs.get('origin')
    if origin is not None and getattr(origin, 'model', type(origin)) is not InventoryItem:
        return

    RecipeLine = apps.get_model('menu', 'RecipeLine')
    referencing = list(
        RecipeLine.all_objects.filter(
            tenant_id=instance.tenant_id,
            ingredient_id=instance.ingredient_id,
        ).select_related('menu_item')
    )
    if referencing:
        menu_items = sorted({line.menu_item.name for line in referencing})
        logger.warning(
            f"Refused to delete inventory item {instance.ingredient.name} at outlet {instance.outlet_id}: "
            f"used by {', '.join(menu_items)}"
        )
        raise ProtectedError(
            f"Cannot delete inventory item '{instance.ingredient.name}': "
            f"referenced by recipes of {', '.join(menu_items)}",
            set(referencing),
        )
