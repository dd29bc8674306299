"""
Menu Availability Tests

Tests for stock driven recompute, operating-hours windows, per-outlet
independence of the flags and the event driven recompute task.
"""

import pytest
from decimal import Decimal

from core_backend.tests.fixtures import add_stock, make_menu_item, set_hours
from inventory.exceptions import InvalidQuantityError
from inventory.services import StockLedger
from menu.exceptions import MenuItemNotFoundError
from menu.models import MenuItemAvailability, RecipeLine
from menu.services import AvailabilitySynchronizer, MenuCatalogService
from menu.tasks import apply_time_windows, recompute_outlet_availability
from outlets.exceptions import OutletNotFoundError


def flag(outlet, menu_item):
    return MenuItemAvailability.all_objects.get(outlet=outlet, menu_item=menu_item)


@pytest.mark.django_db
class TestRecompute:
    """Test AvailabilitySynchronizer.recompute_for_outlet"""

    def test_stocked_items_are_available(self, tenant_a, outlet_a, stock_a, margherita, garlic_bread):
        records = AvailabilitySynchronizer.recompute_for_outlet(tenant_a, outlet_a.pk)

        assert len(records) == 2
        assert all(record.is_available for record in records)

    def test_item_with_low_ingredient_is_disabled(self, tenant_a, outlet_a, stock_a, margherita, garlic_bread):
        """Test that stock at or below minimum disables every item using it"""
        add_stock(tenant_a, outlet_a, 'Garlic', '0.5', minimum_stock='0.5')

        AvailabilitySynchronizer.recompute_for_outlet(tenant_a, outlet_a.pk)

        assert flag(outlet_a, garlic_bread).is_available is False
        assert flag(outlet_a, garlic_bread).blocking_ingredients == ['Garlic']
        assert flag(outlet_a, margherita).is_available is True

    def test_restock_enables_item_again(self, tenant_a, outlet_a, stock_a, garlic_bread):
        add_stock(tenant_a, outlet_a, 'Garlic', 0, minimum_stock='0.5')
        AvailabilitySynchronizer.recompute_for_outlet(tenant_a, outlet_a.pk)
        assert flag(outlet_a, garlic_bread).is_available is False

        StockLedger.receive(tenant_a, outlet_a.pk, [{'name': 'Garlic', 'quantity': 3}])
        AvailabilitySynchronizer.recompute_for_outlet(tenant_a, outlet_a.pk)

        assert flag(outlet_a, garlic_bread).is_available is True
        assert flag(outlet_a, garlic_bread).blocking_ingredients == []

    def test_unstocked_outlet_disables_items(self, tenant_a, outlet_a2, margherita):
        """Test that ingredients never stocked at an outlet count as empty"""
        AvailabilitySynchronizer.recompute_for_outlet(tenant_a, outlet_a2.pk)

        assert flag(outlet_a2, margherita).is_available is False
        assert set(flag(outlet_a2, margherita).blocking_ingredients) == {'Dough', 'Mozzarella', 'Tomato Sauce'}

    def test_outlets_are_independent(self, tenant_a, outlet_a, outlet_a2, stock_a, margherita):
        """Test that recomputing one outlet never writes another outlet's flags"""
        AvailabilitySynchronizer.recompute_for_outlet(tenant_a, outlet_a.pk)
        AvailabilitySynchronizer.recompute_for_outlet(tenant_a, outlet_a2.pk)
        assert flag(outlet_a, margherita).is_available is True
        assert flag(outlet_a2, margherita).is_available is False

        add_stock(tenant_a, outlet_a, 'Dough', 0, minimum_stock=5)
        AvailabilitySynchronizer.recompute_for_outlet(tenant_a, outlet_a.pk)

        assert flag(outlet_a, margherita).is_available is False
        assert MenuItemAvailability.all_objects.filter(outlet=outlet_a2).count() == 1

    def test_item_without_recipe_is_available(self, tenant_a, outlet_a2):
        soda = make_menu_item(tenant_a, 'Soda', '2.00', {})

        AvailabilitySynchronizer.recompute_for_outlet(tenant_a, outlet_a2.pk)

        assert flag(outlet_a2, soda).is_available is True

    def test_items_not_offered_at_outlet_are_skipped(self, tenant_a, outlet_a, outlet_a2, stock_a):
        special = make_menu_item(tenant_a, 'Uptown Special', '15.00', {'Dough': 1}, outlets=[outlet_a2])

        AvailabilitySynchronizer.recompute_for_outlet(tenant_a, outlet_a.pk)

        assert not MenuItemAvailability.all_objects.filter(outlet=outlet_a, menu_item=special).exists()

    def test_other_tenant_cannot_recompute(self, tenant_b, outlet_a):
        with pytest.raises(OutletNotFoundError):
            AvailabilitySynchronizer.recompute_for_outlet(tenant_b, outlet_a.pk)


@pytest.mark.django_db
class TestTimeWindow:
    """Test AvailabilitySynchronizer.apply_time_window"""

    def test_closed_outlet_disables_all_items(self, tenant_a, outlet_a, stock_a, margherita, garlic_bread,
                                              after_closing):
        records = AvailabilitySynchronizer.apply_time_window(tenant_a, outlet_a.pk, at=after_closing)

        assert all(not record.is_available for record in records)
        assert all(record.within_hours is False for record in records)
        assert all(record.inventory_available is True for record in records)

    def test_reopening_restores_stocked_items_only(self, tenant_a, outlet_a, stock_a, margherita, garlic_bread,
                                                   after_closing, lunchtime):
        """Test that opening hours never re-enable an item blocked by stock"""
        add_stock(tenant_a, outlet_a, 'Garlic', 0, minimum_stock='0.5')
        AvailabilitySynchronizer.recompute_for_outlet(tenant_a, outlet_a.pk)
        AvailabilitySynchronizer.apply_time_window(tenant_a, outlet_a.pk, at=after_closing)

        AvailabilitySynchronizer.apply_time_window(tenant_a, outlet_a.pk, at=lunchtime)

        assert flag(outlet_a, margherita).is_available is True
        assert flag(outlet_a, garlic_bread).is_available is False
        assert flag(outlet_a, garlic_bread).within_hours is True

    def test_restock_while_closed_keeps_item_disabled(self, tenant_a, outlet_a, stock_a, garlic_bread,
                                                      after_closing):
        add_stock(tenant_a, outlet_a, 'Garlic', 0, minimum_stock='0.5')
        AvailabilitySynchronizer.apply_time_window(tenant_a, outlet_a.pk, at=after_closing)

        add_stock(tenant_a, outlet_a, 'Garlic', 5, minimum_stock='0.5')
        AvailabilitySynchronizer.recompute_for_outlet(tenant_a, outlet_a.pk)

        record = flag(outlet_a, garlic_bread)
        assert record.inventory_available is True
        assert record.is_available is False

    def test_first_window_pass_also_evaluates_stock(self, tenant_a, outlet_a2, margherita, lunchtime):
        AvailabilitySynchronizer.apply_time_window(tenant_a, outlet_a2.pk, at=lunchtime)

        record = flag(outlet_a2, margherita)
        assert record.within_hours is True
        assert record.inventory_available is False

    def test_time_windows_task_covers_every_active_outlet(self, tenant_a, tenant_b, outlet_a, outlet_b,
                                                          margherita, burger):
        result = apply_time_windows(tenant_id=str(tenant_a.pk))

        assert result == {'status': 'completed', 'outlets': 1}
        assert MenuItemAvailability.all_objects.filter(outlet=outlet_a).exists()
        assert not MenuItemAvailability.all_objects.filter(outlet=outlet_b).exists()


@pytest.mark.django_db
class TestAvailabilityReads:
    """Test availability lookups and outlet summaries"""

    def test_unevaluated_item_reads_as_available(self, tenant_a, outlet_a, margherita):
        assert AvailabilitySynchronizer.is_available(tenant_a, outlet_a.pk, margherita.pk) is True

    def test_is_available_reads_the_flag(self, tenant_a, outlet_a2, margherita):
        AvailabilitySynchronizer.recompute_for_outlet(tenant_a, outlet_a2.pk)

        assert AvailabilitySynchronizer.is_available(tenant_a, outlet_a2.pk, margherita.pk) is False

    def test_outlet_status(self, tenant_a, outlet_a, stock_a, margherita, garlic_bread):
        add_stock(tenant_a, outlet_a, 'Garlic', 0, minimum_stock='0.5')
        AvailabilitySynchronizer.recompute_for_outlet(tenant_a, outlet_a.pk)

        status = AvailabilitySynchronizer.outlet_status(tenant_a, outlet_a.pk)

        assert status['total_items'] == 2
        assert status['available_items'] == 1
        assert status['unavailable_items'] == 1
        assert status['availability_percentage'] == 50.0


@pytest.mark.django_db
class TestRecomputeTask:
    """Test the Celery task and the stock_changed hook"""

    def test_task_returns_counts(self, tenant_a, outlet_a, stock_a, margherita):
        result = recompute_outlet_availability(str(tenant_a.pk), outlet_a.pk)

        assert result['status'] == 'completed'
        assert result['items'] == 1
        assert result['unavailable'] == 0

    def test_task_with_unknown_tenant(self, db):
        result = recompute_outlet_availability('00000000-0000-0000-0000-000000000000', 1)

        assert result['status'] == 'failed'
        assert result['error'] == 'Tenant not found'

    def test_task_with_inactive_tenant(self, inactive_tenant):
        result = recompute_outlet_availability(str(inactive_tenant.pk), 1)

        assert result['status'] == 'failed'

    def test_task_with_unknown_outlet(self, tenant_a):
        result = recompute_outlet_availability(str(tenant_a.pk), 999999)

        assert result == {'status': 'failed', 'error': 'Outlet not found', 'outlet_id': 999999}

    def test_consumption_triggers_recompute(self, tenant_a, outlet_a, stock_a, garlic_bread, auto_recompute,
                                            django_capture_on_commit_callbacks):
        """Test that draining an ingredient disables its items once committed"""
        with django_capture_on_commit_callbacks(execute=True):
            StockLedger.consume(tenant_a, outlet_a.pk, [{'name': 'Garlic', 'quantity_per_unit': '4.5'}])

        assert flag(outlet_a, garlic_bread).is_available is False

    def test_no_recompute_when_disabled(self, tenant_a, outlet_a, stock_a, garlic_bread,
                                        django_capture_on_commit_callbacks):
        with django_capture_on_commit_callbacks(execute=True):
            StockLedger.consume(tenant_a, outlet_a.pk, [{'name': 'Garlic', 'quantity_per_unit': '4.5'}])

        assert not MenuItemAvailability.all_objects.filter(outlet=outlet_a).exists()


@pytest.mark.django_db
class TestRecipes:
    """Test MenuCatalogService.set_recipe"""

    def test_set_recipe_replaces_lines(self, tenant_a, margherita):
        MenuCatalogService.set_recipe(
            tenant_a,
            margherita.pk,
            [
                {'name': 'Dough', 'quantity_per_unit': 1},
                {'name': 'Basil', 'quantity_per_unit': '0.01'},
                {'name': 'Dough', 'quantity_per_unit': '0.5'},
            ],
        )

        lines = {line.ingredient.name: line.quantity_per_unit for line in RecipeLine.all_objects.filter(menu_item=margherita)}
        assert lines == {'Dough': Decimal('1.5'), 'Basil': Decimal('0.01')}

    def test_non_positive_quantity_is_rejected(self, tenant_a, margherita):
        with pytest.raises(InvalidQuantityError):
            MenuCatalogService.set_recipe(tenant_a, margherita.pk, [{'name': 'Dough', 'quantity_per_unit': 0}])

        assert RecipeLine.all_objects.filter(menu_item=margherita).count() == 3

    def test_other_tenants_item_is_not_found(self, tenant_b, margherita):
        with pytest.raises(MenuItemNotFoundError):
            MenuCatalogService.set_recipe(tenant_b, margherita.pk, [])

    def test_recipe_lines_scale_with_quantity(self, tenant_a, margherita):
        menu_item = MenuCatalogService.get_menu_item(tenant_a, margherita.pk)

        lines = {line['name']: line['quantity_per_unit'] for line in MenuCatalogService.recipe_lines_for(menu_item, 3)}

        assert lines['Dough'] == Decimal('3')
        assert lines['Mozzarella'] == Decimal('0.6')
