"""
Tenant Isolation Model Tests - CRITICAL SECURITY TESTS

These tests verify that TenantManager filters every tenant-owned model and
that the engine services never act across tenants.
If ANY of these tests fail, there is a DATA LEAK between tenants.
"""
import pytest
from django.db import IntegrityError, transaction

from core_backend.tests.fixtures import add_stock, order_request
from inventory.models import Ingredient, InventoryItem, StockMovement
from inventory.services import StockLedger
from menu.models import MenuItem, MenuItemAvailability, RecipeLine
from menu.services import AvailabilitySynchronizer
from orders.models import Order, OrderItem
from orders.services import FulfillmentQueue
from outlets.exceptions import OutletNotFoundError
from outlets.models import OperatingHours, Outlet
from promotions.models import Promotion
from tenant.managers import set_current_tenant

# Mark all tests in this module as tenant isolation tests
pytestmark = pytest.mark.tenant_isolation


@pytest.fixture
def populated_tenants(tenant_a, tenant_b, outlet_a, outlet_b, stock_a, margherita, burger, promotion_a):
    """Both tenants with stock, menu, availability and one admitted order each"""
    AvailabilitySynchronizer.recompute_for_outlet(tenant_a, outlet_a.pk)
    AvailabilitySynchronizer.recompute_for_outlet(tenant_b, outlet_b.pk)
    FulfillmentQueue.enqueue(tenant_a, outlet_a.pk, order_request(outlet_a, (margherita, 1)))
    FulfillmentQueue.enqueue(tenant_b, outlet_b.pk, order_request(outlet_b, (burger, 1)))
    return tenant_a, tenant_b


TENANT_MODELS = [
    Outlet,
    OperatingHours,
    Ingredient,
    InventoryItem,
    StockMovement,
    MenuItem,
    RecipeLine,
    MenuItemAvailability,
    Order,
    OrderItem,
]


@pytest.mark.django_db
class TestTenantManagerIsolation:
    """Test that default managers only return the current tenant's rows"""

    @pytest.mark.parametrize('model', TENANT_MODELS, ids=lambda model: model.__name__)
    def test_model_filtered_by_tenant(self, populated_tenants, model):
        """
        CRITICAL: Verify Model.objects only returns current tenant's rows
        """
        tenant_a, tenant_b = populated_tenants

        set_current_tenant(tenant_a)
        rows_a = list(model.objects.all())
        assert rows_a
        assert all(row.tenant_id == tenant_a.pk for row in rows_a)

        set_current_tenant(tenant_b)
        rows_b = list(model.objects.all())
        assert rows_b
        assert all(row.tenant_id == tenant_b.pk for row in rows_b)

        # No tenant context (fail-closed)
        set_current_tenant(None)
        assert model.objects.count() == 0, "TenantManager should return empty queryset without tenant context"

    def test_promotion_filtered_by_tenant(self, tenant_a, tenant_b, promotion_a):
        set_current_tenant(tenant_b)
        assert Promotion.objects.count() == 0

        set_current_tenant(tenant_a)
        assert list(Promotion.objects.all()) == [promotion_a]

    def test_get_by_id_respects_tenant(self, tenant_b, outlet_a):
        set_current_tenant(tenant_b)

        with pytest.raises(Outlet.DoesNotExist):
            Outlet.objects.get(pk=outlet_a.pk)


@pytest.mark.django_db
class TestTenantScopedUniqueness:
    """Test that names and codes are unique per tenant, not globally"""

    def test_same_names_in_different_tenants(self, tenant_a, tenant_b):
        Outlet.all_objects.create(tenant=tenant_a, name='Downtown')
        Outlet.all_objects.create(tenant=tenant_b, name='Downtown')
        Ingredient.all_objects.create(tenant=tenant_a, name='Dough')
        Ingredient.all_objects.create(tenant=tenant_b, name='Dough')

        assert Outlet.all_objects.filter(name='Downtown').count() == 2

    def test_duplicate_outlet_name_in_tenant(self, tenant_a):
        Outlet.all_objects.create(tenant=tenant_a, name='Downtown')

        with pytest.raises(IntegrityError):
            with transaction.atomic():
                Outlet.all_objects.create(tenant=tenant_a, name='Downtown')

    def test_duplicate_promotion_code_in_tenant(self, tenant_a, promotion_a):
        with pytest.raises(IntegrityError):
            with transaction.atomic():
                Promotion.all_objects.create(
                    tenant=tenant_a, code='save10', name='Again',
                    discount_type=Promotion.DiscountType.FIXED_AMOUNT, value=1,
                )

    def test_negative_stock_is_rejected_by_the_database(self, tenant_a, outlet_a):
        item = add_stock(tenant_a, outlet_a, 'Dough', 1)

        with pytest.raises(IntegrityError):
            with transaction.atomic():
                InventoryItem.all_objects.filter(pk=item.pk).update(current_stock=-1)


@pytest.mark.django_db
class TestServiceIsolation:
    """Test that services refuse to touch another tenant's outlets"""

    def test_ledger_reads_are_tenant_scoped(self, tenant_a, tenant_b, outlet_a, outlet_b, stock_a):
        add_stock(tenant_b, outlet_b, 'Flour', 0, minimum_stock=5)

        alerts = StockLedger.low_stock_items(tenant_a)

        assert all(alert.item.tenant_id == tenant_a.pk for alert in alerts)

    def test_ledger_refuses_other_tenants_outlet(self, tenant_a, outlet_b):
        with pytest.raises(OutletNotFoundError):
            StockLedger.receive(tenant_a, outlet_b.pk, [{"name": "Dough", "quantity": 10}])

        assert not InventoryItem.all_objects.filter(outlet=outlet_b).exists()

    def test_queue_refuses_other_tenants_outlet(self, tenant_a, outlet_b, burger):
        with pytest.raises(OutletNotFoundError):
            FulfillmentQueue.enqueue(tenant_a, outlet_b.pk, order_request(outlet_b, (burger, 1)))

        assert not Order.all_objects.exists()
