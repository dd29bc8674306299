"""
Shared test fixtures for all backend tests.

This module provides reusable pytest fixtures for common test objects
like tenants, outlets, stock, menu items and promotions, plus a few plain
helpers for building more of them inside a test.
"""
import pytest
import pytz
from datetime import datetime, time
from decimal import Decimal

from inventory.models import Ingredient, InventoryItem
from menu.models import MenuItem, RecipeLine
from orders.validation import OrderLineRequest, OrderRequest
from outlets.models import DeliveryZone, MinimumOrderAmount, OperatingHours, OrderType, Outlet
from promotions.models import Promotion
from tenant.managers import tenant_context
from tenant.models import Tenant


# ============================================================================
# HELPERS
# ============================================================================

def add_stock(tenant, outlet, name, quantity, minimum_stock=Decimal('1'), unit='piece'):
    """Create (or top up) an inventory item without going through the ledger."""
    ingredient, _ = Ingredient.all_objects.get_or_create(tenant=tenant, name=name, defaults={'unit': unit})
    item, created = InventoryItem.all_objects.get_or_create(
        tenant=tenant,
        outlet=outlet,
        ingredient=ingredient,
        defaults={'current_stock': Decimal(str(quantity)), 'minimum_stock': Decimal(str(minimum_stock))},
    )
    if not created:
        item.current_stock = Decimal(str(quantity))
        item.minimum_stock = Decimal(str(minimum_stock))
        item.save()
    return item


def make_menu_item(tenant, name, price, recipe, outlets=()):
    """``recipe`` maps ingredient name to quantity per unit."""
    menu_item = MenuItem.all_objects.create(tenant=tenant, name=name, price=Decimal(str(price)))
    for ingredient_name, per_unit in recipe.items():
        ingredient, _ = Ingredient.all_objects.get_or_create(tenant=tenant, name=ingredient_name)
        RecipeLine.all_objects.create(
            tenant=tenant,
            menu_item=menu_item,
            ingredient=ingredient,
            quantity_per_unit=Decimal(str(per_unit)),
        )
    if outlets:
        with tenant_context(tenant):
            menu_item.outlets.set(outlets)
    return menu_item


def set_hours(outlet, opening, closing, days=range(7), is_closed=False):
    for day in days:
        OperatingHours.all_objects.update_or_create(
            outlet=outlet,
            day_of_week=day,
            defaults={
                'tenant': outlet.tenant,
                'opening_time': opening,
                'closing_time': closing,
                'is_closed': is_closed,
            },
        )


def order_request(outlet, *lines, order_type=OrderType.PICKUP, **kwargs):
    """``lines`` are (menu_item, quantity) pairs."""
    return OrderRequest(
        outlet_id=outlet.pk,
        order_type=order_type,
        items=[OrderLineRequest(menu_item_id=menu_item.pk, quantity=quantity) for menu_item, quantity in lines],
        **kwargs,
    )


def stock_of(outlet, name):
    return InventoryItem.all_objects.get(outlet=outlet, ingredient__name=name).current_stock


# ============================================================================
# TENANT FIXTURES
# ============================================================================

@pytest.fixture
def tenant_a(db):
    """Create test tenant A (Pizza Place)"""
    return Tenant.objects.create(
        name='Pizza Place',
        slug='pizza-place',
        is_active=True
    )


@pytest.fixture
def tenant_b(db):
    """Create test tenant B (Burger Joint)"""
    return Tenant.objects.create(
        name='Burger Joint',
        slug='burger-joint',
        is_active=True
    )


@pytest.fixture
def inactive_tenant(db):
    """Create inactive test tenant"""
    return Tenant.objects.create(
        name='Closed Restaurant',
        slug='closed-restaurant',
        is_active=False
    )


# ============================================================================
# OUTLET FIXTURES
# ============================================================================

@pytest.fixture
def outlet_a(tenant_a):
    """Downtown outlet of tenant A, open 09:00-22:00 every day"""
    outlet = Outlet.all_objects.create(tenant=tenant_a, name='Downtown', timezone='UTC')
    set_hours(outlet, time(9, 0), time(22, 0))
    return outlet


@pytest.fixture
def outlet_a2(tenant_a):
    """Uptown outlet of tenant A, same hours as Downtown"""
    outlet = Outlet.all_objects.create(tenant=tenant_a, name='Uptown', timezone='UTC')
    set_hours(outlet, time(9, 0), time(22, 0))
    return outlet


@pytest.fixture
def outlet_b(tenant_b):
    """Main Street outlet of tenant B"""
    outlet = Outlet.all_objects.create(tenant=tenant_b, name='Main Street', timezone='UTC')
    set_hours(outlet, time(9, 0), time(22, 0))
    return outlet


@pytest.fixture
def delivery_zone_a(outlet_a):
    return DeliveryZone.all_objects.create(
        tenant=outlet_a.tenant,
        outlet=outlet_a,
        name='Center',
        postal_codes=['10001', '10002'],
        center_latitude=Decimal('40.750000'),
        center_longitude=Decimal('-73.990000'),
        radius_km=Decimal('5.00'),
    )


@pytest.fixture
def minimum_delivery_a(outlet_a):
    return MinimumOrderAmount.all_objects.create(
        tenant=outlet_a.tenant,
        outlet=outlet_a,
        order_type=OrderType.DELIVERY,
        minimum_amount=Decimal('15.00'),
    )


# ============================================================================
# TIME FIXTURES
# ============================================================================

@pytest.fixture
def lunchtime():
    """Wednesday 12:00 UTC, inside every fixture outlet's hours"""
    return datetime(2026, 3, 11, 12, 0, tzinfo=pytz.UTC)


@pytest.fixture
def after_closing():
    """Wednesday 23:30 UTC, after every fixture outlet closed"""
    return datetime(2026, 3, 11, 23, 30, tzinfo=pytz.UTC)


# ============================================================================
# STOCK AND MENU FIXTURES
# ============================================================================

@pytest.fixture
def stock_a(outlet_a):
    """Stock at Downtown; every item comfortably above its minimum"""
    tenant = outlet_a.tenant
    return {
        'Dough': add_stock(tenant, outlet_a, 'Dough', 50, minimum_stock=5),
        'Mozzarella': add_stock(tenant, outlet_a, 'Mozzarella', 20, minimum_stock=2, unit='kg'),
        'Tomato Sauce': add_stock(tenant, outlet_a, 'Tomato Sauce', 10, minimum_stock=1, unit='l'),
        'Garlic': add_stock(tenant, outlet_a, 'Garlic', 5, minimum_stock=Decimal('0.5'), unit='kg'),
    }


@pytest.fixture
def margherita(tenant_a):
    return make_menu_item(
        tenant_a,
        'Margherita',
        '12.00',
        {'Dough': 1, 'Mozzarella': '0.2', 'Tomato Sauce': '0.1'},
    )


@pytest.fixture
def garlic_bread(tenant_a):
    return make_menu_item(tenant_a, 'Garlic Bread', '5.00', {'Dough': '0.5', 'Garlic': '0.05'})


@pytest.fixture
def burger(tenant_b, outlet_b):
    add_stock(tenant_b, outlet_b, 'Bun', 30, minimum_stock=3)
    add_stock(tenant_b, outlet_b, 'Patty', 30, minimum_stock=3)
    return make_menu_item(tenant_b, 'Classic Burger', '9.50', {'Bun': 1, 'Patty': 1})


# ============================================================================
# PROMOTION FIXTURES
# ============================================================================

@pytest.fixture
def promotion_a(tenant_a):
    """10% off for tenant A, no limits"""
    return Promotion.all_objects.create(
        tenant=tenant_a,
        code='SAVE10',
        name='Ten percent off',
        discount_type=Promotion.DiscountType.PERCENTAGE,
        value=Decimal('10.00'),
    )


@pytest.fixture
def single_use_promotion_a(tenant_a):
    return Promotion.all_objects.create(
        tenant=tenant_a,
        code='ONCE',
        name='One time five off',
        discount_type=Promotion.DiscountType.FIXED_AMOUNT,
        value=Decimal('5.00'),
        usage_limit=1,
    )
