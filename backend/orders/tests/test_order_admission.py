"""
Order Admission Tests

Tests for the validate-then-enqueue entry point and the serializers that
parse incoming payloads and render orders and validation results.
"""

import pytest
from decimal import Decimal

from core_backend.tests.fixtures import order_request, stock_of
from orders.exceptions import ValidationFailedError
from orders.models import Order
from orders.serializers import (
    OrderRequestSerializer,
    OrderSerializer,
    UpdateOrderStatusSerializer,
    ValidationResultSerializer,
)
from orders.services import OrderAdmissionService
from orders.validation import ValidationPipeline
from outlets.models import OrderType
from tenant.managers import tenant_context


@pytest.mark.django_db
class TestOrderAdmission:
    """Test OrderAdmissionService.admit"""

    def test_valid_order_is_admitted(self, tenant_a, outlet_a, stock_a, margherita, lunchtime):
        result = OrderAdmissionService.admit(tenant_a, order_request(outlet_a, (margherita, 2)), now=lunchtime)

        assert result.order.status == Order.OrderStatus.PENDING
        assert result.position == 1
        assert result.estimated_minutes == 20
        assert result.validation.is_valid is True
        assert stock_of(outlet_a, 'Dough') == Decimal('48')

    def test_warnings_are_passed_through(self, tenant_a, outlet_a, stock_a, margherita, lunchtime):
        result = OrderAdmissionService.admit(tenant_a, order_request(outlet_a, (margherita, 46)), now=lunchtime)

        assert result.warnings == ["Margherita: Dough is running low at this outlet"]

    def test_invalid_order_is_refused_without_side_effects(self, tenant_a, outlet_a, stock_a, margherita,
                                                           after_closing):
        with pytest.raises(ValidationFailedError) as exc_info:
            OrderAdmissionService.admit(tenant_a, order_request(outlet_a, (margherita, 1)), now=after_closing)

        assert exc_info.value.result.has_error('OUTLET_CLOSED')
        assert str(exc_info.value).startswith("Order validation failed: Store is closed")
        assert Order.all_objects.count() == 0
        assert stock_of(outlet_a, 'Dough') == Decimal('50')

    def test_custom_pipeline(self, tenant_a, outlet_a, stock_a, margherita, after_closing):
        pipeline = ValidationPipeline(checks=[])

        result = OrderAdmissionService.admit(
            tenant_a, order_request(outlet_a, (margherita, 1)), now=after_closing, pipeline=pipeline
        )

        assert result.order.pk is not None

    def test_tenants_are_isolated(self, tenant_a, tenant_b, outlet_a, outlet_b, stock_a, margherita, burger,
                                  lunchtime):
        OrderAdmissionService.admit(tenant_a, order_request(outlet_a, (margherita, 1)), now=lunchtime)
        OrderAdmissionService.admit(tenant_b, order_request(outlet_b, (burger, 1)), now=lunchtime)

        with tenant_context(tenant_a):
            assert [o.outlet_id for o in Order.objects.all()] == [outlet_a.pk]
        with tenant_context(tenant_b):
            assert [o.outlet_id for o in Order.objects.all()] == [outlet_b.pk]


@pytest.mark.django_db
class TestOrderRequestSerializer:
    """Test parsing of incoming order payloads"""

    def test_valid_payload(self, outlet_a, margherita):
        serializer = OrderRequestSerializer(data={
            'outlet_id': outlet_a.pk,
            'order_type': 'DELIVERY',
            'items': [{'menu_item_id': margherita.pk, 'quantity': 2, 'notes': 'extra crispy'}],
            'promotion_code': 'SAVE10',
            'delivery_address': {'street': '1 Main St', 'postal_code': '10001'},
            'scheduled_time': '2026-03-12T12:30:00Z',
        })

        assert serializer.is_valid(), serializer.errors
        request = serializer.to_order_request()

        assert request.outlet_id == outlet_a.pk
        assert request.order_type == OrderType.DELIVERY
        assert request.items[0].menu_item_id == margherita.pk
        assert request.items[0].quantity == 2
        assert request.delivery_address['postal_code'] == '10001'
        assert request.scheduled_time.hour == 12
        assert request.customer_id is None

    def test_coordinates_are_kept_as_strings(self, outlet_a, margherita):
        serializer = OrderRequestSerializer(data={
            'outlet_id': outlet_a.pk,
            'order_type': 'DELIVERY',
            'items': [{'menu_item_id': margherita.pk}],
            'delivery_address': {'latitude': '40.755000', 'longitude': '-73.985000'},
        })

        assert serializer.is_valid(), serializer.errors
        address = serializer.to_order_request().delivery_address
        assert address == {'latitude': '40.755000', 'longitude': '-73.985000'}

    def test_empty_items_are_rejected(self, outlet_a):
        serializer = OrderRequestSerializer(data={'outlet_id': outlet_a.pk, 'order_type': 'PICKUP', 'items': []})

        assert not serializer.is_valid()
        assert 'items' in serializer.errors

    def test_unknown_order_type_is_rejected(self, outlet_a, margherita):
        serializer = OrderRequestSerializer(data={
            'outlet_id': outlet_a.pk,
            'order_type': 'DINE_IN',
            'items': [{'menu_item_id': margherita.pk}],
        })

        assert not serializer.is_valid()
        assert 'order_type' in serializer.errors

    def test_address_needs_postal_code_or_coordinates(self, outlet_a, margherita):
        serializer = OrderRequestSerializer(data={
            'outlet_id': outlet_a.pk,
            'order_type': 'DELIVERY',
            'items': [{'menu_item_id': margherita.pk}],
            'delivery_address': {'street': '1 Main St', 'latitude': '40.7'},
        })

        assert not serializer.is_valid()
        assert 'delivery_address' in serializer.errors

    def test_payload_to_admitted_order(self, tenant_a, outlet_a, stock_a, margherita, lunchtime):
        serializer = OrderRequestSerializer(data={
            'outlet_id': outlet_a.pk,
            'order_type': 'PICKUP',
            'items': [{'menu_item_id': margherita.pk, 'quantity': 1}],
            'customer_id': 'cust-9',
        })
        assert serializer.is_valid(), serializer.errors

        result = OrderAdmissionService.admit(tenant_a, serializer.to_order_request(), now=lunchtime)

        assert result.order.customer_id == 'cust-9'


@pytest.mark.django_db
class TestOutputSerializers:
    """Test rendering of orders and validation results"""

    def test_order_serializer(self, tenant_a, outlet_a, stock_a, margherita, lunchtime):
        order = OrderAdmissionService.admit(tenant_a, order_request(outlet_a, (margherita, 2)), now=lunchtime).order

        with tenant_context(tenant_a):
            data = OrderSerializer(order).data

        assert data['status'] == 'PENDING'
        assert data['queue_position'] == 1
        assert data['estimated_minutes'] == 20
        assert data['subtotal'] == '24.00'
        assert data['items'][0]['name'] == 'Margherita'
        assert data['items'][0]['quantity'] == 2

    def test_terminal_order_has_no_position(self, tenant_a, outlet_a, stock_a, margherita, lunchtime):
        from orders.services import FulfillmentQueue

        order = OrderAdmissionService.admit(tenant_a, order_request(outlet_a, (margherita, 1)), now=lunchtime).order
        order = FulfillmentQueue.cancel(tenant_a, order.pk)

        with tenant_context(tenant_a):
            data = OrderSerializer(order).data

        assert data['queue_position'] is None
        assert data['estimated_minutes'] is None

    def test_validation_result_serializer(self, tenant_a, outlet_a, stock_a, margherita, after_closing):
        result = ValidationPipeline().validate(tenant_a, order_request(outlet_a, (margherita, 1)), now=after_closing)

        data = ValidationResultSerializer(result).data

        assert data['is_valid'] is False
        assert data['errors'][0]['check'] == 'STORE_HOURS'
        assert data['errors'][0]['code'] == 'OUTLET_CLOSED'
        assert data['item_availability'][0]['is_available'] is True

    def test_reason_only_when_cancelling(self):
        assert UpdateOrderStatusSerializer(data={'status': 'CANCELLED', 'reason': 'Closed early'}).is_valid()
        assert not UpdateOrderStatusSerializer(data={'status': 'CONFIRMED', 'reason': 'Because'}).is_valid()
        assert not UpdateOrderStatusSerializer(data={'status': 'LOST'}).is_valid()
