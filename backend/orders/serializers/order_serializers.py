from rest_framework import serializers

from orders.models import Order, OrderItem
from orders.services import FulfillmentQueue


class OrderItemSerializer(serializers.ModelSerializer):
    class Meta:
        model = OrderItem
        fields = ["id", "menu_item", "name", "quantity", "unit_price", "line_total", "notes"]
        read_only_fields = fields


class OrderSerializer(serializers.ModelSerializer):
    """Read-only view of an order with its live queue position."""

    items = OrderItemSerializer(many=True, read_only=True)
    status_display = serializers.CharField(source="get_status_display", read_only=True)
    queue_position = serializers.SerializerMethodField()
    estimated_minutes = serializers.SerializerMethodField()

    class Meta:
        model = Order
        fields = [
            "id",
            "order_number",
            "outlet",
            "order_type",
            "status",
            "status_display",
            "queue_position",
            "estimated_minutes",
            "customer_id",
            "delivery_address",
            "scheduled_time",
            "notes",
            "promotion_code",
            "subtotal",
            "discount_total",
            "total",
            "items",
            "created_at",
            "confirmed_at",
            "preparing_at",
            "ready_at",
            "completed_at",
            "cancelled_at",
            "cancellation_reason",
        ]
        read_only_fields = fields

    def get_queue_position(self, obj):
        return FulfillmentQueue.position(obj)

    def get_estimated_minutes(self, obj):
        position = FulfillmentQueue.position(obj)
        return FulfillmentQueue.estimate_minutes(position) if position else None


class QueueEntrySerializer(serializers.Serializer):
    order = OrderSerializer(read_only=True)
    position = serializers.IntegerField(read_only=True)
    estimated_minutes = serializers.IntegerField(read_only=True)
