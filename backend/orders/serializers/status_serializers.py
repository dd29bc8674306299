from rest_framework import serializers

from orders.models import Order


class UpdateOrderStatusSerializer(serializers.Serializer):
    """
    Serializer for a requested status change.

    Whether the transition is legal is decided by FulfillmentQueue; this only
    checks that the target is a known status.
    """

    status = serializers.ChoiceField(choices=Order.OrderStatus.choices)
    reason = serializers.CharField(required=False, allow_blank=True, default="")

    def validate(self, attrs):
        if attrs.get("reason") and attrs["status"] != Order.OrderStatus.CANCELLED:
            raise serializers.ValidationError({"reason": "A reason can only be given when cancelling."})
        return attrs
