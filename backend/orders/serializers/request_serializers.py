from rest_framework import serializers

from outlets.models import OrderType
from orders.validation import OrderLineRequest, OrderRequest


class OrderLineSerializer(serializers.Serializer):
    menu_item_id = serializers.IntegerField()
    quantity = serializers.IntegerField(min_value=1, default=1)
    notes = serializers.CharField(required=False, allow_blank=True, default="")


class DeliveryAddressSerializer(serializers.Serializer):
    """
    A delivery address is matched by postal code or by coordinates, so at
    least one of the two must be present.
    """

    street = serializers.CharField(required=False, allow_blank=True, max_length=255)
    city = serializers.CharField(required=False, allow_blank=True, max_length=100)
    postal_code = serializers.CharField(required=False, allow_blank=True, max_length=20)
    latitude = serializers.DecimalField(max_digits=9, decimal_places=6, required=False)
    longitude = serializers.DecimalField(max_digits=9, decimal_places=6, required=False)

    def validate(self, attrs):
        has_postal_code = bool((attrs.get("postal_code") or "").strip())
        has_coordinates = attrs.get("latitude") is not None and attrs.get("longitude") is not None
        if not has_postal_code and not has_coordinates:
            raise serializers.ValidationError(
                "Provide a postal code or both latitude and longitude."
            )
        return attrs


class OrderRequestSerializer(serializers.Serializer):
    """
    Parses an incoming order payload into an OrderRequest.

    Only the shape is checked here; business rules belong to the
    ValidationPipeline.
    """

    outlet_id = serializers.IntegerField()
    order_type = serializers.ChoiceField(choices=OrderType.choices)
    items = OrderLineSerializer(many=True, allow_empty=False)
    scheduled_time = serializers.DateTimeField(required=False, allow_null=True, default=None)
    promotion_code = serializers.CharField(required=False, allow_blank=True, max_length=50, default="")
    customer_id = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=100, default=None)
    delivery_address = DeliveryAddressSerializer(required=False, allow_null=True, default=None)
    notes = serializers.CharField(required=False, allow_blank=True, default="")

    def to_order_request(self) -> OrderRequest:
        data = self.validated_data
        address = data.get("delivery_address")
        if address is not None:
            address = {
                key: (str(value) if key in ("latitude", "longitude") else value)
                for key, value in address.items()
            }
        return OrderRequest(
            outlet_id=data["outlet_id"],
            order_type=data["order_type"],
            items=[
                OrderLineRequest(
                    menu_item_id=line["menu_item_id"],
                    quantity=line["quantity"],
                    notes=line.get("notes", ""),
                )
                for line in data["items"]
            ],
            scheduled_time=data.get("scheduled_time"),
            promotion_code=data.get("promotion_code") or "",
            customer_id=data.get("customer_id") or None,
            delivery_address=address,
            notes=data.get("notes", ""),
        )
