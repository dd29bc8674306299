from rest_framework import serializers


class ValidationIssueSerializer(serializers.Serializer):
    check = serializers.CharField(read_only=True)
    code = serializers.CharField(read_only=True)
    message = serializers.CharField(read_only=True)
    menu_item_id = serializers.IntegerField(read_only=True, allow_null=True)


class ItemAvailabilitySerializer(serializers.Serializer):
    menu_item_id = serializers.IntegerField(read_only=True)
    name = serializers.CharField(read_only=True)
    requested_quantity = serializers.IntegerField(read_only=True)
    is_available = serializers.BooleanField(read_only=True)
    messages = serializers.ListField(child=serializers.CharField(), read_only=True)


class ValidationResultSerializer(serializers.Serializer):
    """Everything a caller needs to show why an order was refused."""

    is_valid = serializers.BooleanField(read_only=True)
    errors = ValidationIssueSerializer(many=True, read_only=True)
    warnings = ValidationIssueSerializer(many=True, read_only=True)
    item_availability = ItemAvailabilitySerializer(many=True, read_only=True)
    subtotal = serializers.DecimalField(max_digits=10, decimal_places=2, read_only=True)
    discount = serializers.DecimalField(max_digits=10, decimal_places=2, read_only=True)
