"""
Orders serializers package - modular serializer layer.
"""

# Incoming order payloads
from .request_serializers import (
    OrderLineSerializer,
    DeliveryAddressSerializer,
    OrderRequestSerializer,
)

# Order output
from .order_serializers import (
    OrderItemSerializer,
    OrderSerializer,
    QueueEntrySerializer,
)

# Validation output
from .validation_serializers import (
    ValidationIssueSerializer,
    ItemAvailabilitySerializer,
    ValidationResultSerializer,
)

# Status serializers
from .status_serializers import UpdateOrderStatusSerializer

__all__ = [
    # Requests
    'OrderLineSerializer',
    'DeliveryAddressSerializer',
    'OrderRequestSerializer',
    # Orders
    'OrderItemSerializer',
    'OrderSerializer',
    'QueueEntrySerializer',
    # Validation
    'ValidationIssueSerializer',
    'ItemAvailabilitySerializer',
    'ValidationResultSerializer',
    # Status
    'UpdateOrderStatusSerializer',
]
