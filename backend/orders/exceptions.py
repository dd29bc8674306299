"""
Custom exceptions for order admission and the fulfillment queue.
"""
from core_backend.exceptions import NotFoundError, OrderEngineError


class IllegalStateTransitionError(OrderEngineError):
    """Raised when an order is moved along an edge the state machine does not have."""

    def __init__(self, order, from_status, to_status, message=None):
        self.order = order
        self.from_status = from_status
        self.to_status = to_status
        if message is None:
            message = f"Cannot transition order from {from_status} to {to_status}."
        super().__init__(message)


class ValidationFailedError(OrderEngineError):
    """Raised when an order request is rejected; ``result`` lists every reason."""

    def __init__(self, result, message=None):
        self.result = result
        if message is None:
            message = "Order validation failed: " + "; ".join(result.error_messages)
        super().__init__(message)


class QueueFullError(OrderEngineError):
    """Raised when an outlet already holds the maximum number of active orders."""

    def __init__(self, outlet, max_size, message=None):
        self.outlet = outlet
        self.max_size = max_size
        if message is None:
            message = f"Order queue is full for {outlet.name} ({max_size} active orders)"
        super().__init__(message)


class OrderNotFoundError(NotFoundError):
    """Raised when an order id does not belong to the tenant."""

    def __init__(self, order_id, message=None):
        super().__init__('Order', order_id, message)
