"""
Custom exceptions for the stock ledger.
"""
from core_backend.exceptions import NotFoundError, OrderEngineError


class InvalidQuantityError(OrderEngineError, ValueError):
    """Raised when a quantity, multiplier or threshold is out of range."""
    pass


class InsufficientStockError(OrderEngineError, ValueError):
    """
    Raised when an order cannot be admitted because stock ran short.

    ``shortages`` carries every short ingredient, not just the first.
    """

    def __init__(self, shortages, message=None):
        self.shortages = list(shortages)
        if message is None:
            details = ", ".join(
                f"{s['name']} (required: {s['required']}, available: {s['available']})"
                for s in self.shortages
            )
            message = f"Insufficient stock for {details}"
        super().__init__(message)


class InventoryItemNotFoundError(NotFoundError):
    """Raised when an outlet holds no stock row for an ingredient name."""

    def __init__(self, name, outlet_id=None, message=None):
        self.outlet_id = outlet_id
        if message is None and outlet_id is not None:
            message = f"Inventory item '{name}' not found at outlet {outlet_id}"
        super().__init__('Inventory item', name, message)
