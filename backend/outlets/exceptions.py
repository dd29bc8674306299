"""
Custom exceptions for outlet lookups.
"""
from core_backend.exceptions import NotFoundError


class OutletNotFoundError(NotFoundError):
    """Raised when an outlet id does not belong to the tenant."""

    def __init__(self, outlet_id, message=None):
        super().__init__('Outlet', outlet_id, message)
