"""
Base exceptions shared by the order engine apps.
"""


class OrderEngineError(Exception):
    """Base exception for order engine errors."""
    pass


class NotFoundError(OrderEngineError):
    """Raised when a referenced record does not exist for the current tenant."""

    def __init__(self, resource, identifier, message=None):
        self.resource = resource
        self.identifier = identifier
        if message is None:
            message = f"{resource} '{identifier}' not found"
        super().__init__(message)
