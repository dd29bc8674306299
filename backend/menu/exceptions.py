"""
Custom exceptions for the menu catalog.
"""
from core_backend.exceptions import NotFoundError


class MenuItemNotFoundError(NotFoundError):
    """Raised when a menu item id does not belong to the tenant."""

    def __init__(self, menu_item_id, message=None):
        super().__init__('Menu item', menu_item_id, message)
