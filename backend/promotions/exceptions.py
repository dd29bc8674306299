"""
Custom exceptions for promotion redemption.
"""
from core_backend.exceptions import OrderEngineError


class PromotionUnavailableError(OrderEngineError):
    """Raised when a promotion can no longer be redeemed at admission time."""

    def __init__(self, promotion, code, message=None):
        self.promotion = promotion
        self.code = code
        if message is None:
            message = f"Promotion {promotion.code} can no longer be redeemed"
        super().__init__(message)
