"""
Order validation - independent checks run by a single pipeline.

- results: request and result types
- checks: one class per business rule
- pipeline: ValidationPipeline, which runs every check and collects issues
"""
from .results import (
    ItemAvailability,
    OrderLineRequest,
    OrderRequest,
    ValidationContext,
    ValidationIssue,
    ValidationResult,
)
from .checks import (
    OrderCheck,
    RequestShapeCheck,
    StoreHoursCheck,
    InventoryAvailabilityCheck,
    PromotionCheck,
    DeliveryAreaCheck,
    MinimumOrderCheck,
)
from .pipeline import ValidationPipeline

__all__ = [
    'ItemAvailability',
    'OrderLineRequest',
    'OrderRequest',
    'ValidationContext',
    'ValidationIssue',
    'ValidationResult',
    'OrderCheck',
    'RequestShapeCheck',
    'StoreHoursCheck',
    'InventoryAvailabilityCheck',
    'PromotionCheck',
    'DeliveryAreaCheck',
    'MinimumOrderCheck',
    'ValidationPipeline',
]
