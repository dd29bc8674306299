from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Optional


@dataclass
class OrderLineRequest:
    menu_item_id: int
    quantity: int = 1
    notes: str = ""


@dataclass
class OrderRequest:
    """An incoming order as handed over by a collaborator (web, app, aggregator)."""
    outlet_id: int
    order_type: str
    items: List[OrderLineRequest] = field(default_factory=list)
    scheduled_time: Optional[datetime] = None  # None means as soon as possible
    promotion_code: str = ""
    customer_id: Optional[str] = None
    delivery_address: Optional[dict] = None  # postal_code and/or latitude/longitude
    notes: str = ""


@dataclass
class ValidationIssue:
    check: str  # e.g. "INVENTORY"
    code: str  # e.g. "OUT_OF_STOCK"
    message: str
    menu_item_id: Optional[int] = None


@dataclass
class ItemAvailability:
    """Per-line verdict of the inventory check."""
    menu_item_id: int
    name: str
    requested_quantity: int
    is_available: bool
    messages: List[str] = field(default_factory=list)


@dataclass
class ValidationResult:
    errors: List[ValidationIssue] = field(default_factory=list)
    warnings: List[ValidationIssue] = field(default_factory=list)
    item_availability: List[ItemAvailability] = field(default_factory=list)
    subtotal: Decimal = Decimal("0.00")
    discount: Decimal = Decimal("0.00")
    promotion: Optional[object] = None

    @property
    def is_valid(self) -> bool:
        # Warnings never block admission
        return not self.errors

    @property
    def error_messages(self) -> List[str]:
        return [issue.message for issue in self.errors]

    @property
    def warning_messages(self) -> List[str]:
        return [issue.message for issue in self.warnings]

    def has_error(self, code: str) -> bool:
        return any(issue.code == code for issue in self.errors)

    def has_warning(self, code: str) -> bool:
        return any(issue.code == code for issue in self.warnings)

    def add_error(self, check, code, message, menu_item_id=None):
        self.errors.append(ValidationIssue(check, code, message, menu_item_id))

    def add_warning(self, check, code, message, menu_item_id=None):
        self.warnings.append(ValidationIssue(check, code, message, menu_item_id))

    @classmethod
    def single_error(cls, check, code, message):
        result = cls()
        result.add_error(check, code, message)
        return result


@dataclass
class ValidationContext:
    """Everything the checks read, resolved once per validation."""
    tenant: object
    outlet: object
    request: OrderRequest
    now: datetime
    target_time: datetime  # scheduled time or now, in the outlet's timezone
    scheduled_time: Optional[datetime]
    menu_items: Dict[int, object] = field(default_factory=dict)
    subtotal: Decimal = Decimal("0.00")
