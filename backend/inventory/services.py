import uuid
from collections import OrderedDict
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Dict, Iterable, List, Optional

from django.db import DataError, transaction
from django.db.models import F, Sum
from django.utils import timezone

from core_backend.config import engine_settings
from outlets.models import Outlet
from outlets.services import OutletService
from tenant.managers import tenant_context
from .events import StockEventPublisher
from .exceptions import InsufficientStockError, InvalidQuantityError, InventoryItemNotFoundError
from .models import Ingredient, InventoryItem, StockMovement
import logging

logger = logging.getLogger(__name__)

STOCK_FIELD = InventoryItem._meta.get_field("current_stock")
COST_FIELD = InventoryItem._meta.get_field("unit_cost")


def to_decimal(value, label: str = "quantity") -> Decimal:
    """Coerce a numeric input to Decimal, rejecting anything non-finite."""
    if isinstance(value, bool) or value is None:
        raise InvalidQuantityError(f"Invalid {label} format: {value}")
    try:
        result = Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        raise InvalidQuantityError(f"Invalid {label} format: {value}")
    if not result.is_finite():
        raise InvalidQuantityError(f"Invalid {label} format: {value}")
    return result


def check_fits(value: Decimal, model_field, label: str = "quantity") -> Decimal:
    """Reject a value ``model_field`` cannot store exactly."""
    places = model_field.decimal_places
    limit = Decimal(10) ** (model_field.max_digits - places)
    if abs(value) >= limit:
        raise InvalidQuantityError(f"Invalid {label}: {value} is out of range")
    if value != value.quantize(Decimal(1).scaleb(-places)):
        raise InvalidQuantityError(f"Invalid {label}: {value} has more than {places} decimal places")
    return value


def normalize_name(name) -> str:
    """Ingredient names match exactly after surrounding whitespace is stripped."""
    if not isinstance(name, str) or not name.strip():
        raise InvalidQuantityError(f"Invalid ingredient name: {name!r}")
    return name.strip()


@dataclass
class ReceiptResult:
    """Outcome of a receipt batch; failed lines never abort their siblings."""
    processed: List[dict] = field(default_factory=list)
    errors: List[dict] = field(default_factory=list)  # {name, error}
    total_value: Decimal = Decimal("0")

    @property
    def success(self) -> bool:
        return not self.errors


@dataclass
class StockCheck:
    """Read-only view of one ingredient against a required quantity."""
    name: str
    required: Decimal
    current_stock: Decimal
    minimum_stock: Decimal
    exists: bool = True

    @property
    def available(self) -> bool:
        return self.current_stock >= self.required

    @property
    def shortage(self) -> Decimal:
        return max(Decimal("0"), self.required - self.current_stock)

    @property
    def is_low(self) -> bool:
        return self.current_stock <= self.minimum_stock

    @property
    def is_out_of_stock(self) -> bool:
        return self.current_stock <= 0


@dataclass
class ConsumptionResult:
    success: bool
    consumed: List[dict] = field(default_factory=list)  # {name, quantity, previous_stock, new_stock}
    shortages: List[dict] = field(default_factory=list)  # {name, required, available, shortage}


@dataclass
class TransferResult:
    name: str
    quantity: Decimal
    reference_id: str
    source_stock: Decimal
    destination_stock: Decimal
    destination_created: bool = False


@dataclass
class AdjustmentResult:
    """Outcome of a count adjustment or waste write-off."""
    name: str
    previous_stock: Decimal
    new_stock: Decimal
    movement: Optional[StockMovement] = None

    @property
    def quantity_change(self) -> Decimal:
        return self.new_stock - self.previous_stock


@dataclass
class LowStockAlert:
    CRITICAL = "CRITICAL"
    WARNING = "WARNING"

    item: InventoryItem
    severity: str
    stock_ratio: Decimal

    @property
    def name(self) -> str:
        return self.item.ingredient.name

    @property
    def outlet_id(self):
        return self.item.outlet_id

    @property
    def current_stock(self) -> Decimal:
        return self.item.current_stock

    @property
    def minimum_stock(self) -> Decimal:
        return self.item.minimum_stock


class _StockRaceLost(Exception):
    """A conditional decrement matched no row; the transaction must roll back."""

    def __init__(self, name):
        self.name = name
        super().__init__(name)


class StockLedger:
    """
    Per-outlet stock ledger.

    Every operation takes the tenant explicitly and runs inside that tenant's
    context, so TenantManager querysets can never see another tenant's rows.
    Stock changes through receipts, consumption, transfers between outlets,
    count adjustments and waste; each change appends a StockMovement.
    """

    @staticmethod
    def _resolve_outlet(tenant, outlet) -> Outlet:
        if isinstance(outlet, Outlet) and outlet.tenant_id == tenant.pk:
            return outlet
        outlet_id = outlet.pk if isinstance(outlet, Outlet) else outlet
        return OutletService.get_outlet(tenant, outlet_id)

    @staticmethod
    def _log_movement(
        item: InventoryItem,
        movement_type: str,
        quantity_change: Decimal,
        previous_quantity: Decimal,
        new_quantity: Decimal,
        unit_cost: Optional[Decimal] = None,
        reference_id: str = "",
        reason: str = "",
    ) -> StockMovement:
        """
        Helper method to append a movement to the audit trail.
        """
        return StockMovement.objects.create(
            tenant_id=item.tenant_id,
            outlet_id=item.outlet_id,
            inventory_item=item,
            ingredient_name=item.ingredient.name,
            movement_type=movement_type,
            quantity_change=quantity_change,
            previous_quantity=previous_quantity,
            new_quantity=new_quantity,
            unit_cost=unit_cost,
            reference_id=str(reference_id or ""),
            reason=str(reason or "")[:255],
        )

    # ------------------------------------------------------------------
    # Receipts
    # ------------------------------------------------------------------

    @staticmethod
    def receive(tenant, outlet_id, items: Iterable[dict], reference_id: str = "") -> ReceiptResult:
        """
        Add stock for a batch of received lines.

        Each line is applied in its own savepoint: a bad line is reported in
        ``errors`` and the remaining lines are still applied. Unknown
        ingredients are created on first receipt.

        Args:
            items: dicts with ``name``, ``quantity`` and optional ``unit_cost``/``unit``
        """
        outlet = StockLedger._resolve_outlet(tenant, outlet_id)
        result = ReceiptResult()
        changed_ingredients = []

        with tenant_context(tenant):
            for line in items:
                line = line or {}
                display_name = str(line.get("name", "")).strip() or "<unnamed>"
                try:
                    with transaction.atomic():
                        processed = StockLedger._receive_line(tenant, outlet, line, reference_id)
                except InvalidQuantityError as e:
                    logger.warning(f"Rejected receipt line for {display_name} at outlet {outlet.pk}: {e}")
                    result.errors.append({"name": display_name, "error": str(e)})
                    continue
                except DataError as e:
                    logger.error(f"Database rejected receipt line for {display_name} at outlet {outlet.pk}: {e}")
                    result.errors.append({"name": display_name, "error": f"Invalid value for {display_name}"})
                    continue

                changed_ingredients.append(processed.pop("ingredient_id"))
                result.processed.append(processed)
                result.total_value += processed["quantity"] * processed["unit_cost"]

        if changed_ingredients:
            StockEventPublisher.stock_changed(tenant.pk, outlet.pk, changed_ingredients, reason="receipt")

        logger.info(
            f"Received stock at outlet {outlet.pk}: {len(result.processed)} line(s) processed, "
            f"{len(result.errors)} rejected"
        )
        return result

    @staticmethod
    def _receive_line(tenant, outlet: Outlet, line: dict, reference_id: str) -> dict:
        name = normalize_name(line.get("name"))
        quantity = to_decimal(line.get("quantity"))
        if quantity <= 0:
            raise InvalidQuantityError(f"Invalid quantity for {name}: {quantity}")
        check_fits(quantity, STOCK_FIELD, f"quantity for {name}")

        unit_cost = line.get("unit_cost")
        if unit_cost is not None:
            unit_cost = to_decimal(unit_cost, "unit cost")
            if unit_cost < 0:
                raise InvalidQuantityError(f"Invalid unit cost for {name}: {unit_cost}")
            check_fits(unit_cost, COST_FIELD, f"unit cost for {name}")

        ingredient, _ = Ingredient.objects.get_or_create(
            tenant=tenant,
            name=name,
            defaults={"unit": line.get("unit") or "piece"},
        )
        item, created = InventoryItem.objects.get_or_create(
            tenant=tenant,
            outlet=outlet,
            ingredient=ingredient,
            defaults={
                "minimum_stock": Decimal(str(engine_settings.DEFAULT_MINIMUM_STOCK)),
                "unit_cost": unit_cost if unit_cost is not None else Decimal("0"),
            },
        )
        if created:
            logger.info(f"Created inventory item {name} at outlet {outlet.pk}")

        # Lock so previous/new quantities in the audit trail are exact
        item = InventoryItem.objects.select_for_update().select_related("ingredient").get(pk=item.pk)
        previous_quantity = item.current_stock
        check_fits(previous_quantity + quantity, STOCK_FIELD, f"resulting stock for {name}")

        now = timezone.now()
        updates = {
            "current_stock": F("current_stock") + quantity,
            "last_restocked_at": now,
            "updated_at": now,
        }
        if unit_cost is not None:
            updates["unit_cost"] = unit_cost
        InventoryItem.objects.filter(pk=item.pk).update(**updates)
        item.refresh_from_db()

        StockLedger._log_movement(
            item,
            StockMovement.MovementType.RECEIPT,
            quantity_change=quantity,
            previous_quantity=previous_quantity,
            new_quantity=item.current_stock,
            unit_cost=item.unit_cost,
            reference_id=reference_id,
        )

        return {
            "name": name,
            "ingredient_id": ingredient.pk,
            "quantity": quantity,
            "unit_cost": item.unit_cost,
            "previous_stock": previous_quantity,
            "new_stock": item.current_stock,
            "created": created,
        }

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    @staticmethod
    def check_availability(tenant, outlet_id, name: str, required_quantity) -> StockCheck:
        """
        Compare current stock of ``name`` with ``required_quantity``.

        Pure read; an ingredient the outlet has never stocked reads as 0.
        """
        outlet = StockLedger._resolve_outlet(tenant, outlet_id)
        name = normalize_name(name)
        required = to_decimal(required_quantity)
        if required < 0:
            raise InvalidQuantityError(f"Invalid quantity for {name}: {required}")
        return StockLedger.check_many(tenant, outlet, {name: required})[name]

    @staticmethod
    def check_many(tenant, outlet_id, requirements: Dict[str, Decimal]) -> Dict[str, StockCheck]:
        """Bulk form of check_availability, one query for all names."""
        outlet = StockLedger._resolve_outlet(tenant, outlet_id)
        with tenant_context(tenant):
            items = {
                item.ingredient.name: item
                for item in InventoryItem.objects.select_related("ingredient").filter(
                    outlet=outlet, ingredient__name__in=list(requirements)
                )
            }

        checks = {}
        for name, required in requirements.items():
            item = items.get(name)
            checks[name] = StockCheck(
                name=name,
                required=Decimal(required),
                current_stock=item.current_stock if item else Decimal("0"),
                minimum_stock=item.minimum_stock if item else Decimal("0"),
                exists=item is not None,
            )
        return checks

    @staticmethod
    def low_stock_items(tenant, outlet_id=None) -> List[LowStockAlert]:
        """
        Items at or below their minimum, most urgent first.

        CRITICAL when empty, WARNING otherwise. Without ``outlet_id`` every
        outlet of the tenant is scanned.
        """
        outlet = StockLedger._resolve_outlet(tenant, outlet_id) if outlet_id is not None else None

        with tenant_context(tenant):
            queryset = InventoryItem.objects.select_related("ingredient", "outlet").filter(
                current_stock__lte=F("minimum_stock")
            )
            if outlet is not None:
                queryset = queryset.filter(outlet=outlet)
            items = list(queryset)

        alerts = []
        for item in items:
            severity = LowStockAlert.CRITICAL if item.current_stock <= 0 else LowStockAlert.WARNING
            ratio = item.current_stock / item.minimum_stock if item.minimum_stock > 0 else Decimal("0")
            alerts.append(LowStockAlert(item=item, severity=severity, stock_ratio=ratio))

        alerts.sort(key=lambda alert: (alert.stock_ratio, alert.name, alert.outlet_id))
        return alerts

    # ------------------------------------------------------------------
    # Consumption
    # ------------------------------------------------------------------

    @staticmethod
    def aggregate_requirements(recipe_lines: Iterable[dict], multiplier=1) -> "OrderedDict[str, Decimal]":
        """
        Sum ``quantity_per_unit * multiplier`` per ingredient name.

        Raises InvalidQuantityError for a non-positive multiplier or line, or
        for a total the stock column cannot represent exactly.
        """
        multiplier = to_decimal(multiplier, "multiplier")
        if multiplier <= 0:
            raise InvalidQuantityError(f"Invalid multiplier: {multiplier}")

        requirements = OrderedDict()
        for line in recipe_lines:
            name = normalize_name(line.get("name"))
            per_unit = to_decimal(line.get("quantity_per_unit"))
            if per_unit <= 0:
                raise InvalidQuantityError(f"Invalid quantity for {name}: {per_unit}")
            requirements[name] = requirements.get(name, Decimal("0")) + per_unit * multiplier

        for name, required in requirements.items():
            check_fits(required, STOCK_FIELD, f"required quantity for {name}")
        return requirements

    @staticmethod
    def consume(tenant, outlet_id, recipe_lines: Iterable[dict], multiplier=1, reference_id: str = "") -> ConsumptionResult:
        """
        Deduct every recipe line or nothing at all.

        Rows are locked in primary key order and every shortage is collected
        before anything is written, so a failure reports all short
        ingredients. Each decrement is conditional on enough stock remaining;
        if one matches no row the transaction rolls back and the shortage
        report is rebuilt from fresh reads. Shortage is a normal outcome and is
        returned, not raised.
        """
        requirements = StockLedger.aggregate_requirements(recipe_lines, multiplier)
        outlet = StockLedger._resolve_outlet(tenant, outlet_id)

        if not requirements:
            return ConsumptionResult(success=True)

        with tenant_context(tenant):
            try:
                with transaction.atomic():
                    result = StockLedger._consume_locked(outlet, requirements, reference_id)
            except _StockRaceLost as race:
                logger.warning(
                    f"Concurrent update drained {race.name} at outlet {outlet.pk}; consumption rolled back"
                )
                shortages = StockLedger._shortages(tenant, outlet, requirements)
                if not shortages:
                    check = StockLedger.check_many(tenant, outlet, {race.name: requirements[race.name]})[race.name]
                    shortages = [StockLedger._shortage_entry(check)]
                return ConsumptionResult(success=False, shortages=shortages)

        if result.success:
            logger.info(
                f"Consumed {len(result.consumed)} ingredient(s) at outlet {outlet.pk}"
                + (f" for {reference_id}" if reference_id else "")
            )
        return result

    @staticmethod
    def _consume_locked(outlet: Outlet, requirements, reference_id: str) -> ConsumptionResult:
        items = {
            item.ingredient.name: item
            for item in InventoryItem.objects.select_for_update(of=("self",))
            .select_related("ingredient")
            .filter(outlet=outlet, ingredient__name__in=list(requirements))
            .order_by("pk")
        }

        shortages = []
        for name, required in requirements.items():
            item = items.get(name)
            available = item.current_stock if item else Decimal("0")
            if available < required:
                shortages.append({
                    "name": name,
                    "required": required,
                    "available": available,
                    "shortage": required - available,
                })

        if shortages:
            logger.warning(
                f"Insufficient stock at outlet {outlet.pk}: "
                + ", ".join(f"{s['name']} (required: {s['required']}, available: {s['available']})" for s in shortages)
            )
            return ConsumptionResult(success=False, shortages=shortages)

        now = timezone.now()
        consumed = []
        for name, required in requirements.items():
            item = items[name]
            updated = InventoryItem.objects.filter(pk=item.pk, current_stock__gte=required).update(
                current_stock=F("current_stock") - required,
                updated_at=now,
            )
            if updated != 1:
                raise _StockRaceLost(name)

            previous_quantity = item.current_stock
            new_quantity = previous_quantity - required
            StockLedger._log_movement(
                item,
                StockMovement.MovementType.CONSUMPTION,
                quantity_change=-required,
                previous_quantity=previous_quantity,
                new_quantity=new_quantity,
                reference_id=reference_id,
            )
            consumed.append({
                "name": name,
                "quantity": required,
                "previous_stock": previous_quantity,
                "new_stock": new_quantity,
            })

        StockEventPublisher.stock_changed(
            outlet.tenant_id,
            outlet.pk,
            [items[name].ingredient_id for name in requirements],
            reason="consumption",
        )
        return ConsumptionResult(success=True, consumed=consumed)

    @staticmethod
    def _shortage_entry(check: StockCheck) -> dict:
        return {
            "name": check.name,
            "required": check.required,
            "available": check.current_stock,
            "shortage": check.shortage,
        }

    @staticmethod
    def _shortages(tenant, outlet: Outlet, requirements) -> List[dict]:
        checks = StockLedger.check_many(tenant, outlet, requirements)
        return [StockLedger._shortage_entry(check) for check in checks.values() if not check.available]

    # ------------------------------------------------------------------
    # Transfers and corrections
    # ------------------------------------------------------------------

    @staticmethod
    def _locked_item(outlet: Outlet, name: str) -> InventoryItem:
        try:
            return InventoryItem.objects.select_for_update(of=("self",)).select_related("ingredient").get(
                outlet=outlet, ingredient__name=name
            )
        except InventoryItem.DoesNotExist:
            raise InventoryItemNotFoundError(name, outlet.pk)

    @staticmethod
    def _positive_quantity(name: str, quantity) -> Decimal:
        quantity = to_decimal(quantity)
        if quantity <= 0:
            raise InvalidQuantityError(f"Invalid quantity for {name}: {quantity}")
        return check_fits(quantity, STOCK_FIELD, f"quantity for {name}")

    @staticmethod
    def _shortage_error(item: InventoryItem, required: Decimal) -> InsufficientStockError:
        check = StockCheck(
            name=item.ingredient.name,
            required=required,
            current_stock=item.current_stock,
            minimum_stock=item.minimum_stock,
        )
        return InsufficientStockError([StockLedger._shortage_entry(check)])

    @staticmethod
    def transfer(tenant, from_outlet_id, to_outlet_id, name: str, quantity, reference_id: str = "", reason: str = "") -> TransferResult:
        """
        Move stock of one ingredient between two outlets of the same tenant.

        Both sides are written in one transaction and their movements share a
        reference id. The destination row is created on first transfer with
        the source's thresholds and unit cost.

        Raises:
            InvalidQuantityError: same outlet on both sides, or a bad quantity
            InventoryItemNotFoundError: the source outlet does not stock ``name``
            InsufficientStockError: the source holds less than ``quantity``
        """
        source_outlet = StockLedger._resolve_outlet(tenant, from_outlet_id)
        destination_outlet = StockLedger._resolve_outlet(tenant, to_outlet_id)
        if source_outlet.pk == destination_outlet.pk:
            raise InvalidQuantityError("Source and destination outlets cannot be the same")

        name = normalize_name(name)
        quantity = StockLedger._positive_quantity(name, quantity)
        transfer_ref = reference_id if reference_id else f"transfer_{uuid.uuid4().hex[:12]}"

        with tenant_context(tenant), transaction.atomic():
            try:
                source = InventoryItem.objects.select_related("ingredient").get(outlet=source_outlet, ingredient__name=name)
            except InventoryItem.DoesNotExist:
                raise InventoryItemNotFoundError(name, source_outlet.pk)
            destination, created = InventoryItem.objects.get_or_create(
                tenant=tenant,
                outlet=destination_outlet,
                ingredient=source.ingredient,
                defaults={
                    "minimum_stock": source.minimum_stock,
                    "maximum_stock": source.maximum_stock,
                    "unit_cost": source.unit_cost,
                },
            )

            # Both rows are locked in primary key order
            locked = {
                item.pk: item
                for item in InventoryItem.objects.select_for_update(of=("self",))
                .select_related("ingredient")
                .filter(pk__in=[source.pk, destination.pk])
                .order_by("pk")
            }
            source, destination = locked[source.pk], locked[destination.pk]

            if source.current_stock < quantity:
                raise StockLedger._shortage_error(source, quantity)
            check_fits(destination.current_stock + quantity, STOCK_FIELD, f"resulting stock for {name}")

            now = timezone.now()
            updated = InventoryItem.objects.filter(pk=source.pk, current_stock__gte=quantity).update(
                current_stock=F("current_stock") - quantity,
                updated_at=now,
            )
            if updated != 1:
                source.refresh_from_db()
                raise StockLedger._shortage_error(source, quantity)
            InventoryItem.objects.filter(pk=destination.pk).update(
                current_stock=F("current_stock") + quantity,
                last_restocked_at=now,
                updated_at=now,
            )

            source_stock = source.current_stock - quantity
            destination_stock = destination.current_stock + quantity
            StockLedger._log_movement(
                source,
                StockMovement.MovementType.TRANSFER_OUT,
                quantity_change=-quantity,
                previous_quantity=source.current_stock,
                new_quantity=source_stock,
                reference_id=transfer_ref,
                reason=reason,
            )
            StockLedger._log_movement(
                destination,
                StockMovement.MovementType.TRANSFER_IN,
                quantity_change=quantity,
                previous_quantity=destination.current_stock,
                new_quantity=destination_stock,
                unit_cost=destination.unit_cost,
                reference_id=transfer_ref,
                reason=reason,
            )

            for outlet in (source_outlet, destination_outlet):
                StockEventPublisher.stock_changed(tenant.pk, outlet.pk, [source.ingredient_id], reason="transfer")

        logger.info(
            f"Transferred {quantity} {name} from outlet {source_outlet.pk} to outlet {destination_outlet.pk} "
            f"({transfer_ref})"
        )
        return TransferResult(
            name=name,
            quantity=quantity,
            reference_id=transfer_ref,
            source_stock=source_stock,
            destination_stock=destination_stock,
            destination_created=created,
        )

    @staticmethod
    def adjust(tenant, outlet_id, name: str, counted_quantity, reason: str = "", reference_id: str = "") -> AdjustmentResult:
        """
        Set the stock of an item to a physically counted level.

        The difference is logged as an ADJUSTMENT movement. A count equal to
        the current stock writes nothing and publishes nothing.
        """
        outlet = StockLedger._resolve_outlet(tenant, outlet_id)
        name = normalize_name(name)
        counted = to_decimal(counted_quantity, "counted quantity")
        if counted < 0:
            raise InvalidQuantityError(f"Invalid counted quantity for {name}: {counted}")
        check_fits(counted, STOCK_FIELD, f"counted quantity for {name}")

        with tenant_context(tenant), transaction.atomic():
            item = StockLedger._locked_item(outlet, name)
            previous_quantity = item.current_stock
            if counted == previous_quantity:
                return AdjustmentResult(name=name, previous_stock=previous_quantity, new_stock=counted)

            InventoryItem.objects.filter(pk=item.pk).update(current_stock=counted, updated_at=timezone.now())
            movement = StockLedger._log_movement(
                item,
                StockMovement.MovementType.ADJUSTMENT,
                quantity_change=counted - previous_quantity,
                previous_quantity=previous_quantity,
                new_quantity=counted,
                reference_id=reference_id,
                reason=reason,
            )
            StockEventPublisher.stock_changed(tenant.pk, outlet.pk, [item.ingredient_id], reason="adjustment")

        logger.info(f"Adjusted {name} at outlet {outlet.pk}: {previous_quantity} -> {counted}")
        return AdjustmentResult(name=name, previous_stock=previous_quantity, new_stock=counted, movement=movement)

    @staticmethod
    def record_waste(tenant, outlet_id, name: str, quantity, reason: str = "", reference_id: str = "") -> AdjustmentResult:
        """Write off spoiled or damaged stock; never takes an item below zero."""
        outlet = StockLedger._resolve_outlet(tenant, outlet_id)
        name = normalize_name(name)
        quantity = StockLedger._positive_quantity(name, quantity)

        with tenant_context(tenant), transaction.atomic():
            item = StockLedger._locked_item(outlet, name)
            updated = InventoryItem.objects.filter(pk=item.pk, current_stock__gte=quantity).update(
                current_stock=F("current_stock") - quantity,
                updated_at=timezone.now(),
            )
            if updated != 1:
                raise StockLedger._shortage_error(item, quantity)

            previous_quantity = item.current_stock
            new_quantity = previous_quantity - quantity
            movement = StockLedger._log_movement(
                item,
                StockMovement.MovementType.WASTE,
                quantity_change=-quantity,
                previous_quantity=previous_quantity,
                new_quantity=new_quantity,
                reference_id=reference_id,
                reason=reason,
            )
            StockEventPublisher.stock_changed(tenant.pk, outlet.pk, [item.ingredient_id], reason="waste")

        logger.info(f"Recorded waste of {quantity} {name} at outlet {outlet.pk}")
        return AdjustmentResult(name=name, previous_stock=previous_quantity, new_stock=new_quantity, movement=movement)

    # ------------------------------------------------------------------
    # Thresholds and history
    # ------------------------------------------------------------------

    @staticmethod
    @transaction.atomic
    def set_thresholds(tenant, outlet_id, name: str, minimum_stock=None, maximum_stock=None) -> InventoryItem:
        """
        Update the low-stock threshold and/or the maximum of an item.

        Passing ``maximum_stock=None`` leaves the maximum unchanged.
        """
        outlet = StockLedger._resolve_outlet(tenant, outlet_id)
        name = normalize_name(name)

        with tenant_context(tenant):
            item = StockLedger._locked_item(outlet, name)

            if minimum_stock is not None:
                minimum_stock = to_decimal(minimum_stock, "minimum stock")
                if minimum_stock < 0:
                    raise InvalidQuantityError(f"Invalid minimum stock for {name}: {minimum_stock}")
                check_fits(minimum_stock, STOCK_FIELD, f"minimum stock for {name}")
                item.minimum_stock = minimum_stock
            if maximum_stock is not None:
                maximum_stock = to_decimal(maximum_stock, "maximum stock")
                if maximum_stock < 0:
                    raise InvalidQuantityError(f"Invalid maximum stock for {name}: {maximum_stock}")
                check_fits(maximum_stock, STOCK_FIELD, f"maximum stock for {name}")
                item.maximum_stock = maximum_stock

            if item.maximum_stock is not None and item.minimum_stock > item.maximum_stock:
                raise InvalidQuantityError(
                    f"Minimum stock ({item.minimum_stock}) cannot exceed maximum stock ({item.maximum_stock}) for {name}"
                )

            item.save(update_fields=["minimum_stock", "maximum_stock", "updated_at"])

        logger.info(
            f"Updated thresholds for {name} at outlet {outlet.pk}: "
            f"min={item.minimum_stock}, max={item.maximum_stock}"
        )
        return item

    @staticmethod
    def stock_movements(tenant, outlet_id, name: Optional[str] = None, movement_type: Optional[str] = None, limit: int = 50) -> List[StockMovement]:
        """Most recent audit entries of an outlet, newest first."""
        outlet = StockLedger._resolve_outlet(tenant, outlet_id)
        with tenant_context(tenant):
            queryset = StockMovement.objects.filter(outlet=outlet)
            if name is not None:
                queryset = queryset.filter(ingredient_name=normalize_name(name))
            if movement_type is not None:
                queryset = queryset.filter(movement_type=movement_type)
            return list(queryset.order_by("-created_at", "-id")[:limit])

    @staticmethod
    def stock_summary(tenant, outlet_id=None) -> dict:
        """Counts and valuation of stock for one outlet or the whole tenant."""
        outlet = StockLedger._resolve_outlet(tenant, outlet_id) if outlet_id is not None else None

        with tenant_context(tenant):
            queryset = InventoryItem.objects.all()
            if outlet is not None:
                queryset = queryset.filter(outlet=outlet)
            total_value = queryset.aggregate(value=Sum(F("current_stock") * F("unit_cost")))["value"]
            return {
                "total_items": queryset.count(),
                "low_stock_items": queryset.filter(current_stock__lte=F("minimum_stock")).count(),
                "out_of_stock_items": queryset.filter(current_stock__lte=0).count(),
                "total_value": Decimal(str(total_value or 0)),
            }
