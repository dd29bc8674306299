from decimal import Decimal
from typing import List, Optional, Tuple

from django.db import transaction
from django.db.models import F, Q
from django.utils import timezone

from tenant.managers import tenant_context
from .exceptions import PromotionUnavailableError
from .models import Promotion, PromotionRedemption
import logging

logger = logging.getLogger(__name__)


class PromotionService:
    """
    Promotion lookups, eligibility rules and redemption.
    """

    INACTIVE = "PROMOTION_INACTIVE"
    NOT_STARTED = "PROMOTION_NOT_STARTED"
    EXPIRED = "PROMOTION_EXPIRED"
    MINIMUM_NOT_MET = "PROMOTION_MINIMUM_NOT_MET"
    USAGE_EXHAUSTED = "PROMOTION_USAGE_EXHAUSTED"
    CUSTOMER_LIMIT = "PROMOTION_CUSTOMER_LIMIT"

    @staticmethod
    def get_by_code(tenant, code: str) -> Optional[Promotion]:
        if not code or not code.strip():
            return None
        with tenant_context(tenant):
            return Promotion.objects.filter(code__iexact=code.strip()).first()

    @staticmethod
    def customer_redemptions(promotion: Promotion, customer_id) -> int:
        if not customer_id:
            return 0
        return PromotionRedemption.all_objects.filter(
            promotion=promotion, customer_id=str(customer_id)
        ).count()

    @staticmethod
    def validate_eligibility(promotion: Promotion, subtotal: Decimal, customer_id=None, at=None) -> List[Tuple[str, str]]:
        """
        Every rule the promotion breaks for this order, as (code, message).
        """
        errors = []
        at = at or timezone.now()

        if not promotion.is_active:
            errors.append((PromotionService.INACTIVE, "Promotion is not active"))

        # Check date range
        if promotion.start_date and promotion.start_date > at:
            errors.append((PromotionService.NOT_STARTED, "Promotion has not started yet"))

        if promotion.end_date and promotion.end_date < at:
            errors.append((PromotionService.EXPIRED, "Promotion has expired"))

        if promotion.min_order_amount and subtotal < promotion.min_order_amount:
            errors.append((
                PromotionService.MINIMUM_NOT_MET,
                f"Minimum order amount of {promotion.min_order_amount} required for this promotion",
            ))

        if promotion.is_exhausted:
            errors.append((PromotionService.USAGE_EXHAUSTED, "Promotion usage limit exceeded"))

        if promotion.per_customer_limit is not None and customer_id:
            if PromotionService.customer_redemptions(promotion, customer_id) >= promotion.per_customer_limit:
                errors.append((
                    PromotionService.CUSTOMER_LIMIT,
                    "You have reached the usage limit for this promotion",
                ))

        return errors

    @staticmethod
    @transaction.atomic
    def redeem(promotion: Promotion, order, discount_amount: Decimal, customer_id=None) -> PromotionRedemption:
        """
        Record a redemption for an admitted order.

        The usage counter is incremented with a conditional write, so two
        orders racing for the last use cannot both win. Raises
        PromotionUnavailableError when the promotion ran out meanwhile.
        """
        with tenant_context(promotion.tenant):
            locked = Promotion.objects.select_for_update().get(pk=promotion.pk)

            if locked.per_customer_limit is not None and customer_id:
                if PromotionService.customer_redemptions(locked, customer_id) >= locked.per_customer_limit:
                    raise PromotionUnavailableError(
                        locked,
                        PromotionService.CUSTOMER_LIMIT,
                        "You have reached the usage limit for this promotion",
                    )

            updated = Promotion.objects.filter(pk=locked.pk).filter(
                Q(usage_limit__isnull=True) | Q(used_count__lt=F("usage_limit"))
            ).update(used_count=F("used_count") + 1, updated_at=timezone.now())
            if updated != 1:
                raise PromotionUnavailableError(
                    locked, PromotionService.USAGE_EXHAUSTED, "Promotion usage limit exceeded"
                )

            redemption = PromotionRedemption.objects.create(
                tenant_id=locked.tenant_id,
                promotion=locked,
                order=order,
                customer_id=str(customer_id or ""),
                discount_amount=discount_amount,
            )

        logger.info(f"Redeemed promotion {locked.code} for order {order.pk}")
        return redemption
