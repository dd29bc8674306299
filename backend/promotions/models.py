from decimal import Decimal, ROUND_HALF_UP

from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import Q
from django.utils import timezone

from tenant.managers import TenantManager


class Promotion(models.Model):
    class DiscountType(models.TextChoices):
        PERCENTAGE = "PERCENTAGE", "Percentage"
        FIXED_AMOUNT = "FIXED_AMOUNT", "Fixed Amount"

    # Multi-tenancy
    tenant = models.ForeignKey('tenant.Tenant', on_delete=models.CASCADE, related_name='promotions')

    # Codes are unique per tenant and matched case-insensitively
    code = models.CharField(max_length=50)
    name = models.CharField(max_length=255)
    discount_type = models.CharField(
        max_length=20,
        choices=DiscountType.choices,
    )
    value = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        help_text="The value of the discount (percentage or fixed amount).",
    )
    max_discount_amount = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        null=True,
        blank=True,
        help_text="Upper bound for percentage discounts.",
    )
    min_order_amount = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        default=Decimal("0"),
        help_text="The minimum subtotal required for the promotion to apply.",
    )

    start_date = models.DateTimeField(
        null=True,
        blank=True,
        help_text="The date and time when the promotion becomes active.",
    )
    end_date = models.DateTimeField(
        null=True, blank=True, help_text="The date and time when the promotion expires."
    )

    usage_limit = models.PositiveIntegerField(
        null=True, blank=True, help_text="Total redemptions allowed. Leave empty for unlimited."
    )
    per_customer_limit = models.PositiveIntegerField(
        null=True, blank=True, help_text="Redemptions allowed per customer. Leave empty for unlimited."
    )
    used_count = models.PositiveIntegerField(default=0)

    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = TenantManager()
    all_objects = models.Manager()  # Bypass tenant filter

    class Meta:
        ordering = ["code"]
        constraints = [
            models.UniqueConstraint(
                fields=["tenant", "code"],
                name="unique_promotion_code_per_tenant",
            ),
            models.CheckConstraint(
                condition=Q(usage_limit__isnull=True) | Q(used_count__lte=models.F("usage_limit")),
                name="promotion_usage_within_limit",
            ),
        ]

    def __str__(self):
        return f"{self.code} ({self.get_discount_type_display()})"

    def save(self, *args, **kwargs):
        self.code = (self.code or "").strip().upper()
        super().save(*args, **kwargs)

    def clean(self):
        """Validate promotion value based on type."""
        super().clean()
        if self.value is None or self.value <= 0:
            raise ValidationError({
                'value': 'Promotion value must be greater than zero.'
            })
        if self.discount_type == self.DiscountType.PERCENTAGE and self.value > 100:
            raise ValidationError({
                'value': 'Percentage discount cannot exceed 100%.'
            })
        if self.start_date and self.end_date and self.start_date > self.end_date:
            raise ValidationError({
                'end_date': 'End date must be after the start date.'
            })

    def is_currently_active(self, at=None):
        """Checks if the promotion is enabled and within its date range."""
        if not self.is_active:
            return False
        at = at or timezone.now()
        if self.start_date and at < self.start_date:
            return False
        if self.end_date and at > self.end_date:
            return False
        return True

    @property
    def is_exhausted(self):
        return self.usage_limit is not None and self.used_count >= self.usage_limit

    def calculate_discount(self, subtotal: Decimal) -> Decimal:
        """Discount for a subtotal, never more than the subtotal itself."""
        subtotal = Decimal(subtotal)
        if self.discount_type == self.DiscountType.PERCENTAGE:
            discount = (subtotal * self.value / Decimal("100")).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
            if self.max_discount_amount is not None:
                discount = min(discount, self.max_discount_amount)
        else:
            discount = self.value
        return max(Decimal("0"), min(discount, subtotal))


class PromotionRedemption(models.Model):
    """One use of a promotion by an admitted order."""

    tenant = models.ForeignKey('tenant.Tenant', on_delete=models.CASCADE, related_name='promotion_redemptions')
    promotion = models.ForeignKey(Promotion, on_delete=models.CASCADE, related_name='redemptions')
    order = models.OneToOneField(
        'orders.Order',
        on_delete=models.CASCADE,
        related_name='promotion_redemption',
    )
    customer_id = models.CharField(max_length=100, blank=True)
    discount_amount = models.DecimalField(max_digits=10, decimal_places=2)
    created_at = models.DateTimeField(auto_now_add=True)

    objects = TenantManager()
    all_objects = models.Manager()

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["promotion", "customer_id"], name="promo_redemption_customer_idx"),
        ]

    def __str__(self):
        return f"{self.promotion.code} on order {self.order_id}"
