import math
from decimal import Decimal

import pytz
from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models

from tenant.managers import TenantManager


class OrderType(models.TextChoices):
    DELIVERY = "DELIVERY", "Delivery"
    PICKUP = "PICKUP", "Pickup"


class Outlet(models.Model):
    """
    A physical location of a tenant that holds its own stock and runs its own
    fulfillment queue.
    """
    tenant = models.ForeignKey(
        'tenant.Tenant',
        on_delete=models.CASCADE,
        related_name='outlets'
    )
    name = models.CharField(max_length=255)
    timezone = models.CharField(
        max_length=50,
        default='UTC',
        help_text='IANA timezone name used to evaluate operating hours'
    )
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = TenantManager()
    all_objects = models.Manager()

    class Meta:
        ordering = ['name']
        constraints = [
            models.UniqueConstraint(
                fields=['tenant', 'name'],
                name='unique_outlet_name_per_tenant'
            ),
        ]
        indexes = [
            models.Index(fields=['tenant', 'is_active'], name='outlet_tenant_active_idx'),
        ]

    def __str__(self):
        return self.name

    def clean(self):
        if self.timezone not in pytz.all_timezones_set:
            raise ValidationError({'timezone': f"Unknown timezone '{self.timezone}'"})

    @property
    def tz(self):
        return pytz.timezone(self.timezone)


class OperatingHours(models.Model):
    """Weekly opening window of an outlet for one day."""

    DAYS_OF_WEEK = [
        (0, 'Monday'),
        (1, 'Tuesday'),
        (2, 'Wednesday'),
        (3, 'Thursday'),
        (4, 'Friday'),
        (5, 'Saturday'),
        (6, 'Sunday'),
    ]

    tenant = models.ForeignKey(
        'tenant.Tenant',
        on_delete=models.CASCADE,
        related_name='operating_hours'
    )
    outlet = models.ForeignKey(
        Outlet,
        on_delete=models.CASCADE,
        related_name='operating_hours'
    )
    day_of_week = models.IntegerField(
        choices=DAYS_OF_WEEK,
        help_text='Day of the week (0=Monday, 6=Sunday)'
    )
    opening_time = models.TimeField(null=True, blank=True)
    closing_time = models.TimeField(
        null=True,
        blank=True,
        help_text='A closing time at or before the opening time runs past midnight'
    )
    is_closed = models.BooleanField(
        default=False,
        help_text='Is the outlet closed this day?'
    )

    objects = TenantManager()
    all_objects = models.Manager()

    class Meta:
        verbose_name_plural = 'Operating Hours'
        ordering = ['outlet', 'day_of_week']
        constraints = [
            models.UniqueConstraint(
                fields=['outlet', 'day_of_week'],
                name='unique_operating_hours_per_day'
            ),
        ]

    def __str__(self):
        day_name = dict(self.DAYS_OF_WEEK)[self.day_of_week]
        if self.is_closed:
            return f"{self.outlet} - {day_name} (Closed)"
        return f"{self.outlet} - {day_name} {self.opening_time}-{self.closing_time}"

    def clean(self):
        if not self.is_closed and (self.opening_time is None or self.closing_time is None):
            raise ValidationError("Opening and closing times are required unless the day is closed")

    @property
    def is_overnight(self):
        return self.closing_time <= self.opening_time


class DeliveryZone(models.Model):
    """
    Area an outlet delivers to, matched either by postal code or by distance
    from a center point.
    """
    tenant = models.ForeignKey(
        'tenant.Tenant',
        on_delete=models.CASCADE,
        related_name='delivery_zones'
    )
    outlet = models.ForeignKey(
        Outlet,
        on_delete=models.CASCADE,
        related_name='delivery_zones'
    )
    name = models.CharField(max_length=100)
    postal_codes = models.JSONField(default=list, blank=True)
    center_latitude = models.DecimalField(max_digits=9, decimal_places=6, null=True, blank=True)
    center_longitude = models.DecimalField(max_digits=9, decimal_places=6, null=True, blank=True)
    radius_km = models.DecimalField(
        max_digits=6,
        decimal_places=2,
        null=True,
        blank=True,
        validators=[MinValueValidator(Decimal('0'))]
    )
    is_active = models.BooleanField(default=True)

    objects = TenantManager()
    all_objects = models.Manager()

    EARTH_RADIUS_KM = 6371.0

    class Meta:
        ordering = ['outlet', 'name']

    def __str__(self):
        return f"{self.outlet} - {self.name}"

    def covers(self, address):
        """
        Check whether an address dict falls inside this zone.

        The address may carry ``postal_code`` and/or ``latitude``/``longitude``.
        """
        if not address:
            return False

        postal_code = str(address.get('postal_code') or '').strip().upper()
        if postal_code and postal_code in {str(code).strip().upper() for code in self.postal_codes or []}:
            return True

        coordinates = self.parse_coordinates(address)
        if coordinates is None or None in (self.center_latitude, self.center_longitude, self.radius_km):
            return False

        return self.distance_km(*coordinates) <= float(self.radius_km)

    @staticmethod
    def parse_coordinates(address):
        """
        ``(latitude, longitude)`` of an address as floats, or None when the
        address carries no usable coordinates.
        """
        try:
            latitude = float(address.get('latitude'))
            longitude = float(address.get('longitude'))
        except (TypeError, ValueError):
            return None
        if not (math.isfinite(latitude) and math.isfinite(longitude)):
            return None
        if abs(latitude) > 90 or abs(longitude) > 180:
            return None
        return latitude, longitude

    def distance_km(self, latitude, longitude):
        """Great-circle distance from the zone center (haversine)."""
        lat1 = math.radians(float(self.center_latitude))
        lat2 = math.radians(latitude)
        d_lat = lat2 - lat1
        d_lng = math.radians(longitude - float(self.center_longitude))

        a = math.sin(d_lat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(d_lng / 2) ** 2
        return 2 * self.EARTH_RADIUS_KM * math.asin(math.sqrt(a))


class MinimumOrderAmount(models.Model):
    """Smallest subtotal an outlet accepts for an order type."""

    tenant = models.ForeignKey(
        'tenant.Tenant',
        on_delete=models.CASCADE,
        related_name='minimum_order_amounts'
    )
    outlet = models.ForeignKey(
        Outlet,
        on_delete=models.CASCADE,
        related_name='minimum_order_amounts'
    )
    order_type = models.CharField(max_length=20, choices=OrderType.choices)
    minimum_amount = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal('0'))]
    )

    objects = TenantManager()
    all_objects = models.Manager()

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=['outlet', 'order_type'],
                name='unique_minimum_per_outlet_order_type'
            ),
        ]

    def __str__(self):
        return f"{self.outlet} - {self.order_type}: {self.minimum_amount}"
