from datetime import datetime, date, timedelta
from decimal import Decimal
from typing import Dict, Optional

from django.core.cache import cache
from django.utils import timezone

from core_backend.config import engine_settings
from tenant.managers import tenant_context
from .exceptions import OutletNotFoundError
from .models import DeliveryZone, MinimumOrderAmount, OperatingHours, Outlet
import logging

logger = logging.getLogger(__name__)


class OutletService:
    """Lookups of outlet configuration used by the order engine."""

    @staticmethod
    def get_outlet(tenant, outlet_id, lock=False) -> Outlet:
        """
        Fetch an outlet of ``tenant``.

        With ``lock=True`` the row is locked for the rest of the surrounding
        transaction, which serialises queue operations per outlet.
        """
        with tenant_context(tenant):
            queryset = Outlet.objects.all()
            if lock:
                queryset = queryset.select_for_update()
            try:
                return queryset.get(pk=outlet_id)
            except (Outlet.DoesNotExist, ValueError, TypeError):
                raise OutletNotFoundError(outlet_id)

    @staticmethod
    def minimum_order_amount(outlet: Outlet, order_type: str) -> Decimal:
        """Outlet specific minimum, falling back to the configured default."""
        with tenant_context(outlet.tenant):
            row = MinimumOrderAmount.objects.filter(outlet=outlet, order_type=order_type).first()
        if row is not None:
            return row.minimum_amount
        return engine_settings.minimum_order_amount(order_type)

    @staticmethod
    def delivery_zones(outlet: Outlet):
        with tenant_context(outlet.tenant):
            return list(DeliveryZone.objects.filter(outlet=outlet, is_active=True))


class OperatingHoursService:
    """Service class for evaluating an outlet's weekly operating hours"""

    def __init__(self, outlet: Outlet):
        self.outlet = outlet

    @property
    def cache_timeout(self) -> int:
        return engine_settings.OPERATING_HOURS_CACHE_TIMEOUT

    def localize(self, dt: Optional[datetime] = None) -> datetime:
        """Convert ``dt`` (default: now) into the outlet's timezone."""
        if dt is None:
            dt = timezone.now()

        outlet_tz = self.outlet.tz
        if dt.tzinfo is None:
            return outlet_tz.localize(dt)
        return dt.astimezone(outlet_tz)

    def is_open(self, dt: Optional[datetime] = None) -> bool:
        """
        Check if the outlet is open at a specific datetime

        Windows are inclusive at both ends. A window whose closing time is at
        or before its opening time carries into the next day.
        """
        local_dt = self.localize(dt)
        check_date = local_dt.date()
        check_time = local_dt.time().replace(tzinfo=None)

        hours = self.hours_for_date(check_date)
        if not hours['is_closed']:
            opening, closing = hours['opening_time'], hours['closing_time']
            if closing <= opening:
                if check_time >= opening:
                    return True
            elif opening <= check_time <= closing:
                return True

        # Previous day's overnight window may extend into this day
        previous = self.hours_for_date(check_date - timedelta(days=1))
        if not previous['is_closed']:
            opening, closing = previous['opening_time'], previous['closing_time']
            if closing <= opening and check_time <= closing:
                return True

        return False

    def hours_for_date(self, target_date: date) -> Dict:
        """
        Get the operating window for a date.

        Returns:
            Dict with keys: day_of_week, day_name, is_closed, opening_time, closing_time
        """
        day_of_week = target_date.weekday()  # Monday = 0, Sunday = 6

        # Include tenant in cache key to prevent cross-tenant cache pollution
        cache_key = self._cache_key(self.outlet.tenant_id, self.outlet.pk, day_of_week)
        hours_info = cache.get(cache_key)

        if hours_info is None:
            hours_info = self._load_hours(day_of_week)
            cache.set(cache_key, hours_info, self.cache_timeout)

        return hours_info

    def describe_hours(self, target_date: date) -> str:
        hours = self.hours_for_date(target_date)
        if hours['is_closed']:
            return 'Closed'
        return f"{hours['opening_time']:%H:%M} - {hours['closing_time']:%H:%M}"

    def _load_hours(self, day_of_week: int) -> Dict:
        day_name = dict(OperatingHours.DAYS_OF_WEEK)[day_of_week]
        with tenant_context(self.outlet.tenant):
            row = OperatingHours.objects.filter(outlet=self.outlet, day_of_week=day_of_week).first()

        # Default to closed if no hours defined
        if row is None or row.is_closed or row.opening_time is None or row.closing_time is None:
            return {
                'day_of_week': day_of_week,
                'day_name': day_name,
                'is_closed': True,
                'opening_time': None,
                'closing_time': None,
            }

        return {
            'day_of_week': day_of_week,
            'day_name': day_name,
            'is_closed': False,
            'opening_time': row.opening_time,
            'closing_time': row.closing_time,
        }

    @staticmethod
    def _cache_key(tenant_id, outlet_id, day_of_week: int) -> str:
        return f"operating_hours_{tenant_id}_{outlet_id}_{day_of_week}"

    @classmethod
    def clear_cache(cls, tenant_id, outlet_id):
        """Clear cached operating hours for every weekday of an outlet"""
        cache.delete_many([cls._cache_key(tenant_id, outlet_id, day) for day in range(7)])
