from contextlib import contextmanager
from django.db import models
from threading import local

# Thread-local storage for current tenant
_thread_locals = local()


def set_current_tenant(tenant):
    """
    Set the current tenant for this thread.

    Args:
        tenant: Tenant instance or None to clear

    This is called by the engine services and Celery tasks to establish
    tenant context for the current call/task.
    """
    _thread_locals.tenant = tenant


def get_current_tenant():
    """
    Get the current tenant for this thread.

    Returns:
        Tenant instance or None if no tenant context is set
    """
    return getattr(_thread_locals, 'tenant', None)


@contextmanager
def tenant_context(tenant):
    """
    Run a block with ``tenant`` as the current tenant.

    The previous tenant (possibly None) is restored on exit, so nested
    service calls for the same tenant leave the caller's context intact.

    Usage:
        with tenant_context(tenant):
            InventoryItem.objects.filter(outlet_id=outlet_id)
    """
    previous = get_current_tenant()
    set_current_tenant(tenant)
    try:
        yield tenant
    finally:
        set_current_tenant(previous)


class TenantManager(models.Manager):
    """
    Automatically filters querysets by current tenant.

    FAILS CLOSED: Returns empty queryset if no tenant context is set.
    This prevents accidental data leakage across tenants.

    Usage:
        class InventoryItem(models.Model):
            tenant = models.ForeignKey('tenant.Tenant', on_delete=models.CASCADE)

            objects = TenantManager()  # Default manager (tenant-filtered)
            all_objects = models.Manager()  # Bypass filter for admin operations
    """

    def get_queryset(self):
        """
        Return queryset filtered by current tenant.

        If no tenant context is set, returns empty queryset (fail-closed).
        """
        tenant = get_current_tenant()

        if tenant:
            return super().get_queryset().filter(tenant=tenant)

        # FAIL CLOSED: Return empty queryset if no tenant context
        return super().get_queryset().none()
