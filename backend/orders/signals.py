from django.dispatch import Signal

# Custom signals that other apps (kitchen display, notifications) can listen to.
# Both are sent after the admitting/transitioning transaction commits.

# kwargs: order, position, estimated_minutes
order_admitted = Signal()

# kwargs: order, old_status, new_status
order_status_changed = Signal()
