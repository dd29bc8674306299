"""
Orders services package.

- FulfillmentQueue: per-outlet FIFO queue and the order status state machine
- OrderAdmissionService: validation followed by enqueue
"""

from .queue_service import FulfillmentQueue, QueueEntry, QueueTicket

from .admission_service import AdmissionResult, OrderAdmissionService

__all__ = [
    'FulfillmentQueue',
    'QueueEntry',
    'QueueTicket',
    'OrderAdmissionService',
    'AdmissionResult',
]
