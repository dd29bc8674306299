from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..exceptions import ValidationFailedError
from ..models import Order
from ..validation import OrderRequest, ValidationPipeline, ValidationResult
from .queue_service import FulfillmentQueue
import logging

logger = logging.getLogger(__name__)


@dataclass
class AdmissionResult:
    order: Order
    position: int
    estimated_minutes: int
    validation: ValidationResult

    @property
    def warnings(self):
        return self.validation.warning_messages


class OrderAdmissionService:
    """
    Entry point for incoming orders: validate, then enqueue.

    Validation is advisory and runs without locks; enqueue re-checks stock,
    capacity and the promotion under locks, so a request that validated can
    still be refused when another order wins the race.
    """

    @staticmethod
    def admit(tenant, order_request: OrderRequest, now: Optional[datetime] = None, pipeline: Optional[ValidationPipeline] = None) -> AdmissionResult:
        pipeline = pipeline or ValidationPipeline()
        validation = pipeline.validate(tenant, order_request, now=now)
        if not validation.is_valid:
            raise ValidationFailedError(validation)

        ticket = FulfillmentQueue.enqueue(
            tenant,
            order_request.outlet_id,
            order_request,
            customer_id=order_request.customer_id,
        )
        return AdmissionResult(
            order=ticket.order,
            position=ticket.position,
            estimated_minutes=ticket.estimated_minutes,
            validation=validation,
        )
