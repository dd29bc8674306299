from django.db import transaction
from .signals import stock_changed
import logging

logger = logging.getLogger(__name__)


class StockEventPublisher:
    """Publishes ledger events once the surrounding transaction commits"""

    @staticmethod
    def stock_changed(tenant_id, outlet_id, ingredient_ids, reason):
        ingredient_ids = sorted(set(ingredient_ids))
        if not ingredient_ids:
            return

        def send():
            StockEventPublisher._send_stock_changed(tenant_id, outlet_id, ingredient_ids, reason)

        # Receivers must never observe stock that may still roll back
        if transaction.get_connection().in_atomic_block:
            transaction.on_commit(send)
        else:
            send()

    @staticmethod
    def _send_stock_changed(tenant_id, outlet_id, ingredient_ids, reason):
        logger.info(
            f"Publishing stock_changed ({reason}) for outlet {outlet_id}: "
            f"{len(ingredient_ids)} ingredient(s)"
        )
        responses = stock_changed.send_robust(
            sender=StockEventPublisher,
            tenant_id=tenant_id,
            outlet_id=outlet_id,
            ingredient_ids=ingredient_ids,
            reason=reason,
        )
        for receiver_fn, response in responses:
            if isinstance(response, Exception):
                logger.error(f"stock_changed receiver {receiver_fn.__name__} failed: {response}")
