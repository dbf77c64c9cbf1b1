"""Application service: Cancel Order use case.

Cancellation is a soft status change.  Because reserved quantities are
computed from order status, the order's units are available again on the
very next availability read; there is nothing to release explicitly.
"""

from __future__ import annotations

import logging

from tms.application.dto import OrderDTO
from tms.application.order_access import load_order
from tms.domain.model.caller import Caller
from tms.domain.repository.order_repository import OrderRepository

logger = logging.getLogger(__name__)


class CancelOrderHandler:

    def __init__(self, order_repo: OrderRepository) -> None:
        self._order_repo = order_repo

    def handle(self, caller: Caller, order_id: int, admin_notes: str | None = None) -> OrderDTO:
        order = load_order(self._order_repo, order_id, caller, "cancel")
        previous = order.status
        order.cancel()
        if admin_notes is not None:
            order.admin_notes = admin_notes
        self._order_repo.save(order)
        logger.info("order #%s cancelled by %s (was %s)", order.id, caller.id, previous.value)
        return OrderDTO.from_order(order)
