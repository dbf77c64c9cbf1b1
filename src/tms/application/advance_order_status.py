"""Application service: Advance Order Status use case.

Staff move submitted orders through approval, payment and delivery.  A
SUBMITTED target always goes through the submission protocol and a
CANCELLED target through cancellation, so those two stay available to the
owning client and never bypass the availability check.
"""

from __future__ import annotations

import logging

from tms.application.cancel_order import CancelOrderHandler
from tms.application.dto import OrderDTO
from tms.application.order_access import load_order
from tms.application.submit_order import SubmitOrderHandler
from tms.domain.model.caller import Caller
from tms.domain.model.order import OrderStatus
from tms.domain.repository.order_repository import OrderRepository
from tms.domain.service.reservation_ledger import ReservationLedger

logger = logging.getLogger(__name__)


class AdvanceOrderStatusHandler:

    def __init__(self, order_repo: OrderRepository, ledger: ReservationLedger) -> None:
        self._order_repo = order_repo
        self._ledger = ledger

    def handle(
        self,
        caller: Caller,
        order_id: int,
        target: str | OrderStatus,
        admin_notes: str | None = None,
    ) -> OrderDTO:
        target_status = OrderStatus.parse(target)

        if target_status == OrderStatus.SUBMITTED:
            return SubmitOrderHandler(self._order_repo, self._ledger).handle(
                caller, order_id, admin_notes=admin_notes
            )
        if target_status == OrderStatus.CANCELLED:
            return CancelOrderHandler(self._order_repo).handle(
                caller, order_id, admin_notes=admin_notes
            )

        caller.require_staff(f"move an order to {target_status.value}")
        order = load_order(self._order_repo, order_id, caller, "update")
        previous = order.status
        order.advance_status(target_status, admin_notes)
        self._order_repo.save(order)

        logger.info(
            "order #%s moved %s -> %s by %s",
            order.id, previous.value, order.status.value, caller.id,
        )
        return OrderDTO.from_order(order)
