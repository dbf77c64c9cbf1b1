"""Application service: Submit Order use case.

This is the oversell guard.  For every pool the order touches, availability
is recomputed and the order's status change is persisted while the pool
locks are held, so no other submission for the same pool can read
availability between this check and the reservation becoming visible.
Either every pool has room and the order is SUBMITTED, or nothing changes.
"""

from __future__ import annotations

import logging

from tms.application.dto import OrderDTO
from tms.application.order_access import load_order
from tms.domain.exceptions import InsufficientAvailabilityError
from tms.domain.model.caller import Caller
from tms.domain.repository.order_repository import OrderRepository
from tms.domain.service.reservation_ledger import ReservationLedger

logger = logging.getLogger(__name__)


class SubmitOrderHandler:

    def __init__(self, order_repo: OrderRepository, ledger: ReservationLedger) -> None:
        self._order_repo = order_repo
        self._ledger = ledger

    def handle(self, caller: Caller, order_id: int, admin_notes: str | None = None) -> OrderDTO:
        order = load_order(self._order_repo, order_id, caller, "submit")
        order.ensure_submittable()

        requested = order.requested_by_key()
        with self._ledger.hold(requested):
            shortfalls = self._ledger.check(requested)
            if shortfalls:
                logger.warning(
                    "order #%s rejected: %d pool(s) short", order.id, len(shortfalls)
                )
                raise InsufficientAvailabilityError(shortfalls)

            order.submit()
            if admin_notes is not None:
                order.admin_notes = admin_notes
            # Still under the locks: the reservation is visible before release.
            self._order_repo.save(order)

        logger.info(
            "order #%s submitted by %s (%d line(s), total %s)",
            order.id, caller.id, len(order.items), order.total_amount,
        )
        return OrderDTO.from_order(order)
