"""Application service: Create Order use case.

A client has at most one DRAFT order (their cart).  Creating returns the
existing draft when there is one.
"""

from __future__ import annotations

import logging

from tms.application.dto import OrderDTO
from tms.domain.exceptions import ValidationError
from tms.domain.model.caller import Caller
from tms.domain.model.order import Order
from tms.domain.repository.order_repository import OrderRepository

logger = logging.getLogger(__name__)


class CreateOrderHandler:

    def __init__(self, order_repo: OrderRepository) -> None:
        self._order_repo = order_repo

    def handle(self, caller: Caller, client_id: str | None = None) -> OrderDTO:
        """Return the client's draft, creating it if needed.

        Staff may open a draft for a given client; clients always act for
        themselves.
        """
        if client_id is not None and client_id != caller.id:
            caller.require_staff("create an order for another client")
        owner = client_id if client_id is not None else caller.id
        if not owner or not owner.strip():
            raise ValidationError("Client id is required")

        order = Order.create(client_id=owner)
        stored = self._order_repo.add_draft_if_absent(order)
        if stored is order:
            logger.info("order #%s created for client %s", order.id, order.client_id)
        return OrderDTO.from_order(stored)
