"""Application service: Show Order / List Orders use cases (queries)."""

from __future__ import annotations

from datetime import datetime

from tms.application.dto import OrderDTO, OrderListDTO, OrderStatsDTO, format_amount
from tms.application.order_access import load_order
from tms.domain.model.caller import Caller
from tms.domain.model.order import Order, OrderStatus
from tms.domain.model.value_objects import Money
from tms.domain.repository.order_repository import OrderRepository

REVENUE_STATUSES = (OrderStatus.PAID, OrderStatus.DELIVERED)
PENDING_REVENUE_STATUSES = (OrderStatus.APPROVED,)


class ShowOrderHandler:

    def __init__(self, order_repo: OrderRepository) -> None:
        self._order_repo = order_repo

    def handle(self, caller: Caller, order_id: int) -> OrderDTO:
        return OrderDTO.from_order(load_order(self._order_repo, order_id, caller, "view"))


class ListOrdersHandler:

    def __init__(self, order_repo: OrderRepository) -> None:
        self._order_repo = order_repo

    def handle(
        self,
        caller: Caller,
        status: str | None = None,
        client_id: str | None = None,
        created_from: datetime | None = None,
        created_to: datetime | None = None,
    ) -> OrderListDTO:
        """Staff see every order; a client only ever sees their own."""
        if not caller.is_staff:
            client_id = caller.id
        orders = self._order_repo.list(
            status=OrderStatus.parse(status) if status else None,
            client_id=client_id,
            created_from=created_from,
            created_to=created_to,
        )
        return OrderListDTO(
            orders=[OrderDTO.from_order(o) for o in orders],
            stats=self._stats(orders),
        )

    @staticmethod
    def _stats(orders: list[Order]) -> OrderStatsDTO:
        by_status = {status.value: 0 for status in OrderStatus}
        revenue = Money.zero()
        pending = Money.zero()
        for order in orders:
            by_status[order.status.value] += 1
            if order.status in REVENUE_STATUSES:
                revenue = revenue + order.total_amount
            elif order.status in PENDING_REVENUE_STATUSES:
                pending = pending + order.total_amount
        return OrderStatsDTO(
            total=len(orders),
            by_status=by_status,
            total_revenue=format_amount(revenue),
            pending_revenue=format_amount(pending),
        )
