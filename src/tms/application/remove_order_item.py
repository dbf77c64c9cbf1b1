"""Application service: Remove Order Item / Clear Order use cases."""

from __future__ import annotations

from tms.application.dto import OrderDTO
from tms.application.order_access import load_order
from tms.domain.model.caller import Caller
from tms.domain.model.value_objects import SupplyKey
from tms.domain.repository.order_repository import OrderRepository


class RemoveOrderItemHandler:

    def __init__(self, order_repo: OrderRepository) -> None:
        self._order_repo = order_repo

    def handle(
        self, caller: Caller, order_id: int, city: str, province: str, tier: str
    ) -> OrderDTO:
        order = load_order(self._order_repo, order_id, caller, "modify")
        order.remove_item(SupplyKey(city, province, tier))
        self._order_repo.save(order)
        return OrderDTO.from_order(order)


class ClearOrderHandler:

    def __init__(self, order_repo: OrderRepository) -> None:
        self._order_repo = order_repo

    def handle(self, caller: Caller, order_id: int) -> OrderDTO:
        order = load_order(self._order_repo, order_id, caller, "modify")
        order.clear()
        self._order_repo.save(order)
        return OrderDTO.from_order(order)
