"""Loading an order on behalf of a caller."""

from __future__ import annotations

from tms.domain.exceptions import EntityNotFoundError
from tms.domain.model.caller import Caller
from tms.domain.model.order import Order
from tms.domain.repository.order_repository import OrderRepository


def load_order(repo: OrderRepository, order_id: int, caller: Caller, action: str) -> Order:
    order = repo.get_by_id(order_id)
    if order is None:
        raise EntityNotFoundError(f"Order #{order_id} not found")
    caller.require_owner_or_staff(order.client_id, action)
    return order
