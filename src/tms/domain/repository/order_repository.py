"""Abstract repository for the Order aggregate.

``reserved_quantity`` is the live aggregation the reservation ledger is built
on: there is no stored reservation table, the figure is always summed from
order lines joined to their order's status.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable
from datetime import datetime

from tms.domain.model.order import Order, OrderStatus
from tms.domain.model.value_objects import SupplyKey


class OrderRepository(ABC):

    @abstractmethod
    def get_by_id(self, order_id: int) -> Order | None:
        """Return an order by its ID, or None if not found."""

    @abstractmethod
    def find_draft_for_client(self, client_id: str) -> Order | None:
        """Return the client's DRAFT order, or None."""

    @abstractmethod
    def add_draft_if_absent(self, order: Order) -> Order:
        """Save the new DRAFT ``order`` unless its client already has one.

        The lookup and the insert are atomic.  Returns the stored draft, which
        is ``order`` itself only when it was inserted.
        """

    @abstractmethod
    def list(
        self,
        status: OrderStatus | None = None,
        client_id: str | None = None,
        created_from: datetime | None = None,
        created_to: datetime | None = None,
    ) -> list[Order]:
        """Return matching orders, newest first."""

    @abstractmethod
    def save(self, order: Order) -> None:
        """Persist a new or updated order.

        Assigns an id to new orders.  Raises ConcurrentModificationError when
        the stored version differs from ``order.version``; on success the
        version is incremented on both the store and the passed object.
        """

    @abstractmethod
    def reserved_quantity(self, key: SupplyKey, statuses: Iterable[OrderStatus]) -> int:
        """Sum of line quantities for ``key`` over orders in ``statuses``."""
