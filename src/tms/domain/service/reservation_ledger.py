"""Domain service: Reservation Ledger.

Reserved quantities are never stored.  ``reserved`` is recomputed from the
orders in a reserving status on every call, and ``available`` subtracts it
from the live supply.  The only mutation path is an order changing status,
which callers perform inside ``hold`` for the keys involved.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from contextlib import contextmanager

from tms.domain.exceptions import Shortfall
from tms.domain.model.order import RESERVING_STATUSES
from tms.domain.model.value_objects import SupplyKey
from tms.domain.repository.order_repository import OrderRepository
from tms.domain.service.key_locks import KeyLockRegistry, default_registry
from tms.domain.service.supply_resolver import SupplyResolver

logger = logging.getLogger(__name__)


class ReservationLedger:

    def __init__(
        self,
        order_repo: OrderRepository,
        supply_resolver: SupplyResolver,
        locks: KeyLockRegistry | None = None,
    ) -> None:
        self._order_repo = order_repo
        self._supply = supply_resolver
        self._locks = locks or default_registry

    def reserved(self, key: SupplyKey) -> int:
        return self._order_repo.reserved_quantity(key, RESERVING_STATUSES)

    def available(self, key: SupplyKey) -> int:
        supply = self._supply.supply(key)
        reserved = self.reserved(key)
        available = max(0, supply - reserved)
        logger.debug(
            "availability %s: supply=%d reserved=%d available=%d",
            key, supply, reserved, available,
        )
        return available

    def check(self, requested: dict[SupplyKey, int]) -> list[Shortfall]:
        """Every key whose requested quantity exceeds what is available.

        All keys are checked so the caller can report every shortfall at once.
        """
        shortfalls: list[Shortfall] = []
        for key in sorted(requested):
            qty = requested[key]
            available = self.available(key)
            if qty > available:
                shortfalls.append(Shortfall(key=key, requested=qty, available=available))
        return shortfalls

    @contextmanager
    def hold(self, keys: Iterable[SupplyKey]) -> Iterator[None]:
        """Serialise check-and-reserve for ``keys`` against other submissions."""
        with self._locks.hold(keys):
            yield
