"""Application service: Add Order Item use case.

Captures the current tier price on the line.  Availability is only checked
for information here; nothing is reserved until the order is submitted.
"""

from __future__ import annotations

import logging

from tms.application.dto import OrderDTO
from tms.application.order_access import load_order
from tms.domain.exceptions import UpstreamUnavailableError
from tms.domain.model.caller import Caller
from tms.domain.model.value_objects import SupplyKey
from tms.domain.repository.order_repository import OrderRepository
from tms.domain.service.pricing_resolver import PricingResolver
from tms.domain.service.reservation_ledger import ReservationLedger

logger = logging.getLogger(__name__)


class AddOrderItemHandler:

    def __init__(
        self,
        order_repo: OrderRepository,
        pricing_resolver: PricingResolver,
        ledger: ReservationLedger | None = None,
    ) -> None:
        self._order_repo = order_repo
        self._pricing = pricing_resolver
        self._ledger = ledger

    def handle(
        self,
        caller: Caller,
        order_id: int,
        city: str,
        province: str,
        tier: str,
        quantity: int,
        notes: str | None = None,
    ) -> OrderDTO:
        order = load_order(self._order_repo, order_id, caller, "modify")
        key = SupplyKey(city, province, tier)

        unit_price = self._pricing.price(key)  # <-- price snapshot
        order.add_item(key, quantity, unit_price, notes)
        self._order_repo.save(order)

        warnings = self._advisory_warnings(key, order.quantity_for(key))
        return OrderDTO.from_order(order, warnings=warnings)

    def _advisory_warnings(self, key: SupplyKey, wanted: int) -> list[str]:
        if self._ledger is None:
            return []
        try:
            available = self._ledger.available(key)
        except UpstreamUnavailableError as exc:
            logger.warning("advisory availability check failed for %s: %s", key, exc)
            return [f"Availability for {key} could not be checked"]
        if wanted > available:
            logger.warning(
                "requested %d for %s but only %d currently available", wanted, key, available
            )
            return [f"Only {available} currently available for {key} (requested {wanted})"]
        return []
