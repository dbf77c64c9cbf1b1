"""Application service: Set Pricing use case.

Changing a tariff never touches existing order lines; they keep the price
captured when they were added.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from tms.application.dto import PricingDTO
from tms.domain.exceptions import ValidationError
from tms.domain.model.caller import Caller
from tms.domain.model.pricing import PricingEntry
from tms.domain.model.value_objects import Money
from tms.domain.repository.pricing_store import PricingStore

logger = logging.getLogger(__name__)


class SetPricingHandler:

    def __init__(self, store: PricingStore) -> None:
        self._store = store

    def handle(
        self,
        caller: Caller,
        city: str,
        province: str,
        evaluated_price: str,
        cv_only_price: str,
    ) -> PricingDTO:
        caller.require_staff("change pricing")
        if not city or not city.strip():
            raise ValidationError("City is required")
        if not province or not province.strip():
            raise ValidationError("Province is required")

        entry = PricingEntry(
            city=city.strip(),
            province=province.strip().upper(),
            evaluated_price=Money.of(evaluated_price),
            cv_only_price=Money.of(cv_only_price),
            updated_at=datetime.now(timezone.utc),
        )
        self._store.save(entry)
        logger.info(
            "pricing for %s, %s set to evaluated=%s cv_only=%s by %s",
            entry.city, entry.province, entry.evaluated_price, entry.cv_only_price, caller.id,
        )
        return PricingDTO.from_entry(entry, is_default=False)
