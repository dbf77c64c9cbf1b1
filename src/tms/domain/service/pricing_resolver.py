"""Domain service: Pricing Resolver."""

from __future__ import annotations

from tms.domain.model.pricing import PricingEntry
from tms.domain.model.value_objects import Money, SupplyKey
from tms.domain.repository.pricing_store import PricingStore


class PricingResolver:

    def __init__(self, store: PricingStore, default: PricingEntry | None = None) -> None:
        self._store = store
        self._default = default or PricingEntry.default()

    def resolve(self, city: str, province: str) -> tuple[PricingEntry, bool]:
        """Return ``(entry, is_default)``.

        A miss yields the default tariff labelled with the asked city.  Only
        an unreadable store fails (UpstreamUnavailableError).
        """
        entry = self._store.get_pricing(city, province)
        if entry is None:
            return self._default.for_city(city.strip(), province.strip().upper()), True
        return entry, False

    def pricing(self, city: str, province: str) -> PricingEntry:
        return self.resolve(city, province)[0]

    def price(self, key: SupplyKey) -> Money:
        return self.pricing(key.city, key.province).price_for(key.tier)
