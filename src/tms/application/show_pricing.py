"""Application service: Show Pricing use case (query)."""

from __future__ import annotations

from tms.application.dto import PricingDTO
from tms.domain.exceptions import ValidationError
from tms.domain.service.pricing_resolver import PricingResolver


class ShowPricingHandler:

    def __init__(self, resolver: PricingResolver) -> None:
        self._resolver = resolver

    def handle(self, city: str, province: str) -> PricingDTO:
        if not city or not city.strip():
            raise ValidationError("City is required")
        entry, is_default = self._resolver.resolve(city, province)
        return PricingDTO.from_entry(entry, is_default=is_default)
