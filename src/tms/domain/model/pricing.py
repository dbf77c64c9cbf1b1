"""PricingEntry: per-city tariff for the two candidate tiers.

Order lines copy the tier price when they are added, so changing an entry
never alters an existing quote.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from decimal import Decimal

from tms.domain.exceptions import ValidationError
from tms.domain.model.value_objects import Money, Tier

DEFAULT_CITY = "*"
DEFAULT_EVALUATED_PRICE = Money(Decimal("30.00"))
DEFAULT_CV_ONLY_PRICE = Money(Decimal("7.50"))


@dataclass
class PricingEntry:

    city: str
    province: str
    evaluated_price: Money
    cv_only_price: Money
    updated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def __post_init__(self) -> None:
        if self.evaluated_price.amount <= 0 or self.cv_only_price.amount <= 0:
            raise ValidationError("Tier prices must be greater than zero")

    @property
    def is_default(self) -> bool:
        return self.city == DEFAULT_CITY

    def price_for(self, tier: Tier) -> Money:
        if tier is Tier.EVALUATED:
            return self.evaluated_price
        return self.cv_only_price

    def for_city(self, city: str, province: str) -> PricingEntry:
        """Copy of this entry labelled with another city (used for the default)."""
        return replace(self, city=city, province=province)

    @staticmethod
    def default(
        evaluated_price: Money = DEFAULT_EVALUATED_PRICE,
        cv_only_price: Money = DEFAULT_CV_ONLY_PRICE,
    ) -> PricingEntry:
        return PricingEntry(
            city=DEFAULT_CITY,
            province=DEFAULT_CITY,
            evaluated_price=evaluated_price,
            cv_only_price=cv_only_price,
        )
