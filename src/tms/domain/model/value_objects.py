"""Value Objects shared across the domain.

Value Objects are immutable and compared by value, not identity.
They encapsulate validation so invalid values can never exist.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from enum import Enum

from tms.domain.exceptions import ValidationError

DEFAULT_CURRENCY = "CAD"


@dataclass(frozen=True)
class Money:
    """Monetary amount with currency.

    Uses Decimal to avoid floating-point rounding errors in quoted totals.
    """

    amount: Decimal
    currency: str = DEFAULT_CURRENCY

    def __post_init__(self) -> None:
        if not isinstance(self.amount, Decimal):
            raise ValidationError(
                f"Money amount must be a Decimal, got {type(self.amount).__name__}"
            )
        if self.amount < Decimal("0"):
            raise ValidationError(
                f"Money amount cannot be negative, got {self.amount}"
            )

    # --- Arithmetic helpers ---------------------------------------------------

    def __add__(self, other: Money) -> Money:
        self._assert_same_currency(other)
        return Money(self.amount + other.amount, self.currency)

    def __mul__(self, factor: int) -> Money:
        if not isinstance(factor, int):
            raise TypeError(f"Can only multiply Money by int, got {type(factor).__name__}")
        return Money(self.amount * factor, self.currency)

    # --- Display --------------------------------------------------------------

    def __str__(self) -> str:
        return f"${self.amount:.2f}"

    def _assert_same_currency(self, other: Money) -> None:
        if self.currency != other.currency:
            raise ValidationError(
                f"Cannot combine {self.currency} with {other.currency}"
            )

    # --- Factories ------------------------------------------------------------

    @staticmethod
    def of(amount: str | float | int | Decimal, currency: str = DEFAULT_CURRENCY) -> Money:
        """Convenient factory that coerces to Decimal safely."""
        try:
            return Money(Decimal(str(amount)), currency)
        except (InvalidOperation, ValueError) as exc:
            raise ValidationError(f"Invalid money amount: {amount!r}") from exc

    @staticmethod
    def zero(currency: str = DEFAULT_CURRENCY) -> Money:
        return Money(Decimal("0.00"), currency)


@dataclass(frozen=True)
class Quantity:
    """A positive integer quantity."""

    value: int

    def __post_init__(self) -> None:
        # bool is an int subclass; True is not a quantity
        if not isinstance(self.value, int) or isinstance(self.value, bool):
            raise ValidationError(
                f"Quantity must be an integer, got {type(self.value).__name__}"
            )
        if self.value <= 0:
            raise ValidationError("Quantity must be positive")

    def __str__(self) -> str:
        return str(self.value)


class Tier(Enum):
    """Candidate offering class."""

    EVALUATED = "EVALUATED"
    CV_ONLY = "CV_ONLY"

    @staticmethod
    def parse(raw: str | Tier) -> Tier:
        if isinstance(raw, Tier):
            return raw
        try:
            return Tier(str(raw).strip().upper())
        except ValueError as exc:
            raise ValidationError(
                f"Invalid tier '{raw}'. Must be EVALUATED or CV_ONLY"
            ) from exc


@dataclass(frozen=True, eq=False)
class SupplyKey:
    """Identifies one candidate pool: a (city, province, tier) triple.

    City and province keep their display spelling but compare
    case-insensitively, so 'laval' and 'Laval' share one pool.
    """

    city: str
    province: str
    tier: Tier

    def __post_init__(self) -> None:
        if not isinstance(self.city, str) or not self.city.strip():
            raise ValidationError("City is required")
        if not isinstance(self.province, str) or not self.province.strip():
            raise ValidationError("Province is required")
        object.__setattr__(self, "city", self.city.strip())
        object.__setattr__(self, "province", self.province.strip().upper())
        object.__setattr__(self, "tier", Tier.parse(self.tier))

    @property
    def identity(self) -> tuple[str, str, str]:
        return (self.city.casefold(), self.province.casefold(), self.tier.value)

    def same_place(self, city: str, province: str) -> bool:
        return (
            self.city.casefold() == city.strip().casefold()
            and self.province.casefold() == province.strip().casefold()
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SupplyKey):
            return NotImplemented
        return self.identity == other.identity

    def __hash__(self) -> int:
        return hash(self.identity)

    def __lt__(self, other: SupplyKey) -> bool:
        return self.identity < other.identity

    def __str__(self) -> str:
        return f"{self.city}, {self.province} [{self.tier.value}]"
