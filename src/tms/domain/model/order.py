"""Order aggregate (the client's wishlist), the core of the domain.

The Order is an aggregate root that owns its lines.  Every status change
goes through ``transition_to`` so the transition table is checked in one
place.  Lines are editable only while the order is a DRAFT; after that
only ``status`` and ``admin_notes`` change.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

from tms.domain.exceptions import (
    EntityNotFoundError,
    InvalidTransitionError,
    ValidationError,
)
from tms.domain.model.value_objects import Money, Quantity, SupplyKey


class OrderStatus(Enum):
    DRAFT = "DRAFT"
    SUBMITTED = "SUBMITTED"
    APPROVED = "APPROVED"
    PAID = "PAID"
    DELIVERED = "DELIVERED"
    CANCELLED = "CANCELLED"

    @property
    def is_terminal(self) -> bool:
        return not ALLOWED_TRANSITIONS[self]

    @property
    def reserves_supply(self) -> bool:
        return self in RESERVING_STATUSES

    @staticmethod
    def parse(raw: str | OrderStatus) -> OrderStatus:
        if isinstance(raw, OrderStatus):
            return raw
        try:
            return OrderStatus(str(raw).strip().upper())
        except ValueError as exc:
            raise ValidationError(f"Invalid status '{raw}'") from exc


ALLOWED_TRANSITIONS: dict[OrderStatus, frozenset[OrderStatus]] = {
    OrderStatus.DRAFT: frozenset({OrderStatus.SUBMITTED, OrderStatus.CANCELLED}),
    OrderStatus.SUBMITTED: frozenset({OrderStatus.APPROVED, OrderStatus.CANCELLED}),
    OrderStatus.APPROVED: frozenset({OrderStatus.PAID, OrderStatus.CANCELLED}),
    OrderStatus.PAID: frozenset({OrderStatus.DELIVERED}),
    OrderStatus.DELIVERED: frozenset(),
    OrderStatus.CANCELLED: frozenset(),
}

# DELIVERED units leave the directory's eligible pool instead.
RESERVING_STATUSES = frozenset(
    {OrderStatus.SUBMITTED, OrderStatus.APPROVED, OrderStatus.PAID}
)


@dataclass
class OrderLine:
    """A requested quantity of one candidate pool.

    ``unit_price`` is the tier price captured when the line was first added
    and is never re-read from the tariff afterwards.
    """

    key: SupplyKey
    quantity: Quantity
    unit_price: Money
    notes: str | None = None

    @property
    def total_price(self) -> Money:
        return self.unit_price * self.quantity.value


MAX_LINES = 50


@dataclass
class Order:
    """Aggregate root for client requests.

    Use ``Order.create()`` for new orders.  The ``__init__`` stays simple so
    the repository can reconstitute persisted orders without re-validating.
    ``version`` is owned by the repository for optimistic locking.
    """

    id: int | None
    client_id: str
    items: list[OrderLine] = field(default_factory=list)
    status: OrderStatus = OrderStatus.DRAFT
    admin_notes: str | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    submitted_at: datetime | None = None
    version: int = 0

    # --- Factory --------------------------------------------------------------

    @staticmethod
    def create(client_id: str) -> Order:
        if not client_id or not client_id.strip():
            raise ValidationError("Client id is required")
        return Order(id=None, client_id=client_id.strip())

    # --- Line editing (DRAFT only) --------------------------------------------

    def add_item(
        self,
        key: SupplyKey,
        quantity: int,
        unit_price: Money,
        notes: str | None = None,
    ) -> OrderLine:
        """Add a line, or grow the existing line for the same pool.

        A merged line keeps its original price snapshot.
        """
        self._require_draft("add items to")
        qty = Quantity(quantity)

        existing = self._find_line_or_none(key)
        if existing is not None:
            existing.quantity = Quantity(existing.quantity.value + qty.value)
            if notes:
                existing.notes = notes
            self._touch()
            return existing

        if len(self.items) >= MAX_LINES:
            raise ValidationError(f"Maximum {MAX_LINES} lines per order")

        line = OrderLine(key=key, quantity=qty, unit_price=unit_price, notes=notes)
        self.items.append(line)
        self._touch()
        return line

    def update_item_quantity(self, key: SupplyKey, quantity: int) -> OrderLine:
        self._require_draft("modify")
        line = self._find_line(key)
        line.quantity = Quantity(quantity)
        self._touch()
        return line

    def remove_item(self, key: SupplyKey) -> None:
        self._require_draft("modify")
        line = self._find_line(key)
        self.items.remove(line)
        self._touch()

    def clear(self) -> None:
        self._require_draft("modify")
        self.items = []
        self._touch()

    # --- State transitions ----------------------------------------------------

    def transition_to(self, target: OrderStatus) -> None:
        """The single point where the transition table is enforced."""
        if target not in ALLOWED_TRANSITIONS[self.status]:
            raise InvalidTransitionError(
                f"Cannot move order from {self.status.value} to {target.value}"
            )
        self.status = target
        self._touch()

    def submit(self) -> None:
        """Transition DRAFT -> SUBMITTED.

        The availability check and reservation are coordinated by the
        submission handler, which holds the pool locks around this call
        and the save that follows it.
        """
        self.ensure_submittable()
        self.transition_to(OrderStatus.SUBMITTED)
        self.submitted_at = self.updated_at

    def ensure_submittable(self) -> None:
        if self.status != OrderStatus.DRAFT:
            raise InvalidTransitionError(
                f"Cannot submit order: current status is {self.status.value}, "
                f"expected DRAFT"
            )
        if not self.items:
            raise ValidationError("Order must contain at least one item")

    def advance_status(self, target: OrderStatus, admin_notes: str | None = None) -> None:
        """Staff move along the lifecycle table.

        Submission is refused here: it must pass the availability check, which
        only the submit use case performs.
        """
        if target == OrderStatus.SUBMITTED:
            raise InvalidTransitionError(
                f"Cannot move order #{self.id} to SUBMITTED directly; submit it instead"
            )
        self.transition_to(target)
        if admin_notes is not None:
            self.admin_notes = admin_notes

    def cancel(self) -> None:
        """Soft-cancel; the order and its lines stay on record."""
        self.transition_to(OrderStatus.CANCELLED)

    # --- Computed properties --------------------------------------------------

    @property
    def total_amount(self) -> Money:
        result = Money.zero()
        for line in self.items:
            result = result + line.total_price
        return result

    @property
    def is_reserving(self) -> bool:
        return self.status.reserves_supply

    def requested_by_key(self) -> dict[SupplyKey, int]:
        requested: dict[SupplyKey, int] = {}
        for line in self.items:
            requested[line.key] = requested.get(line.key, 0) + line.quantity.value
        return requested

    def quantity_for(self, key: SupplyKey) -> int:
        return self.requested_by_key().get(key, 0)

    # --- Internal helpers -----------------------------------------------------

    def _require_draft(self, action: str) -> None:
        if self.status != OrderStatus.DRAFT:
            raise InvalidTransitionError(
                f"Cannot {action} an order in {self.status.value} status"
            )

    def _find_line_or_none(self, key: SupplyKey) -> OrderLine | None:
        for line in self.items:
            if line.key == key:
                return line
        return None

    def _find_line(self, key: SupplyKey) -> OrderLine:
        line = self._find_line_or_none(key)
        if line is None:
            raise EntityNotFoundError(f"No line for {key} in this order")
        return line

    def _touch(self) -> None:
        self.updated_at = datetime.now(timezone.utc)
