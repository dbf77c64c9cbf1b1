"""Unit tests for the Order aggregate and its business rules."""

import itertools

import pytest

from tms.domain.exceptions import EntityNotFoundError, InvalidTransitionError, ValidationError
from tms.domain.model.order import (
    ALLOWED_TRANSITIONS,
    MAX_LINES,
    RESERVING_STATUSES,
    Order,
    OrderStatus,
)
from tms.domain.model.value_objects import Money, SupplyKey, Tier

LAVAL_EVAL = SupplyKey("Laval", "QC", Tier.EVALUATED)
LAVAL_CV = SupplyKey("Laval", "QC", Tier.CV_ONLY)


def _draft_with_items() -> Order:
    order = Order.create("client-1")
    order.add_item(LAVAL_EVAL, 5, Money.of("33.00"))
    order.add_item(LAVAL_CV, 2, Money.of("7.75"))
    return order


def _order_in(status: OrderStatus) -> Order:
    order = _draft_with_items()
    order.status = status
    return order


class TestOrderCreation:

    def test_happy_path(self):
        order = Order.create("client-1")
        assert order.client_id == "client-1"
        assert order.status == OrderStatus.DRAFT
        assert order.items == []
        assert order.id is None  # assigned by repository
        assert order.version == 0

    def test_blank_client_rejected(self):
        with pytest.raises(ValidationError, match="Client id is required"):
            Order.create("  ")


class TestOrderLines:

    def test_total_is_sum_of_lines(self):
        order = _draft_with_items()
        assert order.total_amount == Money.of("180.50")

    def test_adding_same_pool_merges_lines(self):
        order = Order.create("client-1")
        order.add_item(LAVAL_EVAL, 2, Money.of("33.00"))
        order.add_item(SupplyKey("laval", "qc", "EVALUATED"), 3, Money.of("33.00"))
        assert len(order.items) == 1
        assert order.items[0].quantity.value == 5

    def test_merged_line_keeps_original_price(self):
        order = Order.create("client-1")
        order.add_item(LAVAL_EVAL, 2, Money.of("33.00"))
        order.add_item(LAVAL_EVAL, 1, Money.of("40.00"))
        assert order.items[0].unit_price == Money.of("33.00")
        assert order.total_amount == Money.of("99.00")

    def test_update_quantity_keeps_price(self):
        order = _draft_with_items()
        order.update_item_quantity(LAVAL_EVAL, 1)
        assert order.quantity_for(LAVAL_EVAL) == 1
        assert order.total_amount == Money.of("48.50")

    def test_zero_quantity_rejected(self):
        order = _draft_with_items()
        with pytest.raises(ValidationError, match="must be positive"):
            order.update_item_quantity(LAVAL_EVAL, 0)

    def test_remove_unknown_line_rejected(self):
        order = Order.create("client-1")
        with pytest.raises(EntityNotFoundError, match="No line"):
            order.remove_item(LAVAL_EVAL)

    def test_remove_and_clear(self):
        order = _draft_with_items()
        order.remove_item(LAVAL_CV)
        assert [line.key for line in order.items] == [LAVAL_EVAL]
        order.clear()
        assert order.items == []
        assert order.total_amount == Money.zero()

    def test_max_lines(self):
        order = Order.create("client-1")
        for i in range(MAX_LINES):
            order.add_item(SupplyKey(f"City{i}", "QC", Tier.EVALUATED), 1, Money.of("30"))
        with pytest.raises(ValidationError, match="Maximum"):
            order.add_item(SupplyKey("Extra", "QC", Tier.EVALUATED), 1, Money.of("30"))

    def test_requested_by_key(self):
        order = _draft_with_items()
        assert order.requested_by_key() == {LAVAL_EVAL: 5, LAVAL_CV: 2}

    @pytest.mark.parametrize("status", [s for s in OrderStatus if s != OrderStatus.DRAFT])
    def test_lines_frozen_outside_draft(self, status):
        order = _order_in(status)
        with pytest.raises(InvalidTransitionError):
            order.add_item(LAVAL_EVAL, 1, Money.of("33.00"))
        with pytest.raises(InvalidTransitionError):
            order.update_item_quantity(LAVAL_EVAL, 1)
        with pytest.raises(InvalidTransitionError):
            order.remove_item(LAVAL_EVAL)
        with pytest.raises(InvalidTransitionError):
            order.clear()


class TestOrderTransitions:

    @pytest.mark.parametrize(
        "source,target", list(itertools.product(OrderStatus, OrderStatus))
    )
    def test_only_table_transitions_succeed(self, source, target):
        order = _order_in(source)
        if target in ALLOWED_TRANSITIONS[source]:
            order.transition_to(target)
            assert order.status == target
        else:
            with pytest.raises(InvalidTransitionError):
                order.transition_to(target)
            assert order.status == source

    def test_terminal_statuses(self):
        assert {s for s in OrderStatus if s.is_terminal} == {
            OrderStatus.DELIVERED,
            OrderStatus.CANCELLED,
        }

    def test_reserving_statuses(self):
        assert RESERVING_STATUSES == {
            OrderStatus.SUBMITTED,
            OrderStatus.APPROVED,
            OrderStatus.PAID,
        }
        assert not OrderStatus.DELIVERED.reserves_supply

    def test_submit_sets_timestamp(self):
        order = _draft_with_items()
        order.submit()
        assert order.status == OrderStatus.SUBMITTED
        assert order.submitted_at is not None

    def test_submit_empty_order_rejected(self):
        order = Order.create("client-1")
        with pytest.raises(ValidationError, match="at least one item"):
            order.submit()
        assert order.status == OrderStatus.DRAFT

    def test_submit_twice_rejected(self):
        order = _draft_with_items()
        order.submit()
        with pytest.raises(InvalidTransitionError, match="expected DRAFT"):
            order.submit()

    def test_advance_status_records_notes(self):
        order = _order_in(OrderStatus.SUBMITTED)
        order.advance_status(OrderStatus.APPROVED, admin_notes="Call Monday")
        assert order.status == OrderStatus.APPROVED
        assert order.admin_notes == "Call Monday"

    def test_advance_status_refuses_submission(self):
        order = _order_in(OrderStatus.DRAFT)
        with pytest.raises(InvalidTransitionError, match="submit it instead"):
            order.advance_status(OrderStatus.SUBMITTED)
        assert order.status == OrderStatus.DRAFT
        assert order.submitted_at is None

    def test_paid_order_cannot_be_cancelled(self):
        order = _order_in(OrderStatus.PAID)
        with pytest.raises(InvalidTransitionError, match="PAID to CANCELLED"):
            order.cancel()

    def test_parse_unknown_status(self):
        with pytest.raises(ValidationError, match="Invalid status"):
            OrderStatus.parse("SHIPPED")
