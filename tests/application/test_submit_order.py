"""Integration tests for the SubmitOrder use case (the oversell guard)."""

import threading

import pytest

from tms.application.add_order_item import AddOrderItemHandler
from tms.application.cancel_order import CancelOrderHandler
from tms.application.create_order import CreateOrderHandler
from tms.application.submit_order import SubmitOrderHandler
from tms.domain.exceptions import (
    InsufficientAvailabilityError,
    InvalidTransitionError,
    PermissionDeniedError,
    UpstreamUnavailableError,
    ValidationError,
)
from tms.domain.model.caller import Caller
from tms.domain.model.order import OrderStatus
from tms.domain.model.value_objects import SupplyKey, Tier
from tms.domain.service.key_locks import KeyLockRegistry
from tms.domain.service.pricing_resolver import PricingResolver
from tms.domain.service.reservation_ledger import ReservationLedger
from tms.domain.service.supply_resolver import SupplyResolver
from tests.fakes import FakeCandidateDirectory, FakeOrderRepository, FakePricingStore

LAVAL_EVAL = SupplyKey("Laval", "QC", Tier.EVALUATED)
LAVAL_CV = SupplyKey("Laval", "QC", Tier.CV_ONLY)


def _setup(evaluated: int = 12, cv_only: int = 0):
    directory = FakeCandidateDirectory({LAVAL_EVAL: evaluated, LAVAL_CV: cv_only})
    order_repo = FakeOrderRepository()
    ledger = ReservationLedger(order_repo, SupplyResolver(directory), KeyLockRegistry())
    return order_repo, ledger, directory


def _draft(order_repo, client_id: str, lines: list[tuple[str, int]]) -> int:
    caller = Caller.client(client_id)
    dto = CreateOrderHandler(order_repo).handle(caller)
    add = AddOrderItemHandler(order_repo, PricingResolver(FakePricingStore()))
    for tier, qty in lines:
        add.handle(caller, dto.id, "Laval", "QC", tier, qty)
    return dto.id


class TestSubmitHappyPath:

    def test_submit_reserves_candidates(self):
        order_repo, ledger, _ = _setup(evaluated=12)
        order_id = _draft(order_repo, "client-a", [("EVALUATED", 10)])

        dto = SubmitOrderHandler(order_repo, ledger).handle(Caller.client("client-a"), order_id)

        assert dto.status == "SUBMITTED"
        assert dto.submitted_at is not None
        assert ledger.available(LAVAL_EVAL) == 2

    def test_staff_may_submit_for_client(self):
        order_repo, ledger, _ = _setup()
        order_id = _draft(order_repo, "client-a", [("EVALUATED", 1)])
        dto = SubmitOrderHandler(order_repo, ledger).handle(Caller.staff("ops"), order_id)
        assert dto.status == "SUBMITTED"


class TestSubmitRejections:

    def test_second_client_sees_shortfall(self):
        order_repo, ledger, _ = _setup(evaluated=12)
        first = _draft(order_repo, "client-a", [("EVALUATED", 10)])
        second = _draft(order_repo, "client-b", [("EVALUATED", 5)])
        handler = SubmitOrderHandler(order_repo, ledger)
        handler.handle(Caller.client("client-a"), first)

        with pytest.raises(InsufficientAvailabilityError) as exc_info:
            handler.handle(Caller.client("client-b"), second)

        [shortfall] = exc_info.value.shortfalls
        assert shortfall.key == LAVAL_EVAL
        assert (shortfall.requested, shortfall.available, shortfall.missing) == (5, 2, 3)
        assert exc_info.value.details()["shortfalls"][0]["shortfall"] == 3
        assert order_repo.get_by_id(second).status == OrderStatus.DRAFT
        assert ledger.available(LAVAL_EVAL) == 2

    def test_all_or_nothing_across_pools(self):
        order_repo, ledger, _ = _setup(evaluated=12, cv_only=1)
        order_id = _draft(order_repo, "client-a", [("EVALUATED", 3), ("CV_ONLY", 2)])

        with pytest.raises(InsufficientAvailabilityError) as exc_info:
            SubmitOrderHandler(order_repo, ledger).handle(Caller.client("client-a"), order_id)

        assert [s.key for s in exc_info.value.shortfalls] == [LAVAL_CV]
        assert order_repo.get_by_id(order_id).status == OrderStatus.DRAFT
        assert ledger.available(LAVAL_EVAL) == 12

    def test_empty_order_rejected(self):
        order_repo, ledger, _ = _setup()
        order_id = _draft(order_repo, "client-a", [])
        with pytest.raises(ValidationError, match="at least one item"):
            SubmitOrderHandler(order_repo, ledger).handle(Caller.client("client-a"), order_id)

    def test_already_submitted_rejected(self):
        order_repo, ledger, _ = _setup()
        order_id = _draft(order_repo, "client-a", [("EVALUATED", 1)])
        handler = SubmitOrderHandler(order_repo, ledger)
        handler.handle(Caller.client("client-a"), order_id)
        with pytest.raises(InvalidTransitionError, match="expected DRAFT"):
            handler.handle(Caller.client("client-a"), order_id)

    def test_other_client_forbidden(self):
        order_repo, ledger, _ = _setup()
        order_id = _draft(order_repo, "client-a", [("EVALUATED", 1)])
        with pytest.raises(PermissionDeniedError):
            SubmitOrderHandler(order_repo, ledger).handle(Caller.client("client-b"), order_id)

    def test_directory_outage_fails_submission(self):
        order_repo, ledger, directory = _setup()
        order_id = _draft(order_repo, "client-a", [("EVALUATED", 1)])
        directory.unavailable = True
        with pytest.raises(UpstreamUnavailableError):
            SubmitOrderHandler(order_repo, ledger).handle(Caller.client("client-a"), order_id)
        assert order_repo.get_by_id(order_id).status == OrderStatus.DRAFT


class TestConcurrentSubmissions:

    def test_parallel_submissions_never_oversell(self):
        supply = 4
        order_repo, ledger, _ = _setup(evaluated=supply)
        clients = [f"client-{i}" for i in range(10)]
        order_ids = {c: _draft(order_repo, c, [("EVALUATED", 1)]) for c in clients}

        barrier = threading.Barrier(len(clients))
        outcomes: dict[str, str] = {}

        def submit(client_id: str) -> None:
            handler = SubmitOrderHandler(order_repo, ledger)
            barrier.wait()
            try:
                handler.handle(Caller.client(client_id), order_ids[client_id])
                outcomes[client_id] = "ok"
            except InsufficientAvailabilityError:
                outcomes[client_id] = "short"

        threads = [threading.Thread(target=submit, args=(c,)) for c in clients]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert list(outcomes.values()).count("ok") == supply
        assert list(outcomes.values()).count("short") == len(clients) - supply
        assert ledger.reserved(LAVAL_EVAL) == supply
        assert ledger.available(LAVAL_EVAL) == 0

    def test_cancellation_frees_units_for_next_submission(self):
        order_repo, ledger, _ = _setup(evaluated=12)
        first = _draft(order_repo, "client-a", [("EVALUATED", 10)])
        second = _draft(order_repo, "client-b", [("EVALUATED", 5)])
        submit = SubmitOrderHandler(order_repo, ledger)
        submit.handle(Caller.client("client-a"), first)

        CancelOrderHandler(order_repo).handle(Caller.client("client-a"), first)
        assert ledger.available(LAVAL_EVAL) == 12

        dto = submit.handle(Caller.client("client-b"), second)
        assert dto.status == "SUBMITTED"
        assert ledger.available(LAVAL_EVAL) == 7
