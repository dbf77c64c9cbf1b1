"""Tests for the supply/pricing resolvers and the reservation ledger."""

import threading

import pytest

from tms.domain.exceptions import UpstreamUnavailableError, ValidationError
from tms.domain.model.order import Order, OrderStatus
from tms.domain.model.pricing import PricingEntry
from tms.domain.model.value_objects import Money, SupplyKey, Tier
from tms.domain.service.key_locks import KeyLockRegistry
from tms.domain.service.pricing_resolver import PricingResolver
from tms.domain.service.reservation_ledger import ReservationLedger
from tms.domain.service.supply_resolver import SupplyResolver
from tests.fakes import FakeCandidateDirectory, FakeOrderRepository, FakePricingStore

LAVAL = SupplyKey("Laval", "QC", Tier.EVALUATED)


def _order(status: OrderStatus, qty: int, key: SupplyKey = LAVAL) -> Order:
    order = Order.create("client-1")
    order.add_item(key, qty, Money.of("33.00"))
    order.status = status
    return order


def _ledger(supply: int = 12):
    directory = FakeCandidateDirectory({LAVAL: supply})
    order_repo = FakeOrderRepository()
    ledger = ReservationLedger(order_repo, SupplyResolver(directory), KeyLockRegistry())
    return ledger, order_repo, directory


class TestSupplyResolver:

    def test_reads_directory(self):
        directory = FakeCandidateDirectory({LAVAL: 7})
        assert SupplyResolver(directory).supply(LAVAL) == 7

    def test_unknown_pool_is_empty(self):
        assert SupplyResolver(FakeCandidateDirectory()).supply(LAVAL) == 0

    def test_unavailable_directory_propagates(self):
        directory = FakeCandidateDirectory({LAVAL: 7})
        directory.unavailable = True
        with pytest.raises(UpstreamUnavailableError):
            SupplyResolver(directory).supply(LAVAL)

    def test_negative_count_is_an_upstream_failure(self):
        directory = FakeCandidateDirectory({LAVAL: -1})
        with pytest.raises(UpstreamUnavailableError, match="invalid count"):
            SupplyResolver(directory).supply(LAVAL)


class TestPricingResolver:

    def test_city_entry(self):
        store = FakePricingStore([
            PricingEntry("Laval", "QC", Money.of("33.00"), Money.of("7.75")),
        ])
        entry, is_default = PricingResolver(store).resolve("laval", "qc")
        assert not is_default
        assert entry.evaluated_price == Money.of("33.00")
        assert PricingResolver(store).price(SupplyKey("Laval", "QC", Tier.CV_ONLY)) == Money.of("7.75")

    def test_miss_falls_back_to_default(self):
        entry, is_default = PricingResolver(FakePricingStore()).resolve("Gatineau", "qc")
        assert is_default
        assert entry.city == "Gatineau"
        assert entry.province == "QC"
        assert entry.evaluated_price == Money.of("30.00")
        assert entry.cv_only_price == Money.of("7.50")

    def test_configured_default(self):
        default = PricingEntry.default(Money.of("31.00"), Money.of("8.00"))
        resolver = PricingResolver(FakePricingStore(), default)
        assert resolver.price(LAVAL) == Money.of("31.00")

    def test_unreadable_store_fails(self):
        store = FakePricingStore()
        store.unavailable = True
        with pytest.raises(UpstreamUnavailableError):
            PricingResolver(store).resolve("Laval", "QC")

    def test_non_positive_price_rejected(self):
        with pytest.raises(ValidationError, match="greater than zero"):
            PricingEntry("Laval", "QC", Money.of("0"), Money.of("7.75"))


class TestReservationLedger:

    def test_available_subtracts_reserving_orders(self):
        ledger, order_repo, _ = _ledger(supply=12)
        order_repo.save(_order(OrderStatus.SUBMITTED, 3))
        order_repo.save(_order(OrderStatus.APPROVED, 2))
        order_repo.save(_order(OrderStatus.PAID, 1))
        assert ledger.reserved(LAVAL) == 6
        assert ledger.available(LAVAL) == 6

    @pytest.mark.parametrize(
        "status", [OrderStatus.DRAFT, OrderStatus.CANCELLED, OrderStatus.DELIVERED]
    )
    def test_non_reserving_statuses_ignored(self, status):
        ledger, order_repo, _ = _ledger(supply=12)
        order_repo.save(_order(status, 5))
        assert ledger.available(LAVAL) == 12

    def test_other_pools_ignored(self):
        ledger, order_repo, _ = _ledger(supply=12)
        order_repo.save(_order(OrderStatus.SUBMITTED, 5, SupplyKey("Laval", "QC", Tier.CV_ONLY)))
        order_repo.save(_order(OrderStatus.SUBMITTED, 5, SupplyKey("Montréal", "QC", Tier.EVALUATED)))
        assert ledger.available(LAVAL) == 12

    def test_available_never_negative(self):
        ledger, order_repo, directory = _ledger(supply=12)
        order_repo.save(_order(OrderStatus.SUBMITTED, 10))
        directory.counts[LAVAL] = 4  # candidates archived after the reservation
        assert ledger.available(LAVAL) == 0

    def test_check_reports_every_short_key(self):
        cv = SupplyKey("Laval", "QC", Tier.CV_ONLY)
        ledger, _, directory = _ledger(supply=2)
        directory.counts[cv] = 1
        shortfalls = ledger.check({LAVAL: 3, cv: 4})
        assert [(s.key, s.requested, s.available, s.missing) for s in shortfalls] == [
            (cv, 4, 1, 3),
            (LAVAL, 3, 2, 1),
        ]

    def test_check_passes_when_exactly_available(self):
        ledger, _, _ = _ledger(supply=3)
        assert ledger.check({LAVAL: 3}) == []


class TestKeyLocks:

    def test_same_key_shares_a_lock(self):
        registry = KeyLockRegistry()
        assert registry.lock_for(LAVAL) is registry.lock_for(SupplyKey("laval", "qc", "EVALUATED"))

    def test_hold_releases_on_error(self):
        registry = KeyLockRegistry()
        with pytest.raises(RuntimeError):
            with registry.hold([LAVAL]):
                raise RuntimeError("boom")
        assert not registry.lock_for(LAVAL).locked()

    def test_hold_blocks_other_threads_on_same_key(self):
        registry = KeyLockRegistry()
        other = SupplyKey("Montréal", "QC", Tier.EVALUATED)
        acquired = {}

        def grab(key, name):
            acquired[name] = registry.lock_for(key).acquire(blocking=False)
            if acquired[name]:
                registry.lock_for(key).release()

        with registry.hold([LAVAL]):
            t1 = threading.Thread(target=grab, args=(LAVAL, "same"))
            t2 = threading.Thread(target=grab, args=(other, "disjoint"))
            t1.start()
            t2.start()
            t1.join()
            t2.join()

        assert acquired == {"same": False, "disjoint": True}
