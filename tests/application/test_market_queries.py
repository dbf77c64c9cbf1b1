"""Integration tests for availability and pricing queries."""

import pytest

from tms.application.set_pricing import SetPricingHandler
from tms.application.show_availability import ListCitiesHandler, ShowAvailabilityHandler
from tms.application.show_pricing import ShowPricingHandler
from tms.domain.exceptions import PermissionDeniedError, ValidationError
from tms.domain.model.caller import Caller
from tms.domain.model.order import Order, OrderStatus
from tms.domain.model.value_objects import Money, SupplyKey, Tier
from tms.domain.service.key_locks import KeyLockRegistry
from tms.domain.service.pricing_resolver import PricingResolver
from tms.domain.service.reservation_ledger import ReservationLedger
from tms.domain.service.supply_resolver import SupplyResolver
from tests.fakes import FakeCandidateDirectory, FakeOrderRepository, FakePricingStore

LAVAL_EVAL = SupplyKey("Laval", "QC", Tier.EVALUATED)
LAVAL_CV = SupplyKey("Laval", "QC", Tier.CV_ONLY)


class TestShowAvailability:

    def test_per_tier_counts(self):
        directory = FakeCandidateDirectory({LAVAL_EVAL: 12, LAVAL_CV: 4})
        order_repo = FakeOrderRepository()
        order = Order.create("client-1")
        order.add_item(LAVAL_EVAL, 10, Money.of("33.00"))
        order.status = OrderStatus.SUBMITTED
        order_repo.save(order)
        ledger = ReservationLedger(order_repo, SupplyResolver(directory), KeyLockRegistry())

        dto = ShowAvailabilityHandler(ledger).handle("laval", "qc")

        assert dto.to_dict() == {"city": "laval", "province": "QC", "evaluated": 2, "cvOnly": 4}

    def test_list_cities(self):
        directory = FakeCandidateDirectory({LAVAL_EVAL: 12, LAVAL_CV: 4})
        [city] = ListCitiesHandler(directory).handle()
        assert (city.city, city.count) == ("Laval", 12)


class TestPricing:

    def test_show_default(self):
        dto = ShowPricingHandler(PricingResolver(FakePricingStore())).handle("Gatineau", "QC")
        assert dto.to_dict() == {
            "city": "Gatineau",
            "province": "QC",
            "evaluatedPrice": "30.00",
            "cvOnlyPrice": "7.50",
            "isDefault": True,
        }

    def test_set_then_show(self):
        store = FakePricingStore()
        SetPricingHandler(store).handle(Caller.staff("ops"), "Laval", "qc", "33.00", "7.75")
        dto = ShowPricingHandler(PricingResolver(store)).handle("LAVAL", "QC")
        assert not dto.is_default
        assert (dto.evaluated_price, dto.cv_only_price) == ("33.00", "7.75")

    def test_set_is_staff_only(self):
        with pytest.raises(PermissionDeniedError):
            SetPricingHandler(FakePricingStore()).handle(
                Caller.client("client-1"), "Laval", "QC", "1.00", "1.00"
            )

    def test_zero_price_rejected(self):
        with pytest.raises(ValidationError, match="greater than zero"):
            SetPricingHandler(FakePricingStore()).handle(
                Caller.staff("ops"), "Laval", "QC", "0", "7.75"
            )

    def test_blank_city_rejected(self):
        with pytest.raises(ValidationError, match="City is required"):
            ShowPricingHandler(PricingResolver(FakePricingStore())).handle(" ", "QC")
