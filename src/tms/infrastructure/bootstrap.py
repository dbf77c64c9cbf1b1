"""Composition root: wires concrete implementations to domain interfaces.

This is the only place in the codebase that knows about *all* layers.
Every other module depends only on abstractions.  Stores and pool locks are
built once per process so every handler shares them; the locks are files under
the data directory, so other processes on the same data contend on them too.
"""

from __future__ import annotations

from functools import lru_cache

from tms.domain.model.pricing import PricingEntry
from tms.domain.model.value_objects import Money
from tms.domain.service.pricing_resolver import PricingResolver
from tms.domain.service.reservation_ledger import ReservationLedger
from tms.domain.service.supply_resolver import SupplyResolver
from tms.infrastructure.config import get_config
from tms.infrastructure.persistence.file_lock import FileKeyLockRegistry
from tms.infrastructure.persistence.json_candidate_directory import (
    JsonCandidateDirectory,
)
from tms.infrastructure.persistence.json_catalogue_repository import (
    JsonCatalogueRepository,
)
from tms.infrastructure.persistence.json_order_repository import (
    JsonOrderRepository,
)
from tms.infrastructure.persistence.json_pricing_store import JsonPricingStore


@lru_cache(maxsize=None)
def order_repository() -> JsonOrderRepository:
    return JsonOrderRepository(get_config().orders_file)


@lru_cache(maxsize=None)
def pricing_store() -> JsonPricingStore:
    return JsonPricingStore(get_config().pricing_file)


@lru_cache(maxsize=None)
def catalogue_repository() -> JsonCatalogueRepository:
    return JsonCatalogueRepository(get_config().catalogues_file)


@lru_cache(maxsize=None)
def candidate_directory() -> JsonCandidateDirectory:
    return JsonCandidateDirectory(get_config().candidates_file)


@lru_cache(maxsize=None)
def key_locks() -> FileKeyLockRegistry:
    return FileKeyLockRegistry(get_config().lock_dir)


def default_tariff() -> PricingEntry:
    config = get_config()
    return PricingEntry.default(
        evaluated_price=Money(config.DEFAULT_EVALUATED_PRICE),
        cv_only_price=Money(config.DEFAULT_CV_ONLY_PRICE),
    )


def pricing_resolver() -> PricingResolver:
    return PricingResolver(pricing_store(), default_tariff())


def reservation_ledger() -> ReservationLedger:
    return ReservationLedger(
        order_repository(), SupplyResolver(candidate_directory()), key_locks()
    )
