"""Application service: live availability queries.

The figures are advisory: they can change before the client submits, which
is why submission re-checks them under the pool locks.
"""

from __future__ import annotations

from tms.application.dto import AvailabilityDTO
from tms.domain.model.value_objects import SupplyKey, Tier
from tms.domain.repository.candidate_directory import CandidateDirectory, CityCount
from tms.domain.service.reservation_ledger import ReservationLedger


class ShowAvailabilityHandler:

    def __init__(self, ledger: ReservationLedger) -> None:
        self._ledger = ledger

    def handle(self, city: str, province: str) -> AvailabilityDTO:
        evaluated = SupplyKey(city, province, Tier.EVALUATED)
        cv_only = SupplyKey(city, province, Tier.CV_ONLY)
        return AvailabilityDTO(
            city=evaluated.city,
            province=evaluated.province,
            evaluated=self._ledger.available(evaluated),
            cv_only=self._ledger.available(cv_only),
        )


class ListCitiesHandler:

    def __init__(self, directory: CandidateDirectory) -> None:
        self._directory = directory

    def handle(self) -> list[CityCount]:
        return self._directory.list_cities()
