"""Abstract pricing store (per-city tariffs)."""

from __future__ import annotations

from abc import ABC, abstractmethod

from tms.domain.model.pricing import PricingEntry


class PricingStore(ABC):

    @abstractmethod
    def get_pricing(self, city: str, province: str) -> PricingEntry | None:
        """Return the city's entry, or None on a miss.

        Raises UpstreamUnavailableError when the store cannot be read.
        """

    @abstractmethod
    def list_all(self) -> list[PricingEntry]:
        """Return every stored entry."""

    @abstractmethod
    def save(self, entry: PricingEntry) -> None:
        """Insert or replace the entry for its (city, province)."""
