"""Interface to the candidate directory.

Candidate storage, search and files live outside this package.  The
marketplace only needs pool sizes and field-masked snapshots.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

from tms.domain.model.value_objects import SupplyKey


@dataclass(frozen=True)
class CityCount:
    city: str
    province: str
    count: int


class CandidateDirectory(ABC):

    @abstractmethod
    def count_eligible(self, key: SupplyKey) -> int:
        """Number of candidates usable as supply for ``key``.

        Archived, deleted and already-delivered candidates are excluded.
        Raises UpstreamUnavailableError when the directory is unreachable.
        """

    @abstractmethod
    def resolve_candidate_snapshot(
        self, candidate_id: str, field_mask: Iterable[str]
    ) -> dict[str, Any] | None:
        """Return only the masked fields of a candidate, or None if unknown."""

    @abstractmethod
    def list_cities(self) -> list[CityCount]:
        """Cities holding evaluated candidates, largest pool first."""
