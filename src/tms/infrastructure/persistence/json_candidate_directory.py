"""Read-only CandidateDirectory adapter over an exported candidates file.

The directory owns the candidate flags (archived, deleted, delivered, whether
an evaluation was completed); this adapter only reads them.  Any failure to
read the export is reported as the directory being unavailable.
"""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path
from typing import Any

from tms.domain.exceptions import UpstreamUnavailableError
from tms.domain.model.value_objects import SupplyKey, Tier
from tms.domain.repository.candidate_directory import CandidateDirectory, CityCount
from tms.infrastructure.persistence.json_file import JsonFile


class JsonCandidateDirectory(CandidateDirectory):

    def __init__(self, file_path: Path) -> None:
        self._file = JsonFile(file_path, create=False)

    # --- CandidateDirectory interface -----------------------------------------

    def count_eligible(self, key: SupplyKey) -> int:
        return sum(
            1
            for record in self._records()
            if key.same_place(record.get("city", ""), record.get("province", ""))
            and _eligible(record, key.tier)
        )

    def resolve_candidate_snapshot(
        self, candidate_id: str, field_mask: Iterable[str]
    ) -> dict[str, Any] | None:
        mask = set(field_mask)
        for record in self._records():
            if record.get("id") == candidate_id and not record.get("is_deleted", False):
                return {name: value for name, value in record.items() if name in mask}
        return None

    def list_cities(self) -> list[CityCount]:
        counts: dict[tuple[str, str], int] = {}
        labels: dict[tuple[str, str], tuple[str, str]] = {}
        for record in self._records():
            if not _eligible(record, Tier.EVALUATED):
                continue
            city = record.get("city", "").strip()
            province = record.get("province", "").strip().upper()
            if not city:
                continue
            ident = (city.casefold(), province.casefold())
            labels.setdefault(ident, (city, province))
            counts[ident] = counts.get(ident, 0) + 1
        result = [
            CityCount(city=labels[ident][0], province=labels[ident][1], count=n)
            for ident, n in counts.items()
        ]
        return sorted(result, key=lambda c: (-c.count, c.city))

    # --- Helpers --------------------------------------------------------------

    def _records(self) -> list[dict]:
        try:
            records = self._file.load()
        except (OSError, ValueError) as exc:
            raise UpstreamUnavailableError(f"Candidate directory unavailable: {exc}") from exc
        if not isinstance(records, list):
            raise UpstreamUnavailableError("Candidate directory export is malformed")
        return records


def _eligible(record: dict, tier: Tier) -> bool:
    if record.get("is_archived") or record.get("is_deleted") or record.get("is_delivered"):
        return False
    evaluated = bool(record.get("evaluation_completed"))
    if tier is Tier.EVALUATED:
        return evaluated
    return bool(record.get("cv_url")) and not evaluated
