"""JSON-file-backed implementation of PricingStore."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal, InvalidOperation
from pathlib import Path

from tms.domain.exceptions import UpstreamUnavailableError
from tms.domain.model.pricing import PricingEntry
from tms.domain.model.value_objects import Money
from tms.domain.repository.pricing_store import PricingStore
from tms.infrastructure.persistence.json_file import JsonFile


class JsonPricingStore(PricingStore):

    def __init__(self, file_path: Path) -> None:
        self._file = JsonFile(file_path)

    # --- PricingStore interface -----------------------------------------------

    def get_pricing(self, city: str, province: str) -> PricingEntry | None:
        for entry in self.list_all():
            if _same(entry.city, city) and _same(entry.province, province):
                return entry
        return None

    def list_all(self) -> list[PricingEntry]:
        try:
            return [self._to_domain(raw) for raw in self._file.load()]
        except (OSError, ValueError, KeyError, InvalidOperation) as exc:
            raise UpstreamUnavailableError(f"Pricing store unreadable: {exc}") from exc

    def save(self, entry: PricingEntry) -> None:
        with self._file.lock:
            records = self._file.load()
            records = [
                r for r in records
                if not (_same(r["city"], entry.city) and _same(r["province"], entry.province))
            ]
            records.append(self._to_raw(entry))
            records.sort(key=lambda r: (r["province"], r["city"]))
            self._file.persist(records)

    # --- Serialization --------------------------------------------------------

    @staticmethod
    def _to_raw(entry: PricingEntry) -> dict:
        return {
            "city": entry.city,
            "province": entry.province,
            "evaluated_price": str(entry.evaluated_price.amount),
            "cv_only_price": str(entry.cv_only_price.amount),
            "currency": entry.evaluated_price.currency,
            "updated_at": entry.updated_at.isoformat(),
        }

    @staticmethod
    def _to_domain(raw: dict) -> PricingEntry:
        currency = raw.get("currency", "CAD")
        entry = PricingEntry(
            city=raw["city"],
            province=raw["province"],
            evaluated_price=Money(Decimal(raw["evaluated_price"]), currency),
            cv_only_price=Money(Decimal(raw["cv_only_price"]), currency),
        )
        if raw.get("updated_at"):
            entry.updated_at = datetime.fromisoformat(raw["updated_at"])
        return entry


def _same(a: str, b: str) -> bool:
    return a.strip().casefold() == b.strip().casefold()
