"""JSON-file-backed implementation of CatalogueRepository."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path

from tms.domain.exceptions import ConcurrentModificationError, EntityNotFoundError
from tms.domain.model.catalogue import (
    Catalogue,
    CatalogueItem,
    CatalogueStatus,
    InclusionConfig,
)
from tms.domain.repository.catalogue_repository import CatalogueRepository
from tms.infrastructure.persistence.json_file import JsonFile


class JsonCatalogueRepository(CatalogueRepository):

    def __init__(self, file_path: Path) -> None:
        self._file = JsonFile(file_path)

    # --- CatalogueRepository interface ----------------------------------------

    def get_by_id(self, catalogue_id: int) -> Catalogue | None:
        for raw in self._file.load():
            if raw["id"] == catalogue_id:
                return self._to_domain(raw)
        return None

    def get_by_share_token(self, token: str) -> Catalogue | None:
        for raw in self._file.load():
            if raw.get("share_token") is not None and raw["share_token"] == token:
                return self._to_domain(raw)
        return None

    def list(
        self,
        client_id: str | None = None,
        status: CatalogueStatus | None = None,
    ) -> list[Catalogue]:
        catalogues = [self._to_domain(raw) for raw in self._file.load()]
        if client_id is not None:
            catalogues = [c for c in catalogues if c.client_id == client_id]
        if status is not None:
            catalogues = [c for c in catalogues if c.status == status]
        return sorted(catalogues, key=lambda c: c.created_at, reverse=True)

    def save(self, catalogue: Catalogue) -> None:
        with self._file.lock:
            records = self._file.load()
            if catalogue.id is None:
                catalogue.id = max((r["id"] for r in records), default=0) + 1

            for i, raw in enumerate(records):
                if raw["id"] == catalogue.id:
                    if raw.get("version", 0) != catalogue.version:
                        raise ConcurrentModificationError(
                            f"Catalogue #{catalogue.id} was modified by someone else; reload and retry"
                        )
                    catalogue.version += 1
                    records[i] = self._to_raw(catalogue)
                    break
            else:
                catalogue.version += 1
                records.append(self._to_raw(catalogue))
            self._file.persist(records)

    def record_view(self, catalogue_id: int, viewed_at: datetime) -> Catalogue:
        with self._file.lock:
            records = self._file.load()
            for raw in records:
                if raw["id"] == catalogue_id:
                    catalogue = self._to_domain(raw)
                    catalogue.record_view(viewed_at)
                    raw["view_count"] = catalogue.view_count
                    raw["viewed_at"] = _iso(catalogue.viewed_at)
                    raw["last_viewed_at"] = _iso(catalogue.last_viewed_at)
                    break
            else:
                raise EntityNotFoundError(f"Catalogue #{catalogue_id} not found")
            self._file.persist(records)
            return catalogue

    # --- Serialization --------------------------------------------------------

    @staticmethod
    def _to_raw(catalogue: Catalogue) -> dict:
        return {
            "id": catalogue.id,
            "title": catalogue.title,
            "client_id": catalogue.client_id,
            "status": catalogue.status.value,
            "custom_message": catalogue.custom_message,
            "inclusion": catalogue.inclusion.to_dict(),
            "is_content_restricted": catalogue.is_content_restricted,
            "order_id": catalogue.order_id,
            "share_token": catalogue.share_token,
            "share_token_expires_at": _iso(catalogue.share_token_expires_at),
            "created_at": catalogue.created_at.isoformat(),
            "sent_at": _iso(catalogue.sent_at),
            "view_count": catalogue.view_count,
            "viewed_at": _iso(catalogue.viewed_at),
            "last_viewed_at": _iso(catalogue.last_viewed_at),
            "version": catalogue.version,
            "items": [
                {
                    "candidate_id": item.candidate_id,
                    "position": item.position,
                    "snapshot": item.snapshot,
                }
                for item in catalogue.items
            ],
        }

    @staticmethod
    def _to_domain(raw: dict) -> Catalogue:
        return Catalogue(
            id=raw["id"],
            title=raw["title"],
            client_id=raw["client_id"],
            items=[
                CatalogueItem(
                    candidate_id=i["candidate_id"],
                    position=i["position"],
                    snapshot=i["snapshot"],
                )
                for i in raw["items"]
            ],
            inclusion=InclusionConfig.from_dict(raw.get("inclusion")),
            custom_message=raw.get("custom_message"),
            status=CatalogueStatus(raw["status"]),
            is_content_restricted=raw.get("is_content_restricted", False),
            order_id=raw.get("order_id"),
            share_token=raw.get("share_token"),
            share_token_expires_at=_parse(raw.get("share_token_expires_at")),
            created_at=datetime.fromisoformat(raw["created_at"]),
            sent_at=_parse(raw.get("sent_at")),
            view_count=raw.get("view_count", 0),
            viewed_at=_parse(raw.get("viewed_at")),
            last_viewed_at=_parse(raw.get("last_viewed_at")),
            version=raw.get("version", 0),
        )


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def _parse(value: str | None) -> datetime | None:
    return datetime.fromisoformat(value) if value else None
