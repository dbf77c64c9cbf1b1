"""Abstract repository for the Catalogue aggregate."""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime

from tms.domain.model.catalogue import Catalogue, CatalogueStatus


class CatalogueRepository(ABC):

    @abstractmethod
    def get_by_id(self, catalogue_id: int) -> Catalogue | None:
        """Return a catalogue by its ID, or None if not found."""

    @abstractmethod
    def get_by_share_token(self, token: str) -> Catalogue | None:
        """Return the catalogue holding ``token``, or None."""

    @abstractmethod
    def list(
        self,
        client_id: str | None = None,
        status: CatalogueStatus | None = None,
    ) -> list[Catalogue]:
        """Return matching catalogues, newest first."""

    @abstractmethod
    def save(self, catalogue: Catalogue) -> None:
        """Persist a new or updated catalogue, assigning an id if needed.

        Raises ConcurrentModificationError when the stored version differs
        from ``catalogue.version``; on success the version is incremented on
        both the store and the passed object.
        """

    @abstractmethod
    def record_view(self, catalogue_id: int, viewed_at: datetime) -> Catalogue:
        """Count one share-link view against the stored catalogue.

        Only the view counters change, in one atomic step, so a concurrent
        status decision is never overwritten.  Returns the updated catalogue.
        Raises EntityNotFoundError when the catalogue no longer exists.
        """
