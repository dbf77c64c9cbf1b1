"""Application service: Share Access Gate.

Public, unauthenticated.  Maps a token to its catalogue and hands back the
restriction flag together with items already passed through the field gate;
no field decisions are made here.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, timezone

from tms.application.dto import CatalogueItemDTO, SharedCatalogueDTO
from tms.domain.exceptions import EntityNotFoundError, ShareLinkExpiredError
from tms.domain.repository.catalogue_repository import CatalogueRepository

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ResolveSharedCatalogueHandler:

    def __init__(
        self,
        catalogue_repo: CatalogueRepository,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._catalogue_repo = catalogue_repo
        self._clock = clock

    def handle(self, token: str) -> SharedCatalogueDTO:
        catalogue = self._catalogue_repo.get_by_share_token(token) if token else None
        if catalogue is None:
            raise EntityNotFoundError("Catalogue not found")

        now = self._clock()
        if catalogue.share_expired(now):
            raise ShareLinkExpiredError("This share link has expired")

        catalogue = self._catalogue_repo.record_view(catalogue.id, now)
        logger.info("catalogue #%s viewed via share link (%d views)", catalogue.id, catalogue.view_count)

        restricted = catalogue.is_content_restricted
        return SharedCatalogueDTO(
            title=catalogue.title,
            custom_message=catalogue.custom_message,
            is_content_restricted=restricted,
            items=[
                CatalogueItemDTO(
                    candidate_id=item.candidate_id,
                    position=item.position,
                    fields=item.visible_fields(restricted),
                )
                for item in sorted(catalogue.items, key=lambda i: i.position)
            ],
        )
