"""Application service: Share Catalogue use case.

Issues the opaque token a catalogue is reachable by from outside.  A live
token is returned as-is on repeated calls; a new one is only drawn once the
previous link has expired, and tokens are never handed to another catalogue.
"""

from __future__ import annotations

import logging
import secrets
from collections.abc import Callable
from datetime import datetime, timedelta, timezone

from tms.application.dto import ShareLinkDTO, format_timestamp
from tms.domain.exceptions import EntityNotFoundError, ValidationError
from tms.domain.model.caller import Caller
from tms.domain.repository.catalogue_repository import CatalogueRepository

logger = logging.getLogger(__name__)

TOKEN_BYTES = 32


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ShareCatalogueHandler:

    def __init__(
        self,
        catalogue_repo: CatalogueRepository,
        public_url: str,
        default_days: int = 30,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._catalogue_repo = catalogue_repo
        self._public_url = public_url.rstrip("/")
        self._default_days = default_days
        self._clock = clock

    def handle(
        self, caller: Caller, catalogue_id: int, expiration_days: int | None = None
    ) -> ShareLinkDTO:
        caller.require_staff("share catalogues")
        days = self._default_days if expiration_days is None else expiration_days
        if days <= 0:
            raise ValidationError("Expiration must be at least one day")

        catalogue = self._catalogue_repo.get_by_id(catalogue_id)
        if catalogue is None:
            raise EntityNotFoundError(f"Catalogue #{catalogue_id} not found")

        now = self._clock()
        if not catalogue.has_live_share(now):
            catalogue.share(self._new_token(), now + timedelta(days=days), now)
            self._catalogue_repo.save(catalogue)
            logger.info(
                "share link issued for catalogue #%s, expires %s",
                catalogue.id, catalogue.share_token_expires_at,
            )

        return ShareLinkDTO(
            catalogue_id=catalogue.id,  # type: ignore[arg-type]
            share_token=catalogue.share_token,  # type: ignore[arg-type]
            share_url=f"{self._public_url}/catalogue/{catalogue.share_token}",
            expires_at=format_timestamp(catalogue.share_token_expires_at),
        )

    def _new_token(self) -> str:
        while True:
            token = secrets.token_urlsafe(TOKEN_BYTES)
            if self._catalogue_repo.get_by_share_token(token) is None:
                return token
