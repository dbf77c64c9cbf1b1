"""Application service: catalogue queries and client decisions."""

from __future__ import annotations

import logging

from tms.application.dto import CatalogueDTO
from tms.domain.exceptions import EntityNotFoundError, ValidationError
from tms.domain.model.caller import Caller
from tms.domain.model.catalogue import CatalogueStatus
from tms.domain.repository.catalogue_repository import CatalogueRepository

logger = logging.getLogger(__name__)

DECISION_STATUSES = (CatalogueStatus.ACCEPTE, CatalogueStatus.REFUSE)


class ShowCatalogueHandler:

    def __init__(self, catalogue_repo: CatalogueRepository) -> None:
        self._catalogue_repo = catalogue_repo

    def handle(self, caller: Caller, catalogue_id: int) -> CatalogueDTO:
        caller.require_staff("view catalogues")
        catalogue = self._catalogue_repo.get_by_id(catalogue_id)
        if catalogue is None:
            raise EntityNotFoundError(f"Catalogue #{catalogue_id} not found")
        return CatalogueDTO.from_catalogue(catalogue)


class UpdateCatalogueStatusHandler:

    def __init__(self, catalogue_repo: CatalogueRepository) -> None:
        self._catalogue_repo = catalogue_repo

    def handle(self, caller: Caller, catalogue_id: int, target: str) -> CatalogueDTO:
        """Record the client's answer (ACCEPTE or REFUSE)."""
        caller.require_staff("change catalogue status")
        status = CatalogueStatus.parse(target)
        if status not in DECISION_STATUSES:
            raise ValidationError("Catalogue status can only be set to ACCEPTE or REFUSE")

        catalogue = self._catalogue_repo.get_by_id(catalogue_id)
        if catalogue is None:
            raise EntityNotFoundError(f"Catalogue #{catalogue_id} not found")

        catalogue.transition_to(status)
        self._catalogue_repo.save(catalogue)
        logger.info("catalogue #%s marked %s by %s", catalogue.id, status.value, caller.id)
        return CatalogueDTO.from_catalogue(catalogue)
