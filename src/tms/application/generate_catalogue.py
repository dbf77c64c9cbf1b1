"""Application service: Generate Catalogue use case.

Resolves every selected candidate through the inclusion field mask and
freezes the result on the catalogue.  Any unknown candidate fails the whole
generation; partial catalogues are never stored.
"""

from __future__ import annotations

import logging
from typing import Any

from tms.application.dto import CatalogueDTO
from tms.domain.exceptions import (
    CandidateNotFoundError,
    EmptySelectionError,
    EntityNotFoundError,
    ValidationError,
)
from tms.domain.model.caller import Caller
from tms.domain.model.catalogue import Catalogue, CatalogueItem, InclusionConfig
from tms.domain.model.order import OrderStatus
from tms.domain.repository.candidate_directory import CandidateDirectory
from tms.domain.repository.catalogue_repository import CatalogueRepository
from tms.domain.repository.order_repository import OrderRepository

logger = logging.getLogger(__name__)

FULFILLABLE_STATUSES = (OrderStatus.APPROVED, OrderStatus.PAID, OrderStatus.DELIVERED)
PAID_STATUSES = (OrderStatus.PAID, OrderStatus.DELIVERED)


class GenerateCatalogueHandler:

    def __init__(
        self,
        catalogue_repo: CatalogueRepository,
        directory: CandidateDirectory,
        order_repo: OrderRepository,
    ) -> None:
        self._catalogue_repo = catalogue_repo
        self._directory = directory
        self._order_repo = order_repo

    def handle(
        self,
        caller: Caller,
        client_id: str,
        title: str,
        candidate_ids: list[str],
        inclusion: InclusionConfig | dict[str, Any] | None = None,
        custom_message: str | None = None,
        order_id: int | None = None,
        requires_payment: bool = False,
    ) -> CatalogueDTO:
        """Build and store a GENERE catalogue.

        Content is restricted when the catalogue requires payment and is not
        tied to a paid order.  The flag is fixed here for the catalogue's
        whole life.
        """
        caller.require_staff("generate catalogues")
        if not isinstance(inclusion, InclusionConfig):
            inclusion = InclusionConfig.from_dict(inclusion)

        selected = list(dict.fromkeys(cid.strip() for cid in candidate_ids if cid and cid.strip()))
        if not selected:
            raise EmptySelectionError("At least one candidate must be selected")

        paid = self._check_order(order_id, client_id) if order_id is not None else False

        mask = inclusion.field_mask()
        items: list[CatalogueItem] = []
        for position, candidate_id in enumerate(selected, start=1):
            snapshot = self._directory.resolve_candidate_snapshot(candidate_id, mask)
            if snapshot is None:
                raise CandidateNotFoundError(candidate_id)
            items.append(
                CatalogueItem(
                    candidate_id=candidate_id,
                    position=position,
                    snapshot={k: v for k, v in snapshot.items() if k in mask},
                )
            )

        catalogue = Catalogue.generate(
            title=title,
            client_id=client_id,
            items=items,
            inclusion=inclusion,
            custom_message=custom_message,
            is_content_restricted=requires_payment and not paid,
            order_id=order_id,
        )
        self._catalogue_repo.save(catalogue)
        logger.info(
            "catalogue #%s generated for client %s with %d candidate(s)%s",
            catalogue.id, catalogue.client_id, len(items),
            " (restricted)" if catalogue.is_content_restricted else "",
        )
        return CatalogueDTO.from_catalogue(catalogue)

    def _check_order(self, order_id: int, client_id: str) -> bool:
        """Validate the originating order and report whether it is paid."""
        order = self._order_repo.get_by_id(order_id)
        if order is None:
            raise EntityNotFoundError(f"Order #{order_id} not found")
        if order.client_id != client_id:
            raise ValidationError(f"Order #{order_id} belongs to another client")
        if order.status not in FULFILLABLE_STATUSES:
            raise ValidationError(
                f"Order #{order_id} is {order.status.value}; a catalogue can only "
                f"fulfil an APPROVED, PAID or DELIVERED order"
            )
        return order.status in PAID_STATUSES
