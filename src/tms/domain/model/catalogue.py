"""Catalogue aggregate: the deliverable listing specific candidates.

Items hold a snapshot of the candidate fields the inclusion configuration
allowed at generation time, so a catalogue stays stable when the candidate
record later changes.  Every read of an item field goes through
``is_field_visible`` so a restricted catalogue cannot leak a sensitive field
through any rendering path.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from tms.domain.exceptions import InvalidTransitionError, ValidationError


class CatalogueStatus(Enum):
    BROUILLON = "BROUILLON"
    GENERE = "GENERE"
    ENVOYE = "ENVOYE"
    ACCEPTE = "ACCEPTE"
    REFUSE = "REFUSE"

    @staticmethod
    def parse(raw: str | CatalogueStatus) -> CatalogueStatus:
        if isinstance(raw, CatalogueStatus):
            return raw
        try:
            return CatalogueStatus(str(raw).strip().upper())
        except ValueError as exc:
            raise ValidationError(f"Invalid catalogue status '{raw}'") from exc


CATALOGUE_TRANSITIONS: dict[CatalogueStatus, frozenset[CatalogueStatus]] = {
    CatalogueStatus.BROUILLON: frozenset({CatalogueStatus.GENERE}),
    CatalogueStatus.GENERE: frozenset(
        {CatalogueStatus.ENVOYE, CatalogueStatus.ACCEPTE, CatalogueStatus.REFUSE}
    ),
    CatalogueStatus.ENVOYE: frozenset({CatalogueStatus.ACCEPTE, CatalogueStatus.REFUSE}),
    CatalogueStatus.ACCEPTE: frozenset(),
    CatalogueStatus.REFUSE: frozenset(),
}

# Always part of a snapshot, whatever the configuration says.
BASE_FIELDS = ("id", "first_name", "city", "province")

SECTION_FIELDS: dict[str, tuple[str, ...]] = {
    "include_summary": ("summary", "global_rating", "status"),
    "include_details": (
        "last_name",
        "email",
        "phone",
        "address",
        "languages",
        "availability",
        "has_vehicle",
        "has_driver_license",
    ),
    "include_video": ("video_url",),
    "include_experience": ("experiences",),
    "include_situation": ("situational_answers",),
    "include_cv": ("cv_url",),
}

RESTRICTED_FIELDS = frozenset(
    {"email", "phone", "address", "video_url", "cv_url", "experiences"}
)


def is_field_visible(field_name: str, restricted: bool) -> bool:
    """Gate consulted by every CatalogueItem accessor."""
    return not (restricted and field_name in RESTRICTED_FIELDS)


@dataclass(frozen=True)
class InclusionConfig:
    """Which optional sections a catalogue renders."""

    include_summary: bool = True
    include_details: bool = True
    include_video: bool = True
    include_experience: bool = True
    include_situation: bool = True
    include_cv: bool = True

    def field_mask(self) -> frozenset[str]:
        fields = set(BASE_FIELDS)
        for flag, section in SECTION_FIELDS.items():
            if getattr(self, flag):
                fields.update(section)
        return frozenset(fields)

    def to_dict(self) -> dict[str, bool]:
        return {flag: getattr(self, flag) for flag in SECTION_FIELDS}

    @staticmethod
    def from_dict(raw: dict[str, Any] | None) -> InclusionConfig:
        raw = raw or {}
        unknown = set(raw) - set(SECTION_FIELDS)
        if unknown:
            raise ValidationError(f"Unknown inclusion flags: {', '.join(sorted(unknown))}")
        return InclusionConfig(**{k: bool(v) for k, v in raw.items()})


@dataclass(frozen=True)
class CatalogueItem:
    candidate_id: str
    position: int
    snapshot: dict[str, Any]

    def get(self, field_name: str, restricted: bool = False) -> Any:
        if not is_field_visible(field_name, restricted):
            return None
        return self.snapshot.get(field_name)

    def visible_fields(self, restricted: bool) -> dict[str, Any]:
        return {
            name: value
            for name, value in self.snapshot.items()
            if is_field_visible(name, restricted)
        }


@dataclass
class Catalogue:
    """Aggregate root for catalogues.

    ``is_content_restricted`` is decided once at generation and never
    changes afterwards; a share token keeps the restriction it was issued
    with.

    ``version`` is owned by the repository for optimistic locking.  Share-link
    views are counted by the repository directly and do not bump it.
    """

    id: int | None
    title: str
    client_id: str
    items: list[CatalogueItem]
    inclusion: InclusionConfig = field(default_factory=InclusionConfig)
    custom_message: str | None = None
    status: CatalogueStatus = CatalogueStatus.BROUILLON
    is_content_restricted: bool = False
    order_id: int | None = None
    share_token: str | None = None
    share_token_expires_at: datetime | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    sent_at: datetime | None = None
    view_count: int = 0
    viewed_at: datetime | None = None
    last_viewed_at: datetime | None = None
    version: int = 0

    @staticmethod
    def generate(
        title: str,
        client_id: str,
        items: list[CatalogueItem],
        inclusion: InclusionConfig,
        custom_message: str | None = None,
        is_content_restricted: bool = False,
        order_id: int | None = None,
    ) -> Catalogue:
        if not title or not title.strip():
            raise ValidationError("Catalogue title is required")
        if not client_id or not client_id.strip():
            raise ValidationError("Client id is required")
        catalogue = Catalogue(
            id=None,
            title=title.strip(),
            client_id=client_id.strip(),
            items=list(items),
            inclusion=inclusion,
            custom_message=custom_message,
            is_content_restricted=is_content_restricted,
            order_id=order_id,
        )
        catalogue.transition_to(CatalogueStatus.GENERE)
        return catalogue

    # --- Status ---------------------------------------------------------------

    def transition_to(self, target: CatalogueStatus) -> None:
        if target not in CATALOGUE_TRANSITIONS[self.status]:
            raise InvalidTransitionError(
                f"Cannot move catalogue from {self.status.value} to {target.value}"
            )
        self.status = target

    # --- Sharing --------------------------------------------------------------

    def has_live_share(self, now: datetime) -> bool:
        return self.share_token is not None and not self.share_expired(now)

    def share_expired(self, now: datetime) -> bool:
        if self.share_token_expires_at is None:
            return False
        return now > self.share_token_expires_at

    def share(self, token: str, expires_at: datetime | None, now: datetime) -> None:
        """Attach a freshly generated token and mark the catalogue as sent."""
        if self.status not in (CatalogueStatus.GENERE, CatalogueStatus.ENVOYE):
            raise InvalidTransitionError(
                f"Cannot share a catalogue in {self.status.value} status"
            )
        self.share_token = token
        self.share_token_expires_at = expires_at
        if self.status == CatalogueStatus.GENERE:
            self.transition_to(CatalogueStatus.ENVOYE)
        if self.sent_at is None:
            self.sent_at = now

    def record_view(self, now: datetime) -> None:
        if self.viewed_at is None:
            self.viewed_at = now
        self.last_viewed_at = now
        self.view_count += 1
