"""Domain-level exceptions.

All business rule violations are expressed as subclasses of DomainException
so the CLI and HTTP layers can catch them uniformly.  Each subclass carries a
stable ``code`` that callers can act on without parsing messages.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from tms.domain.model.value_objects import SupplyKey


class DomainException(Exception):
    """Base class for all domain errors."""

    code = "DOMAIN_ERROR"

    def details(self) -> dict:
        """Structured context for the caller, merged into API error bodies."""
        return {}


class ValidationError(DomainException):
    """Malformed input or a violated business rule."""

    code = "VALIDATION_ERROR"


class EntityNotFoundError(DomainException):
    """A requested entity (order, catalogue, share token) does not exist."""

    code = "NOT_FOUND"


class InvalidTransitionError(DomainException):
    """A status change that the transition table does not allow."""

    code = "INVALID_TRANSITION"


class ConcurrentModificationError(DomainException):
    """The aggregate changed since it was read; re-read and retry."""

    code = "CONCURRENT_MODIFICATION"


class UpstreamUnavailableError(DomainException):
    """The candidate directory or the pricing store could not be read."""

    code = "UPSTREAM_UNAVAILABLE"


class CandidateNotFoundError(DomainException):
    code = "CANDIDATE_NOT_FOUND"

    def __init__(self, candidate_id: str) -> None:
        super().__init__(f"Candidate '{candidate_id}' not found")
        self.candidate_id = candidate_id

    def details(self) -> dict:
        return {"candidateId": self.candidate_id}


class EmptySelectionError(DomainException):
    code = "EMPTY_SELECTION"


class PermissionDeniedError(DomainException):
    """The caller's role or identity does not allow the operation."""

    code = "FORBIDDEN"


class ShareLinkExpiredError(DomainException):
    code = "SHARE_LINK_EXPIRED"


@dataclass(frozen=True)
class Shortfall:
    """How far one (city, province, tier) key falls short at submission."""

    key: SupplyKey
    requested: int
    available: int

    @property
    def missing(self) -> int:
        return self.requested - self.available

    def to_dict(self) -> dict:
        return {
            "city": self.key.city,
            "province": self.key.province,
            "tier": self.key.tier.value,
            "requested": self.requested,
            "available": self.available,
            "shortfall": self.missing,
        }


class InsufficientAvailabilityError(DomainException):
    """Submission would reserve more candidates than the pool holds."""

    code = "INSUFFICIENT_AVAILABILITY"

    def __init__(self, shortfalls: list[Shortfall]) -> None:
        parts = [
            f"{s.key} (requested {s.requested}, available {s.available}, "
            f"short by {s.missing})"
            for s in shortfalls
        ]
        super().__init__("Insufficient availability for " + "; ".join(parts))
        self.shortfalls = list(shortfalls)

    def details(self) -> dict:
        return {"shortfalls": [s.to_dict() for s in self.shortfalls]}
