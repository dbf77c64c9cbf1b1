"""Who is invoking a use case.

Authentication happens outside this package; the outer surface asserts the
caller and the handlers only check roles and ownership.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from tms.domain.exceptions import PermissionDeniedError, ValidationError


class Role(Enum):
    CLIENT = "CLIENT"
    STAFF = "STAFF"


@dataclass(frozen=True)
class Caller:

    id: str
    role: Role = Role.CLIENT

    def __post_init__(self) -> None:
        if not self.id or not self.id.strip():
            raise ValidationError("Caller id is required")

    @property
    def is_staff(self) -> bool:
        return self.role is Role.STAFF

    def require_staff(self, action: str) -> None:
        if not self.is_staff:
            raise PermissionDeniedError(f"Only staff may {action}")

    def require_owner_or_staff(self, owner_id: str, action: str) -> None:
        if not self.is_staff and self.id != owner_id:
            raise PermissionDeniedError(f"Not allowed to {action} another client's order")

    @staticmethod
    def client(client_id: str) -> Caller:
        return Caller(id=client_id, role=Role.CLIENT)

    @staticmethod
    def staff(staff_id: str) -> Caller:
        return Caller(id=staff_id, role=Role.STAFF)
