"""Data Transfer Objects: plain containers that cross layer boundaries.

DTOs carry data between the outer surfaces (CLI, HTTP) and the application
layer without exposing domain internals.  Amounts are rendered as exact
decimal strings ("30.00") so no float ever carries a price.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from tms.domain.model.catalogue import Catalogue
from tms.domain.model.order import Order, OrderLine
from tms.domain.model.pricing import PricingEntry
from tms.domain.model.value_objects import Money


def format_amount(money: Money) -> str:
    return f"{money.amount:.2f}"


def format_timestamp(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


@dataclass(frozen=True)
class AvailabilityDTO:
    city: str
    province: str
    evaluated: int
    cv_only: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "city": self.city,
            "province": self.province,
            "evaluated": self.evaluated,
            "cvOnly": self.cv_only,
        }


@dataclass(frozen=True)
class PricingDTO:
    city: str
    province: str
    evaluated_price: str
    cv_only_price: str
    is_default: bool

    @staticmethod
    def from_entry(entry: PricingEntry, is_default: bool) -> PricingDTO:
        return PricingDTO(
            city=entry.city,
            province=entry.province,
            evaluated_price=format_amount(entry.evaluated_price),
            cv_only_price=format_amount(entry.cv_only_price),
            is_default=is_default,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "city": self.city,
            "province": self.province,
            "evaluatedPrice": self.evaluated_price,
            "cvOnlyPrice": self.cv_only_price,
            "isDefault": self.is_default,
        }


@dataclass(frozen=True)
class OrderLineDTO:
    city: str
    province: str
    tier: str
    quantity: int
    unit_price: str
    total_price: str
    notes: str | None

    @staticmethod
    def from_line(line: OrderLine) -> OrderLineDTO:
        return OrderLineDTO(
            city=line.key.city,
            province=line.key.province,
            tier=line.key.tier.value,
            quantity=line.quantity.value,
            unit_price=format_amount(line.unit_price),
            total_price=format_amount(line.total_price),
            notes=line.notes,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "city": self.city,
            "province": self.province,
            "tier": self.tier,
            "quantity": self.quantity,
            "unitPrice": self.unit_price,
            "totalPrice": self.total_price,
            "notes": self.notes,
        }


@dataclass(frozen=True)
class OrderDTO:
    id: int
    client_id: str
    status: str
    items: list[OrderLineDTO]
    total_amount: str
    admin_notes: str | None
    created_at: str
    updated_at: str
    submitted_at: str | None
    version: int
    warnings: list[str] = field(default_factory=list)

    @staticmethod
    def from_order(order: Order, warnings: list[str] | None = None) -> OrderDTO:
        return OrderDTO(
            id=order.id,  # type: ignore[arg-type]
            client_id=order.client_id,
            status=order.status.value,
            items=[OrderLineDTO.from_line(line) for line in order.items],
            total_amount=format_amount(order.total_amount),
            admin_notes=order.admin_notes,
            created_at=order.created_at.isoformat(),
            updated_at=order.updated_at.isoformat(),
            submitted_at=format_timestamp(order.submitted_at),
            version=order.version,
            warnings=list(warnings or []),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "clientId": self.client_id,
            "status": self.status,
            "items": [item.to_dict() for item in self.items],
            "totalAmount": self.total_amount,
            "adminNotes": self.admin_notes,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
            "submittedAt": self.submitted_at,
            "version": self.version,
            "warnings": list(self.warnings),
        }


@dataclass(frozen=True)
class OrderStatsDTO:
    total: int
    by_status: dict[str, int]
    total_revenue: str
    pending_revenue: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "total": self.total,
            "byStatus": dict(self.by_status),
            "totalRevenue": self.total_revenue,
            "pendingRevenue": self.pending_revenue,
        }


@dataclass(frozen=True)
class OrderListDTO:
    orders: list[OrderDTO]
    stats: OrderStatsDTO

    def to_dict(self) -> dict[str, Any]:
        return {
            "orders": [o.to_dict() for o in self.orders],
            "stats": self.stats.to_dict(),
            "count": len(self.orders),
        }


@dataclass(frozen=True)
class CatalogueItemDTO:
    candidate_id: str
    position: int
    fields: dict[str, Any]

    def to_dict(self) -> dict[str, Any]:
        return {
            "candidateId": self.candidate_id,
            "position": self.position,
            "fields": dict(self.fields),
        }


@dataclass(frozen=True)
class CatalogueDTO:
    id: int
    title: str
    client_id: str
    status: str
    custom_message: str | None
    inclusion: dict[str, bool]
    is_content_restricted: bool
    order_id: int | None
    share_token: str | None
    created_at: str
    items: list[CatalogueItemDTO]

    @staticmethod
    def from_catalogue(catalogue: Catalogue) -> CatalogueDTO:
        """Staff view: full snapshot, restriction shown but not applied."""
        return CatalogueDTO(
            id=catalogue.id,  # type: ignore[arg-type]
            title=catalogue.title,
            client_id=catalogue.client_id,
            status=catalogue.status.value,
            custom_message=catalogue.custom_message,
            inclusion=catalogue.inclusion.to_dict(),
            is_content_restricted=catalogue.is_content_restricted,
            order_id=catalogue.order_id,
            share_token=catalogue.share_token,
            created_at=catalogue.created_at.isoformat(),
            items=[
                CatalogueItemDTO(
                    candidate_id=item.candidate_id,
                    position=item.position,
                    fields=item.visible_fields(restricted=False),
                )
                for item in catalogue.items
            ],
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "clientId": self.client_id,
            "status": self.status,
            "customMessage": self.custom_message,
            "inclusionConfig": dict(self.inclusion),
            "isContentRestricted": self.is_content_restricted,
            "orderId": self.order_id,
            "shareToken": self.share_token,
            "createdAt": self.created_at,
            "items": [item.to_dict() for item in self.items],
        }


@dataclass(frozen=True)
class ShareLinkDTO:
    catalogue_id: int
    share_token: str
    share_url: str
    expires_at: str | None

    def to_dict(self) -> dict[str, Any]:
        return {
            "catalogueId": self.catalogue_id,
            "shareToken": self.share_token,
            "shareUrl": self.share_url,
            "expiresAt": self.expires_at,
        }


@dataclass(frozen=True)
class SharedCatalogueDTO:
    """Public view: items already filtered through the field gate."""

    title: str
    custom_message: str | None
    is_content_restricted: bool
    items: list[CatalogueItemDTO]

    def to_dict(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "customMessage": self.custom_message,
            "isContentRestricted": self.is_content_restricted,
            "items": [item.to_dict() for item in self.items],
        }
