"""JSON-file-backed implementation of OrderRepository."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime
from decimal import Decimal
from pathlib import Path

from tms.application.dto import format_amount
from tms.domain.exceptions import ConcurrentModificationError
from tms.domain.model.order import Order, OrderLine, OrderStatus
from tms.domain.model.value_objects import Money, Quantity, SupplyKey
from tms.domain.repository.order_repository import OrderRepository
from tms.infrastructure.persistence.json_file import JsonFile


class JsonOrderRepository(OrderRepository):

    def __init__(self, file_path: Path) -> None:
        self._file = JsonFile(file_path)

    # --- OrderRepository interface --------------------------------------------

    def get_by_id(self, order_id: int) -> Order | None:
        for raw in self._file.load():
            if raw["id"] == order_id:
                return self._to_domain(raw)
        return None

    def find_draft_for_client(self, client_id: str) -> Order | None:
        for raw in self._file.load():
            if raw["client_id"] == client_id and raw["status"] == OrderStatus.DRAFT.value:
                return self._to_domain(raw)
        return None

    def add_draft_if_absent(self, order: Order) -> Order:
        with self._file.lock:
            existing = self.find_draft_for_client(order.client_id)
            if existing is not None:
                return existing
            self.save(order)
            return order

    def list(
        self,
        status: OrderStatus | None = None,
        client_id: str | None = None,
        created_from: datetime | None = None,
        created_to: datetime | None = None,
    ) -> list[Order]:
        orders = [self._to_domain(raw) for raw in self._file.load()]
        if status is not None:
            orders = [o for o in orders if o.status == status]
        if client_id is not None:
            orders = [o for o in orders if o.client_id == client_id]
        if created_from is not None:
            orders = [o for o in orders if o.created_at >= created_from]
        if created_to is not None:
            orders = [o for o in orders if o.created_at <= created_to]
        return sorted(orders, key=lambda o: o.created_at, reverse=True)

    def save(self, order: Order) -> None:
        with self._file.lock:
            records = self._file.load()

            if order.id is None:
                order.id = max((r["id"] for r in records), default=0) + 1

            for i, raw in enumerate(records):
                if raw["id"] == order.id:
                    if raw.get("version", 0) != order.version:
                        raise ConcurrentModificationError(
                            f"Order #{order.id} was modified by someone else; reload and retry"
                        )
                    order.version += 1
                    records[i] = self._to_raw(order)
                    break
            else:
                order.version += 1
                records.append(self._to_raw(order))

            self._file.persist(records)

    def reserved_quantity(self, key: SupplyKey, statuses: Iterable[OrderStatus]) -> int:
        wanted = {s.value for s in statuses}
        total = 0
        for raw in self._file.load():
            if raw["status"] not in wanted:
                continue
            for line in raw["items"]:
                if SupplyKey(line["city"], line["province"], line["tier"]) == key:
                    total += line["quantity"]
        return total

    # --- Serialization --------------------------------------------------------

    @staticmethod
    def _to_raw(order: Order) -> dict:
        return {
            "id": order.id,
            "client_id": order.client_id,
            "status": order.status.value,
            "admin_notes": order.admin_notes,
            "created_at": order.created_at.isoformat(),
            "updated_at": order.updated_at.isoformat(),
            "submitted_at": order.submitted_at.isoformat() if order.submitted_at else None,
            "version": order.version,
            "total_amount": format_amount(order.total_amount),
            "items": [
                {
                    "city": line.key.city,
                    "province": line.key.province,
                    "tier": line.key.tier.value,
                    "quantity": line.quantity.value,
                    "unit_price": str(line.unit_price.amount),
                    "currency": line.unit_price.currency,
                    "total_price": format_amount(line.total_price),
                    "notes": line.notes,
                }
                for line in order.items
            ],
        }

    @staticmethod
    def _to_domain(raw: dict) -> Order:
        items = [
            OrderLine(
                key=SupplyKey(i["city"], i["province"], i["tier"]),
                quantity=Quantity(i["quantity"]),
                unit_price=Money(Decimal(i["unit_price"]), i.get("currency", "CAD")),
                notes=i.get("notes"),
            )
            for i in raw["items"]
        ]
        submitted_at = raw.get("submitted_at")
        return Order(
            id=raw["id"],
            client_id=raw["client_id"],
            items=items,
            status=OrderStatus(raw["status"]),
            admin_notes=raw.get("admin_notes"),
            created_at=datetime.fromisoformat(raw["created_at"]),
            updated_at=datetime.fromisoformat(raw.get("updated_at", raw["created_at"])),
            submitted_at=datetime.fromisoformat(submitted_at) if submitted_at else None,
            version=raw.get("version", 0),
        )
