"""FastAPI REST surface.

Run with: uvicorn tms.infrastructure.api:app --reload  (or `tms serve`)

Authentication is handled upstream; the gateway forwards the caller as the
``X-Caller-Id`` and ``X-Caller-Role`` headers.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any, Literal

from fastapi import Depends, FastAPI, Header, HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from tms.application.add_order_item import AddOrderItemHandler
from tms.application.advance_order_status import AdvanceOrderStatusHandler
from tms.application.cancel_order import CancelOrderHandler
from tms.application.create_order import CreateOrderHandler
from tms.application.generate_catalogue import GenerateCatalogueHandler
from tms.application.remove_order_item import ClearOrderHandler, RemoveOrderItemHandler
from tms.application.resolve_shared_catalogue import ResolveSharedCatalogueHandler
from tms.application.set_pricing import SetPricingHandler
from tms.application.share_catalogue import ShareCatalogueHandler
from tms.application.show_availability import ListCitiesHandler, ShowAvailabilityHandler
from tms.application.show_order import ListOrdersHandler, ShowOrderHandler
from tms.application.show_pricing import ShowPricingHandler
from tms.application.submit_order import SubmitOrderHandler
from tms.application.update_catalogue_status import (
    ShowCatalogueHandler,
    UpdateCatalogueStatusHandler,
)
from tms.application.update_order_item import UpdateOrderItemHandler
from tms.domain.exceptions import DomainException, ValidationError
from tms.domain.model.caller import Caller, Role
from tms.domain.model.catalogue import SECTION_FIELDS
from tms.domain.repository.candidate_directory import CandidateDirectory
from tms.domain.repository.catalogue_repository import CatalogueRepository
from tms.domain.repository.order_repository import OrderRepository
from tms.domain.repository.pricing_store import PricingStore
from tms.domain.service.key_locks import KeyLockRegistry
from tms.domain.service.pricing_resolver import PricingResolver
from tms.domain.service.reservation_ledger import ReservationLedger
from tms.domain.service.supply_resolver import SupplyResolver
from tms.infrastructure import bootstrap
from tms.infrastructure.config import Config, get_config
from tms.infrastructure.log_setup import setup_logging

STATUS_BY_CODE = {
    "VALIDATION_ERROR": 400,
    "EMPTY_SELECTION": 400,
    "FORBIDDEN": 403,
    "NOT_FOUND": 404,
    "CANDIDATE_NOT_FOUND": 404,
    "INSUFFICIENT_AVAILABILITY": 409,
    "INVALID_TRANSITION": 409,
    "CONCURRENT_MODIFICATION": 409,
    "SHARE_LINK_EXPIRED": 410,
    "UPSTREAM_UNAVAILABLE": 503,
}


@asynccontextmanager
async def lifespan(_: FastAPI) -> AsyncIterator[None]:
    setup_logging(get_config())
    yield


app = FastAPI(
    title="Talent Marketplace API",
    description="Candidate pool availability, client orders and shared catalogues",
    version="1.0.0",
    lifespan=lifespan,
)


@app.exception_handler(DomainException)
async def domain_exception_handler(request: Request, exc: DomainException) -> JSONResponse:
    return JSONResponse(
        status_code=STATUS_BY_CODE.get(exc.code, 400),
        content={"error": exc.code, "message": str(exc), **exc.details()},
    )


# --- Dependencies --------------------------------------------------------------


def get_settings() -> Config:
    return get_config()


def get_order_repo() -> OrderRepository:
    return bootstrap.order_repository()


def get_pricing_store() -> PricingStore:
    return bootstrap.pricing_store()


def get_catalogue_repo() -> CatalogueRepository:
    return bootstrap.catalogue_repository()


def get_directory() -> CandidateDirectory:
    return bootstrap.candidate_directory()


def get_pricing_resolver(store: PricingStore = Depends(get_pricing_store)) -> PricingResolver:
    return PricingResolver(store, bootstrap.default_tariff())


def get_key_locks() -> KeyLockRegistry:
    return bootstrap.key_locks()


def get_ledger(
    order_repo: OrderRepository = Depends(get_order_repo),
    directory: CandidateDirectory = Depends(get_directory),
    locks: KeyLockRegistry = Depends(get_key_locks),
) -> ReservationLedger:
    return ReservationLedger(order_repo, SupplyResolver(directory), locks)


def get_caller(
    x_caller_id: str | None = Header(default=None),
    x_caller_role: str = Header(default=Role.CLIENT.value),
) -> Caller:
    if not x_caller_id:
        raise HTTPException(status_code=401, detail="Missing X-Caller-Id header")
    try:
        role = Role(x_caller_role.strip().upper())
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Unknown role '{x_caller_role}'")
    return Caller(id=x_caller_id, role=role)


# --- Request bodies -------------------------------------------------------------


class _Body(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class PricingBody(_Body):
    city: str
    province: str | None = None
    evaluated_price: str = Field(alias="evaluatedPrice")
    cv_only_price: str = Field(alias="cvOnlyPrice")


class ItemPatch(_Body):
    action: Literal["add", "update", "remove", "clear"] = "add"
    city: str | None = None
    province: str | None = None
    tier: str | None = None
    quantity: int | None = None
    notes: str | None = None


class StatusBody(_Body):
    target: str
    admin_notes: str | None = Field(default=None, alias="adminNotes")


class CatalogueBody(_Body):
    title: str
    client_id: str = Field(alias="clientId")
    candidate_ids: list[str] = Field(alias="candidateIds")
    inclusion_config: dict[str, bool] | None = Field(default=None, alias="inclusionConfig")
    custom_message: str | None = Field(default=None, alias="customMessage")
    order_id: int | None = Field(default=None, alias="orderId")
    requires_payment: bool = Field(default=False, alias="requiresPayment")


class ShareBody(_Body):
    expiration_days: int | None = Field(default=None, alias="expirationDays")


class CatalogueStatusBody(_Body):
    target: str


def _inclusion_flags(raw: dict[str, bool] | None) -> dict[str, bool]:
    """Accept includeVideo / include_video / includeCV spellings."""
    if not raw:
        return {}
    by_compact = {flag.replace("_", ""): flag for flag in SECTION_FIELDS}
    flags: dict[str, bool] = {}
    for name, value in raw.items():
        flag = by_compact.get(name.replace("_", "").lower())
        if flag is None:
            raise ValidationError(f"Unknown inclusion flag '{name}'")
        flags[flag] = value
    return flags


# --- Marketplace ---------------------------------------------------------------


@app.get("/availability")
def get_availability(
    city: str,
    province: str | None = None,
    ledger: ReservationLedger = Depends(get_ledger),
    settings: Config = Depends(get_settings),
) -> dict[str, Any]:
    dto = ShowAvailabilityHandler(ledger).handle(city, province or settings.DEFAULT_PROVINCE)
    return dto.to_dict()


@app.get("/cities")
def get_cities(directory: CandidateDirectory = Depends(get_directory)) -> dict[str, Any]:
    cities = ListCitiesHandler(directory).handle()
    return {"data": [{"city": c.city, "province": c.province, "count": c.count} for c in cities]}


@app.get("/pricing")
def get_pricing(
    city: str,
    province: str | None = None,
    resolver: PricingResolver = Depends(get_pricing_resolver),
    settings: Config = Depends(get_settings),
) -> dict[str, Any]:
    dto = ShowPricingHandler(resolver).handle(city, province or settings.DEFAULT_PROVINCE)
    return dto.to_dict()


@app.put("/pricing")
def put_pricing(
    body: PricingBody,
    caller: Caller = Depends(get_caller),
    store: PricingStore = Depends(get_pricing_store),
    settings: Config = Depends(get_settings),
) -> dict[str, Any]:
    dto = SetPricingHandler(store).handle(
        caller,
        body.city,
        body.province or settings.DEFAULT_PROVINCE,
        body.evaluated_price,
        body.cv_only_price,
    )
    return dto.to_dict()


# --- Orders --------------------------------------------------------------------


@app.post("/orders")
def create_order(
    client_id: str | None = None,
    caller: Caller = Depends(get_caller),
    order_repo: OrderRepository = Depends(get_order_repo),
) -> dict[str, Any]:
    return CreateOrderHandler(order_repo).handle(caller, client_id=client_id).to_dict()


@app.get("/orders")
def list_orders(
    status: str | None = None,
    client_id: str | None = None,
    start_date: datetime | None = None,
    end_date: datetime | None = None,
    caller: Caller = Depends(get_caller),
    order_repo: OrderRepository = Depends(get_order_repo),
) -> dict[str, Any]:
    result = ListOrdersHandler(order_repo).handle(
        caller,
        status=status,
        client_id=client_id,
        created_from=start_date,
        created_to=end_date,
    )
    return result.to_dict()


@app.get("/orders/{order_id}")
def get_order(
    order_id: int,
    caller: Caller = Depends(get_caller),
    order_repo: OrderRepository = Depends(get_order_repo),
) -> dict[str, Any]:
    return ShowOrderHandler(order_repo).handle(caller, order_id).to_dict()


@app.patch("/orders/{order_id}/items")
def patch_order_items(
    order_id: int,
    body: ItemPatch,
    caller: Caller = Depends(get_caller),
    order_repo: OrderRepository = Depends(get_order_repo),
    resolver: PricingResolver = Depends(get_pricing_resolver),
    ledger: ReservationLedger = Depends(get_ledger),
    settings: Config = Depends(get_settings),
) -> dict[str, Any]:
    if body.action == "clear":
        return ClearOrderHandler(order_repo).handle(caller, order_id).to_dict()

    if not body.city or not body.tier:
        raise ValidationError("City and tier are required")
    province = body.province or settings.DEFAULT_PROVINCE

    if body.action == "remove":
        dto = RemoveOrderItemHandler(order_repo).handle(
            caller, order_id, body.city, province, body.tier
        )
        return dto.to_dict()

    if body.quantity is None:
        raise ValidationError("Quantity is required")
    if body.action == "update":
        dto = UpdateOrderItemHandler(order_repo).handle(
            caller, order_id, body.city, province, body.tier, body.quantity
        )
    else:
        dto = AddOrderItemHandler(order_repo, resolver, ledger).handle(
            caller, order_id, body.city, province, body.tier, body.quantity, body.notes
        )
    return dto.to_dict()


@app.post("/orders/{order_id}/submit")
def submit_order(
    order_id: int,
    caller: Caller = Depends(get_caller),
    order_repo: OrderRepository = Depends(get_order_repo),
    ledger: ReservationLedger = Depends(get_ledger),
) -> dict[str, Any]:
    return SubmitOrderHandler(order_repo, ledger).handle(caller, order_id).to_dict()


@app.post("/orders/{order_id}/status")
def advance_order_status(
    order_id: int,
    body: StatusBody,
    caller: Caller = Depends(get_caller),
    order_repo: OrderRepository = Depends(get_order_repo),
    ledger: ReservationLedger = Depends(get_ledger),
) -> dict[str, Any]:
    dto = AdvanceOrderStatusHandler(order_repo, ledger).handle(
        caller, order_id, body.target, body.admin_notes
    )
    return dto.to_dict()


@app.post("/orders/{order_id}/cancel")
def cancel_order(
    order_id: int,
    caller: Caller = Depends(get_caller),
    order_repo: OrderRepository = Depends(get_order_repo),
) -> dict[str, Any]:
    return CancelOrderHandler(order_repo).handle(caller, order_id).to_dict()


# --- Catalogues ----------------------------------------------------------------


@app.get("/catalogues/share/{token}")
def get_shared_catalogue(
    token: str,
    catalogue_repo: CatalogueRepository = Depends(get_catalogue_repo),
) -> dict[str, Any]:
    """Public: no caller headers required."""
    return ResolveSharedCatalogueHandler(catalogue_repo).handle(token).to_dict()


@app.post("/catalogues", status_code=201)
def create_catalogue(
    body: CatalogueBody,
    caller: Caller = Depends(get_caller),
    catalogue_repo: CatalogueRepository = Depends(get_catalogue_repo),
    directory: CandidateDirectory = Depends(get_directory),
    order_repo: OrderRepository = Depends(get_order_repo),
) -> dict[str, Any]:
    dto = GenerateCatalogueHandler(catalogue_repo, directory, order_repo).handle(
        caller,
        client_id=body.client_id,
        title=body.title,
        candidate_ids=body.candidate_ids,
        inclusion=_inclusion_flags(body.inclusion_config),
        custom_message=body.custom_message,
        order_id=body.order_id,
        requires_payment=body.requires_payment,
    )
    return dto.to_dict()


@app.get("/catalogues/{catalogue_id}")
def get_catalogue(
    catalogue_id: int,
    caller: Caller = Depends(get_caller),
    catalogue_repo: CatalogueRepository = Depends(get_catalogue_repo),
) -> dict[str, Any]:
    return ShowCatalogueHandler(catalogue_repo).handle(caller, catalogue_id).to_dict()


@app.post("/catalogues/{catalogue_id}/share")
def share_catalogue(
    catalogue_id: int,
    body: ShareBody | None = None,
    caller: Caller = Depends(get_caller),
    catalogue_repo: CatalogueRepository = Depends(get_catalogue_repo),
    settings: Config = Depends(get_settings),
) -> dict[str, Any]:
    handler = ShareCatalogueHandler(catalogue_repo, settings.PUBLIC_URL, settings.SHARE_LINK_DAYS)
    days = body.expiration_days if body is not None else None
    return handler.handle(caller, catalogue_id, expiration_days=days).to_dict()


@app.post("/catalogues/{catalogue_id}/status")
def update_catalogue_status(
    catalogue_id: int,
    body: CatalogueStatusBody,
    caller: Caller = Depends(get_caller),
    catalogue_repo: CatalogueRepository = Depends(get_catalogue_repo),
) -> dict[str, Any]:
    dto = UpdateCatalogueStatusHandler(catalogue_repo).handle(caller, catalogue_id, body.target)
    return dto.to_dict()
