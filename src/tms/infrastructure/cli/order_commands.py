"""CLI commands for the Order aggregate."""

from __future__ import annotations

import click

from tms.application.add_order_item import AddOrderItemHandler
from tms.application.advance_order_status import AdvanceOrderStatusHandler
from tms.application.cancel_order import CancelOrderHandler
from tms.application.create_order import CreateOrderHandler
from tms.application.dto import OrderDTO
from tms.application.remove_order_item import ClearOrderHandler, RemoveOrderItemHandler
from tms.application.show_order import ListOrdersHandler, ShowOrderHandler
from tms.application.submit_order import SubmitOrderHandler
from tms.application.update_order_item import UpdateOrderItemHandler
from tms.domain.model.order import OrderStatus
from tms.domain.model.value_objects import Tier
from tms.infrastructure.bootstrap import (
    order_repository,
    pricing_resolver,
    reservation_ledger,
)
from tms.infrastructure.cli.context import current_caller, domain_errors
from tms.infrastructure.config import get_config

_TIERS = click.Choice([t.value for t in Tier], case_sensitive=False)
_STATUSES = click.Choice([s.value for s in OrderStatus], case_sensitive=False)


def _line_options(func):
    """--city / --province / --tier, shared by the line-editing commands."""
    func = click.option("--tier", required=True, type=_TIERS, help="EVALUATED or CV_ONLY.")(func)
    func = click.option("--province", default=None, help="Province code (defaults to config).")(func)
    func = click.option("--city", required=True, help="City name.")(func)
    return func


def _display_order(dto: OrderDTO) -> None:
    """Shared formatting for displaying an order."""
    click.echo(f"Order #{dto.id}  (status={dto.status}, version={dto.version})")
    click.echo(f"Client:  {dto.client_id}")
    click.echo(f"Created: {dto.created_at}")
    if dto.submitted_at:
        click.echo(f"Submitted: {dto.submitted_at}")
    if dto.admin_notes:
        click.echo(f"Notes:   {dto.admin_notes}")
    click.echo()

    click.echo(f"  {'City':<22} {'Tier':<10} {'Qty':>5} {'Price':>10} {'Total':>10}")
    click.echo(f"  {'-'*61}")
    for item in dto.items:
        place = f"{item.city}, {item.province}"
        click.echo(
            f"  {place:<22} {item.tier:<10} {item.quantity:>5} "
            f"{'$' + item.unit_price:>10} {'$' + item.total_price:>10}"
        )
    click.echo(f"  {'-'*61}")
    click.echo(f"  {'Order Total':<38} {'$' + dto.total_amount:>22}")

    for warning in dto.warnings:
        click.echo(f"Warning: {warning}")


@click.command("create")
@click.option("--client", "client_id", default=None, help="Client id (staff only; defaults to caller).")
@click.pass_context
def order_create(ctx: click.Context, client_id: str | None) -> None:
    """Open (or return) the client's draft order."""
    handler = CreateOrderHandler(order_repository())
    with domain_errors():
        dto = handler.handle(current_caller(ctx), client_id=client_id)
    _display_order(dto)


@click.command("add")
@click.option("--id", "order_id", required=True, type=int, help="Order ID.")
@_line_options
@click.option("--quantity", required=True, type=int, help="Number of candidates.")
@click.option("--notes", default=None, help="Free-text notes for the line.")
@click.pass_context
def order_add(
    ctx: click.Context,
    order_id: int,
    city: str,
    province: str | None,
    tier: str,
    quantity: int,
    notes: str | None,
) -> None:
    """Add candidates from a city pool to a draft order."""
    handler = AddOrderItemHandler(order_repository(), pricing_resolver(), reservation_ledger())
    with domain_errors():
        dto = handler.handle(
            current_caller(ctx),
            order_id,
            city,
            province or get_config().DEFAULT_PROVINCE,
            tier,
            quantity,
            notes,
        )
    _display_order(dto)


@click.command("update")
@click.option("--id", "order_id", required=True, type=int, help="Order ID.")
@_line_options
@click.option("--quantity", required=True, type=int, help="New quantity.")
@click.pass_context
def order_update(
    ctx: click.Context,
    order_id: int,
    city: str,
    province: str | None,
    tier: str,
    quantity: int,
) -> None:
    """Change the quantity of a line in a draft order."""
    handler = UpdateOrderItemHandler(order_repository())
    with domain_errors():
        dto = handler.handle(
            current_caller(ctx),
            order_id,
            city,
            province or get_config().DEFAULT_PROVINCE,
            tier,
            quantity,
        )
    _display_order(dto)


@click.command("remove")
@click.option("--id", "order_id", required=True, type=int, help="Order ID.")
@_line_options
@click.pass_context
def order_remove(
    ctx: click.Context, order_id: int, city: str, province: str | None, tier: str
) -> None:
    """Remove a line from a draft order."""
    handler = RemoveOrderItemHandler(order_repository())
    with domain_errors():
        dto = handler.handle(
            current_caller(ctx), order_id, city, province or get_config().DEFAULT_PROVINCE, tier
        )
    _display_order(dto)


@click.command("clear")
@click.option("--id", "order_id", required=True, type=int, help="Order ID.")
@click.pass_context
def order_clear(ctx: click.Context, order_id: int) -> None:
    """Remove every line from a draft order."""
    handler = ClearOrderHandler(order_repository())
    with domain_errors():
        handler.handle(current_caller(ctx), order_id)
    click.echo(f"Order #{order_id} cleared.")


@click.command("submit")
@click.option("--id", "order_id", required=True, type=int, help="Order ID to submit.")
@click.pass_context
def order_submit(ctx: click.Context, order_id: int) -> None:
    """Submit a draft order (reserves candidates if available)."""
    handler = SubmitOrderHandler(order_repository(), reservation_ledger())
    with domain_errors():
        dto = handler.handle(current_caller(ctx), order_id)
    click.echo(f"Order #{dto.id} submitted, candidates reserved.")


@click.command("status")
@click.option("--id", "order_id", required=True, type=int, help="Order ID.")
@click.option("--target", required=True, type=_STATUSES, help="Target status.")
@click.option("--notes", "admin_notes", default=None, help="Admin notes.")
@click.pass_context
def order_status(ctx: click.Context, order_id: int, target: str, admin_notes: str | None) -> None:
    """Move an order to another status (staff only, except submit/cancel)."""
    handler = AdvanceOrderStatusHandler(order_repository(), reservation_ledger())
    with domain_errors():
        dto = handler.handle(current_caller(ctx), order_id, target, admin_notes)
    click.echo(f"Order #{dto.id} is now {dto.status}.")


@click.command("cancel")
@click.option("--id", "order_id", required=True, type=int, help="Order ID to cancel.")
@click.pass_context
def order_cancel(ctx: click.Context, order_id: int) -> None:
    """Cancel an order (releases its reserved candidates)."""
    handler = CancelOrderHandler(order_repository())
    with domain_errors():
        handler.handle(current_caller(ctx), order_id)
    click.echo(f"Order #{order_id} cancelled.")


@click.command("show")
@click.option("--id", "order_id", required=True, type=int, help="Order ID to display.")
@click.pass_context
def order_show(ctx: click.Context, order_id: int) -> None:
    """Show details of an existing order."""
    handler = ShowOrderHandler(order_repository())
    with domain_errors():
        dto = handler.handle(current_caller(ctx), order_id)
    _display_order(dto)


@click.command("list")
@click.option("--status", default=None, type=_STATUSES, help="Filter by status.")
@click.option("--client", "client_id", default=None, help="Filter by client id (staff).")
@click.pass_context
def order_list(ctx: click.Context, status: str | None, client_id: str | None) -> None:
    """List orders with summary statistics."""
    handler = ListOrdersHandler(order_repository())
    with domain_errors():
        result = handler.handle(current_caller(ctx), status=status, client_id=client_id)

    if not result.orders:
        click.echo("No orders found.")
        return

    click.echo(f"{'ID':<6} {'Client':<16} {'Status':<10} {'Lines':>5} {'Total':>12}")
    click.echo("-" * 53)
    for o in result.orders:
        click.echo(
            f"{o.id:<6} {o.client_id:<16} {o.status:<10} {len(o.items):>5} {'$' + o.total_amount:>12}"
        )
    click.echo("-" * 53)
    stats = result.stats
    click.echo(f"Revenue: ${stats.total_revenue}   Pending: ${stats.pending_revenue}")
