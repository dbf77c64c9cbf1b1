import click

from tms.domain.model.caller import Caller
from tms.infrastructure.cli.catalogue_commands import (
    catalogue_generate,
    catalogue_share,
    catalogue_show,
    catalogue_status,
    catalogue_view,
)
from tms.infrastructure.cli.market_commands import (
    market_availability,
    market_cities,
    market_pricing,
    market_set_price,
)
from tms.infrastructure.cli.order_commands import (
    order_add,
    order_cancel,
    order_clear,
    order_create,
    order_list,
    order_remove,
    order_show,
    order_status,
    order_submit,
    order_update,
)
from tms.infrastructure.config import get_config
from tms.infrastructure.log_setup import setup_logging


@click.group()
@click.option("--as-client", "client_id", default=None, help="Act as this client.")
@click.option("--as-staff", "staff_id", default=None, help="Act as this staff member.")
@click.pass_context
def cli(ctx: click.Context, client_id: str | None, staff_id: str | None) -> None:
    """TMS: Talent Marketplace System"""
    if client_id and staff_id:
        raise click.UsageError("Use either --as-client or --as-staff, not both")
    setup_logging(get_config())
    caller = None
    if staff_id:
        caller = Caller.staff(staff_id)
    elif client_id:
        caller = Caller.client(client_id)
    ctx.obj = {"caller": caller}


@cli.group()
def market() -> None:
    """Browse availability and pricing."""


@cli.group()
def order() -> None:
    """Manage orders."""


@cli.group()
def catalogue() -> None:
    """Manage catalogues."""


@cli.command("serve")
@click.option("--host", default="127.0.0.1", help="Bind address.")
@click.option("--port", default=8000, type=int, help="Port.")
def serve(host: str, port: int) -> None:
    """Run the HTTP API."""
    import uvicorn

    uvicorn.run("tms.infrastructure.api:app", host=host, port=port)


# Register subcommands
market.add_command(market_availability)
market.add_command(market_cities)
market.add_command(market_pricing)
market.add_command(market_set_price)
order.add_command(order_add)
order.add_command(order_cancel)
order.add_command(order_clear)
order.add_command(order_create)
order.add_command(order_list)
order.add_command(order_remove)
order.add_command(order_show)
order.add_command(order_status)
order.add_command(order_submit)
order.add_command(order_update)
catalogue.add_command(catalogue_generate)
catalogue.add_command(catalogue_share)
catalogue.add_command(catalogue_show)
catalogue.add_command(catalogue_status)
catalogue.add_command(catalogue_view)
