"""CLI commands for live availability and pricing."""

from __future__ import annotations

import click

from tms.application.set_pricing import SetPricingHandler
from tms.application.show_availability import ListCitiesHandler, ShowAvailabilityHandler
from tms.application.show_pricing import ShowPricingHandler
from tms.infrastructure.bootstrap import (
    candidate_directory,
    pricing_resolver,
    pricing_store,
    reservation_ledger,
)
from tms.infrastructure.cli.context import current_caller, domain_errors
from tms.infrastructure.config import get_config


@click.command("availability")
@click.option("--city", required=True, help="City name.")
@click.option("--province", default=None, help="Province code (defaults to config).")
def market_availability(city: str, province: str | None) -> None:
    """Show candidates currently available in a city, per tier."""
    handler = ShowAvailabilityHandler(reservation_ledger())
    with domain_errors():
        dto = handler.handle(city, province or get_config().DEFAULT_PROVINCE)

    click.echo(f"{dto.city}, {dto.province}")
    click.echo(f"  {'Evaluated':<12} {dto.evaluated:>5}")
    click.echo(f"  {'CV only':<12} {dto.cv_only:>5}")


@click.command("cities")
def market_cities() -> None:
    """List cities with evaluated candidates."""
    with domain_errors():
        cities = ListCitiesHandler(candidate_directory()).handle()

    if not cities:
        click.echo("No cities found.")
        return

    click.echo(f"{'City':<28} {'Prov':<5} {'Candidates':>10}")
    click.echo("-" * 45)
    for c in cities:
        click.echo(f"{c.city:<28} {c.province:<5} {c.count:>10}")


@click.command("pricing")
@click.option("--city", required=True, help="City name.")
@click.option("--province", default=None, help="Province code (defaults to config).")
def market_pricing(city: str, province: str | None) -> None:
    """Show the per-candidate price for a city."""
    handler = ShowPricingHandler(pricing_resolver())
    with domain_errors():
        dto = handler.handle(city, province or get_config().DEFAULT_PROVINCE)

    suffix = "  (default tariff)" if dto.is_default else ""
    click.echo(f"{dto.city}, {dto.province}{suffix}")
    click.echo(f"  {'Evaluated':<12} {'$' + dto.evaluated_price:>10}")
    click.echo(f"  {'CV only':<12} {'$' + dto.cv_only_price:>10}")


@click.command("set-price")
@click.option("--city", required=True, help="City name.")
@click.option("--province", default=None, help="Province code (defaults to config).")
@click.option("--evaluated", "evaluated_price", required=True, help="Evaluated tier price (e.g. 33.00).")
@click.option("--cv-only", "cv_only_price", required=True, help="CV-only tier price (e.g. 7.75).")
@click.pass_context
def market_set_price(
    ctx: click.Context,
    city: str,
    province: str | None,
    evaluated_price: str,
    cv_only_price: str,
) -> None:
    """Set a city's tariff (staff only). Existing quotes keep their prices."""
    handler = SetPricingHandler(pricing_store())
    with domain_errors():
        dto = handler.handle(
            current_caller(ctx),
            city,
            province or get_config().DEFAULT_PROVINCE,
            evaluated_price,
            cv_only_price,
        )
    click.echo(
        f"Pricing for {dto.city}, {dto.province} set to "
        f"${dto.evaluated_price} (evaluated) / ${dto.cv_only_price} (CV only)"
    )
