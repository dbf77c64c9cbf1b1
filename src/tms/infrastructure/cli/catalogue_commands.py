"""CLI commands for catalogues and their share links."""

from __future__ import annotations

import json

import click

from tms.application.dto import CatalogueItemDTO
from tms.application.generate_catalogue import GenerateCatalogueHandler
from tms.application.resolve_shared_catalogue import ResolveSharedCatalogueHandler
from tms.application.share_catalogue import ShareCatalogueHandler
from tms.application.update_catalogue_status import (
    ShowCatalogueHandler,
    UpdateCatalogueStatusHandler,
)
from tms.domain.model.catalogue import SECTION_FIELDS
from tms.infrastructure.bootstrap import (
    candidate_directory,
    catalogue_repository,
    order_repository,
)
from tms.infrastructure.cli.context import current_caller, domain_errors
from tms.infrastructure.config import get_config

# "--exclude video" maps to include_video=False
_SECTIONS = click.Choice([flag.removeprefix("include_") for flag in SECTION_FIELDS])


def _display_items(items: list[CatalogueItemDTO]) -> None:
    for item in items:
        click.echo(f"  #{item.position} {item.candidate_id}")
        for name, value in item.fields.items():
            if name == "id":
                continue
            rendered = value if isinstance(value, str) else json.dumps(value, ensure_ascii=False)
            click.echo(f"      {name}: {rendered}")


@click.command("generate")
@click.option("--client", "client_id", required=True, help="Client the catalogue is for.")
@click.option("--title", required=True, help="Catalogue title.")
@click.option("--candidates", required=True, help="Candidate ids as 'id1,id2,...'.")
@click.option("--exclude", multiple=True, type=_SECTIONS, help="Section to leave out (repeatable).")
@click.option("--message", "custom_message", default=None, help="Message shown to the client.")
@click.option("--order", "order_id", default=None, type=int, help="Originating order ID.")
@click.option("--requires-payment", is_flag=True, default=False, help="Restrict content until paid.")
@click.pass_context
def catalogue_generate(
    ctx: click.Context,
    client_id: str,
    title: str,
    candidates: str,
    exclude: tuple[str, ...],
    custom_message: str | None,
    order_id: int | None,
    requires_payment: bool,
) -> None:
    """Generate a catalogue from selected candidates (staff only)."""
    handler = GenerateCatalogueHandler(
        catalogue_repository(), candidate_directory(), order_repository()
    )
    inclusion = {f"include_{section}": False for section in exclude}
    candidate_ids = [c.strip() for c in candidates.split(",") if c.strip()]

    with domain_errors():
        dto = handler.handle(
            current_caller(ctx),
            client_id=client_id,
            title=title,
            candidate_ids=candidate_ids,
            inclusion=inclusion,
            custom_message=custom_message,
            order_id=order_id,
            requires_payment=requires_payment,
        )

    restricted = " (restricted)" if dto.is_content_restricted else ""
    click.echo(f"Catalogue #{dto.id} '{dto.title}' generated{restricted}")
    click.echo(f"Client: {dto.client_id}   Candidates: {len(dto.items)}")


@click.command("show")
@click.option("--id", "catalogue_id", required=True, type=int, help="Catalogue ID.")
@click.pass_context
def catalogue_show(ctx: click.Context, catalogue_id: int) -> None:
    """Show a catalogue with its full snapshots (staff only)."""
    with domain_errors():
        dto = ShowCatalogueHandler(catalogue_repository()).handle(current_caller(ctx), catalogue_id)
    click.echo(f"Catalogue #{dto.id} '{dto.title}'  (status={dto.status})")
    click.echo(f"Client: {dto.client_id}   Restricted: {'yes' if dto.is_content_restricted else 'no'}")
    _display_items(dto.items)


@click.command("share")
@click.option("--id", "catalogue_id", required=True, type=int, help="Catalogue ID.")
@click.option("--days", default=None, type=int, help="Link validity in days.")
@click.pass_context
def catalogue_share(ctx: click.Context, catalogue_id: int, days: int | None) -> None:
    """Issue (or show) the public share link of a catalogue."""
    config = get_config()
    handler = ShareCatalogueHandler(
        catalogue_repository(), config.PUBLIC_URL, config.SHARE_LINK_DAYS
    )
    with domain_errors():
        link = handler.handle(current_caller(ctx), catalogue_id, expiration_days=days)
    click.echo(f"Share URL: {link.share_url}")
    click.echo(f"Expires:   {link.expires_at}")


@click.command("view")
@click.option("--token", required=True, help="Share token.")
def catalogue_view(token: str) -> None:
    """Show a catalogue the way an external recipient sees it."""
    handler = ResolveSharedCatalogueHandler(catalogue_repository())
    with domain_errors():
        dto = handler.handle(token)
    click.echo(dto.title)
    if dto.custom_message:
        click.echo(dto.custom_message)
    if dto.is_content_restricted:
        click.echo("(restricted preview: contact details, CV, video and experience hidden)")
    _display_items(dto.items)


@click.command("status")
@click.option("--id", "catalogue_id", required=True, type=int, help="Catalogue ID.")
@click.option("--target", required=True, type=click.Choice(["ACCEPTE", "REFUSE"], case_sensitive=False))
@click.pass_context
def catalogue_status(ctx: click.Context, catalogue_id: int, target: str) -> None:
    """Record the client's decision on a catalogue (staff only)."""
    handler = UpdateCatalogueStatusHandler(catalogue_repository())
    with domain_errors():
        dto = handler.handle(current_caller(ctx), catalogue_id, target)
    click.echo(f"Catalogue #{dto.id} is now {dto.status}.")
