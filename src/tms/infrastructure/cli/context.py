"""Shared CLI helpers: caller resolution and error translation."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager

import click

from tms.domain.exceptions import DomainException, InsufficientAvailabilityError
from tms.domain.model.caller import Caller


def current_caller(ctx: click.Context) -> Caller:
    caller = (ctx.obj or {}).get("caller")
    if caller is None:
        raise click.UsageError("This command needs --as-client ID or --as-staff ID")
    return caller


@contextmanager
def domain_errors() -> Iterator[None]:
    """Turn domain failures into ClickException with the error code."""
    try:
        yield
    except InsufficientAvailabilityError as exc:
        lines = [f"[{exc.code}] Not enough candidates available:"]
        for s in exc.shortfalls:
            lines.append(
                f"  {s.key}: requested {s.requested}, available {s.available} "
                f"(reduce by {s.missing})"
            )
        raise click.ClickException("\n".join(lines))
    except DomainException as exc:
        raise click.ClickException(f"[{exc.code}] {exc}")
