"""``flask seed`` commands loading the demo accounts and todos."""

from __future__ import annotations

import logging

import click
from flask import current_app
from flask.cli import with_appcontext
from sqlalchemy.exc import SQLAlchemyError

from fancy_todo.core.extensions import db
from fancy_todo.seeds import seed_data

LOGGER = logging.getLogger(__name__)


def _echo_summary(summary: dict[str, dict[str, int]]) -> None:
    click.echo("Seed summary:")
    if not summary:
        click.echo("  (no changes)")
        return
    width = max(len(name) for name in summary)
    for table, counters in sorted(summary.items()):
        created = counters.get("created", 0)
        existing = counters.get("existing", 0)
        click.echo(f"  {table.ljust(width)}  created={created:>2}  existing={existing:>2}")


def _seed(verbose: bool) -> None:
    try:
        summary = seed_data.run_all(db, verbose=verbose)
    except SQLAlchemyError as exc:
        db.session.rollback()
        raise click.ClickException(f"Seeding failed: {exc}") from exc
    _echo_summary(summary)


def _ensure_non_production() -> None:
    """Abort destructive commands outside development and testing."""
    config = current_app.config
    if not (config.get("DEBUG") or config.get("TESTING")):
        raise click.UsageError("'flask seed fresh' is restricted to non-production environments.")


@click.group("seed")
@click.option("--verbose", is_flag=True, help="Log every seeded row.")
@click.pass_context
def seed_cli(ctx: click.Context, verbose: bool) -> None:
    """Demo data for local development."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    level = logging.DEBUG if verbose else logging.INFO
    logging.getLogger(seed_data.__name__).setLevel(level)


@seed_cli.command("run")
@click.pass_context
@with_appcontext
def run_command(ctx: click.Context) -> None:
    """Create the demo users (johndoe, janedoe) and their todos if missing."""
    _seed(bool(ctx.obj.get("verbose", False)))


@seed_cli.command("fresh")
@click.option("--yes", is_flag=True, help="Skip the confirmation prompt.")
@click.pass_context
@with_appcontext
def fresh_command(ctx: click.Context, yes: bool) -> None:
    """Drop and recreate every table, then seed."""
    _ensure_non_production()
    if not yes:
        click.confirm("This will DROP all tables and recreate them. Continue?", abort=True)
    LOGGER.info("seed.reset_schema")
    db.session.remove()
    db.drop_all()
    db.create_all()
    _seed(bool(ctx.obj.get("verbose", False)))
