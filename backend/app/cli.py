"""
RequestGraph Backend — Command Line Interface
===============================================

What:  `requestgraph setup` and `requestgraph teardown`.
Why:   Collections are a deployment concern; creating them per request or
       on every boot would hide misconfiguration.
How:   Typer commands that build their own engine from DATABASE_URL and run
       the async admin service with asyncio.run().

Usage:
    requestgraph setup                 # idempotent
    requestgraph teardown --yes        # drops all five collections
"""

import asyncio
import logging

import typer

from app.config import settings
from app.database import build_engine
from app.services.collection_admin import setup_collections, teardown_collections

logger = logging.getLogger(__name__)

app = typer.Typer(
    name="requestgraph",
    help="Manage the RequestGraph document collections.",
    add_completion=False,
    no_args_is_help=True,
)


def _configure_logging() -> None:
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
    )


async def _run_setup() -> list:
    engine = build_engine(settings)
    try:
        return await setup_collections(engine, settings)
    finally:
        await engine.dispose()


async def _run_teardown() -> list:
    engine = build_engine(settings)
    try:
        return await teardown_collections(engine, settings)
    finally:
        await engine.dispose()


@app.command()
def setup() -> None:
    """Create the backing tables and register every collection."""
    _configure_logging()
    try:
        settings.validate_required_for_production()
        created = asyncio.run(_run_setup())
    except Exception as e:
        logger.error("Setup failed: %s", e)
        typer.echo(f"Setup failed: {e}", err=True)
        raise typer.Exit(1)

    if created:
        typer.echo(f"Created {len(created)} collection(s): {', '.join(created)}")
    else:
        typer.echo("All collections already exist.")


@app.command()
def teardown(
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip the confirmation prompt"),
) -> None:
    """Drop every collection together with its documents."""
    _configure_logging()
    if not yes:
        typer.confirm("This permanently deletes all documents. Continue?", abort=True)

    try:
        dropped = asyncio.run(_run_teardown())
    except Exception as e:
        logger.error("Teardown failed: %s", e)
        typer.echo(f"Teardown failed: {e}", err=True)
        raise typer.Exit(1)

    if dropped:
        typer.echo(f"Dropped {len(dropped)} collection(s): {', '.join(dropped)}")
    else:
        typer.echo("No collections to drop.")


if __name__ == "__main__":
    app()
