"""This module defines the 'db' command group for the Xpensify CLI."""

import os
import subprocess  # nosec B404

import click
from xpensify.exceptions.ledger import DependencyFailureError
from xpensify.providers.database import DatabaseManager
from xpensify.repositories.categories import CategoriesRepository
from xpensify.services.categories import CategoryCatalog


def _run_alembic(*args: str) -> None:
    subprocess.run(["alembic", *args], check=True)  # nosec B603, B607


@click.group("db")
@click.option("--schema", default=None, help="The database schema to use.")
def db_group(schema: str | None) -> None:
    """Groups commands related to database management.

    Args:
        schema: The database schema to use.
    """
    if schema:
        os.environ["POSTGRES_DB_SCHEMA"] = schema


@db_group.command("migrate")
def migrate() -> None:
    """Runs database migrations to the latest version."""
    click.echo("Running database migrations...")
    try:
        _run_alembic("upgrade", "head")
        click.secho("Migrations completed successfully!", fg="green")
    except subprocess.CalledProcessError as e:
        click.secho(f"An error occurred during migration: {e}", fg="red")
        raise click.Abort()


@db_group.command("downgrade")
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation prompt.")
def downgrade(yes: bool) -> None:
    """Downgrades the database to the previous version.

    Args:
        yes: Skip confirmation prompt.
    """
    if not yes:
        click.confirm(
            "Warning: This is a destructive operation that may result in data loss "
            "(tables will be dropped). Are you sure you want to continue?",
            abort=True,
        )

    click.echo("Downgrading database...")
    try:
        _run_alembic("downgrade", "-1")
        click.secho("Downgrade completed successfully!", fg="green")
    except subprocess.CalledProcessError as e:
        click.secho(f"An error occurred during downgrade: {e}", fg="red")
        raise click.Abort()


@db_group.command("reset")
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation prompt.")
def reset(yes: bool) -> None:
    """Downgrades every migration and upgrades again to the latest version.

    Args:
        yes: Skip confirmation prompt.
    """
    if not yes:
        click.confirm("Are you sure you want to reset the database? This will delete all data.", abort=True)

    click.echo("Resetting database...")
    try:
        click.echo("Downgrading to base...")
        _run_alembic("downgrade", "base")
        click.echo("Upgrading to head...")
        _run_alembic("upgrade", "head")
        click.secho("Database reset successfully!", fg="green")
    except subprocess.CalledProcessError as e:
        click.secho(f"An error occurred during reset: {e}", fg="red")
        raise click.Abort()


@db_group.command("seed")
def seed() -> None:
    """Inserts the default income and expense categories that are missing."""
    click.echo("Seeding default categories...")
    try:
        catalog = CategoryCatalog(CategoriesRepository(DatabaseManager.get_engine()))
        inserted = catalog.seed_defaults()
        click.secho(f"Seeded {inserted} new categories.", fg="green")
    except DependencyFailureError as e:
        click.secho(f"An error occurred during seeding: {e}", fg="red")
        raise click.Abort()
