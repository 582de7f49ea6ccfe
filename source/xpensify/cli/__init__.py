"""This module initializes the CLI application."""

import click
from xpensify.cli.db import db_group
from xpensify.providers.logging import LoggingProvider


def create_cli() -> click.Group:
    """Create and configure the main CLI group with all subcommands.

    Returns:
        The main Click command group for the application.
    """

    @click.group()
    @click.option(
        "--log-level",
        type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"], case_sensitive=False),
        help="Override the default log level for this command.",
    )
    def cli(log_level: str | None) -> None:
        """Administration commands for the Xpensify ledger core.

        Args:
            log_level: The desired logging level.
        """
        LoggingProvider().get_logger(level_override=log_level)

    cli.add_command(db_group)

    return cli
