"""Tests for the db command group."""

import os
import subprocess  # nosec B404
from collections.abc import Generator
from unittest.mock import MagicMock, patch

import pytest
from click.testing import CliRunner
from xpensify.cli.db import db_group
from xpensify.exceptions.ledger import DependencyFailureError


@pytest.fixture(autouse=True)
def restore_schema_variable() -> Generator[None, None, None]:
    """Restores POSTGRES_DB_SCHEMA, which the --schema option writes to.

    Yields:
        None.
    """
    original = os.environ.get("POSTGRES_DB_SCHEMA")
    yield
    if original is None:
        os.environ.pop("POSTGRES_DB_SCHEMA", None)
    else:
        os.environ["POSTGRES_DB_SCHEMA"] = original


@patch("xpensify.cli.db.subprocess.run")
def test_db_migrate_command_success(mock_run: MagicMock) -> None:
    """Tests the db migrate command."""
    runner = CliRunner()
    result = runner.invoke(db_group, ["migrate"])
    assert result.exit_code == 0
    assert "Migrations completed successfully!" in result.output
    mock_run.assert_called_once_with(["alembic", "upgrade", "head"], check=True)


@patch("xpensify.cli.db.subprocess.run")
def test_db_migrate_command_with_schema(mock_run: MagicMock) -> None:
    """Tests that the schema option is exported for alembic."""
    runner = CliRunner()
    result = runner.invoke(db_group, ["--schema", "test_schema", "migrate"])
    assert result.exit_code == 0
    assert os.environ["POSTGRES_DB_SCHEMA"] == "test_schema"


@patch("xpensify.cli.db.subprocess.run")
def test_db_migrate_command_failure(mock_run: MagicMock) -> None:
    """Tests the db migrate command failure case."""
    runner = CliRunner()
    mock_run.side_effect = subprocess.CalledProcessError(1, "cmd")
    result = runner.invoke(db_group, ["migrate"])
    assert result.exit_code == 1
    assert "An error occurred during migration" in result.output


@patch("xpensify.cli.db.subprocess.run")
def test_db_downgrade_command_success(mock_run: MagicMock) -> None:
    """Tests the db downgrade command."""
    runner = CliRunner()
    result = runner.invoke(db_group, ["downgrade"], input="y\n")
    assert result.exit_code == 0
    assert "Downgrade completed successfully!" in result.output
    mock_run.assert_called_once_with(["alembic", "downgrade", "-1"], check=True)


@patch("xpensify.cli.db.subprocess.run")
def test_db_downgrade_command_aborted(mock_run: MagicMock) -> None:
    """Tests that declining the confirmation runs nothing."""
    runner = CliRunner()
    result = runner.invoke(db_group, ["downgrade"], input="n\n")
    assert result.exit_code == 1
    mock_run.assert_not_called()


@patch("xpensify.cli.db.subprocess.run")
def test_db_reset_command_success(mock_run: MagicMock) -> None:
    """Tests the db reset command."""
    runner = CliRunner()
    result = runner.invoke(db_group, ["reset", "--yes"])
    assert result.exit_code == 0
    assert "Database reset successfully!" in result.output
    assert [call.args[0] for call in mock_run.call_args_list] == [
        ["alembic", "downgrade", "base"],
        ["alembic", "upgrade", "head"],
    ]


@patch("xpensify.cli.db.subprocess.run")
def test_db_reset_command_failure(mock_run: MagicMock) -> None:
    """Tests the db reset command failure case."""
    runner = CliRunner()
    mock_run.side_effect = subprocess.CalledProcessError(1, "cmd")
    result = runner.invoke(db_group, ["reset", "-y"])
    assert result.exit_code == 1
    assert "An error occurred during reset" in result.output


@patch("xpensify.cli.db.CategoryCatalog")
@patch("xpensify.cli.db.CategoriesRepository")
@patch("xpensify.cli.db.DatabaseManager")
def test_db_seed_command(mock_db_manager: MagicMock, mock_repo: MagicMock, mock_catalog: MagicMock) -> None:
    """Tests that seed inserts the default categories."""
    mock_catalog.return_value.seed_defaults.return_value = 13
    runner = CliRunner()
    result = runner.invoke(db_group, ["seed"])
    assert result.exit_code == 0
    assert "Seeded 13 new categories." in result.output
    mock_repo.assert_called_once_with(mock_db_manager.get_engine.return_value)


@patch("xpensify.cli.db.CategoryCatalog")
@patch("xpensify.cli.db.CategoriesRepository")
@patch("xpensify.cli.db.DatabaseManager")
def test_db_seed_command_failure(mock_db_manager: MagicMock, mock_repo: MagicMock, mock_catalog: MagicMock) -> None:
    """Tests that storage failures abort the seed command."""
    mock_catalog.return_value.seed_defaults.side_effect = DependencyFailureError("down")
    runner = CliRunner()
    result = runner.invoke(db_group, ["seed"])
    assert result.exit_code == 1
    assert "An error occurred during seeding" in result.output
