import tempfile
import time
import uuid
from collections.abc import Generator
from pathlib import Path
from typing import Any

import pytest
from alembic import command
from alembic.config import Config as AlembicConfig
from filelock import FileLock
from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import OperationalError
from xpensify.providers.config import Config, ConfigProvider
from xpensify.repositories.categories import CategoriesRepository
from xpensify.repositories.goals import GoalsRepository
from xpensify.repositories.profiles import ProfilesRepository
from xpensify.repositories.transactions import TransactionsRepository
from xpensify.services.categories import CategoryCatalog
from xpensify.services.goals import GoalProgressTracker
from xpensify.services.ledger import TransactionLedger
from xpensify.services.progression import ProgressionEngine
from xpensify.services.suggestion import CategorySuggestionEngine

PROJECT_ROOT = Path(__file__).resolve().parents[2]
DATABASE_WAIT_ATTEMPTS = 5


def _database_url(config: Config) -> str:
    return (
        f"{config.POSTGRES_DRIVER}://{config.POSTGRES_USER}:{config.POSTGRES_PASSWORD}@"
        f"{config.POSTGRES_HOST}:{config.POSTGRES_PORT}/{config.POSTGRES_DB}"
    )


def _wait_for_database(engine: Engine) -> None:
    for attempt in range(DATABASE_WAIT_ATTEMPTS):
        try:
            with engine.connect() as connection:
                connection.execute(text("SELECT 1"))
            return
        except OperationalError:
            if attempt == DATABASE_WAIT_ATTEMPTS - 1:
                pytest.skip("PostgreSQL is not reachable with the configured POSTGRES_* settings.")
            time.sleep(1)


@pytest.fixture(scope="function")
def db_engine(monkeypatch: pytest.MonkeyPatch) -> Generator[Engine, Any, None]:
    """Creates an isolated, fully migrated schema for a test.

    Args:
        monkeypatch: Pytest fixture for mocking.

    Yields:
        An engine whose connections use the test schema.
    """
    config = ConfigProvider.get_config()
    db_url = _database_url(config)
    schema_name = f"test_schema_{uuid.uuid4().hex}"
    monkeypatch.setenv("POSTGRES_DB_SCHEMA", schema_name)

    engine = create_engine(
        db_url,
        pool_size=10,
        max_overflow=10,
        connect_args={"options": f"-csearch_path={schema_name}"},
    )
    _wait_for_database(engine)

    try:
        with engine.connect() as connection:
            connection.execute(text('CREATE EXTENSION IF NOT EXISTS "uuid-ossp" SCHEMA public'))
            connection.execute(text(f"CREATE SCHEMA {schema_name}"))
            connection.commit()

        alembic_cfg = AlembicConfig(str(PROJECT_ROOT / "alembic.ini"))
        alembic_cfg.set_main_option("script_location", str(PROJECT_ROOT / "source" / "xpensify" / "migrations"))

        lock_path = Path(tempfile.gettempdir()) / "xpensify_tests_alembic.lock"
        with FileLock(str(lock_path)):
            command.upgrade(alembic_cfg, "head")

        yield engine
    finally:
        with engine.connect() as connection:
            connection.execute(text(f"DROP SCHEMA IF EXISTS {schema_name} CASCADE"))
            connection.commit()
        engine.dispose()


@pytest.fixture
def user_id() -> uuid.UUID:
    """Provides the id of the user owning the test data."""
    return uuid.uuid4()


@pytest.fixture
def integration_dependencies(db_engine: Engine) -> dict[str, Any]:
    """Provides services wired to real repositories on the test schema.

    The default categories are seeded before the services are returned.

    Args:
        db_engine: The SQLAlchemy engine.

    Returns:
        A dictionary of repositories and services.
    """
    config = ConfigProvider.get_config()
    categories_repo = CategoriesRepository(db_engine)
    transactions_repo = TransactionsRepository(db_engine)
    goals_repo = GoalsRepository(db_engine)
    profiles_repo = ProfilesRepository(db_engine)

    catalog = CategoryCatalog(categories_repo)
    catalog.seed_defaults()
    goal_tracker = GoalProgressTracker(goals_repo, transactions_repo, config=config)
    progression = ProgressionEngine(profiles_repo, config=config)
    ledger = TransactionLedger(
        transactions_repo,
        catalog,
        CategorySuggestionEngine(min_description_length=config.SUGGESTION_MIN_DESCRIPTION_LENGTH),
        goal_tracker,
        progression=progression,
    )

    return {
        "transactions_repo": transactions_repo,
        "goals_repo": goals_repo,
        "profiles_repo": profiles_repo,
        "catalog": catalog,
        "goal_tracker": goal_tracker,
        "progression": progression,
        "ledger": ledger,
    }
