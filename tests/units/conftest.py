"""This module contains shared fixtures for all unit tests."""

from collections.abc import Generator
from datetime import datetime, timezone
from decimal import Decimal
from uuid import UUID, uuid4

import pytest
from xpensify.models.categories import Category, TransactionType
from xpensify.models.goals import Goal, GoalStatus
from xpensify.models.transactions import Transaction

TRACKED_ENV_VARS = (
    "POSTGRES_DB_SCHEMA",
    "LEVEL_STRATEGY",
    "FORECAST_WINDOW_DAYS",
    "SUGGESTION_MIN_DESCRIPTION_LENGTH",
    "LOG_LEVEL",
    "RECEIPT_EXTRACTION_MAX_ATTEMPTS",
)


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    """Removes settings that a developer's shell could leak into unit tests.

    Args:
        monkeypatch: Pytest fixture for mocking.

    Yields:
        None.
    """
    for name in TRACKED_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    yield


@pytest.fixture
def user_id() -> UUID:
    """Provides the id of the user owning the test data."""
    return uuid4()


@pytest.fixture
def now() -> datetime:
    """Provides a fixed timestamp for stored rows."""
    return datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def food_category() -> Category:
    """Provides the 'Food & Dining' expense category."""
    return Category(category_id=uuid4(), name="Food & Dining", type=TransactionType.EXPENSE, icon="utensils")


@pytest.fixture
def shopping_category() -> Category:
    """Provides the 'Shopping' expense category."""
    return Category(category_id=uuid4(), name="Shopping", type=TransactionType.EXPENSE, icon="shopping-bag")


@pytest.fixture
def salary_category() -> Category:
    """Provides the 'Salary' income category."""
    return Category(category_id=uuid4(), name="Salary", type=TransactionType.INCOME, icon="briefcase")


@pytest.fixture
def make_goal(user_id: UUID, now: datetime):
    """Provides a factory for stored goals.

    Returns:
        A function building a `Goal` with overridable attributes.
    """

    def _make_goal(**overrides) -> Goal:
        data = {
            "goal_id": uuid4(),
            "user_id": user_id,
            "title": "Emergency fund",
            "target_amount": Decimal("50000"),
            "current_amount": Decimal("20000"),
            "deadline": None,
            "category": "Savings",
            "status": GoalStatus.ACTIVE,
            "created_at": now,
            "updated_at": now,
        }
        data.update(overrides)
        return Goal(**data)

    return _make_goal


@pytest.fixture
def make_transaction(user_id: UUID, now: datetime):
    """Provides a factory for committed transactions.

    Returns:
        A function building a `Transaction` with overridable attributes.
    """

    def _make_transaction(**overrides) -> Transaction:
        data = {
            "transaction_id": uuid4(),
            "user_id": user_id,
            "type": TransactionType.EXPENSE,
            "amount": Decimal("250.00"),
            "category_id": uuid4(),
            "occurred_on": now.date(),
            "description": "Dinner at Zomato",
            "goal_id": None,
            "created_at": now,
        }
        data.update(overrides)
        return Transaction(**data)

    return _make_transaction
