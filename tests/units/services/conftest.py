from unittest.mock import MagicMock

import pytest
from xpensify.providers.config import Config


@pytest.fixture
def config() -> Config:
    """Provides a configuration with the default tunables."""
    return Config()


@pytest.fixture
def mock_goals_repo() -> MagicMock:
    """Fixture for a mocked GoalsRepository."""
    return MagicMock()


@pytest.fixture
def mock_transactions_repo() -> MagicMock:
    """Fixture for a mocked TransactionsRepository."""
    return MagicMock()


@pytest.fixture
def mock_profiles_repo() -> MagicMock:
    """Fixture for a mocked ProfilesRepository."""
    return MagicMock()


@pytest.fixture
def mock_categories_repo() -> MagicMock:
    """Fixture for a mocked CategoriesRepository."""
    return MagicMock()
