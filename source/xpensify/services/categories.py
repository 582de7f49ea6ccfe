"""This module defines the CategoryCatalog service."""

from uuid import UUID

from xpensify.constants.categories import DEFAULT_CATEGORIES, FALLBACK_CATEGORY_NAMES
from xpensify.exceptions.ledger import NotFoundError
from xpensify.models.categories import Category, TransactionType
from xpensify.providers.database import translate_database_errors
from xpensify.providers.logging import Logger, LoggingProvider
from xpensify.repositories.categories import CategoriesRepository


class CategoryCatalog:
    """The queryable set of categories for each transaction type."""

    logger: Logger
    categories_repo: CategoriesRepository

    def __init__(self, categories_repo: CategoriesRepository) -> None:
        """Initializes the catalog with its repository.

        Args:
            categories_repo: The repository for category data.
        """
        self.logger = LoggingProvider().get_logger()
        self.categories_repo = categories_repo

    @translate_database_errors
    def list_for_type(self, transaction_type: TransactionType) -> list[Category]:
        """Lists the categories available for a transaction type.

        Args:
            transaction_type: The type to list categories for.

        Returns:
            The categories, ordered by name.
        """
        return self.categories_repo.list_by_type(transaction_type)

    @translate_database_errors
    def get(self, category_id: UUID) -> Category:
        """Retrieves a category by id.

        Args:
            category_id: The id of the category.

        Returns:
            The category.

        Raises:
            NotFoundError: If the category does not exist.
        """
        category = self.categories_repo.get_by_id(category_id)
        if category is None:
            raise NotFoundError(f"Category {category_id} does not exist.")
        return category

    @translate_database_errors
    def find_by_name(self, name: str, transaction_type: TransactionType) -> Category | None:
        """Looks up a category by name within a type, ignoring case.

        Args:
            name: The category name.
            transaction_type: The type the category belongs to.

        Returns:
            The category, or None if there is no such category.
        """
        if not name or not name.strip():
            return None
        return self.categories_repo.get_by_name(name, transaction_type)

    def fallback_for(self, transaction_type: TransactionType) -> Category | None:
        """Returns the catch-all category of a type, if it is in the catalog.

        Args:
            transaction_type: The type of the fallback category.

        Returns:
            The fallback category, or None if it has not been seeded.
        """
        return self.find_by_name(FALLBACK_CATEGORY_NAMES[transaction_type], transaction_type)

    @translate_database_errors
    def seed_defaults(self) -> int:
        """Inserts the default categories that are missing from the catalog.

        Returns:
            The number of categories inserted.
        """
        inserted = self.categories_repo.insert_missing(DEFAULT_CATEGORIES)
        self.logger.info(f"Category catalog seeded ({inserted} new of {len(DEFAULT_CATEGORIES)} defaults).")
        return inserted
