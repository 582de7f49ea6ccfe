"""This module defines the repository for the category catalog."""

from collections.abc import Iterable
from uuid import UUID

from sqlalchemy import Engine, text
from xpensify.models.categories import Category, NewCategory, TransactionType
from xpensify.providers.logging import Logger, LoggingProvider

_CATEGORY_COLUMNS = "category_id, name, type, icon, color"


class CategoriesRepository:
    """Handles database operations for categories.

    Categories are reference data; this repository only reads them and
    appends new ones, it never renames or deletes.

    Args:
        engine: An SQLAlchemy Engine instance for database communication.
    """

    logger: Logger
    engine: Engine

    def __init__(self, engine: Engine) -> None:
        """Initializes the repository with a database engine.

        Args:
            engine: The SQLAlchemy Engine to be used for all database
                communications.
        """
        self.logger = LoggingProvider().get_logger()
        self.engine = engine

    def list_by_type(self, transaction_type: TransactionType) -> list[Category]:
        """Lists all categories of a transaction type, ordered by name.

        Args:
            transaction_type: The type of the categories to list.

        Returns:
            The matching categories.
        """
        sql = text(f"SELECT {_CATEGORY_COLUMNS} FROM categories WHERE type = :type ORDER BY name")
        with self.engine.connect() as conn:
            rows = conn.execute(sql, {"type": transaction_type.value}).mappings().all()
        return [Category.model_validate(dict(row)) for row in rows]

    def get_by_id(self, category_id: UUID) -> Category | None:
        """Retrieves a category by its id.

        Args:
            category_id: The id of the category.

        Returns:
            The category, or None if it does not exist.
        """
        sql = text(f"SELECT {_CATEGORY_COLUMNS} FROM categories WHERE category_id = :category_id")
        with self.engine.connect() as conn:
            row = conn.execute(sql, {"category_id": category_id}).mappings().one_or_none()
        return Category.model_validate(dict(row)) if row else None

    def get_by_name(self, name: str, transaction_type: TransactionType) -> Category | None:
        """Retrieves a category by name within a type, ignoring case.

        Args:
            name: The name of the category.
            transaction_type: The type the category belongs to.

        Returns:
            The category, or None if it does not exist.
        """
        sql = text(
            f"SELECT {_CATEGORY_COLUMNS} FROM categories WHERE LOWER(name) = LOWER(:name) AND type = :type"
        )
        with self.engine.connect() as conn:
            row = conn.execute(sql, {"name": name.strip(), "type": transaction_type.value}).mappings().one_or_none()
        return Category.model_validate(dict(row)) if row else None

    def insert_missing(self, categories: Iterable[NewCategory]) -> int:
        """Inserts the categories that are not in the catalog yet.

        Existing categories, matched by type and name, are left untouched.

        Args:
            categories: The categories to insert.

        Returns:
            The number of categories actually inserted.
        """
        sql = text(
            """
            INSERT INTO categories (name, type, icon, color)
            VALUES (:name, :type, :icon, :color)
            ON CONFLICT (type, name) DO NOTHING;
            """
        )
        inserted = 0
        with self.engine.connect() as conn:
            for category in categories:
                result = conn.execute(sql, category.model_dump(mode="json"))
                inserted += result.rowcount
            conn.commit()
        self.logger.info(f"Inserted {inserted} new category(ies) into the catalog.")
        return inserted
