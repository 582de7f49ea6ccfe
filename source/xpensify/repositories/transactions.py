"""This module defines the repository for ledger transactions."""

from datetime import date
from decimal import Decimal
from typing import Any
from uuid import UUID

from sqlalchemy import Engine, text
from xpensify.models.categories import TransactionType
from xpensify.models.transactions import (
    CategorySpending,
    LedgerTotals,
    MonthlySummary,
    NewTransaction,
    Transaction,
    TransactionFilters,
)
from xpensify.providers.logging import Logger, LoggingProvider

_TRANSACTION_COLUMNS = (
    "transaction_id, user_id, type, amount, category_id, occurred_on, description, goal_id, created_at"
)


class TransactionsRepository:
    """Handles database operations for ledger transactions.

    Every query is scoped by `user_id`, so a transaction owned by another
    user behaves exactly like a missing one.

    Args:
        engine: An SQLAlchemy Engine instance for database communication.
    """

    UPDATABLE_COLUMNS: frozenset[str] = frozenset({"amount", "category_id", "occurred_on", "description"})

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

    def insert(self, entry: NewTransaction, category_id: UUID, goal_id: UUID | None = None) -> Transaction:
        """Inserts a validated entry into the ledger.

        Args:
            entry: The validated entry.
            category_id: The resolved category of the entry.
            goal_id: The goal the entry contributes to, if any.

        Returns:
            The committed transaction.
        """
        self.logger.info(f"Saving {entry.type.value} transaction of {entry.amount} for user {entry.user_id}.")
        sql = text(
            f"""
            INSERT INTO transactions (user_id, type, amount, category_id, occurred_on, description, goal_id)
            VALUES (:user_id, :type, :amount, :category_id, :occurred_on, :description, :goal_id)
            RETURNING {_TRANSACTION_COLUMNS};
            """
        )
        params = {
            "user_id": entry.user_id,
            "type": entry.type.value,
            "amount": entry.amount,
            "category_id": category_id,
            "occurred_on": entry.occurred_on,
            "description": entry.description,
            "goal_id": goal_id,
        }
        with self.engine.connect() as conn:
            row = conn.execute(sql, params).mappings().one()
            conn.commit()
        return Transaction.model_validate(dict(row))

    def get(self, user_id: UUID, transaction_id: UUID) -> Transaction | None:
        """Retrieves a transaction owned by a user.

        Args:
            user_id: The owner of the transaction.
            transaction_id: The id of the transaction.

        Returns:
            The transaction, or None if not found for that user.
        """
        sql = text(
            f"SELECT {_TRANSACTION_COLUMNS} FROM transactions "
            "WHERE transaction_id = :transaction_id AND user_id = :user_id"
        )
        with self.engine.connect() as conn:
            row = conn.execute(sql, {"transaction_id": transaction_id, "user_id": user_id}).mappings().one_or_none()
        return Transaction.model_validate(dict(row)) if row else None

    def update(self, user_id: UUID, transaction_id: UUID, changes: dict[str, Any]) -> Transaction | None:
        """Applies a set of column changes to a transaction.

        Args:
            user_id: The owner of the transaction.
            transaction_id: The id of the transaction.
            changes: The new values, keyed by column name.

        Returns:
            The updated transaction, or None if not found for that user.

        Raises:
            ValueError: If a column outside `UPDATABLE_COLUMNS` is given.
        """
        unknown = set(changes) - self.UPDATABLE_COLUMNS
        if unknown:
            raise ValueError(f"Columns cannot be updated: {sorted(unknown)}")
        if not changes:
            return self.get(user_id, transaction_id)

        assignments = ", ".join(f"{column} = :{column}" for column in sorted(changes))
        sql = text(
            f"""
            UPDATE transactions
            SET {assignments}, updated_at = NOW()
            WHERE transaction_id = :transaction_id AND user_id = :user_id
            RETURNING {_TRANSACTION_COLUMNS};
            """
        )
        params = {**changes, "transaction_id": transaction_id, "user_id": user_id}
        with self.engine.connect() as conn:
            row = conn.execute(sql, params).mappings().one_or_none()
            conn.commit()
        return Transaction.model_validate(dict(row)) if row else None

    def delete(self, user_id: UUID, transaction_id: UUID) -> bool:
        """Deletes a transaction owned by a user.

        Args:
            user_id: The owner of the transaction.
            transaction_id: The id of the transaction.

        Returns:
            True if a row was deleted.
        """
        sql = text("DELETE FROM transactions WHERE transaction_id = :transaction_id AND user_id = :user_id")
        with self.engine.connect() as conn:
            result = conn.execute(sql, {"transaction_id": transaction_id, "user_id": user_id})
            conn.commit()
        return result.rowcount > 0

    def list_for_user(self, user_id: UUID, filters: TransactionFilters | None = None) -> list[Transaction]:
        """Lists a user's transactions, most recent first.

        Transactions are ordered by occurrence date and then by creation time,
        both descending.

        Args:
            user_id: The owner of the transactions.
            filters: Optional filters to narrow the listing.

        Returns:
            The matching transactions.
        """
        filters = filters or TransactionFilters()
        clauses = ["user_id = :user_id"]
        params: dict[str, Any] = {"user_id": user_id}

        if filters.type is not None:
            clauses.append("type = :type")
            params["type"] = filters.type.value
        if filters.category_id is not None:
            clauses.append("category_id = :category_id")
            params["category_id"] = filters.category_id
        if filters.start_date is not None:
            clauses.append("occurred_on >= :start_date")
            params["start_date"] = filters.start_date
        if filters.end_date is not None:
            clauses.append("occurred_on <= :end_date")
            params["end_date"] = filters.end_date

        limit_clause = ""
        if filters.limit is not None:
            limit_clause = "LIMIT :limit"
            params["limit"] = filters.limit

        sql = text(
            f"""
            SELECT {_TRANSACTION_COLUMNS}
            FROM transactions
            WHERE {" AND ".join(clauses)}
            ORDER BY occurred_on DESC, created_at DESC
            {limit_clause}
            """
        )
        with self.engine.connect() as conn:
            rows = conn.execute(sql, params).mappings().all()
        return [Transaction.model_validate(dict(row)) for row in rows]

    def totals(self, user_id: UUID) -> LedgerTotals:
        """Sums a user's transaction amounts by type.

        Args:
            user_id: The owner of the transactions.

        Returns:
            The income and expense totals.
        """
        sql = text(
            "SELECT type, COALESCE(SUM(amount), 0) AS total FROM transactions WHERE user_id = :user_id GROUP BY type"
        )
        with self.engine.connect() as conn:
            rows = conn.execute(sql, {"user_id": user_id}).mappings().all()

        sums = {TransactionType(row["type"]): Decimal(row["total"]) for row in rows}
        return LedgerTotals(
            income=sums.get(TransactionType.INCOME, Decimal("0")),
            expense=sums.get(TransactionType.EXPENSE, Decimal("0")),
        )

    def sum_income_between(self, user_id: UUID, start_date: date, end_date: date) -> Decimal:
        """Sums a user's income dated within an inclusive date range.

        Args:
            user_id: The owner of the transactions.
            start_date: The first day of the range.
            end_date: The last day of the range.

        Returns:
            The total income in the range.
        """
        sql = text(
            """
            SELECT COALESCE(SUM(amount), 0) FROM transactions
            WHERE user_id = :user_id
              AND type = 'income'
              AND occurred_on BETWEEN :start_date AND :end_date
            """
        )
        with self.engine.connect() as conn:
            result = conn.execute(
                sql, {"user_id": user_id, "start_date": start_date, "end_date": end_date}
            ).scalar_one_or_none()
        return Decimal(result) if result is not None else Decimal("0")

    def spending_by_category(self, user_id: UUID, filters: TransactionFilters | None = None) -> list[CategorySpending]:
        """Sums a user's expenses per category, largest total first.

        Args:
            user_id: The owner of the transactions.
            filters: Optional date and category filters. The type filter and
                the limit are ignored.

        Returns:
            One entry per category with at least one matching expense.
        """
        filters = filters or TransactionFilters()
        clauses = ["t.user_id = :user_id", "t.type = 'expense'"]
        params: dict[str, Any] = {"user_id": user_id}
        if filters.category_id is not None:
            clauses.append("t.category_id = :category_id")
            params["category_id"] = filters.category_id
        if filters.start_date is not None:
            clauses.append("t.occurred_on >= :start_date")
            params["start_date"] = filters.start_date
        if filters.end_date is not None:
            clauses.append("t.occurred_on <= :end_date")
            params["end_date"] = filters.end_date

        sql = text(
            f"""
            SELECT t.category_id, c.name AS category_name,
                   SUM(t.amount) AS total, COUNT(*) AS transaction_count
            FROM transactions t
            JOIN categories c ON c.category_id = t.category_id
            WHERE {" AND ".join(clauses)}
            GROUP BY t.category_id, c.name
            ORDER BY total DESC, c.name
            """
        )
        with self.engine.connect() as conn:
            rows = conn.execute(sql, params).mappings().all()
        return [CategorySpending.model_validate(dict(row)) for row in rows]

    def monthly_summary(self, user_id: UUID, start_date: date, end_date: date) -> list[MonthlySummary]:
        """Sums a user's income and expenses per calendar month.

        Args:
            user_id: The owner of the transactions.
            start_date: The first day of the range.
            end_date: The last day of the range.

        Returns:
            One entry per month with transactions, oldest first.
        """
        sql = text(
            """
            SELECT CAST(date_trunc('month', occurred_on) AS DATE) AS month,
                   COALESCE(SUM(amount) FILTER (WHERE type = 'income'), 0) AS income,
                   COALESCE(SUM(amount) FILTER (WHERE type = 'expense'), 0) AS expense
            FROM transactions
            WHERE user_id = :user_id
              AND occurred_on BETWEEN :start_date AND :end_date
            GROUP BY 1
            ORDER BY 1
            """
        )
        with self.engine.connect() as conn:
            rows = (
                conn.execute(sql, {"user_id": user_id, "start_date": start_date, "end_date": end_date}).mappings().all()
            )
        return [MonthlySummary.model_validate(dict(row)) for row in rows]
