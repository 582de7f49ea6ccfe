"""This module defines the Pydantic models for ledger transactions.

`NewTransaction` and `TransactionPatch` validate caller input before it
reaches storage; `Transaction` represents a committed row.
"""

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, Field, field_validator
from xpensify.models.categories import TransactionType
from xpensify.models.events import LedgerEvent
from xpensify.models.goals import Goal


class NewTransaction(BaseModel):
    """Represents an income or expense entry proposed for the ledger.

    Attributes:
        user_id: The owner of the entry.
        type: Whether the entry is income or an expense.
        amount: The positive, currency-agnostic amount, with at most two
            decimal places and twelve integer digits.
        category_id: The category of the entry. When omitted, the ledger
            asks the suggestion engine for one based on the description.
        occurred_on: The calendar date of the entry.
        description: An optional free-text description.
    """

    user_id: UUID
    type: TransactionType
    amount: Decimal = Field(..., gt=0, max_digits=14, decimal_places=2, allow_inf_nan=False)
    category_id: UUID | None = None
    occurred_on: date
    description: str | None = Field(default=None, max_length=500)

    @field_validator("description")
    @classmethod
    def strip_description(cls, value: str | None) -> str | None:
        """Normalizes blank descriptions to None.

        Args:
            value: The raw description.

        Returns:
            The stripped description, or None when it is empty.
        """
        if value is None:
            return None
        return value.strip() or None


class TransactionPatch(BaseModel):
    """Represents an explicit edit of a committed transaction.

    Only the fields that are set are applied.
    """

    amount: Decimal | None = Field(default=None, gt=0, max_digits=14, decimal_places=2, allow_inf_nan=False)
    category_id: UUID | None = None
    occurred_on: date | None = None
    description: str | None = Field(default=None, max_length=500)


class Transaction(BaseModel):
    """Represents a transaction committed to the ledger."""

    transaction_id: UUID
    user_id: UUID
    type: TransactionType
    amount: Decimal
    category_id: UUID
    occurred_on: date
    description: str | None = None
    goal_id: UUID | None = None
    created_at: datetime


class TransactionFilters(BaseModel):
    """Optional filters for listing a user's transactions."""

    type: TransactionType | None = None
    category_id: UUID | None = None
    start_date: date | None = None
    end_date: date | None = None
    limit: int | None = Field(default=None, gt=0)


class LedgerTotals(BaseModel):
    """Aggregated amounts for a user's ledger."""

    income: Decimal = Decimal("0")
    expense: Decimal = Decimal("0")

    @property
    def balance(self) -> Decimal:
        """Returns income minus expense."""
        return self.income - self.expense


class CommitResult(BaseModel):
    """The outcome of a fully successful ledger commit.

    Attributes:
        transaction: The committed transaction.
        goal: The goal after the linked contribution, if any.
        events: Advisory signals raised by the follow-up steps.
    """

    transaction: Transaction
    goal: Goal | None = None
    events: list[LedgerEvent] = Field(default_factory=list)


class CategorySpending(BaseModel):
    """The expense total of one category.

    Attributes:
        category_id: The expense category.
        category_name: The display name of the category.
        total: The sum of the category's expenses.
        transaction_count: How many expenses were summed.
    """

    category_id: UUID
    category_name: str
    total: Decimal
    transaction_count: int


class MonthlySummary(BaseModel):
    """Income and expense totals of one calendar month."""

    month: date
    income: Decimal = Decimal("0")
    expense: Decimal = Decimal("0")

    @property
    def balance(self) -> Decimal:
        """Returns income minus expense for the month."""
        return self.income - self.expense
