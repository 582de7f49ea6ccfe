"""This module defines the boundary models for extracted receipt transactions.

The extraction collaborator returns loosely shaped records. They are parsed
into `ReceiptCandidate` before anything touches the ledger, and every record
that fails the parse is reported back instead of being guessed at.
"""

import datetime
from decimal import Decimal
from enum import StrEnum
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator
from xpensify.exceptions.ledger import FollowUpStep
from xpensify.models.categories import TransactionType
from xpensify.models.transactions import Transaction


class ReceiptCategory(StrEnum):
    """The category labels the extraction collaborator is allowed to return."""

    FOOD_AND_DINING = "Food & Dining"
    SHOPPING = "Shopping"
    TRANSPORTATION = "Transportation"
    ENTERTAINMENT = "Entertainment"
    BILLS_AND_UTILITIES = "Bills & Utilities"
    HEALTHCARE = "Healthcare"
    EDUCATION = "Education"
    OTHER = "Other"


class ReceiptCandidate(BaseModel):
    """A single transaction extracted from an uploaded document."""

    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    amount: Decimal = Field(..., gt=0, max_digits=14, decimal_places=2, allow_inf_nan=False)
    merchant: str
    date: datetime.date
    category: ReceiptCategory
    description: str
    type: TransactionType

    @field_validator("date", mode="before")
    @classmethod
    def require_iso_date(cls, value: Any) -> Any:
        """Accepts only ISO-8601 calendar date strings or date objects.

        Args:
            value: The raw date value.

        Returns:
            The parsed date.

        Raises:
            ValueError: If the value is not an ISO-8601 date.
        """
        if isinstance(value, datetime.date):
            return value
        if not isinstance(value, str):
            raise ValueError("date must be an ISO-8601 string")
        return datetime.date.fromisoformat(value.strip())

    @field_validator("amount", mode="before")
    @classmethod
    def reject_booleans(cls, value: Any) -> Any:
        """Rejects booleans, which would otherwise be read as 0 or 1.

        Args:
            value: The raw amount.

        Returns:
            The unchanged amount.

        Raises:
            ValueError: If the amount is a boolean.
        """
        if isinstance(value, bool):
            raise ValueError("amount must be a number")
        return value

    @property
    def text_for_suggestion(self) -> str:
        """Returns the text used to suggest a category for this candidate."""
        return f"{self.description} {self.merchant}".strip()


class RejectedCandidate(BaseModel):
    """A candidate that could not be committed, with the reason."""

    index: int
    reason: str
    raw: dict[str, Any] = Field(default_factory=dict)


class FailedFollowUp(BaseModel):
    """A committed candidate whose follow-up steps still need a retry."""

    transaction_id: UUID
    failed_steps: list[FollowUpStep]


class IngestionReport(BaseModel):
    """The outcome of ingesting a batch of extracted candidates."""

    committed: list[Transaction] = Field(default_factory=list)
    rejected: list[RejectedCandidate] = Field(default_factory=list)
    failed_follow_ups: list[FailedFollowUp] = Field(default_factory=list)
