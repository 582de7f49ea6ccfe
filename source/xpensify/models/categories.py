"""This module defines the Pydantic models for transaction categories."""

from enum import StrEnum
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class TransactionType(StrEnum):
    """Enumeration for the direction of a ledger entry."""

    INCOME = "income"
    EXPENSE = "expense"


class NewCategory(BaseModel):
    """Represents a category to be seeded into the catalog."""

    name: str = Field(..., min_length=1)
    type: TransactionType
    icon: str = "tag"
    color: str = "#64748B"


class Category(NewCategory):
    """Represents a category stored in the catalog.

    Categories are append-only reference data: once referenced by a
    transaction they are never renamed.

    Attributes:
        category_id: The unique identifier of the category.
        name: The display name, unique within its type.
        type: Whether the category applies to income or expense entries.
        icon: The name of the icon used to display the category.
        color: The display color as a hex string.
    """

    model_config = ConfigDict(frozen=True)

    category_id: UUID
