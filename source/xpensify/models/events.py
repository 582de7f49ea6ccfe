"""This module defines the advisory events emitted for notification collaborators."""

from enum import StrEnum
from typing import Any
from uuid import UUID

from pydantic import BaseModel, Field


class EventKind(StrEnum):
    """Enumeration for the kinds of advisory events."""

    GOAL_ACHIEVED = "goal_achieved"
    LEVEL_UP = "level_up"


class LedgerEvent(BaseModel):
    """An advisory signal returned to the caller; delivery is up to the caller."""

    kind: EventKind
    user_id: UUID
    payload: dict[str, Any] = Field(default_factory=dict)
