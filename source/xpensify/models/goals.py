"""This module defines the Pydantic models for savings goals and their forecasts."""

from datetime import date, datetime
from decimal import Decimal
from enum import StrEnum
from uuid import UUID

from pydantic import BaseModel, Field
from xpensify.models.events import LedgerEvent


class GoalStatus(StrEnum):
    """Enumeration for the lifecycle of a goal."""

    ACTIVE = "active"
    ACHIEVED = "achieved"
    CANCELLED = "cancelled"


class NewGoal(BaseModel):
    """Represents a goal to be created for a user."""

    title: str = Field(..., min_length=1, max_length=200)
    target_amount: Decimal = Field(..., gt=0, max_digits=14, decimal_places=2, allow_inf_nan=False)
    deadline: date | None = None
    category: str = "Savings"


class Goal(BaseModel):
    """Represents a savings goal with its accumulated balance.

    `current_amount` is the sum of the goal's recorded contributions and is
    never edited directly.
    """

    goal_id: UUID
    user_id: UUID
    title: str
    target_amount: Decimal
    current_amount: Decimal = Field(default=Decimal("0"), ge=0)
    deadline: date | None = None
    category: str = "Savings"
    status: GoalStatus = GoalStatus.ACTIVE
    created_at: datetime
    updated_at: datetime

    @property
    def remaining_amount(self) -> Decimal:
        """Returns how much is still missing to reach the target, never negative."""
        return max(self.target_amount - self.current_amount, Decimal("0"))

    @property
    def progress_percentage(self) -> int:
        """Returns the progress towards the target as a whole percentage, capped at 100."""
        if self.target_amount <= 0:
            return 0
        percentage = int(self.current_amount * 100 / self.target_amount)
        return min(percentage, 100)

    @property
    def is_met(self) -> bool:
        """Returns True when the accumulated amount reached the target."""
        return self.current_amount >= self.target_amount


class ContributionOutcome(StrEnum):
    """The storage-level result of applying a contribution."""

    APPLIED = "applied"
    ALREADY_APPLIED = "already_applied"
    GOAL_NOT_FOUND = "goal_not_found"
    GOAL_NOT_ACTIVE = "goal_not_active"


class ContributionResult(BaseModel):
    """The outcome of a goal contribution.

    Attributes:
        goal: The goal after the contribution.
        applied: False when the contribution had already been recorded for
            the same transaction and nothing changed.
        achieved: True when this contribution made the goal reach its target.
        events: A `goal_achieved` event when `achieved` is True.
    """

    goal: Goal
    applied: bool
    achieved: bool = False
    events: list[LedgerEvent] = Field(default_factory=list)


class ForecastStatus(StrEnum):
    """Enumeration for the kinds of forecast answers."""

    ACHIEVED = "achieved"
    NO_INCOME = "no_income"
    PROJECTED = "projected"


class Forecast(BaseModel):
    """A linear projection of the time left to complete a goal.

    Attributes:
        status: Which kind of answer the forecast gives.
        months_remaining: The projected number of months, only set for
            `PROJECTED` forecasts.
        message: A short human-readable summary.
        monthly_income: The trailing income used for the projection.
        on_track: Whether the projection fits before the goal's deadline,
            or None when no projection or deadline exists.
    """

    status: ForecastStatus
    months_remaining: int | None = None
    message: str
    monthly_income: Decimal = Decimal("0")
    on_track: bool | None = None
