"""This module defines the Pydantic models for user profiles and progression."""

from enum import StrEnum
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field
from xpensify.models.events import LedgerEvent


class LearningAction(StrEnum):
    """Enumeration for the actions that grant experience points."""

    TRENDING_TIP = "trending_tip"
    CONCEPT_LESSON = "concept_lesson"
    QUIZ = "quiz"
    PERSONALIZED_ADVICE = "personalized_advice"
    MILESTONE_CONTENT = "milestone_content"
    TRANSACTION_LOGGED = "transaction_logged"


class LevelDefinition(BaseModel):
    """A tier of the level table covering `[min_xp, max_xp)`.

    Attributes:
        level: The level number, starting at 1.
        name: The display name of the tier.
        min_xp: The first xp value of the tier.
        max_xp: The first xp value of the next tier, or None for the
            open-ended top tier.
    """

    model_config = ConfigDict(frozen=True)

    level: int = Field(..., ge=1)
    name: str
    min_xp: int = Field(..., ge=0)
    max_xp: int | None = None

    def contains(self, xp: int) -> bool:
        """Checks whether the tier covers the given xp.

        Args:
            xp: The cumulative experience points.

        Returns:
            True if `min_xp <= xp < max_xp`.
        """
        return xp >= self.min_xp and (self.max_xp is None or xp < self.max_xp)


class Profile(BaseModel):
    """Represents the progression state of a user.

    xp and level are written only by the progression engine; the streak is
    maintained by an external daily-activity collaborator.
    """

    user_id: UUID
    full_name: str | None = None
    xp: int = Field(default=0, ge=0)
    level: int = Field(default=1, ge=1)
    current_streak: int = Field(default=0, ge=0)


class AwardResult(BaseModel):
    """The outcome of an experience points award.

    Attributes:
        profile: The profile after the award.
        previous_level: The level before the award.
        level: The level definition the new xp falls into.
        xp_to_next_level: Points missing for the next level, None at the top tier.
        events: A `level_up` event when the award crossed a level boundary.
    """

    profile: Profile
    previous_level: int
    level: LevelDefinition
    xp_to_next_level: int | None = None
    events: list[LedgerEvent] = Field(default_factory=list)

    @property
    def leveled_up(self) -> bool:
        """Returns True when the award moved the profile to a higher level."""
        return self.profile.level > self.previous_level
