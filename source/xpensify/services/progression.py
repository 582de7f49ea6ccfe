"""This module defines the ProgressionEngine.

The engine is the only writer of a profile's experience points and level.
Levels are always derived from cumulative xp, never counted incrementally,
so recomputing a level from stored xp is idempotent.
"""

from uuid import UUID

from xpensify.constants.levels import LEVEL_DEFINITIONS
from xpensify.exceptions.ledger import LedgerValidationError, NotFoundError
from xpensify.models.events import EventKind, LedgerEvent
from xpensify.models.profiles import AwardResult, LearningAction, LevelDefinition, Profile
from xpensify.providers.config import Config, ConfigProvider, LevelStrategy
from xpensify.providers.database import translate_database_errors
from xpensify.providers.logging import Logger, LoggingProvider
from xpensify.repositories.profiles import ProfilesRepository


class ProgressionEngine:
    """Awards experience points and derives levels from them."""

    logger: Logger
    config: Config
    profiles_repo: ProfilesRepository
    level_definitions: tuple[LevelDefinition, ...]

    def __init__(
        self,
        profiles_repo: ProfilesRepository,
        config: Config | None = None,
        level_definitions: tuple[LevelDefinition, ...] = LEVEL_DEFINITIONS,
    ) -> None:
        """Initializes the engine with its dependencies.

        Args:
            profiles_repo: The repository for profile data.
            config: The application configuration. Loaded from the
                environment when omitted.
            level_definitions: The ordered tier table for the banded strategy.
        """
        self.logger = LoggingProvider().get_logger()
        self.config = config or ConfigProvider.get_config()
        self.profiles_repo = profiles_repo
        self.level_definitions = level_definitions

    def describe_level(self, xp: int) -> LevelDefinition:
        """Returns the level definition that covers a cumulative xp value.

        Args:
            xp: The cumulative experience points.

        Returns:
            The tier containing `xp` under the configured strategy.
        """
        xp = max(xp, 0)
        if self.config.LEVEL_STRATEGY == LevelStrategy.UNIFORM:
            step = self.config.UNIFORM_LEVEL_XP_STEP
            level = xp // step + 1
            return LevelDefinition(level=level, name=f"Level {level}", min_xp=(level - 1) * step, max_xp=level * step)

        for definition in self.level_definitions:
            if definition.contains(xp):
                return definition
        return self.level_definitions[-1]

    def level_for(self, xp: int) -> int:
        """Derives the level number from cumulative xp.

        Args:
            xp: The cumulative experience points.

        Returns:
            The level number, starting at 1.
        """
        return self.describe_level(xp).level

    def xp_to_next_level(self, xp: int) -> int | None:
        """Computes how many points are missing for the next level.

        Args:
            xp: The cumulative experience points.

        Returns:
            The missing points, or None at the open-ended top tier.
        """
        current = self.describe_level(xp)
        if current.max_xp is None:
            return None
        return current.max_xp - xp

    def xp_for_action(self, action: LearningAction) -> int:
        """Returns the configured points granted for an action.

        Args:
            action: The learning or financial action.

        Returns:
            The points for the action.
        """
        return {
            LearningAction.TRENDING_TIP: self.config.XP_TRENDING_TIP,
            LearningAction.CONCEPT_LESSON: self.config.XP_CONCEPT_LESSON,
            LearningAction.QUIZ: self.config.XP_QUIZ,
            LearningAction.PERSONALIZED_ADVICE: self.config.XP_PERSONALIZED_ADVICE,
            LearningAction.MILESTONE_CONTENT: self.config.XP_MILESTONE_CONTENT,
            LearningAction.TRANSACTION_LOGGED: self.config.XP_TRANSACTION_LOGGED,
        }[action]

    @translate_database_errors
    def get_profile(self, user_id: UUID) -> Profile:
        """Retrieves a user's profile.

        Args:
            user_id: The id of the user.

        Returns:
            The profile.

        Raises:
            NotFoundError: If the user has no profile.
        """
        profile = self.profiles_repo.get(user_id)
        if profile is None:
            raise NotFoundError(f"Profile for user {user_id} does not exist.")
        return profile

    @translate_database_errors
    def create_profile(self, user_id: UUID, full_name: str | None = None) -> Profile:
        """Creates the profile of a newly onboarded user.

        Args:
            user_id: The id of the user.
            full_name: The user's display name.

        Returns:
            The stored profile; an existing profile is returned unchanged.
        """
        self.logger.info(f"Creating profile for user {user_id}.")
        return self.profiles_repo.insert(user_id, full_name)

    @translate_database_errors
    def award(self, user_id: UUID, xp_delta: int) -> AwardResult:
        """Adds experience points to a profile and re-derives its level.

        Args:
            user_id: The id of the user.
            xp_delta: The points to add. Zero is a read-only no-op.

        Returns:
            The award result, including a `level_up` event when a level
            boundary was crossed.

        Raises:
            LedgerValidationError: If `xp_delta` is not a non-negative integer.
            NotFoundError: If the user has no profile.
        """
        if isinstance(xp_delta, bool) or not isinstance(xp_delta, int) or xp_delta < 0:
            raise LedgerValidationError(f"xp_delta must be a non-negative integer, got {xp_delta!r}.")

        if xp_delta == 0:
            profile = self.get_profile(user_id)
            level = self.level_for(profile.xp)
            return self._build_result(profile.model_copy(update={"level": level}), previous_level=level)

        outcome = self.profiles_repo.apply_xp(user_id, xp_delta, self.level_for)
        if outcome is None:
            raise NotFoundError(f"Profile for user {user_id} does not exist.")
        previous, updated = outcome

        self.logger.info(f"Awarded {xp_delta} xp to user {user_id} ({previous.xp} -> {updated.xp}).")
        return self._build_result(updated, previous_level=self.level_for(previous.xp))

    def award_action(self, user_id: UUID, action: LearningAction) -> AwardResult:
        """Awards the configured points for a learning or financial action.

        Args:
            user_id: The id of the user.
            action: The action the user completed.

        Returns:
            The award result.
        """
        return self.award(user_id, self.xp_for_action(action))

    @translate_database_errors
    def recompute(self, user_id: UUID) -> Profile:
        """Rewrites a profile's stored level from its stored xp.

        Args:
            user_id: The id of the user.

        Returns:
            The profile with its level re-derived.

        Raises:
            NotFoundError: If the user has no profile.
        """
        outcome = self.profiles_repo.apply_xp(user_id, 0, self.level_for)
        if outcome is None:
            raise NotFoundError(f"Profile for user {user_id} does not exist.")
        return outcome[1]

    def _build_result(self, profile: Profile, previous_level: int) -> AwardResult:
        """Assembles an award result and its level-up event.

        Args:
            profile: The profile after the award.
            previous_level: The level derived from the xp before the award.

        Returns:
            The award result.
        """
        level = self.describe_level(profile.xp)
        result = AwardResult(
            profile=profile,
            previous_level=previous_level,
            level=level,
            xp_to_next_level=self.xp_to_next_level(profile.xp),
        )
        if result.leveled_up:
            self.logger.info(f"User {profile.user_id} reached level {level.level} ({level.name}).")
            result.events.append(
                LedgerEvent(
                    kind=EventKind.LEVEL_UP,
                    user_id=profile.user_id,
                    payload={
                        "previous_level": previous_level,
                        "level": level.level,
                        "level_name": level.name,
                        "xp": profile.xp,
                    },
                )
            )
        return result
