"""This module defines the GoalProgressTracker.

It owns goal balances and derives completion forecasts from the ledger's
income history. It reads transactions but never changes them.
"""

import math
from datetime import date
from decimal import Decimal
from uuid import UUID

from pydantic import ValidationError
from xpensify.exceptions.ledger import InvalidStateError, LedgerValidationError, NotFoundError
from xpensify.models.events import EventKind, LedgerEvent
from xpensify.models.goals import (
    ContributionOutcome,
    ContributionResult,
    Forecast,
    ForecastStatus,
    Goal,
    GoalStatus,
    NewGoal,
)
from xpensify.providers.config import Config, ConfigProvider
from xpensify.providers.database import translate_database_errors
from xpensify.providers.date import DateProvider
from xpensify.providers.logging import Logger, LoggingProvider
from xpensify.repositories.goals import GoalsRepository
from xpensify.repositories.transactions import TransactionsRepository


class GoalProgressTracker:
    """Maintains goal balances and forecasts their completion."""

    logger: Logger
    config: Config
    goals_repo: GoalsRepository
    transactions_repo: TransactionsRepository

    def __init__(
        self,
        goals_repo: GoalsRepository,
        transactions_repo: TransactionsRepository,
        config: Config | None = None,
    ) -> None:
        """Initializes the tracker with its dependencies.

        Args:
            goals_repo: The repository for goal data.
            transactions_repo: The repository used to read income history.
            config: The application configuration. Loaded from the
                environment when omitted.
        """
        self.logger = LoggingProvider().get_logger()
        self.config = config or ConfigProvider.get_config()
        self.goals_repo = goals_repo
        self.transactions_repo = transactions_repo

    @translate_database_errors
    def create_goal(self, user_id: UUID, new_goal: NewGoal | dict) -> Goal:
        """Creates an active goal for a user.

        Args:
            user_id: The owner of the goal.
            new_goal: The goal attributes.

        Returns:
            The created goal.

        Raises:
            LedgerValidationError: If the attributes are invalid.
        """
        try:
            goal_input = NewGoal.model_validate(new_goal)
        except ValidationError as e:
            raise LedgerValidationError(f"Invalid goal: {e}") from e
        return self.goals_repo.insert(user_id, goal_input)

    @translate_database_errors
    def get_goal(self, user_id: UUID, goal_id: UUID) -> Goal:
        """Retrieves a goal owned by a user.

        Args:
            user_id: The owner of the goal.
            goal_id: The id of the goal.

        Returns:
            The goal.

        Raises:
            NotFoundError: If the goal does not exist for that user.
        """
        goal = self.goals_repo.get(user_id, goal_id)
        if goal is None:
            raise NotFoundError(f"Goal {goal_id} does not exist.")
        return goal

    @translate_database_errors
    def list_goals(self, user_id: UUID, status: GoalStatus | None = GoalStatus.ACTIVE) -> list[Goal]:
        """Lists a user's goals, newest first.

        Args:
            user_id: The owner of the goals.
            status: The status to filter on; None lists every goal.

        Returns:
            The goals.
        """
        return self.goals_repo.list_for_user(user_id, status)

    @translate_database_errors
    def cancel_goal(self, user_id: UUID, goal_id: UUID) -> Goal:
        """Soft-deletes a goal by marking it cancelled.

        Args:
            user_id: The owner of the goal.
            goal_id: The id of the goal.

        Returns:
            The cancelled goal.

        Raises:
            NotFoundError: If the goal does not exist for that user.
        """
        goal = self.goals_repo.set_status(user_id, goal_id, GoalStatus.CANCELLED)
        if goal is None:
            raise NotFoundError(f"Goal {goal_id} does not exist.")
        return goal

    def ensure_accepts_contributions(self, user_id: UUID, goal_id: UUID) -> Goal:
        """Checks that a goal exists for the user and is still active.

        Args:
            user_id: The owner of the goal.
            goal_id: The id of the goal.

        Returns:
            The goal.

        Raises:
            NotFoundError: If the goal does not exist for that user.
            InvalidStateError: If the goal is achieved or cancelled.
        """
        goal = self.get_goal(user_id, goal_id)
        if goal.status != GoalStatus.ACTIVE:
            raise InvalidStateError(f"Goal {goal_id} is {goal.status.value} and does not accept contributions.")
        return goal

    @translate_database_errors
    def contribute(
        self,
        user_id: UUID,
        goal_id: UUID,
        amount: Decimal,
        transaction_id: UUID | None = None,
    ) -> ContributionResult:
        """Adds an amount to a goal's accumulated balance.

        The increment happens atomically in storage. When `transaction_id` is
        given, repeating the call for the same transaction changes nothing, so
        a failed contribution can be retried safely.

        Args:
            user_id: The owner of the goal.
            goal_id: The id of the goal.
            amount: The positive amount to add.
            transaction_id: The income transaction that originated it.

        Returns:
            The contribution result, with a `goal_achieved` event when this
            contribution made the goal reach its target.

        Raises:
            LedgerValidationError: If the amount is not positive.
            NotFoundError: If the goal does not exist for that user.
            InvalidStateError: If the goal is achieved or cancelled.
        """
        if not isinstance(amount, Decimal):
            amount = Decimal(str(amount))
        if not amount.is_finite() or amount <= 0:
            raise LedgerValidationError(f"Contribution amount must be positive, got {amount}.")

        outcome, goal = self.goals_repo.apply_contribution(user_id, goal_id, amount, transaction_id)

        if outcome == ContributionOutcome.GOAL_NOT_FOUND or goal is None:
            raise NotFoundError(f"Goal {goal_id} does not exist.")
        if outcome == ContributionOutcome.GOAL_NOT_ACTIVE:
            raise InvalidStateError(f"Goal {goal_id} is {goal.status.value} and does not accept contributions.")
        if outcome == ContributionOutcome.ALREADY_APPLIED:
            return ContributionResult(goal=goal, applied=False)

        result = ContributionResult(goal=goal, applied=True, achieved=goal.status == GoalStatus.ACHIEVED)
        if result.achieved:
            self.logger.info(f"Goal {goal_id} reached its target of {goal.target_amount}.")
            result.events.append(
                LedgerEvent(
                    kind=EventKind.GOAL_ACHIEVED,
                    user_id=user_id,
                    payload={
                        "goal_id": str(goal.goal_id),
                        "title": goal.title,
                        "target_amount": str(goal.target_amount),
                        "current_amount": str(goal.current_amount),
                    },
                )
            )
        return result

    @translate_database_errors
    def forecast(self, goal: Goal, as_of: date | None = None) -> Forecast:
        """Projects how many months are left until a goal is met.

        The projection is linear: the remaining amount divided by the user's
        whole-account income over the trailing forecast window. Seasonality,
        expenses and earmarking are ignored.

        Args:
            goal: The goal to forecast.
            as_of: The last day of the trailing income window. Defaults to today.

        Returns:
            The forecast.
        """
        remaining = goal.remaining_amount
        if remaining <= 0:
            return Forecast(
                status=ForecastStatus.ACHIEVED,
                message=f"Goal achieved! You saved {goal.current_amount} for '{goal.title}'.",
            )

        as_of = as_of or DateProvider.today()
        start, end = DateProvider.trailing_window(as_of, self.config.FORECAST_WINDOW_DAYS)
        monthly_income = self.transactions_repo.sum_income_between(goal.user_id, start, end)

        if monthly_income <= 0:
            return Forecast(
                status=ForecastStatus.NO_INCOME,
                monthly_income=monthly_income,
                message="Log your income to see when you will reach this goal. Every entry gets you closer!",
            )

        months_remaining = math.ceil(remaining / monthly_income)
        if months_remaining <= 0:
            return Forecast(
                status=ForecastStatus.ACHIEVED,
                monthly_income=monthly_income,
                message=f"Goal achieved! You saved {goal.current_amount} for '{goal.title}'.",
            )

        on_track = None
        if goal.deadline is not None:
            on_track = months_remaining <= DateProvider.months_between(as_of, goal.deadline)

        unit = "month" if months_remaining == 1 else "months"
        return Forecast(
            status=ForecastStatus.PROJECTED,
            months_remaining=months_remaining,
            monthly_income=monthly_income,
            on_track=on_track,
            message=f"At your current pace you will reach '{goal.title}' in {months_remaining} {unit}.",
        )
