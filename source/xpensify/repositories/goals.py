"""This module defines the repository for savings goals and their contributions."""

from decimal import Decimal
from uuid import UUID

from sqlalchemy import Engine, text
from xpensify.models.goals import ContributionOutcome, Goal, GoalStatus, NewGoal
from xpensify.providers.logging import Logger, LoggingProvider

_GOAL_COLUMNS = (
    "goal_id, user_id, title, target_amount, current_amount, deadline, category, status, created_at, updated_at"
)


class GoalsRepository:
    """Handles database operations for goals.

    Goals are never hard-deleted. Their `current_amount` only changes through
    `apply_contribution`, which records a `goal_contributions` row and
    increments the balance inside one database transaction.

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

    def insert(self, user_id: UUID, new_goal: NewGoal) -> Goal:
        """Creates an active goal with a zero balance.

        Args:
            user_id: The owner of the goal.
            new_goal: The validated goal attributes.

        Returns:
            The created goal.
        """
        self.logger.info(f"Creating goal '{new_goal.title}' for user {user_id}.")
        sql = text(
            f"""
            INSERT INTO goals (user_id, title, target_amount, deadline, category)
            VALUES (:user_id, :title, :target_amount, :deadline, :category)
            RETURNING {_GOAL_COLUMNS};
            """
        )
        params = {
            "user_id": user_id,
            "title": new_goal.title,
            "target_amount": new_goal.target_amount,
            "deadline": new_goal.deadline,
            "category": new_goal.category,
        }
        with self.engine.connect() as conn:
            row = conn.execute(sql, params).mappings().one()
            conn.commit()
        return Goal.model_validate(dict(row))

    def get(self, user_id: UUID, goal_id: UUID) -> Goal | None:
        """Retrieves a goal owned by a user.

        Args:
            user_id: The owner of the goal.
            goal_id: The id of the goal.

        Returns:
            The goal, or None if not found for that user.
        """
        sql = text(f"SELECT {_GOAL_COLUMNS} FROM goals WHERE goal_id = :goal_id AND user_id = :user_id")
        with self.engine.connect() as conn:
            row = conn.execute(sql, {"goal_id": goal_id, "user_id": user_id}).mappings().one_or_none()
        return Goal.model_validate(dict(row)) if row else None

    def list_for_user(self, user_id: UUID, status: GoalStatus | None = GoalStatus.ACTIVE) -> list[Goal]:
        """Lists a user's goals, newest first.

        Args:
            user_id: The owner of the goals.
            status: Only goals with this status are listed; None lists all.

        Returns:
            The matching goals.
        """
        params: dict[str, object] = {"user_id": user_id}
        status_clause = ""
        if status is not None:
            status_clause = "AND status = :status"
            params["status"] = status.value

        sql = text(
            f"SELECT {_GOAL_COLUMNS} FROM goals WHERE user_id = :user_id {status_clause} ORDER BY created_at DESC"
        )
        with self.engine.connect() as conn:
            rows = conn.execute(sql, params).mappings().all()
        return [Goal.model_validate(dict(row)) for row in rows]

    def set_status(self, user_id: UUID, goal_id: UUID, status: GoalStatus) -> Goal | None:
        """Changes the status of a goal.

        Args:
            user_id: The owner of the goal.
            goal_id: The id of the goal.
            status: The new status.

        Returns:
            The updated goal, or None if not found for that user.
        """
        self.logger.info(f"Setting goal {goal_id} status to '{status.value}'.")
        sql = text(
            f"""
            UPDATE goals SET status = :status, updated_at = NOW()
            WHERE goal_id = :goal_id AND user_id = :user_id
            RETURNING {_GOAL_COLUMNS};
            """
        )
        with self.engine.connect() as conn:
            row = (
                conn.execute(sql, {"status": status.value, "goal_id": goal_id, "user_id": user_id})
                .mappings()
                .one_or_none()
            )
            conn.commit()
        return Goal.model_validate(dict(row)) if row else None

    def apply_contribution(
        self,
        user_id: UUID,
        goal_id: UUID,
        amount: Decimal,
        transaction_id: UUID | None = None,
    ) -> tuple[ContributionOutcome, Goal | None]:
        """Atomically adds an amount to a goal's balance.

        The goal row is locked for the duration of the database transaction,
        so concurrent contributions are serialized and none is lost. A
        contribution already recorded for `transaction_id` is not applied
        again. When the new balance reaches the target, the goal becomes
        `achieved` in the same statement.

        Args:
            user_id: The owner of the goal.
            goal_id: The id of the goal.
            amount: The amount to add.
            transaction_id: The transaction that originated the contribution.

        Returns:
            The outcome, along with the goal as it stands afterwards (None when
            the goal was not found).
        """
        lock_sql = text(
            f"SELECT {_GOAL_COLUMNS} FROM goals WHERE goal_id = :goal_id AND user_id = :user_id FOR UPDATE"
        )
        existing_sql = text("SELECT 1 FROM goal_contributions WHERE transaction_id = :transaction_id")
        record_sql = text(
            """
            INSERT INTO goal_contributions (goal_id, transaction_id, amount)
            VALUES (:goal_id, :transaction_id, :amount);
            """
        )
        increment_sql = text(
            f"""
            UPDATE goals
            SET current_amount = current_amount + :amount,
                status = CASE
                    WHEN current_amount + :amount >= target_amount THEN 'achieved'::goal_status
                    ELSE status
                END,
                updated_at = NOW()
            WHERE goal_id = :goal_id
            RETURNING {_GOAL_COLUMNS};
            """
        )

        with self.engine.begin() as conn:
            row = conn.execute(lock_sql, {"goal_id": goal_id, "user_id": user_id}).mappings().one_or_none()
            if row is None:
                return ContributionOutcome.GOAL_NOT_FOUND, None
            goal = Goal.model_validate(dict(row))

            if transaction_id is not None:
                already_recorded = conn.execute(existing_sql, {"transaction_id": transaction_id}).scalar_one_or_none()
                if already_recorded is not None:
                    self.logger.info(f"Contribution from transaction {transaction_id} was already applied.")
                    return ContributionOutcome.ALREADY_APPLIED, goal

            if goal.status != GoalStatus.ACTIVE:
                return ContributionOutcome.GOAL_NOT_ACTIVE, goal

            conn.execute(record_sql, {"goal_id": goal_id, "transaction_id": transaction_id, "amount": amount})
            updated = conn.execute(increment_sql, {"goal_id": goal_id, "amount": amount}).mappings().one()

        self.logger.info(f"Contributed {amount} to goal {goal_id}.")
        return ContributionOutcome.APPLIED, Goal.model_validate(dict(updated))
