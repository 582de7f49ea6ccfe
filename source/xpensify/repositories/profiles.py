"""This module defines the repository for user profiles."""

from collections.abc import Callable
from uuid import UUID

from sqlalchemy import Engine, text
from xpensify.models.profiles import Profile
from xpensify.providers.logging import Logger, LoggingProvider

_PROFILE_COLUMNS = "user_id, full_name, xp, level, current_streak"


class ProfilesRepository:
    """Handles database operations for profiles.

    xp and level are only written through `apply_xp`, which serializes
    concurrent writers with a row lock.

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

    def get(self, user_id: UUID) -> Profile | None:
        """Retrieves a user's profile.

        Args:
            user_id: The id of the user.

        Returns:
            The profile, or None if the user has not been onboarded.
        """
        sql = text(f"SELECT {_PROFILE_COLUMNS} FROM profiles WHERE user_id = :user_id")
        with self.engine.connect() as conn:
            row = conn.execute(sql, {"user_id": user_id}).mappings().one_or_none()
        return Profile.model_validate(dict(row)) if row else None

    def insert(self, user_id: UUID, full_name: str | None) -> Profile:
        """Creates a profile at onboarding, keeping an existing one untouched.

        Args:
            user_id: The id of the user.
            full_name: The user's display name.

        Returns:
            The stored profile.
        """
        insert_sql = text(
            """
            INSERT INTO profiles (user_id, full_name)
            VALUES (:user_id, :full_name)
            ON CONFLICT (user_id) DO NOTHING;
            """
        )
        select_sql = text(f"SELECT {_PROFILE_COLUMNS} FROM profiles WHERE user_id = :user_id")
        with self.engine.begin() as conn:
            conn.execute(insert_sql, {"user_id": user_id, "full_name": full_name})
            row = conn.execute(select_sql, {"user_id": user_id}).mappings().one()
        return Profile.model_validate(dict(row))

    def apply_xp(
        self, user_id: UUID, xp_delta: int, level_for: Callable[[int], int]
    ) -> tuple[Profile, Profile] | None:
        """Atomically adds experience points and stores the derived level.

        The profile row is locked, the increment is done in SQL and the level
        is derived from the resulting xp, so a stale read can never overwrite
        another award. A zero delta rewrites the level from the stored xp.

        Args:
            user_id: The id of the user.
            xp_delta: The points to add, zero or more.
            level_for: The pure function deriving a level from cumulative xp.

        Returns:
            The profile before and after the award, or None if no profile exists.
        """
        lock_sql = text(f"SELECT {_PROFILE_COLUMNS} FROM profiles WHERE user_id = :user_id FOR UPDATE")
        update_sql = text(
            f"""
            UPDATE profiles
            SET xp = xp + :xp_delta, level = :level, updated_at = NOW()
            WHERE user_id = :user_id
            RETURNING {_PROFILE_COLUMNS};
            """
        )
        with self.engine.begin() as conn:
            row = conn.execute(lock_sql, {"user_id": user_id}).mappings().one_or_none()
            if row is None:
                return None
            previous = Profile.model_validate(dict(row))
            level = level_for(previous.xp + xp_delta)
            updated = (
                conn.execute(update_sql, {"user_id": user_id, "xp_delta": xp_delta, "level": level}).mappings().one()
            )
        return previous, Profile.model_validate(dict(updated))
