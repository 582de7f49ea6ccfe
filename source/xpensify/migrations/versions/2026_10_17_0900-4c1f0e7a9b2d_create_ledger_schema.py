"""Create the ledger schema.

Revision ID: 4c1f0e7a9b2d
Revises:
Create Date: 2026-10-17 09:00:00.000000
"""

from collections.abc import Sequence

from alembic import op
from xpensify.migrations.helpers import get_qualified_name

revision: str = "4c1f0e7a9b2d"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Creates the category, transaction, goal and profile tables."""
    categories_table = get_qualified_name("categories")
    transactions_table = get_qualified_name("transactions")
    goals_table = get_qualified_name("goals")
    contributions_table = get_qualified_name("goal_contributions")
    profiles_table = get_qualified_name("profiles")
    transaction_type = get_qualified_name("transaction_type")
    goal_status_type = get_qualified_name("goal_status")

    op.execute(
        """
        DO $$
        BEGIN
            CREATE EXTENSION IF NOT EXISTS "uuid-ossp";
        EXCEPTION
            WHEN unique_violation THEN
                NULL;
        END
        $$;
    """
    )
    op.execute(
        f"""
        CREATE TYPE {transaction_type} AS ENUM ('income', 'expense');
        CREATE TYPE {goal_status_type} AS ENUM ('active', 'achieved', 'cancelled');

        CREATE TABLE {categories_table} (
            category_id UUID PRIMARY KEY DEFAULT public.uuid_generate_v4(),
            name TEXT NOT NULL,
            type {transaction_type} NOT NULL,
            icon TEXT NOT NULL DEFAULT 'tag',
            color TEXT NOT NULL DEFAULT '#64748B',
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_categories_type_name UNIQUE (type, name)
        );

        CREATE TABLE {goals_table} (
            goal_id UUID PRIMARY KEY DEFAULT public.uuid_generate_v4(),
            user_id UUID NOT NULL,
            title TEXT NOT NULL,
            target_amount NUMERIC(14, 2) NOT NULL CHECK (target_amount > 0),
            current_amount NUMERIC(14, 2) NOT NULL DEFAULT 0 CHECK (current_amount >= 0),
            deadline DATE,
            category TEXT NOT NULL DEFAULT 'Savings',
            status {goal_status_type} NOT NULL DEFAULT 'active',
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        );
        CREATE INDEX idx_goals_user_status ON {goals_table} (user_id, status, created_at DESC);

        CREATE TABLE {transactions_table} (
            transaction_id UUID PRIMARY KEY DEFAULT public.uuid_generate_v4(),
            user_id UUID NOT NULL,
            type {transaction_type} NOT NULL,
            amount NUMERIC(14, 2) NOT NULL CHECK (amount > 0),
            category_id UUID NOT NULL REFERENCES {categories_table}(category_id),
            occurred_on DATE NOT NULL,
            description TEXT,
            goal_id UUID REFERENCES {goals_table}(goal_id),
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_transactions_goal_only_on_income CHECK (goal_id IS NULL OR type = 'income')
        );
        CREATE INDEX idx_transactions_user_recency
            ON {transactions_table} (user_id, occurred_on DESC, created_at DESC);

        CREATE TABLE {contributions_table} (
            contribution_id UUID PRIMARY KEY DEFAULT public.uuid_generate_v4(),
            goal_id UUID NOT NULL REFERENCES {goals_table}(goal_id),
            transaction_id UUID UNIQUE,
            amount NUMERIC(14, 2) NOT NULL CHECK (amount > 0),
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        );
        CREATE INDEX idx_goal_contributions_goal ON {contributions_table} (goal_id);

        CREATE TABLE {profiles_table} (
            user_id UUID PRIMARY KEY,
            full_name TEXT,
            xp INTEGER NOT NULL DEFAULT 0 CHECK (xp >= 0),
            level INTEGER NOT NULL DEFAULT 1 CHECK (level >= 1),
            current_streak INTEGER NOT NULL DEFAULT 0 CHECK (current_streak >= 0),
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        );
    """
    )


def downgrade() -> None:
    """Drops the ledger schema."""
    categories_table = get_qualified_name("categories")
    transactions_table = get_qualified_name("transactions")
    goals_table = get_qualified_name("goals")
    contributions_table = get_qualified_name("goal_contributions")
    profiles_table = get_qualified_name("profiles")
    transaction_type = get_qualified_name("transaction_type")
    goal_status_type = get_qualified_name("goal_status")

    op.execute(f"DROP TABLE IF EXISTS {profiles_table};")
    op.execute(f"DROP TABLE IF EXISTS {contributions_table};")
    op.execute(f"DROP TABLE IF EXISTS {transactions_table};")
    op.execute(f"DROP TABLE IF EXISTS {goals_table};")
    op.execute(f"DROP TABLE IF EXISTS {categories_table};")
    op.execute(f"DROP TYPE IF EXISTS {goal_status_type} CASCADE;")
    op.execute(f"DROP TYPE IF EXISTS {transaction_type} CASCADE;")
