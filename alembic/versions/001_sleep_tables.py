"""Initial schema: users, groups, members, weeks, sleep entries, pledges.

Store-level guarantees the game relies on:
- one sleep entry per (user, wake_date)
- one pledge per (week, user), amount 0..50
- one active week per group (partial unique index)

Revision ID: 001_sleep_tables
Revises:
Create Date: 2026-10-19
"""

from collections.abc import Sequence

from alembic import op

revision: str = "001_sleep_tables"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    # --- Users (mirrored from the identity provider) ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS users (
            id VARCHAR(64) PRIMARY KEY,
            email VARCHAR(320) NOT NULL DEFAULT '',
            name VARCHAR(128),
            avatar_url TEXT,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)

    # --- Groups ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS groups (
            id SERIAL PRIMARY KEY,
            name VARCHAR(64) NOT NULL,
            owner_id VARCHAR(64) NOT NULL REFERENCES users(id),
            code VARCHAR(16) UNIQUE NOT NULL,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)

    op.execute("""
        CREATE TABLE IF NOT EXISTS group_members (
            id SERIAL PRIMARY KEY,
            group_id INTEGER NOT NULL REFERENCES groups(id) ON DELETE CASCADE,
            user_id VARCHAR(64) NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            joined_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT group_members_group_user_key UNIQUE (group_id, user_id)
        )
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS idx_group_members_user
        ON group_members(user_id, joined_at)
    """)

    # --- Weeks ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS weeks (
            id SERIAL PRIMARY KEY,
            group_id INTEGER NOT NULL REFERENCES groups(id) ON DELETE CASCADE,
            week_number INTEGER NOT NULL,
            is_active BOOLEAN NOT NULL DEFAULT true,
            start_date TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            end_date TIMESTAMPTZ,
            winner_id VARCHAR(64) REFERENCES users(id),
            loser_id VARCHAR(64) REFERENCES users(id),
            CONSTRAINT weeks_group_number_key UNIQUE (group_id, week_number)
        )
    """)
    op.execute("""
        CREATE UNIQUE INDEX IF NOT EXISTS weeks_one_active_per_group
        ON weeks(group_id) WHERE is_active
    """)

    # --- Sleep entries ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS sleep_entries (
            id SERIAL PRIMARY KEY,
            user_id VARCHAR(64) NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            wake_date DATE NOT NULL,
            hours DOUBLE PRECISION NOT NULL,
            logged_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT sleep_entries_user_wake_date_key UNIQUE (user_id, wake_date),
            CONSTRAINT sleep_entries_hours_non_negative CHECK (hours >= 0)
        )
    """)

    # --- Weekly pledges ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS weekly_pledges (
            id SERIAL PRIMARY KEY,
            week_id INTEGER NOT NULL REFERENCES weeks(id) ON DELETE CASCADE,
            user_id VARCHAR(64) NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            amount DOUBLE PRECISION NOT NULL,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT weekly_pledges_week_user_key UNIQUE (week_id, user_id),
            CONSTRAINT weekly_pledges_amount_range CHECK (amount >= 0 AND amount <= 50)
        )
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS weekly_pledges CASCADE")
    op.execute("DROP TABLE IF EXISTS sleep_entries CASCADE")
    op.execute("DROP TABLE IF EXISTS weeks CASCADE")
    op.execute("DROP TABLE IF EXISTS group_members CASCADE")
    op.execute("DROP TABLE IF EXISTS groups CASCADE")
    op.execute("DROP TABLE IF EXISTS users CASCADE")
