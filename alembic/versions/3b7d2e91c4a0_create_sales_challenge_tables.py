"""create sales challenge tables

Revision ID: 3b7d2e91c4a0
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""

from collections.abc import Sequence

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "3b7d2e91c4a0"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Create challenge, entry, vote, budget, winner, best-of and backlog tables."""
    op.create_table(
        "sales_challenges",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("week_key", sa.String(length=10), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="active"),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("original_text", sa.Text(), nullable=True),
        sa.Column("context_text", sa.Text(), nullable=True),
        sa.Column("rules_text", sa.Text(), nullable=True),
        sa.Column("starts_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("edit_deadline_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("vote_deadline_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("freeze_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("reveal_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("ends_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.CheckConstraint(
            "status IN ('active', 'frozen', 'revealed', 'archived')", name="ck_sales_challenges_status"
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_sales_challenges_week_key"), "sales_challenges", ["week_key"], unique=True)

    op.create_table(
        "sales_entries",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("challenge_id", sa.Uuid(), nullable=False),
        sa.Column("author_user_id", sa.String(length=255), nullable=True),
        sa.Column("author_initials", sa.String(length=10), nullable=True),
        sa.Column("source", sa.String(length=10), nullable=False, server_default="human"),
        sa.Column("text", sa.Text(), nullable=False),
        sa.Column("draft_text", sa.Text(), nullable=True),
        sa.Column("is_published", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("published_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("winner_notes", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.CheckConstraint("source IN ('human', 'ai')", name="ck_sales_entries_source"),
        sa.ForeignKeyConstraint(["challenge_id"], ["sales_challenges.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("challenge_id", "author_user_id", name="uq_sales_entries_challenge_author"),
    )
    op.create_index(op.f("ix_sales_entries_challenge_id"), "sales_entries", ["challenge_id"], unique=False)
    op.create_index(op.f("ix_sales_entries_author_user_id"), "sales_entries", ["author_user_id"], unique=False)

    op.create_table(
        "sales_votes",
        sa.Column("challenge_id", sa.Uuid(), nullable=False),
        sa.Column("entry_id", sa.Uuid(), nullable=False),
        sa.Column("voter_user_id", sa.String(length=255), nullable=False),
        sa.Column("weight", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.CheckConstraint("weight >= 1 AND weight <= 2", name="ck_sales_votes_weight"),
        sa.ForeignKeyConstraint(["challenge_id"], ["sales_challenges.id"]),
        sa.ForeignKeyConstraint(["entry_id"], ["sales_entries.id"]),
        sa.PrimaryKeyConstraint("challenge_id", "entry_id", "voter_user_id"),
    )
    op.create_index(op.f("ix_sales_votes_entry_id"), "sales_votes", ["entry_id"], unique=False)
    op.create_index(op.f("ix_sales_votes_voter_user_id"), "sales_votes", ["voter_user_id"], unique=False)

    op.create_table(
        "sales_vote_budgets",
        sa.Column("challenge_id", sa.Uuid(), nullable=False),
        sa.Column("voter_user_id", sa.String(length=255), nullable=False),
        sa.Column("used", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.CheckConstraint("used >= 0 AND used <= 3", name="ck_sales_vote_budgets_used"),
        sa.ForeignKeyConstraint(["challenge_id"], ["sales_challenges.id"]),
        sa.PrimaryKeyConstraint("challenge_id", "voter_user_id"),
    )

    op.create_table(
        "sales_winners",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("challenge_id", sa.Uuid(), nullable=False),
        sa.Column("place1_entry_id", sa.Uuid(), nullable=True),
        sa.Column("place2_entry_id", sa.Uuid(), nullable=True),
        sa.Column("place3_entry_id", sa.Uuid(), nullable=True),
        sa.Column("total_votes", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.ForeignKeyConstraint(["challenge_id"], ["sales_challenges.id"]),
        sa.ForeignKeyConstraint(["place1_entry_id"], ["sales_entries.id"]),
        sa.ForeignKeyConstraint(["place2_entry_id"], ["sales_entries.id"]),
        sa.ForeignKeyConstraint(["place3_entry_id"], ["sales_entries.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("challenge_id"),
    )

    op.create_table(
        "sales_bestof",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("week_key", sa.String(length=10), nullable=False),
        sa.Column("place", sa.Integer(), nullable=False),
        sa.Column("category", sa.String(length=100), nullable=False),
        sa.Column("entry_text", sa.Text(), nullable=False),
        sa.Column("original_text", sa.Text(), nullable=True),
        sa.Column("context_text", sa.Text(), nullable=True),
        sa.Column("author_initials", sa.String(length=10), nullable=True),
        sa.Column("source", sa.String(length=10), nullable=False),
        sa.Column("votes", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("winner_notes", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.CheckConstraint("place >= 1 AND place <= 3", name="ck_sales_bestof_place"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("week_key", "place", name="uq_sales_bestof_week_place"),
    )
    op.create_index(op.f("ix_sales_bestof_week_key"), "sales_bestof", ["week_key"], unique=False)
    op.create_index(op.f("ix_sales_bestof_created_at"), "sales_bestof", ["created_at"], unique=False)

    op.create_table(
        "sales_backlog",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("original_text", sa.Text(), nullable=False),
        sa.Column("context_text", sa.Text(), nullable=True),
        sa.Column("rules_text", sa.Text(), nullable=True),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="draft"),
        sa.Column("planned_week_key", sa.String(length=10), nullable=True),
        sa.Column("used_in_challenge_id", sa.Uuid(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.ForeignKeyConstraint(["used_in_challenge_id"], ["sales_challenges.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_sales_backlog_planned_week_key"), "sales_backlog", ["planned_week_key"], unique=False)
    op.create_index(op.f("ix_sales_backlog_created_at"), "sales_backlog", ["created_at"], unique=False)


def downgrade() -> None:
    """Drop all sales challenge tables (children first)."""
    op.drop_index(op.f("ix_sales_backlog_created_at"), table_name="sales_backlog")
    op.drop_index(op.f("ix_sales_backlog_planned_week_key"), table_name="sales_backlog")
    op.drop_table("sales_backlog")
    op.drop_index(op.f("ix_sales_bestof_created_at"), table_name="sales_bestof")
    op.drop_index(op.f("ix_sales_bestof_week_key"), table_name="sales_bestof")
    op.drop_table("sales_bestof")
    op.drop_table("sales_winners")
    op.drop_table("sales_vote_budgets")
    op.drop_index(op.f("ix_sales_votes_voter_user_id"), table_name="sales_votes")
    op.drop_index(op.f("ix_sales_votes_entry_id"), table_name="sales_votes")
    op.drop_table("sales_votes")
    op.drop_index(op.f("ix_sales_entries_author_user_id"), table_name="sales_entries")
    op.drop_index(op.f("ix_sales_entries_challenge_id"), table_name="sales_entries")
    op.drop_table("sales_entries")
    op.drop_index(op.f("ix_sales_challenges_week_key"), table_name="sales_challenges")
    op.drop_table("sales_challenges")
