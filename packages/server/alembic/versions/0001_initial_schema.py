"""Initial schema: users, meridians, membership, pipeline, work items, activity, invitations.

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-19 09:00:00.000000
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision: str = "0001_initial_schema"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _uuid() -> postgresql.UUID:
    return postgresql.UUID(as_uuid=True)


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
    ]


# ---------------------------------------------------------------------------
# UPGRADE
# ---------------------------------------------------------------------------


def upgrade() -> None:
    # users: one row per (provider subject, tenant)
    op.create_table(
        "users",
        sa.Column("id", _uuid(), primary_key=True),
        sa.Column("external_id", sa.Text(), nullable=False),
        sa.Column("identity_provider", sa.Text(), nullable=True),
        sa.Column("tenant_id", sa.Text(), nullable=True),
        sa.Column("email", sa.Text(), nullable=True),
        sa.Column("display_name", sa.Text(), nullable=False),
        sa.Column("display_name_set", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.Column("last_login_at", sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint("external_id", "tenant_id", name="uq_users_identity"),
    )
    op.create_index("idx_users_external_id", "users", ["external_id"])
    op.create_index("idx_users_email", "users", ["email"])

    # meridians
    op.create_table(
        "meridians",
        sa.Column("id", _uuid(), primary_key=True),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("slug", sa.Text(), nullable=False, unique=True),
        sa.Column("color", sa.Text(), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("start_date", sa.Date(), nullable=True),
        sa.Column("end_date", sa.Date(), nullable=True),
        sa.Column("created_by", _uuid(), sa.ForeignKey("users.id"), nullable=True),
        *_timestamps(),
    )

    # meridian_members
    op.create_table(
        "meridian_members",
        sa.Column("meridian_id", _uuid(), sa.ForeignKey("meridians.id"), primary_key=True),
        sa.Column("user_id", _uuid(), sa.ForeignKey("users.id"), primary_key=True),
        sa.Column("role", sa.Text(), nullable=False, server_default="member"),
        sa.Column("joined_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.CheckConstraint("role IN ('owner', 'member', 'viewer')", name="ck_meridian_members_role"),
    )
    op.create_index("idx_meridian_members_user", "meridian_members", ["user_id"])

    # statuses
    op.create_table(
        "statuses",
        sa.Column("id", _uuid(), primary_key=True),
        sa.Column("meridian_id", _uuid(), sa.ForeignKey("meridians.id"), nullable=False),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("color", sa.Text(), nullable=False, server_default="#94A3B8"),
        sa.Column("position", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("is_default", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("is_complete", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("is_blocked", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.UniqueConstraint("meridian_id", "name", name="uq_statuses_meridian_name"),
    )
    op.create_index("idx_statuses_meridian", "statuses", ["meridian_id", "position"])

    # sprints
    op.create_table(
        "sprints",
        sa.Column("id", _uuid(), primary_key=True),
        sa.Column("meridian_id", _uuid(), sa.ForeignKey("meridians.id"), nullable=False),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("goal", sa.Text(), nullable=True),
        sa.Column("state", sa.Text(), nullable=False, server_default="planning"),
        sa.Column("start_date", sa.Date(), nullable=True),
        sa.Column("end_date", sa.Date(), nullable=True),
        sa.Column("created_by", _uuid(), sa.ForeignKey("users.id"), nullable=True),
        *_timestamps(),
        sa.CheckConstraint("state IN ('planning', 'active', 'complete')", name="ck_sprints_state"),
    )
    op.create_index("idx_sprints_meridian", "sprints", ["meridian_id"])

    # work_items: arc > episode > signal > relay via parent_id
    op.create_table(
        "work_items",
        sa.Column("id", _uuid(), primary_key=True),
        sa.Column("meridian_id", _uuid(), sa.ForeignKey("meridians.id"), nullable=False),
        sa.Column("parent_id", _uuid(), sa.ForeignKey("work_items.id"), nullable=True),
        sa.Column("type", sa.Text(), nullable=False),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("status_id", _uuid(), sa.ForeignKey("statuses.id"), nullable=True),
        sa.Column("assignee_id", _uuid(), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("sprint_id", _uuid(), sa.ForeignKey("sprints.id"), nullable=True),
        sa.Column("start_date", sa.Date(), nullable=True),
        sa.Column("due_date", sa.Date(), nullable=True),
        sa.Column("position", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_by", _uuid(), sa.ForeignKey("users.id"), nullable=True),
        *_timestamps(),
        sa.CheckConstraint(
            "type IN ('arc', 'episode', 'signal', 'relay')", name="ck_work_items_type"
        ),
        sa.CheckConstraint("parent_id IS NULL OR parent_id != id", name="ck_work_items_not_own_parent"),
    )
    op.create_index("idx_work_items_meridian", "work_items", ["meridian_id", "is_active"])
    op.create_index("idx_work_items_parent", "work_items", ["parent_id"])
    op.create_index("idx_work_items_status", "work_items", ["status_id"])
    op.create_index("idx_work_items_sprint", "work_items", ["sprint_id"])

    # activity_log (append-only)
    op.create_table(
        "activity_log",
        sa.Column("id", _uuid(), primary_key=True),
        sa.Column("work_item_id", _uuid(), sa.ForeignKey("work_items.id"), nullable=False),
        sa.Column("meridian_id", _uuid(), sa.ForeignKey("meridians.id"), nullable=False),
        sa.Column("user_id", _uuid(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("action", sa.Text(), nullable=False),
        sa.Column("field_name", sa.Text(), nullable=True),
        sa.Column("old_value", sa.Text(), nullable=True),
        sa.Column("new_value", sa.Text(), nullable=True),
        sa.Column("note", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
    )
    op.create_index("idx_activity_log_item", "activity_log", ["work_item_id", "created_at"])

    # invitations: the token is the bearer credential
    op.create_table(
        "invitations",
        sa.Column("id", _uuid(), primary_key=True),
        sa.Column("meridian_id", _uuid(), sa.ForeignKey("meridians.id"), nullable=False),
        sa.Column("token", sa.Text(), nullable=False, unique=True),
        sa.Column("email", sa.Text(), nullable=True),
        sa.Column("role", sa.Text(), nullable=False, server_default="member"),
        sa.Column("created_by", _uuid(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.Column("used_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("used_by", _uuid(), sa.ForeignKey("users.id"), nullable=True),
        sa.CheckConstraint("role IN ('member', 'viewer')", name="ck_invitations_role"),
    )
    op.create_index("idx_invitations_meridian", "invitations", ["meridian_id"])


# ---------------------------------------------------------------------------
# DOWNGRADE
# ---------------------------------------------------------------------------


def downgrade() -> None:
    for table in (
        "invitations",
        "activity_log",
        "work_items",
        "sprints",
        "statuses",
        "meridian_members",
        "meridians",
        "users",
    ):
        op.drop_table(table)
