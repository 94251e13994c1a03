"""users, projects, tasks and automation rules

Revision ID: 20261019_initial_schema
Revises:
Create Date: 2026-10-19
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "20261019_initial_schema"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps():
    return [
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
    ]


def upgrade():
    op.create_table(
        "user",
        sa.Column("id", sa.String(length=64), primary_key=True),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("name", sa.String(length=255)),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
    )
    op.create_index("ix_user_email", "user", ["email"], unique=True)

    op.create_table(
        "project",
        sa.Column("id", sa.String(length=64), primary_key=True),
        sa.Column("owner_id", sa.String(length=64), sa.ForeignKey("user.id"), nullable=False, index=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text()),
        *_timestamps(),
    )
    op.create_index("ix_project_owner_name", "project", ["owner_id", "name"])

    op.create_table(
        "section",
        sa.Column("id", sa.String(length=64), primary_key=True),
        sa.Column(
            "project_id",
            sa.String(length=64),
            sa.ForeignKey("project.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        ),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("position", sa.Float(), nullable=False, server_default="0"),
        *_timestamps(),
    )
    op.create_index("ix_section_project_position", "section", ["project_id", "position"])

    op.create_table(
        "task",
        sa.Column("id", sa.String(length=64), primary_key=True),
        sa.Column("title", sa.String(length=500), nullable=False),
        sa.Column("description", sa.JSON()),
        sa.Column("status", sa.String(length=32), nullable=False, server_default="INCOMPLETE"),
        sa.Column("assignee_id", sa.String(length=64), sa.ForeignKey("user.id"), index=True),
        sa.Column("created_by_id", sa.String(length=64), sa.ForeignKey("user.id")),
        sa.Column("due_date", sa.DateTime()),
        sa.Column("start_date", sa.DateTime()),
        sa.Column("completed_at", sa.DateTime()),
        sa.Column("is_recurring", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("recurrence_rule", sa.JSON()),
        *_timestamps(),
    )
    op.create_index("ix_task_assignee_status", "task", ["assignee_id", "status"])
    op.create_index("ix_task_due_date", "task", ["due_date"])

    op.create_table(
        "task_project",
        sa.Column("id", sa.String(length=64), primary_key=True),
        sa.Column(
            "task_id",
            sa.String(length=64),
            sa.ForeignKey("task.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        ),
        sa.Column(
            "project_id",
            sa.String(length=64),
            sa.ForeignKey("project.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        ),
        sa.Column("section_id", sa.String(length=64), sa.ForeignKey("section.id", ondelete="SET NULL")),
        sa.Column("position", sa.Float(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint("task_id", "project_id", name="uq_task_project_task_project"),
    )
    op.create_index("ix_task_project_project_section", "task_project", ["project_id", "section_id"])

    op.create_table(
        "custom_field",
        sa.Column("id", sa.String(length=64), primary_key=True),
        sa.Column(
            "project_id",
            sa.String(length=64),
            sa.ForeignKey("project.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        ),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("field_type", sa.String(length=32), nullable=False, server_default="TEXT"),
        *_timestamps(),
    )
    op.create_index("ix_custom_field_project_name", "custom_field", ["project_id", "name"])

    op.create_table(
        "task_custom_field_value",
        sa.Column("id", sa.String(length=64), primary_key=True),
        sa.Column(
            "task_id",
            sa.String(length=64),
            sa.ForeignKey("task.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        ),
        sa.Column(
            "custom_field_id",
            sa.String(length=64),
            sa.ForeignKey("custom_field.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        ),
        sa.Column("string_value", sa.Text()),
        sa.Column("number_value", sa.Float()),
        sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint(
            "task_id", "custom_field_id", name="uq_task_custom_field_value_task_field"
        ),
    )

    op.create_table(
        "comment",
        sa.Column("id", sa.String(length=64), primary_key=True),
        sa.Column(
            "task_id",
            sa.String(length=64),
            sa.ForeignKey("task.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        ),
        sa.Column("author_id", sa.String(length=64), sa.ForeignKey("user.id"), nullable=False),
        sa.Column("body", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_comment_task_created_at", "comment", ["task_id", "created_at"])

    op.create_table(
        "rule",
        sa.Column("id", sa.String(length=64), primary_key=True),
        sa.Column(
            "project_id",
            sa.String(length=64),
            sa.ForeignKey("project.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        ),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("trigger", sa.JSON(), nullable=False),
        sa.Column("conditions", sa.JSON()),
        sa.Column("actions", sa.JSON(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("sequence", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_by_id", sa.String(length=64), sa.ForeignKey("user.id")),
        *_timestamps(),
    )
    op.create_index("ix_rule_project_active", "rule", ["project_id", "is_active"])

    op.create_table(
        "rule_execution_log",
        sa.Column("id", sa.String(length=64), primary_key=True),
        sa.Column(
            "rule_id",
            sa.String(length=64),
            sa.ForeignKey("rule.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        ),
        sa.Column("task_id", sa.String(length=64), index=True),
        sa.Column("status", sa.String(length=16), nullable=False),
        sa.Column("message", sa.Text()),
        sa.Column("executed_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )
    op.create_index(
        "ix_rule_execution_log_rule_executed_at",
        "rule_execution_log",
        ["rule_id", "executed_at"],
    )


def downgrade():
    op.drop_index("ix_rule_execution_log_rule_executed_at", table_name="rule_execution_log")
    op.drop_table("rule_execution_log")
    op.drop_index("ix_rule_project_active", table_name="rule")
    op.drop_table("rule")
    op.drop_index("ix_comment_task_created_at", table_name="comment")
    op.drop_table("comment")
    op.drop_table("task_custom_field_value")
    op.drop_index("ix_custom_field_project_name", table_name="custom_field")
    op.drop_table("custom_field")
    op.drop_index("ix_task_project_project_section", table_name="task_project")
    op.drop_table("task_project")
    op.drop_index("ix_task_due_date", table_name="task")
    op.drop_index("ix_task_assignee_status", table_name="task")
    op.drop_table("task")
    op.drop_index("ix_section_project_position", table_name="section")
    op.drop_table("section")
    op.drop_index("ix_project_owner_name", table_name="project")
    op.drop_table("project")
    op.drop_index("ix_user_email", table_name="user")
    op.drop_table("user")
