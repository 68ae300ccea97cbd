"""Create conversation audit tables

Revision ID: a3f1c9d2e7b4
Revises:
Create Date: 2026-10-16

Adds conversation_sessions, conversation_messages and audit_log_access.
projects, tickets and settings are created only if the host application
has not already created them.
"""
from __future__ import annotations

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision = "a3f1c9d2e7b4"
down_revision = None
branch_labels = None
depends_on = None


def _has_table(name: str) -> bool:
    return sa.inspect(op.get_bind()).has_table(name)


def upgrade() -> None:
    if not _has_table("projects"):
        op.create_table(
            "projects",
            sa.Column("id", sa.String(length=36), primary_key=True),
            sa.Column("name", sa.String(length=255), nullable=False),
        )
    if not _has_table("tickets"):
        op.create_table(
            "tickets",
            sa.Column("id", sa.String(length=36), primary_key=True),
            sa.Column("title", sa.String(length=500), nullable=False),
            sa.Column(
                "project_id",
                sa.String(length=36),
                sa.ForeignKey("projects.id", ondelete="CASCADE"),
                nullable=True,
            ),
        )
    if not _has_table("settings"):
        op.create_table(
            "settings",
            sa.Column("id", sa.String(length=36), primary_key=True),
            sa.Column(
                "conversation_retention_days",
                sa.Integer,
                nullable=True,
                server_default="90",
            ),
            sa.Column(
                "conversation_logging_enabled",
                sa.Boolean,
                nullable=False,
                server_default=sa.true(),
            ),
        )

    op.create_table(
        "conversation_sessions",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column(
            "project_id",
            sa.String(length=36),
            sa.ForeignKey("projects.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column(
            "ticket_id",
            sa.String(length=36),
            sa.ForeignKey("tickets.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("user_id", sa.String(length=128), nullable=True),
        sa.Column(
            "environment", sa.String(length=50), nullable=False, server_default="unknown"
        ),
        sa.Column("session_metadata", sa.JSON, nullable=True),
        sa.Column(
            "data_classification",
            sa.Enum(
                "public", "internal", "confidential", "restricted",
                name="data_classification",
                create_constraint=True,
            ),
            nullable=False,
            server_default="internal",
        ),
        sa.Column(
            "legal_hold", sa.Boolean, nullable=False, server_default=sa.false()
        ),
        sa.Column(
            "started_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.Column("ended_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
    )
    op.create_index(
        "ix_conversation_sessions_environment", "conversation_sessions", ["environment"]
    )
    op.create_index(
        "ix_conversation_sessions_project", "conversation_sessions", ["project_id"]
    )
    op.create_index(
        "ix_conversation_sessions_ticket", "conversation_sessions", ["ticket_id"]
    )
    op.create_index("ix_conversation_sessions_user", "conversation_sessions", ["user_id"])
    op.create_index(
        "ix_conversation_sessions_started", "conversation_sessions", ["started_at"]
    )
    op.create_index(
        "ix_conversation_sessions_hold_started",
        "conversation_sessions",
        ["legal_hold", "started_at"],
    )

    op.create_table(
        "conversation_messages",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column(
            "session_id",
            sa.String(length=36),
            sa.ForeignKey("conversation_sessions.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "role",
            sa.Enum(
                "user", "assistant", "system", "tool",
                name="message_role",
                create_constraint=True,
            ),
            nullable=False,
        ),
        sa.Column("content", sa.Text, nullable=False),
        sa.Column("content_hash", sa.String(length=64), nullable=False),
        sa.Column("tool_calls", sa.JSON, nullable=True),
        sa.Column("token_count", sa.Integer, nullable=True),
        sa.Column("model_id", sa.String(length=128), nullable=True),
        sa.Column("sequence_number", sa.Integer, nullable=False),
        sa.Column(
            "contains_potential_secrets",
            sa.Boolean,
            nullable=False,
            server_default=sa.false(),
        ),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.UniqueConstraint(
            "session_id",
            "sequence_number",
            name="uq_conversation_messages_session_seq",
        ),
    )
    op.create_index(
        "ix_conversation_messages_session", "conversation_messages", ["session_id"]
    )
    op.create_index(
        "ix_conversation_messages_created", "conversation_messages", ["created_at"]
    )

    op.create_table(
        "audit_log_access",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("accessor_id", sa.String(length=128), nullable=False),
        sa.Column("target_type", sa.String(length=50), nullable=False),
        sa.Column("target_id", sa.Text, nullable=False),
        sa.Column("action", sa.String(length=50), nullable=False),
        sa.Column("result", sa.Text, nullable=False),
        sa.Column(
            "accessed_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
    )
    op.create_index(
        "ix_audit_log_access_accessor", "audit_log_access", ["accessor_id"]
    )
    op.create_index(
        "ix_audit_log_access_target_type", "audit_log_access", ["target_type"]
    )
    op.create_index(
        "ix_audit_log_access_accessed", "audit_log_access", ["accessed_at"]
    )


def downgrade() -> None:
    op.drop_index("ix_audit_log_access_accessed", table_name="audit_log_access")
    op.drop_index("ix_audit_log_access_target_type", table_name="audit_log_access")
    op.drop_index("ix_audit_log_access_accessor", table_name="audit_log_access")
    op.drop_table("audit_log_access")

    op.drop_index("ix_conversation_messages_created", table_name="conversation_messages")
    op.drop_index("ix_conversation_messages_session", table_name="conversation_messages")
    op.drop_table("conversation_messages")

    op.drop_index(
        "ix_conversation_sessions_hold_started", table_name="conversation_sessions"
    )
    op.drop_index("ix_conversation_sessions_started", table_name="conversation_sessions")
    op.drop_index("ix_conversation_sessions_user", table_name="conversation_sessions")
    op.drop_index("ix_conversation_sessions_ticket", table_name="conversation_sessions")
    op.drop_index("ix_conversation_sessions_project", table_name="conversation_sessions")
    op.drop_index(
        "ix_conversation_sessions_environment", table_name="conversation_sessions"
    )
    op.drop_table("conversation_sessions")

    # Drop PostgreSQL enum types (no-op for SQLite)
    bind = op.get_bind()
    if bind.dialect.name == "postgresql":
        op.execute("DROP TYPE IF EXISTS message_role")
        op.execute("DROP TYPE IF EXISTS data_classification")
