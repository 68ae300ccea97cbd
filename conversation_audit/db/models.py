"""
SQLAlchemy models for the conversation audit log.

``projects``, ``tickets`` and ``settings`` belong to the surrounding
ticket-management system. They are mapped here only so session linkage can
be validated and the retention default can be read.
"""

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .base import Base

data_classification_enum = Enum(
    "public",
    "internal",
    "confidential",
    "restricted",
    name="data_classification",
)

message_role_enum = Enum(
    "user",
    "assistant",
    "system",
    "tool",
    name="message_role",
)


class ProjectModel(Base):
    """Project owned by the ticket-management system."""

    __tablename__ = "projects"

    id = Column(String(36), primary_key=True)
    name = Column(String(255), nullable=False)


class TicketModel(Base):
    """Ticket owned by the ticket-management system."""

    __tablename__ = "tickets"

    id = Column(String(36), primary_key=True)
    title = Column(String(500), nullable=False)
    project_id = Column(
        String(36), ForeignKey("projects.id", ondelete="CASCADE"), nullable=True
    )


class SettingsModel(Base):
    """Settings record; the first row is authoritative."""

    __tablename__ = "settings"

    id = Column(String(36), primary_key=True, default="default")
    conversation_retention_days = Column(Integer, nullable=True, default=90)
    conversation_logging_enabled = Column(Boolean, nullable=False, default=True)


class ConversationSessionModel(Base):
    """One recorded conversation between a human/tool and an assistant."""

    __tablename__ = "conversation_sessions"

    id = Column(String(36), primary_key=True)

    # Linkage (nulled if the linked project/ticket is removed)
    project_id = Column(
        String(36), ForeignKey("projects.id", ondelete="SET NULL"), nullable=True
    )
    ticket_id = Column(
        String(36), ForeignKey("tickets.id", ondelete="SET NULL"), nullable=True
    )
    user_id = Column(String(128), nullable=True)

    environment = Column(String(50), nullable=False, default="unknown", index=True)
    session_metadata = Column(JSON, nullable=True)
    data_classification = Column(
        data_classification_enum, nullable=False, default="internal"
    )
    legal_hold = Column(Boolean, nullable=False, default=False)

    # Timestamps
    started_at = Column(DateTime(timezone=True), nullable=False, default=func.now())
    ended_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=func.now())

    messages = relationship(
        "ConversationMessageModel",
        back_populates="session",
        order_by="ConversationMessageModel.sequence_number",
        passive_deletes=True,
    )

    __table_args__ = (
        Index("ix_conversation_sessions_project", "project_id"),
        Index("ix_conversation_sessions_ticket", "ticket_id"),
        Index("ix_conversation_sessions_user", "user_id"),
        Index("ix_conversation_sessions_started", "started_at"),
        Index("ix_conversation_sessions_hold_started", "legal_hold", "started_at"),
    )

    @property
    def is_active(self) -> bool:
        return self.ended_at is None


class ConversationMessageModel(Base):
    """A single message within a session. Rows are never updated."""

    __tablename__ = "conversation_messages"

    id = Column(String(36), primary_key=True)
    session_id = Column(
        String(36),
        ForeignKey("conversation_sessions.id", ondelete="CASCADE"),
        nullable=False,
    )
    role = Column(message_role_enum, nullable=False)
    content = Column(Text, nullable=False)
    content_hash = Column(String(64), nullable=False)
    tool_calls = Column(JSON, nullable=True)
    token_count = Column(Integer, nullable=True)
    model_id = Column(String(128), nullable=True)
    sequence_number = Column(Integer, nullable=False)
    contains_potential_secrets = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=func.now())

    session = relationship("ConversationSessionModel", back_populates="messages")

    __table_args__ = (
        UniqueConstraint(
            "session_id", "sequence_number", name="uq_conversation_messages_session_seq"
        ),
        Index("ix_conversation_messages_session", "session_id"),
        Index("ix_conversation_messages_created", "created_at"),
    )
