"""Test configuration and fixtures."""

from datetime import datetime, timezone

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from conversation_audit.compliance import (
    ComplianceDependencies,
    LogMessageParams,
    MessageService,
    SessionService,
    StartConversationParams,
)
from conversation_audit.db import audit_models, models  # noqa: F401
from conversation_audit.db.base import Base
from conversation_audit.db.models import (
    ConversationMessageModel,
    ConversationSessionModel,
    ProjectModel,
    TicketModel,
)

LONG_AGO = datetime(2020, 1, 1, tzinfo=timezone.utc)


@pytest.fixture
def engine():
    """A fresh in-memory database shared by every session of one test."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db_session(engine):
    Session = sessionmaker(bind=engine)
    session = Session()
    yield session
    session.close()


@pytest.fixture
def deps() -> ComplianceDependencies:
    """Stub collaborators: a fixed environment and a scanner that finds nothing."""
    return ComplianceDependencies(
        detect_environment=lambda: "claude-code",
        contains_secrets=lambda content: False,
    )


@pytest.fixture
def project_and_ticket(db_session):
    db_session.add(ProjectModel(id="proj-1", name="Audit Project"))
    db_session.add(TicketModel(id="ticket-1", title="Add logging", project_id="proj-1"))
    db_session.commit()
    return "proj-1", "ticket-1"


@pytest.fixture
def start_session(db_session, deps):
    """Start a session and return its id."""

    def _start(**kwargs) -> str:
        return (
            SessionService(db_session)
            .start_conversation(StartConversationParams(**kwargs), deps)
            .id
        )

    return _start


@pytest.fixture
def log_message(db_session, deps):
    """Log a message and return the MessageResult."""

    def _log(session_id: str, content: str, role: str = "user", **kwargs):
        params = LogMessageParams(
            session_id=session_id, role=role, content=content, **kwargs
        )
        return MessageService(db_session).log_message(params, deps)

    return _log


@pytest.fixture
def backdate(db_session):
    """Move a session's start into the past, straight through storage."""

    def _backdate(session_id: str, started_at: datetime = LONG_AGO) -> None:
        db_session.query(ConversationSessionModel).filter(
            ConversationSessionModel.id == session_id
        ).update({"started_at": started_at})
        db_session.commit()

    return _backdate


@pytest.fixture
def tamper(db_session):
    """Rewrite a message body out-of-band, bypassing the services."""

    def _tamper(message_id: str, content: str) -> None:
        db_session.query(ConversationMessageModel).filter(
            ConversationMessageModel.id == message_id
        ).update({"content": content})
        db_session.commit()

    return _tamper
