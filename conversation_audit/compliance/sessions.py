"""
Session lifecycle: start, end and legal hold.

A session is mutated only to stamp ``ended_at`` (once) or to flip its
legal-hold flag.
"""

from typing import Optional

import structlog
from sqlalchemy.orm import Session

from ..db.audit_service import AuditTrailRecorder
from ..db.models import ConversationSessionModel, ProjectModel, TicketModel
from ..errors import ProjectNotFoundError, SessionNotFoundError, TicketNotFoundError
from .dependencies import ComplianceDependencies
from .primitives import ensure_utc, generate_id, utc_now
from .queries import count_messages
from .schemas import (
    EndConversationResult,
    LegalHoldResult,
    SessionResult,
    StartConversationParams,
)

logger = structlog.get_logger()


class SessionService:
    """Service for managing conversation session lifecycles."""

    def __init__(self, db: Session, audit: Optional[AuditTrailRecorder] = None):
        self.db = db
        self.audit = audit or AuditTrailRecorder(db)

    def get(self, session_id: str) -> Optional[ConversationSessionModel]:
        """Get a session by ID."""
        return self.db.get(ConversationSessionModel, session_id)

    def require(self, session_id: str) -> ConversationSessionModel:
        session = self.get(session_id)
        if session is None:
            raise SessionNotFoundError(session_id)
        return session

    def start_conversation(
        self,
        params: StartConversationParams,
        deps: ComplianceDependencies,
    ) -> SessionResult:
        """Start a new conversation session.

        Raises:
            ProjectNotFoundError: ``project_id`` given but unknown.
            TicketNotFoundError: ``ticket_id`` given but unknown.
        """
        project_id = params.project_id or None
        ticket_id = params.ticket_id or None

        if project_id and self.db.get(ProjectModel, project_id) is None:
            raise ProjectNotFoundError(project_id)
        if ticket_id and self.db.get(TicketModel, ticket_id) is None:
            raise TicketNotFoundError(ticket_id)

        now = utc_now()
        environment = deps.detect_environment()
        session_id = generate_id()
        session = ConversationSessionModel(
            id=session_id,
            project_id=project_id,
            ticket_id=ticket_id,
            user_id=params.user_id or None,
            environment=environment,
            session_metadata=params.metadata,
            data_classification=params.data_classification.value,
            legal_hold=False,
            started_at=now,
            ended_at=None,
            created_at=now,
        )
        self.db.add(session)
        self.db.commit()

        logger.info(
            "conversation_started",
            session_id=session_id,
            environment=environment,
            data_classification=params.data_classification.value,
            project_id=project_id,
            ticket_id=ticket_id,
        )

        return SessionResult(
            id=session_id,
            environment=environment,
            data_classification=params.data_classification,
            project_id=project_id,
            ticket_id=ticket_id,
            user_id=params.user_id or None,
            started_at=now,
        )

    def end_conversation(self, session_id: str) -> EndConversationResult:
        """End a session so no further messages can be logged.

        Ending an already-ended session is not an error: the original end
        timestamp is returned with ``already_ended=True``.
        """
        session = self.require(session_id)
        message_count = count_messages(self.db, session_id)
        started_at = ensure_utc(session.started_at)

        if session.ended_at is not None:
            return EndConversationResult(
                session_id=session_id,
                started_at=started_at,
                ended_at=ensure_utc(session.ended_at),
                message_count=message_count,
                already_ended=True,
            )

        # ended_at never precedes started_at, even with a skewed clock
        ended_at = max(utc_now(), started_at)
        session.ended_at = ended_at
        self.db.commit()

        logger.info(
            "conversation_ended", session_id=session_id, message_count=message_count
        )

        return EndConversationResult(
            session_id=session_id,
            started_at=started_at,
            ended_at=ended_at,
            message_count=message_count,
            already_ended=False,
        )

    def set_legal_hold(
        self, session_id: str, hold: bool, reason: Optional[str] = None
    ) -> LegalHoldResult:
        """Place or release a legal hold on a session.

        Held sessions are never deleted by retention runs.
        """
        session = self.require(session_id)
        changed = bool(session.legal_hold) != hold
        if changed:
            session.legal_hold = hold
            self.db.commit()

        action = "legal_hold_set" if hold else "legal_hold_released"
        result = "changed" if changed else "unchanged"
        if reason:
            result = f"{result}: {reason}"
        self.audit.record(
            generate_id(), "conversation_session", session_id, action, result
        )

        logger.info(action, session_id=session_id, changed=changed)
        return LegalHoldResult(session_id=session_id, legal_hold=hold, changed=changed)
