"""
Message logging.

Messages are appended with strictly increasing per-session sequence
numbers. Sequence assignment and the insert share one transaction; on
PostgreSQL the session row is locked for its duration, and everywhere the
``(session_id, sequence_number)`` unique constraint rejects a duplicate.
Retrying a failed call may skip or duplicate a logical message, so callers
must not retry blindly.
"""

import structlog
from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..db.models import ConversationMessageModel, ConversationSessionModel
from ..errors import SessionNotFoundError, ValidationError
from .dependencies import ComplianceDependencies
from .fingerprint import fingerprint
from .primitives import generate_id, utc_now
from .schemas import LogMessageParams, MessageResult

logger = structlog.get_logger()


class MessageService:
    """Service for appending messages to conversation sessions."""

    def __init__(self, db: Session):
        self.db = db

    def next_sequence_number(self, session_id: str) -> int:
        max_seq = (
            self.db.query(func.max(ConversationMessageModel.sequence_number))
            .filter(ConversationMessageModel.session_id == session_id)
            .scalar()
        )
        return (max_seq or 0) + 1

    def log_message(
        self,
        params: LogMessageParams,
        deps: ComplianceDependencies,
    ) -> MessageResult:
        """Append a message to an open session.

        Raises:
            SessionNotFoundError: The session does not exist.
            ValidationError: The session has already ended.
        """
        session_id = params.session_id
        session = (
            self.db.query(ConversationSessionModel)
            .filter(ConversationSessionModel.id == session_id)
            .with_for_update()
            .first()
        )
        if session is None:
            raise SessionNotFoundError(session_id)

        if session.ended_at is not None:
            self.db.rollback()
            raise ValidationError(
                f"Session {session_id} has already ended. "
                "Start a new session to continue logging."
            )

        sequence_number = self.next_sequence_number(session_id)
        content_hash = fingerprint(params.content, session_id)
        has_secrets = bool(deps.contains_secrets(params.content))

        message_id = generate_id()
        message = ConversationMessageModel(
            id=message_id,
            session_id=session_id,
            role=params.role.value,
            content=params.content,
            content_hash=content_hash,
            tool_calls=(
                [call.model_dump() for call in params.tool_calls]
                if params.tool_calls
                else None
            ),
            token_count=params.token_count,
            model_id=params.model_id or None,
            sequence_number=sequence_number,
            contains_potential_secrets=has_secrets,
            created_at=utc_now(),
        )

        try:
            self.db.add(message)
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            raise

        log = logger.info if not has_secrets else logger.warning
        log(
            "message_logged",
            session_id=session_id,
            message_id=message_id,
            role=params.role.value,
            sequence_number=sequence_number,
            contains_potential_secrets=has_secrets,
        )

        return MessageResult(
            id=message_id,
            session_id=session_id,
            role=params.role,
            sequence_number=sequence_number,
            content_hash=content_hash,
            contains_potential_secrets=has_secrets,
        )
