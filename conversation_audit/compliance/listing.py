"""Filtered, paginated listing of conversation sessions."""

from typing import List, Optional

from sqlalchemy import desc
from sqlalchemy.orm import Session

from ..config import get_settings
from ..db.models import ConversationSessionModel
from .primitives import ensure_utc
from .queries import message_count_column, sessions_with_links
from .schemas import ListConversationsParams, SessionSummary


class ConversationQueryService:
    """Read-only queries over conversation sessions."""

    def __init__(self, db: Session):
        self.db = db

    def list_conversations(
        self, params: Optional[ListConversationsParams] = None
    ) -> List[SessionSummary]:
        """List session summaries, newest first.

        Date bounds are inclusive and apply to ``started_at``. Open sessions
        are included unless ``include_active`` is False.
        """
        params = params or ListConversationsParams()
        limit = params.limit or get_settings().default_list_limit

        query = sessions_with_links(self.db, message_count_column())

        if params.project_id:
            query = query.filter(ConversationSessionModel.project_id == params.project_id)
        if params.ticket_id:
            query = query.filter(ConversationSessionModel.ticket_id == params.ticket_id)
        if params.environment:
            query = query.filter(
                ConversationSessionModel.environment == params.environment
            )
        if params.start_date:
            query = query.filter(ConversationSessionModel.started_at >= params.start_date)
        if params.end_date:
            query = query.filter(ConversationSessionModel.started_at <= params.end_date)
        if not params.include_active:
            query = query.filter(ConversationSessionModel.ended_at.is_not(None))

        rows = (
            query.order_by(
                desc(ConversationSessionModel.started_at),
                desc(ConversationSessionModel.created_at),
            )
            .limit(limit)
            .all()
        )

        return [
            SessionSummary(
                id=session.id,
                project_id=session.project_id,
                project_name=project_name,
                ticket_id=session.ticket_id,
                ticket_title=ticket_title,
                user_id=session.user_id,
                environment=session.environment,
                data_classification=session.data_classification,
                legal_hold=bool(session.legal_hold),
                message_count=message_count or 0,
                started_at=ensure_utc(session.started_at),
                ended_at=ensure_utc(session.ended_at) if session.ended_at else None,
                is_active=session.is_active,
            )
            for session, project_name, ticket_title, message_count in rows
        ]
