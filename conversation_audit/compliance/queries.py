"""Query building blocks shared by the read paths."""

from sqlalchemy import func, select
from sqlalchemy.orm import Query, Session

from ..db.models import (
    ConversationMessageModel,
    ConversationSessionModel,
    ProjectModel,
    TicketModel,
)


def message_count_column():
    """Correlated per-session message count; never stored."""
    return (
        select(func.count(ConversationMessageModel.id))
        .where(ConversationMessageModel.session_id == ConversationSessionModel.id)
        .correlate(ConversationSessionModel)
        .scalar_subquery()
        .label("message_count")
    )


def sessions_with_links(db: Session, *columns) -> Query:
    """Sessions joined with their project name and ticket title.

    Rows are ``(session, project_name, ticket_title, *columns)``.
    """
    return (
        db.query(
            ConversationSessionModel,
            ProjectModel.name.label("project_name"),
            TicketModel.title.label("ticket_title"),
            *columns,
        )
        .outerjoin(ProjectModel, ProjectModel.id == ConversationSessionModel.project_id)
        .outerjoin(TicketModel, TicketModel.id == ConversationSessionModel.ticket_id)
    )


def count_messages(db: Session, session_id: str) -> int:
    return (
        db.query(func.count(ConversationMessageModel.id))
        .filter(ConversationMessageModel.session_id == session_id)
        .scalar()
        or 0
    )
