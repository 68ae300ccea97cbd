"""
Database package for the conversation audit log.
"""

from .audit_models import AuditAccessModel
from .audit_service import AuditTrailRecorder
from .base import Base, get_db, get_engine, get_session_local, init_database
from .models import (
    ConversationMessageModel,
    ConversationSessionModel,
    ProjectModel,
    SettingsModel,
    TicketModel,
)

__all__ = [
    "AuditAccessModel",
    "AuditTrailRecorder",
    "Base",
    "ConversationMessageModel",
    "ConversationSessionModel",
    "ProjectModel",
    "SettingsModel",
    "TicketModel",
    "get_db",
    "get_engine",
    "get_session_local",
    "init_database",
]
