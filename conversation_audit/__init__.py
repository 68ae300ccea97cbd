"""
Conversation Audit

Compliance-grade audit log for AI-assisted development conversations.
"""

import importlib.metadata

__version__ = importlib.metadata.version("conversation-audit")

from .compliance import (
    ComplianceDependencies,
    ComplianceExportService,
    ConversationQueryService,
    MessageService,
    RetentionService,
    SessionService,
)
from .errors import (
    ComplianceError,
    NotFoundError,
    ProjectNotFoundError,
    SessionNotFoundError,
    TicketNotFoundError,
    ValidationError,
)

__all__ = [
    "ComplianceDependencies",
    "ComplianceError",
    "ComplianceExportService",
    "ConversationQueryService",
    "MessageService",
    "NotFoundError",
    "ProjectNotFoundError",
    "RetentionService",
    "SessionNotFoundError",
    "SessionService",
    "TicketNotFoundError",
    "ValidationError",
]
