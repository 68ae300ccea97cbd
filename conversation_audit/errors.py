"""
Typed errors for the conversation audit log.

Every domain error carries a stable machine-readable code and a message
that names the violated precondition. Storage errors are not wrapped.
"""

from typing import Any, Dict, Optional


class ComplianceError(Exception):
    """Base error for all conversation audit domain errors."""

    code = "COMPLIANCE_ERROR"

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.code = code or self.code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {"error": self.code, "message": self.message}
        if self.details:
            result["details"] = self.details
        return result


class NotFoundError(ComplianceError):
    """A referenced session, project or ticket does not exist."""

    code = "NOT_FOUND"


class SessionNotFoundError(NotFoundError):
    code = "SESSION_NOT_FOUND"

    def __init__(self, session_id: str):
        self.session_id = session_id
        super().__init__(
            f"Conversation session not found: {session_id}. "
            "Use 'conversation-audit list' to see sessions.",
            details={"session_id": session_id},
        )


class ProjectNotFoundError(NotFoundError):
    code = "PROJECT_NOT_FOUND"

    def __init__(self, project_id: str):
        self.project_id = project_id
        super().__init__(
            f"Project not found: {project_id}.",
            details={"project_id": project_id},
        )


class TicketNotFoundError(NotFoundError):
    code = "TICKET_NOT_FOUND"

    def __init__(self, ticket_id: str):
        self.ticket_id = ticket_id
        super().__init__(
            f"Ticket not found: {ticket_id}.",
            details={"ticket_id": ticket_id},
        )


class ValidationError(ComplianceError):
    """A domain rule was violated."""

    code = "VALIDATION_ERROR"

    def __init__(self, message: str, fields: Optional[Dict[str, str]] = None):
        super().__init__(message, details={"fields": fields} if fields else None)
