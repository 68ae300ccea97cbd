"""
Compliance export.

Produces a self-describing document of every session (and its messages) in
a date range. With integrity verification on, each message's fingerprint is
recomputed from the stored content and compared with the stored value.
Mismatches are reported, never fatal: the export exists to surface
tampering, not to hide it.
"""

from typing import List, Optional

import structlog
from sqlalchemy import asc
from sqlalchemy.orm import Session

from ..config import get_settings
from ..db.audit_service import AuditTrailRecorder
from ..db.models import ConversationMessageModel, ConversationSessionModel
from .fingerprint import verify_fingerprint
from .primitives import ensure_utc, generate_id, utc_now
from .queries import sessions_with_links
from .schemas import (
    ComplianceExport,
    DateRange,
    ExportedMessage,
    ExportedSession,
    ExportMetadata,
    ExportParams,
    IntegrityReport,
)

logger = structlog.get_logger()


class ComplianceExportService:
    """Builds compliance exports and records every export in the audit trail."""

    def __init__(self, db: Session, audit: Optional[AuditTrailRecorder] = None):
        self.db = db
        self.audit = audit or AuditTrailRecorder(db)

    def _messages_for(self, session_id: str) -> List[ConversationMessageModel]:
        return (
            self.db.query(ConversationMessageModel)
            .filter(ConversationMessageModel.session_id == session_id)
            .order_by(asc(ConversationMessageModel.sequence_number))
            .all()
        )

    def export_compliance_logs(self, params: ExportParams) -> ComplianceExport:
        """Export sessions started within ``[start_date, end_date]``.

        Optionally narrowed to one session or project. When
        ``include_content`` is False, bodies are replaced by the redaction
        placeholder while hashes and metadata remain.
        """
        export_id = generate_id()
        exported_at = utc_now()
        placeholder = get_settings().redaction_placeholder

        query = sessions_with_links(self.db).filter(
            ConversationSessionModel.started_at >= params.start_date,
            ConversationSessionModel.started_at <= params.end_date,
        )
        if params.session_id:
            query = query.filter(ConversationSessionModel.id == params.session_id)
        if params.project_id:
            query = query.filter(ConversationSessionModel.project_id == params.project_id)

        rows = query.order_by(asc(ConversationSessionModel.started_at)).all()

        total_messages = 0
        valid_messages = 0
        invalid_message_ids: List[str] = []
        exported_sessions: List[ExportedSession] = []

        for session, project_name, ticket_title in rows:
            exported_messages: List[ExportedMessage] = []

            for message in self._messages_for(session.id):
                total_messages += 1

                integrity_valid = None
                if params.verify_integrity:
                    integrity_valid = verify_fingerprint(
                        message.content, session.id, message.content_hash
                    )
                    if integrity_valid:
                        valid_messages += 1
                    else:
                        invalid_message_ids.append(message.id)

                exported_messages.append(
                    ExportedMessage(
                        id=message.id,
                        role=message.role,
                        content=message.content if params.include_content else placeholder,
                        content_hash=message.content_hash,
                        integrity_valid=integrity_valid,
                        tool_calls=message.tool_calls,
                        token_count=message.token_count,
                        model_id=message.model_id,
                        sequence_number=message.sequence_number,
                        contains_potential_secrets=bool(
                            message.contains_potential_secrets
                        ),
                        created_at=ensure_utc(message.created_at),
                    )
                )

            exported_sessions.append(
                ExportedSession(
                    id=session.id,
                    project_id=session.project_id,
                    project_name=project_name,
                    ticket_id=session.ticket_id,
                    ticket_title=ticket_title,
                    user_id=session.user_id,
                    environment=session.environment,
                    data_classification=session.data_classification,
                    legal_hold=bool(session.legal_hold),
                    session_metadata=session.session_metadata,
                    started_at=ensure_utc(session.started_at),
                    ended_at=ensure_utc(session.ended_at) if session.ended_at else None,
                    messages=exported_messages,
                )
            )

        integrity_report = None
        if params.verify_integrity:
            integrity_report = IntegrityReport(
                total_messages=total_messages,
                valid_messages=valid_messages,
                invalid_messages=total_messages - valid_messages,
                invalid_message_ids=invalid_message_ids,
                integrity_passed=not invalid_message_ids,
            )

        self.audit.record(
            export_id,
            "compliance_export",
            params.session_id or params.project_id or "date_range",
            "export",
            f"exported_{len(rows)}_sessions" if rows else "no_sessions_found",
        )

        logger.info(
            "compliance_export_completed",
            export_id=export_id,
            session_count=len(rows),
            message_count=total_messages,
            include_content=params.include_content,
            verify_integrity=params.verify_integrity,
        )
        if invalid_message_ids:
            logger.warning(
                "integrity_check_failed",
                export_id=export_id,
                invalid_messages=len(invalid_message_ids),
            )

        return ComplianceExport(
            export_metadata=ExportMetadata(
                export_id=export_id,
                exported_at=exported_at,
                date_range=DateRange(
                    start_date=params.start_date, end_date=params.end_date
                ),
                session_count=len(rows),
                message_count=total_messages,
                include_content=params.include_content,
                verify_integrity=params.verify_integrity,
            ),
            integrity_report=integrity_report,
            sessions=exported_sessions,
        )
