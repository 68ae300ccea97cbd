"""
Retention / archival.

One call, two modes. Without ``confirm`` the run is a preview: it reports
what would be deleted and mutates nothing. With ``confirm`` the eligible
sessions and their messages are deleted in a single transaction.

Eligibility (``started_at < cutoff AND legal_hold = false``) is evaluated
fresh on every call. The confirmed path locks the eligible rows with a
select, then deletes by those ids with the eligibility criteria repeated in
both delete statements, so a held session is unreachable by the delete path
even if the hold was placed after a preview.
"""

from datetime import datetime, timedelta
from typing import List, Optional, Tuple

import structlog
from sqlalchemy import and_, asc, delete, func, select
from sqlalchemy.orm import Session

from ..config import get_settings
from ..db.audit_service import AuditTrailRecorder
from ..db.models import (
    ConversationMessageModel,
    ConversationSessionModel,
    ProjectModel,
    SettingsModel,
)
from .primitives import ensure_utc, generate_id, utc_now
from .queries import message_count_column
from .schemas import (
    ArchiveConfirmed,
    ArchiveParams,
    ArchivePreview,
    ArchivePreviewSession,
    ArchiveResult,
)

logger = structlog.get_logger()

AUDIT_TARGET_TYPE = "retention_cleanup"


def eligible_criteria(cutoff: datetime):
    """Sessions past the cutoff and not under legal hold."""
    return and_(
        ConversationSessionModel.started_at < cutoff,
        ConversationSessionModel.legal_hold.is_(False),
    )


class RetentionService:
    """Enforces the retention window; never decides it."""

    def __init__(self, db: Session, audit: Optional[AuditTrailRecorder] = None):
        self.db = db
        self.audit = audit or AuditTrailRecorder(db)

    def get_retention_days(self) -> int:
        """Retention from the settings record, else the configured default."""
        configured = (
            self.db.query(SettingsModel.conversation_retention_days)
            .order_by(SettingsModel.id)
            .limit(1)
            .scalar()
        )
        return configured or get_settings().default_retention_days

    def _eligible_sessions(
        self, cutoff: datetime
    ) -> List[Tuple[ConversationSessionModel, Optional[str], int]]:
        return (
            self.db.query(
                ConversationSessionModel,
                ProjectModel.name.label("project_name"),
                message_count_column(),
            )
            .outerjoin(ProjectModel, ProjectModel.id == ConversationSessionModel.project_id)
            .filter(eligible_criteria(cutoff))
            .order_by(asc(ConversationSessionModel.started_at))
            .all()
        )

    def _legal_hold_count(self, cutoff: datetime) -> int:
        return (
            self.db.query(func.count(ConversationSessionModel.id))
            .filter(
                ConversationSessionModel.started_at < cutoff,
                ConversationSessionModel.legal_hold.is_(True),
            )
            .scalar()
            or 0
        )

    def _delete_eligible(self, cutoff: datetime) -> Tuple[List[str], int, int]:
        """Delete eligible messages then sessions atomically.

        Counts are taken inside the same transaction, after the eligible
        rows are locked, so they match what the deletes remove.

        Returns:
            (deleted session ids, sessions deleted, messages deleted)
        """
        eligible_ids = select(ConversationSessionModel.id).where(
            eligible_criteria(cutoff)
        )
        try:
            # Lock the eligible rows so a concurrent hold waits for us
            session_ids = list(
                self.db.execute(eligible_ids.with_for_update()).scalars().all()
            )
            messages_deleted = (
                self.db.query(func.count(ConversationMessageModel.id))
                .filter(ConversationMessageModel.session_id.in_(session_ids))
                .scalar()
                or 0
            )
            self.db.execute(
                delete(ConversationMessageModel)
                .where(
                    ConversationMessageModel.session_id.in_(session_ids),
                    ConversationMessageModel.session_id.in_(eligible_ids),
                )
                .execution_options(synchronize_session="fetch")
            )
            self.db.execute(
                delete(ConversationSessionModel)
                .where(
                    ConversationSessionModel.id.in_(session_ids),
                    eligible_criteria(cutoff),
                )
                .execution_options(synchronize_session="fetch")
            )
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        return session_ids, len(session_ids), messages_deleted

    def archive_old_sessions(
        self, params: Optional[ArchiveParams] = None
    ) -> ArchiveResult:
        """Preview or perform deletion of sessions older than the retention window.

        Sessions under legal hold are never selected and never deleted; how
        many were skipped is reported as ``legal_hold_count``.
        """
        params = params or ArchiveParams()
        archive_id = generate_id()
        retention_days = params.retention_days or self.get_retention_days()
        cutoff = utc_now() - timedelta(days=retention_days)
        action = "delete" if params.confirm else "dry_run"

        eligible = self._eligible_sessions(cutoff)
        legal_hold_count = self._legal_hold_count(cutoff)
        total_messages = sum(count or 0 for _, _, count in eligible)

        log = logger.bind(
            archive_id=archive_id,
            retention_days=retention_days,
            cutoff_date=cutoff.isoformat(),
            dry_run=not params.confirm,
        )

        if not eligible:
            self.audit.record(
                archive_id, AUDIT_TARGET_TYPE, "none", action, "no_sessions_eligible"
            )
            log.info("retention_nothing_to_do", legal_hold_count=legal_hold_count)
            if not params.confirm:
                return ArchivePreview(
                    archive_id=archive_id,
                    retention_days=retention_days,
                    cutoff_date=cutoff,
                    sessions_to_delete=0,
                    messages_to_delete=0,
                    legal_hold_count=legal_hold_count,
                    sessions=[],
                )
            return ArchiveConfirmed(
                archive_id=archive_id,
                retention_days=retention_days,
                cutoff_date=cutoff,
                sessions_deleted=0,
                messages_deleted=0,
                legal_hold_count=legal_hold_count,
            )

        if not params.confirm:
            preview = ArchivePreview(
                archive_id=archive_id,
                retention_days=retention_days,
                cutoff_date=cutoff,
                sessions_to_delete=len(eligible),
                messages_to_delete=total_messages,
                legal_hold_count=legal_hold_count,
                sessions=[
                    ArchivePreviewSession(
                        id=session.id,
                        project_name=project_name,
                        environment=session.environment,
                        classification=session.data_classification,
                        message_count=count or 0,
                        started_at=ensure_utc(session.started_at),
                        ended_at=ensure_utc(session.ended_at)
                        if session.ended_at
                        else None,
                    )
                    for session, project_name, count in eligible
                ],
            )
            self.audit.record(
                archive_id,
                AUDIT_TARGET_TYPE,
                "preview",
                action,
                f"preview_{len(eligible)}_sessions_{total_messages}_messages",
            )
            log.info(
                "retention_preview",
                sessions_to_delete=len(eligible),
                messages_to_delete=total_messages,
                legal_hold_count=legal_hold_count,
            )
            return preview

        session_ids, sessions_deleted, messages_deleted = self._delete_eligible(cutoff)

        self.audit.record(
            archive_id,
            AUDIT_TARGET_TYPE,
            ",".join(session_ids),
            action,
            f"deleted_{sessions_deleted}_sessions_{messages_deleted}_messages",
        )
        log.info(
            "retention_deleted",
            sessions_deleted=sessions_deleted,
            messages_deleted=messages_deleted,
            legal_hold_count=legal_hold_count,
        )

        return ArchiveConfirmed(
            archive_id=archive_id,
            retention_days=retention_days,
            cutoff_date=cutoff,
            sessions_deleted=sessions_deleted,
            messages_deleted=messages_deleted,
            legal_hold_count=legal_hold_count,
        )
