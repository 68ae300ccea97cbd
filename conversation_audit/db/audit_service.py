"""
Audit Trail Recorder.

Best-effort write path for the audit trail. A failed audit write is rolled
back and logged, never raised: the operation being audited must not fail
because its audit entry could not be stored.
"""

from datetime import datetime, timezone
from typing import Optional

import structlog
from sqlalchemy.orm import Session

from .audit_models import AuditAccessModel

logger = structlog.get_logger()

SYSTEM_ACCESSOR = "system"


class AuditTrailRecorder:
    """Records access/export/delete operations to ``audit_log_access``.

    Usage:
        audit = AuditTrailRecorder(db_session)
        audit.record(export_id, "compliance_export", "date_range", "export", "exported_2_sessions")

    Callers must commit their own work before recording: a failed write
    rolls back the session.
    """

    def __init__(self, db: Session, accessor_id: str = SYSTEM_ACCESSOR):
        self.db = db
        self.accessor_id = accessor_id

    def record(
        self,
        id: str,
        target_type: str,
        target_id: str,
        action: str,
        result: str,
    ) -> Optional[AuditAccessModel]:
        """Write one audit entry.

        Returns:
            The stored AuditAccessModel, or None if the write failed.
        """
        entry = AuditAccessModel(
            id=id,
            accessor_id=self.accessor_id,
            target_type=target_type,
            target_id=target_id,
            action=action,
            result=result,
            accessed_at=datetime.now(timezone.utc),
        )
        try:
            self.db.add(entry)
            self.db.commit()
        except Exception as exc:  # noqa: BLE001 - audit writes never fail the caller
            rollback_error = None
            try:
                self.db.rollback()
            except Exception as rollback_exc:  # noqa: BLE001
                rollback_error = str(rollback_exc)
            logger.warning(
                "audit_record_failed",
                audit_id=id,
                target_type=target_type,
                action=action,
                error=str(exc),
                rollback_error=rollback_error,
            )
            return None
        return entry
