"""
Audit trail database model.

Every export, retention run and legal-hold change is mirrored into
``audit_log_access`` for forensic review by other tooling. Rows are
append-only.
"""

from sqlalchemy import Column, DateTime, Index, String, Text
from sqlalchemy.sql import func

from .base import Base


class AuditAccessModel(Base):
    """Audit entry for an access, export or delete operation."""

    __tablename__ = "audit_log_access"

    id = Column(String(36), primary_key=True)

    # Who performed the action
    accessor_id = Column(String(128), nullable=False)

    # What was touched (a delete can target many comma-separated ids)
    target_type = Column(String(50), nullable=False)
    target_id = Column(Text, nullable=False)

    action = Column(String(50), nullable=False)
    result = Column(Text, nullable=False)

    accessed_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=func.now(),
    )

    __table_args__ = (
        Index("ix_audit_log_access_accessor", "accessor_id"),
        Index("ix_audit_log_access_target_type", "target_type"),
        Index("ix_audit_log_access_accessed", "accessed_at"),
    )
