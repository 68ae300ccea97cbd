"""
Conversation compliance services.

Session lifecycle, append-only message logging with content fingerprints,
listing, compliance export with integrity verification, and retention runs
with a preview/confirm protocol and legal-hold protection.
"""

from .dependencies import (
    ComplianceDependencies,
    contains_secrets,
    default_dependencies,
    detect_environment,
)
from .export import ComplianceExportService
from .fingerprint import fingerprint, verify_fingerprint
from .listing import ConversationQueryService
from .messages import MessageService
from .retention import RetentionService
from .schemas import (
    ArchiveConfirmed,
    ArchiveParams,
    ArchivePreview,
    ArchivePreviewSession,
    ArchiveResult,
    ComplianceExport,
    DataClassification,
    EndConversationResult,
    ExportedMessage,
    ExportedSession,
    ExportMetadata,
    ExportParams,
    IntegrityReport,
    LegalHoldResult,
    ListConversationsParams,
    LogMessageParams,
    MessageResult,
    MessageRole,
    SessionResult,
    SessionSummary,
    StartConversationParams,
    ToolCall,
)
from .sessions import SessionService

__all__ = [
    "ArchiveConfirmed",
    "ArchiveParams",
    "ArchivePreview",
    "ArchivePreviewSession",
    "ArchiveResult",
    "ComplianceDependencies",
    "ComplianceExport",
    "ComplianceExportService",
    "ConversationQueryService",
    "DataClassification",
    "EndConversationResult",
    "ExportMetadata",
    "ExportParams",
    "ExportedMessage",
    "ExportedSession",
    "IntegrityReport",
    "LegalHoldResult",
    "ListConversationsParams",
    "LogMessageParams",
    "MessageResult",
    "MessageRole",
    "MessageService",
    "RetentionService",
    "SessionResult",
    "SessionService",
    "SessionSummary",
    "StartConversationParams",
    "ToolCall",
    "contains_secrets",
    "default_dependencies",
    "detect_environment",
    "fingerprint",
    "verify_fingerprint",
]
