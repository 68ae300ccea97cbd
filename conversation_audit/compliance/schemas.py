"""
Input and result schemas for the compliance services.

Inputs reject unknown fields. Results are what the services hand back to
the tool-dispatch layer; ``model_dump(mode="json")`` gives the wire shape.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .primitives import DateInput, parse_date_bound


class DataClassification(str, Enum):
    """Sensitivity label carried by every session."""

    PUBLIC = "public"
    INTERNAL = "internal"
    CONFIDENTIAL = "confidential"
    RESTRICTED = "restricted"


class MessageRole(str, Enum):
    """Who produced a message."""

    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"
    TOOL = "tool"


# ---------------------------------------------------------------------------
# Sessions
# ---------------------------------------------------------------------------


class StartConversationParams(BaseModel):
    """Schema for starting a conversation session."""

    model_config = ConfigDict(extra="forbid")

    project_id: Optional[str] = None
    ticket_id: Optional[str] = None
    user_id: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None
    data_classification: DataClassification = DataClassification.INTERNAL


class SessionResult(BaseModel):
    """Normalized summary of a newly started session."""

    id: str
    environment: str
    data_classification: DataClassification
    project_id: Optional[str] = None
    ticket_id: Optional[str] = None
    user_id: Optional[str] = None
    started_at: datetime


class EndConversationResult(BaseModel):
    session_id: str
    started_at: datetime
    ended_at: datetime
    message_count: int
    already_ended: bool


class LegalHoldResult(BaseModel):
    session_id: str
    legal_hold: bool
    changed: bool


# ---------------------------------------------------------------------------
# Messages
# ---------------------------------------------------------------------------


class ToolCall(BaseModel):
    """One tool invocation attached to a message."""

    model_config = ConfigDict(extra="forbid")

    name: str = Field(..., min_length=1)
    parameters: Optional[Dict[str, Any]] = None
    result: Any = None


class LogMessageParams(BaseModel):
    """Schema for appending a message to a session."""

    model_config = ConfigDict(extra="forbid")

    session_id: str = Field(..., min_length=1)
    role: MessageRole
    content: str
    tool_calls: Optional[List[ToolCall]] = None
    token_count: Optional[int] = Field(None, ge=0)
    model_id: Optional[str] = None


class MessageResult(BaseModel):
    id: str
    session_id: str
    role: MessageRole
    sequence_number: int
    content_hash: str
    contains_potential_secrets: bool


# ---------------------------------------------------------------------------
# Listing
# ---------------------------------------------------------------------------


class ListConversationsParams(BaseModel):
    """Filters for listing sessions. Date bounds apply to ``started_at``."""

    model_config = ConfigDict(extra="forbid")

    project_id: Optional[str] = None
    ticket_id: Optional[str] = None
    environment: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    include_active: bool = True
    limit: Optional[int] = Field(None, ge=1)

    @field_validator("start_date", mode="before")
    @classmethod
    def _parse_start(cls, value: Optional[DateInput]) -> Optional[datetime]:
        return None if value is None else parse_date_bound(value)

    @field_validator("end_date", mode="before")
    @classmethod
    def _parse_end(cls, value: Optional[DateInput]) -> Optional[datetime]:
        return None if value is None else parse_date_bound(value, end_of_day=True)


class SessionSummary(BaseModel):
    id: str
    project_id: Optional[str] = None
    project_name: Optional[str] = None
    ticket_id: Optional[str] = None
    ticket_title: Optional[str] = None
    user_id: Optional[str] = None
    environment: str
    data_classification: DataClassification
    legal_hold: bool
    message_count: int
    started_at: datetime
    ended_at: Optional[datetime] = None
    is_active: bool


# ---------------------------------------------------------------------------
# Compliance export
# ---------------------------------------------------------------------------


class ExportParams(BaseModel):
    """Schema for a compliance export. Both date bounds are inclusive."""

    model_config = ConfigDict(extra="forbid")

    start_date: datetime
    end_date: datetime
    session_id: Optional[str] = None
    project_id: Optional[str] = None
    include_content: bool = True
    verify_integrity: bool = True

    @field_validator("start_date", mode="before")
    @classmethod
    def _parse_start(cls, value: DateInput) -> datetime:
        return parse_date_bound(value)

    @field_validator("end_date", mode="before")
    @classmethod
    def _parse_end(cls, value: DateInput) -> datetime:
        return parse_date_bound(value, end_of_day=True)

    @model_validator(mode="after")
    def _check_range(self) -> "ExportParams":
        if self.start_date > self.end_date:
            raise ValueError("start_date must not be after end_date")
        return self


class ExportedMessage(BaseModel):
    id: str
    role: MessageRole
    content: str
    content_hash: str
    integrity_valid: Optional[bool] = None
    tool_calls: Optional[List[Dict[str, Any]]] = None
    token_count: Optional[int] = None
    model_id: Optional[str] = None
    sequence_number: int
    contains_potential_secrets: bool
    created_at: datetime


class ExportedSession(BaseModel):
    id: str
    project_id: Optional[str] = None
    project_name: Optional[str] = None
    ticket_id: Optional[str] = None
    ticket_title: Optional[str] = None
    user_id: Optional[str] = None
    environment: str
    data_classification: DataClassification
    legal_hold: bool
    session_metadata: Optional[Dict[str, Any]] = None
    started_at: datetime
    ended_at: Optional[datetime] = None
    messages: List[ExportedMessage] = Field(default_factory=list)


class IntegrityReport(BaseModel):
    total_messages: int
    valid_messages: int
    invalid_messages: int
    invalid_message_ids: List[str] = Field(default_factory=list)
    integrity_passed: bool


class DateRange(BaseModel):
    start_date: datetime
    end_date: datetime


class ExportMetadata(BaseModel):
    export_id: str
    exported_at: datetime
    date_range: DateRange
    session_count: int
    message_count: int
    include_content: bool
    verify_integrity: bool


class ComplianceExport(BaseModel):
    """A complete, self-describing compliance export document."""

    export_metadata: ExportMetadata
    integrity_report: Optional[IntegrityReport] = None
    sessions: List[ExportedSession] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Retention / archival
# ---------------------------------------------------------------------------


class ArchiveParams(BaseModel):
    """Schema for a retention run. Without ``confirm`` nothing is deleted."""

    model_config = ConfigDict(extra="forbid")

    retention_days: Optional[int] = Field(None, ge=1)
    confirm: bool = False


class ArchivePreviewSession(BaseModel):
    id: str
    project_name: Optional[str] = None
    environment: str
    classification: DataClassification
    message_count: int
    started_at: datetime
    ended_at: Optional[datetime] = None


class ArchivePreview(BaseModel):
    dry_run: Literal[True] = True
    archive_id: str
    retention_days: int
    cutoff_date: datetime
    sessions_to_delete: int
    messages_to_delete: int
    legal_hold_count: int
    sessions: List[ArchivePreviewSession] = Field(default_factory=list)


class ArchiveConfirmed(BaseModel):
    dry_run: Literal[False] = False
    archive_id: str
    retention_days: int
    cutoff_date: datetime
    sessions_deleted: int
    messages_deleted: int
    legal_hold_count: int


ArchiveResult = Union[ArchivePreview, ArchiveConfirmed]
