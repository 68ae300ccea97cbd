"""
Tests for RetentionService.

Verifies:
- A preview reports what would be deleted and mutates nothing
- A confirmed run deletes sessions and their messages together
- Sessions under legal hold are skipped and counted
- Retention falls back from the settings record to the configured default
- Every run is mirrored into the audit trail
"""

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import event
from sqlalchemy.exc import OperationalError

from conversation_audit.compliance import (
    ArchiveConfirmed,
    ArchiveParams,
    ArchivePreview,
    ConversationQueryService,
    RetentionService,
    SessionService,
)
from conversation_audit.db.audit_models import AuditAccessModel
from conversation_audit.db.models import (
    ConversationMessageModel,
    ConversationSessionModel,
    SettingsModel,
)


def _archive(db_session, **kwargs):
    return RetentionService(db_session).archive_old_sessions(ArchiveParams(**kwargs))


def _days_ago(days: int) -> datetime:
    return datetime.now(timezone.utc) - timedelta(days=days)


class TestPreview:

    def test_preview_reports_eligible_sessions(
        self, db_session, start_session, log_message, backdate, project_and_ticket
    ):
        project_id, _ = project_and_ticket
        old = start_session(project_id=project_id)
        log_message(old, "first")
        log_message(old, "second")
        backdate(old)
        start_session()

        result = _archive(db_session, retention_days=30)

        assert isinstance(result, ArchivePreview)
        assert result.dry_run is True
        assert result.retention_days == 30
        assert result.sessions_to_delete == 1
        assert result.messages_to_delete == 2
        assert result.legal_hold_count == 0
        [preview] = result.sessions
        assert preview.id == old
        assert preview.project_name == "Audit Project"
        assert preview.message_count == 2
        assert preview.environment == "claude-code"
        assert preview.classification.value == "internal"

    def test_preview_is_the_default(self, db_session, start_session, backdate):
        backdate(start_session())

        result = RetentionService(db_session).archive_old_sessions()

        assert isinstance(result, ArchivePreview)

    def test_preview_never_mutates(self, db_session, start_session, log_message, backdate):
        old = start_session()
        log_message(old, "kept")
        backdate(old)

        first = _archive(db_session, retention_days=30)
        second = _archive(db_session, retention_days=30)

        assert first.sessions_to_delete == second.sessions_to_delete == 1
        assert db_session.query(ConversationSessionModel).count() == 1
        assert db_session.query(ConversationMessageModel).count() == 1

    def test_cutoff_is_retention_days_before_now(self, db_session):
        before = _days_ago(30)

        result = _archive(db_session, retention_days=30)

        assert before <= result.cutoff_date <= _days_ago(30)

    def test_recent_sessions_not_eligible(self, db_session, start_session, backdate):
        session_id = start_session()
        backdate(session_id, _days_ago(10))

        result = _archive(db_session, retention_days=30)

        assert result.sessions_to_delete == 0
        assert result.sessions == []


class TestConfirmedDeletion:

    def test_deletes_sessions_and_messages(
        self, db_session, start_session, log_message, backdate
    ):
        old = start_session()
        log_message(old, "one")
        log_message(old, "two")
        backdate(old)
        recent = start_session()
        log_message(recent, "stays")

        result = _archive(db_session, retention_days=30, confirm=True)

        assert isinstance(result, ArchiveConfirmed)
        assert result.dry_run is False
        assert result.sessions_deleted == 1
        assert result.messages_deleted == 2
        assert db_session.get(ConversationSessionModel, old) is None
        assert db_session.get(ConversationSessionModel, recent) is not None

    def test_no_orphaned_messages(self, db_session, start_session, log_message, backdate):
        old = start_session()
        log_message(old, "gone")
        backdate(old)

        _archive(db_session, retention_days=30, confirm=True)

        orphans = (
            db_session.query(ConversationMessageModel)
            .filter(ConversationMessageModel.session_id == old)
            .count()
        )
        assert orphans == 0

    def test_nothing_to_delete(self, db_session, start_session):
        start_session()

        result = _archive(db_session, retention_days=30, confirm=True)

        assert isinstance(result, ArchiveConfirmed)
        assert result.sessions_deleted == 0
        assert result.messages_deleted == 0
        assert db_session.query(ConversationSessionModel).count() == 1


    def test_failed_session_delete_keeps_messages(
        self, engine, db_session, start_session, log_message, backdate
    ):
        session_id = start_session()
        log_message(session_id, "must survive")
        backdate(session_id)

        def fail_session_delete(conn, cursor, statement, parameters, context, executemany):
            if statement.lstrip().upper().startswith("DELETE FROM CONVERSATION_SESSIONS"):
                raise OperationalError(statement, parameters, Exception("disk I/O error"))

        event.listen(engine, "before_cursor_execute", fail_session_delete)
        try:
            with pytest.raises(OperationalError):
                _archive(db_session, retention_days=30, confirm=True)
        finally:
            event.remove(engine, "before_cursor_execute", fail_session_delete)

        sessions = (
            db_session.query(ConversationSessionModel)
            .filter(ConversationSessionModel.id == session_id)
            .count()
        )
        messages = (
            db_session.query(ConversationMessageModel)
            .filter(ConversationMessageModel.session_id == session_id)
            .count()
        )
        assert sessions == 1
        assert messages == 1


class TestLegalHold:

    def test_held_sessions_are_skipped_and_counted(
        self, db_session, start_session, log_message, backdate
    ):
        held = start_session()
        log_message(held, "evidence")
        backdate(held)
        SessionService(db_session).set_legal_hold(held, True)
        free = start_session()
        backdate(free)

        preview = _archive(db_session, retention_days=30)
        confirmed = _archive(db_session, retention_days=30, confirm=True)

        assert preview.sessions_to_delete == 1
        assert preview.legal_hold_count == 1
        assert [s.id for s in preview.sessions] == [free]
        assert confirmed.sessions_deleted == 1
        assert confirmed.legal_hold_count == 1
        assert db_session.get(ConversationSessionModel, held) is not None
        assert db_session.query(ConversationMessageModel).count() == 1

    def test_hold_placed_after_preview_is_honoured(
        self, db_session, start_session, log_message, backdate
    ):
        session_id = start_session()
        log_message(session_id, "evidence")
        backdate(session_id)

        preview = _archive(db_session, retention_days=30)
        SessionService(db_session).set_legal_hold(session_id, True)
        confirmed = _archive(db_session, retention_days=30, confirm=True)

        assert preview.sessions_to_delete == 1
        assert confirmed.sessions_deleted == 0
        assert confirmed.messages_deleted == 0
        assert confirmed.legal_hold_count == 1
        assert db_session.get(ConversationSessionModel, session_id) is not None

    def test_released_hold_becomes_eligible(self, db_session, start_session, backdate):
        session_id = start_session()
        backdate(session_id)
        service = SessionService(db_session)
        service.set_legal_hold(session_id, True)
        service.set_legal_hold(session_id, False)

        result = _archive(db_session, retention_days=30, confirm=True)

        assert result.sessions_deleted == 1
        assert result.legal_hold_count == 0


class TestRetentionDays:

    def test_default_when_no_settings_row(self, db_session):
        assert RetentionService(db_session).get_retention_days() == 90

    def test_settings_row_wins(self, db_session):
        db_session.add(SettingsModel(conversation_retention_days=30))
        db_session.commit()

        assert RetentionService(db_session).get_retention_days() == 30

    def test_empty_settings_value_falls_back(self, db_session):
        db_session.add(SettingsModel(conversation_retention_days=None))
        db_session.commit()

        assert RetentionService(db_session).get_retention_days() == 90

    def test_run_uses_settings_row(self, db_session, start_session, backdate):
        db_session.add(SettingsModel(conversation_retention_days=30))
        db_session.commit()
        session_id = start_session()
        backdate(session_id, _days_ago(45))

        result = RetentionService(db_session).archive_old_sessions()

        assert result.retention_days == 30
        assert result.sessions_to_delete == 1

    def test_default_keeps_45_day_old_session(self, db_session, start_session, backdate):
        session_id = start_session()
        backdate(session_id, _days_ago(45))

        result = RetentionService(db_session).archive_old_sessions()

        assert result.retention_days == 90
        assert result.sessions_to_delete == 0


class TestRetentionAudit:

    def _entry(self, db_session, archive_id):
        return db_session.get(AuditAccessModel, archive_id)

    def test_preview_is_audited(self, db_session, start_session, log_message, backdate):
        session_id = start_session()
        log_message(session_id, "x")
        backdate(session_id)

        result = _archive(db_session, retention_days=30)

        entry = self._entry(db_session, result.archive_id)
        assert entry.target_type == "retention_cleanup"
        assert entry.target_id == "preview"
        assert entry.action == "dry_run"
        assert entry.result == "preview_1_sessions_1_messages"

    def test_delete_is_audited_with_ids(self, db_session, start_session, backdate):
        first = start_session()
        second = start_session()
        backdate(first)
        backdate(second)

        result = _archive(db_session, retention_days=30, confirm=True)

        entry = self._entry(db_session, result.archive_id)
        assert entry.action == "delete"
        assert set(entry.target_id.split(",")) == {first, second}
        assert entry.result == "deleted_2_sessions_0_messages"

    def test_nothing_eligible_is_audited(self, db_session):
        result = _archive(db_session, retention_days=30, confirm=True)

        entry = self._entry(db_session, result.archive_id)
        assert entry.target_id == "none"
        assert entry.action == "delete"
        assert entry.result == "no_sessions_eligible"


class TestRetentionScenario:

    def test_preview_then_confirm_then_list(
        self, db_session, start_session, log_message, backdate
    ):
        session_id = start_session()
        for role in ("user", "assistant", "user"):
            log_message(session_id, f"{role} message", role=role)
        SessionService(db_session).end_conversation(session_id)
        backdate(session_id, _days_ago(100))

        preview = _archive(db_session, retention_days=90)
        confirmed = _archive(db_session, retention_days=90, confirm=True)

        assert preview.sessions_to_delete == 1
        assert preview.messages_to_delete == 3
        assert confirmed.sessions_deleted == 1
        assert confirmed.messages_deleted == 3
        assert ConversationQueryService(db_session).list_conversations() == []
