"""
Tests for ConversationQueryService.list_conversations().
"""

from datetime import datetime, timedelta, timezone

from conversation_audit.compliance import (
    ComplianceDependencies,
    ConversationQueryService,
    ListConversationsParams,
    SessionService,
    StartConversationParams,
)


def _list(db_session, **filters):
    params = ListConversationsParams(**filters) if filters else None
    return ConversationQueryService(db_session).list_conversations(params)


class TestListConversations:

    def test_lists_all_sessions(self, db_session, start_session):
        start_session()
        start_session()

        assert len(_list(db_session)) == 2

    def test_empty_store(self, db_session):
        assert _list(db_session) == []

    def test_summary_fields(self, db_session, start_session, log_message, project_and_ticket):
        project_id, ticket_id = project_and_ticket
        session_id = start_session(project_id=project_id, ticket_id=ticket_id, user_id="dev")
        log_message(session_id, "Hi")
        log_message(session_id, "Hello", role="assistant")

        [summary] = _list(db_session)

        assert summary.id == session_id
        assert summary.project_name == "Audit Project"
        assert summary.ticket_title == "Add logging"
        assert summary.user_id == "dev"
        assert summary.environment == "claude-code"
        assert summary.message_count == 2
        assert summary.is_active is True
        assert summary.ended_at is None

    def test_newest_first(self, db_session, start_session, backdate):
        older = start_session()
        newer = start_session()
        backdate(older, datetime.now(timezone.utc) - timedelta(days=3))

        ids = [s.id for s in _list(db_session)]

        assert ids == [newer, older]

    def test_filters_by_environment(self, db_session, start_session):
        start_session()
        SessionService(db_session).start_conversation(
            StartConversationParams(),
            ComplianceDependencies(
                detect_environment=lambda: "vscode",
                contains_secrets=lambda content: False,
            ),
        )

        result = _list(db_session, environment="claude-code")

        assert len(result) == 1
        assert result[0].environment == "claude-code"

    def test_filters_by_project_and_ticket(self, db_session, start_session, project_and_ticket):
        project_id, ticket_id = project_and_ticket
        linked = start_session(project_id=project_id, ticket_id=ticket_id)
        start_session()

        assert [s.id for s in _list(db_session, project_id=project_id)] == [linked]
        assert [s.id for s in _list(db_session, ticket_id=ticket_id)] == [linked]

    def test_date_window_is_inclusive(self, db_session, start_session, backdate):
        inside = start_session()
        outside = start_session()
        backdate(inside, datetime(2024, 3, 15, 12, 0, tzinfo=timezone.utc))
        backdate(outside, datetime(2024, 4, 1, 0, 0, tzinfo=timezone.utc))

        result = _list(db_session, start_date="2024-03-15", end_date="2024-03-15")

        assert [s.id for s in result] == [inside]

    def test_exclude_active(self, db_session, start_session):
        open_id = start_session()
        closed_id = start_session()
        SessionService(db_session).end_conversation(closed_id)

        ended_only = _list(db_session, include_active=False)
        everything = _list(db_session)

        assert [s.id for s in ended_only] == [closed_id]
        assert {s.id for s in everything} == {open_id, closed_id}

    def test_respects_limit(self, db_session, start_session):
        for _ in range(5):
            start_session()

        assert len(_list(db_session, limit=2)) == 2

    def test_scenario_three_messages_then_end(self, db_session, start_session, log_message):
        session_id = start_session()
        for role in ("user", "assistant", "user"):
            log_message(session_id, f"{role} says hi", role=role)
        SessionService(db_session).end_conversation(session_id)

        [summary] = _list(db_session)

        assert summary.message_count == 3
        assert summary.is_active is False
        assert summary.data_classification.value == "internal"
