"""
Command Line Interface for the conversation audit log.

Every command prints a JSON document on stdout. Domain errors print the
error document and exit with status 1.
"""

import json
from pathlib import Path
from typing import Any, Callable, Optional

import pydantic
import typer
from rich.console import Console

from ..compliance import (
    ArchiveParams,
    ComplianceExportService,
    ConversationQueryService,
    DataClassification,
    ExportParams,
    ListConversationsParams,
    LogMessageParams,
    MessageRole,
    MessageService,
    RetentionService,
    SessionService,
    StartConversationParams,
    default_dependencies,
)
from ..db.base import get_db, init_database
from ..errors import ComplianceError
from ..logging_config import configure_logging

app = typer.Typer(help="Conversation Audit - compliance logging for AI conversations")
console = Console()
err_console = Console(stderr=True)

CLI_ENVIRONMENT = "cli"


def _emit(result: Any) -> None:
    if isinstance(result, pydantic.BaseModel):
        data = result.model_dump(mode="json")
    elif isinstance(result, list):
        data = [item.model_dump(mode="json") for item in result]
    else:
        data = result
    console.print_json(data=data)


def _run(operation: Callable[[Any], Any]) -> None:
    """Run ``operation`` with a database session and print its result."""
    db_scope = get_db()
    db = next(db_scope)
    try:
        _emit(operation(db))
    except ComplianceError as exc:
        err_console.print_json(data=exc.to_dict())
        raise typer.Exit(code=1)
    except pydantic.ValidationError as exc:
        err_console.print_json(
            data={
                "error": "VALIDATION_ERROR",
                "message": "Invalid parameters",
                "details": json.loads(exc.json()),
            }
        )
        raise typer.Exit(code=1)
    finally:
        db_scope.close()


@app.callback()
def main(
    log_level: Optional[str] = typer.Option(None, help="Log level (DEBUG/INFO/...)"),
    log_format: Optional[str] = typer.Option(None, help="Log format (json/console)"),
):
    """Configure logging before any command runs."""
    configure_logging(level=log_level, log_format=log_format)


@app.command("init-db")
def init_db():
    """Create the conversation audit tables."""
    init_database()
    _emit({"initialized": True})


@app.command()
def start(
    project: Optional[str] = typer.Option(None, help="Project ID"),
    ticket: Optional[str] = typer.Option(None, help="Ticket ID"),
    user: Optional[str] = typer.Option(None, help="User ID"),
    classification: DataClassification = typer.Option(
        DataClassification.INTERNAL, help="Data classification"
    ),
    metadata: Optional[str] = typer.Option(None, help="Session metadata as JSON"),
):
    """Start a conversation session."""
    try:
        session_metadata = json.loads(metadata) if metadata else None
    except json.JSONDecodeError as exc:
        raise typer.BadParameter(f"metadata is not valid JSON: {exc}")

    def operation(db):
        params = StartConversationParams(
            project_id=project,
            ticket_id=ticket,
            user_id=user,
            data_classification=classification,
            metadata=session_metadata,
        )
        return SessionService(db).start_conversation(
            params, default_dependencies(CLI_ENVIRONMENT)
        )

    _run(operation)


@app.command()
def log(
    session: str = typer.Option(..., help="Session ID"),
    role: MessageRole = typer.Option(..., help="Message role"),
    content: str = typer.Option(..., help="Message content"),
    model: Optional[str] = typer.Option(None, help="Model ID"),
    tokens: Optional[int] = typer.Option(None, help="Token count"),
):
    """Log a message to an open session."""

    def operation(db):
        params = LogMessageParams(
            session_id=session,
            role=role,
            content=content,
            model_id=model,
            token_count=tokens,
        )
        return MessageService(db).log_message(params, default_dependencies(CLI_ENVIRONMENT))

    _run(operation)


@app.command()
def end(session: str = typer.Option(..., help="Session ID")):
    """End a conversation session."""
    _run(lambda db: SessionService(db).end_conversation(session))


@app.command("list")
def list_sessions(
    project: Optional[str] = typer.Option(None, help="Project ID"),
    ticket: Optional[str] = typer.Option(None, help="Ticket ID"),
    env: Optional[str] = typer.Option(None, help="Environment filter"),
    start_date: Optional[str] = typer.Option(None, "--start", help="Start date (ISO)"),
    end_date: Optional[str] = typer.Option(None, "--end", help="End date (ISO)"),
    include_active: bool = typer.Option(
        True, "--include-active/--ended-only", help="Include open sessions"
    ),
    limit: Optional[int] = typer.Option(None, help="Max results"),
):
    """List conversation sessions, newest first."""

    def operation(db):
        params = ListConversationsParams(
            project_id=project,
            ticket_id=ticket,
            environment=env,
            start_date=start_date,
            end_date=end_date,
            include_active=include_active,
            limit=limit,
        )
        return ConversationQueryService(db).list_conversations(params)

    _run(operation)


@app.command()
def export(
    start_date: str = typer.Option(..., "--start-date", help="Start date (ISO)"),
    end_date: str = typer.Option(..., "--end-date", help="End date (ISO)"),
    session: Optional[str] = typer.Option(None, help="Session ID"),
    project: Optional[str] = typer.Option(None, help="Project ID"),
    include_content: bool = typer.Option(
        True, "--include-content/--redact", help="Include message bodies"
    ),
    verify: bool = typer.Option(
        True, "--verify/--no-verify", help="Verify content fingerprints"
    ),
    output: Optional[Path] = typer.Option(None, help="Write the export to a file"),
):
    """Export conversation logs for a compliance audit."""

    def operation(db):
        params = ExportParams(
            start_date=start_date,
            end_date=end_date,
            session_id=session,
            project_id=project,
            include_content=include_content,
            verify_integrity=verify,
        )
        result = ComplianceExportService(db).export_compliance_logs(params)
        if output is None:
            return result
        output.write_text(result.model_dump_json(indent=2), encoding="utf-8")
        return {
            "output": str(output),
            "export_metadata": result.export_metadata.model_dump(mode="json"),
            "integrity_report": result.integrity_report.model_dump(mode="json")
            if result.integrity_report
            else None,
        }

    _run(operation)


@app.command()
def archive(
    days: Optional[int] = typer.Option(None, help="Retention days"),
    confirm: bool = typer.Option(False, help="Actually delete (default: preview)"),
):
    """Preview or delete sessions older than the retention window."""

    def operation(db):
        params = ArchiveParams(retention_days=days, confirm=confirm)
        return RetentionService(db).archive_old_sessions(params)

    _run(operation)


@app.command()
def hold(
    session: str = typer.Option(..., help="Session ID"),
    reason: Optional[str] = typer.Option(None, help="Reason for the hold"),
):
    """Place a session under legal hold."""
    _run(lambda db: SessionService(db).set_legal_hold(session, True, reason))


@app.command()
def release(
    session: str = typer.Option(..., help="Session ID"),
    reason: Optional[str] = typer.Option(None, help="Reason for the release"),
):
    """Release a session's legal hold."""
    _run(lambda db: SessionService(db).set_legal_hold(session, False, reason))


if __name__ == "__main__":
    app()
