"""Entry point for ``python -m conversation_audit``."""

from .cli import app

app(prog_name="conversation-audit")
