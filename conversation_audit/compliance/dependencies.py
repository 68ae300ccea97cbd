"""
Collaborators injected into the compliance services.

The services never detect environments or scan for secrets themselves;
callers pass a ``ComplianceDependencies`` with two plain callables. The
defaults below serve standalone callers such as the command line.
"""

import os
import re
from dataclasses import dataclass
from typing import Callable, List, Optional, Pattern, Tuple

# Simple flags set explicitly in the client's MCP configuration
_FLAG_ENVIRONMENTS: List[Tuple[str, str]] = [
    ("OPENCODE", "opencode"),
    ("COPILOT_CLI", "copilot-cli"),
    ("CURSOR", "cursor"),
    ("CODEX", "codex"),
]

# Checked in order; the first environment with any variable set wins
_ENVIRONMENT_PATTERNS: List[Tuple[str, List[str]]] = [
    (
        "claude-code",
        ["CLAUDE_CODE", "CLAUDE_CODE_ENTRYPOINT", "CLAUDE_CODE_TERMINAL_ID"],
    ),
    (
        "opencode",
        ["OPENCODE_EXPERIMENTAL", "OPENCODE_DEV_DEBUG", "OPENCODE_SERVER_USERNAME"],
    ),
    ("copilot-cli", ["COPILOT_TRACE_ID", "COPILOT_SESSION", "COPILOT_CLI_VERSION"]),
    ("cursor", ["CURSOR_TRACE_ID", "CURSOR_SESSION", "CURSOR_PID", "CURSOR_CWD"]),
    ("codex", ["CODEX_HOME", "CODEX_SESSION", "CODEX_SANDBOX"]),
    (
        "vscode",
        ["VSCODE_PID", "VSCODE_CWD", "VSCODE_IPC_HOOK", "VSCODE_GIT_IPC_HANDLE"],
    ),
]

SECRET_PATTERNS: List[Tuple[str, Pattern[str]]] = [
    ("api_key", re.compile(r"(?:api[_-]?key|apikey)\s*[:=]\s*\S+", re.IGNORECASE)),
    (
        "credential_assignment",
        re.compile(r"(?:secret|token|password|passwd|pwd)\s*[:=]\s*\S+", re.IGNORECASE),
    ),
    ("auth_header", re.compile(r"(?:bearer|authorization)\s+\S+", re.IGNORECASE)),
    (
        "aws_key",
        re.compile(
            r"(?:aws_access_key_id|aws_secret_access_key)\s*[:=]\s*\S+", re.IGNORECASE
        ),
    ),
    ("aws_access_key_id", re.compile(r"\bAKIA[0-9A-Z]{16}\b")),
    ("github_token", re.compile(r"gh[pousr]_[A-Za-z0-9_]{36,}")),
    ("openai_key", re.compile(r"sk-[A-Za-z0-9]{20,}")),
    ("private_key", re.compile(r"-----BEGIN (?:RSA |EC |OPENSSH )?PRIVATE KEY-----")),
]


def detect_environment() -> str:
    """Resolve the calling client from its environment variables."""
    for flag, name in _FLAG_ENVIRONMENTS:
        if os.environ.get(flag):
            return name

    for name, variables in _ENVIRONMENT_PATTERNS:
        if any(os.environ.get(var) for var in variables):
            return name

    if os.environ.get("TERM_PROGRAM") == "vscode":
        return "vscode"
    return "unknown"


def detect_secrets(content: Optional[str]) -> List[str]:
    """Return the names of the secret patterns found in ``content``."""
    if not content:
        return []
    return [name for name, pattern in SECRET_PATTERNS if pattern.search(content)]


def contains_secrets(content: Optional[str]) -> bool:
    """Advisory check: does ``content`` look like it holds a credential?"""
    return bool(detect_secrets(content))


@dataclass(frozen=True)
class ComplianceDependencies:
    """The two capabilities the services call but never implement."""

    detect_environment: Callable[[], str]
    contains_secrets: Callable[[str], bool]


def default_dependencies(environment: Optional[str] = None) -> ComplianceDependencies:
    """Build dependencies from the bundled defaults.

    Args:
        environment: Fixed environment label; detected from the process
            environment when omitted.
    """
    if environment is None:
        return ComplianceDependencies(detect_environment, contains_secrets)
    return ComplianceDependencies(lambda: environment, contains_secrets)
