"""
Content fingerprinting.

A fingerprint is an HMAC-SHA256 of the message body keyed by host identity
and session id. Recomputing it at export time from the stored content and
comparing with the stored value detects out-of-band edits to the content
column. It is an integrity check, not encryption.
"""

import hashlib
import hmac
import socket
from typing import Optional

from ..config import get_settings


def host_identity() -> str:
    """Return the host identity mixed into fingerprint keys."""
    return get_settings().host_identity or socket.gethostname()


def fingerprint_key(session_id: str, host: Optional[str] = None) -> bytes:
    namespace = get_settings().fingerprint_namespace
    return f"{namespace}:{host or host_identity()}:{session_id}".encode("utf-8")


def fingerprint(content: str, session_id: str, host: Optional[str] = None) -> str:
    """Compute the hex fingerprint of ``content`` within ``session_id``.

    Deterministic for a given (host, session, content) triple.
    """
    return hmac.new(
        fingerprint_key(session_id, host),
        content.encode("utf-8"),
        hashlib.sha256,
    ).hexdigest()


def verify_fingerprint(
    content: str, session_id: str, expected: str, host: Optional[str] = None
) -> bool:
    """Check stored content against its stored fingerprint."""
    return hmac.compare_digest(fingerprint(content, session_id, host), expected)
