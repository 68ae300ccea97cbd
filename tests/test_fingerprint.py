"""
Tests for content fingerprinting.
"""

from conversation_audit.compliance.fingerprint import (
    fingerprint,
    fingerprint_key,
    verify_fingerprint,
)


class TestFingerprint:

    def test_deterministic(self):
        assert fingerprint("hello", "s-1", host="h") == fingerprint("hello", "s-1", host="h")

    def test_hex_sha256(self):
        value = fingerprint("hello", "s-1", host="h")

        assert len(value) == 64
        int(value, 16)

    def test_varies_by_content_session_and_host(self):
        base = fingerprint("hello", "s-1", host="h")

        assert fingerprint("hello!", "s-1", host="h") != base
        assert fingerprint("hello", "s-2", host="h") != base
        assert fingerprint("hello", "s-1", host="other") != base

    def test_key_includes_namespace_host_and_session(self):
        assert fingerprint_key("s-1", host="h") == b"conversation-audit:h:s-1"

    def test_empty_content(self):
        assert verify_fingerprint("", "s-1", fingerprint("", "s-1"))


class TestVerifyFingerprint:

    def test_matches_original(self):
        stored = fingerprint("original", "s-1")

        assert verify_fingerprint("original", "s-1", stored) is True

    def test_detects_edit(self):
        stored = fingerprint("original", "s-1")

        assert verify_fingerprint("edited", "s-1", stored) is False

    def test_detects_move_between_sessions(self):
        stored = fingerprint("original", "s-1")

        assert verify_fingerprint("original", "s-2", stored) is False
