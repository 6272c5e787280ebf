"""Tests for chat input validation and rate limiting."""

from datetime import datetime, timedelta

import pytest

from ecoagent.guardrails import RateLimiter, validate_chat_input
from ecoagent.guardrails.input_validator import MAX_MESSAGE_LENGTH, latest_user_text


class TestInputValidation:
    """Test chat input validation."""

    @pytest.mark.parametrize("text", [None, "", "   \n"])
    def test_empty(self, text):
        assert validate_chat_input(text) == "Message cannot be empty."

    def test_too_long(self):
        reason = validate_chat_input("a" * (MAX_MESSAGE_LENGTH + 1))

        assert reason == "Message too long (max 5000 characters)."

    def test_limit_is_inclusive(self):
        assert validate_chat_input("a" * MAX_MESSAGE_LENGTH) is None

    @pytest.mark.parametrize(
        "text",
        [
            "<script>alert(1)</script>",
            "click javascript:void(0)",
            "<img onerror=x>",
            "please eval(this)",
        ],
    )
    def test_suspicious_content(self, text):
        assert validate_chat_input(text) == "Message contains suspicious content. Please rephrase."

    def test_valid_message(self):
        assert validate_chat_input("I need a deep clean for a 3 bedroom house") is None

    def test_latest_user_text(self):
        """Test that only the newest user turn is validated."""
        items = [
            {"role": "user", "content": "first"},
            {"role": "assistant", "content": "reply"},
            {"role": "user", "content": "second"},
        ]

        assert latest_user_text(items) == "second"
        assert latest_user_text("plain text") == "plain text"
        assert latest_user_text([]) == ""


class TestRateLimiter:
    """Test the sliding-window rate limiter."""

    @pytest.fixture
    def limiter(self):
        rate_limiter = RateLimiter(":memory:", limit=3, window_seconds=60)
        yield rate_limiter
        rate_limiter.close()

    def test_blocks_after_limit(self, limiter):
        now = datetime(2026, 1, 1, 12, 0, 0)

        results = [limiter.allow("token-a", now) for _ in range(4)]

        assert results == [True, True, True, False]
        assert limiter.get_request_count("token-a", now) == 3

    def test_window_slides(self, limiter):
        start = datetime(2026, 1, 1, 12, 0, 0)
        for _ in range(3):
            limiter.allow("token-a", start)

        assert not limiter.allow("token-a", start + timedelta(seconds=30))
        assert limiter.allow("token-a", start + timedelta(seconds=61))

    def test_callers_are_separate(self, limiter):
        now = datetime(2026, 1, 1, 12, 0, 0)
        for _ in range(3):
            limiter.allow("token-a", now)

        assert limiter.allow("token-b", now)

    def test_token_not_stored(self, limiter):
        """Test that only a digest of the caller token is persisted."""
        limiter.allow("secret-token")

        rows = limiter._conn.execute("SELECT caller FROM rate_limits").fetchall()

        assert rows and all("secret-token" not in row[0] for row in rows)

    def test_cleanup_old_records(self, limiter):
        start = datetime(2026, 1, 1, 12, 0, 0)
        limiter.allow("token-a", start)
        limiter.allow("token-b", start + timedelta(seconds=50))

        deleted = limiter.cleanup_old_records(start + timedelta(seconds=90))

        assert deleted == 1
        assert limiter.get_request_count("token-b", start + timedelta(seconds=90)) == 1

    def test_allow_prunes_expired_records(self, limiter):
        """Test that the request path keeps the table bounded."""
        start = datetime(2026, 1, 1, 12, 0, 0)
        for caller in ("token-a", "token-b", "token-c"):
            limiter.allow(caller, start)

        limiter.allow("token-a", start + timedelta(seconds=61))

        rows = limiter._conn.execute("SELECT COUNT(*) FROM rate_limits").fetchone()
        assert rows[0] == 1
