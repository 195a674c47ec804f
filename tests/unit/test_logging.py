"""
Unit tests for the structured logging helpers.

Tests cover:
- Application context stamping
- Per-request correlation id binding
"""

import structlog

from shared.logging import bind_request_context, make_app_context


class TestAppContext:
    """Test the application context processor."""

    def test_stamps_app_and_environment(self):
        processor = make_app_context("directory", "test")
        event = processor(None, "info", {"event": "x"})

        assert event["app"] == "directory"
        assert event["environment"] == "test"
        assert "component" not in event

    def test_component(self):
        processor = make_app_context("directory", "test", component="seed")
        assert processor(None, "info", {"event": "x"})["component"] == "seed"

    def test_does_not_override_explicit_values(self):
        processor = make_app_context("directory", "test")
        assert processor(None, "info", {"event": "x", "app": "other"})["app"] == "other"


class TestRequestContext:
    """Test correlation id binding."""

    def test_replaces_previous_request_context(self):
        structlog.contextvars.bind_contextvars(user_id="u1")
        bind_request_context("abc")

        try:
            assert structlog.contextvars.get_contextvars() == {"correlation_id": "abc"}
        finally:
            structlog.contextvars.clear_contextvars()
