"""Unit tests for infrastructure.logging.context module.

Tests cover:
- bind_event_context() context manager
- get_correlation_id()
- clear_event_context()
- Context cleanup
"""

import uuid

import pytest
import structlog

from infrastructure.logging.context import (
    bind_event_context,
    clear_event_context,
    get_correlation_id,
)


@pytest.mark.unit
class TestBindEventContext:
    """Test suite for bind_event_context context manager."""

    def test_auto_generates_correlation_id(self):
        """Correlation ID is auto-generated if not provided."""
        with bind_event_context(event_uid="uid-1"):
            correlation_id = get_correlation_id()
            assert correlation_id is not None
            uuid.UUID(correlation_id)

    def test_uses_provided_correlation_id(self):
        with bind_event_context(correlation_id="corr-123"):
            assert get_correlation_id() == "corr-123"

    def test_binds_event_fields(self):
        """Event uid, namespace and reason are bound when given."""
        with bind_event_context(event_uid="uid-1", namespace="default", reason="BackOff"):
            ctx = structlog.contextvars.get_contextvars()
            assert ctx["event_uid"] == "uid-1"
            assert ctx["namespace"] == "default"
            assert ctx["reason"] == "BackOff"

    def test_none_values_are_not_bound(self):
        with bind_event_context(event_uid=None, namespace=None):
            ctx = structlog.contextvars.get_contextvars()
            assert "event_uid" not in ctx
            assert "namespace" not in ctx

    def test_binds_extra_context(self):
        with bind_event_context(identity="prod/default/ops", envelope_id="env-1"):
            ctx = structlog.contextvars.get_contextvars()
            assert ctx["identity"] == "prod/default/ops"
            assert ctx["envelope_id"] == "env-1"

    def test_context_is_unbound_on_exit(self):
        with bind_event_context(event_uid="uid-1"):
            pass

        assert structlog.contextvars.get_contextvars() == {}
        assert get_correlation_id() is None

    def test_context_is_unbound_on_exception(self):
        with pytest.raises(RuntimeError):
            with bind_event_context(event_uid="uid-1"):
                raise RuntimeError("dispatch failed")

        assert "event_uid" not in structlog.contextvars.get_contextvars()


@pytest.mark.unit
class TestClearEventContext:
    """Test suite for clear_event_context."""

    def test_clears_everything(self):
        structlog.contextvars.bind_contextvars(envelope_id="env-1", identity="x")

        clear_event_context()

        assert structlog.contextvars.get_contextvars() == {}
