"""Unit tests for infrastructure.logging.formatters module.

Tests cover:
- add_app_info processor
- mask_sensitive_data processor
- truncate_large_values processor
"""

import pytest

from infrastructure.logging.formatters import (
    SENSITIVE_PATTERNS,
    add_app_info,
    mask_sensitive_data,
    truncate_large_values,
)


@pytest.mark.unit
class TestAddAppInfo:
    """Test suite for add_app_info processor factory."""

    def test_adds_name_and_version(self, processor_args):
        processor = add_app_info("event-sink-relay", "abc123")

        result = processor(*processor_args, {"event": "sink_cached"})

        assert result["app_name"] == "event-sink-relay"
        assert result["app_version"] == "abc123"
        assert result["event"] == "sink_cached"

    def test_unknown_version_by_default(self, processor_args):
        result = add_app_info("event-sink-relay")(*processor_args, {"event": "x"})

        assert result["app_version"] == "unknown"


@pytest.mark.unit
class TestMaskSensitiveData:
    """Test suite for mask_sensitive_data processor factory."""

    def test_masks_tokens_and_webhook_urls(self, processor_args):
        processor = mask_sensitive_data()
        event_dict = {
            "event": "sink_built",
            "bot_token": "xoxb-secret",
            "app_level_token": "xapp-secret",
            "webhook_url": "https://chat.example.com/hooks/secret",
            "identity": "prod/default/ops",
        }

        result = processor(*processor_args, event_dict)

        assert result["bot_token"] == "***REDACTED***"
        assert result["app_level_token"] == "***REDACTED***"
        assert result["webhook_url"] == "***REDACTED***"
        assert result["identity"] == "prod/default/ops"

    def test_masks_nested_config_snapshot(self, processor_args):
        """Sensitive keys one level down are masked too."""
        processor = mask_sensitive_data()

        result = processor(
            *processor_args,
            {"config": {"bot_token": "xoxb-secret", "channel_id": "C1"}},
        )

        assert result["config"] == {"bot_token": "***REDACTED***", "channel_id": "C1"}

    def test_case_insensitive(self, processor_args):
        result = mask_sensitive_data()(*processor_args, {"OPENAI_API_KEY": "sk-1"})

        assert result["OPENAI_API_KEY"] == "***REDACTED***"

    def test_none_values_are_kept(self, processor_args):
        result = mask_sensitive_data()(*processor_args, {"token": None})

        assert result["token"] is None

    def test_custom_mask_and_patterns(self, processor_args):
        processor = mask_sensitive_data(
            mask_value="[HIDDEN]", additional_patterns=frozenset({"envelope"})
        )

        result = processor(*processor_args, {"envelope_id": "env-1", "password": "p"})

        assert result["envelope_id"] == "[HIDDEN]"
        assert result["password"] == "[HIDDEN]"

    def test_patterns_cover_sink_credentials(self):
        assert "token" in SENSITIVE_PATTERNS
        assert "webhook_url" in SENSITIVE_PATTERNS
        assert "api_key" in SENSITIVE_PATTERNS


@pytest.mark.unit
class TestTruncateLargeValues:
    """Test suite for truncate_large_values processor factory."""

    def test_truncates_long_strings(self, processor_args):
        processor = truncate_large_values(max_length=10)

        result = processor(*processor_args, {"logs": "x" * 25})

        assert result["logs"].startswith("x" * 10)
        assert "25 chars total" in result["logs"]

    def test_short_and_non_string_values_untouched(self, processor_args):
        processor = truncate_large_values(max_length=10)

        result = processor(*processor_args, {"note": "short", "count": 10 ** 20})

        assert result == {"note": "short", "count": 10 ** 20}
