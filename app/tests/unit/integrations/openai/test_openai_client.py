"""Unit tests for the OpenAI completion client."""

from unittest.mock import MagicMock

import openai
import pytest

from infrastructure.sinks.errors import CompletionError, ConfigError
from integrations.openai import CompletionClient


def _completion(content):
    choice = MagicMock()
    choice.message.content = content
    response = MagicMock()
    response.choices = [choice] if content is not None else []
    return response


@pytest.fixture
def mock_openai():
    client = MagicMock()
    client.chat.completions.create.return_value = _completion(
        "Check resource limits of the container."
    )
    return client


@pytest.mark.unit
class TestCompletionClient:
    """Tests for CompletionClient."""

    def test_complete_returns_first_choice(self, mock_openai):
        completions = CompletionClient(api_key="sk-test", model="gpt-4o-mini", client=mock_openai)

        answer = completions.complete("Back-off restarting failed container")

        assert answer == "Check resource limits of the container."
        kwargs = mock_openai.chat.completions.create.call_args.kwargs
        assert kwargs["model"] == "gpt-4o-mini"
        assert kwargs["messages"][-1] == {
            "role": "user",
            "content": "Back-off restarting failed container",
        }

    def test_api_error_becomes_completion_error(self, mock_openai):
        mock_openai.chat.completions.create.side_effect = openai.OpenAIError(
            "Connection error."
        )
        completions = CompletionClient(api_key="sk-test", client=mock_openai)

        with pytest.raises(CompletionError) as exc_info:
            completions.complete("prompt")

        assert exc_info.value.error_code == "COMPLETION_FAILED"

    def test_empty_choices(self, mock_openai):
        mock_openai.chat.completions.create.return_value = _completion(None)
        completions = CompletionClient(api_key="sk-test", client=mock_openai)

        with pytest.raises(CompletionError) as exc_info:
            completions.complete("prompt")

        assert exc_info.value.error_code == "EMPTY_COMPLETION"

    def test_missing_api_key_raises_config_error(self):
        with pytest.raises(ConfigError) as exc_info:
            CompletionClient(api_key=None)

        assert exc_info.value.error_code == "MISSING_OPENAI_API_KEY"

    def test_from_settings(self):
        openai_settings = MagicMock()
        openai_settings.OPENAI_API_KEY = "sk-test"
        openai_settings.OPENAI_MODEL = "gpt-3.5-turbo"
        openai_settings.OPENAI_TIMEOUT_SECONDS = 30.0

        completions = CompletionClient.from_settings(openai_settings)

        assert completions.model == "gpt-3.5-turbo"

    def test_from_environment_without_key(self, monkeypatch):
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)

        with pytest.raises(ConfigError):
            CompletionClient.from_environment()

    def test_from_environment(self, monkeypatch):
        monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
        monkeypatch.setenv("OPENAI_MODEL", "gpt-4o-mini")

        assert CompletionClient.from_environment().model == "gpt-4o-mini"
