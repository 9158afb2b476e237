"""Chat completion client used to suggest remediations for cluster events."""

import os
from typing import Any, Optional

import structlog
from openai import OpenAI, OpenAIError

from infrastructure.configuration.integrations import OpenAISettings
from infrastructure.sinks.errors import CompletionError, ConfigError

logger = structlog.get_logger()

DEFAULT_MODEL = "gpt-3.5-turbo"
SYSTEM_PROMPT = (
    "You are a Kubernetes expert. Explain the cluster event you are given "
    "and suggest a concrete course of action to resolve it."
)


class CompletionClient:
    """Answers free-form prompts with the OpenAI chat completions API.

    Args:
        api_key: OpenAI API key
        model: Chat completion model
        timeout: Request timeout in seconds
        client: Optional pre-built OpenAI client (testing)

    Example:
        completions = CompletionClient.from_settings(settings.openai)
        answer = completions.complete("Back-off restarting failed container")
    """

    def __init__(
        self,
        api_key: Optional[str],
        model: str = DEFAULT_MODEL,
        timeout: float = 60.0,
        client: Optional[Any] = None,
    ):
        if not api_key and client is None:
            raise ConfigError(
                "OPENAI_API_KEY is not set", error_code="MISSING_OPENAI_API_KEY"
            )
        self.model = model
        self._client = client or OpenAI(api_key=api_key, timeout=timeout)

    @classmethod
    def from_settings(cls, openai_settings: OpenAISettings) -> "CompletionClient":
        return cls(
            api_key=openai_settings.OPENAI_API_KEY,
            model=openai_settings.OPENAI_MODEL,
            timeout=openai_settings.OPENAI_TIMEOUT_SECONDS,
        )

    @classmethod
    def from_environment(cls) -> "CompletionClient":
        """Build from the OPENAI_API_KEY / OPENAI_MODEL environment variables."""
        return cls(
            api_key=os.environ.get("OPENAI_API_KEY"),
            model=os.environ.get("OPENAI_MODEL") or DEFAULT_MODEL,
        )

    def complete(self, prompt: str) -> str:
        """Ask the model about prompt.

        Raises:
            CompletionError: If the API call failed or returned no answer
        """
        try:
            response = self._client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": prompt},
                ],
            )
        except OpenAIError as e:
            logger.error("completion_request_failed", model=self.model, error=str(e))
            raise CompletionError(
                f"completion request failed: {e}", error_code="COMPLETION_FAILED"
            ) from e

        if not response.choices:
            raise CompletionError("completion returned no choices", error_code="EMPTY_COMPLETION")

        content = response.choices[0].message.content or ""
        logger.info("completion_received", model=self.model, length=len(content))
        return content
