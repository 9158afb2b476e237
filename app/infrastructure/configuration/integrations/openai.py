"""OpenAI completion service settings."""

from pydantic import Field

from infrastructure.configuration.base import IntegrationSettings


class OpenAISettings(IntegrationSettings):
    """OpenAI API configuration used by the assistant follow-ups.

    Environment Variables:
        OPENAI_API_KEY: API key (required for the completion service)
        OPENAI_MODEL: Chat completion model name
        OPENAI_TIMEOUT_SECONDS: Request timeout for completion calls

    Example:
        ```python
        from infrastructure.configuration import settings

        if settings.openai.OPENAI_API_KEY:
            model = settings.openai.OPENAI_MODEL
        ```
    """

    OPENAI_API_KEY: str | None = Field(default=None, alias="OPENAI_API_KEY")
    OPENAI_MODEL: str = Field(default="gpt-3.5-turbo", alias="OPENAI_MODEL")
    OPENAI_TIMEOUT_SECONDS: float = Field(default=60.0, alias="OPENAI_TIMEOUT_SECONDS")
