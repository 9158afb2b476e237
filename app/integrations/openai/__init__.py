"""OpenAI integration module."""

from .client import CompletionClient

__all__ = ["CompletionClient"]
