"""Completion clients for the worker and judge models."""

from powerprompts.clients.base import CompletionClient, count_tokens
from powerprompts.clients.openai_client import OpenAICompletionClient, classify_api_error

__all__ = ["CompletionClient", "OpenAICompletionClient", "classify_api_error", "count_tokens"]
