"""LLM provider clients."""

from clawagent.clients.base import LLMProvider, ProviderError
from clawagent.clients.factory import create_provider, get_supported_providers, is_local_provider

__all__ = ["LLMProvider", "ProviderError", "create_provider", "get_supported_providers", "is_local_provider"]
