"""Provider factory: maps provider names to configured provider instances."""

from dataclasses import dataclass
from typing import Literal

from clawagent.clients.anthropic import AnthropicProvider
from clawagent.clients.base import LLMProvider
from clawagent.clients.openai import OpenAIProvider
from clawagent.clients.rate_limit import RateLimiter


@dataclass(frozen=True)
class ProviderSpec:
    """Static wiring for one provider name."""

    family: Literal["openai", "anthropic"]
    base_url: str
    default_model: str | None = None
    local: bool = False
    suggested_models: tuple[str, ...] = ()


PROVIDER_SPECS: dict[str, ProviderSpec] = {
    "openai": ProviderSpec(
        "openai",
        "https://api.openai.com/v1",
        default_model="gpt-4o-mini",
        suggested_models=("gpt-4o", "gpt-4o-mini", "gpt-4-turbo"),
    ),
    "openrouter": ProviderSpec(
        "openai",
        "https://openrouter.ai/api/v1",
        default_model="openai/gpt-4o",
        suggested_models=("anthropic/claude-3.5-sonnet", "openai/gpt-4o"),
    ),
    "deepseek": ProviderSpec(
        "openai",
        "https://api.deepseek.com/v1",
        default_model="deepseek-chat",
        suggested_models=("deepseek-chat", "deepseek-coder"),
    ),
    "zhipu": ProviderSpec(
        "openai",
        "https://open.bigmodel.cn/api/paas/v4",
        default_model="glm-4-flash",
        suggested_models=("glm-4-plus", "glm-4", "glm-4-flash"),
    ),
    "moonshot": ProviderSpec(
        "openai",
        "https://api.moonshot.cn/v1",
        default_model="moonshot-v1-8k",
        suggested_models=("moonshot-v1-8k", "moonshot-v1-32k"),
    ),
    "anthropic": ProviderSpec(
        "anthropic",
        "https://api.anthropic.com",
        default_model="claude-3-5-sonnet-20241022",
        suggested_models=("claude-3-5-sonnet-20241022", "claude-3-opus-20240229", "claude-3-haiku-20240307"),
    ),
    "ollama": ProviderSpec(
        "openai",
        "http://localhost:11434/v1",
        default_model="llama3.2",
        local=True,
        suggested_models=("llama3.2", "llama3.1", "qwen2.5", "deepseek-r1"),
    ),
    "local": ProviderSpec("openai", "http://localhost:8080/v1", default_model="default", local=True),
    "custom": ProviderSpec("openai", ""),
}


def get_supported_providers() -> list[str]:
    """Return all provider names the factory accepts."""
    return list(PROVIDER_SPECS.keys())


def is_local_provider(provider_name: str) -> bool:
    """Whether a provider may be used without an API key."""
    return provider_name.lower() in ("ollama", "local", "custom")


def create_provider(
    provider_name: str,
    api_key: str = "",
    api_base: str | None = None,
    default_model: str | None = None,
    is_local: bool = False,
    rate_limiter: RateLimiter | None = None,
) -> LLMProvider:
    """Create a provider by name.

    Args:
        provider_name: Registered provider name (case-insensitive)
        api_key: Credential for the provider
        api_base: Base URL override
        default_model: Default model override
        is_local: Mark a ``custom`` provider as keyless
        rate_limiter: Optional shared client-side throttle

    Returns:
        Provider instance for the matching protocol family

    Raises:
        ValueError: If the provider name is unknown or a required key is missing
    """
    key = provider_name.lower()
    provider_spec = PROVIDER_SPECS.get(key)
    if provider_spec is None:
        raise ValueError(f"Unknown provider: {provider_name}. Supported: {', '.join(get_supported_providers())}")

    base_url = api_base or provider_spec.base_url
    model = default_model or provider_spec.default_model

    if provider_spec.family == "anthropic":
        return AnthropicProvider(api_key, api_base=base_url, default_model=model, rate_limiter=rate_limiter)

    if key == "ollama":
        # Ollama ignores credentials
        api_key = ""
    if not base_url:
        raise ValueError(f"Provider '{provider_name}' requires an api_base")

    provider = OpenAIProvider(
        api_key,
        api_base=base_url,
        default_model=model,
        is_local=provider_spec.local or is_local,
        rate_limiter=rate_limiter,
    )
    provider.name = key
    return provider
