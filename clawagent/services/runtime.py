"""Composition of the agent and the gateway services from configuration."""

from clawagent.clients import create_provider, is_local_provider
from clawagent.clients.rate_limit import RateLimiter
from clawagent.services.agent import AgentLoop
from clawagent.services.config import ConfigManager
from clawagent.services.conversation import ConversationService
from clawagent.services.memory import FileMemory
from clawagent.services.skills import SkillStore
from clawagent.tools import build_tools_registry
from clawagent.utils.logging import get_logger

logger = get_logger(__name__)

_conversation_service: ConversationService | None = None


async def build_agent(config_manager: ConfigManager) -> AgentLoop:
    """Build an agent loop from a loaded configuration.

    Args:
        config_manager: Manager whose configuration has been loaded

    Returns:
        Agent wired to file memory, the default provider and all tools

    Raises:
        ValueError: If the default provider is not configured or unsupported
    """
    config = config_manager.config
    provider_name = config.default_provider
    provider_config = config_manager.get_provider(provider_name)
    if provider_config is None:
        raise ValueError(f"Provider '{provider_name}' is not configured. Run scripts/onboard.py to set it up.")

    rate_limiter = None
    if config.rate_limit is not None:
        rate_limiter = RateLimiter(
            requests_per_minute=config.rate_limit.requests_per_minute,
            tokens_per_minute=config.rate_limit.tokens_per_minute,
        )

    provider = create_provider(
        provider_name,
        api_key=provider_config.api_key,
        api_base=provider_config.api_base or None,
        default_model=provider_config.default_model,
        is_local=provider_config.is_local or is_local_provider(provider_name),
        rate_limiter=rate_limiter,
    )

    data_dir = config.data_dir or str(config_manager.data_dir)
    memory = FileMemory(data_dir)
    skill_store = SkillStore(memory.data_dir / "skills")
    tools = await build_tools_registry(config.agents, provider, skill_store)

    model = config.agents.model or provider.default_model
    logger.info(f"Agent ready with provider {provider_name}, model {model}, data dir {data_dir}")
    return AgentLoop(provider, memory, tools, config.agents)


async def get_conversation_service() -> ConversationService:
    """Get the process-wide conversation service, building it on first use."""
    global _conversation_service
    if _conversation_service is None:
        config_manager = ConfigManager()
        config_manager.load()
        agent = await build_agent(config_manager)
        _conversation_service = ConversationService(agent)
    return _conversation_service


async def shutdown_conversation_service() -> None:
    """Close the process-wide conversation service if it was built."""
    global _conversation_service
    if _conversation_service is not None:
        await _conversation_service.aclose()
        _conversation_service = None
