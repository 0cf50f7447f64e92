"""Skill tool: runs a stored skill as a scoped LLM call."""

from pydantic import BaseModel, Field

from clawagent.clients.base import LLMProvider, ProviderError
from clawagent.models.llm import Message
from clawagent.models.skill import Skill
from clawagent.services.config import AgentConfig
from clawagent.tools.base import Tool
from clawagent.utils.logging import get_logger

logger = get_logger(__name__)


class SkillInput(BaseModel):
    """Input schema for skill tools."""

    input: str = Field("", description="Input passed to the skill")


class SkillTool(Tool):
    """Expose a skill to the model as a tool.

    Running the tool starts a fresh conversation seeded with the skill's
    SKILL.md content as the system prompt; no tools are offered to it.
    """

    input_model = SkillInput

    def __init__(self, skill: Skill, provider: LLMProvider, config: AgentConfig):
        self.skill = skill
        self.provider = provider
        self.config = config
        self.name = skill.tool_name
        self.description = skill.description or f"Skill: {skill.display_name or skill.name}"

    async def run(self, params: SkillInput) -> str:
        logger.info(f"Running skill {self.skill.name} as {self.name}")
        messages = [Message.system(self.skill.content), Message.user(params.input)]
        try:
            response = await self.provider.chat(
                messages,
                None,
                model=self.config.model,
                max_tokens=self.config.max_tokens,
                temperature=self.config.temperature,
            )
        except ProviderError as e:
            logger.error(f"Skill {self.skill.name} failed: {e}")
            return f"Error: skill '{self.skill.name}' failed: {e}"
        return response.content
