"""
Base Domain Agent - A ToolCallingAgent pre-bound to one prompt and tool set.

Subclasses provide:
1. name / agent_type
2. system_prompt()
3. tool_definitions()
4. register_tools() binding a handler to every definition
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from config import runtime_config

from ..agent import ToolCallingAgent
from ..chunks import ChunkCallback
from ..classifier import AgentType
from ..models import AgentConfig, ToolDefinition, TurnContext


class DomainAgent(ABC):
    """
    Abstract base class for domain agents.

    One instance per process; per-turn state goes in the TurnContext.
    """

    name: str = "base"
    agent_type: AgentType = AgentType.CHITCHAT

    def __init__(self, client=None, model: Optional[str] = None, max_iterations: Optional[int] = None):
        config = AgentConfig(
            system_prompt=self.system_prompt(),
            tools=tuple(self.tool_definitions()),
            model=model or runtime_config.model_agent,
            name=self.name,
            max_iterations=max_iterations if max_iterations is not None else runtime_config.max_iterations,
        )
        self.agent = ToolCallingAgent(config, client=client)
        self.register_tools()

    @property
    def config(self) -> AgentConfig:
        return self.agent.config

    @abstractmethod
    def system_prompt(self) -> str:
        pass

    @abstractmethod
    def tool_definitions(self) -> List[ToolDefinition]:
        pass

    @abstractmethod
    def register_tools(self) -> None:
        """Bind handlers via self.agent.register_tool()."""
        pass

    async def run(self, message: str, context: Optional[TurnContext] = None) -> Dict[str, Any]:
        return await self.agent.run(message, context)

    async def run_stream(
        self,
        message: str,
        context: Optional[TurnContext] = None,
        on_chunk: ChunkCallback = None,
    ) -> None:
        await self.agent.run_stream(message, context, on_chunk)
