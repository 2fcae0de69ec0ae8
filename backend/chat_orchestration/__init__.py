"""
ShopTalk Chat Orchestration - Conversational agent runtime

Components:
- ToolCallingAgent: Bounded tool-calling loop (blocking run, streaming run_stream)
- StreamAccumulator: Reassembles streamed deltas into one assistant message
- ToolRegistry: Tool name -> handler + UI descriptor
- UIContextResolver: Links render_ui requests to earlier tool results
- MessageClassifier: Picks the domain agent for a turn
- AgentRouter: Classify -> agent_selected chunk -> delegate to domain agent

Streaming flow:
    AgentRouter.route_stream
        -> MessageClassifier.classify
        -> DomainAgent.run_stream
            -> ToolCallingAgent loop (provider stream -> StreamAccumulator,
               tool handlers -> UIContextResolver)
        -> chunks to the caller's on_chunk
"""

from .models import AgentConfig, ChatMessage, ToolCallRequest, ToolDefinition, TurnContext, UIContext
from .tool_registry import RegisteredTool, ToolRegistry
from .stream_accumulator import StreamAccumulator
from .ui_context import UIContextResolver
from .agent import GENERIC_ERROR_MESSAGE, MAX_ITERATIONS_MESSAGE, ToolCallingAgent
from .classifier import AgentType, MessageClassifier, parse_classification
from .router import AgentRouter, get_router, reset_router

__all__ = [
    "AgentConfig",
    "ChatMessage",
    "ToolCallRequest",
    "ToolDefinition",
    "TurnContext",
    "UIContext",
    "RegisteredTool",
    "ToolRegistry",
    "StreamAccumulator",
    "UIContextResolver",
    "ToolCallingAgent",
    "MAX_ITERATIONS_MESSAGE",
    "GENERIC_ERROR_MESSAGE",
    "AgentType",
    "MessageClassifier",
    "parse_classification",
    "AgentRouter",
    "get_router",
    "reset_router",
]
