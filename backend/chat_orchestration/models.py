"""
ShopTalk Chat Models - Messages, tool definitions and per-turn state

Everything sent to the provider and appended to the conversation log is an
OpenAI-format dict. These dataclasses build and parse those dicts.
"""

import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

ROLE_SYSTEM = "system"
ROLE_USER = "user"
ROLE_ASSISTANT = "assistant"
ROLE_TOOL = "tool"


@dataclass
class ToolCallRequest:
    """One tool invocation requested by the model.

    arguments_json stays an opaque JSON string until dispatch parses it.
    """

    id: str
    function_name: str
    arguments_json: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "type": "function",
            "function": {"name": self.function_name, "arguments": self.arguments_json},
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any], index: int = 0) -> "ToolCallRequest":
        """Build from a provider tool call; a missing id becomes call_{index}."""
        fn = data.get("function") or {}
        arguments = fn.get("arguments")
        if isinstance(arguments, dict):
            arguments = json.dumps(arguments)
        return cls(
            id=data.get("id") or f"call_{index}",
            function_name=fn.get("name") or "",
            arguments_json=arguments or "",
        )


@dataclass
class ChatMessage:
    """A single role-tagged message.

    Attributes:
        role: system, user, assistant or tool
        content: Message text (may be empty)
        name: Optional author name (set on assistant replies of named agents)
        tool_calls: Tool invocations carried by an assistant reply
        tool_call_id: Call id answered by a tool message
    """

    role: str
    content: Optional[str] = ""
    name: Optional[str] = None
    tool_calls: List[ToolCallRequest] = field(default_factory=list)
    tool_call_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {"role": self.role, "content": self.content if self.content is not None else ""}
        if self.name:
            result["name"] = self.name
        if self.tool_calls:
            result["tool_calls"] = [tc.to_dict() for tc in self.tool_calls]
        if self.tool_call_id:
            result["tool_call_id"] = self.tool_call_id
        return result

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ChatMessage":
        return cls(
            role=data.get("role", ROLE_USER),
            content=data.get("content") or "",
            name=data.get("name"),
            tool_calls=[ToolCallRequest.from_dict(tc, i) for i, tc in enumerate(data.get("tool_calls") or [])],
            tool_call_id=data.get("tool_call_id"),
        )


@dataclass(frozen=True)
class ToolDefinition:
    """Schema of one tool as advertised to the model.

    parameters maps property name to its JSON-schema fragment; to_schema()
    wraps it in the object schema the provider expects.
    """

    name: str
    description: str
    parameters: Dict[str, Any] = field(default_factory=dict)
    required: Tuple[str, ...] = ()

    def to_schema(self) -> Dict[str, Any]:
        """Generate the OpenAI-compatible function tool schema."""
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": {
                    "type": "object",
                    "properties": self.parameters,
                    "required": list(self.required),
                },
            },
        }


@dataclass(frozen=True)
class AgentConfig:
    """Read-only configuration of one agent, shared by every conversation."""

    system_prompt: str
    tools: Tuple[ToolDefinition, ...] = ()
    model: str = ""
    name: str = ""
    max_iterations: int = 10

    def __post_init__(self):
        if self.max_iterations < 1:
            raise ValueError("max_iterations must be at least 1")
        names = [tool.name for tool in self.tools]
        if len(names) != len(set(names)):
            raise ValueError(f"Duplicate tool names in agent config: {names}")

    def tools_schema(self) -> Optional[List[Dict[str, Any]]]:
        """Tool schemas for the provider, or None when the agent has no tools."""
        if not self.tools:
            return None
        return [tool.to_schema() for tool in self.tools]


@dataclass(frozen=True)
class UIContext:
    """Which earlier tool result the client should render, and how."""

    action: str
    data: Any
    source_tool: str

    def to_dict(self) -> Dict[str, Any]:
        return {"action": self.action, "data": self.data, "source_tool": self.source_tool}


@dataclass
class TurnContext:
    """Per-turn state handed to every tool handler.

    messages is the caller's conversation log: the agent appends the user
    prompt, every assistant reply and every tool message to it in order.

    Attributes:
        session_id: Shopper session (baskets are keyed by it)
        conversation_id: Conversation being continued, if persisted
        messages: OpenAI-format message dicts
    """

    session_id: Optional[str] = None
    conversation_id: Optional[str] = None
    messages: List[Dict[str, Any]] = field(default_factory=list)
    _cancelled: bool = field(default=False, init=False, repr=False)

    def cancel(self) -> None:
        """Abort the turn: stop forwarding chunks and make no further provider calls."""
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled
