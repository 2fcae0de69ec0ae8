"""
Tool Registry - Name-keyed tool handlers for one agent instance.

Every handler has the same signature:

    handler(arguments: dict, context: TurnContext) -> dict

and may be a plain function or a coroutine function. The registry holds no
per-conversation state; each domain agent owns one registry.
"""

import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Optional, Union

from .models import TurnContext

logger = logging.getLogger(__name__)

ToolHandler = Callable[[Dict[str, Any], TurnContext], Union[Dict[str, Any], Awaitable[Dict[str, Any]]]]


@dataclass(frozen=True)
class RegisteredTool:
    """A handler bound to a tool name."""

    name: str
    handler: ToolHandler
    ui_descriptor: Optional[str] = None  # Human-readable progress text, e.g. "Searching products"


class ToolRegistry:
    """
    Registry of tool handlers.

    Usage:
        registry = ToolRegistry()
        registry.register("search_products", handle_search, ui_descriptor="Searching products")
        tool = registry.get("search_products")
    """

    def __init__(self):
        self._tools: Dict[str, RegisteredTool] = {}

    def register(self, name: str, handler: ToolHandler, ui_descriptor: Optional[str] = None) -> None:
        """Register a handler. Re-registering a name replaces the old handler."""
        if not callable(handler):
            raise TypeError(f"Handler for tool {name!r} is not callable")
        if name in self._tools:
            logger.warning(f"Replacing handler for tool: {name}")
        self._tools[name] = RegisteredTool(name=name, handler=handler, ui_descriptor=ui_descriptor)
        logger.debug(f"Registered tool: {name}")

    def get(self, name: str) -> Optional[RegisteredTool]:
        return self._tools.get(name)

    def ui_descriptor(self, name: str) -> Optional[str]:
        tool = self._tools.get(name)
        return tool.ui_descriptor if tool else None

    def names(self) -> List[str]:
        return list(self._tools)

    def __contains__(self, name: str) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)
