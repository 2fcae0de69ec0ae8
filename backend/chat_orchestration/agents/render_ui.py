"""
render_ui - Shared tool that tells the client which view to show.

The model calls it last, naming a view (action) and the tool whose result
fills that view (data_source). The agent loop resolves data_source against
the results captured earlier in the turn.
"""

import logging
from typing import Any, Dict, Iterable

from errors import success_response

from ..models import ToolDefinition, TurnContext
from ..tool_registry import ToolHandler

logger = logging.getLogger(__name__)

RENDER_UI_TOOL = "render_ui"
INVALID_ACTION_ERROR = "Invalid UI action"


def render_ui_definition(actions: Iterable[str], data_sources: Iterable[str], note: str = "") -> ToolDefinition:
    """Build the render_ui schema for one agent's views and data tools."""
    description = (
        "Render a UI component to display data to the user. This determines what visual interface the user sees."
    )
    if note:
        description = f"{description} {note}"

    return ToolDefinition(
        name=RENDER_UI_TOOL,
        description=description,
        parameters={
            "action": {
                "type": "string",
                "description": "The UI component to render. Choose based on the data you want to display.",
                "enum": list(actions),
            },
            "data_source": {
                "type": "string",
                "description": (
                    "The exact name of the tool whose result data should be displayed in the UI. "
                    "Must match a previously called tool name."
                ),
                "enum": list(data_sources),
            },
        },
        required=("action", "data_source"),
    )


def make_render_ui_handler(valid_actions: Iterable[str]) -> ToolHandler:
    """Create a render_ui handler that only accepts the given actions."""
    allowed = frozenset(valid_actions)

    def handle_render_ui(arguments: Dict[str, Any], context: TurnContext) -> Dict[str, Any]:
        action = arguments.get("action")
        if action not in allowed:
            logger.warning(f"render_ui rejected action {action!r} (allowed: {sorted(allowed)})")
            return {"success": False, "error": INVALID_ACTION_ERROR}

        return success_response(ui_action=action, data_source=arguments.get("data_source"))

    return handle_render_ui
