"""
UI Context Resolver - Links a render request to an earlier tool result.

A render tool returns {"ui_action": ..., "data_source": <tool name>}. The
resolver looks the named tool up among results captured earlier in the same
invocation and builds a UIContext from it. A bad reference never fails the
turn: the previous context is kept and a warning logged.
"""

import logging
from typing import Any, Dict, Optional

from .models import UIContext

logger = logging.getLogger(__name__)


class UIContextResolver:
    """Tracks tool results for one agent invocation and resolves render requests.

    Create one resolver per run()/run_stream() call.
    """

    def __init__(self):
        self.results: Dict[str, Dict[str, Any]] = {}
        self.context: Optional[UIContext] = None

    def track(self, tool_name: str, result: Any) -> None:
        """Record a result as a candidate data source.

        Only successful dict results count; scalars and error dicts are ignored.
        A later call to the same tool replaces the earlier result.
        """
        if not isinstance(result, dict):
            return
        if result.get("error") or result.get("success") is False:
            return
        self.results[tool_name] = dict(result)

    def process(self, tool_name: str, result: Any) -> Optional[UIContext]:
        """Track a result, then resolve it; updates and returns the current context."""
        self.track(tool_name, result)
        self.context = resolve(result, self.results, tool_name, self.context)
        return self.context


def resolve(
    tool_result: Any,
    prior_results: Dict[str, Dict[str, Any]],
    tool_name: str,
    existing: Optional[UIContext],
) -> Optional[UIContext]:
    """Resolve a render request carried by tool_result.

    Args:
        tool_result: Result of the tool that just ran
        prior_results: Successful dict results of this invocation, by tool name
        tool_name: Name of the tool that just ran
        existing: Context resolved earlier in the turn, if any

    Returns:
        A new UIContext (most recent request wins) or existing unchanged
    """
    if not isinstance(tool_result, dict) or not tool_result.get("ui_action"):
        return existing

    action = tool_result["ui_action"]
    data_source = tool_result.get("data_source")

    if not data_source:
        logger.warning(f"UI action '{action}' from {tool_name} has no data_source, keeping previous context")
        return existing
    if data_source == tool_name:
        logger.warning(f"UI action '{action}' references its own tool '{tool_name}', keeping previous context")
        return existing

    data = prior_results.get(data_source)
    if data is None:
        logger.warning(f"No UI data available for action '{action}' (data_source={data_source})")
        return existing

    logger.info(f"UI context created: action={action}, tool={data_source}")
    return UIContext(action=action, data=data, source_tool=data_source)
