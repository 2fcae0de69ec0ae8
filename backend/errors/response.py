"""
Tool result builders.

Error results share one shape so the model (and the client, through
tool_result chunks) can branch on error.code:

    {"success": False,
     "error": {"code", "message", "details", "tool", "recoverable", "context"}}
"""

from typing import Any, Dict, Optional, Union

from .codes import ErrorCode
from .exceptions import ShopTalkError


def error_response(
    error: Union[ShopTalkError, Exception],
    tool: Optional[str] = None,
    include_context: bool = True,
) -> Dict[str, Any]:
    """Build an error result from any exception.

    Args:
        error: The exception to convert
        tool: Tool that failed
        include_context: Set False to keep debugging key-values out of the result

    Example:
        >>> error_response(NotFoundError("Product not found", resource_type="product"), tool="add_item_to_basket")
        {"success": False, "error": {"code": "NOT_FOUND_PRODUCT", ..., "tool": "add_item_to_basket", "recoverable": True, ...}}
    """
    if isinstance(error, ShopTalkError):
        body = error.to_dict()
        if not include_context:
            body["context"] = None
    else:
        body = {
            "code": ErrorCode.INTERNAL_UNEXPECTED.value,
            "message": str(error),
            "details": None,
            "recoverable": False,
            "context": None,
        }
    body["tool"] = tool
    return {"success": False, "error": body}


def success_response(data: Optional[Dict[str, Any]] = None, **kwargs: Any) -> Dict[str, Any]:
    """{"success": True} merged with data and any extra keys."""
    response: Dict[str, Any] = {"success": True}
    response.update(data or {})
    response.update(kwargs)
    return response


def format_error_for_llm(error: Union[ShopTalkError, Exception]) -> str:
    """One-line error text for a tool message the model will read."""
    if not isinstance(error, ShopTalkError):
        return str(error) or error.__class__.__name__

    parts = [error.message]
    if error.details:
        parts.append(f"Details: {error.details}")
    if error.recoverable:
        parts.append("This error may be recoverable by the user.")
    return " ".join(parts)
