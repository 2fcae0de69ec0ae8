"""
ShopTalk errors: codes, exceptions, tool result builders and decorators.

Example:
    from errors import handle_tool_errors, ValidationError

    @handle_tool_errors("view_order")
    def handle_view_order(self, arguments, context):
        order_number = arguments.get("order_number")
        if not order_number:
            raise ValidationError("Order number is required", parameter="order_number")
        return self.orders.find(order_number)
"""

from .codes import ErrorCode
from .exceptions import (
    AgentError,
    InsufficientInventoryError,
    LLMError,
    MaxIterationsExceeded,
    NotFoundError,
    ShopTalkError,
    ValidationError,
)
from .handlers import handle_async_tool_errors, handle_tool_errors, log_error
from .response import error_response, format_error_for_llm, success_response

__all__ = [
    "ErrorCode",
    "ShopTalkError",
    "ValidationError",
    "NotFoundError",
    "InsufficientInventoryError",
    "LLMError",
    "AgentError",
    "MaxIterationsExceeded",
    "error_response",
    "success_response",
    "format_error_for_llm",
    "handle_tool_errors",
    "handle_async_tool_errors",
    "log_error",
]
