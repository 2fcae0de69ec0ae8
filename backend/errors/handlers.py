"""
Error handling decorators for tool handlers.

A decorated handler never raises: domain errors and unexpected exceptions
both come back as error_response() dicts, so the agent loop can hand them
to the model like any other tool result.
"""

import logging
from functools import wraps
from typing import Any, Callable, Dict, Optional, TypeVar

from .exceptions import ShopTalkError
from .response import error_response

F = TypeVar("F", bound=Callable[..., Any])


def _tool_logger(tool_name: str, logger: Optional[logging.Logger]) -> logging.Logger:
    return logger or logging.getLogger(f"shoptalk.tools.{tool_name}")


def _failure(tool_name: str, log: logging.Logger, error: Exception) -> Dict[str, Any]:
    if isinstance(error, ShopTalkError):
        # Expected outcome (bad quantity, out of stock...): no traceback
        log.warning(f"[{tool_name}] {error.code.value}: {error.message}")
    else:
        log.error(f"[{tool_name}] Unexpected error: {error}", exc_info=True)
    return error_response(error, tool=tool_name)


def handle_tool_errors(tool_name: str, logger: Optional[logging.Logger] = None):
    """Turn exceptions raised by a tool handler into error results.

    Works on plain functions and on methods.

    Example:
        @handle_tool_errors("get_product_details")
        def handle_get_product_details(self, arguments, context):
            return self.catalog.get_product(arguments["product_id"])
    """

    def decorator(func: F) -> F:
        log = _tool_logger(tool_name, logger)

        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Dict[str, Any]:
            try:
                return func(*args, **kwargs)
            except Exception as e:
                return _failure(tool_name, log, e)

        return wrapper  # type: ignore

    return decorator


def handle_async_tool_errors(tool_name: str, logger: Optional[logging.Logger] = None):
    """handle_tool_errors for coroutine handlers."""

    def decorator(func: F) -> F:
        log = _tool_logger(tool_name, logger)

        @wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> Dict[str, Any]:
            try:
                return await func(*args, **kwargs)
            except Exception as e:
                return _failure(tool_name, log, e)

        return wrapper  # type: ignore

    return decorator


def log_error(
    logger: logging.Logger, error: Exception, context: Optional[str] = None, include_traceback: bool = True
) -> None:
    """Log an error as "[context] CODE: message" (class name for non-ShopTalk errors)."""
    label = error.code.value if isinstance(error, ShopTalkError) else error.__class__.__name__
    text = error.message if isinstance(error, ShopTalkError) else str(error)
    prefix = f"[{context}] " if context else ""
    logger.error(f"{prefix}{label}: {text}", exc_info=include_traceback)
