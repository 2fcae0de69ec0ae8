"""
Exception hierarchy for ShopTalk.

Tool handlers raise these; handle_tool_errors turns them into structured
error results the model can read. Turn-level failures (LLMError,
MaxIterationsExceeded) end the turn instead.

Every ShopTalkError carries a code, a message, optional details, a
recoverable flag (can the shopper fix it by changing the request?) and a
context dict of debugging key-values.
"""

from typing import Any, Dict, Optional

from .codes import ErrorCode

NOT_FOUND_CODES: Dict[str, ErrorCode] = {
    "product": ErrorCode.NOT_FOUND_PRODUCT,
    "basket": ErrorCode.NOT_FOUND_BASKET,
    "order": ErrorCode.NOT_FOUND_ORDER,
    "tool": ErrorCode.NOT_FOUND_TOOL,
}

LLM_ERROR_CODES: Dict[str, ErrorCode] = {
    "timeout": ErrorCode.LLM_TIMEOUT,
    "invalid": ErrorCode.LLM_RESPONSE_INVALID,
}


def _with(context: Dict[str, Any], **extra: Any) -> Dict[str, Any]:
    """Merge extra key-values into context, skipping None and empty strings."""
    merged = dict(context)
    merged.update({k: v for k, v in extra.items() if v is not None and v != ""})
    return merged


class ShopTalkError(Exception):
    """Base exception for all ShopTalk errors.

    code and recoverable are class defaults that a single instance may
    override through the constructor.
    """

    code: ErrorCode = ErrorCode.INTERNAL_UNEXPECTED
    recoverable: bool = False

    def __init__(
        self,
        message: str,
        details: Optional[str] = None,
        code: Optional[ErrorCode] = None,
        recoverable: Optional[bool] = None,
        **context: Any,
    ):
        self.message = message
        self.details = details
        self.context = context or None
        if code is not None:
            self.code = code
        if recoverable is not None:
            self.recoverable = recoverable
        super().__init__(message)

    def __str__(self) -> str:
        return f"{self.message} - {self.details}" if self.details else self.message

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code.value,
            "message": self.message,
            "details": self.details,
            "recoverable": self.recoverable,
            "context": self.context,
        }


class ValidationError(ShopTalkError):
    """Bad or missing tool argument (quantity, product id, session...)."""

    code = ErrorCode.VALIDATION_MISSING_PARAM
    recoverable = True

    def __init__(
        self,
        message: str,
        details: Optional[str] = None,
        parameter: Optional[str] = None,
        expected: Optional[str] = None,
        received: Optional[Any] = None,
        **context: Any,
    ):
        super().__init__(message, details, **_with(context, parameter=parameter, expected=expected, received=received))


class NotFoundError(ShopTalkError):
    """A product, basket, order or tool does not exist."""

    code = ErrorCode.NOT_FOUND_RESOURCE
    recoverable = True

    def __init__(
        self,
        message: str,
        details: Optional[str] = None,
        resource_type: Optional[str] = None,
        resource_id: Optional[Any] = None,
        **context: Any,
    ):
        code = NOT_FOUND_CODES.get(resource_type or "", ErrorCode.NOT_FOUND_RESOURCE)
        super().__init__(
            message,
            details,
            code=code,
            **_with(context, resource_type=resource_type, resource_id=resource_id),
        )


class InsufficientInventoryError(ShopTalkError):
    """Requested quantity exceeds available stock."""

    code = ErrorCode.INVENTORY_INSUFFICIENT
    recoverable = True

    def __init__(self, message: str, details: Optional[str] = None, available: Optional[int] = None, **context: Any):
        self.available = available
        super().__init__(message, details, **_with(context, available=available))


class LLMError(ShopTalkError):
    """Provider failure: unreachable, timed out, or returned an unusable reply.

    error_type: "timeout" | "invalid" | None (unavailable)
    """

    code = ErrorCode.LLM_UNAVAILABLE

    def __init__(
        self,
        message: str,
        details: Optional[str] = None,
        model: Optional[str] = None,
        error_type: Optional[str] = None,
        **context: Any,
    ):
        code = LLM_ERROR_CODES.get(error_type or "", ErrorCode.LLM_UNAVAILABLE)
        super().__init__(message, details, code=code, **_with(context, model=model))


class AgentError(ShopTalkError):
    """Failure of the agent loop itself."""


class MaxIterationsExceeded(AgentError):
    """The tool-calling loop ran out of its iteration budget."""

    code = ErrorCode.AGENT_MAX_ITERATIONS

    def __init__(
        self,
        message: str = "Exceeded maximum iterations",
        details: Optional[str] = None,
        max_iterations: Optional[int] = None,
        agent: Optional[str] = None,
        **context: Any,
    ):
        super().__init__(message, details, **_with(context, max_iterations=max_iterations, agent=agent))
