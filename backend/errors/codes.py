"""
Error codes for ShopTalk.

The code is what the model and the client branch on; messages are free text.
"""

from enum import Enum


class ErrorCode(str, Enum):
    """Error codes, grouped by prefix:

    VALIDATION_  bad tool arguments
    NOT_FOUND_   unknown product / basket / order / tool
    INVENTORY_   not enough stock
    LLM_         provider failures
    AGENT_       agent loop limits
    INTERNAL_    anything unexpected
    """

    VALIDATION_MISSING_PARAM = "VALIDATION_MISSING_PARAM"
    VALIDATION_INVALID_TYPE = "VALIDATION_INVALID_TYPE"
    VALIDATION_OUT_OF_RANGE = "VALIDATION_OUT_OF_RANGE"
    VALIDATION_INVALID_FORMAT = "VALIDATION_INVALID_FORMAT"

    NOT_FOUND_PRODUCT = "NOT_FOUND_PRODUCT"
    NOT_FOUND_BASKET = "NOT_FOUND_BASKET"
    NOT_FOUND_ORDER = "NOT_FOUND_ORDER"
    NOT_FOUND_TOOL = "NOT_FOUND_TOOL"
    NOT_FOUND_RESOURCE = "NOT_FOUND_RESOURCE"

    INVENTORY_INSUFFICIENT = "INVENTORY_INSUFFICIENT"

    LLM_UNAVAILABLE = "LLM_UNAVAILABLE"
    LLM_TIMEOUT = "LLM_TIMEOUT"
    LLM_RESPONSE_INVALID = "LLM_RESPONSE_INVALID"

    AGENT_MAX_ITERATIONS = "AGENT_MAX_ITERATIONS"

    INTERNAL_UNEXPECTED = "INTERNAL_UNEXPECTED"
