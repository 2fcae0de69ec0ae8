"""LLM client utilities."""

import logging
from typing import Optional, Tuple

from config import runtime_config
from services.llm_client import LLMClient

logger = logging.getLogger(__name__)

# Shared client and the connection settings it was built for
_client: Optional[LLMClient] = None
_client_key: Optional[Tuple] = None


def get_llm_client() -> LLMClient:
    """Get the shared LLM client for the current runtime config.

    The client is rebuilt only when the provider URL or timeouts change
    via runtime_config.update(); the previous client is dropped.

    Returns:
        LLMClient instance
    """
    global _client, _client_key

    key = (runtime_config.llm_base_url, runtime_config.llm_timeout, runtime_config.llm_connect_timeout)
    if _client is None or key != _client_key:
        timeouts = runtime_config.get_llm_timeout()
        logger.info(f"Creating LLM client (base_url={key[0] or 'default'}, timeout={timeouts['total']}s)")
        _client = LLMClient(
            base_url=runtime_config.llm_base_url,
            api_key=runtime_config.llm_api_key,
            timeout=timeouts["total"],
            connect_timeout=timeouts["connect"],
        )
        _client_key = key
    return _client


def reset_llm_clients() -> None:
    """Drop the cached client (used after credential rotation and in tests)."""
    global _client, _client_key
    _client = None
    _client_key = None
