"""
Shared pytest fixtures for the ShopTalk agent runtime tests.
"""

import pytest

from chat_orchestration import TurnContext
from chat_orchestration.router import reset_router
from config import runtime_config
from fakes import InMemoryBaskets, InMemoryCatalog, InMemoryOrders
from utils.llm import reset_llm_clients


@pytest.fixture(autouse=True)
def clean_singletons():
    """Each test starts with env-default config and no cached clients or router."""
    runtime_config.reset_to_defaults()
    reset_llm_clients()
    reset_router()
    yield
    runtime_config.reset_to_defaults()
    reset_llm_clients()
    reset_router()


@pytest.fixture
def catalog():
    """Catalog with red shirts, a jacket and out-of-stock sneakers."""
    return InMemoryCatalog()


@pytest.fixture
def baskets(catalog):
    return InMemoryBaskets(catalog)


@pytest.fixture
def orders(baskets):
    return InMemoryOrders(baskets)


@pytest.fixture
def turn_context():
    """Fresh per-turn context for a shopper session."""
    return TurnContext(session_id="sess-1", conversation_id="conv-1")
