"""
Tests for the domain agents' tool handlers, called directly.
"""

import pytest

from chat_orchestration import TurnContext
from chat_orchestration.agents import (
    INVALID_ACTION_ERROR,
    RENDER_UI_TOOL,
    CartAgent,
    ChitchatAgent,
    ProductSearchAgent,
    make_render_ui_handler,
)
from chat_orchestration.agents.chitchat import STORE_POLICIES, handle_get_store_policy
from chat_orchestration.agents.product_search import MAX_LIMIT
from config import runtime_config
from fakes import FakeLLMClient


@pytest.fixture
def cart_agent(baskets, orders):
    return CartAgent(baskets, orders, client=FakeLLMClient())


@pytest.fixture
def search_agent(catalog):
    return ProductSearchAgent(catalog, client=FakeLLMClient())


class TestRenderUI:
    """Shared render_ui tool."""

    def test_valid_action(self):
        handler = make_render_ui_handler(["show_basket"])
        assert handler({"action": "show_basket", "data_source": "view_basket"}, TurnContext()) == {
            "ui_action": "show_basket",
            "data_source": "view_basket",
            "success": True,
        }

    def test_invalid_action(self):
        handler = make_render_ui_handler(["show_basket"])
        assert handler({"action": "show_product_list", "data_source": "x"}, TurnContext()) == {
            "success": False,
            "error": INVALID_ACTION_ERROR,
        }

    def test_every_agent_declares_render_ui(self, cart_agent, search_agent):
        for agent in (cart_agent, search_agent):
            names = [tool.name for tool in agent.config.tools]
            assert names[-1] == RENDER_UI_TOOL
            assert RENDER_UI_TOOL in agent.agent.registry

    def test_every_declared_tool_has_a_handler(self, cart_agent, search_agent):
        for agent in (cart_agent, search_agent, ChitchatAgent(client=FakeLLMClient())):
            declared = sorted(tool.name for tool in agent.config.tools)
            assert declared == sorted(agent.agent.registry.names())


class TestProductSearchAgent:
    """search_products / get_product_details."""

    def test_search_passes_filters(self, search_agent, catalog, turn_context):
        result = search_agent.handle_search_products(
            {"query": "shirt", "attributes": {"color": "red"}, "max_price": 30, "category": ""},
            turn_context,
        )
        assert [p["id"] for p in result["products"]] == [1]
        assert catalog.searches[-1] == {
            "filters": {"query": "shirt", "attributes": {"color": "red"}, "max_price": 30},
            "limit": 20,
            "page": 1,
        }

    def test_limit_capped_and_page_floored(self, search_agent, catalog, turn_context):
        search_agent.handle_search_products({"query": "shirt", "limit": 500, "page": 0}, turn_context)
        assert catalog.searches[-1]["limit"] == MAX_LIMIT
        assert catalog.searches[-1]["page"] == 1

        search_agent.handle_search_products({"limit": "-3"}, turn_context)
        assert catalog.searches[-1]["limit"] == 1

    def test_no_results(self, search_agent, turn_context):
        assert search_agent.handle_search_products({"query": "umbrella"}, turn_context) == {
            "products": [],
            "count": 0,
            "message": "No products found for the specified filters",
        }

    def test_invalid_limit(self, search_agent, turn_context):
        result = search_agent.handle_search_products({"limit": "lots"}, turn_context)
        assert result["success"] is False
        assert result["error"]["code"] == "VALIDATION_INVALID_TYPE"
        assert result["error"]["tool"] == "search_products"

    def test_product_details(self, search_agent, turn_context):
        assert search_agent.handle_get_product_details({"product_id": 3}, turn_context)["name"] == "Blue Denim Jacket"

    def test_product_not_found(self, search_agent, turn_context):
        result = search_agent.handle_get_product_details({"product_id": 99}, turn_context)
        assert result["error"]["code"] == "NOT_FOUND_PRODUCT"

    def test_product_id_required(self, search_agent, turn_context):
        result = search_agent.handle_get_product_details({}, turn_context)
        assert result["error"]["message"] == "Product ID is required"


class TestCartAgentBasket:
    """Basket handlers."""

    def test_add_item(self, cart_agent, turn_context):
        result = cart_agent.handle_add_item({"product_id": 1, "quantity": 2}, turn_context)
        assert result["total_item_count"] == 2
        assert result["message"] == "Item added successfully - UI update required"

    def test_add_item_defaults_to_one(self, cart_agent, turn_context):
        assert cart_agent.handle_add_item({"product_id": "2"}, turn_context)["total_item_count"] == 1

    def test_session_required(self, cart_agent):
        result = cart_agent.handle_view_basket({}, TurnContext())
        assert result["success"] is False
        assert result["error"]["message"] == "Session ID is required"

    @pytest.mark.parametrize(
        "quantity,code",
        [(0, "VALIDATION_OUT_OF_RANGE"), (-2, "VALIDATION_OUT_OF_RANGE"), ("two", "VALIDATION_INVALID_TYPE"), (True, "VALIDATION_INVALID_TYPE")],
    )
    def test_invalid_quantity(self, cart_agent, turn_context, quantity, code):
        result = cart_agent.handle_add_item({"product_id": 1, "quantity": quantity}, turn_context)
        assert result["error"]["code"] == code

    def test_insufficient_inventory(self, cart_agent, turn_context):
        result = cart_agent.handle_add_item({"product_id": 4}, turn_context)
        assert result["success"] is False
        assert result["error"]["code"] == "INVENTORY_INSUFFICIENT"
        assert result["error"]["context"] == {"available": 0}
        assert result["error"]["recoverable"] is True

    def test_remove_and_update(self, cart_agent, turn_context):
        cart_agent.handle_add_item({"product_id": 1, "quantity": 3}, turn_context)
        assert cart_agent.handle_remove_item({"product_id": 1, "quantity": 1}, turn_context)["total_item_count"] == 2
        assert cart_agent.handle_update_item({"product_id": 1, "quantity": 5}, turn_context)["total_item_count"] == 5
        assert cart_agent.handle_remove_item({"product_id": 1}, turn_context)["items"] == []

    def test_update_requires_quantity(self, cart_agent, turn_context):
        cart_agent.handle_add_item({"product_id": 1}, turn_context)
        result = cart_agent.handle_update_item({"product_id": 1}, turn_context)
        assert result["error"]["message"] == "Quantity is required"

    def test_remove_missing_item(self, cart_agent, turn_context):
        result = cart_agent.handle_remove_item({"product_id": 3}, turn_context)
        assert result["error"]["message"] == "Item not in basket"

    def test_clear_and_summary(self, cart_agent, turn_context):
        cart_agent.handle_add_item({"product_id": 1, "quantity": 2}, turn_context)
        cart_agent.handle_add_item({"product_id": 3}, turn_context)
        summary = cart_agent.handle_basket_summary({}, turn_context)
        assert summary["total_item_count"] == 3
        assert summary["unique_product_count"] == 2

        cleared = cart_agent.handle_clear_basket({}, turn_context)
        assert cleared["items"] == []
        assert cleared["message"] == "Basket cleared - UI update required"


class TestCartAgentOrders:
    """create_order / view_order."""

    def test_empty_basket(self, cart_agent, orders, turn_context):
        assert cart_agent.handle_create_order({}, turn_context) == {
            "success": False,
            "error": "Cannot create order from empty basket",
        }
        assert orders.orders == {}

    def test_create_and_view(self, cart_agent, turn_context):
        cart_agent.handle_add_item({"product_id": 2, "quantity": 2}, turn_context)

        order = cart_agent.handle_create_order({}, turn_context)
        assert order["order_number"] == "ORD-0001"
        assert order["total_amount"] == 79.0
        assert order["message"] == "Order created successfully - Show payment page"

        found = cart_agent.handle_view_order({"order_number": "ORD-0001"}, turn_context)
        assert found["status"] == "pending"

    def test_view_unknown_order(self, cart_agent, turn_context):
        result = cart_agent.handle_view_order({"order_number": "ORD-9999"}, turn_context)
        assert result["error"]["code"] == "NOT_FOUND_ORDER"

    def test_view_order_requires_number(self, cart_agent, turn_context):
        result = cart_agent.handle_view_order({}, turn_context)
        assert result["error"]["message"] == "Order number is required"


class TestChitchatAgent:
    """Static store information."""

    @pytest.mark.parametrize("policy", ["shipping", "RETURNS", " payment "])
    def test_known_policy(self, policy):
        result = handle_get_store_policy({"policy_type": policy}, TurnContext())
        assert result == STORE_POLICIES[policy.strip().lower()]

    def test_unknown_policy(self):
        result = handle_get_store_policy({"policy_type": "warranty"}, TurnContext())
        assert result["error"] == "Unknown policy type"
        assert result["available_types"] == ["shipping", "returns", "payment", "privacy", "terms"]

    def test_agent_is_named(self):
        agent = ChitchatAgent(client=FakeLLMClient())
        assert agent.config.name == "chitchat_assistant"
        assert RENDER_UI_TOOL not in agent.agent.registry

    def test_iteration_budget_defaults_to_runtime_config(self):
        assert ChitchatAgent(client=FakeLLMClient()).config.max_iterations == runtime_config.max_iterations
        assert ChitchatAgent(client=FakeLLMClient(), max_iterations=3).config.max_iterations == 3

    def test_zero_iteration_budget_rejected(self):
        """An explicit 0 is not replaced by the configured default."""
        with pytest.raises(ValueError, match="max_iterations"):
            ChitchatAgent(client=FakeLLMClient(), max_iterations=0)
