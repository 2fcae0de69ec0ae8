"""
Cart Agent - Basket management and order placement.

Every handler needs the shopper's session (context.session_id): baskets
are keyed by it. Collaborator failures (unknown product, not enough stock,
bad quantity) come back to the model as standard error responses.
"""

import logging
from typing import Any, Dict, List, Optional

from errors import ErrorCode, ValidationError, handle_tool_errors
from services.commerce import BasketService, OrderService

from ..classifier import AgentType
from ..models import ToolDefinition, TurnContext
from .base import DomainAgent
from .render_ui import RENDER_UI_TOOL, make_render_ui_handler, render_ui_definition

logger = logging.getLogger(__name__)

VALID_UI_ACTIONS = ("show_basket", "show_order_payment", "show_order_confirmation", "show_order_details")
UI_DATA_SOURCES = (
    "view_basket",
    "add_item_to_basket",
    "remove_item_from_basket",
    "update_basket_item",
    "clear_basket",
    "create_order",
    "view_order",
)

SYSTEM_PROMPT = """You are a shopping cart assistant. Your role is to help customers manage their shopping basket and place orders.
Only use the tools provided to help them.

You can:
- Add products to the basket
- Remove products from the basket
- Update quantities
- View basket contents
- Calculate totals
- Clear the basket
- Place an order
- Render UI

IMPORTANT:
- Always use the provided tools to interact with the basket.
- Confirm critical actions like placing an order or clearing the basket clearly.
- Before placing an order confirm the total amount and quantity.
- Always provide the current basket total after changes.

UI RENDERING INSTRUCTIONS:
- Call the render_ui tool as your FINAL action before responding to the user
- Set 'action' to the appropriate UI view:
  * 'show_basket' - MANDATORY after adding/removing any item or when viewing the basket. NEVER SKIP.
  * 'show_order_payment' - MANDATORY after creating an order to show the payment page. NEVER SKIP.
  * 'show_order_confirmation' - for showing order confirmation after payment
  * 'show_order_details' - for displaying details of an existing order
- Set 'data_source' to the exact name of the tool that generated the data to display
- Example workflows:
  * Add item: add_item_to_basket -> render_ui(action: "show_basket", data_source: "add_item_to_basket") -> respond
  * Place order: create_order -> render_ui(action: "show_order_payment", data_source: "create_order") -> respond
  * View order: view_order -> render_ui(action: "show_order_details", data_source: "view_order") -> respond
"""

_NO_PARAMS: Dict[str, Any] = {}


def require_session(context: Optional[TurnContext]) -> str:
    if context is None or not context.session_id:
        raise ValidationError("Session ID is required", parameter="session_id")
    return context.session_id


def require_product_id(arguments: Dict[str, Any]) -> Any:
    product_id = arguments.get("product_id")
    if product_id is None or product_id == "":
        raise ValidationError("Product ID is required", parameter="product_id")
    return product_id


def parse_quantity(arguments: Dict[str, Any], default: Optional[int] = None, required: bool = False) -> Optional[int]:
    """Read a positive integer quantity (None allowed only when not required and no default)."""
    value = arguments.get("quantity")
    if value is None:
        if required:
            raise ValidationError("Quantity is required", parameter="quantity")
        return default

    if isinstance(value, bool) or not isinstance(value, (int, float, str)):
        raise ValidationError(
            "Quantity must be an integer",
            parameter="quantity",
            expected="integer",
            received=value,
            code=ErrorCode.VALIDATION_INVALID_TYPE,
        )
    try:
        quantity = int(value)
    except ValueError:
        raise ValidationError(
            "Quantity must be an integer",
            parameter="quantity",
            expected="integer",
            received=value,
            code=ErrorCode.VALIDATION_INVALID_TYPE,
        )

    if quantity <= 0:
        raise ValidationError(
            "Quantity must be greater than 0",
            parameter="quantity",
            received=quantity,
            code=ErrorCode.VALIDATION_OUT_OF_RANGE,
        )
    return quantity


def _with_message(result: Dict[str, Any], message: str) -> Dict[str, Any]:
    result = dict(result or {})
    if message:
        result["message"] = message
    return result


class CartAgent(DomainAgent):
    """Manages the session basket and turns it into orders."""

    name = "cart_management_assistant"
    agent_type = AgentType.CART

    def __init__(self, baskets: BasketService, orders: OrderService, **kwargs):
        self.baskets = baskets
        self.orders = orders
        super().__init__(**kwargs)

    def system_prompt(self) -> str:
        return SYSTEM_PROMPT

    def tool_definitions(self) -> List[ToolDefinition]:
        product_id = {"type": "integer", "description": "The ID of the product"}
        return [
            ToolDefinition("view_basket", "View the current contents of the shopping basket", _NO_PARAMS),
            ToolDefinition(
                "add_item_to_basket",
                "Add a product to the shopping basket",
                {
                    "product_id": product_id,
                    "quantity": {"type": "integer", "description": "Quantity to add (default: 1)", "default": 1},
                },
                ("product_id",),
            ),
            ToolDefinition(
                "remove_item_from_basket",
                "Remove a product from the shopping basket",
                {
                    "product_id": product_id,
                    "quantity": {"type": "integer", "description": "Quantity to remove (omit to remove all)"},
                },
                ("product_id",),
            ),
            ToolDefinition(
                "update_basket_item",
                "Update the quantity of a product in the basket",
                {
                    "product_id": product_id,
                    "quantity": {"type": "integer", "description": "New quantity"},
                },
                ("product_id", "quantity"),
            ),
            ToolDefinition("clear_basket", "Remove all items from the basket", _NO_PARAMS),
            ToolDefinition("get_basket_summary", "Get a summary of the basket (item count, total price)", _NO_PARAMS),
            ToolDefinition(
                "create_order",
                "Place a pending order from the current basket. The user must complete payment to confirm it.",
                _NO_PARAMS,
            ),
            ToolDefinition(
                "view_order",
                "View details of an existing order by order number",
                {"order_number": {"type": "string", "description": "The order number to retrieve"}},
                ("order_number",),
            ),
            render_ui_definition(
                VALID_UI_ACTIONS,
                UI_DATA_SOURCES,
                note="CRITICAL: Always call this after create_order to show the payment page.",
            ),
        ]

    def register_tools(self) -> None:
        register = self.agent.register_tool
        register("view_basket", self.handle_view_basket, "Checking your basket")
        register("add_item_to_basket", self.handle_add_item, "Adding item to basket")
        register("remove_item_from_basket", self.handle_remove_item, "Removing item from basket")
        register("update_basket_item", self.handle_update_item, "Updating basket")
        register("clear_basket", self.handle_clear_basket, "Clearing basket")
        register("get_basket_summary", self.handle_basket_summary, "Calculating basket total")
        register("create_order", self.handle_create_order, "Placing your order")
        register("view_order", self.handle_view_order, "Looking up order")
        register(RENDER_UI_TOOL, make_render_ui_handler(VALID_UI_ACTIONS), "Preparing display")

    # -------------------------------------------------------------------------
    # Basket
    # -------------------------------------------------------------------------

    @handle_tool_errors("view_basket")
    def handle_view_basket(self, arguments: Dict[str, Any], context: TurnContext) -> Dict[str, Any]:
        return self.baskets.view(require_session(context))

    @handle_tool_errors("add_item_to_basket")
    def handle_add_item(self, arguments: Dict[str, Any], context: TurnContext) -> Dict[str, Any]:
        session_id = require_session(context)
        product_id = require_product_id(arguments)
        quantity = parse_quantity(arguments, default=1)

        basket = self.baskets.add_item(session_id, product_id, quantity)
        logger.info(f"Basket {session_id}: added {quantity} x product {product_id}")
        return _with_message(basket, "Item added successfully - UI update required")

    @handle_tool_errors("remove_item_from_basket")
    def handle_remove_item(self, arguments: Dict[str, Any], context: TurnContext) -> Dict[str, Any]:
        session_id = require_session(context)
        product_id = require_product_id(arguments)
        quantity = parse_quantity(arguments)

        basket = self.baskets.remove_item(session_id, product_id, quantity)
        logger.info(f"Basket {session_id}: removed {quantity or 'all'} x product {product_id}")
        return _with_message(basket, "Item removed successfully - UI update required")

    @handle_tool_errors("update_basket_item")
    def handle_update_item(self, arguments: Dict[str, Any], context: TurnContext) -> Dict[str, Any]:
        session_id = require_session(context)
        product_id = require_product_id(arguments)
        quantity = parse_quantity(arguments, required=True)

        basket = self.baskets.update_item(session_id, product_id, quantity)
        return _with_message(basket, "Item updated successfully")

    @handle_tool_errors("clear_basket")
    def handle_clear_basket(self, arguments: Dict[str, Any], context: TurnContext) -> Dict[str, Any]:
        basket = self.baskets.clear(require_session(context))
        return _with_message(basket, "Basket cleared - UI update required")

    @handle_tool_errors("get_basket_summary")
    def handle_basket_summary(self, arguments: Dict[str, Any], context: TurnContext) -> Dict[str, Any]:
        return self.baskets.summary(require_session(context))

    # -------------------------------------------------------------------------
    # Orders
    # -------------------------------------------------------------------------

    @handle_tool_errors("create_order")
    def handle_create_order(self, arguments: Dict[str, Any], context: TurnContext) -> Dict[str, Any]:
        session_id = require_session(context)

        summary = self.baskets.summary(session_id)
        if not summary.get("total_item_count"):
            return {"success": False, "error": "Cannot create order from empty basket"}

        order = self.orders.create_from_basket(session_id)
        logger.info(f"Order {order.get('order_number', '?')} created for session {session_id}")
        return _with_message(order, "Order created successfully - Show payment page")

    @handle_tool_errors("view_order")
    def handle_view_order(self, arguments: Dict[str, Any], context: TurnContext) -> Dict[str, Any]:
        require_session(context)
        order_number = arguments.get("order_number")
        if not order_number:
            raise ValidationError("Order number is required", parameter="order_number")
        return self.orders.find(str(order_number))
