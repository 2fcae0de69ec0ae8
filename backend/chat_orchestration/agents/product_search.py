"""
Product Search Agent - Product discovery over the catalog service.

Tools:
- search_products: keyword / attribute / price / category search, paginated
- get_product_details: one product by id
- render_ui: show_product_list | show_product_details
"""

import logging
from typing import Any, Dict, List

from errors import ErrorCode, ValidationError, handle_tool_errors
from services.commerce import CatalogService

from ..classifier import AgentType
from ..models import ToolDefinition, TurnContext
from .base import DomainAgent
from .render_ui import RENDER_UI_TOOL, make_render_ui_handler, render_ui_definition

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 20
MAX_LIMIT = 100

VALID_UI_ACTIONS = ("show_product_list", "show_product_details")
UI_DATA_SOURCES = ("search_products", "get_product_details")

SYSTEM_PROMPT = """You are a product search assistant for an e-commerce store. Your role is to help customers find products efficiently.

You can:
- Search for products by keywords
- Filter products by attributes (color, size, category, etc.)
- Filter by price range
- View detailed product information
- Suggest related or similar products
- Answer questions about product availability and specifications
- Render UI to show products and product details

Be helpful and proactive:
- Ask clarifying questions if the search is too broad
- Suggest filters to narrow down results
- Highlight key product features
- Mention if products are in stock
- Suggest adding products to cart when appropriate
- When showing products, present them in a clear, organized way

UI RENDERING INSTRUCTIONS:
- ALWAYS call the render_ui tool as your FINAL action before responding to the user
- Set 'action' to the appropriate UI view:
  * 'show_product_list' - for search results with multiple products
  * 'show_product_details' - for detailed view of a single product
- Set 'data_source' to the exact name of the tool that generated the data to display:
  * Use 'search_products' when showing search results
  * Use 'get_product_details' when showing a single product's details
- Example workflow: search_products -> render_ui(action: "show_product_list", data_source: "search_products") -> respond
"""


def _int_arg(arguments: Dict[str, Any], key: str, default: int) -> int:
    value = arguments.get(key)
    if value is None:
        return default
    if isinstance(value, bool):
        raise ValidationError(
            f"{key} must be an integer", parameter=key, expected="integer", received=value, code=ErrorCode.VALIDATION_INVALID_TYPE
        )
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(
            f"{key} must be an integer", parameter=key, expected="integer", received=value, code=ErrorCode.VALIDATION_INVALID_TYPE
        )


def build_filters(arguments: Dict[str, Any]) -> Dict[str, Any]:
    """Keep only the filters the model actually supplied."""
    filters = {}
    for key in ("query", "category", "attributes"):
        if arguments.get(key):
            filters[key] = arguments[key]
    for key in ("min_price", "max_price"):
        if arguments.get(key) is not None:
            filters[key] = arguments[key]
    return filters


class ProductSearchAgent(DomainAgent):
    """Finds products and shows them."""

    name = "product_search_assistant"
    agent_type = AgentType.PRODUCT_SEARCH

    def __init__(self, catalog: CatalogService, **kwargs):
        self.catalog = catalog
        super().__init__(**kwargs)

    def system_prompt(self) -> str:
        return SYSTEM_PROMPT

    def tool_definitions(self) -> List[ToolDefinition]:
        return [
            ToolDefinition(
                name="search_products",
                description="Search for products by query and optional filters",
                parameters={
                    "query": {"type": "string", "description": "Search query (product name, description, keywords)"},
                    "attributes": {
                        "type": "object",
                        "description": "Attribute filters to narrow down search (e.g., {color: 'red', size: 'medium'})",
                    },
                    "min_price": {"type": "number", "description": "Minimum price filter"},
                    "max_price": {"type": "number", "description": "Maximum price filter"},
                    "category": {"type": "string", "description": "Category filter"},
                    "limit": {
                        "type": "integer",
                        "description": f"Maximum number of results per page (default: {DEFAULT_LIMIT}, max: {MAX_LIMIT})",
                        "default": DEFAULT_LIMIT,
                    },
                    "page": {
                        "type": "integer",
                        "description": "Page number for pagination (default: 1)",
                        "default": 1,
                    },
                },
            ),
            ToolDefinition(
                name="get_product_details",
                description="Get detailed information about a specific product",
                parameters={"product_id": {"type": "integer", "description": "The ID of the product"}},
                required=("product_id",),
            ),
            render_ui_definition(
                VALID_UI_ACTIONS,
                UI_DATA_SOURCES,
                note="MUST be called as the FINAL tool before your text response.",
            ),
        ]

    def register_tools(self) -> None:
        self.agent.register_tool("search_products", self.handle_search_products, "Searching products")
        self.agent.register_tool("get_product_details", self.handle_get_product_details, "Loading product details")
        self.agent.register_tool(RENDER_UI_TOOL, make_render_ui_handler(VALID_UI_ACTIONS), "Preparing display")

    @handle_tool_errors("search_products")
    def handle_search_products(self, arguments: Dict[str, Any], context: TurnContext) -> Dict[str, Any]:
        filters = build_filters(arguments)
        limit = min(max(_int_arg(arguments, "limit", DEFAULT_LIMIT), 1), MAX_LIMIT)
        page = max(_int_arg(arguments, "page", 1), 1)

        result = self.catalog.search(filters, limit=limit, page=page)
        if not result or not result.get("products"):
            return {"products": [], "count": 0, "message": "No products found for the specified filters"}

        logger.info(f"search_products: {len(result['products'])} product(s) for {filters} (page {page})")
        return result

    @handle_tool_errors("get_product_details")
    def handle_get_product_details(self, arguments: Dict[str, Any], context: TurnContext) -> Dict[str, Any]:
        product_id = arguments.get("product_id")
        if product_id is None or product_id == "":
            raise ValidationError("Product ID is required", parameter="product_id")
        return self.catalog.get_product(product_id)
