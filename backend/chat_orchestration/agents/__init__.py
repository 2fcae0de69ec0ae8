"""
ShopTalk Domain Agents

Each agent is a ToolCallingAgent pre-bound to one system prompt and tool set:
- ProductSearchAgent: catalog search and product details
- CartAgent: basket management and order placement
- ChitchatAgent: greetings, store policies, contact info

render_ui is shared: every agent with views registers its own copy with
the actions that agent is allowed to show.
"""

from .base import DomainAgent
from .cart import CartAgent
from .chitchat import ChitchatAgent
from .product_search import ProductSearchAgent
from .render_ui import INVALID_ACTION_ERROR, RENDER_UI_TOOL, make_render_ui_handler, render_ui_definition

__all__ = [
    "DomainAgent",
    "CartAgent",
    "ChitchatAgent",
    "ProductSearchAgent",
    "INVALID_ACTION_ERROR",
    "RENDER_UI_TOOL",
    "make_render_ui_handler",
    "render_ui_definition",
]
