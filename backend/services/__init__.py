"""
ShopTalk Services - Shared infrastructure and collaborator interfaces.

- llm_client: OpenAI SDK wrapper (complete + stream)
- commerce: Catalog, basket and order service interfaces
"""

from .commerce import BasketService, CatalogService, OrderService
from .llm_client import LLMClient

__all__ = ["LLMClient", "CatalogService", "BasketService", "OrderService"]
