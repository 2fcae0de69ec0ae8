"""
Commerce services: abstract interfaces for the store's collaborators.

The agent runtime never touches storage directly. Domain agents call these
interfaces, and the host application plugs in the concrete implementations
(database-backed catalog, session baskets, order pipeline).

Failures are signalled with the errors package:
- NotFoundError: missing product, basket or order
- InsufficientInventoryError: requested quantity exceeds stock
- ValidationError: bad quantity or identifier
"""
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional


class CatalogService(ABC):
    """Product catalog lookups."""

    @abstractmethod
    def search(self, filters: Dict[str, Any], limit: int = 20, page: int = 1) -> Dict[str, Any]:
        """Search the catalog.

        Args:
            filters: Any of query, attributes, min_price, max_price, category
            limit: Page size (already capped by the caller)
            page: 1-based page number

        Returns:
            {"products": [...], "count": int, ...pagination fields}
        """
        ...

    @abstractmethod
    def get_product(self, product_id: Any) -> Dict[str, Any]:
        """Return one product as a dict. Raises NotFoundError if missing."""
        ...


class BasketService(ABC):
    """Session-scoped shopping basket."""

    @abstractmethod
    def view(self, session_id: str) -> Dict[str, Any]:
        """Return the basket for a session, creating an empty one if needed."""
        ...

    @abstractmethod
    def add_item(self, session_id: str, product_id: Any, quantity: int = 1) -> Dict[str, Any]:
        """Add quantity of a product. Returns the updated basket."""
        ...

    @abstractmethod
    def remove_item(self, session_id: str, product_id: Any, quantity: Optional[int] = None) -> Dict[str, Any]:
        """Remove quantity of a product (all of it when quantity is None)."""
        ...

    @abstractmethod
    def update_item(self, session_id: str, product_id: Any, quantity: int) -> Dict[str, Any]:
        """Set the quantity of a product already in the basket."""
        ...

    @abstractmethod
    def clear(self, session_id: str) -> Dict[str, Any]:
        """Remove every item. Returns the (now empty) basket."""
        ...

    @abstractmethod
    def summary(self, session_id: str) -> Dict[str, Any]:
        """Return {"total_item_count", "unique_product_count", "total"}."""
        ...


class OrderService(ABC):
    """Order placement and lookup.

    Clearing the basket once a payment is confirmed belongs to the
    implementation, not to the agent runtime.
    """

    @abstractmethod
    def create_from_basket(self, session_id: str) -> Dict[str, Any]:
        """Place a pending order from the session's basket."""
        ...

    @abstractmethod
    def find(self, order_number: str) -> Dict[str, Any]:
        """Return an order by number. Raises NotFoundError if missing."""
        ...
