from abc import ABC, abstractmethod
from collections import defaultdict
from typing import Any, Dict, List, Optional, Sequence

from schemas import Order, Product, StockCheckItem, StockInfo, StockValidation


class DataStore(ABC):
    """Contract shared by the in-memory and spreadsheet backends."""

    name: str = "data store"

    @abstractmethod
    async def get_products(self) -> List[Product]:
        """Return every product, read fresh from the backend."""

    @abstractmethod
    async def get_product_by_id(self, product_id: int) -> Optional[Product]:
        """Return one product, or None when the id is unknown."""

    @abstractmethod
    async def update_product_stock(self, product_id: int, new_stock: int) -> bool:
        """Overwrite the stock of a product.

        Raises:
            NotFoundError: When no product has that id.
        """

    @abstractmethod
    async def log_order(self, order: Order) -> bool:
        """Append an order record to the backend."""

    @abstractmethod
    async def get_orders(self) -> List[Dict[str, Any]]:
        """Return every logged order as a JSON-ready dict."""

    @abstractmethod
    async def get_connection_status(self) -> Dict[str, Any]:
        """Report backend reachability. Never raises."""

    async def get_order(self, order_id: str) -> Optional[Dict[str, Any]]:
        for order in await self.get_orders():
            if order.get("orderId") == order_id:
                return order
        return None

    async def validate_stock(self, items: Sequence[StockCheckItem]) -> StockValidation:
        """Check every line against available stock and collect all problems.

        Lines for the same product are checked against their running total, so
        repeating a product across lines cannot oversubscribe it.
        """
        products = {product.id: product for product in await self.get_products()}
        requested: Dict[int, int] = defaultdict(int)
        validation = StockValidation()

        for item in items:
            product = products.get(item.product_id)
            if product is None:
                validation.valid = False
                validation.errors.append(f"Product with ID {item.product_id} not found")
                continue

            requested[item.product_id] += item.quantity
            info = StockInfo(
                product_id=item.product_id,
                product_name=product.name,
                requested_quantity=item.quantity,
                available_stock=product.stock,
                sufficient=product.stock >= requested[item.product_id],
            )
            validation.stock_info.append(info)

            if not info.sufficient:
                validation.valid = False
                validation.errors.append(
                    f"Insufficient stock for {product.name}. "
                    f"Requested: {requested[item.product_id]}, Available: {product.stock}"
                )

        return validation

    async def reset_data(self) -> bool:
        return False

    async def aclose(self) -> None:
        pass
