import asyncio
import copy
import logging
from typing import Any, Dict, List, Optional

from base_store import DataStore
from errors import NotFoundError
from formatting import format_products
from schemas import Order, Product, utcnow

logger = logging.getLogger(__name__)


# ----------------------- Seed Data -----------------------
SEED_PRODUCTS = [
    {
        "id": 1,
        "name": "Aviator Prestige",
        "price": 1329,
        "originalPrice": 1599,
        "category": "sunglasses",
        "imageUrl": "https://images.unsplash.com/photo-1511499767150-a48a237f0083?auto=format&fit=crop&w=800&q=80",
        "stock": 45,
        "sku": "AVT-001",
        "description": "Premium aviator sunglasses with UV protection and lightweight titanium frame.",
        "rating": 4.8,
        "reviews": 248,
        "badge": "Bestseller",
        "discount": 17,
        "features": ["100% UV Protection", "Titanium Frame", "Polarized Lenses"],
        "colors": ["Gold", "Silver", "Black"],
        "sizes": ["Small", "Medium", "Large"],
    },
    {
        "id": 2,
        "name": "Metropolitan Frame",
        "price": 1289,
        "originalPrice": 1489,
        "category": "frames",
        "imageUrl": "https://images.unsplash.com/photo-1574258495973-f010dfbb5371?auto=format&fit=crop&w=800&q=80",
        "stock": 32,
        "sku": "MET-002",
        "description": "Modern prescription frames with blue light protection for digital screens.",
        "rating": 4.7,
        "reviews": 192,
        "badge": "New",
        "discount": 13,
        "features": ["Blue Light Protection", "Prescription Ready", "Lightweight"],
        "colors": ["Black", "Tortoise", "Clear"],
        "sizes": ["Small", "Medium", "Large"],
    },
    {
        "id": 3,
        "name": "Artisan Round",
        "price": 1459,
        "originalPrice": 1699,
        "category": "sunglasses",
        "imageUrl": "https://images.unsplash.com/photo-1556306535-38febf6782e7?auto=format&fit=crop&w=800&q=80",
        "stock": 28,
        "sku": "ART-003",
        "description": "Handcrafted round sunglasses with vintage-inspired design.",
        "rating": 4.9,
        "reviews": 312,
        "badge": "Student Fav",
        "discount": 14,
        "features": ["Handcrafted", "Vintage Style", "Premium Lenses"],
        "colors": ["Brown", "Green", "Blue"],
        "sizes": ["Small", "Medium"],
    },
    {
        "id": 4,
        "name": "Executive Titan",
        "price": 1599,
        "originalPrice": 1899,
        "category": "frames",
        "imageUrl": "https://images.unsplash.com/photo-1508296695146-257a814070b4?auto=format&fit=crop&w=800&q=80",
        "stock": 15,
        "sku": "EXE-004",
        "description": "Executive-level frames with titanium construction for professionals.",
        "rating": 4.6,
        "reviews": 176,
        "badge": "Limited",
        "discount": 16,
        "features": ["Titanium Frame", "Professional Design", "Lifetime Warranty"],
        "colors": ["Gunmetal", "Silver", "Black"],
        "sizes": ["Medium", "Large"],
    },
    {
        "id": 5,
        "name": "Classic Wayfarer",
        "price": 1199,
        "originalPrice": 1399,
        "category": "sunglasses",
        "imageUrl": "https://images.unsplash.com/photo-1572635196237-14b3f281503f?auto=format&fit=crop&w=800&q=80",
        "stock": 67,
        "sku": "WAY-005",
        "description": "Timeless wayfarer design perfect for any occasion.",
        "rating": 4.5,
        "reviews": 89,
        "badge": "Classic",
        "discount": 14,
        "features": ["Classic Design", "UV Protection", "Durable Frame"],
        "colors": ["Black", "Brown", "Navy"],
        "sizes": ["Small", "Medium", "Large"],
    },
    {
        "id": 6,
        "name": "Sport Vision Pro",
        "price": 1799,
        "originalPrice": 2099,
        "category": "sunglasses",
        "imageUrl": "https://images.unsplash.com/photo-1583394838336-acd977736f90?auto=format&fit=crop&w=800&q=80",
        "stock": 23,
        "sku": "SPT-006",
        "description": "High-performance sports eyewear for active lifestyles.",
        "rating": 4.8,
        "reviews": 134,
        "badge": "Sport",
        "discount": 14,
        "features": ["Impact Resistant", "Sweat Resistant", "Secure Fit"],
        "colors": ["Black", "Red", "Blue"],
        "sizes": ["Medium", "Large"],
    },
]

SEED_STOCK = {p["id"]: p["stock"] for p in SEED_PRODUCTS}


class MockStore(DataStore):
    """In-memory products and orders. Nothing survives a restart."""

    name = "Mock Data Service"

    def __init__(self, latency: float = 0.0):
        self.latency = latency
        self._products: List[Product] = format_products(SEED_PRODUCTS)
        self._orders: List[Dict[str, Any]] = []

    async def _pause(self):
        await asyncio.sleep(self.latency)

    def _find(self, product_id: int) -> Optional[Product]:
        return next((p for p in self._products if p.id == product_id), None)

    async def get_products(self) -> List[Product]:
        await self._pause()
        return [p.model_copy(deep=True) for p in self._products]

    async def get_product_by_id(self, product_id: int) -> Optional[Product]:
        await self._pause()
        product = self._find(product_id)
        return product.model_copy(deep=True) if product else None

    async def update_product_stock(self, product_id: int, new_stock: int) -> bool:
        await self._pause()
        product = self._find(product_id)
        if product is None:
            raise NotFoundError(f"Product with ID {product_id} not found", error="Product not found")
        product.stock = new_stock
        product.updated_at = utcnow()
        logger.info("Updated stock for product %s to %s", product_id, new_stock)
        return True

    async def log_order(self, order: Order) -> bool:
        await self._pause()
        self._orders.append({**order.to_json(), "loggedAt": utcnow().isoformat()})
        logger.info("Order %s logged to mock database", order.order_id)
        return True

    async def get_orders(self) -> List[Dict[str, Any]]:
        return copy.deepcopy(self._orders)

    async def get_connection_status(self) -> Dict[str, Any]:
        return {
            "connected": True,
            "dataSource": self.name,
            "productsCount": len(self._products),
            "ordersCount": len(self._orders),
            "lastChecked": utcnow().isoformat(),
        }

    async def reset_data(self) -> bool:
        self._orders = []
        for product in self._products:
            product.stock = SEED_STOCK.get(product.id, product.stock)
            product.updated_at = utcnow()
        logger.info("Mock data reset to initial state")
        return True
