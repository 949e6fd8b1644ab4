"""Order placement: stock check, pricing, persistence and stock decrement."""
import logging
import time
import uuid
from datetime import date, timedelta
from typing import Dict, Optional

from database import DataService
from errors import NotFoundError, StockError
from schemas import Order, OrderCreate, OrderLineItem, PaymentMethod, utcnow

logger = logging.getLogger(__name__)

ORDER_ID_PREFIX = "EYE"
DEFAULT_DELIVERY_DAYS = 5
DELIVERY_DAYS = {
    "cod": 7,
    "upi": 3,
    "net_banking": 3,
}


def generate_order_id() -> str:
    return f"{ORDER_ID_PREFIX}-{int(time.time() * 1000)}-{uuid.uuid4().hex[:8].upper()}"


def estimated_delivery(payment_method: PaymentMethod, today: Optional[date] = None) -> str:
    today = today or utcnow().date()
    days = DELIVERY_DAYS.get(payment_method, DEFAULT_DELIVERY_DAYS)
    return (today + timedelta(days=days)).isoformat()


def build_tracking(payment_method: PaymentMethod) -> Dict[str, bool]:
    return {
        "orderPlaced": True,
        "paymentPending": payment_method != "cod",
        "processing": False,
        "shipped": False,
        "delivered": False,
    }


async def place_order(service: DataService, payload: OrderCreate) -> Order:
    """Create, persist and fulfil an order.

    The stock check, the order write and the stock decrement all happen while
    the reservation locks of the ordered products are held, so two orders in
    this process cannot both take the last units. Prices come from the store,
    never from the request.

    Raises:
        StockError: When any line cannot be served; nothing is written.
    """
    order_id = generate_order_id()
    product_ids = [item.product_id for item in payload.items]

    async with service.reservation(product_ids):
        store = service.store
        logger.info("Validating stock for order %s", order_id)
        validation = await store.validate_stock(payload.items)
        if not validation.valid:
            raise StockError(
                "One or more items are out of stock or have insufficient quantity",
                details=validation.errors,
                stockInfo=[info.to_json() for info in validation.stock_info],
            )

        line_items = []
        for item in payload.items:
            product = await store.get_product_by_id(item.product_id)
            if product is None:
                raise NotFoundError(f"Product with ID {item.product_id} not found", error="Invalid product")
            line_items.append(OrderLineItem(
                product_id=product.id,
                product_name=product.name,
                product_sku=product.sku,
                quantity=item.quantity,
                unit_price=product.price,
                selected_color=item.selected_color or "Default",
                selected_size=item.selected_size or "One Size",
            ))

        customer = payload.customer_info
        order = Order(
            order_id=order_id,
            items=line_items,
            customer_email=customer.email,
            customer_name=customer.name,
            customer_phone=customer.phone or "Not provided",
            shipping_address=payload.shipping_address.flatten(),
            payment_method=payload.payment_method,
            notes=payload.notes or "",
        )

        logger.info("Logging order %s", order_id)
        await store.log_order(order)

        for item in payload.items:
            product = await store.get_product_by_id(item.product_id)
            new_stock = product.stock - item.quantity
            await store.update_product_stock(item.product_id, new_stock)
            logger.info("Updated stock for product %s: %s -> %s", item.product_id, product.stock, new_stock)

    logger.info("Order %s created successfully", order_id)
    return order
