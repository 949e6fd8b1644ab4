"""
Schemas for the EyeLura storefront

Pydantic models shared by the stores, the order pipeline and the API.
Field names are snake_case in Python and camelCase on the wire.
"""
from datetime import datetime, timezone
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, computed_field
from pydantic.alias_generators import to_camel

FREE_SHIPPING_THRESHOLD = 999
FLAT_SHIPPING_COST = 99

PaymentMethod = Literal["credit_card", "debit_card", "upi", "net_banking", "cod"]
OrderStatus = Literal["pending", "confirmed", "processing", "shipped", "delivered", "cancelled"]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def shipping_cost_for(subtotal: float) -> int:
    return 0 if subtotal >= FREE_SHIPPING_THRESHOLD else FLAT_SHIPPING_COST


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_json(self) -> dict:
        return self.model_dump(by_alias=True, mode="json")


# ----------------------- Catalog -----------------------
class Product(CamelModel):
    id: int
    name: str
    price: float = Field(..., ge=0)
    original_price: Optional[float] = None
    category: str
    image_url: str = ""
    images: List[str] = Field(default_factory=list)
    stock: int = Field(0, ge=0)
    sku: str
    description: str = ""
    rating: float = Field(0, ge=0, le=5)
    reviews: int = 0
    badge: Optional[str] = None
    discount: Optional[int] = None
    features: List[str] = Field(default_factory=list)
    specifications: Dict[str, str] = Field(default_factory=dict)
    colors: List[str] = Field(default_factory=lambda: ["Default"])
    sizes: List[str] = Field(default_factory=lambda: ["One Size"])
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    @computed_field(alias="inStock")
    @property
    def in_stock(self) -> bool:
        return self.stock > 0


# ----------------------- Stock -----------------------
class StockCheckItem(CamelModel):
    product_id: int = Field(..., ge=1)
    quantity: int = Field(..., ge=1, le=100)


class StockCheckRequest(CamelModel):
    items: List[StockCheckItem] = Field(..., min_length=1, max_length=50)


class StockInfo(CamelModel):
    product_id: int
    product_name: str
    requested_quantity: int
    available_stock: int
    sufficient: bool


class StockValidation(CamelModel):
    valid: bool = True
    errors: List[str] = Field(default_factory=list)
    stock_info: List[StockInfo] = Field(default_factory=list)


# ----------------------- Orders -----------------------
class OrderItemIn(StockCheckItem):
    selected_color: Optional[str] = None
    selected_size: Optional[str] = None


class CustomerInfo(CamelModel):
    name: str = Field(..., min_length=2, max_length=100)
    email: EmailStr
    phone: Optional[str] = None


class ShippingAddress(CamelModel):
    street: str = Field(..., min_length=5, max_length=200)
    city: str = Field(..., min_length=2, max_length=100)
    state: str = Field(..., min_length=2, max_length=100)
    zip_code: str = Field(..., min_length=3, max_length=20)
    country: str = Field("India", min_length=2, max_length=100)

    def flatten(self) -> str:
        return f"{self.street}, {self.city}, {self.state} {self.zip_code}, {self.country}"


class OrderCreate(CamelModel):
    items: List[OrderItemIn] = Field(..., min_length=1, max_length=50)
    customer_info: CustomerInfo
    shipping_address: ShippingAddress
    payment_method: PaymentMethod = "cod"
    notes: Optional[str] = Field(None, max_length=500)


class OrderLineItem(CamelModel):
    """Line item with name, sku and price captured when the order was placed."""
    product_id: int
    product_name: str
    product_sku: str
    quantity: int
    unit_price: float
    selected_color: str = "Default"
    selected_size: str = "One Size"

    @computed_field(alias="totalPrice")
    @property
    def total_price(self) -> float:
        return round(self.unit_price * self.quantity, 2)


class Order(CamelModel):
    order_id: str
    items: List[OrderLineItem]
    customer_email: str
    customer_name: str
    customer_phone: str = "Not provided"
    shipping_address: str
    payment_method: PaymentMethod
    # Orders are written once; no transition function exists for this field.
    status: OrderStatus = "pending"
    notes: str = ""
    created_at: datetime = Field(default_factory=utcnow)

    @computed_field
    @property
    def subtotal(self) -> float:
        return round(sum(item.total_price for item in self.items), 2)

    @computed_field(alias="shippingCost")
    @property
    def shipping_cost(self) -> int:
        return shipping_cost_for(self.subtotal)

    @computed_field(alias="totalAmount")
    @property
    def total_amount(self) -> float:
        return round(self.subtotal + self.shipping_cost, 2)
