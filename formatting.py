"""Normalisation of raw product records coming from the mock seed or the spreadsheet."""
import logging
import math
import re
from typing import Any, Iterable, List, Optional, Tuple
from urllib.parse import urlparse

from pydantic import ValidationError

from schemas import Product, utcnow

logger = logging.getLogger(__name__)

MAX_STRING_LENGTH = 1000

_INT_PREFIX = re.compile(r"^\s*[-+]?\d+")
_FLOAT_PREFIX = re.compile(r"^\s*[-+]?(\d+(\.\d*)?|\.\d+)([eE][-+]?\d+)?")


def parse_int(value: Any) -> Optional[int]:
    """Leading-integer parse: "12abc" -> 12, "4.7" -> 4, garbage -> None."""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return int(value) if math.isfinite(value) else None
    match = _INT_PREFIX.match(str(value)) if value is not None else None
    return int(match.group(0)) if match else None


def parse_float(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value) if math.isfinite(value) else None
    match = _FLOAT_PREFIX.match(str(value)) if value is not None else None
    return float(match.group(0)) if match else None


def sanitize_string(value: Any) -> str:
    if not isinstance(value, str):
        return str(value or "")
    return re.sub(r"[<>]", "", value.strip())[:MAX_STRING_LENGTH]


def format_price(value: Any) -> float:
    price = parse_float(value)
    if price is None:
        return 0
    return max(0, round(price, 2))


def is_valid_url(value: str) -> bool:
    parsed = urlparse(value)
    return bool(parsed.scheme and parsed.netloc)


def sanitize_url(value: Any) -> str:
    if not isinstance(value, str):
        return ""
    url = value.strip()
    if not url or is_valid_url(url):
        return url
    if url.startswith("/") or url.startswith("./"):
        return url
    if not url.startswith("http"):
        return f"https://{url}"
    return url


def calculate_discount(original_price: Optional[float], current_price: Optional[float]) -> int:
    if not original_price or not current_price or original_price <= current_price:
        return 0
    return round((original_price - current_price) / original_price * 100)


def format_product(raw: Optional[dict]) -> Optional[Product]:
    """Build a canonical Product from a loosely typed record.

    Missing or malformed values fall back to defaults instead of failing, so one
    bad record cannot take the catalog down. Returns None for an empty record or
    one that still does not fit the Product model.
    """
    if not raw:
        return None

    product_id = parse_int(raw.get("id")) or 0
    stock = max(0, parse_int(raw.get("stock")) or 0)
    price = format_price(raw.get("price"))
    original_price = format_price(raw["originalPrice"]) if raw.get("originalPrice") else None
    image_url = sanitize_url(raw.get("imageUrl"))
    rating = min(5.0, max(0.0, parse_float(raw.get("rating")) or 0.0))
    discount = parse_int(raw.get("discount")) or calculate_discount(original_price, price) or None

    try:
        return Product(
            id=product_id,
            name=sanitize_string(raw.get("name")) or "Unnamed Product",
            price=price,
            original_price=original_price,
            category=sanitize_string(raw.get("category")) or "uncategorized",
            image_url=image_url,
            images=raw.get("images") or [url for url in [image_url] if url],
            stock=stock,
            sku=sanitize_string(raw.get("sku")) or f"SKU-{raw.get('id')}",
            description=sanitize_string(raw.get("description")) or "No description available",
            rating=rating,
            reviews=max(0, parse_int(raw.get("reviews")) or 0),
            badge=sanitize_string(raw.get("badge")) or None,
            discount=discount,
            features=raw.get("features") or [],
            specifications=raw.get("specifications") or {},
            colors=raw.get("colors") or ["Default"],
            sizes=raw.get("sizes") or ["One Size"],
            created_at=raw.get("createdAt") or utcnow(),
            updated_at=raw.get("updatedAt") or utcnow(),
        )
    except ValidationError as exc:
        logger.warning("Dropping malformed product record %r: %s", raw.get("id"), exc)
        return None


def format_products(raws: Iterable[Optional[dict]]) -> List[Product]:
    products = (format_product(raw) for raw in raws)
    return [product for product in products if product is not None]


def validate_product(product: Optional[Product]) -> Tuple[bool, List[str]]:
    if product is None:
        return False, ["Product data is required"]

    errors = []
    if not product.name.strip():
        errors.append("Product name is required")
    if not product.category.strip():
        errors.append("Product category is required")
    if product.image_url and not is_valid_url(product.image_url):
        errors.append("Invalid image URL format")
    if product.id < 1:
        errors.append("Product ID must be a positive integer")
    return not errors, errors
