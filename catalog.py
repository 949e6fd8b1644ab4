from dataclasses import dataclass, field
from typing import Any, Dict, List, Literal, Optional, Sequence

from schemas import Product

SortField = Literal["name", "price", "stock", "createdAt"]
SortOrder = Literal["asc", "desc"]

SORT_ATTRIBUTES = {
    "name": "name",
    "price": "price",
    "stock": "stock",
    "createdAt": "created_at",
}

MAX_SUGGESTIONS = 10
MIN_SUGGESTION_QUERY = 2


@dataclass
class CatalogQuery:
    category: Optional[str] = None
    min_price: Optional[float] = None
    max_price: Optional[float] = None
    in_stock: Optional[bool] = None
    search: Optional[str] = None
    limit: int = 50
    offset: int = 0
    sort_by: SortField = "name"
    sort_order: SortOrder = "asc"

    def filters(self) -> Dict[str, Any]:
        return {
            "category": self.category,
            "minPrice": self.min_price,
            "maxPrice": self.max_price,
            "inStock": self.in_stock,
            "search": self.search,
        }


@dataclass
class CatalogPage:
    items: List[Product] = field(default_factory=list)
    total: int = 0
    limit: int = 50
    offset: int = 0

    @property
    def has_more(self) -> bool:
        return self.offset + self.limit < self.total

    def pagination(self) -> Dict[str, Any]:
        return {"total": self.total, "limit": self.limit, "offset": self.offset, "hasMore": self.has_more}


def _matches_search(product: Product, term: str) -> bool:
    fields = [product.name, product.description, product.category, product.badge or ""]
    return any(term in value.lower() for value in fields)


def filter_products(products: Sequence[Product], query: CatalogQuery) -> List[Product]:
    """Apply every supplied filter; unset filters do not narrow the result."""
    result = list(products)
    if query.category:
        category = query.category.lower()
        result = [p for p in result if p.category.lower() == category]
    if query.min_price is not None:
        result = [p for p in result if p.price >= query.min_price]
    if query.max_price is not None:
        result = [p for p in result if p.price <= query.max_price]
    if query.in_stock is not None:
        result = [p for p in result if p.in_stock == query.in_stock]
    if query.search:
        term = query.search.lower()
        result = [p for p in result if _matches_search(p, term)]
    return result


def sort_products(products: Sequence[Product], sort_by: SortField = "name", sort_order: SortOrder = "asc") -> List[Product]:
    attribute = SORT_ATTRIBUTES[sort_by]

    def key(product: Product):
        value = getattr(product, attribute)
        return value.lower() if isinstance(value, str) else value

    # sorted() is stable in both directions, so ties keep their source order
    return sorted(products, key=key, reverse=sort_order == "desc")


def query_catalog(products: Sequence[Product], query: CatalogQuery) -> CatalogPage:
    matched = sort_products(filter_products(products, query), query.sort_by, query.sort_order)
    return CatalogPage(
        items=matched[query.offset:query.offset + query.limit],
        total=len(matched),
        limit=query.limit,
        offset=query.offset,
    )


def list_categories(products: Sequence[Product]) -> List[Dict[str, Any]]:
    categories = []
    for name in sorted({p.category for p in products}):
        in_category = [p for p in products if p.category == name]
        categories.append({
            "name": name,
            "count": len(in_category),
            "inStockCount": sum(1 for p in in_category if p.stock > 0),
        })
    return categories


def search_suggestions(products: Sequence[Product], q: Optional[str]) -> List[str]:
    if not q or len(q) < MIN_SUGGESTION_QUERY:
        return []
    term = q.lower()
    suggestions: Dict[str, None] = {}
    for product in products:
        for value in (product.name, product.category, product.badge):
            if value and term in value.lower():
                suggestions.setdefault(value)
    return list(suggestions)[:MAX_SUGGESTIONS]
