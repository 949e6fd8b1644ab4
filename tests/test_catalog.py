from catalog import CatalogQuery, filter_products, list_categories, query_catalog, search_suggestions, sort_products
from formatting import format_products
from mock_store import SEED_PRODUCTS

PRODUCTS = format_products(SEED_PRODUCTS)


def ids(products):
    return [p.id for p in products]


def test_unset_filters_do_not_narrow():
    assert ids(filter_products(PRODUCTS, CatalogQuery())) == [1, 2, 3, 4, 5, 6]


def test_category_is_case_insensitive_and_combines_with_in_stock():
    products = [p.model_copy(update={"stock": 0}) if p.id == 3 else p for p in PRODUCTS]

    result = filter_products(products, CatalogQuery(category="SunGlasses", in_stock=True))

    assert ids(result) == [1, 5, 6]
    assert all(p.category == "sunglasses" and p.in_stock for p in result)


def test_price_bounds_are_inclusive():
    result = filter_products(PRODUCTS, CatalogQuery(min_price=1289, max_price=1459))

    assert ids(result) == [1, 2, 3]


def test_search_matches_name_description_category_and_badge():
    assert ids(filter_products(PRODUCTS, CatalogQuery(search="WAYFARER"))) == [5]
    assert ids(filter_products(PRODUCTS, CatalogQuery(search="blue light"))) == [2]
    assert ids(filter_products(PRODUCTS, CatalogQuery(search="frames"))) == [2, 4]
    assert ids(filter_products(PRODUCTS, CatalogQuery(search="student fav"))) == [3]


def test_sort_by_name_and_price():
    assert ids(sort_products(PRODUCTS, "name")) == [3, 1, 5, 4, 2, 6]
    assert ids(sort_products(PRODUCTS, "price", "desc")) == [6, 4, 3, 1, 2, 5]


def test_sort_keeps_source_order_for_ties():
    tied = [p.model_copy(update={"price": 1000}) for p in PRODUCTS]

    assert ids(sort_products(tied, "price")) == [1, 2, 3, 4, 5, 6]
    assert ids(sort_products(tied, "price", "desc")) == [1, 2, 3, 4, 5, 6]


def test_pages_concatenate_to_unpaginated_prefix():
    full = query_catalog(PRODUCTS, CatalogQuery(sort_by="price"))
    first = query_catalog(PRODUCTS, CatalogQuery(sort_by="price", offset=0, limit=2))
    second = query_catalog(PRODUCTS, CatalogQuery(sort_by="price", offset=2, limit=2))

    assert ids(first.items) + ids(second.items) == ids(full.items)[:4]
    assert first.has_more is True
    assert first.pagination() == {"total": 6, "limit": 2, "offset": 0, "hasMore": True}


def test_last_page_has_no_more():
    page = query_catalog(PRODUCTS, CatalogQuery(offset=4, limit=2))

    assert len(page.items) == 2
    assert page.has_more is False


def test_list_categories_counts():
    products = [p.model_copy(update={"stock": 0}) if p.id == 4 else p for p in PRODUCTS]

    assert list_categories(products) == [
        {"name": "frames", "count": 2, "inStockCount": 1},
        {"name": "sunglasses", "count": 4, "inStockCount": 4},
    ]


def test_search_suggestions():
    assert search_suggestions(PRODUCTS, "a") == []
    assert search_suggestions(PRODUCTS, "sun") == ["sunglasses"]
    assert search_suggestions(PRODUCTS, "cl") == ["Classic Wayfarer", "Classic"]
