import json

import pytest

from errors import NotFoundError
from schemas import Order, OrderLineItem, StockCheckItem
from sheets_store import ORDER_HEADERS, SheetsStore, order_from_row, product_from_row
from tests.fakes import FakeSheetsClient

PRODUCT_ROWS = [
    ["ProductID", "Name", "Price", "Category", "ImageURL", "Stock", "SKU", "Description"],
    ["1", "Aviator Prestige", "1329", "sunglasses", "https://img.test.org/1.png", "45", "AVT-001", "Aviators"],
    ["2", "Metropolitan Frame", "1289", "frames", "", "0", "MET-002", "Frames"],
    ["oops", "", "not-a-price"],
]


def make_store(**kwargs) -> SheetsStore:
    values = {
        "Products!A:H": PRODUCT_ROWS,
        "Products!A:A": [[row[0]] for row in PRODUCT_ROWS],
    }
    values.update(kwargs.pop("values", {}))
    return SheetsStore(FakeSheetsClient(values, **kwargs))


def make_order() -> Order:
    return Order(
        order_id="EYE-1700000000000-ABCDEF12",
        items=[OrderLineItem(product_id=1, product_name="Aviator Prestige", product_sku="AVT-001", quantity=2, unit_price=1329)],
        customer_email="priya.sharma@gmail.com",
        customer_name="Priya Sharma",
        shipping_address="12 MG Road, Bengaluru, Karnataka 560001, India",
        payment_method="cod",
    )


def test_product_from_row_falls_back_on_malformed_cells():
    product = product_from_row(["oops", "", "not-a-price"], 2)

    assert product.id == 3
    assert product.name == "Unnamed Product"
    assert product.price == 0
    assert product.stock == 0
    assert product.sku == "SKU-3"


@pytest.mark.anyio
async def test_get_products_maps_rows_and_keeps_bad_rows():
    products = await make_store().get_products()

    assert [p.id for p in products] == [1, 2, 3]
    assert products[0].price == 1329
    assert products[0].stock == 45
    assert products[0].in_stock is True
    assert products[1].in_stock is False
    assert products[2].name == "Unnamed Product"


@pytest.mark.anyio
async def test_get_products_empty_sheet():
    store = make_store(values={"Products!A:H": []})

    assert await store.get_products() == []


@pytest.mark.anyio
async def test_update_product_stock_writes_single_cell():
    store = make_store()

    assert await store.update_product_stock(2, 7) is True
    assert store.client.updates == [("Products!F3", [[7]])]


@pytest.mark.anyio
async def test_update_product_stock_unknown_id():
    with pytest.raises(NotFoundError):
        await make_store().update_product_stock(42, 1)


@pytest.mark.anyio
async def test_validate_stock_against_sheet():
    validation = await make_store().validate_stock([StockCheckItem(product_id=2, quantity=1)])

    assert validation.valid is False
    assert validation.errors == ["Insufficient stock for Metropolitan Frame. Requested: 1, Available: 0"]


@pytest.mark.anyio
async def test_log_order_writes_headers_when_header_range_unreadable():
    store = make_store(fail_ranges={"Orders!A1:I1"})

    await store.log_order(make_order())

    assert store.client.updates == [("Orders!A1:I1", [ORDER_HEADERS])]
    (range_, rows), = store.client.appends
    assert range_ == "Orders!A:I"
    row = rows[0]
    assert len(row) == 9
    assert row[0] == "EYE-1700000000000-ABCDEF12"
    assert json.loads(row[3])[0]["totalPrice"] == 2658
    assert row[4] == 2658
    assert row[5] == "pending"
    assert row[8] == "cod"


@pytest.mark.anyio
async def test_log_order_skips_headers_when_present():
    store = make_store(values={"Orders!A1:I1": [ORDER_HEADERS]})

    await store.log_order(make_order())

    assert store.client.updates == []
    assert len(store.client.appends) == 1


@pytest.mark.anyio
async def test_get_order_reads_orders_tab():
    row = ["EYE-1-ABCDEF12", "a@b.org", "Asha", json.dumps([{"productId": 1}]), "1428", "pending", "2024-01-01", "Addr", "upi"]
    store = make_store(values={"Orders!A:I": [ORDER_HEADERS, row]})

    order = await store.get_order("EYE-1-ABCDEF12")

    assert order["totalAmount"] == 1428
    assert order["items"] == [{"productId": 1}]
    assert await store.get_order("EYE-2-ABCDEF12") is None


def test_order_from_row_tolerates_bad_items_json():
    order = order_from_row(["EYE-1-X", "", "", "{not json"])

    assert order["items"] == []
    assert order["status"] == "pending"


@pytest.mark.anyio
async def test_connection_status_reports_failure_without_raising():
    store = make_store(fail_ranges={"metadata"})

    status = await store.get_connection_status()

    assert status["connected"] is False
    assert status["error"] == "connection refused"


@pytest.mark.anyio
async def test_connection_status_reports_unexpected_errors_without_raising():
    store = make_store(fail_ranges={"metadata-malformed"})

    status = await store.get_connection_status()

    assert status["connected"] is False
    assert status["error"] == "'properties'"


@pytest.mark.anyio
async def test_connection_status_lists_sheets():
    status = await make_store().get_connection_status()

    assert status["connected"] is True
    assert status["spreadsheetTitle"] == "EyeLura Inventory"
    assert status["sheets"] == ["Products", "Orders"]


@pytest.mark.anyio
async def test_reset_is_not_supported():
    assert await make_store().reset_data() is False


@pytest.mark.anyio
async def test_aclose_closes_client():
    store = make_store()
    await store.aclose()
    assert store.client.closed is True
