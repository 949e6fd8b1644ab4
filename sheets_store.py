"""
Google Sheets backend.

``SheetsClient`` talks to the Sheets v4 REST API with a service account:
it signs an RS256 assertion with PyJWT, trades it for an access token and
sends the value requests over ``httpx``. ``SheetsStore`` maps the Products
and Orders tabs onto the ``DataStore`` contract.

Stock updates are a read of the id column followed by a single-cell write.
Nothing on the spreadsheet side locks the row in between.
"""
import json
import logging
import time
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import httpx
import jwt

from base_store import DataStore
from config import Settings
from errors import NotFoundError, UpstreamUnavailable
from formatting import format_product, parse_float, parse_int
from schemas import Order, Product, utcnow

logger = logging.getLogger(__name__)

TOKEN_URL = "https://oauth2.googleapis.com/token"
SHEETS_API = "https://sheets.googleapis.com/v4/spreadsheets"
SCOPE = "https://www.googleapis.com/auth/spreadsheets"
JWT_ALGO = "RS256"
TOKEN_LIFETIME = 3600
TOKEN_REFRESH_MARGIN = 60

PRODUCT_COLUMNS = ["id", "name", "price", "category", "imageUrl", "stock", "sku", "description"]
ORDER_HEADERS = [
    "OrderID", "CustomerEmail", "CustomerName", "Items", "TotalAmount",
    "Status", "OrderDate", "ShippingAddress", "PaymentMethod",
]


class SheetsAPIError(UpstreamUnavailable):
    def __init__(self, status: int, message: str):
        super().__init__(message, code="SHEETS_CONNECTION_ERROR")
        self.status = status


class SheetsClient:
    def __init__(
        self,
        spreadsheet_id: str,
        service_account_email: str,
        private_key: str,
        http: Optional[httpx.AsyncClient] = None,
        timeout: float = 10.0,
    ):
        self.spreadsheet_id = spreadsheet_id
        self.service_account_email = service_account_email
        # keys pasted into env files usually carry literal "\n"
        self.private_key = private_key.replace("\\n", "\n")
        self._http = http or httpx.AsyncClient(timeout=timeout)
        self._token: Optional[str] = None
        self._token_expiry = 0.0

    def create_assertion(self) -> str:
        now = int(time.time())
        payload = {
            "iss": self.service_account_email,
            "scope": SCOPE,
            "aud": TOKEN_URL,
            "iat": now,
            "exp": now + TOKEN_LIFETIME,
        }
        return jwt.encode(payload, self.private_key, algorithm=JWT_ALGO)

    async def access_token(self) -> str:
        if self._token and time.time() < self._token_expiry - TOKEN_REFRESH_MARGIN:
            return self._token
        try:
            assertion = self.create_assertion()
        except (jwt.exceptions.PyJWTError, ValueError, TypeError) as exc:
            raise UpstreamUnavailable(
                f"Invalid Google service account key: {exc}", code="SHEETS_CONNECTION_ERROR"
            ) from exc
        try:
            resp = await self._http.post(
                TOKEN_URL,
                data={
                    "grant_type": "urn:ietf:params:oauth:grant-type:jwt-bearer",
                    "assertion": assertion,
                },
            )
        except httpx.HTTPError as exc:
            raise UpstreamUnavailable(f"Google token request failed: {exc}", code="SHEETS_CONNECTION_ERROR") from exc
        if resp.status_code >= 400:
            raise SheetsAPIError(resp.status_code, f"Google token request failed: {resp.text[:200]}")
        try:
            body = resp.json()
            token = body["access_token"]
            expires_in = int(body.get("expires_in", TOKEN_LIFETIME))
        except (ValueError, KeyError, TypeError, AttributeError) as exc:
            raise SheetsAPIError(
                resp.status_code, f"Google token response had no access token: {resp.text[:200]}"
            ) from exc
        self._token = token
        self._token_expiry = time.time() + expires_in
        return self._token

    async def _request(self, method: str, path: str, **kwargs) -> Dict[str, Any]:
        token = await self.access_token()
        url = f"{SHEETS_API}/{self.spreadsheet_id}{path}"
        try:
            resp = await self._http.request(
                method, url, headers={"Authorization": f"Bearer {token}"}, **kwargs
            )
        except httpx.HTTPError as exc:
            raise UpstreamUnavailable(f"Google Sheets request failed: {exc}", code="SHEETS_CONNECTION_ERROR") from exc
        if resp.status_code >= 400:
            try:
                message = resp.json()["error"]["message"]
            except (ValueError, KeyError, TypeError):
                message = resp.text[:200]
            raise SheetsAPIError(resp.status_code, f"Google Sheets API error {resp.status_code}: {message}")
        return resp.json() if resp.content else {}

    async def get_values(self, range_: str) -> List[List[str]]:
        body = await self._request("GET", f"/values/{quote(range_)}")
        return body.get("values", [])

    async def update_values(self, range_: str, values: List[List[Any]]) -> Dict[str, Any]:
        return await self._request(
            "PUT",
            f"/values/{quote(range_)}",
            params={"valueInputOption": "RAW"},
            json={"values": values},
        )

    async def append_values(self, range_: str, values: List[List[Any]]) -> Dict[str, Any]:
        return await self._request(
            "POST",
            f"/values/{quote(range_)}:append",
            params={"valueInputOption": "RAW", "insertDataOption": "INSERT_ROWS"},
            json={"values": values},
        )

    async def get_metadata(self, fields: str) -> Dict[str, Any]:
        return await self._request("GET", "", params={"fields": fields})

    async def aclose(self):
        await self._http.aclose()


def product_from_row(row: List[Any], index: int) -> Optional[Product]:
    """Map one data row (0-based, header excluded) onto a Product."""
    cells = list(row) + [""] * (len(PRODUCT_COLUMNS) - len(row))
    raw = dict(zip(PRODUCT_COLUMNS, cells))
    raw["id"] = parse_int(raw["id"]) or index + 1
    raw["sku"] = raw["sku"] or f"SKU-{index + 1}"
    return format_product(raw)


def order_to_row(order: Order) -> List[Any]:
    return [
        order.order_id,
        order.customer_email or "guest@example.com",
        order.customer_name or "Guest Customer",
        json.dumps([item.to_json() for item in order.items]),
        order.total_amount,
        order.status,
        order.created_at.isoformat(),
        order.shipping_address or "Not provided",
        order.payment_method,
    ]


def order_from_row(row: List[Any]) -> Dict[str, Any]:
    cells = list(row) + [""] * (len(ORDER_HEADERS) - len(row))
    try:
        items = json.loads(cells[3]) if cells[3] else []
    except ValueError:
        items = []
    return {
        "orderId": cells[0],
        "customerEmail": cells[1],
        "customerName": cells[2],
        "items": items,
        "totalAmount": parse_float(cells[4]),
        "status": cells[5] or "pending",
        "createdAt": cells[6],
        "shippingAddress": cells[7],
        "paymentMethod": cells[8],
    }


class SheetsStore(DataStore):
    name = "Google Sheets"

    def __init__(self, client: SheetsClient, products_sheet: str = "Products", orders_sheet: str = "Orders"):
        self.client = client
        self.products_sheet = products_sheet
        self.orders_sheet = orders_sheet

    @classmethod
    def from_settings(cls, settings: Settings) -> "SheetsStore":
        client = SheetsClient(
            settings.spreadsheet_id,
            settings.service_account_email,
            settings.private_key,
        )
        logger.info("Google Sheets service initialized for spreadsheet %s", settings.spreadsheet_id)
        return cls(client, settings.products_sheet_name, settings.orders_sheet_name)

    async def get_products(self) -> List[Product]:
        rows = await self.client.get_values(f"{self.products_sheet}!A:H")
        if not rows:
            logger.info("No product data found in Google Sheets")
            return []

        products = []
        for index, row in enumerate(rows[1:]):
            product = product_from_row(row, index)
            if product is None:
                logger.warning("Skipping product row %s", index + 2)
                continue
            products.append(product)
        logger.info("Fetched %s products from Google Sheets", len(products))
        return products

    async def get_product_by_id(self, product_id: int) -> Optional[Product]:
        for product in await self.get_products():
            if product.id == product_id:
                return product
        logger.info("Product with ID %s not found", product_id)
        return None

    async def update_product_stock(self, product_id: int, new_stock: int) -> bool:
        rows = await self.client.get_values(f"{self.products_sheet}!A:A")
        if not rows:
            raise NotFoundError("No products found in sheet", error="Product not found")

        row_number = None
        for i, row in enumerate(rows[1:], start=2):
            if row and parse_int(row[0]) == product_id:
                row_number = i
                break
        if row_number is None:
            raise NotFoundError(f"Product with ID {product_id} not found in sheet", error="Product not found")

        await self.client.update_values(f"{self.products_sheet}!F{row_number}", [[new_stock]])
        logger.info("Updated stock for product %s to %s", product_id, new_stock)
        return True

    async def _ensure_order_headers(self):
        header_range = f"{self.orders_sheet}!A1:I1"
        try:
            existing = await self.client.get_values(header_range)
        except UpstreamUnavailable as exc:
            logger.info("Orders header unreadable (%s), treating sheet as new", exc.message)
            existing = []
        if not existing:
            logger.info("Creating Orders sheet headers...")
            await self.client.update_values(header_range, [ORDER_HEADERS])

    async def log_order(self, order: Order) -> bool:
        await self._ensure_order_headers()
        await self.client.append_values(f"{self.orders_sheet}!A:I", [order_to_row(order)])
        logger.info("Order %s logged to Google Sheets", order.order_id)
        return True

    async def get_orders(self) -> List[Dict[str, Any]]:
        rows = await self.client.get_values(f"{self.orders_sheet}!A:I")
        return [order_from_row(row) for row in rows[1:] if row]

    async def get_connection_status(self) -> Dict[str, Any]:
        try:
            meta = await self.client.get_metadata("properties.title,sheets.properties.title")
            title = meta.get("properties", {}).get("title")
            sheets = [sheet["properties"]["title"] for sheet in meta.get("sheets", [])]
        except Exception as exc:
            # status checks report failures, they never raise
            message = exc.message if isinstance(exc, UpstreamUnavailable) else str(exc)
            logger.error("Error checking Google Sheets connection: %s", message)
            return {"connected": False, "error": message, "lastChecked": utcnow().isoformat()}
        return {
            "connected": True,
            "spreadsheetTitle": title,
            "sheets": sheets,
            "lastChecked": utcnow().isoformat(),
        }

    async def aclose(self):
        await self.client.aclose()
