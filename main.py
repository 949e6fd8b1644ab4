import hashlib
import json
import logging
import time
import traceback
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from http import HTTPStatus
from typing import Literal, Optional

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Path, Query, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from catalog import CatalogQuery, list_categories, query_catalog, search_suggestions
from config import Settings, configure_logging
from database import DataService
from errors import InvalidInputError, NotFoundError, StorefrontError
from formatting import validate_product
from orders import ORDER_ID_PREFIX, build_tracking, estimated_delivery, place_order
from schemas import OrderCreate, StockCheckRequest

logger = logging.getLogger(__name__)

API_VERSION = "1.0.0"

AVAILABLE_ENDPOINTS = [
    "GET /",
    "GET /health",
    "GET /api/products",
    "GET /api/products/:id",
    "GET /api/products/categories/list",
    "GET /api/products/search/suggestions",
    "POST /api/orders",
    "POST /api/orders/validate-stock",
]

router = APIRouter()


# ----------------------- Utils -----------------------
def timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_data_service(request: Request) -> DataService:
    return request.app.state.data_service


def require_development_access(settings: Settings = Depends(get_settings)) -> Settings:
    if settings.is_production:
        raise HTTPException(status_code=403, detail="Mock data access is only available in development mode")
    return settings


def etag_for(payload) -> str:
    digest = hashlib.sha1(json.dumps(payload, sort_keys=True).encode()).hexdigest()
    return f'"{digest}"'


# ----------------------- Health -----------------------
@router.get("/")
def root():
    return {
        "message": "Welcome to EyeLura Backend API",
        "version": API_VERSION,
        "endpoints": {
            "health": "/health",
            "products": "/api/products",
            "orders": "/api/orders",
        },
    }


@router.get("/health")
def health(request: Request, settings: Settings = Depends(get_settings)):
    return {
        "status": "OK",
        "timestamp": timestamp(),
        "uptime": round(time.monotonic() - request.app.state.started_at, 3),
        "environment": settings.environment,
        "version": API_VERSION,
    }


# ----------------------- Products -----------------------
@router.get("/api/products")
async def list_products(
    response: Response,
    category: Optional[str] = None,
    min_price: Optional[float] = Query(None, alias="minPrice", ge=0),
    max_price: Optional[float] = Query(None, alias="maxPrice", ge=0),
    in_stock: Optional[bool] = Query(None, alias="inStock"),
    search: Optional[str] = Query(None, max_length=100),
    limit: int = Query(50, ge=1, le=100),
    offset: int = Query(0, ge=0),
    sort_by: Literal["name", "price", "stock", "createdAt"] = Query("name", alias="sortBy"),
    sort_order: Literal["asc", "desc"] = Query("asc", alias="sortOrder"),
    service: DataService = Depends(get_data_service),
):
    query = CatalogQuery(
        category=category,
        min_price=min_price,
        max_price=max_price,
        in_stock=in_stock,
        search=search,
        limit=limit,
        offset=offset,
        sort_by=sort_by,
        sort_order=sort_order,
    )
    page = query_catalog(await service.store.get_products(), query)
    data = [p.to_json() for p in page.items]

    response.headers["Cache-Control"] = "public, max-age=300"
    response.headers["ETag"] = etag_for(data)
    return {
        "success": True,
        "data": data,
        "pagination": page.pagination(),
        "filters": query.filters(),
        "sorting": {"sortBy": query.sort_by, "sortOrder": query.sort_order},
        "timestamp": timestamp(),
    }


@router.get("/api/products/categories/list")
async def product_categories(service: DataService = Depends(get_data_service)):
    categories = list_categories(await service.store.get_products())
    return {"success": True, "data": categories, "total": len(categories), "timestamp": timestamp()}


@router.get("/api/products/search/suggestions")
async def product_suggestions(q: Optional[str] = None, service: DataService = Depends(get_data_service)):
    if not q or len(q) < 2:
        return {"success": True, "data": [], "message": "Query too short for suggestions"}
    suggestions = search_suggestions(await service.store.get_products(), q)
    return {"success": True, "data": suggestions, "query": q, "timestamp": timestamp()}


@router.get("/api/products/health/check")
async def products_health(service: DataService = Depends(get_data_service)):
    status = await service.get_connection_status()
    return {"success": status["connected"], "data": status, "timestamp": timestamp()}


@router.get("/api/products/{product_id}")
async def get_product(
    response: Response,
    product_id: int = Path(..., ge=1),
    service: DataService = Depends(get_data_service),
):
    product = await service.store.get_product_by_id(product_id)
    if product is None:
        raise NotFoundError(
            f"Product with ID {product_id} does not exist",
            error="Product not found",
            productId=product_id,
        )

    valid, problems = validate_product(product)
    if not valid:
        logger.warning("Product %s has validation issues: %s", product_id, problems)

    data = product.to_json()
    response.headers["Cache-Control"] = "public, max-age=600"
    response.headers["ETag"] = f'"product-{product.id}-{data["updatedAt"]}"'
    return {"success": True, "data": data, "timestamp": timestamp()}


# ----------------------- Orders -----------------------
@router.post("/api/orders", status_code=201)
async def create_order(body: OrderCreate, service: DataService = Depends(get_data_service)):
    order = await place_order(service, body)
    return {
        "success": True,
        "message": "Order created successfully",
        "data": {
            "orderId": order.order_id,
            "status": order.status,
            "subtotal": order.subtotal,
            "shippingCost": order.shipping_cost,
            "totalAmount": order.total_amount,
            "estimatedDelivery": estimated_delivery(order.payment_method),
            "items": [item.to_json() for item in order.items],
            "customerInfo": {"name": order.customer_name, "email": order.customer_email},
            "tracking": build_tracking(order.payment_method),
        },
        "timestamp": timestamp(),
    }


@router.post("/api/orders/validate-stock")
async def validate_stock(body: StockCheckRequest, service: DataService = Depends(get_data_service)):
    validation = await service.store.validate_stock(body.items)
    return {
        "success": validation.valid,
        "data": validation.to_json(),
        "timestamp": timestamp(),
    }


@router.get("/api/orders/health/check")
async def orders_health(service: DataService = Depends(get_data_service)):
    status = await service.get_connection_status()
    return {
        "success": True,
        "data": {
            **status,
            "orderSystem": "operational",
            "features": {
                "createOrder": True,
                "stockValidation": True,
                "inventoryUpdate": True,
                "orderLogging": True,
            },
        },
        "timestamp": timestamp(),
    }


@router.get("/api/orders/mock/list")
async def mock_orders(
    settings: Settings = Depends(require_development_access),
    service: DataService = Depends(get_data_service),
):
    orders = await service.get_orders()
    return {"success": True, "data": orders, "count": len(orders), "timestamp": timestamp()}


@router.post("/api/orders/mock/reset")
async def mock_reset(
    settings: Settings = Depends(require_development_access),
    service: DataService = Depends(get_data_service),
):
    reset = await service.reset_data()
    message = "Mock data reset to initial state" if reset else "Active data source does not support reset"
    return {"success": reset, "message": message, "timestamp": timestamp()}


@router.get("/api/orders/{order_id}")
async def get_order(order_id: str, service: DataService = Depends(get_data_service)):
    if not order_id.startswith(f"{ORDER_ID_PREFIX}-"):
        raise InvalidInputError(
            "Order ID must be in the format EYE-XXXXXXXXX",
            error="Invalid order ID",
        )
    order = await service.store.get_order(order_id)
    if order is None:
        raise NotFoundError(f"Order {order_id} does not exist", error="Order not found", orderId=order_id)
    return {"success": True, "data": order, "timestamp": timestamp()}


# ----------------------- Errors -----------------------
async def storefront_error_handler(request: Request, exc: StorefrontError):
    settings: Settings = request.app.state.settings
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    body = exc.to_dict(expose=settings.is_development)
    return JSONResponse(status_code=exc.status_code, content={**body, "timestamp": timestamp()})


async def request_validation_handler(request: Request, exc: RequestValidationError):
    details = []
    for err in exc.errors():
        loc = list(err.get("loc", ()))
        if loc and loc[0] in ("body", "query", "path"):
            loc = loc[1:]
        details.append({"field": ".".join(str(part) for part in loc), "message": err.get("msg", "")})
    return JSONResponse(
        status_code=400,
        content={
            "error": "Invalid request data",
            "message": "; ".join(d["message"] for d in details) or "Request validation failed",
            "details": details,
            "timestamp": timestamp(),
        },
    )


async def http_error_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code == 404 and exc.detail == "Not Found":
        content = {
            "error": "Endpoint not found",
            "message": f"The requested endpoint {request.method} {request.url.path} does not exist",
            "availableEndpoints": AVAILABLE_ENDPOINTS,
        }
    else:
        content = {"error": HTTPStatus(exc.status_code).phrase, "message": exc.detail}
    return JSONResponse(
        status_code=exc.status_code,
        content={**content, "timestamp": timestamp()},
        headers=getattr(exc, "headers", None),
    )


async def unhandled_error_handler(request: Request, exc: Exception):
    settings: Settings = request.app.state.settings
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    content = {
        "error": "Internal server error",
        "message": str(exc) if settings.is_development else "Internal server error",
        "timestamp": timestamp(),
    }
    if settings.is_development:
        content["stack"] = traceback.format_exception(type(exc), exc, exc.__traceback__)
    return JSONResponse(status_code=500, content=content)


# ----------------------- App -----------------------
def create_app(settings: Optional[Settings] = None, service: Optional[DataService] = None) -> FastAPI:
    settings = settings or Settings.from_env()
    configure_logging(settings)
    service = service or DataService(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("EyeLura Backend API starting (environment: %s)", settings.environment)
        yield
        logger.info("Shutting down, closing data source")
        await service.aclose()

    app = FastAPI(title="EyeLura Backend API", version=API_VERSION, lifespan=lifespan)
    app.state.settings = settings
    app.state.data_service = service
    app.state.started_at = time.monotonic()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", "X-Requested-With"],
    )

    app.add_exception_handler(StorefrontError, storefront_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    app.include_router(router)
    return app


if __name__ == "__main__":
    import uvicorn
    app = create_app()
    uvicorn.run(app, host="0.0.0.0", port=app.state.settings.port)
