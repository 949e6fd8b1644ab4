import pytest
from fastapi.testclient import TestClient

from config import Settings
from database import DataService
from main import create_app
from mock_store import MockStore


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def settings() -> Settings:
    return Settings(environment="development")


@pytest.fixture
def mock_store() -> MockStore:
    return MockStore()


@pytest.fixture
def service(settings: Settings, mock_store: MockStore) -> DataService:
    return DataService(settings, mock_store=mock_store)


@pytest.fixture
def client(settings: Settings, service: DataService) -> TestClient:
    return TestClient(create_app(settings, service))


@pytest.fixture
def order_payload() -> dict:
    return {
        "items": [{"productId": 1, "quantity": 2}],
        "customerInfo": {"name": "Priya Sharma", "email": "priya.sharma@gmail.com", "phone": "9876543210"},
        "shippingAddress": {
            "street": "12 MG Road",
            "city": "Bengaluru",
            "state": "Karnataka",
            "zipCode": "560001",
        },
        "paymentMethod": "cod",
    }
