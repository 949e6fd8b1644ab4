"""
Data source selection for the storefront.

``DataService`` picks the Google Sheets store when all credentials are
configured and the in-memory mock store otherwise. Callers go through
``service.store``; the service itself only owns the choice, the switch
operations and the per-product reservation locks.
"""
import asyncio
import logging
from contextlib import AsyncExitStack, asynccontextmanager
from typing import Any, Dict, Iterable, List, Optional

from base_store import DataStore
from config import SHEETS_ENV_VARS, Settings
from mock_store import MockStore
from sheets_store import SheetsStore

logger = logging.getLogger(__name__)


class DataService:
    def __init__(
        self,
        settings: Settings,
        mock_store: Optional[MockStore] = None,
        sheets_store: Optional[SheetsStore] = None,
    ):
        self.settings = settings
        self._mock_store = mock_store
        self._sheets_store = sheets_store
        self._locks: Dict[int, asyncio.Lock] = {}

        self.use_sheets = self._sheets_available()
        self.store: DataStore = self._sheets() if self.use_sheets else self._mock()
        logger.info("Data Service initialized with: %s", self.store.name)

    def _sheets_available(self) -> bool:
        missing = self.settings.missing_sheets_settings()
        if not missing:
            return True
        logger.warning("Google Sheets credentials not configured, using mock data")
        for name in SHEETS_ENV_VARS:
            state = "missing" if name in missing else "ok"
            logger.warning("  %s: %s", name, state)
        return False

    def _mock(self) -> MockStore:
        if self._mock_store is None:
            self._mock_store = MockStore()
        return self._mock_store

    def _sheets(self) -> SheetsStore:
        if self._sheets_store is None:
            self._sheets_store = SheetsStore.from_settings(self.settings)
        return self._sheets_store

    def data_source_info(self) -> Dict[str, Any]:
        return {
            "type": "Google Sheets" if self.use_sheets else "Mock Data",
            "service": "Google Sheets API" if self.use_sheets else "In-Memory Mock Service",
            "realTime": self.use_sheets,
            "persistent": self.use_sheets,
        }

    def switch_to_sheets(self) -> bool:
        """Development helper. Data already in the mock store is not carried over."""
        if not self._sheets_available():
            logger.warning("Cannot switch to Google Sheets - credentials not configured")
            return False
        self.use_sheets = True
        self.store = self._sheets()
        logger.info("Switched to Google Sheets service")
        return True

    def switch_to_mock(self):
        self.use_sheets = False
        self.store = self._mock()
        logger.info("Switched to Mock Data service")

    async def get_connection_status(self) -> Dict[str, Any]:
        status = await self.store.get_connection_status()
        return {**status, "dataSource": self.data_source_info()}

    async def get_orders(self) -> List[Dict[str, Any]]:
        return await self.store.get_orders()

    async def reset_data(self) -> bool:
        return await self.store.reset_data()

    @asynccontextmanager
    async def reservation(self, product_ids: Iterable[int]):
        """Hold the stock locks of the given products.

        Locks are taken in ascending id order so two orders sharing products
        cannot deadlock. This serialises stock changes inside one process only.
        """
        async with AsyncExitStack() as stack:
            for product_id in sorted(set(product_ids)):
                lock = self._locks.setdefault(product_id, asyncio.Lock())
                await stack.enter_async_context(lock)
            yield

    async def aclose(self):
        for store in (self._mock_store, self._sheets_store):
            if store is not None:
                await store.aclose()
