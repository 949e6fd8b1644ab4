from typing import Any, Dict, List, Optional

from errors import UpstreamUnavailable
from sheets_store import SheetsAPIError


class FakeSheetsClient:
    def __init__(self, values: Optional[Dict[str, List[List[Any]]]] = None, fail_ranges=()):
        self.values = values or {}
        self.fail_ranges = set(fail_ranges)
        self.updates: List[tuple] = []
        self.appends: List[tuple] = []
        self.closed = False

    async def get_values(self, range_: str):
        if range_ in self.fail_ranges:
            raise SheetsAPIError(400, f"Unable to parse range: {range_}")
        return self.values.get(range_, [])

    async def update_values(self, range_: str, values):
        self.updates.append((range_, values))
        return {}

    async def append_values(self, range_: str, values):
        self.appends.append((range_, values))
        return {}

    async def get_metadata(self, fields: str):
        if "metadata" in self.fail_ranges:
            raise UpstreamUnavailable("connection refused")
        if "metadata-malformed" in self.fail_ranges:
            return {"properties": {"title": "EyeLura Inventory"}, "sheets": [{}]}
        return {
            "properties": {"title": "EyeLura Inventory"},
            "sheets": [{"properties": {"title": "Products"}}, {"properties": {"title": "Orders"}}],
        }

    async def aclose(self):
        self.closed = True
