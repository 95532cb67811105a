from typing import List, Optional

from app.core.api import ApiClient
from app.models.order import Order


class OrderRepository:
    def __init__(self, api: ApiClient):
        self.api = api

    async def get_by_store(self, store_id: int) -> List[Order]:
        data = await self.api.get(f"/api/orders/store/{store_id}")
        return Order.from_api_list(data)

    async def update_status(self, order_id: int, status: str) -> Optional[Order]:
        data = await self.api.put(f"/api/orders/{order_id}/status", json={"status": status})
        return Order.from_api(data) if data else None
