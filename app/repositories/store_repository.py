from typing import Any, Dict, List, Optional

from app.core.api import ApiClient
from app.models.store import Store


class StoreRepository:
    def __init__(self, api: ApiClient):
        self.api = api

    async def get_all(self) -> List[Store]:
        data = await self.api.get("/api/stores")
        return Store.from_api_list(data)

    async def get_by_owner(self, owner_id: int) -> List[Store]:
        data = await self.api.get(f"/api/stores/owner/{owner_id}")
        return Store.from_api_list(data)

    async def create(self, payload: Dict[str, Any]) -> Optional[Store]:
        data = await self.api.post("/api/stores", json=payload)
        return Store.from_api(data) if data else None
