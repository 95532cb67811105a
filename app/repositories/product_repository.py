from typing import Any, Dict, List, Optional

from app.core.api import ApiClient
from app.models.product import Product


class ProductRepository:
    def __init__(self, api: ApiClient):
        self.api = api

    async def get_all(self) -> List[Product]:
        data = await self.api.get("/api/products")
        return Product.from_api_list(data)

    async def get_by_store(self, store_id: int) -> List[Product]:
        data = await self.api.get(f"/api/products/store/{store_id}")
        return Product.from_api_list(data)

    async def get_by_id(self, product_id: int) -> Product:
        data = await self.api.get(f"/api/products/{product_id}")
        return Product.from_api(data)

    async def create(self, payload: Dict[str, Any]) -> Optional[Product]:
        data = await self.api.post("/api/products", json=payload)
        return Product.from_api(data) if data else None

    async def update(self, product_id: int, payload: Dict[str, Any]) -> Optional[Product]:
        data = await self.api.put(f"/api/products/{product_id}", json=payload)
        return Product.from_api(data) if data else None

    async def delete(self, product_id: int) -> None:
        await self.api.delete(f"/api/products/{product_id}")
