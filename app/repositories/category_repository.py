from typing import List

from app.core.api import ApiClient
from app.models.category import Category


class CategoryRepository:
    def __init__(self, api: ApiClient):
        self.api = api

    async def get_all(self) -> List[Category]:
        data = await self.api.get("/api/categories")
        return Category.from_api_list(data)
