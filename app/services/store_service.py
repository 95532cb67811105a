from typing import List, Optional

from app.core.api import ApiClient
from app.core.errors import NotFoundError
from app.models.forms import StoreForm
from app.models.store import Store
from app.repositories.store_repository import StoreRepository
from app.utils import queries
from app.utils.cache import QueryCache
from app.utils.invalidation import MutationType, apply_invalidation
from app.utils.stats import filter_stores, stores_for_owner
import logging

logger = logging.getLogger(__name__)


class StoreService:
    def __init__(self, api: ApiClient, cache: QueryCache):
        self.repo = StoreRepository(api)
        self.cache = cache

    async def list_stores(self) -> List[Store]:
        return await self.cache.fetch(queries.ALL_STORES, self.repo.get_all)

    async def search_stores(self, query: Optional[str]) -> List[Store]:
        """Поиск по каталогу магазинов для посетителей"""
        return filter_stores(await self.list_stores(), query)

    async def get_owner_stores(self, owner_id: int) -> List[Store]:
        """
        Магазины владельца.

        Сначала используется выборка /api/stores/owner/:id; если сервер ее не
        поддерживает (404), список фильтруется на клиенте из /api/stores.
        """

        async def fetch_owner_stores() -> List[Store]:
            try:
                return await self.repo.get_by_owner(owner_id)
            except NotFoundError:
                logger.info(
                    "Нет выборки магазинов по владельцу %s, фильтруем полный список",
                    owner_id,
                )
                return stores_for_owner(await self.repo.get_all(), owner_id)

        return await self.cache.fetch(queries.owner_stores(owner_id), fetch_owner_stores)

    async def get_current_store(self, owner_id: int) -> Optional[Store]:
        """Один магазин на владельца: берется первый найденный"""
        stores = await self.get_owner_stores(owner_id)
        return stores[0] if stores else None

    async def create_store(self, form: StoreForm, owner_id: int) -> Optional[Store]:
        logger.info("Создание магазина %s для владельца %s", form.name, owner_id)
        store = await self.repo.create(form.to_payload(owner_id))
        apply_invalidation(self.cache, MutationType.CREATE_STORE, owner_id=owner_id)
        return store
