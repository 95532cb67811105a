from typing import List, Optional

from app.core.api import ApiClient
from app.core.errors import ForeignProductError, NotFoundError
from app.models.category import Category
from app.models.forms import ProductForm
from app.models.product import Product
from app.repositories.category_repository import CategoryRepository
from app.repositories.product_repository import ProductRepository
from app.utils import queries
from app.utils.cache import QueryCache
from app.utils.invalidation import MutationType, apply_invalidation
import logging

logger = logging.getLogger(__name__)


class ProductService:
    def __init__(self, api: ApiClient, cache: QueryCache):
        self.repo = ProductRepository(api)
        self.category_repo = CategoryRepository(api)
        self.cache = cache

    async def list_store_products(self, store_id: int) -> List[Product]:
        return await self.cache.fetch(
            queries.store_products(store_id),
            lambda: self.repo.get_by_store(store_id),
        )

    async def list_all_products(self) -> List[Product]:
        return await self.cache.fetch(queries.ALL_PRODUCTS, self.repo.get_all)

    async def list_categories(self) -> List[Category]:
        return await self.cache.fetch(queries.CATEGORIES, self.category_repo.get_all)

    async def get_product(self, product_id: int) -> Product:
        """Загрузить товар с сервера, минуя кэш"""
        return await self.repo.get_by_id(product_id)

    async def get_store_product(self, store_id: int, product_id: int) -> Product:
        """
        Товар магазина по ID.

        Raises:
            NotFoundError: Товара нет
            ForeignProductError: Товар принадлежит другому магазину
        """
        product = await self.get_product(product_id)
        if product.store_id != store_id:
            raise ForeignProductError(product_id)
        return product

    async def create_product(self, store_id: int, form: ProductForm) -> Optional[Product]:
        logger.info("Создание товара %s в магазине %s", form.name, store_id)
        product = await self.repo.create(form.to_payload(store_id))
        apply_invalidation(self.cache, MutationType.CREATE_PRODUCT, store_id=store_id)
        return product

    async def update_product(
        self, product_id: int, store_id: int, form: ProductForm
    ) -> Optional[Product]:
        logger.info("Обновление товара %s в магазине %s", product_id, store_id)
        product = await self.repo.update(product_id, form.to_payload(store_id))
        apply_invalidation(self.cache, MutationType.UPDATE_PRODUCT, store_id=store_id)
        return product

    async def delete_product(self, product_id: int, store_id: int) -> bool:
        """
        Удаляет товар магазина. Повторное удаление уже удаленного товара не ошибка.

        Returns:
            bool: True если товар удален сейчас, False если его уже не было

        Raises:
            ForeignProductError: Товар принадлежит другому магазину
        """
        deleted = True
        try:
            await self.get_store_product(store_id, product_id)
            await self.repo.delete(product_id)
        except ForeignProductError:
            logger.warning(
                "Отказ в удалении товара %s: не принадлежит магазину %s",
                product_id,
                store_id,
            )
            raise
        except NotFoundError:
            logger.info("Товар %s уже удален", product_id)
            deleted = False

        apply_invalidation(self.cache, MutationType.DELETE_PRODUCT, store_id=store_id)
        return deleted
