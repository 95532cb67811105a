from typing import List, Optional

from app.core.api import ApiClient
from app.models.order import Order, OrderStatus
from app.repositories.order_repository import OrderRepository
from app.utils import queries
from app.utils.cache import QueryCache
from app.utils.invalidation import MutationType, apply_invalidation
import logging

logger = logging.getLogger(__name__)


class OrderService:
    def __init__(self, api: ApiClient, cache: QueryCache):
        self.repo = OrderRepository(api)
        self.cache = cache

    async def list_store_orders(self, store_id: int) -> List[Order]:
        return await self.cache.fetch(
            queries.store_orders(store_id),
            lambda: self.repo.get_by_store(store_id),
            queries.ORDERS_OPTIONS,
        )

    async def refresh_store_orders(self, store_id: int) -> List[Order]:
        """Принудительно перечитать заказы магазина (тик опроса)"""
        self.cache.invalidate(queries.store_orders(store_id))
        return await self.list_store_orders(store_id)

    async def update_status(
        self, order_id: int, status: str, store_id: int
    ) -> Optional[Order]:
        """
        Меняет статус заказа.

        Raises:
            ValueError: Неизвестный статус (до обращения к серверу)
        """
        try:
            status = OrderStatus(status.strip().lower()).value
        except ValueError:
            allowed = ", ".join(s.value for s in OrderStatus)
            raise ValueError(f"Unknown status '{status}'. Use one of: {allowed}")

        logger.info("Статус заказа %s -> %s", order_id, status)
        order = await self.repo.update_status(order_id, status)
        apply_invalidation(
            self.cache, MutationType.UPDATE_ORDER_STATUS, store_id=store_id
        )
        return order
