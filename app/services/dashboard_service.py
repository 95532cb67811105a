from dataclasses import dataclass, field
from typing import List, Optional

from app.core.api import ApiClient
from app.models.order import Order
from app.models.product import Product
from app.models.store import Store
from app.services.order_service import OrderService
from app.services.product_service import ProductService
from app.services.store_service import StoreService
from app.utils.cache import QueryCache
from app.utils.stats import DashboardStats, compute_dashboard_stats, recent_orders


@dataclass
class DashboardView:
    store: Optional[Store]
    products: List[Product] = field(default_factory=list)
    orders: List[Order] = field(default_factory=list)

    @property
    def stats(self) -> DashboardStats:
        # Пересчитывается при каждом обращении из текущего снимка
        return compute_dashboard_stats(self.orders, self.products)

    @property
    def recent_orders(self) -> List[Order]:
        return recent_orders(self.orders, 5)


class DashboardService:
    def __init__(self, api: ApiClient, cache: QueryCache):
        self.stores = StoreService(api, cache)
        self.products = ProductService(api, cache)
        self.orders = OrderService(api, cache)

    async def load(self, owner_id: int) -> DashboardView:
        """Дашборд владельца; без магазина товары и заказы не запрашиваются"""
        store = await self.stores.get_current_store(owner_id)
        if store is None:
            return DashboardView(store=None)

        products = await self.products.list_store_products(store.id)
        orders = await self.orders.list_store_orders(store.id)
        return DashboardView(store=store, products=products, orders=orders)
