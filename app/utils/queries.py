"""
Дескрипторы запросов чтения и их настройки.
"""

from app.core.config import ORDERS_POLL_INTERVAL
from app.utils.cache import QueryDescriptor, QueryOptions

ALL_STORES = QueryDescriptor.of("/api/stores")
ALL_PRODUCTS = QueryDescriptor.of("/api/products")
CATEGORIES = QueryDescriptor.of("/api/categories")


def owner_stores(owner_id: int) -> QueryDescriptor:
    return QueryDescriptor.of("/api/stores", ownerId=owner_id)


def store_products(store_id: int) -> QueryDescriptor:
    return QueryDescriptor.of(f"/api/products/store/{store_id}")


def store_orders(store_id: int) -> QueryDescriptor:
    return QueryDescriptor.of(f"/api/orders/store/{store_id}")


ORDERS_OPTIONS = QueryOptions(
    refetch_interval=ORDERS_POLL_INTERVAL, refetch_on_focus=True
)