"""
Таблица инвалидации: какие дескрипторы устаревают после каждой мутации.

Зависимости не отслеживаются автоматически: каждая мутация обязана иметь
запись в INVALIDATION_TABLE (это проверяется тестом), а сервисы вызывают
apply_invalidation только после успешного HTTP-вызова.
"""

import logging
from enum import Enum
from typing import Any, Callable, Dict, List

from app.utils import queries
from app.utils.cache import QueryCache, QueryDescriptor

logger = logging.getLogger(__name__)


class MutationType(str, Enum):
    CREATE_PRODUCT = "create_product"
    UPDATE_PRODUCT = "update_product"
    DELETE_PRODUCT = "delete_product"
    CREATE_STORE = "create_store"
    UPDATE_ORDER_STATUS = "update_order_status"


DescriptorBuilder = Callable[[Dict[str, Any]], QueryDescriptor]


def _store_products(ctx: Dict[str, Any]) -> QueryDescriptor:
    return queries.store_products(ctx["store_id"])


def _all_products(ctx: Dict[str, Any]) -> QueryDescriptor:
    return queries.ALL_PRODUCTS


def _all_stores(ctx: Dict[str, Any]) -> QueryDescriptor:
    # Префикс: задевает и выборки по ownerId
    return queries.ALL_STORES


def _store_orders(ctx: Dict[str, Any]) -> QueryDescriptor:
    return queries.store_orders(ctx["store_id"])


INVALIDATION_TABLE: Dict[MutationType, List[DescriptorBuilder]] = {
    MutationType.CREATE_PRODUCT: [_store_products, _all_products],
    MutationType.UPDATE_PRODUCT: [_store_products, _all_products],
    MutationType.DELETE_PRODUCT: [_store_products, _all_products],
    MutationType.CREATE_STORE: [_all_stores],
    MutationType.UPDATE_ORDER_STATUS: [_store_orders],
}


def descriptors_for(mutation: MutationType, **ctx: Any) -> List[QueryDescriptor]:
    try:
        builders = INVALIDATION_TABLE[mutation]
    except KeyError:
        raise KeyError(f"No invalidation rule for mutation {mutation!r}")
    return [build(ctx) for build in builders]


def apply_invalidation(cache: QueryCache, mutation: MutationType, **ctx: Any) -> int:
    """
    Инвалидирует дескрипторы, затронутые мутацией.

    Returns:
        int: Количество записей кэша, помеченных устаревшими
    """
    total = 0
    for descriptor in descriptors_for(mutation, **ctx):
        total += cache.invalidate(descriptor)
    logger.info("Мутация %s: инвалидировано записей: %s", mutation.value, total)
    return total
