import pytest
import asyncio
from unittest.mock import AsyncMock

from app.utils.cache import QueryCache, QueryDescriptor, QueryOptions, get_cache_key
from app.utils import queries


def test_cache_key_generation():
    """Тест генерации ключей кэша"""

    key = get_cache_key("store", 1)
    assert key == "store:1"

    key = get_cache_key("/api/orders/store/3")
    assert key == "/api/orders/store/3"

    key = get_cache_key("complex", {"id": 1, "name": "test"}, ["a", "b", "c"])
    assert key == "complex:id:1-name:test:a-b-c"

    with pytest.raises(ValueError):
        get_cache_key()


def test_descriptor_prefix_matching():
    """Дескриптор без параметров задевает выборки того же пути с параметрами"""

    owner = queries.owner_stores(7)
    assert owner.matches(queries.ALL_STORES)
    assert not queries.ALL_STORES.matches(owner)
    assert not owner.matches(queries.owner_stores(8))
    assert not queries.store_products(1).matches(queries.store_products(2))

    assert QueryDescriptor.of("/x", b=2, a=1) == QueryDescriptor.of("/x", a=1, b=2)
    assert owner.key == "/api/stores:ownerId:7"


@pytest.mark.asyncio
async def test_fetch_uses_cache_until_stale(cache, clock):
    """Повторный fetch в пределах stale_time не идет в сеть"""

    fetcher = AsyncMock(return_value=["a"])
    descriptor = queries.ALL_STORES
    options = QueryOptions(stale_time=30)

    assert await cache.fetch(descriptor, fetcher, options) == ["a"]
    assert await cache.fetch(descriptor, fetcher, options) == ["a"]
    assert fetcher.await_count == 1

    clock.advance(31)
    fetcher.return_value = ["b"]
    assert await cache.fetch(descriptor, fetcher, options) == ["b"]
    assert fetcher.await_count == 2


@pytest.mark.asyncio
async def test_concurrent_fetches_are_coalesced(cache):
    """Одновременные запросы одного дескриптора - один сетевой вызов"""

    release = asyncio.Event()
    calls = 0

    async def fetcher():
        nonlocal calls
        calls += 1
        await release.wait()
        return [1, 2]

    first = asyncio.ensure_future(cache.fetch(queries.CATEGORIES, fetcher))
    second = asyncio.ensure_future(cache.fetch(queries.CATEGORIES, fetcher))
    await asyncio.sleep(0)
    assert cache.get_snapshot(queries.CATEGORIES).is_fetching

    release.set()
    assert await asyncio.gather(first, second) == [[1, 2], [1, 2]]
    assert calls == 1
    assert not cache.get_snapshot(queries.CATEGORIES).is_fetching


@pytest.mark.asyncio
async def test_failed_refetch_keeps_previous_data(cache):
    """При ошибке загрузки отдаются прежние данные, ошибка сохраняется"""

    descriptor = queries.store_orders(3)
    await cache.fetch(descriptor, AsyncMock(return_value=["order"]))
    cache.invalidate(descriptor)

    failing = AsyncMock(side_effect=RuntimeError("network down"))
    assert await cache.fetch(descriptor, failing) == ["order"]

    snapshot = cache.get_snapshot(descriptor)
    assert snapshot.data == ["order"]
    assert isinstance(snapshot.error, RuntimeError)
    assert snapshot.is_stale


@pytest.mark.asyncio
async def test_failed_first_fetch_raises(cache):
    failing = AsyncMock(side_effect=RuntimeError("network down"))
    with pytest.raises(RuntimeError):
        await cache.fetch(queries.ALL_PRODUCTS, failing)
    assert cache.get_data(queries.ALL_PRODUCTS, default="none") == "none"


@pytest.mark.asyncio
async def test_invalidate_by_prefix_and_pattern(cache):
    """Тест инвалидации по дескриптору-префиксу и по паттерну"""

    for descriptor in (
        queries.ALL_STORES,
        queries.owner_stores(7),
        queries.store_products(1),
        queries.store_products(2),
    ):
        cache.set_data(descriptor, [])

    assert cache.invalidate(queries.ALL_STORES) == 2
    assert cache.get_snapshot(queries.owner_stores(7)).is_stale
    assert not cache.get_snapshot(queries.store_products(1)).is_stale

    assert cache.invalidate(pattern="/api/products/store/*") == 2
    assert cache.get_snapshot(queries.store_products(2)).is_stale

    assert cache.invalidate(queries.store_orders(99)) == 0


@pytest.mark.asyncio
async def test_result_of_fetch_started_before_invalidation_stays_stale(cache):
    """Запрос, начатый до инвалидации, не делает запись снова свежей"""

    release = asyncio.Event()

    async def slow_fetcher():
        await release.wait()
        return ["old"]

    descriptor = queries.store_products(1)
    pending = asyncio.ensure_future(cache.fetch(descriptor, slow_fetcher))
    await asyncio.sleep(0)

    cache.invalidate(descriptor)
    release.set()
    assert await pending == ["old"]

    assert cache.get_snapshot(descriptor).is_stale
    fresh = AsyncMock(return_value=["new"])
    assert await cache.fetch(descriptor, fresh) == ["new"]
    fresh.assert_awaited_once()


@pytest.mark.asyncio
async def test_older_response_does_not_overwrite_newer(cache):
    """Последним записывается результат самого нового запроса"""

    old_release = asyncio.Event()
    new_release = asyncio.Event()

    async def old_fetcher():
        await old_release.wait()
        return ["old"]

    async def new_fetcher():
        await new_release.wait()
        return ["new"]

    descriptor = queries.store_orders(3)
    old_task = asyncio.ensure_future(cache.fetch(descriptor, old_fetcher))
    await asyncio.sleep(0)
    cache.invalidate(descriptor)
    new_task = asyncio.ensure_future(cache.fetch(descriptor, new_fetcher))
    await asyncio.sleep(0)

    new_release.set()
    assert await new_task == ["new"]
    old_release.set()
    await old_task

    assert cache.get_data(descriptor) == ["new"]
    assert not cache.get_snapshot(descriptor).is_stale


@pytest.mark.asyncio
async def test_refetch_on_focus_marks_only_subscribed_entries(cache):
    await cache.fetch(queries.store_orders(3), AsyncMock(return_value=[]), queries.ORDERS_OPTIONS)
    await cache.fetch(queries.ALL_STORES, AsyncMock(return_value=[]))

    refreshed = cache.refetch_on_focus()

    assert refreshed == [queries.store_orders(3)]
    assert cache.get_snapshot(queries.store_orders(3)).is_stale
    assert not cache.get_snapshot(queries.ALL_STORES).is_stale


@pytest.mark.asyncio
async def test_last_error_reported_until_successful_refetch(cache):
    """last_error отдает ошибку, пока вместо свежих данных показываются прежние"""

    descriptor = queries.CATEGORIES
    await cache.fetch(descriptor, AsyncMock(return_value=[1]))
    assert cache.last_error(descriptor) is None

    cache.invalidate(descriptor)
    await cache.fetch(descriptor, AsyncMock(side_effect=RuntimeError("network down")))
    error = cache.last_error(queries.ALL_STORES, descriptor)
    assert str(error) == "network down"

    cache.invalidate(descriptor)
    assert await cache.fetch(descriptor, AsyncMock(return_value=[2])) == [2]
    assert cache.last_error(descriptor) is None


@pytest.mark.asyncio
async def test_last_error_ignores_failed_first_load(cache):
    with pytest.raises(RuntimeError):
        await cache.fetch(queries.CATEGORIES, AsyncMock(side_effect=RuntimeError("x")))

    assert cache.last_error(queries.CATEGORIES) is None


def test_cache_constructs_without_running_loop():
    assert QueryCache().get_snapshot(queries.CATEGORIES) is None
