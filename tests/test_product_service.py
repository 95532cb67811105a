import pytest

from app.core.errors import ApiError, ForeignProductError, NotFoundError
from app.models import ProductForm
from app.services.product_service import ProductService
from app.utils import queries
from conftest import product_payload


def make_form(**overrides):
    values = {"name": "Sourdough loaf", "price": "250", "category_id": 2}
    values.update(overrides)
    return ProductForm(**values)


@pytest.mark.asyncio
async def test_list_store_products_is_cached(api, cache):
    api.responses["/api/products/store/3"] = [product_payload()]
    service = ProductService(api, cache)

    first = await service.list_store_products(3)
    second = await service.list_store_products(3)

    assert [p.id for p in first] == [10]
    assert first is second
    api.get.assert_awaited_once_with("/api/products/store/3")


@pytest.mark.asyncio
async def test_failed_create_leaves_cache_untouched(api, cache):
    """Неуспешная мутация не инвалидирует кэш"""

    api.responses["/api/products/store/3"] = [product_payload()]
    api.post.side_effect = ApiError("Invalid product data", status=400)
    service = ProductService(api, cache)
    await service.list_store_products(3)

    with pytest.raises(ApiError):
        await service.create_product(3, make_form())

    assert not cache.get_snapshot(queries.store_products(3)).is_stale


@pytest.mark.asyncio
async def test_create_invalidates_store_and_catalog(api, cache):
    api.responses["/api/products/store/3"] = [product_payload()]
    api.responses["/api/products"] = [product_payload()]
    api.post.return_value = product_payload(product_id=11)
    service = ProductService(api, cache)
    await service.list_store_products(3)
    await service.list_all_products()

    created = await service.create_product(3, make_form())

    assert created.id == 11
    path = api.post.await_args.args[0]
    assert path == "/api/products"
    assert api.post.await_args.kwargs["json"]["storeId"] == 3
    assert cache.get_snapshot(queries.store_products(3)).is_stale
    assert cache.get_snapshot(queries.ALL_PRODUCTS).is_stale


@pytest.mark.asyncio
async def test_delete_twice_is_not_an_error(api, cache):
    api.responses["/api/products/10"] = product_payload()
    service = ProductService(api, cache)

    assert await service.delete_product(10, 3) is True

    api.responses["/api/products/10"] = NotFoundError()
    assert await service.delete_product(10, 3) is False
    assert api.delete.await_count == 1


@pytest.mark.asyncio
async def test_delete_race_with_other_session(api, cache):
    """Товар удален между проверкой и DELETE - тоже не ошибка"""

    api.responses["/api/products/10"] = product_payload()
    api.delete.side_effect = NotFoundError()

    assert await ProductService(api, cache).delete_product(10, 3) is False


@pytest.mark.asyncio
async def test_delete_refuses_product_of_other_store(api, cache):
    api.responses["/api/products/55"] = product_payload(product_id=55, store_id=99)
    cache.set_data(queries.store_products(3), [])

    with pytest.raises(ForeignProductError):
        await ProductService(api, cache).delete_product(55, 3)

    api.delete.assert_not_called()
    assert not cache.get_snapshot(queries.store_products(3)).is_stale


@pytest.mark.asyncio
async def test_delete_server_error_propagates(api, cache):
    api.responses["/api/products/10"] = product_payload()
    api.delete.side_effect = ApiError("Internal error", status=500)
    cache.set_data(queries.store_products(3), [])

    with pytest.raises(ApiError):
        await ProductService(api, cache).delete_product(10, 3)

    assert not cache.get_snapshot(queries.store_products(3)).is_stale


@pytest.mark.asyncio
async def test_get_store_product_checks_store(api, cache):
    api.responses["/api/products/10"] = product_payload(store_id=4)
    service = ProductService(api, cache)

    with pytest.raises(NotFoundError):
        await service.get_store_product(3, 10)

    product = await service.get_store_product(4, 10)
    assert product.name == "Sourdough loaf"


@pytest.mark.asyncio
async def test_edit_without_changes_sends_same_fields(api, cache):
    """Открыть на редактирование и сохранить без изменений"""

    api.responses["/api/products/10"] = product_payload()
    api.put.return_value = product_payload()
    service = ProductService(api, cache)

    product = await service.get_store_product(3, 10)
    await service.update_product(10, 3, ProductForm.from_product(product))

    path = api.put.await_args.args[0]
    sent = api.put.await_args.kwargs["json"]
    original = product_payload()
    assert path == "/api/products/10"
    for key in (
        "name",
        "description",
        "price",
        "originalPrice",
        "categoryId",
        "storeId",
        "stock",
        "images",
        "isFastSell",
        "isOnOffer",
        "offerPercentage",
        "offerEndDate",
        "specifications",
        "features",
        "tags",
        "isActive",
    ):
        assert sent[key] == original[key], key


@pytest.mark.asyncio
async def test_malformed_server_payload_is_api_error(api, cache):
    api.responses["/api/products/store/3"] = [{"id": "not-a-number"}]

    with pytest.raises(ApiError, match="Unexpected product data"):
        await ProductService(api, cache).list_store_products(3)
