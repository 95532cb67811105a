import pytest

from app.core.errors import ApiError
from app.services.order_service import OrderService
from app.utils import queries
from conftest import order_payload


@pytest.mark.asyncio
async def test_unknown_status_rejected_before_request(api, cache):
    service = OrderService(api, cache)

    with pytest.raises(ValueError) as exc_info:
        await service.update_status(100, "lost", 3)

    assert "pending" in str(exc_info.value)
    api.put.assert_not_called()


@pytest.mark.asyncio
async def test_status_change_invalidates_store_orders(api, cache):
    api.responses["/api/orders/store/3"] = [order_payload()]
    api.put.return_value = order_payload(status="shipped")
    service = OrderService(api, cache)
    await service.list_store_orders(3)

    order = await service.update_status(100, " Shipped ", 3)

    api.put.assert_awaited_once_with(
        "/api/orders/100/status", json={"status": "shipped"}
    )
    assert order.status == "shipped"
    assert cache.get_snapshot(queries.store_orders(3)).is_stale


@pytest.mark.asyncio
async def test_failed_status_change_keeps_cache(api, cache):
    api.responses["/api/orders/store/3"] = [order_payload()]
    api.put.side_effect = ApiError("Server error", status=500)
    service = OrderService(api, cache)
    await service.list_store_orders(3)

    with pytest.raises(ApiError):
        await service.update_status(100, "shipped", 3)

    assert not cache.get_snapshot(queries.store_orders(3)).is_stale


@pytest.mark.asyncio
async def test_orders_refetch_on_focus_and_refresh(api, cache):
    api.responses["/api/orders/store/3"] = [order_payload()]
    service = OrderService(api, cache)
    await service.list_store_orders(3)

    assert cache.refetch_on_focus() == [queries.store_orders(3)]

    api.responses["/api/orders/store/3"] = [order_payload(), order_payload(order_id=101)]
    orders = await service.list_store_orders(3)
    assert [o.id for o in orders] == [100, 101]

    api.responses["/api/orders/store/3"] = []
    assert await service.refresh_store_orders(3) == []
    assert api.get.await_count == 3
