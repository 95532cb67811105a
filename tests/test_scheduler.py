import pytest
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger
from unittest.mock import AsyncMock
from aiogram import Bot

from app.core.errors import ApiError
from app.utils.scheduler import OrderPoller
from conftest import order_payload


@pytest.fixture
def fake_bot():
    bot = AsyncMock(spec=Bot)
    bot.send_message = AsyncMock()
    return bot


def test_watch_schedules_interval_job(fake_bot, api, cache):
    """Открытие дашборда включает опрос с заданным интервалом"""

    poller = OrderPoller(fake_bot, api, cache, interval=30, scheduler=AsyncIOScheduler())

    assert poller.watch(555, 3, [1, 2])
    assert poller.is_watching(555)

    job = poller.scheduler.get_job("orders:555")
    assert isinstance(job.trigger, IntervalTrigger)
    assert job.trigger.interval.total_seconds() == 30
    assert job.args == (555, 3)

    assert poller.unwatch(555)
    assert not poller.is_watching(555)
    assert not poller.unwatch(555)


def test_zero_interval_disables_polling(fake_bot, api, cache):
    poller = OrderPoller(fake_bot, api, cache, interval=0, scheduler=AsyncIOScheduler())
    assert not poller.watch(555, 3)
    assert not poller.is_watching(555)


def test_default_scheduler_timezone(fake_bot, api, cache):
    poller = OrderPoller(fake_bot, api, cache)
    tz = poller.scheduler.timezone
    assert getattr(tz, "zone", str(tz)) == "Asia/Kathmandu"


@pytest.mark.asyncio
async def test_poll_notifies_about_new_pending_orders(fake_bot, api, cache):
    api.responses["/api/orders/store/3"] = [
        order_payload(order_id=1),
        order_payload(order_id=2, total="1234.5"),
        order_payload(order_id=3, status="shipped"),
    ]
    poller = OrderPoller(fake_bot, api, cache, interval=30, scheduler=AsyncIOScheduler())
    poller.watch(555, 3, known_order_ids=[1])

    await poller.poll_orders(555, 3)

    fake_bot.send_message.assert_awaited_once()
    chat_id, text = fake_bot.send_message.await_args.args
    assert chat_id == 555
    assert "#2" in text and "₹1,234.5" in text

    # Повторный тик без новых заказов молчит
    await poller.poll_orders(555, 3)
    fake_bot.send_message.assert_awaited_once()
    assert api.get.await_count == 2


@pytest.mark.asyncio
async def test_poll_after_unwatch_only_refreshes_cache(fake_bot, api, cache):
    api.responses["/api/orders/store/3"] = [order_payload(order_id=9)]
    poller = OrderPoller(fake_bot, api, cache, interval=30, scheduler=AsyncIOScheduler())
    poller.watch(555, 3)
    poller.unwatch(555)

    await poller.poll_orders(555, 3)

    fake_bot.send_message.assert_not_called()


@pytest.mark.asyncio
async def test_poll_errors_are_logged_not_raised(fake_bot, api, cache):
    api.responses["/api/orders/store/3"] = ApiError("Server error", status=500)
    poller = OrderPoller(fake_bot, api, cache, interval=30, scheduler=AsyncIOScheduler())
    poller.watch(555, 3)

    await poller.poll_orders(555, 3)

    fake_bot.send_message.assert_not_called()


@pytest.mark.asyncio
async def test_send_failure_does_not_stop_poll(fake_bot, api, cache):
    api.responses["/api/orders/store/3"] = [
        order_payload(order_id=1),
        order_payload(order_id=2),
    ]
    fake_bot.send_message.side_effect = [Exception("blocked"), None]
    poller = OrderPoller(fake_bot, api, cache, interval=30, scheduler=AsyncIOScheduler())
    poller.watch(555, 3)

    await poller.poll_orders(555, 3)

    assert fake_bot.send_message.await_count == 2
