import asyncio
import logging
import sys
from pathlib import Path
from aiogram import Bot, Dispatcher
from aiogram.fsm.storage.redis import RedisStorage
from aiogram.types import ErrorEvent

# Добавляем корень проекта в PYTHONPATH
sys.path.append(str(Path(__file__).resolve().parent.parent))

from app.core.api import ApiClient
from app.core.config import API_BASE_URL, API_TIMEOUT, BOT_TOKEN, REDIS_DSN
from app.handlers.auth_handler import router as auth_router
from app.handlers.catalog_handler import router as catalog_router
from app.handlers.dashboard_handler import router as dashboard_router
from app.handlers.order_handler import router as order_router
from app.handlers.store_handler import router as store_router
from app.handlers.product_handler import router as product_router
from app.middleware import FocusRefetchMiddleware
from app.services.location_service import LocationService
from app.utils.cache import QueryCache
from app.utils.scheduler import OrderPoller


async def main():
    # Используем Redis для хранения состояний между перезапусками
    storage = RedisStorage.from_url(REDIS_DSN)

    bot = Bot(token=BOT_TOKEN)
    # Удаляем все вебхуки перед началом polling
    await bot.delete_webhook(drop_pending_updates=True)

    api = ApiClient(API_BASE_URL, timeout=API_TIMEOUT)
    cache = QueryCache()
    poller = OrderPoller(bot, api, cache)
    locations = LocationService()

    # api, cache, poller и locations попадают в обработчики по имени аргумента
    dp = Dispatcher(
        storage=storage, api=api, cache=cache, poller=poller, locations=locations
    )

    dp.message.outer_middleware(FocusRefetchMiddleware(cache))

    # Регистрация роутеров: команды из auth работают в любом состоянии формы
    dp.include_router(auth_router)
    dp.include_router(catalog_router)
    dp.include_router(dashboard_router)
    dp.include_router(order_router)
    dp.include_router(store_router)
    dp.include_router(product_router)

    # Глобальный обработчик ошибок aiogram v3
    async def global_error_handler(event: ErrorEvent) -> bool:
        # Логируем ошибку
        logging.getLogger("aiogram").error(
            "Exception %s, update %s", event.exception, event.update
        )
        return True

    dp.errors.register(global_error_handler)

    poller.start()
    try:
        await dp.start_polling(bot)
    finally:
        poller.shutdown()
        await api.close()
        await bot.session.close()


if __name__ == "__main__":
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    asyncio.run(main())
