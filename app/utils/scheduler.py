import logging
from typing import Dict, Iterable, Optional, Set

import pytz
from aiogram import Bot
from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from app.core.api import ApiClient
from app.core.config import STORE_TIMEZONE
from app.models.order import OrderStatus
from app.services.order_service import OrderService
from app.utils.cache import QueryCache
from app.utils.queries import ORDERS_OPTIONS
from app.utils.stats import format_amount

logger = logging.getLogger(__name__)


class OrderPoller:
    """
    Периодически перечитывает заказы магазина, пока у владельца открыт дашборд.

    Одна задача APScheduler на чат. Задачу нужно снять через unwatch() при
    выходе из дашборда, иначе опрос продолжится.
    """

    def __init__(
        self,
        bot: Bot,
        api: ApiClient,
        cache: QueryCache,
        interval: int = ORDERS_OPTIONS.refetch_interval,
        scheduler: Optional[AsyncIOScheduler] = None,
    ):
        self.bot = bot
        self.api = api
        self.cache = cache
        self.interval = interval
        self.scheduler = scheduler or AsyncIOScheduler(
            timezone=pytz.timezone(STORE_TIMEZONE)
        )
        self._known_orders: Dict[int, Set[int]] = {}

    @staticmethod
    def job_id(chat_id: int) -> str:
        return f"orders:{chat_id}"

    def start(self) -> None:
        try:
            self.scheduler.start()
            logger.info("Планировщик опроса заказов запущен")
        except RuntimeError as e:
            logger.warning(f"Планировщик уже запущен: {e}")

    def shutdown(self) -> None:
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)

    def is_watching(self, chat_id: int) -> bool:
        return self.scheduler.get_job(self.job_id(chat_id)) is not None

    def watch(
        self, chat_id: int, store_id: int, known_order_ids: Iterable[int] = ()
    ) -> bool:
        """
        Включает опрос заказов для чата.

        Returns:
            bool: False если опрос отключен (interval == 0)
        """
        if self.interval <= 0:
            return False

        self._known_orders[chat_id] = set(known_order_ids)
        self.scheduler.add_job(
            self.poll_orders,
            trigger=IntervalTrigger(seconds=self.interval),
            args=[chat_id, store_id],
            id=self.job_id(chat_id),
            replace_existing=True,
        )
        logger.info(
            "Опрос заказов магазина %s для чата %s каждые %s с",
            store_id,
            chat_id,
            self.interval,
        )
        return True

    def unwatch(self, chat_id: int) -> bool:
        self._known_orders.pop(chat_id, None)
        try:
            self.scheduler.remove_job(self.job_id(chat_id))
        except JobLookupError:
            return False
        logger.info("Опрос заказов для чата %s остановлен", chat_id)
        return True

    async def poll_orders(self, chat_id: int, store_id: int) -> None:
        """Тик опроса: ошибки логируются и не прерывают расписание"""
        try:
            orders = await OrderService(self.api, self.cache).refresh_store_orders(
                store_id
            )
        except Exception as e:
            logger.error(f"Ошибка опроса заказов магазина {store_id}: {e}")
            return

        # Дашборд закрыли, пока шел запрос: данные остаются только в кэше
        if chat_id not in self._known_orders:
            return

        known = self._known_orders[chat_id]
        new_orders = [order for order in orders if order.id not in known]
        known.update(order.id for order in new_orders)

        for order in new_orders:
            if order.status != OrderStatus.PENDING.value:
                continue
            try:
                await self.bot.send_message(
                    chat_id,
                    f"🛒 New order #{order.id} from {order.customer_name or 'customer'}: "
                    f"{format_amount(order.total_amount)}",
                )
            except Exception as send_error:
                logger.error(
                    f"Не удалось отправить уведомление о заказе {order.id} в чат {chat_id}: {send_error}"
                )
