"""
Middleware повторной загрузки данных при возвращении пользователя в чат
"""

import time
from typing import Any, Awaitable, Callable, Dict, Optional

from aiogram import BaseMiddleware
from aiogram.types import Message

from app.core.config import FOCUS_IDLE_SECONDS
from app.utils.cache import QueryCache
import logging

logger = logging.getLogger(__name__)


class FocusRefetchMiddleware(BaseMiddleware):
    """
    Аналог refetch-on-window-focus: если чат молчал дольше idle_seconds,
    следующее сообщение считается возвращением фокуса, и записи кэша,
    подписанные на фокус, помечаются устаревшими.
    """

    def __init__(
        self,
        cache: QueryCache,
        idle_seconds: int = FOCUS_IDLE_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.cache = cache
        self.idle_seconds = idle_seconds
        self.clock = clock
        self._last_seen: Dict[int, float] = {}

    async def __call__(
        self,
        handler: Callable[[Message, Dict[str, Any]], Awaitable[Any]],
        event: Message,
        data: Dict[str, Any],
    ) -> Any:
        chat = getattr(event, "chat", None)
        if chat is not None:
            try:
                self._touch(chat.id)
            except Exception as e:
                logger.error(f"Ошибка обработки возврата фокуса: {e}")

        return await handler(event, data)

    def _touch(self, chat_id: int) -> None:
        now = self.clock()
        last_seen: Optional[float] = self._last_seen.get(chat_id)
        self._last_seen[chat_id] = now

        if last_seen is not None and now - last_seen >= self.idle_seconds:
            refreshed = self.cache.refetch_on_focus()
            logger.info(
                "Чат %s вернулся после %.0f с, устаревшими помечено: %s",
                chat_id,
                now - last_seen,
                len(refreshed),
            )
