from typing import Any, Dict, Optional, Tuple

from aiogram import types
from aiogram.fsm.context import FSMContext

from app.core.api import ApiClient
from app.core.errors import ApiError
from app.models.store import Store
from app.models.user import STORE_OWNER_ROLE
from app.services.store_service import StoreService
from app.utils.cache import QueryCache
import logging

logger = logging.getLogger(__name__)

ACCESS_DENIED_TEXT = (
    "⛔ <b>Access Denied</b>\n\nThis page is only accessible to store owners."
)
LOGIN_REQUIRED_TEXT = "Please log in first via /login"


def is_store_owner(user_data: Dict[str, Any]) -> bool:
    """Проверяет по данным FSM, что пользователь вошел как владелец магазина"""
    return bool(user_data.get("user_id")) and user_data.get("role") == STORE_OWNER_ROLE


async def require_owner(
    message: types.Message, state: FSMContext
) -> Optional[Dict[str, Any]]:
    """
    Возвращает данные FSM владельца или None.

    Неавторизованному пользователю предлагается /login; вошедшему не-владельцу
    показывается только сообщение об отказе в доступе, текущий сценарий
    сбрасывается.
    """
    user_data = await state.get_data()
    if not user_data.get("user_id"):
        await message.answer(LOGIN_REQUIRED_TEXT)
        return None

    if not is_store_owner(user_data):
        await state.set_state(None)
        await message.answer(
            ACCESS_DENIED_TEXT,
            parse_mode="HTML",
            reply_markup=types.ReplyKeyboardRemove(),
        )
        return None

    return user_data


async def require_owner_store(
    message: types.Message, state: FSMContext, api: ApiClient, cache: QueryCache
) -> Optional[Tuple[Dict[str, Any], Store]]:
    """
    Данные владельца и его магазин; None, если доступа нет или магазин еще
    не создан (пользователю уже отправлен ответ).
    """
    user_data = await require_owner(message, state)
    if user_data is None:
        return None

    try:
        store = await StoreService(api, cache).get_current_store(user_data["user_id"])
    except ApiError as e:
        logger.error(f"Не удалось загрузить магазин владельца: {e}")
        await message.answer(f"Failed to load your store: {e}")
        return None

    if store is None:
        await message.answer(
            "You don't have a store yet. Create one with /createstore"
        )
        return None

    await state.update_data(store_id=store.id, store_name=store.name)
    return user_data, store
