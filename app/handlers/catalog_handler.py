from html import escape
from typing import List

from aiogram import Router, types
from aiogram.filters import Command, CommandObject
from aiogram.fsm.context import FSMContext
from app.core.api import ApiClient
from app.core.errors import ApiError
from app.core.states import SearchStates
from app.models.store import Store
from app.services.store_service import StoreService
from app.utils.cache import QueryCache
from app.utils import queries
from app.utils.formatting import format_store, stale_notice
import logging

router = Router()
logger = logging.getLogger(__name__)

MAX_STORES_PER_MESSAGE = 15


async def answer_stores(
    message: types.Message, stores: List[Store], query: str = "", notice: str = ""
) -> None:
    if not stores:
        if query:
            text = f"No stores match \"{escape(query)}\". Try another search."
        else:
            text = "No stores available yet."
        await message.answer(text + notice, parse_mode="HTML")
        return

    if query:
        header = f"🔎 Stores matching \"{escape(query)}\": {len(stores)}"
    else:
        header = f"All stores: {len(stores)}"
    shown = stores[:MAX_STORES_PER_MESSAGE]
    text = header + "\n\n" + "\n\n".join(format_store(store) for store in shown)
    if len(stores) > len(shown):
        text += f"\n\n…and {len(stores) - len(shown)} more. Narrow your search."
    text += notice
    await message.answer(text, parse_mode="HTML")


@router.message(Command("stores"))
async def cmd_stores(
    message: types.Message,
    state: FSMContext,
    api: ApiClient,
    cache: QueryCache,
    command: CommandObject = None,
):
    query = (command.args or "").strip() if command else ""

    try:
        stores = await StoreService(api, cache).search_stores(query)
    except ApiError as e:
        logger.error(f"Ошибка загрузки магазинов: {e}")
        await message.answer("Failed to load stores. Please try again later.")
        return

    notice = stale_notice(cache.last_error(queries.ALL_STORES))
    await answer_stores(message, stores, query, notice)


@router.message(Command("search"))
async def cmd_search(message: types.Message, state: FSMContext):
    await state.set_state(SearchStates.waiting_query)
    await message.answer("Search stores by name, description, or location:")


@router.message(SearchStates.waiting_query)
async def process_search(
    message: types.Message, state: FSMContext, api: ApiClient, cache: QueryCache
):
    query = (message.text or "").strip()
    await state.set_state(None)

    try:
        stores = await StoreService(api, cache).search_stores(query)
    except ApiError as e:
        logger.error(f"Ошибка поиска магазинов: {e}")
        await message.answer("Failed to load stores. Please try again later.")
        return

    notice = stale_notice(cache.last_error(queries.ALL_STORES))
    await answer_stores(message, stores, query, notice)
