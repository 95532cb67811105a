import re

from aiogram import Router, types
from aiogram.filters import Command
from aiogram.fsm.context import FSMContext
from app.core.api import ApiClient
from app.core.errors import ApiError
from app.core.states import OrderStatusStates
from app.models.order import OrderStatus
from app.services.order_service import OrderService
from app.utils.cache import QueryCache
from app.utils.menu import choice_keyboard, get_main_keyboard
from app.utils.permissions import require_owner_store
import logging

router = Router()
logger = logging.getLogger(__name__)


@router.message(Command("setstatus"))
async def cmd_set_status(
    message: types.Message, state: FSMContext, api: ApiClient, cache: QueryCache
):
    owner = await require_owner_store(message, state, api, cache)
    if owner is None:
        return
    _, store = owner

    try:
        orders = await OrderService(api, cache).list_store_orders(store.id)
    except ApiError as e:
        await message.answer(f"Failed to load orders: {e}")
        return

    if not orders:
        await message.answer("No orders yet")
        return

    await message.answer(
        "Select an order:",
        reply_markup=choice_keyboard(
            *(f"#{o.id} {o.customer_name or ''} ({o.status})".strip() for o in orders),
            columns=1,
        ),
    )
    await state.set_state(OrderStatusStates.waiting_order)


@router.message(OrderStatusStates.waiting_order)
async def process_order_selection(message: types.Message, state: FSMContext):
    match = re.match(r"^#?(\d+)", (message.text or "").strip())
    if not match:
        await message.answer("Please select an order from the list:")
        return

    await state.update_data(selected_order_id=int(match.group(1)))
    await message.answer(
        "Select the new status:",
        reply_markup=choice_keyboard(*(s.value for s in OrderStatus)),
    )
    await state.set_state(OrderStatusStates.waiting_status)


@router.message(OrderStatusStates.waiting_status)
async def process_status_selection(
    message: types.Message, state: FSMContext, api: ApiClient, cache: QueryCache
):
    data = await state.get_data()
    order_id = data.get("selected_order_id")
    store_id = data.get("store_id")

    try:
        await OrderService(api, cache).update_status(
            order_id, message.text or "", store_id
        )
    except ValueError as e:
        await message.answer(str(e))
        return
    except ApiError as e:
        logger.error(f"Не удалось изменить статус заказа {order_id}: {e}")
        await message.answer(
            f"❌ Failed to update order status: {e}\nSelect the status again to retry."
        )
        return

    await state.set_state(None)
    await state.update_data(selected_order_id=None)
    await message.answer(
        f"✅ Order #{order_id} status updated successfully",
        reply_markup=get_main_keyboard(data.get("role")),
    )
