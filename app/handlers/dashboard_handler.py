from aiogram import Router, types
from aiogram.filters import Command
from aiogram.fsm.context import FSMContext
from app.core.api import ApiClient
from app.core.errors import ApiError
from app.services.dashboard_service import DashboardService
from app.services.order_service import OrderService
from app.services.product_service import ProductService
from app.services.report_service import ReportService
from app.utils.cache import QueryCache
from app.utils import queries
from app.utils.formatting import (
    format_dashboard,
    format_order,
    format_product,
    stale_notice,
)
from app.utils.menu import get_main_keyboard
from app.utils.permissions import require_owner, require_owner_store
from app.utils.scheduler import OrderPoller
import logging

router = Router()
logger = logging.getLogger(__name__)


@router.message(Command("dashboard"))
async def cmd_dashboard(
    message: types.Message,
    state: FSMContext,
    api: ApiClient,
    cache: QueryCache,
    poller: OrderPoller,
):
    user_data = await require_owner(message, state)
    if user_data is None:
        return

    await state.set_state(None)

    try:
        view = await DashboardService(api, cache).load(user_data["user_id"])
    except ApiError as e:
        logger.error(f"Ошибка загрузки дашборда: {e}")
        await message.answer(f"Failed to load the dashboard: {e}")
        return

    if view.store is None:
        await message.answer(
            "📊 <b>Shopkeeper Dashboard</b>\n\nYou don't have a store yet. "
            "Create one with /createstore",
            parse_mode="HTML",
            reply_markup=get_main_keyboard(user_data.get("role")),
        )
        return

    await state.update_data(store_id=view.store.id, store_name=view.store.name)
    error = cache.last_error(
        queries.owner_stores(user_data["user_id"]),
        queries.store_products(view.store.id),
        queries.store_orders(view.store.id),
    )
    await message.answer(
        format_dashboard(view.store, view.stats, view.recent_orders)
        + stale_notice(error),
        parse_mode="HTML",
        reply_markup=get_main_keyboard(user_data.get("role")),
    )

    if poller.watch(message.chat.id, view.store.id, [o.id for o in view.orders]):
        await state.update_data(dashboard_open=True)


@router.message(Command("close"))
async def cmd_close(message: types.Message, state: FSMContext, poller: OrderPoller):
    """Закрыть дашборд: опрос заказов останавливается"""
    stopped = poller.unwatch(message.chat.id)
    await state.update_data(dashboard_open=False)
    if stopped:
        await message.answer("Dashboard closed. Order updates stopped.")
    else:
        await message.answer("The dashboard is not open.")


@router.message(Command("products"))
async def cmd_products(
    message: types.Message, state: FSMContext, api: ApiClient, cache: QueryCache
):
    owner = await require_owner_store(message, state, api, cache)
    if owner is None:
        return
    _, store = owner

    try:
        products = await ProductService(api, cache).list_store_products(store.id)
    except ApiError as e:
        logger.error(f"Ошибка загрузки товаров магазина {store.id}: {e}")
        await message.answer(f"Failed to load products: {e}")
        return

    notice = stale_notice(cache.last_error(queries.store_products(store.id)))
    if not products:
        await message.answer(
            "No products yet. Add one with /addproduct" + notice, parse_mode="HTML"
        )
        return

    await message.answer(
        f"📦 <b>Products ({len(products)})</b>\n\n"
        + "\n\n".join(format_product(p) for p in products)
        + notice,
        parse_mode="HTML",
    )


@router.message(Command("orders"))
async def cmd_orders(
    message: types.Message, state: FSMContext, api: ApiClient, cache: QueryCache
):
    owner = await require_owner_store(message, state, api, cache)
    if owner is None:
        return
    _, store = owner

    try:
        orders = await OrderService(api, cache).list_store_orders(store.id)
    except ApiError as e:
        logger.error(f"Ошибка загрузки заказов магазина {store.id}: {e}")
        await message.answer(f"Failed to load orders: {e}")
        return

    notice = stale_notice(cache.last_error(queries.store_orders(store.id)))
    if not orders:
        await message.answer("No orders yet" + notice, parse_mode="HTML")
        return

    await message.answer(
        "🧾 <b>Order Management</b>\n\n"
        + "\n".join(format_order(o, details=True) for o in orders)
        + "\n\nChange a status with /setstatus"
        + notice,
        parse_mode="HTML",
    )


@router.message(Command("export"))
async def cmd_export(
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

    excel_bytes = ReportService().export_orders(orders, store.name)
    await message.answer_document(
        types.BufferedInputFile(excel_bytes, filename=f"orders_store_{store.id}.xlsx"),
        caption=f"Orders report for {store.name}",
    )
