from aiogram import Router, types
from aiogram.filters import Command
from aiogram.fsm.context import FSMContext
from app.core.api import ApiClient
from app.core.errors import ApiError
from app.core.states import LoginStates
from app.services.auth_service import AuthService
from app.utils.menu import get_menu_text, get_main_keyboard
from app.utils.scheduler import OrderPoller
import logging

router = Router()
logger = logging.getLogger(__name__)


@router.message(Command("start"))
async def cmd_start(message: types.Message, state: FSMContext):
    data = await state.get_data()
    role = data.get("role")

    if data.get("user_id"):
        greeting = f"Welcome back, {data.get('name', '')}!"
    else:
        greeting = "Hello! Browse local stores with /stores or log in with /login."

    await message.answer(greeting, reply_markup=get_main_keyboard(role))
    await message.answer(get_menu_text(role), parse_mode="HTML")


@router.message(Command("help"))
async def cmd_help(message: types.Message, state: FSMContext):

    data = await state.get_data()
    role = data.get("role")

    await message.answer(
        get_menu_text(role), parse_mode="HTML", reply_markup=get_main_keyboard(role)
    )


@router.message(Command("login"))
async def cmd_login(message: types.Message, state: FSMContext):
    await state.set_state(LoginStates.waiting_email)
    await message.answer("Enter your email:", reply_markup=types.ReplyKeyboardRemove())


@router.message(LoginStates.waiting_email)
async def process_email(message: types.Message, state: FSMContext):
    email = (message.text or "").strip()
    if "@" not in email:
        await message.answer("Please enter a valid email:")
        return

    await state.update_data(login_email=email)
    await state.set_state(LoginStates.waiting_password)
    await message.answer("Enter your password:")


@router.message(LoginStates.waiting_password)
async def process_password(message: types.Message, state: FSMContext, api: ApiClient):
    password = message.text or ""
    data = await state.get_data()
    email = data.get("login_email", "")

    # Пароль не должен оставаться в истории чата
    try:
        await message.delete()
    except Exception as e:
        logger.warning(f"Не удалось удалить сообщение с паролем: {e}")

    try:
        user = await AuthService(api).login(email, password)
    except (ApiError, ValueError) as e:
        logger.info("Неудачный вход %s: %s", email, e)
        await state.set_state(None)
        await state.update_data(login_email=None)
        await message.answer(f"❌ Login failed: {e}")
        return

    await state.set_state(None)
    await state.update_data(
        login_email=None,
        user_id=user.id,
        role=user.role,
        name=user.display_name,
        email=user.email,
    )

    logger.info("Пользователь авторизован: %s (%s)", user.id, user.role)
    await message.answer(
        f"✅ Logged in as {user.display_name} ({user.role}).",
        reply_markup=get_main_keyboard(user.role),
    )
    await message.answer(get_menu_text(user.role), parse_mode="HTML")


@router.message(Command("logout"))
async def cmd_logout(message: types.Message, state: FSMContext, poller: OrderPoller):
    poller.unwatch(message.chat.id)
    await state.clear()
    await message.answer("You have been logged out.", reply_markup=get_main_keyboard())


@router.message(Command("cancel"))
async def cmd_cancel(message: types.Message, state: FSMContext):
    """Прерывает любую незавершенную форму"""
    data = await state.get_data()
    await state.set_state(None)
    await state.update_data(
        product=None,
        editing_product_id=None,
        store_form=None,
        selected_order_id=None,
        login_email=None,
    )
    await message.answer("Cancelled.", reply_markup=get_main_keyboard(data.get("role")))
