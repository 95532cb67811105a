from html import escape

from aiogram import F, Router, types
from aiogram.filters import Command
from aiogram.fsm.context import FSMContext
from aiogram.utils.keyboard import ReplyKeyboardBuilder
from pydantic import ValidationError
from app.core.api import ApiClient
from app.core.errors import ApiError
from app.core.states import CreateStoreStates
from app.models.forms import StoreForm, field_errors
from app.services.location_service import LocationService
from app.services.store_service import StoreService
from app.utils.cache import QueryCache
from app.utils.menu import choice_keyboard, get_main_keyboard
from app.utils.permissions import require_owner
from app.utils.validators import is_valid_phone, is_valid_store_name, optional_text
import logging

router = Router()
logger = logging.getLogger(__name__)

SAVE = "Save"
CANCEL = "Cancel"


def location_keyboard():
    builder = ReplyKeyboardBuilder()
    builder.row(types.KeyboardButton(text="📍 Share my location", request_location=True))
    return builder.as_markup(resize_keyboard=True, one_time_keyboard=True)


@router.message(Command("createstore"))
async def cmd_create_store(
    message: types.Message, state: FSMContext, api: ApiClient, cache: QueryCache
):
    user_data = await require_owner(message, state)
    if user_data is None:
        return

    try:
        store = await StoreService(api, cache).get_current_store(user_data["user_id"])
    except ApiError as e:
        await message.answer(f"Failed to load your store: {e}")
        return

    if store is not None:
        await message.answer(f"You already manage {store.name}. Open /dashboard")
        return

    await state.update_data(store_form={})
    await state.set_state(CreateStoreStates.waiting_name)
    await message.answer(
        "Create Your Store\n\nEnter the store name:",
        reply_markup=types.ReplyKeyboardRemove(),
    )


async def _update_form(state: FSMContext, **values) -> dict:
    data = await state.get_data()
    form = dict(data.get("store_form") or {})
    form.update(values)
    await state.update_data(store_form=form)
    return form


@router.message(CreateStoreStates.waiting_name)
async def process_store_name(message: types.Message, state: FSMContext):
    name = (message.text or "").strip()
    if not is_valid_store_name(name):
        await message.answer(
            "Store name is required (up to 100 characters). Enter the store name:"
        )
        return

    await _update_form(state, name=name)
    await state.set_state(CreateStoreStates.waiting_description)
    await message.answer("Enter a short description (or '-' to skip):")


@router.message(CreateStoreStates.waiting_description)
async def process_store_description(message: types.Message, state: FSMContext):
    await _update_form(state, description=optional_text(message.text))
    await state.set_state(CreateStoreStates.waiting_location)
    await message.answer(
        "Share your location to fill the address automatically, or type the address:",
        reply_markup=location_keyboard(),
    )


@router.message(CreateStoreStates.waiting_location, F.location)
async def process_store_location(
    message: types.Message, state: FSMContext, locations: LocationService
):
    latitude = message.location.latitude
    longitude = message.location.longitude

    result = await locations.resolve(latitude, longitude)
    await _update_form(
        state,
        latitude=result.latitude,
        longitude=result.longitude,
        google_maps_link=result.google_maps_link,
        address=result.address,
    )

    await message.answer(
        f"📍 Location obtained successfully\n"
        f"Coordinates: {latitude:.6f}, {longitude:.6f}\n"
        f"Address: {result.address}\n"
        f"Map: {result.google_maps_link}",
        reply_markup=types.ReplyKeyboardRemove(),
    )
    if not result.resolved:
        await message.answer(
            "You can type the address now to replace it, or '-' to keep it:"
        )
        await state.update_data(address_needs_review=True)
        return

    await state.set_state(CreateStoreStates.waiting_phone)
    await message.answer("Enter the store phone number (or '-' to skip):")


@router.message(CreateStoreStates.waiting_location)
async def process_store_address(message: types.Message, state: FSMContext):
    data = await state.get_data()
    address = optional_text(message.text)
    form = data.get("store_form") or {}

    if address is None and not (data.get("address_needs_review") and form.get("address")):
        await message.answer("Address is required. Type the address or share your location:")
        return

    if address is not None:
        await _update_form(state, address=address)
    await state.update_data(address_needs_review=False)
    await state.set_state(CreateStoreStates.waiting_phone)
    await message.answer(
        "Enter the store phone number (or '-' to skip):",
        reply_markup=types.ReplyKeyboardRemove(),
    )


@router.message(CreateStoreStates.waiting_phone)
async def process_store_phone(message: types.Message, state: FSMContext):
    phone = optional_text(message.text)
    if phone is not None and not is_valid_phone(phone):
        await message.answer("Phone number is not valid. Enter it again or '-' to skip:")
        return

    form = await _update_form(state, phone=phone)
    await state.set_state(CreateStoreStates.waiting_confirm)

    summary = [
        f"<b>{escape(form.get('name', ''))}</b>",
        f"Description: {escape(form.get('description') or '-')}",
        f"Address: {escape(form.get('address') or '-')}",
        f"Phone: {escape(form.get('phone') or '-')}",
    ]
    if form.get("google_maps_link"):
        summary.append(f"Map: {escape(form['google_maps_link'])}")

    await message.answer(
        "\n".join(summary) + "\n\nSave the store?",
        parse_mode="HTML",
        reply_markup=choice_keyboard(SAVE, CANCEL),
    )


@router.message(CreateStoreStates.waiting_confirm, F.text == CANCEL)
async def cancel_store(message: types.Message, state: FSMContext):
    data = await state.get_data()
    await state.set_state(None)
    await state.update_data(store_form=None)
    await message.answer(
        "Store creation cancelled.", reply_markup=get_main_keyboard(data.get("role"))
    )


@router.message(CreateStoreStates.waiting_confirm)
async def save_store(
    message: types.Message, state: FSMContext, api: ApiClient, cache: QueryCache
):
    if message.text != SAVE:
        await message.answer(f"Press {SAVE} or {CANCEL}.")
        return

    data = await state.get_data()
    try:
        form = StoreForm(**(data.get("store_form") or {}))
    except ValidationError as e:
        errors = field_errors(e)
        await message.answer(
            "Please fix the form:\n"
            + "\n".join(f"• {field}: {msg}" for field, msg in errors.items())
        )
        return

    try:
        store = await StoreService(api, cache).create_store(form, data["user_id"])
    except ApiError as e:
        # Форма остается в состоянии: повторное "Save" отправит ее снова
        logger.error(f"Ошибка создания магазина: {e}")
        await message.answer(f"❌ Failed to create store: {e}\nPress {SAVE} to retry.")
        return

    await state.set_state(None)
    await state.update_data(
        store_form=None,
        store_id=store.id if store else None,
        store_name=form.name,
    )
    await message.answer(
        "✅ Store created successfully. Open /dashboard",
        reply_markup=get_main_keyboard(data.get("role")),
    )
