import re
import datetime
from typing import Any, Dict

from aiogram import Bot, F, Router, types
from aiogram.filters import Command, CommandObject
from aiogram.fsm.context import FSMContext
from aiogram.fsm.state import State
from pydantic import ValidationError
from app.core.api import ApiClient
from app.core.errors import ApiError, ForeignProductError, NotFoundError
from app.core.states import EditProductStates, ProductFormStates
from app.models.forms import ProductForm, field_errors
from app.services.product_service import ProductService
from app.utils.cache import QueryCache
from app.utils.formatting import format_product_form
from app.utils.images import ImageCaptureError, StagedImages
from app.utils.menu import choice_keyboard, get_main_keyboard
from app.utils.permissions import require_owner_store
from app.utils.validators import (
    optional_text,
    parse_list_input,
    parse_specifications,
    sanitize_input,
    validate_date_format,
    validate_offer_percentage,
    validate_price,
    validate_stock,
)
import logging

router = Router()
logger = logging.getLogger(__name__)

SAVE = "Save"
CANCEL = "Cancel"
DONE = "Done"
YES = "Yes"
NO = "No"

PRODUCT_DEFAULTS: Dict[str, Any] = {
    "name": "",
    "description": "",
    "price": "",
    "original_price": "",
    "category_id": None,
    "stock": 0,
    "images": [],
    "is_fast_sell": False,
    "is_on_offer": False,
    "offer_percentage": 0,
    "offer_end_date": "",
    "specifications": [],
    "features": [],
    "tags": [],
    "is_active": True,
}

FLOW = [
    ProductFormStates.waiting_name,
    ProductFormStates.waiting_description,
    ProductFormStates.waiting_price,
    ProductFormStates.waiting_original_price,
    ProductFormStates.waiting_category,
    ProductFormStates.waiting_stock,
    ProductFormStates.waiting_images,
    ProductFormStates.waiting_fast_sell,
    ProductFormStates.waiting_offer_percentage,
    ProductFormStates.waiting_offer_end_date,
    ProductFormStates.waiting_tags,
    ProductFormStates.waiting_specifications,
    ProductFormStates.waiting_features,
    ProductFormStates.waiting_confirm,
]

EDIT_FIELDS = {
    "Name": ProductFormStates.waiting_name,
    "Description": ProductFormStates.waiting_description,
    "Price": ProductFormStates.waiting_price,
    "Original price": ProductFormStates.waiting_original_price,
    "Category": ProductFormStates.waiting_category,
    "Stock": ProductFormStates.waiting_stock,
    "Images": ProductFormStates.waiting_images,
    "Fast sell": ProductFormStates.waiting_fast_sell,
    "Offer": ProductFormStates.waiting_offer_percentage,
    "Tags": ProductFormStates.waiting_tags,
    "Specifications": ProductFormStates.waiting_specifications,
    "Features": ProductFormStates.waiting_features,
}

PROMPTS = {
    ProductFormStates.waiting_name: "Enter the product name:",
    ProductFormStates.waiting_description: "Enter the description (or '-' to skip):",
    ProductFormStates.waiting_price: "Enter the price, e.g. 499.99:",
    ProductFormStates.waiting_original_price: "Enter the original price before discount (or '-' to skip):",
    ProductFormStates.waiting_stock: "Enter the stock quantity:",
    ProductFormStates.waiting_offer_percentage: "Enter the offer percentage (0 if the product is not on offer):",
    ProductFormStates.waiting_offer_end_date: "Enter the offer end date DD.MM.YYYY (or '-' for no end date):",
    ProductFormStates.waiting_tags: "Enter tags separated by commas (or '-' for none):",
    ProductFormStates.waiting_specifications: "Enter specifications, one per line as 'Key: Value' (or '-' for none):",
    ProductFormStates.waiting_features: "Enter features, one per line (or '-' for none):",
}

IMAGES_HELP = (
    "Send product images:\n"
    "• a photo from your camera\n"
    "• an image file (up to 2MB)\n"
    "• an image URL\n"
    "Send 'remove N' to delete image N, 'edit N URL' to change a URL.\n"
    f"Press {DONE} when finished."
)


async def _product_data(state: FSMContext) -> Dict[str, Any]:
    data = await state.get_data()
    return dict(data.get("product") or PRODUCT_DEFAULTS)


async def _update_product(state: FSMContext, **values) -> Dict[str, Any]:
    product = await _product_data(state)
    product.update(values)
    await state.update_data(product=product)
    return product


async def ask(
    message: types.Message,
    state: FSMContext,
    target: State,
    api: ApiClient,
    cache: QueryCache,
) -> None:
    """Переводит форму на шаг target и задает вопрос этого шага"""
    await state.set_state(target)

    if target == ProductFormStates.waiting_category:
        try:
            categories = await ProductService(api, cache).list_categories()
        except ApiError as e:
            await message.answer(f"Failed to load categories: {e}. Enter the category ID:")
            return
        await message.answer(
            "Select a category:",
            reply_markup=choice_keyboard(*(c.name for c in categories)),
        )
    elif target == ProductFormStates.waiting_images:
        product = await _product_data(state)
        current = StagedImages(product.get("images")).describe()
        text = IMAGES_HELP
        if current:
            text += "\n\nCurrent images:\n" + "\n".join(current)
        await message.answer(text, reply_markup=choice_keyboard(DONE))
    elif target == ProductFormStates.waiting_fast_sell:
        await message.answer("Mark as fast sell?", reply_markup=choice_keyboard(YES, NO))
    elif target == ProductFormStates.waiting_confirm:
        await _show_summary(message, state, api, cache)
        await message.answer("Save the product?", reply_markup=choice_keyboard(SAVE, CANCEL))
    else:
        await message.answer(PROMPTS[target], reply_markup=types.ReplyKeyboardRemove())


async def show_edit_menu(message: types.Message, state: FSMContext) -> None:
    await state.set_state(EditProductStates.waiting_field)
    await message.answer(
        "Select a field to change, or Save:",
        reply_markup=choice_keyboard(*EDIT_FIELDS, SAVE, CANCEL, columns=3),
    )


async def advance(
    message: types.Message,
    state: FSMContext,
    api: ApiClient,
    cache: QueryCache,
    current: State,
) -> None:
    """
    Следующий шаг формы. При редактировании после каждого поля возвращаемся
    в меню полей.
    """
    data = await state.get_data()
    product = data.get("product") or {}

    if current == ProductFormStates.waiting_offer_percentage and product.get("is_on_offer"):
        await ask(message, state, ProductFormStates.waiting_offer_end_date, api, cache)
        return

    if data.get("editing_product_id"):
        await show_edit_menu(message, state)
        return

    next_index = FLOW.index(current) + 1
    target = FLOW[next_index]
    if target == ProductFormStates.waiting_offer_end_date:
        target = FLOW[next_index + 1]
    await ask(message, state, target, api, cache)


async def _show_summary(
    message: types.Message, state: FSMContext, api: ApiClient, cache: QueryCache
) -> None:
    product = await _product_data(state)
    category_name = ""
    try:
        categories = await ProductService(api, cache).list_categories()
        category_name = next(
            (c.name for c in categories if c.id == product.get("category_id")), ""
        )
    except ApiError as e:
        logger.warning(f"Категории недоступны для сводки: {e}")
    await message.answer(format_product_form(product, category_name), parse_mode="HTML")


@router.message(Command("addproduct"))
async def cmd_add_product(
    message: types.Message, state: FSMContext, api: ApiClient, cache: QueryCache
):
    owner = await require_owner_store(message, state, api, cache)
    if owner is None:
        return

    await state.update_data(product=dict(PRODUCT_DEFAULTS), editing_product_id=None)
    await message.answer("Add New Product")
    await ask(message, state, ProductFormStates.waiting_name, api, cache)


@router.message(Command("editproduct"))
async def cmd_edit_product(
    message: types.Message,
    state: FSMContext,
    api: ApiClient,
    cache: QueryCache,
    command: CommandObject = None,
):
    args = (command.args or "").strip() if command else ""
    if not args.isdigit():
        await message.answer("Usage: /editproduct ID (see /products)")
        return

    owner = await require_owner_store(message, state, api, cache)
    if owner is None:
        return
    _, store = owner

    product_id = int(args)
    try:
        product = await ProductService(api, cache).get_store_product(store.id, product_id)
    except NotFoundError:
        await message.answer(f"Product #{product_id} not found")
        return
    except ApiError as e:
        await message.answer(f"Failed to load product: {e}")
        return

    try:
        form = ProductForm.from_product(product)
    except ValidationError as e:
        errors = field_errors(e)
        await message.answer(
            "This product has invalid data and cannot be edited here:\n"
            + "\n".join(f"• {field}: {msg}" for field, msg in errors.items())
        )
        return

    await state.update_data(
        product=form.model_dump(mode="json"), editing_product_id=product_id
    )
    await message.answer(f"Edit Product #{product_id}")
    await _show_summary(message, state, api, cache)
    await show_edit_menu(message, state)


@router.message(Command("deleteproduct"))
async def cmd_delete_product(
    message: types.Message,
    state: FSMContext,
    api: ApiClient,
    cache: QueryCache,
    command: CommandObject = None,
):
    args = (command.args or "").strip() if command else ""
    if not args.isdigit():
        await message.answer("Usage: /deleteproduct ID (see /products)")
        return

    owner = await require_owner_store(message, state, api, cache)
    if owner is None:
        return
    _, store = owner

    try:
        deleted = await ProductService(api, cache).delete_product(int(args), store.id)
    except ForeignProductError as e:
        await message.answer(f"❌ {e}")
        return
    except ApiError as e:
        logger.error(f"Ошибка удаления товара {args}: {e}")
        await message.answer("❌ Failed to delete product")
        return

    if deleted:
        await message.answer("✅ Product deleted successfully")
    else:
        await message.answer("Product was already deleted")


@router.message(EditProductStates.waiting_field, F.text == CANCEL)
@router.message(ProductFormStates.waiting_confirm, F.text == CANCEL)
async def cancel_product(message: types.Message, state: FSMContext):
    data = await state.get_data()
    await state.set_state(None)
    await state.update_data(product=None, editing_product_id=None)
    await message.answer("Cancelled.", reply_markup=get_main_keyboard(data.get("role")))


@router.message(EditProductStates.waiting_field, F.text == SAVE)
@router.message(ProductFormStates.waiting_confirm, F.text == SAVE)
async def save_product(
    message: types.Message, state: FSMContext, api: ApiClient, cache: QueryCache
):
    data = await state.get_data()
    store_id = data.get("store_id")
    product_id = data.get("editing_product_id")

    try:
        form = ProductForm(**(data.get("product") or {}))
    except ValidationError as e:
        errors = field_errors(e)
        await message.answer(
            "Please fix the form:\n"
            + "\n".join(f"• {field}: {msg}" for field, msg in errors.items())
        )
        return

    service = ProductService(api, cache)
    try:
        if product_id:
            await service.update_product(product_id, store_id, form)
            text = "✅ Product updated successfully"
        else:
            await service.create_product(store_id, form)
            text = "✅ Product added successfully"
    except ApiError as e:
        # Данные формы сохраняются, повторное "Save" отправит их снова
        logger.error(f"Ошибка сохранения товара (магазин {store_id}): {e}")
        await message.answer(f"❌ Failed to save product: {e}\nPress {SAVE} to retry.")
        return

    await state.set_state(None)
    await state.update_data(product=None, editing_product_id=None)
    await message.answer(text, reply_markup=get_main_keyboard(data.get("role")))


@router.message(ProductFormStates.waiting_confirm)
async def process_confirm(message: types.Message, state: FSMContext):
    await message.answer(f"Press {SAVE} or {CANCEL}.")


@router.message(EditProductStates.waiting_field)
async def process_edit_field(
    message: types.Message, state: FSMContext, api: ApiClient, cache: QueryCache
):
    target = EDIT_FIELDS.get((message.text or "").strip())
    if target is None:
        await message.answer("Please select a field from the keyboard:")
        return
    await ask(message, state, target, api, cache)


@router.message(ProductFormStates.waiting_name)
async def process_name(
    message: types.Message, state: FSMContext, api: ApiClient, cache: QueryCache
):
    name = sanitize_input((message.text or "").strip())
    if not name:
        await message.answer("Product name is required. Enter the product name:")
        return
    await _update_product(state, name=name)
    await advance(message, state, api, cache, ProductFormStates.waiting_name)


@router.message(ProductFormStates.waiting_description)
async def process_description(
    message: types.Message, state: FSMContext, api: ApiClient, cache: QueryCache
):
    description = optional_text(message.text)
    await _update_product(state, description=sanitize_input(description or ""))
    await advance(message, state, api, cache, ProductFormStates.waiting_description)


@router.message(ProductFormStates.waiting_price)
async def process_price(
    message: types.Message, state: FSMContext, api: ApiClient, cache: QueryCache
):
    try:
        price = validate_price(message.text or "", "price")
    except ValueError as e:
        await message.answer(str(e))
        return
    await _update_product(state, price=price)
    await advance(message, state, api, cache, ProductFormStates.waiting_price)


@router.message(ProductFormStates.waiting_original_price)
async def process_original_price(
    message: types.Message, state: FSMContext, api: ApiClient, cache: QueryCache
):
    value = optional_text(message.text)
    try:
        original_price = validate_price(value, "original_price") if value else ""
    except ValueError as e:
        await message.answer(str(e))
        return
    await _update_product(state, original_price=original_price)
    await advance(message, state, api, cache, ProductFormStates.waiting_original_price)


@router.message(ProductFormStates.waiting_category)
async def process_category(
    message: types.Message, state: FSMContext, api: ApiClient, cache: QueryCache
):
    text = (message.text or "").strip()
    category_id = None
    try:
        categories = await ProductService(api, cache).list_categories()
        for category in categories:
            if category.name.lower() == text.lower() or str(category.id) == text:
                category_id = category.id
                break
    except ApiError as e:
        logger.warning(f"Категории недоступны: {e}")
        if text.isdigit():
            category_id = int(text)

    if not category_id:
        await message.answer("Category is required. Select a category from the list:")
        return

    await _update_product(state, category_id=category_id)
    await advance(message, state, api, cache, ProductFormStates.waiting_category)


@router.message(ProductFormStates.waiting_stock)
async def process_stock(
    message: types.Message, state: FSMContext, api: ApiClient, cache: QueryCache
):
    try:
        stock = validate_stock(message.text or "")
    except ValueError as e:
        await message.answer(str(e))
        return
    await _update_product(state, stock=stock)
    await advance(message, state, api, cache, ProductFormStates.waiting_stock)


async def _reply_images(message: types.Message, images: StagedImages) -> None:
    lines = images.describe()
    await message.answer(
        f"Images: {len(lines)}\n" + "\n".join(lines) if lines else "No images yet."
    )


@router.message(ProductFormStates.waiting_images, F.photo)
async def process_image_photo(message: types.Message, state: FSMContext, bot: Bot):
    product = await _product_data(state)
    images = StagedImages(product.get("images"))

    photo = message.photo[-1]
    try:
        buffer = await bot.download(photo.file_id)
        images.add_captured_frame(buffer.getvalue())
    except ImageCaptureError as e:
        await message.answer(f"❌ {e}")
        return
    except Exception as e:
        logger.error(f"Не удалось получить фото: {e}")
        await message.answer("❌ Failed to access the photo. Please try again.")
        return

    await _update_product(state, images=images.to_list())
    await _reply_images(message, images)


@router.message(ProductFormStates.waiting_images, F.document)
async def process_image_document(message: types.Message, state: FSMContext, bot: Bot):
    product = await _product_data(state)
    images = StagedImages(product.get("images"))
    document = message.document

    try:
        images.check_upload(document.file_size or 0, document.mime_type)
    except ValueError as e:
        await message.answer(f"❌ {e}")
        return

    try:
        buffer = await bot.download(document.file_id)
        images.add_upload(buffer.getvalue(), document.mime_type)
    except ValueError as e:
        await message.answer(f"❌ {e}")
        return
    except Exception as e:
        logger.error(f"Не удалось загрузить файл: {e}")
        await message.answer("❌ Failed to upload image")
        return

    await _update_product(state, images=images.to_list())
    await _reply_images(message, images)


@router.message(ProductFormStates.waiting_images)
async def process_image_text(
    message: types.Message, state: FSMContext, api: ApiClient, cache: QueryCache
):
    text = (message.text or "").strip()
    if text.lower() == DONE.lower():
        await advance(message, state, api, cache, ProductFormStates.waiting_images)
        return

    product = await _product_data(state)
    images = StagedImages(product.get("images"))

    remove_match = re.match(r"^remove\s+(\d+)$", text, re.IGNORECASE)
    edit_match = re.match(r"^edit\s+(\d+)\s+(\S+)$", text, re.IGNORECASE)
    try:
        if remove_match:
            images.remove(int(remove_match.group(1)) - 1)
        elif edit_match:
            images.update_url(int(edit_match.group(1)) - 1, edit_match.group(2))
        else:
            images.add_url(text)
    except IndexError:
        await message.answer("No image with that number.")
        return
    except ValueError as e:
        await message.answer(f"❌ {e}")
        return

    await _update_product(state, images=images.to_list())
    await _reply_images(message, images)


@router.message(ProductFormStates.waiting_fast_sell)
async def process_fast_sell(
    message: types.Message, state: FSMContext, api: ApiClient, cache: QueryCache
):
    answer = (message.text or "").strip().lower()
    if answer not in ("yes", "no"):
        await message.answer(f"Please answer {YES} or {NO}:")
        return
    await _update_product(state, is_fast_sell=answer == "yes")
    await advance(message, state, api, cache, ProductFormStates.waiting_fast_sell)


@router.message(ProductFormStates.waiting_offer_percentage)
async def process_offer_percentage(
    message: types.Message, state: FSMContext, api: ApiClient, cache: QueryCache
):
    try:
        percentage = validate_offer_percentage(message.text or "")
    except ValueError as e:
        await message.answer(str(e))
        return

    if percentage > 0:
        await _update_product(state, is_on_offer=True, offer_percentage=percentage)
    else:
        await _update_product(
            state, is_on_offer=False, offer_percentage=0, offer_end_date=""
        )
    await advance(message, state, api, cache, ProductFormStates.waiting_offer_percentage)


@router.message(ProductFormStates.waiting_offer_end_date)
async def process_offer_end_date(
    message: types.Message, state: FSMContext, api: ApiClient, cache: QueryCache
):
    value = optional_text(message.text)
    end_date = ""
    if value:
        try:
            parsed = validate_date_format(value)
        except ValueError as e:
            await message.answer(str(e))
            return
        if parsed < datetime.date.today():
            await message.answer("Offer end date cannot be in the past. Enter another date:")
            return
        end_date = parsed.isoformat()

    await _update_product(state, offer_end_date=end_date)
    await advance(message, state, api, cache, ProductFormStates.waiting_offer_end_date)


@router.message(ProductFormStates.waiting_tags)
async def process_tags(
    message: types.Message, state: FSMContext, api: ApiClient, cache: QueryCache
):
    await _update_product(state, tags=parse_list_input(message.text or ""))
    await advance(message, state, api, cache, ProductFormStates.waiting_tags)


@router.message(ProductFormStates.waiting_specifications)
async def process_specifications(
    message: types.Message, state: FSMContext, api: ApiClient, cache: QueryCache
):
    try:
        specifications = parse_specifications(message.text or "")
    except ValueError as e:
        await message.answer(str(e))
        return
    await _update_product(state, specifications=specifications)
    await advance(message, state, api, cache, ProductFormStates.waiting_specifications)


@router.message(ProductFormStates.waiting_features)
async def process_features(
    message: types.Message, state: FSMContext, api: ApiClient, cache: QueryCache
):
    text = optional_text(message.text) or ""
    features = [line.strip() for line in text.splitlines() if line.strip()]
    await _update_product(state, features=features)
    await advance(message, state, api, cache, ProductFormStates.waiting_features)
