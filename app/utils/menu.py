from aiogram import types
from aiogram.utils.keyboard import ReplyKeyboardBuilder

from app.models.user import STORE_OWNER_ROLE

OWNER_MENU_TEXT = """
🏪 <b>Store owner menu</b>

Available commands:
/dashboard - Overview: products, orders, revenue
/products - List your products
/addproduct - Add a new product
/editproduct ID - Edit a product
/deleteproduct ID - Delete a product
/orders - Order management
/setstatus - Change an order status
/export - Download orders as Excel
/createstore - Create your store
/close - Leave the dashboard (stops order updates)
/cancel - Cancel the current form
/stores - Browse all stores
/logout - Log out
/help - Show this message
"""

CUSTOMER_MENU_TEXT = """
🛍 <b>Menu</b>

Available commands:
/stores - Browse stores (add text to search, e.g. /stores bakery)
/search - Search stores
/logout - Log out
/help - Show this message

The dashboard is available to store owners only.
"""

GUEST_MENU_TEXT = """
👋 <b>Welcome</b>

Available commands:
/stores - Browse stores (add text to search, e.g. /stores bakery)
/search - Search stores
/login - Log in as a store owner or customer
/help - Show this message
"""


def get_main_keyboard(role: str = None):
    """Создает клавиатуру в зависимости от роли пользователя"""
    builder = ReplyKeyboardBuilder()

    if role == STORE_OWNER_ROLE:
        builder.row(
            types.KeyboardButton(text="/dashboard"),
            types.KeyboardButton(text="/products"),
        )
        builder.row(
            types.KeyboardButton(text="/addproduct"),
            types.KeyboardButton(text="/orders"),
        )
        builder.row(
            types.KeyboardButton(text="/setstatus"),
            types.KeyboardButton(text="/export"),
        )
        builder.row(
            types.KeyboardButton(text="/close"), types.KeyboardButton(text="/help")
        )
    elif role:
        builder.row(
            types.KeyboardButton(text="/stores"), types.KeyboardButton(text="/search")
        )
        builder.row(
            types.KeyboardButton(text="/logout"), types.KeyboardButton(text="/help")
        )
    else:
        builder.row(
            types.KeyboardButton(text="/stores"), types.KeyboardButton(text="/search")
        )
        builder.row(
            types.KeyboardButton(text="/login"), types.KeyboardButton(text="/help")
        )

    return builder.as_markup(resize_keyboard=True)


def get_menu_text(role: str = None):
    """Возвращает текст меню в зависимости от роли пользователя"""
    if role == STORE_OWNER_ROLE:
        return OWNER_MENU_TEXT
    elif role:
        return CUSTOMER_MENU_TEXT
    else:
        return GUEST_MENU_TEXT


def choice_keyboard(*options: str, columns: int = 2):
    builder = ReplyKeyboardBuilder()
    for option in options:
        builder.button(text=option)
    builder.adjust(columns)
    return builder.as_markup(resize_keyboard=True)
