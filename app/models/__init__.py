"""
Модели данных клиента витрины.
"""

from .store import Store
from .product import Product, Specification
from .order import Order, OrderItem, OrderStatus
from .category import Category
from .user import User, STORE_OWNER_ROLE
from .forms import ProductForm, StoreForm, field_errors

__all__ = [
    "Store",
    "Product",
    "Specification",
    "Order",
    "OrderItem",
    "OrderStatus",
    "Category",
    "User",
    "STORE_OWNER_ROLE",
    "ProductForm",
    "StoreForm",
    "field_errors",
]
