"""
Производная статистика и фильтры, считаемые по текущему снимку кэша.

Все функции чистые: ничего не хранят между вызовами и не обращаются к сети.
"""

import datetime
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable, List, Optional, Sequence

import pytz

from app.core.config import STORE_CLOSE_HOUR, STORE_OPEN_HOUR, STORE_TIMEZONE
from app.models import Order, OrderStatus, Product, Store
from app.utils.date_utils import parse_timestamp


def to_decimal(value: Any) -> Decimal:
    """Числовое приведение суммы; нераспознанное значение считается нулем."""
    if value is None or isinstance(value, bool):
        return Decimal("0")
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        value = repr(value)
    try:
        result = Decimal(str(value).strip())
    except InvalidOperation:
        return Decimal("0")
    if not result.is_finite():
        return Decimal("0")
    return result


def total_revenue(orders: Iterable[Order]) -> Decimal:
    return sum((to_decimal(order.total_amount) for order in orders), Decimal("0"))


def count_pending(orders: Iterable[Order]) -> int:
    return sum(1 for order in orders if order.status == OrderStatus.PENDING.value)


@dataclass(frozen=True)
class DashboardStats:
    total_products: int
    total_orders: int
    total_revenue: Decimal
    pending_orders: int


def compute_dashboard_stats(
    orders: Sequence[Order], products: Sequence[Product]
) -> DashboardStats:
    return DashboardStats(
        total_products=len(products),
        total_orders=len(orders),
        total_revenue=total_revenue(orders),
        pending_orders=count_pending(orders),
    )


def recent_orders(orders: Sequence[Order], limit: int = 5) -> List[Order]:
    """Первые limit заказов в порядке, в котором их вернул сервер."""
    return list(orders[:limit])


def filter_stores(stores: Sequence[Store], query: Optional[str]) -> List[Store]:
    """
    Поиск магазинов по названию, описанию и адресу без учета регистра.
    Пустая строка поиска возвращает весь список.
    """
    needle = (query or "").strip().lower()
    if not needle:
        return list(stores)

    result = []
    for store in stores:
        fields = (store.name, store.description, store.address)
        if any(needle in (value or "").lower() for value in fields):
            result.append(store)
    return result


def stores_for_owner(stores: Sequence[Store], owner_id: int) -> List[Store]:
    """
    Магазины владельца, отфильтрованные на клиенте из полного списка.
    Корректно только если /api/stores отдает список целиком, без пагинации.
    """
    return [store for store in stores if store.owner_id == owner_id]


def is_offer_active(product: Product, today: Optional[datetime.date] = None) -> bool:
    """
    Товар показывается как акционный, только если акция включена и дата
    окончания не прошла (день окончания включительно).
    """
    if not product.is_on_offer:
        return False
    if not product.offer_end_date:
        return True

    end = parse_timestamp(product.offer_end_date)
    if end is None:
        return True
    today = today or datetime.date.today()
    return end.date() >= today


def store_hours_status(now: Optional[datetime.datetime] = None) -> str:
    """'Open' с STORE_OPEN_HOUR до STORE_CLOSE_HOUR по местному времени, иначе 'Closed'."""
    tz = pytz.timezone(STORE_TIMEZONE)
    if now is None:
        now = datetime.datetime.now(tz)
    elif now.tzinfo is not None:
        now = now.astimezone(tz)

    if STORE_OPEN_HOUR <= now.hour < STORE_CLOSE_HOUR:
        return "Open"
    return "Closed"


def format_amount(value: Any) -> str:
    """Сумма для отображения: ₹1,234.5"""
    amount = to_decimal(value).normalize()
    if amount == amount.to_integral():
        return f"₹{int(amount):,}"
    return f"₹{amount:,f}"
