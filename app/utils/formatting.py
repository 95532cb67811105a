"""
Текстовые представления сущностей для сообщений бота (HTML parse mode).
"""

import datetime
from html import escape
from typing import Any, Dict, List, Optional

from app.models import Order, Product, Store
from app.utils.date_utils import format_date_for_display
from app.utils.images import StagedImages
from app.utils.stats import (
    DashboardStats,
    format_amount,
    is_offer_active,
    store_hours_status,
)

STATUS_ICONS = {
    "pending": "🕒",
    "processing": "⚙️",
    "shipped": "🚚",
    "delivered": "✅",
    "cancelled": "❌",
}


def stale_notice(error: Optional[BaseException]) -> str:
    """Приписка к ответу, собранному из прежних данных после ошибки загрузки"""
    if error is None:
        return ""
    return f"\n\n⚠️ Showing last known data: {escape(str(error))}"


def format_store(store: Store, now: Optional[datetime.datetime] = None) -> str:
    lines = [f"🏬 <b>{escape(store.name)}</b> · {store_hours_status(now)}"]
    if store.rating:
        lines[0] += f" · ⭐ {escape(store.rating)}"
    if store.description:
        lines.append(escape(store.description))
    if store.address:
        lines.append(f"📍 {escape(store.address)}")
    if store.phone:
        lines.append(f"📞 {escape(store.phone)}")
    if store.website:
        lines.append(f"🌐 {escape(store.website)}")
    return "\n".join(lines)


def format_product(product: Product, today: Optional[datetime.date] = None) -> str:
    badges = []
    if product.is_fast_sell:
        badges.append("⚡ Fast sell")
    if is_offer_active(product, today):
        badges.append(f"🏷️ {product.offer_percentage}% OFF")
    if not product.is_active:
        badges.append("hidden")

    line = f"#{product.id} <b>{escape(product.name)}</b> - {format_amount(product.price)}"
    if product.original_price:
        line += f" <s>{format_amount(product.original_price)}</s>"
    line += f"\nStock: {product.stock} units"
    if badges:
        line += " · " + " · ".join(badges)
    return line


def format_order(order: Order, details: bool = False) -> str:
    icon = STATUS_ICONS.get(order.status, "•")
    created = format_date_for_display(order.created_at, "short")
    line = (
        f"{icon} Order #{order.id} · {escape(order.customer_name or '-')} · "
        f"{format_amount(order.total_amount)} · {escape(order.status)} · {created}"
    )
    if details:
        if order.phone:
            line += f"\n   📞 {escape(order.phone)}"
        if order.shipping_address:
            line += f"\n   📦 {escape(order.shipping_address)}"
    return line


def format_dashboard(
    store: Store, stats: DashboardStats, recent: List[Order]
) -> str:
    lines = [
        f"📊 <b>Managing {escape(store.name)}</b>",
        "",
        f"Total products: <b>{stats.total_products}</b>",
        f"Total orders: <b>{stats.total_orders}</b>",
        f"Total revenue: <b>{format_amount(stats.total_revenue)}</b>",
        f"Pending orders: <b>{stats.pending_orders}</b>",
        "",
        "<b>Recent orders</b>",
    ]
    if not recent:
        lines.append("No orders yet")
    else:
        lines.extend(format_order(order) for order in recent)
    return "\n".join(lines)


def format_product_form(data: Dict[str, Any], category_name: str = "") -> str:
    """Сводка заполненной формы товара перед сохранением"""
    lines = [
        f"<b>{escape(data.get('name') or '-')}</b>",
        f"Description: {escape(data.get('description') or '-')}",
        f"Price: {escape(str(data.get('price') or '-'))}",
        f"Original price: {escape(str(data.get('original_price') or '-'))}",
        f"Category: {escape(category_name or str(data.get('category_id') or '-'))}",
        f"Stock: {data.get('stock', 0)}",
        f"Fast sell: {'yes' if data.get('is_fast_sell') else 'no'}",
    ]
    if data.get("is_on_offer"):
        lines.append(
            f"Offer: {data.get('offer_percentage', 0)}% until {data.get('offer_end_date') or 'further notice'}"
        )
    else:
        lines.append("Offer: none")
    lines.append(f"Tags: {escape(', '.join(data.get('tags') or [])) or '-'}")
    specs = data.get("specifications") or []
    if specs:
        lines.append("Specifications:")
        lines.extend(f"  {escape(s['key'])}: {escape(s['value'])}" for s in specs)
    features = data.get("features") or []
    if features:
        lines.append("Features:")
        lines.extend(f"  • {escape(f)}" for f in features)
    images = StagedImages(data.get("images") or []).describe()
    lines.append(f"Images: {len(images)}")
    lines.extend(escape(line) for line in images)
    return "\n".join(lines)
