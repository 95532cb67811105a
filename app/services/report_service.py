import io
import logging
from typing import Sequence

import pandas as pd

from app.models.order import Order, OrderStatus
from app.utils.stats import to_decimal

logger = logging.getLogger(__name__)


class ReportService:
    def export_orders(self, orders: Sequence[Order], store_name: str = "") -> bytes:
        """
        Выгрузка заказов магазина в Excel.

        Лист "Orders" - заказы построчно, лист "Summary" - количество и сумма
        по статусам (все статусы, включая пустые).

        Returns:
            bytes: Содержимое xlsx-файла
        """
        rows = [
            {
                "Order": order.id,
                "Date": order.created_at.replace(tzinfo=None) if order.created_at else None,
                "Customer": order.customer_name,
                "Phone": order.phone,
                "Status": order.status,
                "Items": sum(item.quantity for item in order.items),
                "Total": float(to_decimal(order.total_amount)),
                "Shipping address": order.shipping_address,
            }
            for order in orders
        ]
        df = pd.DataFrame(
            rows,
            columns=[
                "Order",
                "Date",
                "Customer",
                "Phone",
                "Status",
                "Items",
                "Total",
                "Shipping address",
            ],
        )

        statuses = [s.value for s in OrderStatus]
        if df.empty:
            summary_df = pd.DataFrame(
                {"Status": statuses, "Orders": 0, "Revenue": 0.0}
            )
        else:
            summary_df = (
                df.groupby("Status")
                .agg(Orders=("Order", "count"), Revenue=("Total", "sum"))
                .reindex(statuses, fill_value=0)
                .reset_index()
            )

        excel_buffer = io.BytesIO()
        with pd.ExcelWriter(excel_buffer, engine="openpyxl") as writer:
            df.to_excel(writer, sheet_name="Orders", index=False)
            summary_df.to_excel(writer, sheet_name="Summary", index=False)

        logger.info(
            "Сформирован отчет по заказам %s: %s строк", store_name or "-", len(df)
        )
        return excel_buffer.getvalue()
