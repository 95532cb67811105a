import io

import pandas as pd

from app.models import Order
from app.services.report_service import ReportService
from conftest import order_payload


def test_export_orders_workbook():
    orders = [
        Order.model_validate(order_payload(order_id=1, total="100.50")),
        Order.model_validate(order_payload(order_id=2, total="200")),
        Order.model_validate(order_payload(order_id=3, status="delivered", total="50")),
    ]

    content = ReportService().export_orders(orders, "Corner Bakery")

    sheets = pd.read_excel(io.BytesIO(content), sheet_name=None)
    assert set(sheets) == {"Orders", "Summary"}

    orders_df = sheets["Orders"]
    assert list(orders_df["Order"]) == [1, 2, 3]
    assert list(orders_df["Items"]) == [2, 2, 2]

    summary = sheets["Summary"].set_index("Status")
    assert summary.loc["pending", "Orders"] == 2
    assert summary.loc["pending", "Revenue"] == 300.5
    assert summary.loc["delivered", "Orders"] == 1
    assert summary.loc["cancelled", "Orders"] == 0


def test_export_without_orders():
    content = ReportService().export_orders([])

    sheets = pd.read_excel(io.BytesIO(content), sheet_name=None)
    assert sheets["Orders"].empty
    assert list(sheets["Summary"]["Status"]) == [
        "pending",
        "processing",
        "shipped",
        "delivered",
        "cancelled",
    ]
