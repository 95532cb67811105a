import datetime
from enum import Enum
from typing import List, Optional

from pydantic import Field, field_validator

from app.models.base import ApiModel


class OrderStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class OrderItem(ApiModel):
    id: Optional[int] = None
    order_id: Optional[int] = None
    product_id: Optional[int] = None
    quantity: int = 1
    price: str = "0"

    @field_validator("price", mode="before")
    @classmethod
    def _price_as_string(cls, value):
        return "0" if value is None else str(value)


class Order(ApiModel):
    id: int
    store_id: Optional[int] = None
    customer_name: Optional[str] = None
    phone: Optional[str] = None
    total_amount: str = Field("0", description="Authoritative total, decimal string")
    status: str = OrderStatus.PENDING.value
    shipping_address: Optional[str] = None
    created_at: Optional[datetime.datetime] = None
    items: List[OrderItem] = Field(default_factory=list)

    @field_validator("total_amount", mode="before")
    @classmethod
    def _amount_as_string(cls, value):
        return "0" if value is None else str(value)

    @field_validator("items", mode="before")
    @classmethod
    def _items_default(cls, value):
        return value or []
