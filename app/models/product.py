import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from app.models.base import ApiModel


class Specification(BaseModel):
    key: str
    value: str = ""


class Product(ApiModel):
    id: int
    store_id: int
    category_id: Optional[int] = None
    name: str
    description: Optional[str] = None
    price: str = Field(..., description="Decimal string, never float")
    original_price: Optional[str] = None
    stock: int = 0
    images: List[str] = Field(default_factory=list, description="Display order")
    is_fast_sell: bool = False
    is_on_offer: bool = False
    offer_percentage: int = 0
    offer_end_date: Optional[str] = None
    specifications: List[Specification] = Field(default_factory=list)
    features: List[str] = Field(default_factory=list)
    tags: List[str] = Field(default_factory=list)
    is_active: bool = True
    created_at: Optional[datetime.datetime] = None
    updated_at: Optional[datetime.datetime] = None

    @field_validator("price", "original_price", mode="before")
    @classmethod
    def _price_as_string(cls, value):
        if value is None:
            return None
        return str(value)

    @field_validator(
        "images", "specifications", "features", "tags", mode="before"
    )
    @classmethod
    def _list_default(cls, value):
        return value or []

    @field_validator("stock", "offer_percentage", mode="before")
    @classmethod
    def _int_default(cls, value):
        return value or 0
