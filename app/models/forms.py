"""
Схемы форм дашборда владельца магазина.

Формы валидируются до отправки в сеть; ошибки по полям получаются через
field_errors().
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, ValidationError, field_validator

from app.models.product import Product, Specification
from app.utils.date_utils import parse_timestamp, validate_date_format
from app.utils.validators import (
    is_valid_phone,
    is_valid_store_name,
    validate_price,
)


class ProductForm(BaseModel):
    name: str
    description: Optional[str] = None
    price: str
    original_price: Optional[str] = None
    category_id: int = Field(..., ge=1)
    stock: int = Field(0, ge=0)
    images: List[str] = Field(default_factory=list)
    is_fast_sell: bool = False
    is_on_offer: bool = False
    offer_percentage: int = Field(0, ge=0, le=100)
    offer_end_date: Optional[str] = None
    specifications: List[Specification] = Field(default_factory=list)
    features: List[str] = Field(default_factory=list)
    tags: List[str] = Field(default_factory=list)
    is_active: bool = True

    @field_validator("name")
    @classmethod
    def _name_required(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("Product name is required")
        return value

    @field_validator("price", mode="before")
    @classmethod
    def _price(cls, value):
        return validate_price(value, "price")

    @field_validator("original_price", mode="before")
    @classmethod
    def _original_price(cls, value):
        if value is None or not str(value).strip():
            return None
        return validate_price(value, "original_price")

    @field_validator("offer_end_date", mode="before")
    @classmethod
    def _offer_end_date(cls, value):
        if value is None or not str(value).strip():
            return None
        # Отметки времени с сервера сохраняются как есть
        if parse_timestamp(value) is not None:
            return str(value)
        return validate_date_format(str(value)).isoformat()

    @classmethod
    def from_product(cls, product: Product) -> "ProductForm":
        return cls(
            name=product.name,
            description=product.description or "",
            price=product.price,
            original_price=product.original_price or "",
            category_id=product.category_id or 0,
            stock=product.stock or 0,
            images=list(product.images),
            is_fast_sell=product.is_fast_sell,
            is_on_offer=product.is_on_offer,
            offer_percentage=product.offer_percentage or 0,
            offer_end_date=product.offer_end_date or "",
            specifications=list(product.specifications),
            features=list(product.features),
            tags=list(product.tags),
            is_active=product.is_active,
        )

    def to_payload(self, store_id: int) -> Dict[str, Any]:
        """Тело запроса POST/PUT /api/products в формате сервера."""
        description = (self.description or "").strip()
        return {
            "name": self.name.strip(),
            "description": description or None,
            "price": self.price,
            "originalPrice": self.original_price or None,
            "categoryId": self.category_id,
            "storeId": store_id,
            "stock": self.stock or 0,
            "images": [img for img in self.images if img and img.strip()],
            "isFastSell": bool(self.is_fast_sell),
            "isOnOffer": bool(self.is_on_offer),
            "offerPercentage": self.offer_percentage if self.is_on_offer else 0,
            "offerEndDate": self.offer_end_date if self.is_on_offer else None,
            "specifications": [s.model_dump() for s in self.specifications],
            "features": list(self.features),
            "tags": list(self.tags),
            "isActive": self.is_active,
        }


class StoreForm(BaseModel):
    name: str
    description: Optional[str] = None
    address: str
    latitude: Optional[str] = None
    longitude: Optional[str] = None
    phone: Optional[str] = None
    logo: Optional[str] = None
    cover_image: Optional[str] = None
    google_maps_link: Optional[str] = None

    @field_validator("name")
    @classmethod
    def _name(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("Store name is required")
        if not is_valid_store_name(value):
            raise ValueError("Store name is too long or contains forbidden characters")
        return value.strip()

    @field_validator("address")
    @classmethod
    def _address(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("Address is required")
        return value.strip()

    @field_validator("phone")
    @classmethod
    def _phone(cls, value: Optional[str]) -> Optional[str]:
        if value and not is_valid_phone(value):
            raise ValueError("Phone number is not valid")
        return value or None

    def to_payload(self, owner_id: int) -> Dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description or None,
            "address": self.address,
            "latitude": self.latitude or None,
            "longitude": self.longitude or None,
            "phone": self.phone or None,
            "logo": self.logo or None,
            "coverImage": self.cover_image or None,
            "googleMapsLink": self.google_maps_link or None,
            "ownerId": owner_id,
        }


def field_errors(exc: ValidationError) -> Dict[str, str]:
    """
    Сообщения об ошибках по полям формы: {"price": "Price is required"}.

    Для исключений из валидаторов берется исходный текст без префикса pydantic.
    """
    errors: Dict[str, str] = {}
    for error in exc.errors():
        field = ".".join(str(part) for part in error.get("loc", ())) or "__root__"
        original = error.get("ctx", {}).get("error")
        message = str(original) if original is not None else error.get("msg", "")
        errors.setdefault(field, message)
    return errors
