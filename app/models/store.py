from typing import Optional

from pydantic import Field, field_validator

from app.models.base import ApiModel


class Store(ApiModel):
    id: int
    name: str
    description: Optional[str] = None
    address: Optional[str] = None
    latitude: Optional[str] = None
    longitude: Optional[str] = None
    phone: Optional[str] = None
    website: Optional[str] = None
    logo: Optional[str] = None
    cover_image: Optional[str] = None
    google_maps_link: Optional[str] = None
    rating: Optional[str] = Field(None, description="Decimal rating as string")
    owner_id: Optional[int] = None

    @field_validator("rating", "latitude", "longitude", mode="before")
    @classmethod
    def _decimal_as_string(cls, value):
        if value is None:
            return None
        return str(value)
