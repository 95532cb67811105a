from app.models.base import ApiModel


class Category(ApiModel):
    id: int
    name: str
