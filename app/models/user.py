from typing import Optional

from app.models.base import ApiModel

STORE_OWNER_ROLE = "store_owner"


class User(ApiModel):
    id: int
    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    role: str = "customer"

    @property
    def display_name(self) -> str:
        parts = [p for p in (self.first_name, self.last_name) if p]
        return " ".join(parts) or (self.email or f"user #{self.id}")

    @property
    def is_store_owner(self) -> bool:
        return self.role == STORE_OWNER_ROLE
