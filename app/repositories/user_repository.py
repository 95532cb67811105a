from app.core.api import ApiClient
from app.models.user import User


class UserRepository:
    def __init__(self, api: ApiClient):
        self.api = api

    async def login(self, email: str, password: str) -> User:
        data = await self.api.post(
            "/api/auth/login", json={"email": email, "password": password}
        )
        # Сервер может вернуть пользователя как есть или внутри {"user": ...}
        if isinstance(data, dict) and isinstance(data.get("user"), dict):
            data = data["user"]
        return User.from_api(data)
