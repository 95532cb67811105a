from app.core.api import ApiClient
from app.models.user import User
from app.repositories.user_repository import UserRepository
import logging

logger = logging.getLogger(__name__)


class AuthService:
    def __init__(self, api: ApiClient):
        self.repo = UserRepository(api)

    async def login(self, email: str, password: str) -> User:
        email = email.strip().lower()
        if not email or not password:
            raise ValueError("Email and password are required")
        user = await self.repo.login(email, password)
        logger.info("Пользователь вошел: %s (%s)", user.id, user.role)
        return user
