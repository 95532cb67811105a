import pytest
from unittest.mock import AsyncMock
import sys
from pathlib import Path

from aiogram.types import Message, User as TgUser, Chat
from aiogram.fsm.context import FSMContext
from aiogram.fsm.storage.memory import MemoryStorage


sys.path.append(str(Path(__file__).resolve().parent.parent))

from app.core.api import ApiClient
from app.utils.cache import QueryCache


class FakeClock:
    """Управляемые часы для проверок устаревания кэша"""

    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache(clock):
    return QueryCache(clock=clock)


@pytest.fixture
def api():
    """Мок REST-клиента; ответы GET задаются словарем путь -> данные"""
    client = AsyncMock(spec=ApiClient)
    client.responses = {}

    async def _get(path):
        value = client.responses.get(path, [])
        if isinstance(value, Exception):
            raise value
        return value

    client.get.side_effect = _get
    return client


@pytest.fixture
def create_message():
    def _create_message(text="", chat_id=111, from_user_id=111):
        message = AsyncMock(spec=Message)
        message.text = text
        message.chat = Chat(id=chat_id, type="private")
        message.from_user = TgUser(id=from_user_id, is_bot=False, first_name="Test")
        message.answer = AsyncMock()
        message.answer_document = AsyncMock()
        message.delete = AsyncMock()
        return message

    return _create_message


@pytest.fixture
def state():
    storage = MemoryStorage()
    state = FSMContext(storage=storage, key="test")
    return state


@pytest.fixture
def owner_state(state):
    """Состояние FSM вошедшего владельца магазина"""

    async def _login(user_id=7):
        await state.update_data(
            user_id=user_id, role="store_owner", name="Owner", email="owner@example.com"
        )
        return state

    return _login


def store_payload(store_id=3, owner_id=7, **extra):
    payload = {
        "id": store_id,
        "name": "Corner Bakery",
        "description": "Fresh bread daily",
        "address": "12 Main Road, Biratnagar",
        "ownerId": owner_id,
        "rating": "4.50",
    }
    payload.update(extra)
    return payload


def product_payload(product_id=10, store_id=3, **extra):
    payload = {
        "id": product_id,
        "storeId": store_id,
        "categoryId": 2,
        "name": "Sourdough loaf",
        "description": "Slow fermented",
        "price": "250.00",
        "originalPrice": "300.00",
        "stock": 12,
        "images": ["https://img.example.com/loaf.jpg"],
        "isFastSell": False,
        "isOnOffer": True,
        "offerPercentage": 15,
        "offerEndDate": "2030-12-31T00:00:00.000Z",
        "specifications": [{"key": "Weight", "value": "800 g"}],
        "features": ["Vegan"],
        "tags": ["bread", "fresh"],
        "isActive": True,
    }
    payload.update(extra)
    return payload


def order_payload(order_id=100, store_id=3, status="pending", total="500.00", **extra):
    payload = {
        "id": order_id,
        "storeId": store_id,
        "customerName": "Asha",
        "phone": "+9779800000000",
        "totalAmount": total,
        "status": status,
        "shippingAddress": "Ward 4, Biratnagar",
        "createdAt": "2024-05-01T10:30:00.000Z",
        "items": [{"id": 1, "productId": 10, "quantity": 2, "price": "250.00"}],
    }
    payload.update(extra)
    return payload
