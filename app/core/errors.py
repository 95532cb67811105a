"""
Исключения клиента витрины.

Ошибки валидации наследуются от ValueError: обработчики бота ловят ValueError
и показывают текст пользователю, как и для остальных ошибок ввода.
"""

from typing import Optional


class StorefrontError(Exception):
    """Базовое исключение клиента."""


class ApiError(StorefrontError):
    """Ошибка вызова REST API (HTTP-статус или сбой транспорта)."""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status = status

    def __str__(self) -> str:
        if self.status is None:
            return self.message
        return f"{self.message} (HTTP {self.status})"


class NotFoundError(ApiError):
    def __init__(self, message: str = "Not found"):
        super().__init__(message, status=404)


class ForeignProductError(NotFoundError):
    """Товар принадлежит другому магазину."""

    def __init__(self, product_id: int):
        super().__init__(f"Product #{product_id} not found in your store")
        self.product_id = product_id


class FieldValidationError(ValueError):
    """Ошибка значения конкретного поля формы."""

    def __init__(self, field: str, message: str):
        super().__init__(message)
        self.field = field
        self.message = message
