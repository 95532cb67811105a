from typing import Any, List, Type, TypeVar

from pydantic import BaseModel, ConfigDict, ValidationError
from pydantic.alias_generators import to_camel

from app.core.errors import ApiError

ModelT = TypeVar("ModelT", bound="ApiModel")


class ApiModel(BaseModel):
    """
    Базовая модель сущностей API.

    API отдает поля в camelCase (storeId, totalAmount), в коде используются
    snake_case имена; неизвестные поля сервера игнорируются.
    """

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, extra="ignore"
    )

    @classmethod
    def from_api(cls: Type[ModelT], data: Any) -> ModelT:
        """
        Разбор ответа сервера.

        Raises:
            ApiError: Ответ не соответствует модели
        """
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            raise ApiError(
                f"Unexpected {cls.__name__.lower()} data from the server"
            ) from e

    @classmethod
    def from_api_list(cls: Type[ModelT], data: Any) -> List[ModelT]:
        return [cls.from_api(item) for item in data or []]
