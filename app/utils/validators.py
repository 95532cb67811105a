import re
import logging
import datetime
from decimal import Decimal, InvalidOperation
from typing import Dict, List, Optional

from app.core.errors import FieldValidationError

logger = logging.getLogger(__name__)

MAX_PRICE = Decimal("99999999.99")


def validate_price(price_str: str, field: str = "price") -> str:
    """
    Валидирует строку цены и возвращает её в нормализованном виде.

    Цена остается строкой: сервер принимает десятичные строки, чтобы не терять
    точность на float.

    Args:
        price_str: Строка с ценой
        field: Имя поля формы для сообщения об ошибке

    Returns:
        str: Цена, например "199.5"

    Raises:
        FieldValidationError: Пустая строка, не число, не больше нуля,
            больше MAX_PRICE или больше двух знаков после точки
    """
    label = "Price" if field == "price" else "Original price"
    if price_str is None or not str(price_str).strip():
        raise FieldValidationError(field, f"{label} is required")

    # Запятая как десятичный разделитель тоже допустима
    value = str(price_str).strip().replace(",", ".")

    if not re.match(r"^[0-9]+(\.[0-9]+)?$", value):
        raise FieldValidationError(
            field, f"{label} must be a positive number with max 2 decimal places"
        )

    try:
        amount = Decimal(value)
    except InvalidOperation:
        raise FieldValidationError(field, f"{label} must be a number")

    if amount <= 0 or amount > MAX_PRICE or amount.as_tuple().exponent < -2:
        raise FieldValidationError(
            field, f"{label} must be a positive number with max 2 decimal places"
        )

    return value


def validate_stock(stock_str: str) -> int:
    value = (stock_str or "").strip()
    if not re.match(r"^[0-9]+$", value):
        raise FieldValidationError("stock", "Stock must be 0 or greater")
    return int(value)


def validate_offer_percentage(value_str: str) -> int:
    value = (value_str or "").strip().rstrip("%")
    if not re.match(r"^[0-9]+$", value) or int(value) > 100:
        raise FieldValidationError(
            "offer_percentage", "Offer percentage must be between 0 and 100"
        )
    return int(value)


def validate_date_format(date_str: str) -> datetime.date:
    """
    Валидирует и преобразует строку даты в объект datetime.date.
    Поддерживает форматы: DD.MM.YYYY, DD/MM/YYYY, YYYY-MM-DD
    """
    from app.utils.date_utils import validate_date_format as date_validator

    return date_validator(date_str)


def is_valid_store_name(name: str) -> bool:
    """
    Проверяет, является ли название магазина допустимым.

    Args:
        name: Название магазина для проверки

    Returns:
        bool: True если название допустимо, иначе False
    """
    if not name or not name.strip():
        return False

    if len(name) > 100:
        return False

    if re.search(r"[<>]", name):
        logger.warning(f"Suspicious store name detected: {name}")
        return False

    return True


def is_valid_phone(phone: str) -> bool:
    """
    Проверяет, является ли строка допустимым номером телефона.

    Args:
        phone: Номер телефона для проверки

    Returns:
        bool: True если номер телефона допустим, иначе False
    """
    clean_phone = re.sub(r"[^\d+]", "", phone)

    generic_pattern = r"^\+?[0-9]{7,15}$"

    return bool(re.match(generic_pattern, clean_phone))


def is_valid_image_url(url: str) -> bool:
    return bool(re.match(r"^https?://\S+$", (url or "").strip()))


def parse_list_input(text: str) -> List[str]:
    """
    Разбирает ввод списка (теги, особенности): элементы через запятую или
    с новой строки. "-" означает пустой список.
    """
    if not text or text.strip() == "-":
        return []
    parts = re.split(r"[,\n]", text)
    return [p.strip() for p in parts if p.strip()]


def parse_specifications(text: str) -> List[Dict[str, str]]:
    """
    Разбирает характеристики товара: по одной на строку в виде "ключ: значение".

    Raises:
        FieldValidationError: Строка без двоеточия или с пустым ключом
    """
    if not text or text.strip() == "-":
        return []

    specs = []
    for line in text.splitlines():
        if not line.strip():
            continue
        key, sep, value = line.partition(":")
        if not sep or not key.strip():
            raise FieldValidationError(
                "specifications",
                f"Specification '{line.strip()}' must look like 'Key: Value'",
            )
        specs.append({"key": key.strip(), "value": value.strip()})
    return specs


def optional_text(text: Optional[str]) -> Optional[str]:
    """'-' и пустая строка означают пропуск необязательного поля."""
    if text is None:
        return None
    text = text.strip()
    if not text or text == "-":
        return None
    return text


def sanitize_input(input_str: str) -> str:
    """
    Санитизирует ввод пользователя для предотвращения инъекций.

    Args:
        input_str: Ввод пользователя

    Returns:
        str: Санитизированная строка
    """
    if not input_str:
        return ""

    sanitized = re.sub(r"[<>]", "", input_str)

    return sanitized[:1000]
