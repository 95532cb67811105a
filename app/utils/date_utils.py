import datetime
from typing import Optional, Union


def parse_timestamp(value: Union[str, datetime.datetime, None]) -> Optional[datetime.datetime]:
    """
    Преобразует отметку времени из API (ISO 8601, возможно с 'Z') в datetime.

    Returns:
        Optional[datetime.datetime]: None для пустого или нераспознанного значения
    """
    if value is None or isinstance(value, datetime.datetime):
        return value
    text = str(value).strip()
    if not text:
        return None
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return datetime.datetime.fromisoformat(text)
    except ValueError:
        return None


def format_date_for_display(
    date_obj: Union[datetime.date, datetime.datetime, None], format_type: str = "short"
) -> str:
    """
    Форматирует дату для отображения в разных форматах.

    Args:
        date_obj: Дата для форматирования
        format_type: Тип формата ('short', 'full', 'datetime')

    Returns:
        str: Отформатированная дата
    """
    if date_obj is None:
        return "-"

    if format_type == "short":
        return date_obj.strftime("%d.%m.%Y")
    elif format_type == "full":
        return f"{date_obj.day} {date_obj.strftime('%B %Y')}"
    elif format_type == "datetime":
        return date_obj.strftime("%d.%m.%Y %H:%M")
    else:
        raise ValueError(f"Unknown format type: {format_type}")


def validate_date_format(date_str: str) -> datetime.date:
    """
    Валидирует и преобразует строку даты в объект datetime.date.
    Поддерживает форматы: DD.MM.YYYY, DD/MM/YYYY, YYYY-MM-DD

    Args:
        date_str: Строка с датой

    Returns:
        datetime.date: Объект даты

    Raises:
        ValueError: Если дата имеет неправильный формат
    """
    formats = ["%d.%m.%Y", "%d/%m/%Y", "%Y-%m-%d"]

    for fmt in formats:
        try:
            return datetime.datetime.strptime(date_str.strip(), fmt).date()
        except ValueError:
            continue

    raise ValueError(
        f"Invalid date: {date_str}. Supported formats: DD.MM.YYYY, DD/MM/YYYY, YYYY-MM-DD"
    )
