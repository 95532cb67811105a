import pytest
import datetime
from app.core.errors import FieldValidationError
from app.utils.validators import (
    validate_price,
    validate_stock,
    validate_offer_percentage,
    validate_date_format,
    is_valid_store_name,
    is_valid_phone,
    is_valid_image_url,
    parse_list_input,
    parse_specifications,
    optional_text,
    sanitize_input,
)


def test_price_validation():
    """Тест валидации цены"""

    assert validate_price("100") == "100"
    assert validate_price("499.99") == "499.99"
    assert validate_price("100,50") == "100.50"
    assert validate_price(" 0.5 ") == "0.5"
    assert validate_price("99999999.99") == "99999999.99"

    with pytest.raises(ValueError):
        validate_price("0")
    with pytest.raises(ValueError):
        validate_price("-5")
    with pytest.raises(ValueError):
        validate_price("1.999")
    with pytest.raises(ValueError):
        validate_price("100000000")
    with pytest.raises(ValueError):
        validate_price("сто")
    with pytest.raises(ValueError):
        validate_price("100.50.25")


def test_price_error_names_the_field():
    with pytest.raises(FieldValidationError) as exc_info:
        validate_price("", "original_price")
    assert exc_info.value.field == "original_price"
    assert str(exc_info.value) == "Original price is required"

    with pytest.raises(FieldValidationError) as exc_info:
        validate_price(None)
    assert str(exc_info.value) == "Price is required"


def test_stock_and_offer_validation():
    assert validate_stock("0") == 0
    assert validate_stock(" 25 ") == 25
    with pytest.raises(ValueError):
        validate_stock("-1")
    with pytest.raises(ValueError):
        validate_stock("2.5")

    assert validate_offer_percentage("15") == 15
    assert validate_offer_percentage("15%") == 15
    assert validate_offer_percentage("0") == 0
    with pytest.raises(ValueError):
        validate_offer_percentage("101")
    with pytest.raises(ValueError):
        validate_offer_percentage("ten")


def test_date_format_validation():
    """Тест валидации формата даты"""

    assert validate_date_format("01.05.2023") == datetime.date(2023, 5, 1)
    assert validate_date_format("01/05/2023") == datetime.date(2023, 5, 1)
    assert validate_date_format("2023-05-01") == datetime.date(2023, 5, 1)

    with pytest.raises(ValueError):
        validate_date_format("01-05-23")
    with pytest.raises(ValueError):
        validate_date_format("32.05.2023")
    with pytest.raises(ValueError):
        validate_date_format("2023.05.01")
    with pytest.raises(ValueError):
        validate_date_format("yesterday")


def test_store_name_validation():
    """Тест валидации названия магазина"""

    assert is_valid_store_name("Corner Bakery")
    assert is_valid_store_name("Store 'Gallery', 10")

    assert not is_valid_store_name("")
    assert not is_valid_store_name("   ")
    assert not is_valid_store_name("S" * 101)
    assert not is_valid_store_name("<script>alert(1)</script>")


def test_phone_and_image_url_validation():
    assert is_valid_phone("+977 980-000-0000")
    assert is_valid_phone("9800000")
    assert not is_valid_phone("12345")
    assert not is_valid_phone("call me")

    assert is_valid_image_url("https://img.example.com/a.jpg")
    assert is_valid_image_url("http://img.example.com/a.png")
    assert not is_valid_image_url("ftp://img.example.com/a.png")
    assert not is_valid_image_url("not a url")


def test_list_inputs():
    assert parse_list_input("bread, fresh\nlocal") == ["bread", "fresh", "local"]
    assert parse_list_input("-") == []
    assert parse_list_input("") == []

    assert parse_specifications("Weight: 800 g\n\nColor: brown") == [
        {"key": "Weight", "value": "800 g"},
        {"key": "Color", "value": "brown"},
    ]
    assert parse_specifications("-") == []
    with pytest.raises(FieldValidationError) as exc_info:
        parse_specifications("Weight 800 g")
    assert exc_info.value.field == "specifications"


def test_optional_text_and_sanitize():
    assert optional_text("-") is None
    assert optional_text("  ") is None
    assert optional_text(None) is None
    assert optional_text(" value ") == "value"

    assert "<" not in sanitize_input("<b>bold</b>")
    assert sanitize_input("") == ""
