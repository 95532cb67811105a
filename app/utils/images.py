"""
Подготовка изображений товара перед отправкой формы.

Изображения копятся в упорядоченном списке строк: URL или data URL
(снимок камеры / загруженный файл). Порядок списка - порядок показа.
"""

import io
import base64
import logging
from typing import Iterable, List, Optional

from PIL import Image, UnidentifiedImageError

from app.core.config import MAX_IMAGE_BYTES
from app.utils.validators import is_valid_image_url

logger = logging.getLogger(__name__)

DATA_URL_PREFIX = "data:"
CAPTURE_JPEG_QUALITY = 80


class ImageTooLargeError(ValueError):
    def __init__(self, size: int, limit: int = MAX_IMAGE_BYTES):
        super().__init__(
            f"File too large: please select an image smaller than {limit // (1024 * 1024)}MB"
        )
        self.size = size
        self.limit = limit


class UnsupportedImageTypeError(ValueError):
    def __init__(self, content_type: Optional[str]):
        super().__init__("Please upload an image file")
        self.content_type = content_type


class InlineImageError(ValueError):
    def __init__(self):
        super().__init__("Captured or uploaded images cannot be edited as URLs")


class ImageCaptureError(ValueError):
    pass


def is_inline(entry: str) -> bool:
    return entry.startswith(DATA_URL_PREFIX)


def to_data_url(data: bytes, content_type: str) -> str:
    encoded = base64.b64encode(data).decode("ascii")
    return f"data:{content_type};base64,{encoded}"


def encode_captured_frame(data: bytes, quality: int = CAPTURE_JPEG_QUALITY) -> str:
    """
    Кодирует кадр с камеры в JPEG data URL.

    Raises:
        ImageCaptureError: Данные не являются изображением
    """
    try:
        with Image.open(io.BytesIO(data)) as img:
            frame = img.convert("RGB")
    except (UnidentifiedImageError, OSError) as e:
        logger.warning("Не удалось прочитать кадр камеры: %s", e)
        raise ImageCaptureError("Failed to read the captured photo") from e

    buffer = io.BytesIO()
    frame.save(buffer, format="JPEG", quality=quality)
    return to_data_url(buffer.getvalue(), "image/jpeg")


class StagedImages:
    """
    Упорядоченный список изображений формы товара.

    Все проверки выполняются до изменения списка: при ошибке список остается
    прежним.
    """

    def __init__(
        self, images: Optional[Iterable[str]] = None, max_bytes: int = MAX_IMAGE_BYTES
    ):
        self._images: List[str] = list(images or [])
        self.max_bytes = max_bytes

    def __len__(self) -> int:
        return len(self._images)

    def __iter__(self):
        return iter(self._images)

    def __getitem__(self, index: int) -> str:
        return self._images[index]

    def to_list(self) -> List[str]:
        return list(self._images)

    def add_url(self, url: str) -> int:
        url = (url or "").strip()
        if not is_valid_image_url(url):
            raise ValueError("Image URL must start with http:// or https://")
        self._images.append(url)
        return len(self._images) - 1

    def add_captured_frame(self, data: bytes) -> int:
        entry = encode_captured_frame(data)
        self._images.append(entry)
        return len(self._images) - 1

    def check_upload(self, size: int, content_type: Optional[str]) -> None:
        """
        Проверка файла до скачивания и кодирования.

        Raises:
            ImageTooLargeError: Файл больше max_bytes
            UnsupportedImageTypeError: Тип содержимого не image/*
        """
        if size > self.max_bytes:
            raise ImageTooLargeError(size, self.max_bytes)
        if not content_type or not content_type.lower().startswith("image/"):
            raise UnsupportedImageTypeError(content_type)

    def add_upload(
        self, data: bytes, content_type: Optional[str], size: Optional[int] = None
    ) -> int:
        """Добавляет загруженный файл как data URL (см. check_upload)."""
        self.check_upload(len(data) if size is None else size, content_type)

        self._images.append(to_data_url(data, content_type.lower()))
        return len(self._images) - 1

    def _check_index(self, index: int) -> None:
        if index < 0 or index >= len(self._images):
            raise IndexError(f"No image #{index + 1}")

    def update_url(self, index: int, url: str) -> None:
        self._check_index(index)
        if is_inline(self._images[index]):
            raise InlineImageError()
        url = (url or "").strip()
        if not is_valid_image_url(url):
            raise ValueError("Image URL must start with http:// or https://")
        self._images[index] = url

    def remove(self, index: int) -> str:
        self._check_index(index)
        return self._images.pop(index)

    def describe(self) -> List[str]:
        """Короткие подписи для вывода пользователю: URL или тип вложения."""
        lines = []
        for i, entry in enumerate(self._images, 1):
            if is_inline(entry):
                content_type = entry[len(DATA_URL_PREFIX):].split(";", 1)[0]
                lines.append(f"{i}. [{content_type} attachment]")
            else:
                lines.append(f"{i}. {entry}")
        return lines
