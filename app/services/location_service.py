import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, Union

import aiohttp

from app.core.config import NOMINATIM_TIMEOUT, NOMINATIM_URL, NOMINATIM_USER_AGENT

logger = logging.getLogger(__name__)

ADDRESS_LOOKUP_FAILED = "Location coordinates set but address lookup failed"
MAPS_LINK_TEMPLATE = "https://maps.google.com/?q={latitude},{longitude}"

Coordinate = Union[float, str]


@dataclass
class LocationResult:
    latitude: str
    longitude: str
    address: str
    google_maps_link: str
    resolved: bool


def build_maps_link(latitude: Coordinate, longitude: Coordinate) -> str:
    return MAPS_LINK_TEMPLATE.format(latitude=latitude, longitude=longitude)


def format_address(data: Dict[str, Any]) -> Optional[str]:
    """
    Собирает читаемый адрес из ответа Nominatim.

    Returns:
        Optional[str]: None, если в ответе нет display_name
    """
    if not isinstance(data, dict) or not data.get("display_name"):
        return None

    details = data.get("address") or {}
    house_number = details.get("house_number", "")
    street = details.get("road", "")
    city = details.get("city") or details.get("town") or details.get("village") or ""
    district = details.get("county") or details.get("district") or ""

    parts = [
        f"{house_number} {street}".strip() if house_number else "",
        city,
        district,
        details.get("state", ""),
        details.get("country", ""),
    ]
    address = ", ".join(part for part in parts if part)
    return address or data["display_name"]


class LocationService:
    """
    Координаты -> адрес через обратное геокодирование Nominatim.

    Сбой геокодера не прерывает операцию: координаты и ссылка на карту
    заполняются всегда, адрес заменяется на ADDRESS_LOOKUP_FAILED.
    """

    def __init__(
        self,
        session: Optional[aiohttp.ClientSession] = None,
        base_url: str = NOMINATIM_URL,
        timeout: float = NOMINATIM_TIMEOUT,
    ):
        self._session = session
        self.base_url = base_url.rstrip("/")
        self.timeout = aiohttp.ClientTimeout(total=timeout)

    async def reverse_geocode(self, latitude: Coordinate, longitude: Coordinate) -> Any:
        params = {
            "format": "json",
            "lat": str(latitude),
            "lon": str(longitude),
            "zoom": "18",
            "addressdetails": "1",
        }
        headers = {"User-Agent": NOMINATIM_USER_AGENT}
        url = f"{self.base_url}/reverse"

        if self._session is not None:
            return await self._get_json(self._session, url, params, headers)
        async with aiohttp.ClientSession(timeout=self.timeout) as session:
            return await self._get_json(session, url, params, headers)

    async def _get_json(self, session, url, params, headers) -> Any:
        async with session.get(
            url, params=params, headers=headers, timeout=self.timeout
        ) as response:
            response.raise_for_status()
            return await response.json(content_type=None)

    async def resolve(self, latitude: Coordinate, longitude: Coordinate) -> LocationResult:
        maps_link = build_maps_link(latitude, longitude)

        address = None
        try:
            data = await self.reverse_geocode(latitude, longitude)
            address = format_address(data)
        except Exception as e:
            logger.warning(
                "Обратное геокодирование %s,%s не удалось: %s", latitude, longitude, e
            )

        if address is None:
            logger.info("Адрес для %s,%s не найден", latitude, longitude)

        return LocationResult(
            latitude=str(latitude),
            longitude=str(longitude),
            address=address or ADDRESS_LOOKUP_FAILED,
            google_maps_link=maps_link,
            resolved=address is not None,
        )
