import pytest
from unittest.mock import AsyncMock, patch

import aiohttp

from app.services.location_service import (
    ADDRESS_LOOKUP_FAILED,
    LocationService,
    build_maps_link,
    format_address,
)

NOMINATIM_RESPONSE = {
    "display_name": "Main Road, Biratnagar, Morang, Koshi, Nepal",
    "address": {
        "house_number": "12",
        "road": "Main Road",
        "city": "Biratnagar",
        "county": "Morang",
        "state": "Koshi Province",
        "country": "Nepal",
    },
}


def test_maps_link():
    assert (
        build_maps_link(26.7271, 87.2751) == "https://maps.google.com/?q=26.7271,87.2751"
    )


def test_format_address():
    assert (
        format_address(NOMINATIM_RESPONSE)
        == "12 Main Road, Biratnagar, Morang, Koshi Province, Nepal"
    )
    assert format_address({"display_name": "Somewhere", "address": {}}) == "Somewhere"
    assert format_address({"address": {"city": "Biratnagar"}}) is None
    assert format_address([]) is None


@pytest.mark.asyncio
async def test_resolve_success():
    service = LocationService()
    with patch.object(
        service, "reverse_geocode", AsyncMock(return_value=NOMINATIM_RESPONSE)
    ):
        result = await service.resolve(26.7271, 87.2751)

    assert result.resolved
    assert result.address.startswith("12 Main Road")
    assert result.latitude == "26.7271"
    assert result.longitude == "87.2751"
    assert result.google_maps_link == "https://maps.google.com/?q=26.7271,87.2751"


@pytest.mark.asyncio
async def test_resolve_geocoder_failure_keeps_coordinates():
    """Сбой геокодера: координаты и ссылка заполнены, адрес - заглушка"""

    service = LocationService()
    with patch.object(
        service,
        "reverse_geocode",
        AsyncMock(side_effect=aiohttp.ClientError("unreachable")),
    ):
        result = await service.resolve(26.7271, 87.2751)

    assert not result.resolved
    assert result.address == ADDRESS_LOOKUP_FAILED
    assert result.latitude == "26.7271"
    assert result.google_maps_link == "https://maps.google.com/?q=26.7271,87.2751"


@pytest.mark.asyncio
async def test_resolve_without_display_name_uses_fallback():
    service = LocationService()
    with patch.object(
        service, "reverse_geocode", AsyncMock(return_value={"error": "Unable to geocode"})
    ):
        result = await service.resolve("26.7271", "87.2751")

    assert not result.resolved
    assert result.address == ADDRESS_LOOKUP_FAILED
