import asyncio
import logging
from typing import Any, Optional

import aiohttp

from app.core.config import API_BASE_URL, API_TIMEOUT
from app.core.errors import ApiError, NotFoundError

logger = logging.getLogger(__name__)


class ApiClient:
    """
    Асинхронный клиент REST API витрины.

    Одна aiohttp-сессия на процесс; сессия создается лениво при первом запросе
    и закрывается через close() или выход из async with.
    """

    def __init__(
        self,
        base_url: str = API_BASE_URL,
        timeout: float = API_TIMEOUT,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = aiohttp.ClientTimeout(total=timeout)
        self._session = session

    @property
    def session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self.timeout)
        return self._session

    async def close(self) -> None:
        if self._session is not None and not self._session.closed:
            await self._session.close()

    async def __aenter__(self) -> "ApiClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def request(self, method: str, path: str, json: Any = None) -> Any:
        url = f"{self.base_url}{path}"
        try:
            async with self.session.request(method, url, json=json) as response:
                if response.status == 204:
                    return None
                body = await self._read_body(response)
                if response.status == 404:
                    raise NotFoundError(_error_message(body, "Not found"))
                if response.status >= 400:
                    raise ApiError(
                        _error_message(body, response.reason or "Request failed"),
                        status=response.status,
                    )
                return body
        except aiohttp.ClientError as e:
            logger.error("HTTP %s %s не выполнен: %s", method, path, e)
            raise ApiError(f"Network error: {e}") from e
        except asyncio.TimeoutError as e:
            logger.error("HTTP %s %s: таймаут", method, path)
            raise ApiError("Request timed out") from e

    @staticmethod
    async def _read_body(response: aiohttp.ClientResponse) -> Any:
        text = await response.text()
        if not text:
            return None
        try:
            return await response.json(content_type=None)
        except ValueError:
            return text

    async def get(self, path: str) -> Any:
        return await self.request("GET", path)

    async def post(self, path: str, json: Any = None) -> Any:
        return await self.request("POST", path, json=json)

    async def put(self, path: str, json: Any = None) -> Any:
        return await self.request("PUT", path, json=json)

    async def delete(self, path: str) -> Any:
        return await self.request("DELETE", path)


def _error_message(body: Any, default: str) -> str:
    if isinstance(body, dict):
        return str(body.get("message") or body.get("error") or default)
    if isinstance(body, str) and body.strip():
        return body.strip()[:200]
    return default
