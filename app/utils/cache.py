import time
import asyncio
import fnmatch
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple

from app.core.config import QUERY_STALE_TIME

logger = logging.getLogger(__name__)

Fetcher = Callable[[], Awaitable[Any]]


def get_cache_key(*args: Any) -> str:
    """
    Генерирует ключ для кэша на основе переданных аргументов.

    Args:
        *args: Произвольные аргументы для формирования ключа

    Returns:
        str: Сгенерированный ключ кэша
    """
    if not args:
        raise ValueError("Cache key cannot be empty")

    parts = []
    for arg in args:
        if isinstance(arg, dict):
            # Для словарей включаем ключи-значения в строку ключа
            dict_parts = []
            for k, v in sorted(arg.items()):
                dict_parts.append(f"{k}:{v}")
            parts.append("-".join(dict_parts))
        elif isinstance(arg, (list, tuple, set)):
            parts.append("-".join(str(item) for item in arg))
        else:
            parts.append(str(arg))

    return ":".join(parts)


@dataclass(frozen=True)
class QueryDescriptor:
    """
    Дескриптор запроса: путь эндпоинта плюс параметры области видимости
    (ownerId, storeId). Неизменяемый и хешируемый.
    """

    path: str
    params: Tuple[Tuple[str, Any], ...] = ()

    @classmethod
    def of(cls, path: str, **params: Any) -> "QueryDescriptor":
        return cls(path, tuple(sorted(params.items())))

    @property
    def key(self) -> str:
        if not self.params:
            return get_cache_key(self.path)
        return get_cache_key(self.path, dict(self.params))

    def matches(self, prefix: "QueryDescriptor") -> bool:
        """True, если prefix совпадает по пути и его параметры входят в наши."""
        return self.path == prefix.path and set(prefix.params) <= set(self.params)


@dataclass
class QueryOptions:
    stale_time: float = QUERY_STALE_TIME
    # 0 - опрос отключен
    refetch_interval: int = 0
    refetch_on_focus: bool = False


@dataclass
class CacheEntry:
    descriptor: QueryDescriptor
    options: QueryOptions = field(default_factory=QueryOptions)
    data: Any = None
    has_data: bool = False
    updated_at: Optional[float] = None
    error: Optional[BaseException] = None
    is_invalidated: bool = False
    generation: int = 0
    data_generation: int = -1
    in_flight: Optional[asyncio.Future] = None
    in_flight_generation: int = -1


@dataclass
class Snapshot:
    data: Any
    updated_at: Optional[float]
    error: Optional[BaseException]
    is_stale: bool
    is_fetching: bool


class QueryCache:
    """
    Кэш результатов чтения, ключ - дескриптор запроса.

    - один одновременный запрос на дескриптор (повторные вызовы ждут его же);
    - при ошибке загрузки прежние данные остаются и возвращаются, ошибка
      сохраняется в записи;
    - invalidate() помечает записи устаревшими, следующий fetch идет в сеть;
    - результат запроса, начатого до инвалидации, сохраняется, но запись
      остается устаревшей.

    Все обращения идут из одного event loop, блокировки не нужны.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._entries: Dict[str, CacheEntry] = {}

    def _entry(
        self, descriptor: QueryDescriptor, options: Optional[QueryOptions] = None
    ) -> CacheEntry:
        entry = self._entries.get(descriptor.key)
        if entry is None:
            entry = CacheEntry(descriptor=descriptor, options=options or QueryOptions())
            self._entries[descriptor.key] = entry
        elif options is not None:
            entry.options = options
        return entry

    def is_stale(self, entry: CacheEntry) -> bool:
        if not entry.has_data or entry.is_invalidated:
            return True
        return (self._clock() - entry.updated_at) >= entry.options.stale_time

    async def fetch(
        self,
        descriptor: QueryDescriptor,
        fetcher: Fetcher,
        options: Optional[QueryOptions] = None,
    ) -> Any:
        """
        Возвращает данные дескриптора, при необходимости загружая их.
        Если загрузка не удалась, а данные уже есть, возвращаются прежние
        данные; ошибку отдает last_error().

        Raises:
            Exception: Ошибка загрузки, если в кэше еще нет данных
        """
        entry = self._entry(descriptor, options)
        if not self.is_stale(entry):
            return entry.data

        task = self._start_fetch(entry, fetcher)
        try:
            # shield: отмена ожидающего не отменяет сам запрос
            return await asyncio.shield(task)
        except asyncio.CancelledError:
            raise
        except Exception:
            if entry.has_data:
                logger.info(
                    "Используем прежние данные %s после ошибки загрузки", descriptor.key
                )
                return entry.data
            raise

    def last_error(self, *descriptors: QueryDescriptor) -> Optional[BaseException]:
        """
        Ошибка последней загрузки, после которой отданы прежние данные.

        None, если все перечисленные записи загружены успешно.
        """
        for descriptor in descriptors:
            entry = self._entries.get(descriptor.key)
            if entry is not None and entry.has_data and entry.error is not None:
                return entry.error
        return None

    def _start_fetch(self, entry: CacheEntry, fetcher: Fetcher) -> asyncio.Future:
        if (
            entry.in_flight is not None
            and not entry.in_flight.done()
            and entry.in_flight_generation == entry.generation
        ):
            return entry.in_flight

        generation = entry.generation
        logger.debug("Загрузка %s (поколение %s)", entry.descriptor.key, generation)
        task = asyncio.ensure_future(self._run_fetch(entry, fetcher, generation))
        task.add_done_callback(_retrieve_exception)
        entry.in_flight = task
        entry.in_flight_generation = generation
        return task

    async def _run_fetch(
        self, entry: CacheEntry, fetcher: Fetcher, generation: int
    ) -> Any:
        try:
            data = await fetcher()
        except Exception as e:
            entry.error = e
            logger.warning("Ошибка загрузки %s: %s", entry.descriptor.key, e)
            raise
        finally:
            if entry.in_flight_generation == generation:
                entry.in_flight = None

        # Более старый запрос не перетирает данные более нового
        if generation >= entry.data_generation:
            entry.data = data
            entry.has_data = True
            entry.updated_at = self._clock()
            entry.error = None
            entry.data_generation = generation
            entry.is_invalidated = generation != entry.generation
        return data

    def get_snapshot(self, descriptor: QueryDescriptor) -> Optional[Snapshot]:
        entry = self._entries.get(descriptor.key)
        if entry is None:
            return None
        return Snapshot(
            data=entry.data,
            updated_at=entry.updated_at,
            error=entry.error,
            is_stale=self.is_stale(entry),
            is_fetching=entry.in_flight is not None and not entry.in_flight.done(),
        )

    def get_data(self, descriptor: QueryDescriptor, default: Any = None) -> Any:
        entry = self._entries.get(descriptor.key)
        if entry is None or not entry.has_data:
            return default
        return entry.data

    def set_data(self, descriptor: QueryDescriptor, data: Any) -> None:
        entry = self._entry(descriptor)
        entry.data = data
        entry.has_data = True
        entry.updated_at = self._clock()
        entry.error = None
        entry.is_invalidated = False
        entry.data_generation = entry.generation

    def invalidate(
        self, descriptor: Optional[QueryDescriptor] = None, pattern: Optional[str] = None
    ) -> int:
        """
        Помечает записи устаревшими по дескриптору-префиксу или glob-паттерну ключа
        (например, "/api/products*").

        Returns:
            int: Количество затронутых записей
        """
        matched = 0
        for key, entry in self._entries.items():
            hit = (
                descriptor is not None and entry.descriptor.matches(descriptor)
            ) or (pattern is not None and fnmatch.fnmatchcase(key, pattern))
            if not hit:
                continue
            entry.generation += 1
            entry.is_invalidated = True
            matched += 1

        logger.debug(
            "Инвалидация %s: %s записей",
            descriptor.key if descriptor is not None else pattern,
            matched,
        )
        return matched

    def refetch_on_focus(self) -> List[QueryDescriptor]:
        """Помечает устаревшими записи, подписанные на возврат фокуса."""
        descriptors = []
        for entry in self._entries.values():
            if entry.options.refetch_on_focus:
                entry.generation += 1
                entry.is_invalidated = True
                descriptors.append(entry.descriptor)
        return descriptors


def _retrieve_exception(task: asyncio.Future) -> None:
    # Ошибка уже записана в запись кэша; гасим "exception was never retrieved"
    if not task.cancelled():
        task.exception()
