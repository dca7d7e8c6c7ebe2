"""
Инфраструктурный слой общего ядра.

Содержит реализации хранилищ записей (в памяти и в JSON-файлах),
канал уведомлений об изменениях и логгер поверх стандартного logging.
"""

import json
import logging
import threading
from collections import deque
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Deque, Dict, Generic, List, Optional, Type, TypeVar

import pydantic
from pydantic import BaseModel

from . import interfaces as ports
from .domain import DomainEvent, EntityId, StoreUnavailable, generate_id

T = TypeVar("T", bound=BaseModel)

LOGGER_NAME = "open_massage"


def configure_logging(level: str = "INFO") -> None:
    """Настраивает вывод логов пакета в консоль."""
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(
            logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s")
        )
        logger.addHandler(handler)


class ConsoleLogger(ports.ILogger):
    """Логгер, передающий сообщения в стандартный logging.

    Именованные аргументы выводятся как JSON-контекст после сообщения.
    """

    def __init__(self, name: str = LOGGER_NAME):
        self._logger = logging.getLogger(name)

    def _log(self, level: int, message: str, **kwargs: Any) -> None:
        if kwargs:
            context = json.dumps(kwargs, default=str, ensure_ascii=False)
            message = f"{message} | {context}"
        self._logger.log(level, message)

    def info(self, message: str, **kwargs: Any) -> None:
        self._log(logging.INFO, message, **kwargs)

    def error(self, message: str, **kwargs: Any) -> None:
        self._log(logging.ERROR, message, **kwargs)

    def warning(self, message: str, **kwargs: Any) -> None:
        self._log(logging.WARNING, message, **kwargs)

    def debug(self, message: str, **kwargs: Any) -> None:
        self._log(logging.DEBUG, message, **kwargs)


class InMemoryRecordStore(Generic[T]):
    """Хранилище записей в памяти.

    Отдает и принимает копии моделей, чтобы изменения вне хранилища
    не влияли на сохраненное состояние.
    """

    def __init__(self, model_class: Type[T], logger: Optional[ports.ILogger] = None):
        self._model_class = model_class
        self._records: Dict[EntityId, T] = {}
        self._lock = threading.RLock()
        self._logger = logger or ConsoleLogger()

    @property
    def collection(self) -> str:
        return self._model_class.__name__

    def get(self, record_id: EntityId) -> Optional[T]:
        with self._lock:
            record = self._records.get(record_id)
            return record.model_copy(deep=True) if record is not None else None

    def insert(self, record: T) -> None:
        with self._lock:
            if record.id in self._records:
                raise ValueError(f"{self.collection} with id {record.id} already exists")
            self._records[record.id] = record.model_copy(deep=True)
            try:
                self._flush()
            except StoreUnavailable:
                del self._records[record.id]
                raise
        self._logger.debug(f"{self.collection} inserted", id=record.id)

    def replace(self, record: T) -> None:
        with self._lock:
            previous = self._records.get(record.id)
            if previous is None:
                raise KeyError(f"{self.collection} with id {record.id} not found")
            self._records[record.id] = record.model_copy(deep=True)
            try:
                self._flush()
            except StoreUnavailable:
                self._records[record.id] = previous
                raise
        self._logger.debug(f"{self.collection} replaced", id=record.id)

    def delete(self, record_id: EntityId) -> None:
        with self._lock:
            previous = self._records.pop(record_id, None)
            if previous is None:
                return
            try:
                self._flush()
            except StoreUnavailable:
                self._records[record_id] = previous
                raise
        self._logger.debug(f"{self.collection} deleted", id=record_id)

    def query(self, predicate: Optional[ports.Predicate] = None) -> List[T]:
        with self._lock:
            return [
                record.model_copy(deep=True)
                for record in self._records.values()
                if predicate is None or predicate(record)
            ]

    def _flush(self) -> None:
        """Фиксирует состояние. Для хранилища в памяти ничего не делает."""


class JsonFileRecordStore(InMemoryRecordStore[T]):
    """Хранилище записей в JSON-файле (массив объектов).

    Файл читается целиком при создании и перезаписывается после
    каждого изменения.
    """

    def __init__(
        self,
        file_path: str,
        model_class: Type[T],
        logger: Optional[ports.ILogger] = None,
    ):
        super().__init__(model_class, logger)
        self._file_path = Path(file_path)
        self._load_data()

    def _load_data(self) -> None:
        """Загружает данные из JSON-файла."""
        if not self._file_path.exists():
            self._records = {}
            return

        try:
            raw_data = self._file_path.read_text(encoding="utf-8")
        except OSError as exc:
            raise StoreUnavailable(f"Cannot read {self._file_path}: {exc}") from exc

        if not raw_data.strip():
            self._records = {}
            return

        try:
            items = json.loads(raw_data)
            records = [self._model_class.model_validate(item) for item in items]
        except (json.JSONDecodeError, pydantic.ValidationError) as exc:
            raise StoreUnavailable(f"Corrupt data in {self._file_path}: {exc}") from exc

        self._records = {record.id: record for record in records}
        self._logger.info(
            f"Loaded {self.collection} records",
            path=str(self._file_path),
            count=len(self._records),
        )

    def _flush(self) -> None:
        """Сохраняет данные в JSON-файл."""
        data = [record.model_dump(mode="json") for record in self._records.values()]
        try:
            self._file_path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path = self._file_path.with_suffix(self._file_path.suffix + ".tmp")
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, ensure_ascii=False)
            tmp_path.replace(self._file_path)
        except OSError as exc:
            self._logger.error(
                f"Failed to write {self.collection} records",
                path=str(self._file_path),
                error=str(exc),
            )
            raise StoreUnavailable(f"Cannot write {self._file_path}: {exc}") from exc


@dataclass(eq=False)
class SubscriptionHandle:
    """Подписка на канал уведомлений.

    Хранит собственную очередь недоставленных событий; после отписки
    очередь очищается без доставки.
    """

    predicate: ports.Predicate
    on_change: ports.ChangeHandler
    subscription_id: EntityId = field(default_factory=generate_id)
    _queue: Deque[DomainEvent] = field(default_factory=deque, repr=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)
    _active: bool = True
    _draining: bool = False

    @property
    def active(self) -> bool:
        return self._active

    @property
    def pending(self) -> int:
        """Количество событий, ожидающих доставки."""
        return len(self._queue)


class InMemoryChangeChannel(ports.IChangeChannel):
    """Канал уведомлений в памяти.

    Каждый подписчик получает события в порядке публикации. Ошибка в
    обработчике записывается в лог и не мешает остальным подписчикам.
    """

    def __init__(self, logger: Optional[ports.ILogger] = None):
        self._subscriptions: List[SubscriptionHandle] = []
        self._lock = threading.RLock()
        self._logger = logger or ConsoleLogger()

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscriptions)

    def subscribe(
        self, predicate: ports.Predicate, on_change: ports.ChangeHandler
    ) -> SubscriptionHandle:
        """Подписывает обработчик на события, удовлетворяющие предикату."""
        handle = SubscriptionHandle(predicate=predicate, on_change=on_change)
        with self._lock:
            self._subscriptions.append(handle)
        self._logger.debug("Subscribed", subscription_id=handle.subscription_id)
        return handle

    def unsubscribe(self, handle: SubscriptionHandle) -> None:
        """Отменяет подписку. Повторный вызов безопасен."""
        with self._lock:
            if handle in self._subscriptions:
                self._subscriptions.remove(handle)
        with handle._lock:
            handle._active = False
            dropped = len(handle._queue)
            handle._queue.clear()
        self._logger.debug(
            "Unsubscribed", subscription_id=handle.subscription_id, dropped=dropped
        )

    def publish(self, event: DomainEvent) -> None:
        """Публикует событие всем подходящим подписчикам."""
        with self._lock:
            subscriptions = list(self._subscriptions)

        targets = []
        for handle in subscriptions:
            try:
                matches = handle.predicate(event)
            except Exception as e:
                self._logger.error(
                    f"Error in subscription filter for {event.event_type}",
                    subscription_id=handle.subscription_id,
                    error=str(e),
                )
                continue
            if not matches:
                continue
            with handle._lock:
                if not handle._active:
                    continue
                handle._queue.append(event)
            targets.append(handle)

        if not targets:
            self._logger.debug(f"No subscribers for event {event.event_type}")
            return

        for handle in targets:
            self._drain(handle)

    def _drain(self, handle: SubscriptionHandle) -> None:
        with handle._lock:
            if handle._draining:
                return
            handle._draining = True

        while True:
            with handle._lock:
                if not (handle._active and handle._queue):
                    handle._draining = False
                    return
                event = handle._queue.popleft()
            try:
                handle.on_change(event)
            except Exception as e:
                self._logger.error(
                    f"Error in change handler for {event.event_type}",
                    subscription_id=handle.subscription_id,
                    error=str(e),
                )
