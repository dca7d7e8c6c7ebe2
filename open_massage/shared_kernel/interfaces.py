"""
Интерфейсы (порты) общего ядра: хранилище записей, канал уведомлений, логгер.
"""

from __future__ import annotations

from typing import Any, Callable, List, Optional, Protocol, TypeVar

from pydantic import BaseModel

from .domain import DomainEvent, EntityId

T_Record = TypeVar("T_Record", bound=BaseModel)

Predicate = Callable[[Any], bool]
ChangeHandler = Callable[[DomainEvent], None]


class ILogger(Protocol):
    """Интерфейс для логгера."""

    def info(self, message: str, **kwargs: Any) -> None: ...
    def error(self, message: str, **kwargs: Any) -> None: ...
    def warning(self, message: str, **kwargs: Any) -> None: ...
    def debug(self, message: str, **kwargs: Any) -> None: ...


class IRecordStore(Protocol[T_Record]):
    """Интерфейс хранилища записей одного типа.

    Записи адресуются по полю ``id``. Отсутствующая запись - это ``None``,
    а не исключение; ошибки ввода-вывода поднимаются как StoreUnavailable.
    """

    def get(self, record_id: EntityId) -> Optional[T_Record]: ...
    def insert(self, record: T_Record) -> None: ...
    def replace(self, record: T_Record) -> None: ...
    def delete(self, record_id: EntityId) -> None: ...
    def query(self, predicate: Optional[Predicate] = None) -> List[T_Record]: ...


class ISubscriptionHandle(Protocol):
    """Дескриптор подписки на канал уведомлений."""

    @property
    def active(self) -> bool: ...


class IChangeChannel(Protocol):
    """Интерфейс канала уведомлений об изменениях (push, subscribe/unsubscribe)."""

    def subscribe(
        self, predicate: Predicate, on_change: ChangeHandler
    ) -> ISubscriptionHandle: ...
    def unsubscribe(self, handle: ISubscriptionHandle) -> None: ...
    def publish(self, event: DomainEvent) -> None: ...
