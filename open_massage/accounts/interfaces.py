"""
Интерфейсы (порты) для контекста учетных записей.
"""

from __future__ import annotations

from typing import Any, List, Optional, Protocol

from ..shared_kernel import EntityId
from ..shared_kernel.interfaces import IRecordStore, Predicate
from .domain import User


class IUserStore(IRecordStore[User], Protocol):
    """Хранилище пользователей."""


class IReferencingStore(Protocol):
    """Хранилище записей, которые могут ссылаться на пользователя.

    Используется для проверки ссылочной целостности при удалении.
    """

    def query(self, predicate: Optional[Predicate] = None) -> List[Any]: ...
    def get(self, record_id: EntityId) -> Optional[Any]: ...
