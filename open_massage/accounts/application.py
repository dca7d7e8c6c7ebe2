"""
Прикладной слой контекста учетных записей.
"""

import threading
from datetime import datetime
from typing import Any, ContextManager, Optional, Union

import pydantic
from pydantic import BaseModel

from ..shared_kernel import (
    EntityId,
    NotFound,
    ReferentialIntegrityError,
    UserRole,
    ValidationError,
    parse_id,
)
from . import interfaces as ports
from .domain import User

# DTO для исходящих данных


class UserDTO(BaseModel):
    """DTO для представления пользователя."""

    id: EntityId
    name: str
    email: str
    role: UserRole
    created_at: datetime

    @classmethod
    def from_domain(cls, user: User) -> "UserDTO":
        """Создает DTO из доменной модели."""
        return cls(
            id=user.id,
            name=user.name,
            email=str(user.email),
            role=user.role,
            created_at=user.created_at,
        )


class AccountApplicationService:
    """Сервис приложения для работы с учетными записями."""

    def __init__(
        self,
        users: ports.IUserStore,
        services: ports.IReferencingStore,
        bookings: ports.IReferencingStore,
        lock: Optional[ContextManager[Any]] = None,
    ):
        """Инициализирует сервис.

        services и bookings нужны только для проверки ссылок при удалении.
        lock - общая блокировка ссылок; под ней проверка ссылок и удаление
        не пересекаются с созданием услуг и бронирований.
        """
        self._users = users
        self._services = services
        self._bookings = bookings
        self._lock = lock if lock is not None else threading.RLock()

    def register_user(
        self, name: str, email: str, role: Union[UserRole, str]
    ) -> UserDTO:
        """Регистрирует нового пользователя с заданной ролью."""
        try:
            user = User(name=name, email=email, role=role)
        except pydantic.ValidationError as exc:
            raise ValidationError(f"Некорректные данные пользователя: {exc}") from exc

        with self._lock:
            if self.find_user_by_email(str(user.email)) is not None:
                raise ValidationError(
                    f"Пользователь с email {user.email} уже зарегистрирован"
                )
            self._users.insert(user)
        return UserDTO.from_domain(user)

    def get_user(self, user_id: Union[EntityId, str]) -> UserDTO:
        """Возвращает информацию о пользователе."""
        user = self._users.get(parse_id(user_id, "user_id"))
        if user is None:
            raise NotFound(f"Пользователь {user_id} не найден")
        return UserDTO.from_domain(user)

    def find_user_by_email(self, email: str) -> Optional[UserDTO]:
        """Находит пользователя по email (без учета регистра)."""
        needle = email.strip().lower()
        matches = self._users.query(lambda u: str(u.email).lower() == needle)
        if not matches:
            return None
        return UserDTO.from_domain(matches[0])

    def delete_account(self, user_id: Union[EntityId, str]) -> None:
        """Удаляет учетную запись.

        Пользователь, на которого ссылаются услуги или бронирования,
        не удаляется.
        """
        user_uuid = parse_id(user_id, "user_id")
        with self._lock:
            user = self._users.get(user_uuid)
            if user is None:
                raise NotFound(f"Пользователь {user_id} не найден")

            if user.is_practitioner:
                if self._services.query(lambda s: s.user_id == user_uuid):
                    raise ReferentialIntegrityError(
                        "Нельзя удалить специалиста, у которого есть услуги"
                    )
            elif self._bookings.query(lambda b: b.client_id == user_uuid):
                raise ReferentialIntegrityError(
                    "Нельзя удалить клиента, у которого есть бронирования"
                )

            self._users.delete(user_uuid)
