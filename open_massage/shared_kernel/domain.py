"""
Основные доменные типы и утилиты общего ядра.
"""

from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field

# Общие типы идентификаторов
EntityId = UUID


def generate_id() -> UUID:
    """Генерирует новый UUID."""
    return uuid4()


class Money(BaseModel):
    """Денежная сумма с валютой."""

    model_config = ConfigDict(frozen=True)

    amount: Decimal = Field(..., ge=0, description="Сумма денег")
    currency: str = Field(
        default="SGD", min_length=3, max_length=3, description="Код валюты (ISO 4217)"
    )

    def __add__(self, other: "Money") -> "Money":
        if not isinstance(other, Money):
            raise TypeError("Можно складывать только объекты Money")
        if self.currency != other.currency:
            raise ValueError("Нельзя складывать разные валюты")
        return Money(amount=self.amount + other.amount, currency=self.currency)

    def __str__(self) -> str:
        return f"{self.amount:.2f} {self.currency}"


class DomainEvent(BaseModel):
    """Базовый класс для всех доменных событий."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    event_id: UUID = Field(default_factory=uuid4)
    occurred_on: datetime = Field(default_factory=lambda: now())
    event_type: str = ""

    def model_post_init(self, __context) -> None:
        if not self.event_type:
            self.event_type = type(self).__name__


# Общие перечисления
class UserRole(str, Enum):
    """Роли пользователей. Назначается один раз при регистрации."""

    CLIENT = "client"
    PRACTITIONER = "practitioner"


class BookingStatus(str, Enum):
    """Статусы бронирования.

    Значение CANCELLED входит в схему наравне с остальными: клиент может
    отменить заявку, пока она ожидает ответа.
    """

    PENDING = "pending"
    ACCEPTED = "accepted"
    DECLINED = "declined"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self is not BookingStatus.PENDING


# Общие исключения
class DomainException(Exception):
    """Базовое исключение для доменных ошибок."""

    pass


class ValidationError(DomainException):
    """Некорректные входные данные."""

    pass


class NotFound(DomainException):
    """Запрошенная сущность не существует."""

    pass


class Forbidden(DomainException):
    """У пользователя нет роли или прав владельца для действия."""

    pass


class InvalidTransition(DomainException):
    """Переход статуса не предусмотрен жизненным циклом бронирования."""

    pass


class StoreUnavailable(DomainException):
    """Ошибка ввода-вывода хранилища. Повтор - на стороне вызывающего."""

    pass


class ReferentialIntegrityError(DomainException):
    """Удаление запрещено: на сущность ссылаются другие записи."""

    pass


# Общие утилиты
def now() -> datetime:
    """Возвращает текущие дату и время в UTC."""
    return datetime.now(timezone.utc)


def parse_id(value, label: str = "id") -> EntityId:
    """Приводит строку или UUID к EntityId."""
    if isinstance(value, UUID):
        return value
    try:
        return UUID(str(value))
    except (TypeError, ValueError) as exc:
        raise ValidationError(f"Некорректный формат {label}: {value!r}") from exc
