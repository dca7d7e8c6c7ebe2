"""
Доменная модель контекста бронирования.

Содержит заявку на бронирование, ее жизненный цикл и правила видимости
заявок для клиентов и специалистов.
"""

from datetime import datetime, timezone
from typing import Callable, Dict, Iterable, List, Optional, Set, Tuple

from pydantic import (
    AwareDatetime,
    BaseModel,
    ConfigDict,
    Field,
    PrivateAttr,
    field_validator,
)

from ..shared_kernel import (
    BookingStatus,
    DomainEvent,
    EntityId,
    InvalidTransition,
    UserRole,
    generate_id,
    now,
)


class Booking(BaseModel):
    """Заявка клиента на услугу специалиста на конкретное время.

    Ссылки на услугу и клиента задаются при создании и больше не меняются.
    """

    model_config = ConfigDict(validate_assignment=True)

    id: EntityId = Field(default_factory=generate_id, frozen=True)
    service_id: EntityId = Field(..., frozen=True)
    client_id: EntityId = Field(..., frozen=True)
    booking_date: AwareDatetime
    special_requests: Optional[str] = None
    status: BookingStatus = BookingStatus.PENDING
    created_at: datetime = Field(default_factory=now)
    updated_at: datetime = Field(default_factory=now)
    _domain_events: List[DomainEvent] = PrivateAttr(default_factory=list)

    @field_validator("booking_date")
    @classmethod
    def to_utc(cls, v: datetime) -> datetime:
        return v.astimezone(timezone.utc)

    @field_validator("special_requests")
    @classmethod
    def empty_requests_is_none(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.strip():
            return None
        return v

    @property
    def domain_events(self) -> List[DomainEvent]:
        """Возвращает список доменных событий."""
        return list(self._domain_events)

    def pull_domain_events(self) -> List[DomainEvent]:
        """Извлекает события и очищает список."""
        events = list(self._domain_events)
        self._domain_events.clear()
        return events

    def check_transition(self, target: BookingStatus, actor_role: UserRole) -> None:
        """Проверяет, что переход в target допустим для роли actor_role."""
        BookingPolicy.check_transition(self.status, target, actor_role)

    @classmethod
    def create(
        cls,
        service_id: EntityId,
        client_id: EntityId,
        booking_date: datetime,
        special_requests: Optional[str] = None,
    ) -> "Booking":
        """Создает новую заявку в статусе pending."""
        booking = cls(
            service_id=service_id,
            client_id=client_id,
            booking_date=booking_date,
            special_requests=special_requests,
        )
        booking._domain_events.append(BookingCreated.for_booking(booking))
        return booking


class BookingEvent(DomainEvent):
    """Базовое событие изменения заявки. Несет снимок заявки после изменения."""

    booking: Booking

    @property
    def booking_id(self) -> EntityId:
        return self.booking.id


class BookingCreated(BookingEvent):
    """Событие создания заявки."""

    @classmethod
    def for_booking(cls, booking: Booking) -> "BookingCreated":
        return cls(booking=booking.model_copy(deep=True))


class BookingStatusChanged(BookingEvent):
    """Событие смены статуса заявки."""

    previous_status: BookingStatus

    @property
    def status(self) -> BookingStatus:
        return self.booking.status


class BookingPolicy:
    """Правила жизненного цикла заявки.

    Из pending можно перейти в accepted или declined (специалист-владелец
    услуги) либо в cancelled (клиент-автор заявки). Остальные статусы
    конечные.
    """

    TRANSITIONS: Dict[Tuple[BookingStatus, BookingStatus], UserRole] = {
        (BookingStatus.PENDING, BookingStatus.ACCEPTED): UserRole.PRACTITIONER,
        (BookingStatus.PENDING, BookingStatus.DECLINED): UserRole.PRACTITIONER,
        (BookingStatus.PENDING, BookingStatus.CANCELLED): UserRole.CLIENT,
    }

    RESPONSES = (BookingStatus.ACCEPTED, BookingStatus.DECLINED)

    @classmethod
    def allowed_targets(
        cls, current: BookingStatus, actor_role: UserRole
    ) -> Set[BookingStatus]:
        """Статусы, в которые роль может перевести заявку из current."""
        return {
            target
            for (source, target), role in cls.TRANSITIONS.items()
            if source is current and role is actor_role
        }

    @classmethod
    def check_transition(
        cls, current: BookingStatus, target: BookingStatus, actor_role: UserRole
    ) -> None:
        """Проверяет переход. При нарушении бросает InvalidTransition."""
        required_role = cls.TRANSITIONS.get((current, target))
        if required_role is None:
            raise InvalidTransition(
                f"Переход {current.value} -> {target.value} не предусмотрен"
            )
        if required_role is not actor_role:
            raise InvalidTransition(
                f"Переход {current.value} -> {target.value} "
                f"доступен только роли {required_role.value}"
            )


class BookingVisibility:
    """Правила видимости заявок.

    Клиент видит свои заявки. Специалист видит заявки на свои услуги;
    идентификатор специалиста в заявке не хранится, поэтому связь
    проходит через услугу.
    """

    @staticmethod
    def for_client(client_id: EntityId) -> Callable[[Booking], bool]:
        return lambda booking: booking.client_id == client_id

    @staticmethod
    def for_services(service_ids: Iterable[EntityId]) -> Callable[[Booking], bool]:
        owned = frozenset(service_ids)
        return lambda booking: booking.service_id in owned

    @staticmethod
    def newest_first(bookings: Iterable[Booking]) -> List[Booking]:
        return sorted(bookings, key=lambda b: b.created_at, reverse=True)
