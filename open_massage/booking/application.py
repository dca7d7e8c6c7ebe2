"""
Прикладной слой контекста бронирования.

Содержит менеджер жизненного цикла заявок: создание, ответ специалиста,
отмену клиентом, выборку видимых пользователю заявок и подписку на их
изменения.
"""

import threading
from contextlib import contextmanager
from datetime import datetime
from typing import Any, Callable, ContextManager, Iterator, List, Optional, Union

import pydantic
from pydantic import AwareDatetime, BaseModel

from ..shared_kernel import (
    BookingStatus,
    DomainEvent,
    EntityId,
    Forbidden,
    InvalidTransition,
    NotFound,
    UserRole,
    ValidationError,
    parse_id,
)
from ..shared_kernel.infrastructure import SubscriptionHandle
from . import interfaces as ports
from .domain import (
    Booking,
    BookingEvent,
    BookingStatusChanged,
    BookingVisibility,
)

IdInput = Union[EntityId, str]

# DTO (Data Transfer Objects) для входящих данных


class CreateBookingRequest(BaseModel):
    """Запрос на создание бронирования."""

    service_id: EntityId
    client_id: EntityId
    booking_date: AwareDatetime
    special_requests: Optional[str] = None


# DTO для исходящих данных


class BookingDTO(BaseModel):
    """DTO заявки для отображения в списке запросов."""

    id: EntityId
    service_id: EntityId
    client_id: EntityId
    booking_date: datetime
    date_label: str
    time_label: str
    special_requests: str
    status: BookingStatus
    service_title: Optional[str] = None
    practitioner_name: Optional[str] = None
    client_name: Optional[str] = None
    created_at: datetime

    @classmethod
    def from_domain(
        cls,
        booking: Booking,
        service_title: Optional[str] = None,
        practitioner_name: Optional[str] = None,
        client_name: Optional[str] = None,
    ) -> "BookingDTO":
        """Создает DTO из доменной модели."""
        return cls(
            id=booking.id,
            service_id=booking.service_id,
            client_id=booking.client_id,
            booking_date=booking.booking_date,
            date_label=booking.booking_date.strftime("%Y-%m-%d"),
            time_label=booking.booking_date.strftime("%H:%M"),
            special_requests=booking.special_requests or "",
            status=booking.status,
            service_title=service_title,
            practitioner_name=practitioner_name,
            client_name=client_name,
            created_at=booking.created_at,
        )


def _parse_role(role: Union[UserRole, str]) -> UserRole:
    try:
        return UserRole(role)
    except ValueError as exc:
        raise ValidationError(f"Неизвестная роль: {role!r}") from exc


def _parse_status(status: Union[BookingStatus, str]) -> BookingStatus:
    try:
        return BookingStatus(status)
    except ValueError as exc:
        raise ValidationError(f"Неизвестный статус: {status!r}") from exc


class BookingLifecycleManager:
    """Менеджер жизненного цикла заявок на бронирование.

    Не хранит собственного состояния, кроме подписок, выданных через
    watch_bookings. Смена статуса выполняется условной записью в
    хранилище, поэтому из двух конкурирующих переходов успешен ровно один.
    Создание заявки выполняется под общей блокировкой ссылок, той же, под
    которой каталог и учетные записи проверяют ссылки перед удалением.
    """

    def __init__(
        self,
        bookings: ports.IBookingStore,
        services: ports.IServiceStore,
        users: ports.IUserStore,
        channel: ports.IChangeChannel,
        lock: Optional[ContextManager[Any]] = None,
    ):
        """Инициализирует менеджер."""
        self._bookings = bookings
        self._services = services
        self._users = users
        self._channel = channel
        self._lock = lock if lock is not None else threading.RLock()

    def create_booking(
        self,
        service_id: IdInput,
        client_id: IdInput,
        booking_date: Union[datetime, str],
        special_requests: Optional[str] = None,
    ) -> Booking:
        """Создает заявку в статусе pending."""
        try:
            request = CreateBookingRequest(
                service_id=service_id,
                client_id=client_id,
                booking_date=booking_date,
                special_requests=special_requests,
            )
        except pydantic.ValidationError as exc:
            raise ValidationError(f"Некорректная заявка: {exc}") from exc

        with self._lock:
            if self._services.get(request.service_id) is None:
                raise ValidationError(f"Услуга {request.service_id} не существует")

            client = self._users.get(request.client_id)
            if client is None:
                raise ValidationError(f"Клиент {request.client_id} не существует")
            if client.role is not UserRole.CLIENT:
                raise ValidationError("Создавать заявки может только клиент")

            booking = Booking.create(
                service_id=request.service_id,
                client_id=request.client_id,
                booking_date=request.booking_date,
                special_requests=request.special_requests,
            )
            events = booking.pull_domain_events()
            self._bookings.insert(booking)
        self._publish(events)
        return booking

    def respond_to_booking(
        self,
        booking_id: IdInput,
        acting_practitioner_id: IdInput,
        decision: Union[BookingStatus, str],
    ) -> Booking:
        """Принимает или отклоняет заявку от имени владельца услуги."""
        target = _parse_status(decision)
        actor_id = parse_id(acting_practitioner_id, "practitioner_id")
        booking = self._get_booking(booking_id)

        service = self._services.get(booking.service_id)
        if service is None:
            raise NotFound(f"Услуга {booking.service_id} не найдена")
        if service.user_id != actor_id:
            raise Forbidden("Ответить на заявку может только владелец услуги")

        return self._transition(booking, target, UserRole.PRACTITIONER)

    def cancel_booking(self, booking_id: IdInput, acting_client_id: IdInput) -> Booking:
        """Отменяет заявку от имени клиента, который ее создал."""
        actor_id = parse_id(acting_client_id, "client_id")
        booking = self._get_booking(booking_id)

        if booking.client_id != actor_id:
            raise Forbidden("Отменить заявку может только ее автор")

        return self._transition(booking, BookingStatus.CANCELLED, UserRole.CLIENT)

    def list_visible_bookings(
        self, user_id: IdInput, role: Union[UserRole, str]
    ) -> List[Booking]:
        """Возвращает заявки, видимые пользователю, от новых к старым."""
        user_uuid = parse_id(user_id, "user_id")
        role = _parse_role(role)

        if role is UserRole.CLIENT:
            predicate = BookingVisibility.for_client(user_uuid)
        else:
            owned = [s.id for s in self._services.query(lambda s: s.user_id == user_uuid)]
            if not owned:
                return []
            predicate = BookingVisibility.for_services(owned)

        return BookingVisibility.newest_first(self._bookings.query(predicate))

    def list_booking_requests(
        self, user_id: IdInput, role: Union[UserRole, str]
    ) -> List[BookingDTO]:
        """Возвращает видимые заявки с названием услуги и именами участников."""
        bookings = self.list_visible_bookings(user_id, role)
        services = {}
        names = {}

        def name_of(uid: EntityId) -> Optional[str]:
            if uid not in names:
                user = self._users.get(uid)
                names[uid] = user.name if user is not None else None
            return names[uid]

        result = []
        for booking in bookings:
            if booking.service_id not in services:
                services[booking.service_id] = self._services.get(booking.service_id)
            service = services[booking.service_id]
            result.append(
                BookingDTO.from_domain(
                    booking,
                    service_title=service.title if service is not None else None,
                    practitioner_name=(
                        name_of(service.user_id) if service is not None else None
                    ),
                    client_name=name_of(booking.client_id),
                )
            )
        return result

    @contextmanager
    def watch_bookings(
        self,
        user_id: IdInput,
        role: Union[UserRole, str],
        on_change: Callable[[BookingEvent], None],
    ) -> Iterator[SubscriptionHandle]:
        """Подписывает on_change на изменения заявок, видимых пользователю.

        Подписка снимается при выходе из блока with; недоставленные
        уведомления при этом отбрасываются.
        """
        handle = self._channel.subscribe(
            self._event_filter(parse_id(user_id, "user_id"), _parse_role(role)),
            on_change,
        )
        try:
            yield handle
        finally:
            self._channel.unsubscribe(handle)

    @contextmanager
    def live_bookings(
        self,
        user_id: IdInput,
        role: Union[UserRole, str],
        on_refresh: Optional[Callable[[List[Booking]], None]] = None,
    ) -> Iterator["BookingFeed"]:
        """Отдает ленту заявок, которая перечитывается при каждом изменении."""
        feed = BookingFeed(self, user_id, role, on_refresh)
        # Подписка раньше первого чтения
        with self.watch_bookings(user_id, role, feed.handle_change):
            feed.refresh()
            yield feed

    def _event_filter(
        self, user_id: EntityId, role: UserRole
    ) -> Callable[[DomainEvent], bool]:
        if role is UserRole.CLIENT:
            visible = BookingVisibility.for_client(user_id)
        else:
            # Владение услугой проверяется на момент события, чтобы учесть
            # услуги, добавленные после подписки.
            def visible(booking: Booking) -> bool:
                service = self._services.get(booking.service_id)
                return service is not None and service.user_id == user_id

        return lambda event: isinstance(event, BookingEvent) and visible(event.booking)

    def _get_booking(self, booking_id: IdInput) -> Booking:
        booking = self._bookings.get(parse_id(booking_id, "booking_id"))
        if booking is None:
            raise NotFound(f"Бронирование {booking_id} не найдено")
        return booking

    def _transition(
        self, booking: Booking, target: BookingStatus, actor_role: UserRole
    ) -> Booking:
        booking.check_transition(target, actor_role)

        updated = self._bookings.conditional_update(booking.id, booking.status, target)
        if updated is None:
            # Другой участник успел изменить статус между чтением и записью
            raise InvalidTransition(
                f"Статус бронирования {booking.id} уже изменен, "
                f"переход в {target.value} невозможен"
            )

        self._publish(
            [BookingStatusChanged(booking=updated, previous_status=booking.status)]
        )
        return updated

    def _publish(self, events: List[DomainEvent]) -> None:
        for event in events:
            self._channel.publish(event)


class BookingFeed:
    """Актуальный список заявок пользователя.

    Перечитывается из хранилища при каждом уведомлении, относящемся
    к пользователю.
    """

    def __init__(
        self,
        manager: BookingLifecycleManager,
        user_id: IdInput,
        role: Union[UserRole, str],
        on_refresh: Optional[Callable[[List[Booking]], None]] = None,
    ):
        self._manager = manager
        self._user_id = user_id
        self._role = role
        self._on_refresh = on_refresh
        self._lock = threading.Lock()
        self._bookings: List[Booking] = []
        self.refresh_count = 0

    @property
    def bookings(self) -> List[Booking]:
        with self._lock:
            return list(self._bookings)

    def refresh(self) -> List[Booking]:
        bookings = self._manager.list_visible_bookings(self._user_id, self._role)
        with self._lock:
            self._bookings = bookings
            self.refresh_count += 1
        if self._on_refresh is not None:
            self._on_refresh(list(bookings))
        return bookings

    def handle_change(self, event: BookingEvent) -> None:
        self.refresh()

