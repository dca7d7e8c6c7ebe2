"""
Прикладной слой каталога услуг.

Содержит сервис приложения для добавления, изменения и просмотра услуг
специалистов.
"""

import threading
from datetime import datetime
from decimal import Decimal
from typing import Any, ContextManager, List, Optional, Union

import pydantic
from pydantic import BaseModel

from ..shared_kernel import (
    EntityId,
    Forbidden,
    Money,
    NotFound,
    ReferentialIntegrityError,
    ValidationError,
    parse_id,
)
from . import interfaces as ports
from .domain import Service

PriceInput = Union[Decimal, float, int, str]

# DTO для входящих данных


class UpdateServiceRequest(BaseModel):
    """Запрос на изменение услуги. None означает "не менять"."""

    title: Optional[str] = None
    description: Optional[str] = None
    price: Optional[Decimal] = None
    specialties: Optional[List[str]] = None


# DTO для исходящих данных


class ServiceDTO(BaseModel):
    """DTO для представления услуги."""

    id: EntityId
    user_id: EntityId
    title: str
    description: Optional[str]
    price: Decimal
    currency: str
    specialties: List[str]
    created_at: datetime

    @classmethod
    def from_domain(cls, service: Service) -> "ServiceDTO":
        """Создает DTO из доменной модели."""
        return cls(
            id=service.id,
            user_id=service.user_id,
            title=service.title,
            description=service.description,
            price=service.price.amount,
            currency=service.price.currency,
            specialties=list(service.specialties),
            created_at=service.created_at,
        )


class ServiceListingDTO(ServiceDTO):
    """Услуга в общем списке вместе с именем специалиста."""

    practitioner_name: Optional[str] = None


class ServiceApplicationService:
    """Сервис приложения для работы с услугами.

    Проверка ссылок перед удалением и добавление услуги выполняются под
    общей блокировкой ссылок, которую разделяют все сервисы приложения.
    """

    def __init__(
        self,
        services: ports.IServiceStore,
        users: ports.IUserStore,
        bookings: ports.IReferencingStore,
        currency: str = "SGD",
        lock: Optional[ContextManager[Any]] = None,
    ):
        """Инициализирует сервис."""
        self._services = services
        self._users = users
        self._bookings = bookings
        self._currency = currency
        self._lock = lock if lock is not None else threading.RLock()

    def _money(self, price: PriceInput) -> Money:
        try:
            return Money(amount=price, currency=self._currency)
        except pydantic.ValidationError as exc:
            raise ValidationError(f"Некорректная цена: {price!r}") from exc

    def _get_service(self, service_id: Union[EntityId, str]) -> Service:
        service = self._services.get(parse_id(service_id, "service_id"))
        if service is None:
            raise NotFound(f"Услуга {service_id} не найдена")
        return service

    def add_service(
        self,
        practitioner_id: Union[EntityId, str],
        title: str,
        price: PriceInput,
        description: Optional[str] = None,
        specialties: Optional[List[str]] = None,
    ) -> ServiceDTO:
        """Добавляет новую услугу специалиста."""
        owner_id = parse_id(practitioner_id, "practitioner_id")
        with self._lock:
            owner = self._users.get(owner_id)
            if owner is None:
                raise NotFound(f"Пользователь {practitioner_id} не найден")
            if not owner.is_practitioner:
                raise Forbidden("Добавлять услуги может только специалист")

            money = self._money(price)
            try:
                service = Service.create(
                    owner_id=owner.id,
                    owner_role=owner.role,
                    title=title,
                    price=money,
                    description=description,
                    specialties=specialties,
                )
            except pydantic.ValidationError as exc:
                raise ValidationError(f"Некорректные данные услуги: {exc}") from exc

            self._services.insert(service)
        return ServiceDTO.from_domain(service)

    def update_service(
        self,
        service_id: Union[EntityId, str],
        acting_practitioner_id: Union[EntityId, str],
        title: Optional[str] = None,
        description: Optional[str] = None,
        price: Optional[PriceInput] = None,
        specialties: Optional[List[str]] = None,
    ) -> ServiceDTO:
        """Изменяет услугу. Доступно только владельцу.

        Параметры со значением None не меняются.
        """
        service = self._get_service(service_id)
        service.ensure_owner(parse_id(acting_practitioner_id, "practitioner_id"))

        try:
            request = UpdateServiceRequest(
                title=title,
                description=description,
                price=price,
                specialties=specialties,
            )
            if request.title is not None:
                service.title = request.title
            if request.description is not None:
                service.description = request.description
            if request.specialties is not None:
                service.specialties = request.specialties
        except pydantic.ValidationError as exc:
            raise ValidationError(f"Некорректные данные услуги: {exc}") from exc
        if request.price is not None:
            service.price = self._money(request.price)

        self._services.replace(service)
        return ServiceDTO.from_domain(service)

    def delete_service(
        self,
        service_id: Union[EntityId, str],
        acting_practitioner_id: Union[EntityId, str],
    ) -> None:
        """Удаляет услугу, если на нее не ссылается ни одно бронирование."""
        actor_id = parse_id(acting_practitioner_id, "practitioner_id")
        with self._lock:
            service = self._get_service(service_id)
            service.ensure_owner(actor_id)

            if self._bookings.query(lambda b: b.service_id == service.id):
                raise ReferentialIntegrityError(
                    "Нельзя удалить услугу, на которую есть бронирования"
                )
            self._services.delete(service.id)

    def get_service(self, service_id: Union[EntityId, str]) -> ServiceDTO:
        """Возвращает информацию об услуге."""
        return ServiceDTO.from_domain(self._get_service(service_id))

    def list_services(self) -> List[ServiceListingDTO]:
        """Возвращает все услуги с именами специалистов."""
        services = sorted(self._services.query(), key=lambda s: s.created_at)
        names = {}
        for service in services:
            if service.user_id not in names:
                owner = self._users.get(service.user_id)
                names[service.user_id] = owner.name if owner is not None else None

        return [
            ServiceListingDTO(
                **ServiceDTO.from_domain(service).model_dump(),
                practitioner_name=names[service.user_id],
            )
            for service in services
        ]

    def list_practitioner_services(
        self, practitioner_id: Union[EntityId, str]
    ) -> List[ServiceDTO]:
        """Возвращает услуги конкретного специалиста."""
        owner_id = parse_id(practitioner_id, "practitioner_id")
        services = self._services.query(lambda s: s.user_id == owner_id)
        services.sort(key=lambda s: s.created_at)
        return [ServiceDTO.from_domain(service) for service in services]
