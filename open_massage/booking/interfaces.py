"""
Интерфейсы (порты) для контекста бронирования.
"""

from __future__ import annotations

from typing import Optional, Protocol

from ..catalog.interfaces import IServiceStore
from ..accounts.interfaces import IUserStore
from ..shared_kernel import BookingStatus, EntityId
from ..shared_kernel.interfaces import IChangeChannel, ILogger, IRecordStore
from .domain import Booking


class IBookingStore(IRecordStore[Booking], Protocol):
    """Хранилище заявок с условным обновлением статуса."""

    def conditional_update(
        self,
        booking_id: EntityId,
        expected_status: BookingStatus,
        new_status: BookingStatus,
    ) -> Optional[Booking]:
        """Атомарно меняет статус, если текущий равен expected_status.

        Возвращает обновленную заявку или None, если заявки нет или ее
        статус уже другой.
        """
        ...


__all__ = [
    "IBookingStore",
    "IServiceStore",
    "IUserStore",
    "IChangeChannel",
    "ILogger",
]
