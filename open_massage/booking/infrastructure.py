"""
Инфраструктурный слой контекста бронирования.

Содержит хранилища заявок с атомарной сменой статуса: в памяти и в JSON-файле.
"""

from typing import Optional

from ..shared_kernel import BookingStatus, EntityId, StoreUnavailable, now
from ..shared_kernel.infrastructure import InMemoryRecordStore, JsonFileRecordStore
from ..shared_kernel.interfaces import ILogger
from . import interfaces as ports
from .domain import Booking


class ConditionalUpdateMixin:
    """Условная смена статуса под блокировкой хранилища."""

    def conditional_update(
        self,
        booking_id: EntityId,
        expected_status: BookingStatus,
        new_status: BookingStatus,
    ) -> Optional[Booking]:
        with self._lock:
            current = self._records.get(booking_id)
            if current is None or current.status != expected_status:
                self._logger.debug(
                    "Conditional update skipped",
                    id=booking_id,
                    expected=expected_status.value,
                    actual=current.status.value if current is not None else None,
                )
                return None

            updated = current.model_copy(
                update={"status": new_status, "updated_at": now()}, deep=True
            )
            self._records[booking_id] = updated
            try:
                self._flush()
            except StoreUnavailable:
                self._records[booking_id] = current
                raise
            return updated.model_copy(deep=True)


class InMemoryBookingStore(
    ConditionalUpdateMixin, InMemoryRecordStore[Booking], ports.IBookingStore
):
    """Хранилище заявок в памяти."""

    def __init__(self, logger: Optional[ILogger] = None):
        super().__init__(Booking, logger)


class JsonFileBookingStore(
    ConditionalUpdateMixin, JsonFileRecordStore[Booking], ports.IBookingStore
):
    """Хранилище заявок в JSON-файле."""

    def __init__(self, file_path: str, logger: Optional[ILogger] = None):
        super().__init__(file_path, Booking, logger)
