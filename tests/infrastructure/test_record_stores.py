"""
Тесты хранилищ записей: в памяти и в JSON-файлах.
"""

import json
from datetime import datetime, timezone
from uuid import uuid4

import pytest

from open_massage.accounts.domain import User
from open_massage.booking.domain import Booking
from open_massage.booking.infrastructure import (
    InMemoryBookingStore,
    JsonFileBookingStore,
)
from open_massage.shared_kernel import BookingStatus, StoreUnavailable, UserRole
from open_massage.shared_kernel.infrastructure import (
    InMemoryRecordStore,
    JsonFileRecordStore,
)


def make_booking() -> Booking:
    return Booking(
        service_id=uuid4(),
        client_id=uuid4(),
        booking_date=datetime(2025, 12, 31, 14, 30, tzinfo=timezone.utc),
        special_requests="Quiet room",
    )


class TestInMemoryRecordStore:
    """Тесты хранилища в памяти."""

    def test_insert_get_query_delete(self):
        store = InMemoryRecordStore(User)
        anna = User(name="Anna", email="anna@example.com", role=UserRole.PRACTITIONER)
        chen = User(name="Chen", email="chen@example.com", role=UserRole.CLIENT)
        store.insert(anna)
        store.insert(chen)

        assert store.get(anna.id).name == "Anna"
        assert store.get(uuid4()) is None
        assert [u.id for u in store.query(lambda u: u.is_client)] == [chen.id]
        assert len(store.query()) == 2

        store.delete(anna.id)
        store.delete(anna.id)
        assert store.get(anna.id) is None

    def test_duplicate_insert(self):
        store = InMemoryRecordStore(User)
        user = User(name="Anna", email="anna@example.com", role=UserRole.CLIENT)
        store.insert(user)
        with pytest.raises(ValueError):
            store.insert(user)

    def test_returned_records_are_copies(self):
        """Тест: изменение полученной записи не влияет на хранилище."""
        store = InMemoryRecordStore(User)
        user = User(name="Anna", email="anna@example.com", role=UserRole.CLIENT)
        store.insert(user)

        user.name = "Changed before"
        fetched = store.get(user.id)
        fetched.name = "Changed after"

        assert store.get(user.id).name == "Anna"

    def test_replace_unknown(self):
        store = InMemoryRecordStore(User)
        with pytest.raises(KeyError):
            store.replace(User(name="Anna", email="anna@example.com", role="client"))


class TestConditionalUpdate:
    """Тесты условной смены статуса."""

    def test_updates_when_status_matches(self):
        store = InMemoryBookingStore()
        booking = make_booking()
        store.insert(booking)

        updated = store.conditional_update(
            booking.id, BookingStatus.PENDING, BookingStatus.ACCEPTED
        )

        assert updated.status is BookingStatus.ACCEPTED
        assert updated.updated_at >= booking.updated_at
        assert store.get(booking.id).status is BookingStatus.ACCEPTED

    def test_skips_when_status_differs(self):
        store = InMemoryBookingStore()
        booking = make_booking()
        store.insert(booking)
        store.conditional_update(booking.id, BookingStatus.PENDING, BookingStatus.DECLINED)

        assert (
            store.conditional_update(
                booking.id, BookingStatus.PENDING, BookingStatus.ACCEPTED
            )
            is None
        )
        assert store.get(booking.id).status is BookingStatus.DECLINED

    def test_missing_booking(self):
        store = InMemoryBookingStore()
        assert (
            store.conditional_update(uuid4(), BookingStatus.PENDING, BookingStatus.ACCEPTED)
            is None
        )


class TestJsonFileStores:
    """Тесты хранилищ в JSON-файлах."""

    def test_bookings_survive_reload(self, tmp_path):
        path = tmp_path / "bookings.json"
        store = JsonFileBookingStore(str(path))
        booking = make_booking()
        store.insert(booking)
        store.conditional_update(booking.id, BookingStatus.PENDING, BookingStatus.CANCELLED)

        reloaded = JsonFileBookingStore(str(path)).get(booking.id)

        assert reloaded.status is BookingStatus.CANCELLED
        assert reloaded.booking_date == booking.booking_date
        assert reloaded.special_requests == "Quiet room"
        assert json.loads(path.read_text(encoding="utf-8"))[0]["status"] == "cancelled"

    def test_empty_file_is_empty_store(self, tmp_path):
        path = tmp_path / "users.json"
        path.write_text("  ", encoding="utf-8")
        assert JsonFileRecordStore(str(path), User).query() == []

    def test_corrupt_file(self, tmp_path):
        path = tmp_path / "users.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(StoreUnavailable):
            JsonFileRecordStore(str(path), User)

    def test_write_failure_is_store_unavailable(self, tmp_path):
        """Тест: ошибка записи поднимается как StoreUnavailable без изменения состояния."""
        blocker = tmp_path / "blocker"
        blocker.write_text("", encoding="utf-8")
        store = JsonFileBookingStore(str(blocker / "bookings.json"))
        booking = make_booking()

        with pytest.raises(StoreUnavailable):
            store.insert(booking)
        assert store.get(booking.id) is None
