"""
Тесты сборки приложения и настроек.
"""

from open_massage.booking.infrastructure import JsonFileBookingStore
from open_massage.bootstrap import bootstrap_app
from open_massage.settings import Settings
from open_massage.shared_kernel import BookingStatus


def test_settings_from_environment(monkeypatch):
    monkeypatch.setenv("OPEN_MASSAGE_STORAGE_BACKEND", "json")
    monkeypatch.setenv("OPEN_MASSAGE_CURRENCY", "EUR")

    settings = Settings(_env_file=None)

    assert settings.storage_backend == "json"
    assert settings.currency == "EUR"
    assert settings.log_level == "INFO"


def test_json_backend_persists_between_runs(tmp_path):
    """Тест: данные JSON-бэкенда доступны после повторной сборки приложения."""
    settings = Settings(storage_backend="json", data_dir=str(tmp_path), currency="EUR")
    app = bootstrap_app(settings)
    assert isinstance(app["stores"]["bookings"], JsonFileBookingStore)

    practitioner = app["accounts"].register_user("Anna", "anna@example.com", "practitioner")
    client = app["accounts"].register_user("Chen", "chen@example.com", "client")
    service = app["catalog"].add_service(practitioner.id, title="Shiatsu", price="95")
    booking = app["bookings"].create_booking(service.id, client.id, "2025-12-31T14:30:00Z")
    app["bookings"].respond_to_booking(booking.id, practitioner.id, "accepted")

    restarted = bootstrap_app(settings)
    [visible] = restarted["bookings"].list_visible_bookings(client.id, "client")

    assert visible.status is BookingStatus.ACCEPTED
    assert restarted["catalog"].get_service(service.id).currency == "EUR"
    assert (tmp_path / "users.json").exists()
