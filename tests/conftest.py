"""
Общие фикстуры для тестов.
"""

import pytest

from open_massage.bootstrap import bootstrap_app
from open_massage.settings import Settings

BOOKING_DATE = "2025-12-31T14:30:00Z"


@pytest.fixture
def app():
    """Полностью собранное приложение с хранилищами в памяти."""
    return bootstrap_app(Settings(storage_backend="memory", log_level="DEBUG"))


@pytest.fixture
def accounts(app):
    return app["accounts"]


@pytest.fixture
def catalog(app):
    return app["catalog"]


@pytest.fixture
def manager(app):
    return app["bookings"]


@pytest.fixture
def channel(app):
    return app["channel"]


@pytest.fixture
def practitioner(accounts):
    """Специалист P1."""
    return accounts.register_user("Anna Therapist", "anna@example.com", "practitioner")


@pytest.fixture
def other_practitioner(accounts):
    """Специалист P2."""
    return accounts.register_user("Boris Therapist", "boris@example.com", "practitioner")


@pytest.fixture
def client(accounts):
    """Клиент C1."""
    return accounts.register_user("Chen Client", "chen@example.com", "client")


@pytest.fixture
def other_client(accounts):
    """Клиент C2."""
    return accounts.register_user("Dana Client", "dana@example.com", "client")


@pytest.fixture
def service(catalog, practitioner):
    """Услуга S1 специалиста P1."""
    return catalog.add_service(
        practitioner.id,
        title="Deep Tissue Massage",
        price="80.00",
        description="60 minutes",
        specialties=["deep tissue", "sports"],
    )


@pytest.fixture
def other_service(catalog, other_practitioner):
    """Услуга S2 специалиста P2."""
    return catalog.add_service(other_practitioner.id, title="Shiatsu", price="95")


@pytest.fixture
def pending_booking(manager, service, client):
    """Заявка C1 на S1 в статусе pending."""
    return manager.create_booking(service.id, client.id, BOOKING_DATE, "Quiet room")
