"""
Тесты сервиса приложения для каталога услуг.
"""

from decimal import Decimal
from uuid import uuid4

import pytest

from open_massage.shared_kernel import (
    Forbidden,
    NotFound,
    ReferentialIntegrityError,
    ValidationError,
)


def test_add_service(catalog, practitioner):
    """Тест успешного добавления услуги."""
    service = catalog.add_service(
        practitioner.id,
        title="Thai Massage",
        price="75.50",
        specialties=[" thai", "stretching ", "thai"],
    )

    assert service.user_id == practitioner.id
    assert service.price == Decimal("75.50")
    assert service.currency == "SGD"
    assert service.specialties == ["thai", "stretching"]
    assert service.description is None
    assert catalog.get_service(service.id) == service


@pytest.mark.parametrize("price", ["-1", "abc", None])
def test_add_service_invalid_price(catalog, practitioner, price):
    with pytest.raises(ValidationError):
        catalog.add_service(practitioner.id, title="Massage", price=price)


def test_add_service_blank_title(catalog, practitioner):
    with pytest.raises(ValidationError):
        catalog.add_service(practitioner.id, title="  ", price=10)


def test_client_cannot_add_service(catalog, client):
    with pytest.raises(Forbidden):
        catalog.add_service(client.id, title="Massage", price=10)


def test_unknown_user_cannot_add_service(catalog):
    with pytest.raises(NotFound):
        catalog.add_service(uuid4(), title="Massage", price=10)


def test_update_service_by_owner(catalog, practitioner, service):
    updated = catalog.update_service(
        service.id,
        practitioner.id,
        title="Deep Tissue 90",
        price=Decimal("110"),
        specialties=[],
    )

    assert updated.title == "Deep Tissue 90"
    assert updated.price == Decimal("110")
    assert updated.specialties == []
    assert updated.description == "60 minutes"
    assert catalog.get_service(service.id).title == "Deep Tissue 90"


def test_update_service_by_stranger_is_forbidden(catalog, other_practitioner, service):
    with pytest.raises(Forbidden):
        catalog.update_service(service.id, other_practitioner.id, title="Mine now")
    assert catalog.get_service(service.id).title == "Deep Tissue Massage"


def test_update_service_invalid_values_leave_it_unchanged(catalog, practitioner, service):
    for changes in ({"price": Decimal("-5")}, {"price": "abc"}, {"title": " "}):
        with pytest.raises(ValidationError):
            catalog.update_service(service.id, practitioner.id, **changes)

    stored = catalog.get_service(service.id)
    assert stored.price == Decimal("80.00")
    assert stored.title == "Deep Tissue Massage"


def test_list_services_with_practitioner_names(catalog, service, other_service):
    """Тест: общий список услуг содержит имена специалистов."""
    listing = {s.title: s.practitioner_name for s in catalog.list_services()}
    assert listing == {
        "Deep Tissue Massage": "Anna Therapist",
        "Shiatsu": "Boris Therapist",
    }


def test_list_practitioner_services(catalog, practitioner, service, other_service):
    services = catalog.list_practitioner_services(practitioner.id)
    assert [s.id for s in services] == [service.id]


def test_delete_service_without_bookings(catalog, practitioner, service):
    catalog.delete_service(service.id, practitioner.id)
    with pytest.raises(NotFound):
        catalog.get_service(service.id)


def test_delete_booked_service_is_refused(catalog, practitioner, service, pending_booking):
    """Тест: услугу, на которую есть бронирования, удалить нельзя."""
    with pytest.raises(ReferentialIntegrityError):
        catalog.delete_service(service.id, practitioner.id)
    assert catalog.get_service(service.id).id == service.id


def test_delete_service_by_stranger_is_forbidden(catalog, other_practitioner, service):
    with pytest.raises(Forbidden):
        catalog.delete_service(service.id, other_practitioner.id)


def test_client_with_invalid_price_is_forbidden(catalog, client):
    """Тест: роль проверяется раньше содержимого услуги."""
    with pytest.raises(Forbidden):
        catalog.add_service(client.id, title="Massage", price="abc")
    with pytest.raises(Forbidden):
        catalog.add_service(client.id, title=" ", price=10)


def test_stranger_with_invalid_price_is_forbidden(catalog, other_practitioner, service):
    with pytest.raises(Forbidden):
        catalog.update_service(service.id, other_practitioner.id, price="abc")
