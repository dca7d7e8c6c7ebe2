import threading
from pathlib import Path
from typing import Any, Dict, Optional

from .accounts.application import AccountApplicationService
from .accounts.domain import User
from .booking.application import BookingLifecycleManager
from .booking.infrastructure import InMemoryBookingStore, JsonFileBookingStore
from .catalog.application import ServiceApplicationService
from .catalog.domain import Service
from .settings import Settings
from .shared_kernel.infrastructure import (
    ConsoleLogger,
    InMemoryChangeChannel,
    InMemoryRecordStore,
    JsonFileRecordStore,
    configure_logging,
)


def bootstrap_app(settings: Optional[Settings] = None) -> Dict[str, Any]:
    """Создает и настраивает все компоненты приложения."""
    settings = settings or Settings()

    # 1. Логирование
    configure_logging(settings.log_level)
    logger = ConsoleLogger()

    # 2. Хранилища для выбранного бэкенда
    if settings.storage_backend == "json":
        data_dir = Path(settings.data_dir)
        users = JsonFileRecordStore(str(data_dir / "users.json"), User, logger)
        services = JsonFileRecordStore(str(data_dir / "services.json"), Service, logger)
        bookings = JsonFileBookingStore(str(data_dir / "bookings.json"), logger)
    else:
        users = InMemoryRecordStore(User, logger)
        services = InMemoryRecordStore(Service, logger)
        bookings = InMemoryBookingStore(logger)

    channel = InMemoryChangeChannel(logger)

    # 3. Сервисы, которым передаются хранилища соседних контекстов.
    # Проверки ссылок при удалении и создание ссылающихся записей
    # выполняются под одной блокировкой.
    references_lock = threading.RLock()
    accounts = AccountApplicationService(
        users=users, services=services, bookings=bookings, lock=references_lock
    )
    catalog = ServiceApplicationService(
        services=services,
        users=users,
        bookings=bookings,
        currency=settings.currency,
        lock=references_lock,
    )
    booking_manager = BookingLifecycleManager(
        bookings=bookings,
        services=services,
        users=users,
        channel=channel,
        lock=references_lock,
    )

    logger.info(
        "Application bootstrapped",
        storage_backend=settings.storage_backend,
        currency=settings.currency,
    )

    return {
        "settings": settings,
        "accounts": accounts,
        "catalog": catalog,
        "bookings": booking_manager,
        "channel": channel,
        "stores": {"users": users, "services": services, "bookings": bookings},
    }
