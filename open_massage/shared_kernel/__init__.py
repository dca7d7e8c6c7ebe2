"""
Общее ядро (Shared Kernel) платформы Open Massage.

Содержит общие типы данных и утилиты, используемые в различных ограниченных контекстах.
"""

from .domain import (
    BookingStatus,
    DomainEvent,
    # Исключения
    DomainException,
    # Базовые типы
    EntityId,
    Forbidden,
    InvalidTransition,
    # Основные классы
    Money,
    NotFound,
    ReferentialIntegrityError,
    StoreUnavailable,
    # Перечисления
    UserRole,
    ValidationError,
    generate_id,
    # Утилиты
    now,
    parse_id,
)

__all__ = [
    # Базовые типы
    "EntityId",
    "generate_id",
    # Основные классы
    "Money",
    "DomainEvent",
    # Перечисления
    "UserRole",
    "BookingStatus",
    # Исключения
    "DomainException",
    "ValidationError",
    "NotFound",
    "Forbidden",
    "InvalidTransition",
    "StoreUnavailable",
    "ReferentialIntegrityError",
    # Утилиты
    "now",
    "parse_id",
]
