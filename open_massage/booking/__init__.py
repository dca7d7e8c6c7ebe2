"""
Модуль контекста бронирования (Booking Context).

Отвечает за заявки клиентов на услуги специалистов, включая:
- Создание заявок
- Ответ специалиста (принять или отклонить) и отмену клиентом
- Выборку заявок, видимых клиенту или специалисту
- Уведомления об изменениях заявок
"""

from . import application, domain, infrastructure, interfaces

__all__ = [
    "domain",
    "application",
    "infrastructure",
    "interfaces",
]
