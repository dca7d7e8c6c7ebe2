"""
Модуль контекста учетных записей (Accounts Context).

Отвечает за регистрацию клиентов и специалистов и удаление учетных записей.
"""

from . import application, domain, interfaces

__all__ = [
    "domain",
    "application",
    "interfaces",
]
