"""
Модуль каталога услуг (Catalog Context).

Отвечает за услуги специалистов: добавление, изменение, удаление и просмотр.
"""

from . import application, domain, interfaces

__all__ = [
    "domain",
    "application",
    "interfaces",
]
