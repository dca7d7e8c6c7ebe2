"""
Open Massage: ядро платформы бронирования услуг массажа.

Ограниченные контексты:
- accounts: пользователи (клиенты и специалисты)
- catalog: услуги специалистов
- booking: жизненный цикл заявок на бронирование
"""

__version__ = "0.1.0"
