"""
Интерфейсы (порты) для каталога услуг.
"""

from __future__ import annotations

from typing import Protocol

from ..accounts.interfaces import IReferencingStore, IUserStore
from ..shared_kernel.interfaces import IRecordStore
from .domain import Service


class IServiceStore(IRecordStore[Service], Protocol):
    """Хранилище услуг."""


__all__ = ["IServiceStore", "IUserStore", "IReferencingStore"]
