"""
Доменная модель каталога услуг.

Услугу создает специалист; владелец услуги не меняется.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..shared_kernel import EntityId, Forbidden, Money, UserRole, generate_id, now


def normalize_specialties(tags: Optional[List[str]]) -> List[str]:
    """Обрезает пробелы, убирает пустые теги и повторы, сохраняя порядок."""
    result: List[str] = []
    for tag in tags or []:
        tag = tag.strip()
        if tag and tag not in result:
            result.append(tag)
    return result


class Service(BaseModel):
    """Услуга, которую предлагает специалист."""

    model_config = ConfigDict(validate_assignment=True)

    id: EntityId = Field(default_factory=generate_id, frozen=True)
    user_id: EntityId = Field(..., frozen=True)  # Владелец-специалист
    title: str = Field(..., max_length=200)
    description: Optional[str] = None
    price: Money
    specialties: List[str] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=now)

    @field_validator("title")
    @classmethod
    def title_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Название услуги не может быть пустым")
        return v

    @field_validator("description")
    @classmethod
    def empty_description_is_none(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.strip():
            return None
        return v

    @field_validator("specialties", mode="before")
    @classmethod
    def clean_specialties(cls, v):
        return normalize_specialties(v)

    @classmethod
    def create(
        cls,
        owner_id: EntityId,
        owner_role: UserRole,
        title: str,
        price: Money,
        description: Optional[str] = None,
        specialties: Optional[List[str]] = None,
    ) -> "Service":
        """Создает новую услугу от имени специалиста."""
        if owner_role is not UserRole.PRACTITIONER:
            raise Forbidden("Добавлять услуги может только специалист")
        return cls(
            user_id=owner_id,
            title=title,
            price=price,
            description=description,
            specialties=specialties or [],
        )

    def is_owned_by(self, user_id: EntityId) -> bool:
        return self.user_id == user_id

    def ensure_owner(self, user_id: EntityId) -> None:
        """Проверяет, что действие выполняет владелец услуги."""
        if not self.is_owned_by(user_id):
            raise Forbidden("Изменять услугу может только ее владелец")
