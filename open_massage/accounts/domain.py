"""
Доменная модель контекста учетных записей.

Пользователь - либо клиент, либо специалист. Роль назначается при
регистрации и в дальнейшем не меняется.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from ..shared_kernel import EntityId, UserRole, generate_id, now


class User(BaseModel):
    """Пользователь платформы."""

    model_config = ConfigDict(validate_assignment=True)

    id: EntityId = Field(default_factory=generate_id, frozen=True)
    name: str = Field(..., min_length=1, max_length=200)
    email: EmailStr
    role: UserRole = Field(..., frozen=True)
    created_at: datetime = Field(default_factory=now)

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Имя не может быть пустым")
        return v

    @property
    def is_practitioner(self) -> bool:
        return self.role is UserRole.PRACTITIONER

    @property
    def is_client(self) -> bool:
        return self.role is UserRole.CLIENT
