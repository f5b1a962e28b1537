from datetime import date, datetime, timezone
from typing import Optional

from pydantic import BaseModel, ConfigDict, conint, constr, field_validator
from pydantic.alias_generators import to_camel


# -----------------------------
# Pydantic-схемы
# -----------------------------
# Приоритет хранится в INTEGER-колонке
Priority = conint(ge=-2**31, le=2**31 - 1)


class CamelModel(BaseModel):
    # Наружу поля уходят в camelCase, на вход принимаем оба варианта
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class UserCreate(CamelModel):
    username: constr(min_length=3, max_length=50)
    password: constr(min_length=6)
    email: Optional[str] = None


class UserLogin(CamelModel):
    username: str
    password: str


class AuthResponse(CamelModel):
    token: str
    username: str
    expires_at: datetime


class TaskCreate(CamelModel):
    title: constr(min_length=1)
    description: Optional[str] = None
    priority: Priority = 1
    due_date: Optional[date] = None


class TaskUpdate(CamelModel):
    title: Optional[constr(min_length=1)] = None
    description: Optional[str] = None
    priority: Optional[Priority] = None
    is_completed: Optional[bool] = None
    due_date: Optional[date] = None


class TaskOut(CamelModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    description: Optional[str]
    is_completed: bool
    priority: int
    created_at: datetime
    completed_at: Optional[datetime]
    due_date: Optional[date]

    @field_validator("created_at", "completed_at")
    @classmethod
    def _as_utc(cls, value):
        # В БД время лежит без зоны, но это всегда UTC
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value
