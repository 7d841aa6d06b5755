from typing import Optional
from uuid import UUID
from pydantic import EmailStr, Field, HttpUrl, field_validator
from taskhub.models.enums import Role
from taskhub.schemas.common import CamelModel, UtcDatetime, strip_text


class UserBrief(CamelModel):
    id: UUID
    first_name: str
    last_name: str
    avatar: Optional[str] = None


class UserContact(UserBrief):
    email: EmailStr


class UserResponse(CamelModel):
    # Sanitized: the password hash has no field here
    id: UUID
    email: EmailStr
    first_name: str
    last_name: str
    role: Role
    avatar: Optional[str] = None
    created_at: UtcDatetime
    updated_at: UtcDatetime


class UserWithCounts(UserResponse):
    project_count: int = 0
    created_task_count: int = 0
    assigned_task_count: int = 0


class UserUpdate(CamelModel):
    first_name: Optional[str] = Field(None, min_length=2, max_length=50)
    last_name: Optional[str] = Field(None, min_length=2, max_length=50)
    avatar: Optional[HttpUrl] = None

    @field_validator("first_name", "last_name", mode="before")
    @classmethod
    def strip_names(cls, value):
        return strip_text(value)
