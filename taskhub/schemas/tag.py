from typing import List, Optional
from uuid import UUID
from pydantic import Field, field_validator
from taskhub.models.enums import Priority, TaskStatus
from taskhub.schemas.common import CamelModel, HEX_COLOR, UtcDatetime, strip_text


class TagCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=50)
    color: Optional[str] = Field(None, pattern=HEX_COLOR)

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, value):
        return strip_text(value)


class TagUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=1, max_length=50)
    color: Optional[str] = Field(None, pattern=HEX_COLOR)

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, value):
        return strip_text(value)


class TagResponse(CamelModel):
    id: UUID
    name: str
    color: str
    created_at: UtcDatetime


class TagWithCount(TagResponse):
    task_count: int = 0


class TagTaskItem(CamelModel):
    id: UUID
    title: str
    status: TaskStatus
    priority: Priority


class TagDetail(TagWithCount):
    tasks: List[TagTaskItem] = []
