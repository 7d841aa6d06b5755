from datetime import datetime
from typing import Annotated, Generic, Optional, TypeVar
from pydantic import AfterValidator, BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from taskhub.utils.time import as_utc

T = TypeVar("T")

HEX_COLOR = r"^#[0-9A-Fa-f]{6}$"


class CamelModel(BaseModel):
    """JSON uses camelCase keys; Python code uses the snake_case field names."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class PageMeta(CamelModel):
    page: int
    limit: int
    total: int
    total_pages: int


class Envelope(CamelModel, Generic[T]):
    success: bool = True
    message: Optional[str] = None
    data: Optional[T] = None
    meta: Optional[PageMeta] = None


UtcDatetime = Annotated[datetime, AfterValidator(as_utc)]


def strip_text(value):
    return value.strip() if isinstance(value, str) else value
