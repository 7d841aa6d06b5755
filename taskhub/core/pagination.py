from fastapi import Query

from taskhub.config import settings


class PageParams:
    """`page` (>= 1) and `limit` (1..MAX_PAGE_LIMIT) query parameters."""

    def __init__(
        self,
        page: int = Query(1, ge=1),
        limit: int = Query(settings.DEFAULT_PAGE_LIMIT, ge=1, le=settings.MAX_PAGE_LIMIT),
    ):
        self.page = page
        self.limit = limit

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit
