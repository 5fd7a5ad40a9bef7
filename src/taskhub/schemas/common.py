"""Shared response pieces."""

from pydantic import BaseModel

# Primary keys are 32-bit INTEGER columns
MAX_ID = 2**31 - 1


class Pagination(BaseModel):
    total: int
    limit: int
    offset: int
    has_more: bool

    @classmethod
    def of(cls, total: int, limit: int, offset: int) -> "Pagination":
        return cls(total=total, limit=limit, offset=offset, has_more=total > offset + limit)
