from pydantic import BaseModel
from typing import Tuple
import math


class PageMeta(BaseModel):
    total_count: int
    current_page: int
    total_pages: int
    has_next_page: bool
    has_previous_page: bool

    @classmethod
    def build(cls, total_count: int, page: int, limit: int) -> "PageMeta":
        total_pages = math.ceil(total_count / limit) if limit else 0
        return cls(
            total_count=total_count,
            current_page=page,
            total_pages=total_pages,
            has_next_page=page < total_pages,
            has_previous_page=page > 1,
        )


def page_bounds(page: int, limit: int) -> Tuple[int, int]:
    """Inclusive (from, to) row offsets for PostgREST range()"""
    start = (page - 1) * limit
    return start, start + limit - 1
