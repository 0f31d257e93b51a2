from typing import Optional
from fastapi import Query

# (minimum, maximum) page sizes per listing
LIKES_RANGE = (20, 200)
COMMENTS_RANGE = (20, 50)


class Page:
    def __init__(self, offset: int, limit: int):
        self.offset = offset
        self.limit = limit


def _to_int(value: Optional[str], default: int) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def clamp_range(from_: Optional[str], limit: Optional[str], bounds) -> Page:
    minimum, maximum = bounds
    offset = max(_to_int(from_, 0), 0)
    size = min(max(_to_int(limit, minimum), minimum), maximum)
    return Page(offset, size)


def paginate(bounds):
    """Dependency reading ``from``/``limit`` query parameters clamped to ``bounds``."""
    def read_range(
        from_: Optional[str] = Query(None, alias="from"),
        limit: Optional[str] = Query(None),
    ) -> Page:
        return clamp_range(from_, limit, bounds)

    return read_range
