"""Page arithmetic shared by every search path."""
from __future__ import annotations

import math
from typing import Sequence, TypeVar

T = TypeVar("T")


def page_number(offset: int, limit: int) -> int:
    return offset // limit + 1


def total_pages(total: int, limit: int) -> int:
    return math.ceil(total / limit)


def window(items: Sequence[T], offset: int, limit: int) -> list[T]:
    """Slice an already ordered sequence to one page."""
    return list(items[offset : offset + limit])
