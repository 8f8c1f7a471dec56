"""Page/limit normalization shared by the list operations."""

import math
from typing import Optional, Tuple

MAX_PAGE_SIZE = 100
DEFAULT_USER_PAGE_SIZE = 20
DEFAULT_ORDER_PAGE_SIZE = 10


def normalize_pagination(
    page: Optional[int], limit: Optional[int], default_limit: int
) -> Tuple[int, int]:
    """
    Clamp client-supplied paging.

    page < 1 (or missing) becomes 1; limit < 1 (or missing) becomes
    `default_limit`; limit above MAX_PAGE_SIZE becomes MAX_PAGE_SIZE.
    """
    if page is None or page < 1:
        page = 1
    if limit is None or limit < 1:
        limit = default_limit
    return page, min(limit, MAX_PAGE_SIZE)


def total_pages(total: int, limit: int) -> int:
    if total <= 0 or limit <= 0:
        return 0
    return math.ceil(total / limit)
