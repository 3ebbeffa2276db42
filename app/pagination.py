"""Page arithmetic shared by every paginated listing."""
import math


def parse_page(raw) -> int:
    """
    Return the 1-based page number requested by the client.

    Anything that is not a positive integer (absent, empty, non-numeric,
    zero, negative) falls back to page 1 rather than failing the request.
    """
    if raw is None:
        return 1
    try:
        page = int(str(raw).strip())
    except ValueError:
        return 1
    return page if page > 0 else 1


def compute_offset(page: int, page_size: int) -> int:
    """SQL OFFSET for *page* (1-based)."""
    return page_size * (page - 1)


def compute_total_pages(total: int, page_size: int) -> int:
    """Number of pages needed to show *total* rows, 0 when there are none."""
    if total <= 0:
        return 0
    return math.ceil(total / page_size)
