import math


def build_pagination(page: int, limit: int, total_count: int) -> dict:
    """Pagination envelope shared by every paged listing."""
    total_pages = math.ceil(total_count / limit) if limit else 0
    return {
        "current_page": page,
        "total_pages": total_pages,
        "total_count": total_count,
        "has_next_page": page < total_pages,
        "has_prev_page": page > 1,
    }


def offset_for(page: int, limit: int) -> int:
    return (page - 1) * limit
