import math


def page_offset(page: int, limit: int) -> int:
    return (page - 1) * limit


def build_pagination(page: int, limit: int, total: int) -> dict:
    """
    Pagination metadata for a list response.

    Args:
        page: Current page (1-indexed)
        limit: Items per page
        total: Total number of matching items

    Returns:
        Dictionary with currentPage, totalPages, totalItems, itemsPerPage,
        hasNextPage and hasPrevPage
    """
    total_pages = math.ceil(total / limit)
    return {
        "currentPage": page,
        "totalPages": total_pages,
        "totalItems": total,
        "itemsPerPage": limit,
        "hasNextPage": page < total_pages,
        "hasPrevPage": page > 1,
    }
