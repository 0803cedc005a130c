"""
Shared helpers for paginated list queries.
"""

from typing import Dict, List, Optional, Tuple
from crokers.utils.constants import DEFAULT_PAGE, DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE


def normalize_page(page: Optional[int], size: Optional[int]) -> Tuple[int, int]:
    """
    Clamp page/size to the accepted window.

    page < 1 becomes 1; size outside (0, MAX_PAGE_SIZE] becomes DEFAULT_PAGE_SIZE.
    """
    if page is None or page < 1:
        page = DEFAULT_PAGE
    if size is None or size <= 0 or size > MAX_PAGE_SIZE:
        size = DEFAULT_PAGE_SIZE
    return page, size


def offset_for(page: int, size: int) -> int:
    return (page - 1) * size


def search_pattern(q: Optional[str]) -> Optional[str]:
    """Lower-cased LIKE pattern for a free-text search, or None when blank."""
    if q is None or not q.strip():
        return None
    return f"%{q.strip().lower()}%"


def paged_response(items: List[Dict], total: int, page: int, size: int) -> Dict:
    return {"data": items, "total": total, "page": page, "size": size}
