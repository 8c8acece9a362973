from typing import Dict, Tuple


def normalize_paging(page, page_size, max_page_size: int = 100) -> Tuple[int, int]:
    try:
        p = int(page or 1)
        ps = int(page_size or 20)
    except (TypeError, ValueError):
        raise ValueError("page and page_size must be integers")
    p = p if p > 0 else 1
    ps = min(ps if ps > 0 else 20, max_page_size)
    return p, ps


def offset_for(page: int, page_size: int) -> int:
    return (page - 1) * page_size


def page_meta(page: int, page_size: int, total: int) -> Dict[str, int]:
    return {"page": page, "page_size": page_size, "total": total, "pages": -(-total // page_size) if total else 0}
