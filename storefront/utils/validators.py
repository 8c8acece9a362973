from typing import Iterable, Optional


def ensure_positive_int(value: int, field: str) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ValueError(f"{field} must be an integer")
    if number < 0:
        raise ValueError(f"{field} must be >= 0")
    return number


def ensure_choice(value: Optional[str], allowed: Iterable[str], field: str) -> str:
    v = (value or "").strip().lower()
    if v not in set(allowed):
        raise ValueError(f"invalid {field}: {value}")
    return v
