"""Flash deal overlay on top of the resolved unit price."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from decimal import ROUND_FLOOR, Decimal
from typing import Any, Dict, Iterable, Optional

from .pricing import resolve_price, to_money
from .variants import ProductVariant, SelectionState

HUNDRED = Decimal("100")


def utcnow() -> datetime:
    """Naive UTC, the convention of every DateTime column."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


@dataclass(frozen=True)
class FlashDeal:
    id: str
    product_id: str
    discount_percentage: Decimal
    start_time: datetime
    end_time: datetime
    is_active: bool = True
    created_at: Optional[datetime] = None

    @classmethod
    def from_row(cls, row: Any) -> "FlashDeal":
        return cls(
            id=row.id,
            product_id=row.product_id,
            discount_percentage=to_money(row.discount_percentage),
            start_time=row.start_time,
            end_time=row.end_time,
            is_active=bool(row.is_active),
            created_at=getattr(row, "created_at", None),
        )


@dataclass(frozen=True)
class PriceQuote:
    """Both sides of a promotion: ``unit_price`` stays for strikethrough and audit."""

    unit_price: Decimal
    display_price: Decimal
    flash_deal_id: Optional[str] = None
    discount_percentage: Optional[Decimal] = None

    @property
    def is_discounted(self) -> bool:
        return self.flash_deal_id is not None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "unit_price": float(self.unit_price),
            "display_price": float(self.display_price),
            "flash_deal_id": self.flash_deal_id,
            "discount_percentage": float(self.discount_percentage) if self.discount_percentage is not None else None,
        }


def is_deal_active(deal: Optional[FlashDeal], now: Optional[datetime] = None) -> bool:
    if deal is None or not deal.is_active:
        return False
    at = now or utcnow()
    return deal.start_time <= at < deal.end_time


def pick_active_deal(deals: Iterable[FlashDeal], product_id: str, now: Optional[datetime] = None) -> Optional[FlashDeal]:
    """At most one deal per product is expected; the newest active one wins otherwise."""
    at = now or utcnow()
    candidates = [d for d in deals if d.product_id == product_id and is_deal_active(d, at)]
    if not candidates:
        return None
    candidates.sort(key=lambda d: (d.created_at or datetime.min, d.id), reverse=True)
    return candidates[0]


def apply_promotion(unit_price: Decimal, deal: Optional[FlashDeal], now: Optional[datetime] = None) -> Decimal:
    """Discounted price, truncated so the discount is never overstated."""
    price = to_money(unit_price)
    if not is_deal_active(deal, now):
        return price
    pct = to_money(deal.discount_percentage)
    discounted = price * (HUNDRED - pct) / HUNDRED
    return discounted.to_integral_value(rounding=ROUND_FLOOR)


def quote_price(
    product: ProductVariant,
    selection: Optional[SelectionState],
    deal: Optional[FlashDeal] = None,
    now: Optional[datetime] = None,
) -> PriceQuote:
    at = now or utcnow()
    unit_price = resolve_price(product, selection)
    if deal is not None and deal.product_id == product.id and is_deal_active(deal, at):
        return PriceQuote(
            unit_price=unit_price,
            display_price=apply_promotion(unit_price, deal, at),
            flash_deal_id=deal.id,
            discount_percentage=to_money(deal.discount_percentage),
        )
    return PriceQuote(unit_price=unit_price, display_price=unit_price)


def time_remaining(deal: Optional[FlashDeal], now: Optional[datetime] = None) -> Optional[timedelta]:
    """Countdown until ``end_time``; None once it reaches zero."""
    if not is_deal_active(deal, now):
        return None
    remaining = deal.end_time - (now or utcnow())
    return remaining if remaining > timedelta(0) else None


def countdown_parts(remaining: Optional[timedelta]) -> Optional[Dict[str, int]]:
    if remaining is None:
        return None
    total = int(remaining.total_seconds())
    return {
        "hours": total // 3600,
        "minutes": (total % 3600) // 60,
        "seconds": total % 60,
    }
