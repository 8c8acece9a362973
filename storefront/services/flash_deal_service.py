from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Dict, List, Optional
from uuid import uuid4
from ..db.session import get_session
from ..models.flash_deal import FlashDeal as FlashDealRow
from ..models.product import Product
from ..utils.dto import to_flash_deal_dto
from .errors import NotFoundError
from .logging import log_event
from .promotion import FlashDeal, pick_active_deal, utcnow


def _parse_time(value, field: str) -> datetime:
    if isinstance(value, datetime):
        return _to_naive_utc(value) if value.tzinfo else value
    if not value:
        raise ValueError(f"{field} required")
    try:
        parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        raise ValueError(f"{field} must be an ISO-8601 timestamp")
    return _to_naive_utc(parsed) if parsed.tzinfo else parsed


def _to_naive_utc(value: datetime) -> datetime:
    return (value - value.utcoffset()).replace(tzinfo=None)


class FlashDealService:
    """Time-bounded percentage discounts, one product each."""

    def __init__(self, session_factory=get_session):
        self._session_factory = session_factory

    def create_deal(
        self,
        *,
        product_id: str,
        discount_percentage,
        start_time,
        end_time,
        title: Optional[str] = None,
        description: Optional[str] = None,
        is_active: bool = True,
    ) -> Dict:
        try:
            pct = Decimal(str(discount_percentage))
        except (InvalidOperation, TypeError):
            raise ValueError("discount_percentage must be a number")
        if pct <= 0 or pct > 100:
            raise ValueError("discount_percentage must be in (0, 100]")
        start = _parse_time(start_time, "start_time")
        end = _parse_time(end_time, "end_time")
        if end <= start:
            raise ValueError("end_time must be after start_time")
        with self._session_factory() as session:
            if session.query(Product).filter(Product.id == product_id).first() is None:
                raise NotFoundError(f"product not found: {product_id}")
            row = FlashDealRow(
                id=str(uuid4()),
                product_id=product_id,
                title=title,
                description=description,
                discount_percentage=pct,
                start_time=start,
                end_time=end,
                is_active=bool(is_active),
                created_at=utcnow(),
            )
            session.add(row)
            session.flush()
            log_event("info", "flash_deal.created", deal_id=row.id, product_id=product_id, pct=float(pct))
            return to_flash_deal_dto(row)

    def list_deals(self) -> List[Dict]:
        with self._session_factory() as session:
            rows = session.query(FlashDealRow).order_by(FlashDealRow.created_at.desc()).all()
            return [to_flash_deal_dto(r) for r in rows]

    def _active_rows(self, session, now: datetime, product_id: Optional[str] = None):
        q = session.query(FlashDealRow).filter(
            FlashDealRow.is_active.is_(True),
            FlashDealRow.start_time <= now,
            FlashDealRow.end_time > now,
        )
        if product_id:
            q = q.filter(FlashDealRow.product_id == product_id)
        return q.order_by(FlashDealRow.created_at.desc()).all()

    def list_active(self, now: Optional[datetime] = None) -> List[Dict]:
        at = now or utcnow()
        with self._session_factory() as session:
            return [to_flash_deal_dto(r) for r in self._active_rows(session, at)]

    def active_deal_for(self, product_id: str, now: Optional[datetime] = None) -> Optional[FlashDeal]:
        at = now or utcnow()
        with self._session_factory() as session:
            deals = [FlashDeal.from_row(r) for r in self._active_rows(session, at, product_id)]
        return pick_active_deal(deals, product_id, at)

    def get_deal(self, deal_id: str) -> Optional[FlashDeal]:
        with self._session_factory() as session:
            row = session.query(FlashDealRow).filter(FlashDealRow.id == deal_id).first()
            return FlashDeal.from_row(row) if row else None

    def set_active(self, deal_id: str, is_active: bool) -> Dict:
        with self._session_factory() as session:
            row = session.query(FlashDealRow).filter(FlashDealRow.id == deal_id).first()
            if row is None:
                raise NotFoundError(f"flash deal not found: {deal_id}")
            row.is_active = bool(is_active)
            session.flush()
            log_event("info", "flash_deal.updated", deal_id=deal_id, is_active=row.is_active)
            return to_flash_deal_dto(row)
