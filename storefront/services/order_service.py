from datetime import datetime, timedelta
from typing import Dict, List, Optional
from uuid import uuid4
from decimal import Decimal
from sqlalchemy import or_
from ..db.session import get_session
from ..models.cart_item import CartItem
from ..models.flash_deal import FlashDeal as FlashDealRow
from ..models.order import ORDER_STATUSES, PAYMENT_PROOF_STATUSES, Order
from ..utils.dto import to_order_dto
from .cart_service import owned_by
from .errors import InvalidStatusError, NotFoundError
from .line_items import LineItem, revalidate_line_item
from .logging import log_event
from .order_grouping import DEFAULT_WINDOW, FulfillmentOrder, group_orders, is_on_status_path
from .promotion import FlashDeal, utcnow

SNAPSHOT_FIELDS = (
    "product_id", "product_title", "product_type", "currency", "quantity", "unit_price",
    "original_unit_price", "flash_deal_id", "edition_id", "edition_name", "platform_id",
    "platform_name", "plan_id", "plan_name", "duration_id", "duration_label", "duration_months",
    "denomination_id", "denomination_value", "license_type_id", "license_type_name",
    "license_duration_id", "license_duration_label",
)


class OrderService:
    """Checkout, order administration and the grouped fulfillment view."""

    def __init__(self, session_factory=get_session, group_window: timedelta = DEFAULT_WINDOW):
        self._session_factory = session_factory
        self._group_window = group_window

    def checkout(
        self,
        *,
        user_id: str,
        session_id: Optional[str] = None,
        payment_method: Optional[str] = None,
        payment_proof_url: Optional[str] = None,
        notes: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> Dict:
        """Turn the cart into one order row per line item.

        Flash deals are checked again here. If a discounted line lost its
        deal, the cart is repriced and nothing is created, so the shopper
        sees the new total before paying it.
        """
        if not user_id:
            raise ValueError("user_id required")
        at = now or utcnow()
        with self._session_factory() as session:
            items = owned_by(session.query(CartItem), session_id, user_id).order_by(CartItem.added_at, CartItem.id).all()
            if not items:
                raise ValueError("cart is empty")

            lines = [LineItem.from_dict(it.line_item) for it in items]
            deal_ids = {line.flash_deal_id for line in lines if line.flash_deal_id}
            deals = {}
            if deal_ids:
                rows = session.query(FlashDealRow).filter(FlashDealRow.id.in_(deal_ids)).all()
                deals = {r.id: FlashDeal.from_row(r) for r in rows}

            repriced = []
            for it, line in zip(items, lines):
                checked = revalidate_line_item(line, deals.get(line.flash_deal_id), at)
                if checked != line:
                    it.line_item = checked.to_dict()
                    it.unit_price = checked.unit_price
                    it.configuration_key = checked.configuration_key()
                    repriced.append(it.id)
                    log_event(
                        "info",
                        "cart.item_repriced",
                        item_id=it.id,
                        flash_deal_id=line.flash_deal_id,
                        old_price=float(line.unit_price),
                        new_price=float(checked.unit_price),
                    )
            if repriced:
                session.flush()
                total = sum((LineItem.from_dict(it.line_item).line_total for it in items), Decimal("0"))
                log_event("info", "order.checkout_repriced", user_id=user_id, items=repriced, total=float(total))
                return {"status": "repriced", "repriced_item_ids": repriced, "total": float(total)}

            order_ids: List[str] = []
            total = Decimal("0")
            for line in lines:
                oid = str(uuid4())
                session.add(
                    Order(
                        id=oid,
                        user_id=user_id,
                        amount=line.line_total,
                        status="pending",
                        payment_method=payment_method,
                        payment_proof_url=payment_proof_url,
                        payment_proof_status="pending" if payment_proof_url else None,
                        notes=notes,
                        created_at=at,
                        updated_at=at,
                        **{name: getattr(line, name) for name in SNAPSHOT_FIELDS},
                    )
                )
                order_ids.append(oid)
                total += line.line_total
            # Clear cart after order creation
            for it in items:
                session.delete(it)
            session.flush()
            log_event("info", "order.created", user_id=user_id, order_ids=order_ids, total=float(total))
            return {"status": "created", "order_id": order_ids[0], "order_ids": order_ids, "total": float(total)}

    def _filtered(self, session, *, user_id=None, status=None, payment_status=None, search=None):
        q = session.query(Order)
        if user_id:
            q = q.filter(Order.user_id == user_id)
        if status and status != "all":
            q = q.filter(Order.status == status)
        if payment_status and payment_status != "all":
            if payment_status == "pending":
                q = q.filter(or_(Order.payment_proof_status.is_(None), Order.payment_proof_status == "pending"))
            else:
                q = q.filter(Order.payment_proof_status == payment_status)
        if search:
            like = f"%{search}%"
            q = q.filter(
                or_(
                    Order.product_title.ilike(like),
                    Order.payment_method.ilike(like),
                    Order.notes.ilike(like),
                    Order.user_id.ilike(like),
                )
            )
        return q

    def list_orders(
        self,
        *,
        user_id: Optional[str] = None,
        status: Optional[str] = None,
        payment_status: Optional[str] = None,
        search: Optional[str] = None,
    ) -> List[Dict]:
        with self._session_factory() as session:
            rows = (
                self._filtered(session, user_id=user_id, status=status, payment_status=payment_status, search=search)
                .order_by(Order.created_at.desc(), Order.id)
                .all()
            )
            return [to_order_dto(r) for r in rows]

    def get_order(self, order_id: str) -> Dict:
        with self._session_factory() as session:
            o = session.query(Order).filter(Order.id == order_id).first()
            if not o:
                raise NotFoundError(f"order not found: {order_id}")
            return to_order_dto(o)

    def update_order(
        self,
        order_id: str,
        *,
        status: Optional[str] = None,
        payment_proof_status: Optional[str] = None,
        notes: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> Dict:
        """Admin update of one row. Sibling orders of an inferred basket are untouched."""
        if status is not None and status not in ORDER_STATUSES:
            raise InvalidStatusError(f"invalid status: {status}")
        if payment_proof_status is not None and payment_proof_status not in PAYMENT_PROOF_STATUSES:
            raise InvalidStatusError(f"invalid payment status: {payment_proof_status}")
        with self._session_factory() as session:
            o = session.query(Order).filter(Order.id == order_id).first()
            if not o:
                raise NotFoundError(f"order not found: {order_id}")
            if status is not None:
                if not is_on_status_path(o.status, status):
                    log_event("warning", "order.status_off_path", order_id=order_id, old=o.status, new=status)
                o.status = status
            if payment_proof_status is not None:
                o.payment_proof_status = payment_proof_status
            if notes is not None:
                o.notes = notes
            o.updated_at = now or utcnow()
            session.flush()
            log_event(
                "info",
                "order.updated",
                order_id=order_id,
                status=o.status,
                payment_proof_status=o.payment_proof_status,
            )
            return to_order_dto(o)

    def delete_order(self, order_id: str) -> None:
        with self._session_factory() as session:
            o = session.query(Order).filter(Order.id == order_id).first()
            if not o:
                raise NotFoundError(f"order not found: {order_id}")
            session.delete(o)
            log_event("info", "order.deleted", order_id=order_id)

    def stats(self) -> Dict:
        with self._session_factory() as session:
            rows = session.query(Order).all()
            by_status = {s: 0 for s in ORDER_STATUSES}
            revenue = Decimal("0")
            awaiting = 0
            for o in rows:
                by_status[o.status] = by_status.get(o.status, 0) + 1
                if o.status == "completed":
                    revenue += Decimal(str(o.amount or 0))
                if o.payment_proof_url and o.payment_proof_status in (None, "pending"):
                    awaiting += 1
            return {
                "total": len(rows),
                "pending": by_status["pending"],
                "processing": by_status["processing"],
                "completed": by_status["completed"],
                "revenue": float(revenue),
                "awaiting_verification": awaiting,
            }

    def grouped_orders(
        self,
        *,
        user_id: Optional[str] = None,
        status: Optional[str] = None,
        payment_status: Optional[str] = None,
        search: Optional[str] = None,
    ) -> List[Dict]:
        """Baskets for the fulfillment page, recomputed on every call."""
        with self._session_factory() as session:
            rows = self._filtered(
                session, user_id=user_id, status=status, payment_status=payment_status, search=search
            ).all()
            dtos = {r.id: to_order_dto(r) for r in rows}
            views = [FulfillmentOrder.from_row(r) for r in rows]
        groups = group_orders(views, self._group_window)
        result = []
        for group in groups:
            data = group.to_dict()
            data["orders"] = [dtos[oid] for oid in group.order_ids]
            result.append(data)
        return result
