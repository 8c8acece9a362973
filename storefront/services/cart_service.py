from datetime import datetime
from typing import Dict, Optional, Tuple
from uuid import uuid4
from decimal import Decimal
from sqlalchemy import or_
from ..db.session import get_session
from ..models.cart_item import CartItem
from ..utils.validators import ensure_positive_int
from .catalog_service import CatalogService
from .errors import NotFoundError
from .line_items import LineItem, build_line_item
from .logging import log_event
from .promotion import quote_price, utcnow
from .variants import SelectionState, with_defaults


def owned_by(q, session_id: Optional[str], user_id: Optional[str]):
    """Filter cart rows to one shopper; shared by the cart view and checkout."""
    # a signed-in shopper also owns what this browser added before login
    if user_id and session_id:
        return q.filter(or_(CartItem.user_id == user_id, CartItem.session_id == session_id))
    if user_id:
        return q.filter(CartItem.user_id == user_id)
    return q.filter(CartItem.session_id == session_id)


class CartService:
    """Cart operations backed by DB.

    The client sends a selection, never a price: every line is priced and
    snapshotted here.
    """

    def __init__(self, session_factory=get_session, catalog: Optional[CatalogService] = None, flash_deals=None):
        self._session_factory = session_factory
        self._flash_deals = flash_deals
        self._catalog = catalog or CatalogService(session_factory, flash_deals=flash_deals)

    @staticmethod
    def _identity(session_id: Optional[str], user_id: Optional[str]) -> Tuple[Optional[str], Optional[str]]:
        sid, uid = session_id or None, user_id or None
        if not sid and not uid:
            raise ValueError("session_id or user_id required")
        return sid, uid

    @staticmethod
    def _owned(q, sid: Optional[str], uid: Optional[str]):
        return owned_by(q, sid, uid)

    @staticmethod
    def _to_dict(it: CartItem) -> Dict:
        return {
            "id": it.id,
            "product_id": it.product_id,
            "quantity": it.quantity,
            "unit_price": float(it.unit_price or 0),
            "currency": it.currency,
            "line_item": it.line_item,
        }

    def get_cart(self, *, session_id: Optional[str], user_id: Optional[str]) -> Dict:
        sid, uid = self._identity(session_id, user_id)
        with self._session_factory() as session:
            rows = self._owned(session.query(CartItem), sid, uid).order_by(CartItem.added_at, CartItem.id).all()
            items = [self._to_dict(it) for it in rows]
        subtotal = sum((Decimal(str(it["unit_price"])) * Decimal(it["quantity"]) for it in items), Decimal("0"))
        currency = items[0]["currency"] if items else None
        return {"items": items, "subtotal": float(subtotal), "currency": currency}

    def build_line(self, product_id: str, selection: Optional[Dict], now: Optional[datetime] = None) -> LineItem:
        at = now or utcnow()
        variant = self._catalog.load_variant(product_id)
        chosen = with_defaults(variant, SelectionState.from_dict(selection))
        deal = self._flash_deals.active_deal_for(variant.id, at) if self._flash_deals else None
        return build_line_item(variant, chosen, quote_price(variant, chosen, deal, at))

    def add_item(
        self,
        *,
        session_id: Optional[str],
        user_id: Optional[str],
        product_id: str,
        selection: Optional[Dict] = None,
        now: Optional[datetime] = None,
    ) -> Dict:
        if not product_id:
            raise ValueError("product_id required")
        sid, uid = self._identity(session_id, user_id)
        line = self.build_line(product_id, selection, now)
        key = line.configuration_key()
        with self._session_factory() as session:
            # same configuration at the same price for this identity: add quantity
            existing = (
                self._owned(session.query(CartItem), sid, uid)
                .filter(CartItem.configuration_key == key)
                .first()
            )
            status = "added"
            stored = line
            if existing:
                stored = LineItem.from_dict(existing.line_item).with_quantity(existing.quantity + line.quantity)
                existing.quantity = stored.quantity
                existing.line_item = stored.to_dict()
                item_id = existing.id
                status = "merged"
            else:
                item = CartItem(
                    id=str(uuid4()),
                    session_id=sid,
                    user_id=uid,
                    product_id=line.product_id,
                    configuration_key=key,
                    line_item=line.to_dict(),
                    quantity=line.quantity,
                    unit_price=line.unit_price,
                    currency=line.currency,
                    added_at=now or utcnow(),
                )
                session.add(item)
                item_id = item.id
            session.flush()
            log_event(
                "info",
                "cart.item_added",
                item_id=item_id,
                product_id=line.product_id,
                unit_price=float(line.unit_price),
                flash_deal_id=line.flash_deal_id,
            )
            return {
                "status": status,
                "item_id": item_id,
                "quantity": stored.quantity,
                "line_item": stored.to_dict(),
            }

    def update_quantity(self, *, item_id: str, quantity: int, session_id: Optional[str] = None, user_id: Optional[str] = None) -> Dict:
        if not item_id:
            raise ValueError("item_id required")
        qnty = ensure_positive_int(quantity, "quantity")
        with self._session_factory() as session:
            it = self._find(session, item_id, session_id, user_id)
            if qnty == 0:
                session.delete(it)
                session.flush()
                return {"status": "removed", "item_id": item_id}
            line = LineItem.from_dict(it.line_item).with_quantity(qnty)
            it.quantity = qnty
            it.line_item = line.to_dict()
            session.flush()
            return {"status": "updated", "item_id": item_id}

    def remove_item(self, *, item_id: str, session_id: Optional[str] = None, user_id: Optional[str] = None) -> None:
        with self._session_factory() as session:
            it = self._find(session, item_id, session_id, user_id, required=False)
            if it:
                session.delete(it)
                session.flush()
        return None

    def clear(self, *, session_id: Optional[str], user_id: Optional[str]) -> int:
        sid, uid = self._identity(session_id, user_id)
        with self._session_factory() as session:
            rows = self._owned(session.query(CartItem), sid, uid).all()
            for it in rows:
                session.delete(it)
            return len(rows)

    def _find(self, session, item_id: str, session_id: Optional[str], user_id: Optional[str], required: bool = True):
        q = session.query(CartItem).filter(CartItem.id == item_id)
        if session_id or user_id:
            sid, uid = self._identity(session_id, user_id)
            q = self._owned(q, sid, uid)
        it = q.first()
        if it is None and required:
            raise NotFoundError(f"cart item not found: {item_id}")
        return it
