from datetime import datetime
from typing import Dict, Optional, Tuple
import time
from sqlalchemy import or_
from ..db.session import get_session
from ..models.product import PRODUCT_TYPES, Product
from ..utils.pagination import normalize_paging, offset_for, page_meta
from ..utils.dto import to_product_dto, to_variant, variant_options_dto
from ..utils.validators import ensure_choice
from .errors import NotFoundError
from .promotion import PriceQuote, countdown_parts, quote_price, time_remaining, utcnow
from .variants import ProductVariant, SelectionState, default_selection, with_defaults


class CatalogService:
    """Catalog reads and price quotes.

    Responsibilities:
    - List/search active products with pagination and optional type filter
    - Load a product's variant tree and default selection
    - Quote a selection, flash deal included
    """

    _cache_ttl_seconds: int = 60

    def __init__(self, session_factory=get_session, flash_deals=None):
        self._session_factory = session_factory
        self._flash_deals = flash_deals
        # naive in-process cache: key -> (ts, result)
        self._cache: Dict[Tuple, Tuple[float, Dict]] = {}

    def list_products(
        self,
        *,
        query: Optional[str] = None,
        product_type: Optional[str] = None,
        page: int = 1,
        page_size: int = 20,
    ) -> Dict:
        """Return dict: { items: [ProductDTO], page, page_size, total, pages }"""
        p, ps = normalize_paging(page, page_size)
        if product_type:
            product_type = ensure_choice(product_type, PRODUCT_TYPES, "product_type")
        cache_key = (query or "", product_type or "", p, ps)
        now = time.time()
        cached = self._cache.get(cache_key)
        if cached and now - cached[0] <= self._cache_ttl_seconds:
            return cached[1]

        with self._session_factory() as session:
            q = session.query(Product).filter(Product.is_active.is_(True))
            if query:
                like = f"%{query}%"
                q = q.filter(
                    or_(
                        Product.title.ilike(like),
                        Product.description.ilike(like),
                        Product.slug.ilike(like),
                    )
                )
            if product_type:
                q = q.filter(Product.product_type == product_type)
            total = q.count()
            rows = (
                q.order_by(Product.sort_order.desc(), Product.created_at.desc(), Product.id)
                .offset(offset_for(p, ps))
                .limit(ps)
                .all()
            )
            result = {"items": [to_product_dto(r) for r in rows], **page_meta(p, ps, total)}
            self._cache[cache_key] = (now, result)
            return result

    def _get_row(self, session, product_id: str) -> Product:
        row = (
            session.query(Product)
            .filter(or_(Product.id == product_id, Product.slug == product_id), Product.is_active.is_(True))
            .first()
        )
        if row is None:
            raise NotFoundError(f"product not found or inactive: {product_id}")
        return row

    def load_variant(self, product_id: str) -> ProductVariant:
        with self._session_factory() as session:
            return to_variant(self._get_row(session, product_id))

    def get_product(self, product_id: str, now: Optional[datetime] = None) -> Dict:
        """ProductDTO plus variant options, default selection and its quote."""
        at = now or utcnow()
        with self._session_factory() as session:
            row = self._get_row(session, product_id)
            dto = to_product_dto(row)
            variant = to_variant(row)
        selection = default_selection(variant)
        deal = self._active_deal(variant.id, at)
        dto["options"] = variant_options_dto(variant)
        dto["default_selection"] = selection.to_dict()
        dto["quote"] = quote_price(variant, selection, deal, at).to_dict()
        dto["flash_deal_countdown"] = countdown_parts(time_remaining(deal, at))
        return dto

    def quote(self, product_id: str, selection: Optional[SelectionState], now: Optional[datetime] = None) -> PriceQuote:
        at = now or utcnow()
        variant = self.load_variant(product_id)
        return quote_price(variant, with_defaults(variant, selection), self._active_deal(variant.id, at), at)

    def _active_deal(self, product_id: str, now: datetime):
        if self._flash_deals is None:
            return None
        return self._flash_deals.active_deal_for(product_id, now)

    def invalidate_cache(self) -> None:
        self._cache.clear()
