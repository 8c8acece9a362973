from decimal import Decimal
from typing import Any, Dict, Optional

from ..services.pricing import to_money
from ..services.variants import (
    VARIANT_CLASSES,
    Denomination,
    Duration,
    Edition,
    LicenseDuration,
    LicenseType,
    Plan,
    Platform,
    ProductVariant,
)


def _num(value: Any) -> Optional[float]:
    return float(value) if value is not None else None


def _money_or(value: Any, default: Decimal) -> Decimal:
    # zero is a real value here, only a missing column takes the default
    money = to_money(value)
    return default if money is None else money


def _iso(value: Any) -> Optional[str]:
    return value.isoformat() if value is not None else None


def _available(rows):
    return [r for r in (rows or []) if getattr(r, "is_available", True)]


def to_variant(row: Any) -> ProductVariant:
    """Build the immutable variant tree of a product row.

    Unavailable option rows are left out, so selections that still point at
    them resolve as stale.
    """
    cls = VARIANT_CLASSES.get(row.product_type)
    if cls is None:
        raise ValueError(f"unknown product_type: {row.product_type}")
    common = dict(
        id=row.id,
        title=row.title,
        base_price=to_money(row.base_price),
        currency=row.currency,
        original_price=to_money(row.original_price),
    )
    platforms = tuple(
        Platform(id=p.id, name=p.name, slug=p.slug, price_modifier=_money_or(p.price_modifier, Decimal("0")))
        for p in _available(row.platforms)
    )
    if row.product_type == "game":
        editions = tuple(
            Edition(
                id=e.id,
                name=e.name,
                price=to_money(e.price),
                original_price=to_money(e.original_price),
                is_default=bool(e.is_default),
            )
            for e in _available(row.editions)
        )
        return cls(editions=editions, platforms=platforms, **common)
    if row.product_type == "giftcard":
        denominations = tuple(
            Denomination(
                id=d.id,
                face_value=to_money(d.face_value),
                price=to_money(d.price),
                currency=d.currency,
                is_popular=bool(d.is_popular),
            )
            for d in _available(row.denominations)
        )
        return cls(denominations=denominations, **common)
    if row.product_type == "subscription":
        plans = tuple(
            Plan(
                id=p.id,
                name=p.name,
                is_popular=bool(p.is_popular),
                durations=tuple(
                    Duration(
                        id=d.id,
                        months=d.months,
                        label=d.label,
                        price=to_money(d.price),
                        is_popular=bool(d.is_popular),
                    )
                    for d in _available(p.durations)
                ),
            )
            for p in _available(row.plans)
        )
        return cls(plans=plans, **common)
    license_types = tuple(
        LicenseType(id=t.id, name=t.name, price=to_money(t.price), is_popular=bool(t.is_popular))
        for t in _available(row.license_types)
    )
    license_durations = tuple(
        LicenseDuration(
            id=d.id,
            label=d.label,
            price_multiplier=_money_or(d.price_multiplier, Decimal("1")),
            discount_percent=_money_or(d.discount_percent, Decimal("0")),
        )
        for d in _available(row.license_durations)
    )
    return cls(license_types=license_types, license_durations=license_durations, platforms=platforms, **common)


def variant_options_dto(product: ProductVariant) -> Dict:
    out: Dict[str, Any] = {}
    if hasattr(product, "platforms"):
        out["platforms"] = [
            {"id": p.id, "name": p.name, "slug": p.slug, "price_modifier": float(p.price_modifier)}
            for p in product.platforms
        ]
    if hasattr(product, "editions"):
        out["editions"] = [
            {
                "id": e.id,
                "name": e.name,
                "price": _num(e.price),
                "original_price": _num(e.original_price),
                "is_default": e.is_default,
            }
            for e in product.editions
        ]
    if hasattr(product, "denominations"):
        out["denominations"] = [
            {
                "id": d.id,
                "face_value": float(d.face_value),
                "price": _num(d.price),
                "currency": d.currency,
                "is_popular": d.is_popular,
            }
            for d in product.denominations
        ]
    if hasattr(product, "plans"):
        out["plans"] = [
            {
                "id": p.id,
                "name": p.name,
                "is_popular": p.is_popular,
                "durations": [
                    {"id": d.id, "months": d.months, "label": d.label, "price": _num(d.price), "is_popular": d.is_popular}
                    for d in p.durations
                ],
            }
            for p in product.plans
        ]
    if hasattr(product, "license_types"):
        out["license_types"] = [
            {"id": t.id, "name": t.name, "price": _num(t.price), "is_popular": t.is_popular}
            for t in product.license_types
        ]
        out["license_durations"] = [
            {
                "id": d.id,
                "label": d.label,
                "price_multiplier": float(d.price_multiplier),
                "discount_percent": float(d.discount_percent),
            }
            for d in product.license_durations
        ]
    return out


def to_product_dto(row: Any) -> Dict:
    return {
        "id": getattr(row, "id", None),
        "slug": getattr(row, "slug", None),
        "title": getattr(row, "title", None),
        "description": getattr(row, "description", None),
        "product_type": getattr(row, "product_type", None),
        "base_price": _num(getattr(row, "base_price", None)),
        "original_price": _num(getattr(row, "original_price", None)),
        "currency": getattr(row, "currency", None),
        "image_url": getattr(row, "image_url", None),
        "is_active": bool(getattr(row, "is_active", True)),
    }


def to_flash_deal_dto(row: Any) -> Dict:
    return {
        "id": row.id,
        "product_id": row.product_id,
        "title": row.title,
        "description": row.description,
        "discount_percentage": _num(row.discount_percentage),
        "start_time": _iso(row.start_time),
        "end_time": _iso(row.end_time),
        "is_active": bool(row.is_active),
    }


ORDER_FIELDS = (
    "id", "user_id", "product_id", "product_title", "product_type", "currency", "quantity",
    "flash_deal_id", "edition_id", "edition_name", "platform_id", "platform_name", "plan_id",
    "plan_name", "duration_id", "duration_label", "duration_months", "denomination_id",
    "license_type_id", "license_type_name", "license_duration_id", "license_duration_label",
    "status", "payment_method", "payment_proof_url", "payment_proof_status", "notes",
)
ORDER_MONEY_FIELDS = ("unit_price", "original_unit_price", "amount", "denomination_value")


def to_order_dto(row: Any) -> Dict:
    data = {name: getattr(row, name, None) for name in ORDER_FIELDS}
    for name in ORDER_MONEY_FIELDS:
        data[name] = _num(getattr(row, name, None))
    data["created_at"] = _iso(row.created_at)
    data["updated_at"] = _iso(row.updated_at)
    return data
