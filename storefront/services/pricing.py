"""Base unit price resolution, one rule per product type.

``resolve_price`` never raises for a known product type: an option id that
no longer exists in the catalog counts as no selection and the next rule
applies, down to ``product.base_price``.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Callable, Dict, Optional

from .logging import log_event
from .variants import (
    GameProduct,
    GiftCardProduct,
    ProductVariant,
    SelectionState,
    SoftwareProduct,
    SubscriptionProduct,
    find_option,
)

ZERO = Decimal("0")


def to_money(value: Any) -> Optional[Decimal]:
    if value is None:
        return None
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def _base(product: ProductVariant) -> Decimal:
    return to_money(product.base_price) or ZERO


def _stale(product: ProductVariant, axis: str, option_id: Optional[str]) -> None:
    log_event("debug", "pricing.stale_selection", product_id=product.id, axis=axis, option_id=option_id)


def _resolve_game(product: GameProduct, selection: SelectionState) -> Decimal:
    if product.editions and selection.selected_edition:
        edition = find_option(product.editions, selection.selected_edition)
        if edition is not None and edition.price is not None:
            return to_money(edition.price)
        if edition is None:
            _stale(product, "edition", selection.selected_edition)
    return _base(product)


def _resolve_giftcard(product: GiftCardProduct, selection: SelectionState) -> Decimal:
    if product.denominations and selection.selected_denomination:
        denomination = find_option(product.denominations, selection.selected_denomination)
        if denomination is not None and denomination.price is not None:
            return to_money(denomination.price)
        if denomination is None:
            _stale(product, "denomination", selection.selected_denomination)
    return _base(product)


def _resolve_subscription(product: SubscriptionProduct, selection: SelectionState) -> Decimal:
    # a plan alone is not priced, the duration carries the price
    if product.plans and selection.selected_plan and selection.selected_duration:
        plan = find_option(product.plans, selection.selected_plan)
        duration = find_option(plan.durations, selection.selected_duration) if plan else None
        if duration is not None and duration.price is not None:
            return to_money(duration.price)
        if duration is None:
            _stale(product, "duration", selection.selected_duration)
    return _base(product)


def _resolve_software(product: SoftwareProduct, selection: SelectionState) -> Decimal:
    price = _base(product)
    if product.license_types and selection.selected_license_type:
        license_type = find_option(product.license_types, selection.selected_license_type)
        if license_type is not None and license_type.price is not None:
            price = to_money(license_type.price)
        elif license_type is None:
            _stale(product, "license_type", selection.selected_license_type)
    if product.license_durations and selection.selected_license_duration:
        duration = find_option(product.license_durations, selection.selected_license_duration)
        if duration is not None:
            # discount_percent is display-only
            multiplier = to_money(duration.price_multiplier)
            price = price * (multiplier if multiplier is not None else Decimal("1"))
        else:
            _stale(product, "license_duration", selection.selected_license_duration)
    return price


_RESOLVERS: Dict[type, Callable[[Any, SelectionState], Decimal]] = {
    GameProduct: _resolve_game,
    GiftCardProduct: _resolve_giftcard,
    SubscriptionProduct: _resolve_subscription,
    SoftwareProduct: _resolve_software,
}


def resolve_price(product: ProductVariant, selection: Optional[SelectionState]) -> Decimal:
    """Return the pre-promotion unit price for ``selection`` of ``product``."""
    resolver = _RESOLVERS.get(type(product))
    if resolver is None:
        raise TypeError(f"no price rule for {type(product).__name__}")
    return resolver(product, selection or SelectionState())
