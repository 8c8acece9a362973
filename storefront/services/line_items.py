"""Immutable priced snapshot of one product configuration.

A ``LineItem`` copies every selected option's id and label so order views
never join back to the catalog, whose rows may since have changed.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, fields, replace
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, Optional

from .pricing import to_money
from .promotion import FlashDeal, PriceQuote, is_deal_active
from .variants import (
    GameProduct,
    GiftCardProduct,
    ProductVariant,
    SelectionState,
    SoftwareProduct,
    SubscriptionProduct,
    find_option,
)


class IncompleteSelectionError(ValueError):
    """Raised when a line item would be persisted without a required axis."""


MONEY_FIELDS = ("unit_price", "original_unit_price", "discount_percentage", "line_total", "denomination_value")

# fields that distinguish one cart configuration from another
CONFIGURATION_FIELDS = (
    "product_id",
    "edition_id",
    "platform_id",
    "plan_id",
    "duration_id",
    "denomination_id",
    "license_type_id",
    "license_duration_id",
)


@dataclass(frozen=True)
class LineItem:
    product_id: str
    product_title: str
    product_type: str
    currency: str
    unit_price: Decimal
    quantity: int
    line_total: Decimal
    original_unit_price: Optional[Decimal] = None
    flash_deal_id: Optional[str] = None
    discount_percentage: Optional[Decimal] = None
    edition_id: Optional[str] = None
    edition_name: Optional[str] = None
    platform_id: Optional[str] = None
    platform_name: Optional[str] = None
    plan_id: Optional[str] = None
    plan_name: Optional[str] = None
    duration_id: Optional[str] = None
    duration_label: Optional[str] = None
    duration_months: Optional[int] = None
    denomination_id: Optional[str] = None
    denomination_value: Optional[Decimal] = None
    license_type_id: Optional[str] = None
    license_type_name: Optional[str] = None
    license_duration_id: Optional[str] = None
    license_duration_label: Optional[str] = None

    def configuration_key(self) -> str:
        """Identity of a cart line: the selected options plus the snapshot price.

        A configuration re-added at another price (a flash deal started or
        ended in between) becomes its own line instead of inheriting the
        older price.
        """
        parts = [str(getattr(self, name) or "") for name in CONFIGURATION_FIELDS]
        parts.append(f"{self.unit_price:.2f}")
        parts.append(self.flash_deal_id or "")
        return "|".join(parts)

    def with_quantity(self, quantity: int) -> "LineItem":
        if int(quantity) < 1:
            raise IncompleteSelectionError("quantity must be >= 1")
        return replace(self, quantity=int(quantity), line_total=self.unit_price * int(quantity))

    def to_dict(self) -> Dict[str, Any]:
        """JSON-safe row; optional fields are None, never omitted."""
        data = asdict(self)
        for name in MONEY_FIELDS:
            if data[name] is not None:
                data[name] = float(data[name])
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LineItem":
        known = {f.name for f in fields(cls)}
        values = {k: v for k, v in (data or {}).items() if k in known}
        for name in MONEY_FIELDS:
            if values.get(name) is not None:
                values[name] = to_money(values[name])
        return cls(**values)


def _option_fields(product: ProductVariant, selection: SelectionState) -> Dict[str, Any]:
    out: Dict[str, Any] = {}
    if isinstance(product, GameProduct):
        edition = find_option(product.editions, selection.selected_edition)
        if product.editions and edition is None:
            raise IncompleteSelectionError("edition required")
        if edition is not None:
            out.update(edition_id=edition.id, edition_name=edition.name)
    elif isinstance(product, GiftCardProduct):
        denomination = find_option(product.denominations, selection.selected_denomination)
        if product.denominations and denomination is None:
            raise IncompleteSelectionError("denomination required")
        if denomination is not None:
            out.update(denomination_id=denomination.id, denomination_value=to_money(denomination.face_value))
    elif isinstance(product, SubscriptionProduct):
        plan = find_option(product.plans, selection.selected_plan)
        duration = find_option(plan.durations, selection.selected_duration) if plan else None
        if product.plans and (plan is None or (plan.durations and duration is None)):
            raise IncompleteSelectionError("plan and duration required")
        if plan is not None:
            out.update(plan_id=plan.id, plan_name=plan.name)
        if duration is not None:
            out.update(duration_id=duration.id, duration_label=duration.label, duration_months=duration.months)
    elif isinstance(product, SoftwareProduct):
        license_type = find_option(product.license_types, selection.selected_license_type)
        if product.license_types and license_type is None:
            raise IncompleteSelectionError("license type required")
        if license_type is not None:
            out.update(license_type_id=license_type.id, license_type_name=license_type.name)
        license_duration = find_option(product.license_durations, selection.selected_license_duration)
        if selection.selected_license_duration and license_duration is None:
            raise IncompleteSelectionError("license duration no longer available")
        if license_duration is not None:
            out.update(license_duration_id=license_duration.id, license_duration_label=license_duration.label)
    else:
        raise TypeError(f"unsupported product variant: {type(product).__name__}")

    platforms = getattr(product, "platforms", ())
    platform = find_option(platforms, selection.selected_platform)
    if platform is not None:
        out.update(platform_id=platform.id, platform_name=platform.name)
    return out


def build_line_item(product: ProductVariant, selection: SelectionState, quote: PriceQuote) -> LineItem:
    """Snapshot ``selection`` of ``product`` at the price actually charged.

    Rejects ``quantity < 1`` and selections missing the priced axis of the
    product type; callers re-run default selection instead of persisting an
    incomplete item.
    """
    quantity = int(selection.quantity)
    if quantity < 1:
        raise IncompleteSelectionError("quantity must be >= 1")
    options = _option_fields(product, selection)
    priced_by_option = any(
        options.get(k) for k in ("edition_id", "denomination_id", "duration_id", "license_type_id")
    )
    if not priced_by_option and product.base_price is None:
        raise IncompleteSelectionError(f"{product.product_type} has no price for this selection")

    unit_price = to_money(quote.display_price)
    return LineItem(
        product_id=product.id,
        product_title=product.title,
        product_type=product.product_type,
        currency=product.currency,
        unit_price=unit_price,
        quantity=quantity,
        line_total=unit_price * quantity,
        original_unit_price=to_money(quote.unit_price),
        flash_deal_id=quote.flash_deal_id,
        discount_percentage=quote.discount_percentage,
        **options,
    )


def revalidate_line_item(item: LineItem, deal: Optional[FlashDeal], now: Optional[datetime] = None) -> LineItem:
    """Submission-time check of the promotion captured in ``item``.

    An item bought under a deal that is no longer active reverts to its
    undiscounted ``original_unit_price``; everything else is returned as is.
    """
    if item.flash_deal_id is None:
        return item
    if deal is not None and deal.id == item.flash_deal_id and is_deal_active(deal, now):
        return item
    price = item.original_unit_price if item.original_unit_price is not None else item.unit_price
    return replace(
        item,
        unit_price=price,
        line_total=price * item.quantity,
        flash_deal_id=None,
        discount_percentage=None,
    )
