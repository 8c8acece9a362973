"""Variant catalog and shopper selection state.

A product is one of four shapes, each owning only the option collections
that matter for its type::

    ProductVariant = GameProduct | GiftCardProduct | SubscriptionProduct | SoftwareProduct

Everything here is plain immutable data. Pricing lives in ``pricing.py``.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, fields, replace
from decimal import Decimal
from typing import Any, Dict, Optional, Sequence, Tuple, TypeVar, Union


@dataclass(frozen=True)
class Edition:
    id: str
    name: str
    price: Optional[Decimal]
    original_price: Optional[Decimal] = None
    is_default: bool = False


@dataclass(frozen=True)
class Platform:
    id: str
    name: str
    slug: str
    price_modifier: Decimal = Decimal("0")


@dataclass(frozen=True)
class Denomination:
    id: str
    face_value: Decimal
    price: Optional[Decimal]
    currency: str
    is_popular: bool = False


@dataclass(frozen=True)
class Duration:
    id: str
    months: int
    label: str
    price: Optional[Decimal]
    is_popular: bool = False


@dataclass(frozen=True)
class Plan:
    id: str
    name: str
    durations: Tuple[Duration, ...] = ()
    is_popular: bool = False


@dataclass(frozen=True)
class LicenseType:
    id: str
    name: str
    price: Optional[Decimal]
    is_popular: bool = False


@dataclass(frozen=True)
class LicenseDuration:
    id: str
    label: str
    price_multiplier: Decimal = Decimal("1")
    discount_percent: Decimal = Decimal("0")


@dataclass(frozen=True)
class ProductBase:
    id: str
    title: str
    base_price: Optional[Decimal]
    currency: str
    original_price: Optional[Decimal] = None


@dataclass(frozen=True)
class GameProduct(ProductBase):
    editions: Tuple[Edition, ...] = ()
    platforms: Tuple[Platform, ...] = ()

    product_type = "game"


@dataclass(frozen=True)
class GiftCardProduct(ProductBase):
    denominations: Tuple[Denomination, ...] = ()

    product_type = "giftcard"


@dataclass(frozen=True)
class SubscriptionProduct(ProductBase):
    plans: Tuple[Plan, ...] = ()

    product_type = "subscription"


@dataclass(frozen=True)
class SoftwareProduct(ProductBase):
    license_types: Tuple[LicenseType, ...] = ()
    license_durations: Tuple[LicenseDuration, ...] = ()
    platforms: Tuple[Platform, ...] = ()

    product_type = "software"


ProductVariant = Union[GameProduct, GiftCardProduct, SubscriptionProduct, SoftwareProduct]

VARIANT_CLASSES = {
    cls.product_type: cls
    for cls in (GameProduct, GiftCardProduct, SubscriptionProduct, SoftwareProduct)
}


@dataclass(frozen=True)
class SelectionState:
    """Option ids a shopper picked for one product, one per axis."""

    selected_edition: Optional[str] = None
    selected_platform: Optional[str] = None
    selected_plan: Optional[str] = None
    selected_duration: Optional[str] = None
    selected_denomination: Optional[str] = None
    selected_license_type: Optional[str] = None
    selected_license_duration: Optional[str] = None
    quantity: int = 1

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "SelectionState":
        data = data or {}
        known = {f.name for f in fields(cls)}
        values = {k: v for k, v in data.items() if k in known}
        for key, value in list(values.items()):
            if key != "quantity" and value is not None:
                values[key] = str(value) or None
        if "quantity" in values:
            try:
                values["quantity"] = int(values["quantity"])
            except (TypeError, ValueError):
                raise ValueError("quantity must be an integer")
        return cls(**values)


T = TypeVar("T")


def find_option(options: Sequence[T], option_id: Optional[str]) -> Optional[T]:
    """Look an option up by id; unknown or empty ids resolve to None."""
    if not option_id:
        return None
    for option in options:
        if option.id == option_id:
            return option
    return None


def _first_id(options: Sequence[Any]) -> Optional[str]:
    return options[0].id if options else None


def default_edition(editions: Sequence[Edition]) -> Optional[Edition]:
    for edition in editions:
        if edition.is_default:
            return edition
    return editions[0] if editions else None


def default_selection(product: ProductVariant, quantity: int = 1) -> SelectionState:
    """Selection a product page starts from: one default per axis.

    License durations get no default, the undiscounted term is implied.
    """
    if isinstance(product, GameProduct):
        edition = default_edition(product.editions)
        return SelectionState(
            selected_edition=edition.id if edition else None,
            selected_platform=_first_id(product.platforms),
            quantity=quantity,
        )
    if isinstance(product, GiftCardProduct):
        return SelectionState(selected_denomination=_first_id(product.denominations), quantity=quantity)
    if isinstance(product, SubscriptionProduct):
        plan = product.plans[0] if product.plans else None
        return SelectionState(
            selected_plan=plan.id if plan else None,
            selected_duration=_first_id(plan.durations) if plan else None,
            quantity=quantity,
        )
    if isinstance(product, SoftwareProduct):
        return SelectionState(
            selected_license_type=_first_id(product.license_types),
            selected_platform=_first_id(product.platforms),
            quantity=quantity,
        )
    raise TypeError(f"unsupported product variant: {type(product).__name__}")


def with_defaults(product: ProductVariant, selection: Optional[SelectionState]) -> SelectionState:
    """Fill every empty axis of ``selection`` from ``default_selection``.

    Ids that are set but stale are kept as they are.
    """
    if selection is None:
        return default_selection(product)
    defaults = default_selection(product, quantity=selection.quantity)
    updates = {}
    for f in fields(SelectionState):
        if f.name == "quantity":
            continue
        if getattr(selection, f.name) is None and getattr(defaults, f.name) is not None:
            updates[f.name] = getattr(defaults, f.name)
    if updates.get("selected_duration") and not updates.get("selected_plan") and selection.selected_plan:
        # a defaulted duration must belong to the plan the shopper chose
        plan = find_option(product.plans, selection.selected_plan)
        updates["selected_duration"] = _first_id(plan.durations) if plan else None
    return replace(selection, **updates)


def select_plan(product: SubscriptionProduct, selection: SelectionState, plan_id: Optional[str]) -> SelectionState:
    """Switch plan; the duration resets to the new plan's first duration."""
    plan = find_option(product.plans, plan_id)
    return replace(
        selection,
        selected_plan=plan_id,
        selected_duration=_first_id(plan.durations) if plan else None,
    )
