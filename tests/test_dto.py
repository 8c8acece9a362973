from decimal import Decimal
from types import SimpleNamespace

from storefront.services.pricing import resolve_price
from storefront.services.variants import SelectionState
from storefront.utils.dto import to_variant


def _software_row(multiplier, discount, modifier):
    return SimpleNamespace(
        id="sw",
        title="Office",
        product_type="software",
        base_price=Decimal("1000"),
        original_price=None,
        currency="NPR",
        platforms=[SimpleNamespace(id="pc", name="PC", slug="pc", price_modifier=modifier, is_available=True)],
        license_types=[],
        license_durations=[
            SimpleNamespace(
                id="trial",
                label="Trial",
                price_multiplier=multiplier,
                discount_percent=discount,
                is_available=True,
            )
        ],
    )


def test_zero_values_are_kept():
    variant = to_variant(_software_row(Decimal("0"), Decimal("0"), Decimal("0")))
    duration = variant.license_durations[0]
    assert duration.price_multiplier == Decimal("0")
    assert duration.discount_percent == Decimal("0")
    assert variant.platforms[0].price_modifier == Decimal("0")
    assert resolve_price(variant, SelectionState(selected_license_duration="trial")) == Decimal("0")


def test_missing_values_take_defaults():
    variant = to_variant(_software_row(None, None, None))
    duration = variant.license_durations[0]
    assert duration.price_multiplier == Decimal("1")
    assert duration.discount_percent == Decimal("0")
    assert variant.platforms[0].price_modifier == Decimal("0")
    assert resolve_price(variant, SelectionState(selected_license_duration="trial")) == Decimal("1000")
