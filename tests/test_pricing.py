from decimal import Decimal

import pytest

from storefront.services.pricing import resolve_price
from storefront.services.variants import (
    Denomination,
    Duration,
    Edition,
    GameProduct,
    GiftCardProduct,
    LicenseDuration,
    LicenseType,
    Plan,
    Platform,
    ProductBase,
    SelectionState,
    SoftwareProduct,
    SubscriptionProduct,
    default_selection,
    select_plan,
    with_defaults,
)


def game(editions=(), base="4000"):
    return GameProduct(
        id="g",
        title="Game",
        base_price=Decimal(base),
        currency="NPR",
        editions=tuple(editions),
        platforms=(Platform(id="pc", name="PC", slug="pc", price_modifier=Decimal("999")),),
    )


def subscription():
    return SubscriptionProduct(
        id="s",
        title="Sub",
        base_price=Decimal("300"),
        currency="NPR",
        plans=(
            Plan(
                id="basic",
                name="Basic",
                durations=(
                    Duration(id="1m", months=1, label="1 Month", price=Decimal("450")),
                    Duration(id="6m", months=6, label="6 Months", price=Decimal("2400")),
                ),
            ),
            Plan(id="empty", name="Empty"),
            Plan(id="premium", name="Premium", durations=(Duration(id="p1m", months=1, label="1 Month", price=Decimal("900")),)),
        ),
    )


def software():
    return SoftwareProduct(
        id="sw",
        title="Office",
        base_price=Decimal("1000"),
        currency="NPR",
        license_types=(LicenseType(id="pro", name="Pro", price=Decimal("1500")),),
        license_durations=(
            LicenseDuration(id="2y", label="2 Years", price_multiplier=Decimal("2.0"), discount_percent=Decimal("10")),
        ),
    )


class TestGame:
    def test_default_edition_price_not_base_price(self):
        product = game(
            [
                Edition(id="std", name="Standard", price=Decimal("5000")),
                Edition(id="dlx", name="Deluxe", price=Decimal("7500"), is_default=True),
            ]
        )
        assert resolve_price(product, default_selection(product)) == Decimal("7500")

    def test_first_edition_when_none_marked_default(self):
        product = game([Edition(id="std", name="Standard", price=Decimal("5000")), Edition(id="dlx", name="Deluxe", price=Decimal("7500"))])
        assert default_selection(product).selected_edition == "std"
        assert resolve_price(product, default_selection(product)) == Decimal("5000")

    def test_no_editions_uses_base_price(self):
        product = game()
        assert resolve_price(product, SelectionState(selected_edition="std")) == Decimal("4000")

    def test_stale_edition_falls_back(self):
        product = game([Edition(id="std", name="Standard", price=Decimal("5000"))])
        assert resolve_price(product, SelectionState(selected_edition="deleted")) == Decimal("4000")

    def test_platform_modifier_not_applied(self):
        product = game([Edition(id="std", name="Standard", price=Decimal("5000"))])
        selection = SelectionState(selected_edition="std", selected_platform="pc")
        assert resolve_price(product, selection) == Decimal("5000")


class TestGiftCard:
    def test_denomination_price_is_charged(self):
        product = GiftCardProduct(
            id="gc",
            title="Card",
            base_price=None,
            currency="NPR",
            denominations=(Denomination(id="d100", face_value=Decimal("100"), price=Decimal("95"), currency="USD"),),
        )
        assert resolve_price(product, default_selection(product)) == Decimal("95")

    def test_no_selection_and_no_base_is_zero(self):
        product = GiftCardProduct(id="gc", title="Card", base_price=None, currency="NPR")
        assert resolve_price(product, SelectionState()) == Decimal("0")


class TestSubscription:
    def test_duration_price(self):
        product = subscription()
        selection = SelectionState(selected_plan="basic", selected_duration="6m")
        assert resolve_price(product, selection) == Decimal("2400")

    @pytest.mark.parametrize("plan", [None, "basic", "premium", "empty"])
    def test_without_duration_is_base_price(self, plan):
        assert resolve_price(subscription(), SelectionState(selected_plan=plan)) == Decimal("300")

    def test_duration_of_other_plan_is_stale(self):
        selection = SelectionState(selected_plan="premium", selected_duration="6m")
        assert resolve_price(subscription(), selection) == Decimal("300")

    def test_default_picks_first_plan_and_duration(self):
        selection = default_selection(subscription())
        assert (selection.selected_plan, selection.selected_duration) == ("basic", "1m")

    def test_select_plan_resets_duration(self):
        product = subscription()
        selection = select_plan(product, default_selection(product), "premium")
        assert selection.selected_duration == "p1m"
        assert resolve_price(product, selection) == Decimal("900")
        assert select_plan(product, selection, "empty").selected_duration is None


class TestSoftware:
    def test_type_price_overrides_base_then_multiplier(self):
        selection = SelectionState(selected_license_type="pro", selected_license_duration="2y")
        assert resolve_price(software(), selection) == Decimal("3000")

    def test_multiplier_applies_to_base_without_type(self):
        selection = SelectionState(selected_license_duration="2y")
        assert resolve_price(software(), selection) == Decimal("2000")

    def test_stale_license_type_keeps_base(self):
        assert resolve_price(software(), SelectionState(selected_license_type="gone")) == Decimal("1000")

    def test_no_default_license_duration(self):
        selection = default_selection(software())
        assert selection.selected_license_type == "pro"
        assert selection.selected_license_duration is None


def test_with_defaults_keeps_chosen_plan():
    product = subscription()
    selection = with_defaults(product, SelectionState(selected_plan="premium"))
    assert selection.selected_duration == "p1m"


def test_unknown_variant_class_is_rejected():
    product = ProductBase(id="x", title="X", base_price=Decimal("1"), currency="NPR")
    with pytest.raises(TypeError):
        resolve_price(product, SelectionState())


def test_selection_round_trips_through_dict():
    selection = SelectionState.from_dict({"selected_plan": "basic", "quantity": "3", "unknown": "x"})
    assert selection.quantity == 3
    assert SelectionState.from_dict(selection.to_dict()) == selection
