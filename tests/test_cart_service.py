from datetime import datetime, timedelta

import pytest

from storefront.services.errors import IncompleteSelectionError, NotFoundError

NOW = datetime(2026, 3, 1, 12, 0, 0)


def test_add_uses_defaults_and_server_side_price(cart):
    result = cart.add_item(session_id="s1", user_id=None, product_id="game-1", now=NOW)
    line = result["line_item"]
    assert line["edition_id"] == "ed-dlx"
    assert line["platform_name"] == "PC"
    assert line["unit_price"] == 7500.0

    content = cart.get_cart(session_id="s1", user_id=None)
    assert len(content["items"]) == 1
    assert content["subtotal"] == 7500.0
    assert content["currency"] == "NPR"


def test_product_can_be_addressed_by_slug(cart):
    result = cart.add_item(session_id="s1", user_id=None, product_id="netflix", now=NOW)
    assert result["line_item"]["product_id"] == "sub-1"
    assert result["line_item"]["duration_label"] == "1 Month"


def test_same_configuration_merges_quantity(cart):
    selection = {"selected_edition": "ed-std", "selected_platform": "pf-ps5"}
    first = cart.add_item(session_id="s1", user_id=None, product_id="game-1", selection=selection, now=NOW)
    second = cart.add_item(
        session_id="s1", user_id=None, product_id="game-1", selection={**selection, "quantity": 2}, now=NOW
    )
    assert first["item_id"] == second["item_id"]
    content = cart.get_cart(session_id="s1", user_id=None)
    assert [it["quantity"] for it in content["items"]] == [3]
    assert content["items"][0]["line_item"]["line_total"] == 15000.0


def test_different_configuration_is_a_new_line(cart):
    cart.add_item(session_id="s1", user_id=None, product_id="game-1", selection={"selected_edition": "ed-std"}, now=NOW)
    cart.add_item(session_id="s1", user_id=None, product_id="game-1", selection={"selected_edition": "ed-dlx"}, now=NOW)
    assert len(cart.get_cart(session_id="s1", user_id=None)["items"]) == 2


def test_carts_are_isolated_by_identity(cart):
    cart.add_item(session_id="s1", user_id=None, product_id="gift-1", now=NOW)
    assert cart.get_cart(session_id="s2", user_id=None)["items"] == []
    assert cart.get_cart(session_id=None, user_id="u1")["items"] == []


def test_identity_is_required(cart):
    with pytest.raises(ValueError):
        cart.get_cart(session_id=None, user_id=None)


def test_unavailable_denomination_is_rejected(cart):
    with pytest.raises(IncompleteSelectionError):
        cart.add_item(
            session_id="s1",
            user_id=None,
            product_id="gift-1",
            selection={"selected_denomination": "dn-50"},
            now=NOW,
        )


def test_unknown_product(cart):
    with pytest.raises(NotFoundError):
        cart.add_item(session_id="s1", user_id=None, product_id="missing", now=NOW)


def test_flash_deal_is_snapshotted(cart, flash_deals):
    deal = flash_deals.create_deal(
        product_id="gift-1",
        discount_percentage=10,
        start_time=NOW - timedelta(hours=1),
        end_time=NOW + timedelta(hours=1),
    )
    line = cart.add_item(session_id="s1", user_id=None, product_id="gift-1", now=NOW)["line_item"]
    assert line["unit_price"] == 85.0
    assert line["original_unit_price"] == 95.0
    assert line["flash_deal_id"] == deal["id"]
    assert line["denomination_value"] == 100.0


def test_software_line_price(cart):
    line = cart.add_item(
        session_id="s1",
        user_id=None,
        product_id="soft-1",
        selection={"selected_license_duration": "ld-2y"},
        now=NOW,
    )["line_item"]
    assert line["license_type_name"] == "Professional"
    assert line["unit_price"] == 3000.0


def test_update_and_remove(cart):
    item_id = cart.add_item(session_id="s1", user_id=None, product_id="gift-1", now=NOW)["item_id"]

    assert cart.update_quantity(item_id=item_id, quantity=4, session_id="s1")["status"] == "updated"
    item = cart.get_cart(session_id="s1", user_id=None)["items"][0]
    assert item["quantity"] == 4
    assert item["line_item"]["line_total"] == 380.0

    assert cart.update_quantity(item_id=item_id, quantity=0, session_id="s1")["status"] == "removed"
    assert cart.get_cart(session_id="s1", user_id=None)["items"] == []


def test_update_rejects_negative_quantity(cart):
    item_id = cart.add_item(session_id="s1", user_id=None, product_id="gift-1", now=NOW)["item_id"]
    with pytest.raises(ValueError):
        cart.update_quantity(item_id=item_id, quantity=-1, session_id="s1")


def test_update_foreign_item_is_not_found(cart):
    item_id = cart.add_item(session_id="s1", user_id=None, product_id="gift-1", now=NOW)["item_id"]
    with pytest.raises(NotFoundError):
        cart.update_quantity(item_id=item_id, quantity=2, session_id="other")


def test_remove_and_clear(cart):
    item_id = cart.add_item(session_id="s1", user_id=None, product_id="gift-1", now=NOW)["item_id"]
    cart.add_item(session_id="s1", user_id=None, product_id="sub-1", now=NOW)
    cart.remove_item(item_id=item_id, session_id="s1")
    assert len(cart.get_cart(session_id="s1", user_id=None)["items"]) == 1
    assert cart.clear(session_id="s1", user_id=None) == 1


def test_adding_again_returns_the_stored_line(cart):
    cart.add_item(session_id="s1", user_id=None, product_id="gift-1", now=NOW)
    again = cart.add_item(session_id="s1", user_id=None, product_id="gift-1", now=NOW)
    assert again["status"] == "merged"
    assert again["quantity"] == 2
    assert again["line_item"]["quantity"] == 2
    assert again["line_item"]["line_total"] == 190.0

    item = cart.get_cart(session_id="s1", user_id=None)["items"][0]
    assert (item["id"], item["quantity"]) == (again["item_id"], again["quantity"])


def test_price_change_between_adds_starts_a_new_line(cart, flash_deals):
    first = cart.add_item(session_id="s1", user_id=None, product_id="gift-1", now=NOW)
    flash_deals.create_deal(
        product_id="gift-1",
        discount_percentage=20,
        start_time=NOW,
        end_time=NOW + timedelta(hours=1),
    )
    second = cart.add_item(session_id="s1", user_id=None, product_id="gift-1", now=NOW + timedelta(minutes=1))
    assert second["status"] == "added"
    assert second["item_id"] != first["item_id"]
    assert (second["line_item"]["unit_price"], second["quantity"]) == (76.0, 1)

    content = cart.get_cart(session_id="s1", user_id=None)
    prices = sorted((it["unit_price"], it["quantity"]) for it in content["items"])
    assert prices == [(76.0, 1), (95.0, 1)]
    assert content["subtotal"] == 171.0


def test_signed_in_cart_includes_items_added_before_login(cart):
    cart.add_item(session_id="browser", user_id=None, product_id="sub-1", now=NOW)
    cart.add_item(session_id="browser", user_id="u1", product_id="game-1", now=NOW)
    content = cart.get_cart(session_id="browser", user_id="u1")
    assert {it["product_id"] for it in content["items"]} == {"sub-1", "game-1"}
    assert cart.clear(session_id="browser", user_id="u1") == 2
