"""Shopper-facing JSON API: catalog, quotes, cart, checkout and own orders."""

from __future__ import annotations

from typing import Any, Dict, Optional, Tuple
from uuid import uuid4

from flask import Blueprint, current_app, jsonify, request, session

from storefront.services.variants import SelectionState


api_bp = Blueprint("storefront_api", __name__, url_prefix="/api")


def _components() -> Dict[str, Any]:
    return current_app.extensions["storefront_services"]


def _identity() -> Tuple[str, Optional[str]]:
    # anonymous carts are keyed by a per-browser id until the shopper signs in
    sid = session.get("cart_session_id")
    if not sid:
        sid = uuid4().hex
        session["cart_session_id"] = sid
    return sid, session.get("user_id")


def _payload() -> Dict[str, Any]:
    return request.get_json(silent=True) or {}


@api_bp.get("/products")
def list_products():
    result = _components()["catalog"].list_products(
        query=request.args.get("q"),
        product_type=request.args.get("type"),
        page=request.args.get("page", 1),
        page_size=request.args.get("page_size", 20),
    )
    return jsonify(result)


@api_bp.get("/products/<product_id>")
def get_product(product_id: str):
    return jsonify(_components()["catalog"].get_product(product_id))


@api_bp.post("/products/<product_id>/quote")
def quote_product(product_id: str):
    selection = SelectionState.from_dict(_payload().get("selection"))
    quote = _components()["catalog"].quote(product_id, selection)
    return jsonify(quote.to_dict())


@api_bp.get("/flash-deals/active")
def active_flash_deals():
    return jsonify({"deals": _components()["flash_deals"].list_active()})


@api_bp.get("/cart")
def get_cart():
    sid, uid = _identity()
    return jsonify(_components()["cart"].get_cart(session_id=sid, user_id=uid))


@api_bp.post("/cart")
def add_to_cart():
    payload = _payload()
    sid, uid = _identity()
    result = _components()["cart"].add_item(
        session_id=sid,
        user_id=uid,
        product_id=str(payload.get("product_id", "")).strip(),
        selection=payload.get("selection"),
    )
    return jsonify(result), 201


@api_bp.patch("/cart/items/<item_id>")
def update_cart_item(item_id: str):
    sid, uid = _identity()
    result = _components()["cart"].update_quantity(
        item_id=item_id,
        quantity=_payload().get("quantity"),
        session_id=sid,
        user_id=uid,
    )
    return jsonify(result)


@api_bp.delete("/cart/items/<item_id>")
def remove_cart_item(item_id: str):
    sid, uid = _identity()
    _components()["cart"].remove_item(item_id=item_id, session_id=sid, user_id=uid)
    return jsonify({"status": "removed", "item_id": item_id})


@api_bp.post("/checkout")
def checkout():
    sid, uid = _identity()
    if not uid:
        return jsonify({"error": "sign in before checkout"}), 401
    payload = _payload()
    result = _components()["orders"].checkout(
        user_id=uid,
        session_id=sid,
        payment_method=payload.get("payment_method"),
        payment_proof_url=payload.get("payment_proof_url"),
        notes=payload.get("notes"),
    )
    if result["status"] == "repriced":
        return jsonify(result), 409
    return jsonify(result), 201


@api_bp.get("/orders")
def my_orders():
    _, uid = _identity()
    if not uid:
        return jsonify({"error": "sign in required"}), 401
    orders = _components()["orders"].list_orders(
        user_id=uid,
        status=request.args.get("status"),
    )
    return jsonify({"orders": orders})
