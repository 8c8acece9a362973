"""Back-office JSON routes: order fulfillment and flash deals."""

from __future__ import annotations

from typing import Any, Dict

from flask import Blueprint, current_app, jsonify, request, session


admin_bp = Blueprint("storefront_admin", __name__, url_prefix="/admin")


def _components() -> Dict[str, Any]:
    return current_app.extensions["storefront_services"]


def _config():
    return current_app.config["STOREFRONT_CONFIG"]


def _is_authenticated() -> bool:
    return bool(session.get("storefront_admin"))


def _payload() -> Dict[str, Any]:
    return request.get_json(silent=True) or {}


def _order_filters() -> Dict[str, Any]:
    return {
        "status": request.args.get("status"),
        "payment_status": request.args.get("payment_status"),
        "search": request.args.get("q"),
    }


@admin_bp.before_request
def guard_private_routes():
    if request.endpoint and request.endpoint.startswith("storefront_admin."):
        public = {"storefront_admin.login"}
        if request.endpoint not in public and not _is_authenticated():
            return jsonify({"error": "Unauthorized"}), 401
    return None


@admin_bp.post("/login")
def login():
    payload = _payload()
    username = str(payload.get("username", "")).strip()
    password = str(payload.get("password", "")).strip()
    cfg = _config()
    if username == cfg.admin_username and password == cfg.admin_password:
        session["storefront_admin"] = True
        return jsonify({"status": "ok"})
    return jsonify({"error": "invalid username or password"}), 401


@admin_bp.post("/logout")
def logout():
    session.pop("storefront_admin", None)
    return jsonify({"status": "ok"})


@admin_bp.get("/orders")
def list_orders():
    return jsonify({"orders": _components()["orders"].list_orders(**_order_filters())})


@admin_bp.get("/orders/groups")
def grouped_orders():
    """Orders re-assembled into checkout baskets for credential delivery."""
    return jsonify({"groups": _components()["orders"].grouped_orders(**_order_filters())})


@admin_bp.get("/orders/stats")
def order_stats():
    return jsonify(_components()["orders"].stats())


@admin_bp.get("/orders/<order_id>")
def get_order(order_id: str):
    return jsonify({"order": _components()["orders"].get_order(order_id)})


@admin_bp.patch("/orders/<order_id>")
def update_order(order_id: str):
    payload = _payload()
    order = _components()["orders"].update_order(
        order_id,
        status=payload.get("status") or None,
        payment_proof_status=payload.get("payment_proof_status") or None,
        notes=payload.get("notes"),
    )
    return jsonify({"order": order})


@admin_bp.delete("/orders/<order_id>")
def delete_order(order_id: str):
    _components()["orders"].delete_order(order_id)
    return jsonify({"success": True})


@admin_bp.get("/flash-deals")
def list_flash_deals():
    return jsonify({"deals": _components()["flash_deals"].list_deals()})


@admin_bp.post("/flash-deals")
def create_flash_deal():
    payload = _payload()
    deal = _components()["flash_deals"].create_deal(
        product_id=str(payload.get("product_id", "")).strip(),
        discount_percentage=payload.get("discount_percentage"),
        start_time=payload.get("start_time"),
        end_time=payload.get("end_time"),
        title=payload.get("title"),
        description=payload.get("description"),
        is_active=payload.get("is_active", True),
    )
    return jsonify({"deal": deal}), 201


@admin_bp.patch("/flash-deals/<deal_id>")
def toggle_flash_deal(deal_id: str):
    payload = _payload()
    if "is_active" not in payload:
        return jsonify({"error": "is_active required"}), 400
    deal = _components()["flash_deals"].set_active(deal_id, bool(payload["is_active"]))
    return jsonify({"deal": deal})
