"""Digital-goods storefront Flask application."""

from __future__ import annotations

from datetime import timedelta
from typing import Optional

from flask import Flask, jsonify

from routes import admin, api
from storefront.config import AppConfig, load_env
from storefront.db.session import make_session_factory
from storefront.services import CartService, CatalogService, FlashDealService, OrderService
from storefront.services.errors import NotFoundError
from storefront.services.logging import configure as configure_logging


def create_app(config: Optional[AppConfig] = None, session_factory=None) -> Flask:
    config = config or load_env()
    configure_logging(config.log_level)
    app = Flask(__name__)
    app.config["SECRET_KEY"] = config.secret_key
    app.config["STOREFRONT_CONFIG"] = config

    session_factory = session_factory or make_session_factory(config.database_url)
    flash_deals = FlashDealService(session_factory)
    catalog = CatalogService(session_factory, flash_deals=flash_deals)
    components = {
        "flash_deals": flash_deals,
        "catalog": catalog,
        "cart": CartService(session_factory, catalog=catalog, flash_deals=flash_deals),
        "orders": OrderService(session_factory, group_window=timedelta(seconds=config.order_group_window_seconds)),
    }
    app.extensions["storefront_services"] = components

    app.register_blueprint(api.api_bp)
    app.register_blueprint(admin.admin_bp)

    @app.errorhandler(NotFoundError)
    def _not_found(exc):
        return jsonify({"error": str(exc)}), 404

    @app.errorhandler(ValueError)
    def _bad_request(exc):
        return jsonify({"error": str(exc)}), 400

    return app


def main() -> None:
    app = create_app()
    app.run(host="0.0.0.0", port=5000, debug=False)


if __name__ == "__main__":
    main()
