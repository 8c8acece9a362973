from datetime import datetime
from decimal import Decimal

import pytest

from storefront.config import AppConfig
from storefront.db.session import make_session_factory
from storefront.models import (
    GameEdition,
    GiftCardDenomination,
    LicenseDuration,
    LicenseType,
    Platform,
    Product,
    SubscriptionDuration,
    SubscriptionPlan,
)
from storefront.services import CartService, CatalogService, FlashDealService, OrderService

NOW = datetime(2026, 3, 1, 12, 0, 0)


@pytest.fixture
def session_factory():
    factory = make_session_factory("sqlite:///:memory:")
    yield factory
    factory.engine.dispose()


@pytest.fixture
def seeded(session_factory):
    """One product of each type; ids are stable for assertions."""
    with session_factory() as s:
        s.add_all(
            [
                Product(
                    id="game-1",
                    slug="elden-ring",
                    title="Elden Ring",
                    product_type="game",
                    base_price=Decimal("4000"),
                    currency="NPR",
                    editions=[
                        GameEdition(id="ed-std", name="Standard", price=Decimal("5000"), sort_order=0),
                        GameEdition(id="ed-dlx", name="Deluxe", price=Decimal("7500"), is_default=True, sort_order=1),
                    ],
                    platforms=[
                        Platform(id="pf-pc", name="PC", slug="pc", price_modifier=Decimal("500"), sort_order=0),
                        Platform(id="pf-ps5", name="PS5", slug="ps5", sort_order=1),
                    ],
                ),
                Product(
                    id="gift-1",
                    slug="steam-wallet",
                    title="Steam Wallet",
                    product_type="giftcard",
                    base_price=None,
                    currency="NPR",
                    denominations=[
                        GiftCardDenomination(
                            id="dn-100", face_value=Decimal("100"), price=Decimal("95"), currency="USD", sort_order=0
                        ),
                        GiftCardDenomination(
                            id="dn-50",
                            face_value=Decimal("50"),
                            price=Decimal("49"),
                            currency="USD",
                            is_available=False,
                            sort_order=1,
                        ),
                    ],
                ),
                Product(
                    id="sub-1",
                    slug="netflix",
                    title="Netflix",
                    product_type="subscription",
                    base_price=Decimal("300"),
                    currency="NPR",
                    plans=[
                        SubscriptionPlan(
                            id="pl-basic",
                            name="Basic",
                            sort_order=0,
                            durations=[
                                SubscriptionDuration(id="du-1m", months=1, label="1 Month", price=Decimal("450"), sort_order=0),
                                SubscriptionDuration(id="du-6m", months=6, label="6 Months", price=Decimal("2400"), sort_order=1),
                            ],
                        ),
                        SubscriptionPlan(
                            id="pl-premium",
                            name="Premium",
                            sort_order=1,
                            durations=[
                                SubscriptionDuration(id="du-p1m", months=1, label="1 Month", price=Decimal("900"), sort_order=0),
                            ],
                        ),
                    ],
                ),
                Product(
                    id="soft-1",
                    slug="office",
                    title="Office Suite",
                    product_type="software",
                    base_price=Decimal("1000"),
                    currency="NPR",
                    license_types=[
                        LicenseType(id="lt-pro", name="Professional", price=Decimal("1500"), sort_order=0),
                    ],
                    license_durations=[
                        LicenseDuration(
                            id="ld-2y",
                            label="2 Years",
                            price_multiplier=Decimal("2.0"),
                            discount_percent=Decimal("10"),
                            sort_order=0,
                        ),
                    ],
                ),
            ]
        )
    return session_factory


@pytest.fixture
def flash_deals(seeded):
    return FlashDealService(seeded)


@pytest.fixture
def catalog(seeded, flash_deals):
    return CatalogService(seeded, flash_deals=flash_deals)


@pytest.fixture
def cart(seeded, catalog, flash_deals):
    return CartService(seeded, catalog=catalog, flash_deals=flash_deals)


@pytest.fixture
def orders(seeded):
    return OrderService(seeded)


@pytest.fixture
def app_config():
    return AppConfig(
        database_url="sqlite:///:memory:",
        secret_key="test",
        log_level="WARNING",
        currency="NPR",
        admin_username="admin",
        admin_password="secret",
    )
