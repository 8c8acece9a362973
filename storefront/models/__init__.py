from .base import Base
from .cart_item import CartItem
from .flash_deal import FlashDeal
from .order import Order
from .product import (
    GameEdition,
    GiftCardDenomination,
    LicenseDuration,
    LicenseType,
    Platform,
    Product,
    SubscriptionDuration,
    SubscriptionPlan,
)

__all__ = [
    "Base",
    "CartItem",
    "FlashDeal",
    "GameEdition",
    "GiftCardDenomination",
    "LicenseDuration",
    "LicenseType",
    "Order",
    "Platform",
    "Product",
    "SubscriptionDuration",
    "SubscriptionPlan",
]
