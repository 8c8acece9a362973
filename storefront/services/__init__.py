"""Storefront services: pure pricing / grouping core plus DB-backed services."""

from .cart_service import CartService
from .catalog_service import CatalogService
from .flash_deal_service import FlashDealService
from .order_service import OrderService

__all__ = [
    "CartService",
    "CatalogService",
    "FlashDealService",
    "OrderService",
]
