"""
Catalog tables: a product plus the variant rows of each product type.

Only the collections matching ``product_type`` are meaningful; the others
stay empty.
"""
from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, Numeric, String, Text, func
from sqlalchemy.orm import relationship
from .base import Base


PRODUCT_TYPES = ("game", "giftcard", "subscription", "software")


def _ordered(name):
    return relationship(
        name,
        order_by=f"{name}.sort_order",
        cascade="all, delete-orphan",
    )


class Product(Base):
    __tablename__ = "product"

    id = Column(String(36), primary_key=True)
    slug = Column(String(255), nullable=False, unique=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    product_type = Column(String(32), nullable=False)
    base_price = Column(Numeric(12, 2), nullable=True)
    original_price = Column(Numeric(12, 2), nullable=True)
    currency = Column(String(3), nullable=False)
    image_url = Column(String(512), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    sort_order = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, nullable=False, server_default=func.now())
    updated_at = Column(DateTime, nullable=False, server_default=func.now())

    editions = _ordered("GameEdition")
    platforms = _ordered("Platform")
    denominations = _ordered("GiftCardDenomination")
    plans = _ordered("SubscriptionPlan")
    license_types = _ordered("LicenseType")
    license_durations = _ordered("LicenseDuration")


class GameEdition(Base):
    __tablename__ = "game_edition"

    id = Column(String(36), primary_key=True)
    product_id = Column(String(36), ForeignKey("product.id", ondelete="CASCADE"), nullable=False)
    name = Column(String(255), nullable=False)
    price = Column(Numeric(12, 2), nullable=True)
    original_price = Column(Numeric(12, 2), nullable=True)
    is_default = Column(Boolean, nullable=False, default=False)
    is_available = Column(Boolean, nullable=False, default=True)
    sort_order = Column(Integer, nullable=False, default=0)


class Platform(Base):
    __tablename__ = "platform"

    id = Column(String(36), primary_key=True)
    product_id = Column(String(36), ForeignKey("product.id", ondelete="CASCADE"), nullable=False)
    name = Column(String(128), nullable=False)
    slug = Column(String(128), nullable=False)
    price_modifier = Column(Numeric(12, 2), nullable=False, default=0)  # stored, not applied
    is_available = Column(Boolean, nullable=False, default=True)
    sort_order = Column(Integer, nullable=False, default=0)


class GiftCardDenomination(Base):
    __tablename__ = "giftcard_denomination"

    id = Column(String(36), primary_key=True)
    product_id = Column(String(36), ForeignKey("product.id", ondelete="CASCADE"), nullable=False)
    face_value = Column(Numeric(12, 2), nullable=False)  # redeemable amount
    price = Column(Numeric(12, 2), nullable=True)  # amount charged
    currency = Column(String(3), nullable=False)
    is_popular = Column(Boolean, nullable=False, default=False)
    is_available = Column(Boolean, nullable=False, default=True)
    sort_order = Column(Integer, nullable=False, default=0)


class SubscriptionPlan(Base):
    """A subscription tier; the price lives on its durations."""
    __tablename__ = "subscription_plan"

    id = Column(String(36), primary_key=True)
    product_id = Column(String(36), ForeignKey("product.id", ondelete="CASCADE"), nullable=False)
    name = Column(String(255), nullable=False)
    is_popular = Column(Boolean, nullable=False, default=False)
    is_available = Column(Boolean, nullable=False, default=True)
    sort_order = Column(Integer, nullable=False, default=0)

    durations = _ordered("SubscriptionDuration")


class SubscriptionDuration(Base):
    __tablename__ = "subscription_duration"

    id = Column(String(36), primary_key=True)
    plan_id = Column(String(36), ForeignKey("subscription_plan.id", ondelete="CASCADE"), nullable=False)
    months = Column(Integer, nullable=False)
    label = Column(String(128), nullable=False)
    price = Column(Numeric(12, 2), nullable=True)
    is_popular = Column(Boolean, nullable=False, default=False)
    is_available = Column(Boolean, nullable=False, default=True)
    sort_order = Column(Integer, nullable=False, default=0)


class LicenseType(Base):
    __tablename__ = "license_type"

    id = Column(String(36), primary_key=True)
    product_id = Column(String(36), ForeignKey("product.id", ondelete="CASCADE"), nullable=False)
    name = Column(String(255), nullable=False)
    price = Column(Numeric(12, 2), nullable=True)
    is_popular = Column(Boolean, nullable=False, default=False)
    is_available = Column(Boolean, nullable=False, default=True)
    sort_order = Column(Integer, nullable=False, default=0)


class LicenseDuration(Base):
    """Product-level license term; multiplies the license type price."""
    __tablename__ = "license_duration"

    id = Column(String(36), primary_key=True)
    product_id = Column(String(36), ForeignKey("product.id", ondelete="CASCADE"), nullable=False)
    label = Column(String(128), nullable=False)
    price_multiplier = Column(Numeric(6, 3), nullable=False, default=1)
    discount_percent = Column(Numeric(5, 2), nullable=False, default=0)  # informational
    is_available = Column(Boolean, nullable=False, default=True)
    sort_order = Column(Integer, nullable=False, default=0)
