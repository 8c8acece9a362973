from sqlalchemy import Column, DateTime, Integer, Numeric, String, Text, func
from .base import Base


ORDER_STATUSES = ("pending", "processing", "completed", "cancelled", "refunded")
PAYMENT_PROOF_STATUSES = ("pending", "approved", "verified", "rejected")


class Order(Base):
    """One row per purchased line item; there is no basket key."""
    __tablename__ = "orders"

    id = Column(String(36), primary_key=True)
    user_id = Column(String(128), nullable=False, index=True)
    product_id = Column(String(36), nullable=False)
    product_title = Column(String(255), nullable=False)
    product_type = Column(String(32), nullable=False)
    currency = Column(String(3), nullable=False)
    quantity = Column(Integer, nullable=False)
    unit_price = Column(Numeric(12, 2), nullable=False)
    original_unit_price = Column(Numeric(12, 2), nullable=True)
    flash_deal_id = Column(String(36), nullable=True)
    amount = Column(Numeric(12, 2), nullable=False)

    # denormalized selection snapshot
    edition_id = Column(String(36), nullable=True)
    edition_name = Column(String(255), nullable=True)
    platform_id = Column(String(36), nullable=True)
    platform_name = Column(String(128), nullable=True)
    plan_id = Column(String(36), nullable=True)
    plan_name = Column(String(255), nullable=True)
    duration_id = Column(String(36), nullable=True)
    duration_label = Column(String(128), nullable=True)
    duration_months = Column(Integer, nullable=True)
    denomination_id = Column(String(36), nullable=True)
    denomination_value = Column(Numeric(12, 2), nullable=True)
    license_type_id = Column(String(36), nullable=True)
    license_type_name = Column(String(255), nullable=True)
    license_duration_id = Column(String(36), nullable=True)
    license_duration_label = Column(String(128), nullable=True)

    status = Column(String(32), nullable=False, default="pending")
    payment_method = Column(String(64), nullable=True)
    payment_proof_url = Column(String(512), nullable=True)
    payment_proof_status = Column(String(32), nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, nullable=False, server_default=func.now())
    updated_at = Column(DateTime, nullable=False, server_default=func.now())
