from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Numeric, String, Text, func
from .base import Base


class FlashDeal(Base):
    __tablename__ = "flash_deal"

    id = Column(String(36), primary_key=True)
    product_id = Column(String(36), ForeignKey("product.id", ondelete="CASCADE"), nullable=False)
    title = Column(String(255), nullable=True)
    description = Column(Text, nullable=True)
    discount_percentage = Column(Numeric(5, 2), nullable=False)
    start_time = Column(DateTime, nullable=False)
    end_time = Column(DateTime, nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, nullable=False, server_default=func.now())
