"""
Phase level model (one row per reward/commission phase)
"""

from sqlalchemy import Column, String, Boolean, Integer, Float, DateTime, func
import uuid

from admin_console.core.database import Base, UUID


class PhaseLevelRow(Base):
    """Phase configuration row; `level` is the upsert key."""

    __tablename__ = "phase_levels"

    id = Column(UUID(), primary_key=True, default=uuid.uuid4)
    level = Column(Integer, nullable=False, unique=True, index=True)
    name = Column(String(100), nullable=False)
    name_en = Column(String(100), nullable=True)
    name_es = Column(String(100), nullable=True)
    commission_rate = Column(Float, nullable=False, default=0)
    subscription_discount_rate = Column(Float, nullable=True)
    credit_cents = Column(Integer, nullable=False, default=0)
    free_product_value_cents = Column(Integer, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    display_order = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    def __repr__(self) -> str:
        return f"<PhaseLevelRow(level={self.level}, name={self.name})>"
