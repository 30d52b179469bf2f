"""
Global app settings (singleton row, id='global')
"""

from sqlalchemy import Column, String, Boolean, Integer, Float, DateTime, func

from admin_console.core.database import Base, JSON


class AppSetting(Base):
    """Platform-wide commission/currency/tree capacity settings"""

    __tablename__ = "app_settings"

    id = Column(String(20), primary_key=True, default="global")
    max_members_per_level = Column(JSON(), nullable=True)
    payout_frequency = Column(String(20), nullable=True)
    currency = Column(String(3), nullable=True)
    currencies = Column(JSON(), nullable=True)
    auto_advance_enabled = Column(Boolean, nullable=True)
    ecommerce_commission_rate = Column(Float, nullable=True)
    team_levels_visible = Column(Integer, nullable=True)
    reward_credit_label_en = Column(String(100), nullable=True)
    reward_credit_label_es = Column(String(100), nullable=True)
    free_product_label_en = Column(String(100), nullable=True)
    free_product_label_es = Column(String(100), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    def __repr__(self) -> str:
        return f"<AppSetting(id={self.id}, currency={self.currency})>"
