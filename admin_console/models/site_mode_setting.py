"""
Site mode settings (maintenance / coming soon) model

Intent:
- One row per persisted mode. `none` is the synthetic baseline and never gets a row.
- The resolver rebuilds the full configuration from these rows + compiled-in defaults on
  every read, so there is no single "configuration" blob.

Storage notes:
- SEO text columns hold either a plain string or a JSON object {"en": ..., "es": ...}.
- coming_soon_settings / social_links are JSON so the shape can evolve without migrations.
"""

from sqlalchemy import Column, String, Text, Boolean, Integer, DateTime, func

from admin_console.core.database import Base, JSON


class SiteModeSetting(Base):
    """Per-mode site visibility settings"""

    __tablename__ = "site_mode_settings"

    mode = Column(String(20), primary_key=True)

    meta_title = Column(Text, nullable=True)
    meta_description = Column(Text, nullable=True)
    meta_keywords = Column(Text, nullable=True)
    og_title = Column(Text, nullable=True)
    og_description = Column(Text, nullable=True)
    og_image = Column(Text, nullable=True)
    twitter_title = Column(Text, nullable=True)
    twitter_description = Column(Text, nullable=True)
    twitter_image = Column(Text, nullable=True)

    background_image_url = Column(String(500), nullable=True)
    background_overlay_opacity = Column(Integer, nullable=True)
    social_links = Column(JSON(), nullable=True)

    mailchimp_enabled = Column(Boolean, nullable=False, default=False)
    mailchimp_audience_id = Column(String(300), nullable=True)
    mailchimp_server_prefix = Column(String(300), nullable=True)

    coming_soon_settings = Column(JSON(), nullable=True)

    is_active = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    def __repr__(self) -> str:
        return f"<SiteModeSetting(mode={self.mode}, is_active={self.is_active})>"
