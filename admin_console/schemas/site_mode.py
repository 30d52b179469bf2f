"""
Site mode (none / maintenance / coming soon) Pydantic schemas

Intent:
- Describe every configuration entity, its default, and its normalization.
- Read models are lenient: every field goes through a total normalizer (`mode="before"`),
  so a stored or submitted value can never fail validation because of a cosmetic field.
- Write input (UpdateSiteModeConfigurationInput) is strict only about structure:
  the mode enum and the object/list shapes. Violations are rejected before any write.

camelCase field names are kept as-is for compatibility with the admin frontend.
"""

from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .normalizers import (
    DEFAULT_GRADIENT_COLORS,
    DEFAULT_OVERLAY_OPACITY,
    LocalizedText,
    SeoText,
    clamp_opacity,
    clean_nullable_text,
    clean_url_like,
    coerce_bool,
    coerce_choice,
    collapse_optional_seo_text,
    collapse_seo_text,
    normalize_countdown_value,
    normalize_gradient_colors,
    normalize_iso_datetime,
    normalize_social_links,
)


SiteModeType = Literal["none", "maintenance", "coming_soon"]
SocialPlatform = Literal["facebook", "instagram", "youtube", "x", "whatsapp"]

SITE_MODE_OPTIONS = ("none", "maintenance", "coming_soon")
# `none` is the synthetic baseline and has no row.
PERSISTED_SITE_MODE_OPTIONS = ("maintenance", "coming_soon")

_COUNTDOWN_STYLES = ("numeric", "date")
_BACKGROUND_MODES = ("image", "gradient")


def _object_or_empty(value: Any) -> Any:
    """Nested blocks: anything that is not an object falls back to the block defaults."""
    if isinstance(value, (dict, BaseModel)):
        return value
    return {}


class SiteModeSeo(BaseModel):
    """SEO copy. Each text is a plain string or {en, es}."""

    model_config = ConfigDict(extra="ignore")

    title: SeoText = ""
    description: SeoText = ""
    keywords: SeoText = ""
    ogTitle: Optional[SeoText] = None
    ogDescription: Optional[SeoText] = None
    ogImage: Optional[SeoText] = None
    twitterTitle: Optional[SeoText] = None
    twitterDescription: Optional[SeoText] = None
    twitterImage: Optional[SeoText] = None

    @field_validator("title", "description", "keywords", mode="before")
    @classmethod
    def collapse_required(cls, v):
        return collapse_seo_text(v)

    @field_validator(
        "ogTitle", "ogDescription", "ogImage", "twitterTitle", "twitterDescription", "twitterImage",
        mode="before",
    )
    @classmethod
    def collapse_optional(cls, v):
        return collapse_optional_seo_text(v)


class SiteModeSocialLink(BaseModel):
    model_config = ConfigDict(extra="ignore")

    platform: SocialPlatform
    url: str


class SiteModeAppearance(BaseModel):
    """Background + overlay + social links shown on the maintenance/coming-soon pages."""

    model_config = ConfigDict(extra="ignore")

    backgroundImageUrl: Optional[str] = None
    backgroundOverlayOpacity: int = DEFAULT_OVERLAY_OPACITY
    socialLinks: List[SiteModeSocialLink] = Field(default_factory=list)

    @field_validator("backgroundImageUrl", mode="before")
    @classmethod
    def sanitize_background(cls, v):
        return clean_url_like(v)

    @field_validator("backgroundOverlayOpacity", mode="before")
    @classmethod
    def clamp_overlay(cls, v):
        return clamp_opacity(v)

    @field_validator("socialLinks", mode="before")
    @classmethod
    def sanitize_links(cls, v):
        return normalize_social_links(v)


class SiteModeComingSoonCountdown(BaseModel):
    model_config = ConfigDict(extra="ignore")

    isEnabled: bool = False
    style: Literal["numeric", "date"] = "date"
    label: Optional[str] = None
    numericValue: Optional[int] = None
    targetDate: Optional[str] = None

    @field_validator("isEnabled", mode="before")
    @classmethod
    def coerce_enabled(cls, v):
        return coerce_bool(v)

    @field_validator("style", mode="before")
    @classmethod
    def coerce_style(cls, v):
        return coerce_choice(v, _COUNTDOWN_STYLES, "date")

    @field_validator("label", mode="before")
    @classmethod
    def sanitize_label(cls, v):
        return clean_nullable_text(v)

    @field_validator("numericValue", mode="before")
    @classmethod
    def bound_numeric(cls, v):
        return normalize_countdown_value(v)

    @field_validator("targetDate", mode="before")
    @classmethod
    def parse_target(cls, v):
        return normalize_iso_datetime(v)


class SiteModeComingSoonBranding(BaseModel):
    model_config = ConfigDict(extra="ignore")

    logoUrl: Optional[str] = None
    backgroundMode: Literal["image", "gradient"] = "gradient"
    backgroundImageUrl: Optional[str] = None
    backgroundGradientColors: List[str] = Field(default_factory=lambda: list(DEFAULT_GRADIENT_COLORS))

    @field_validator("logoUrl", "backgroundImageUrl", mode="before")
    @classmethod
    def sanitize_urls(cls, v):
        return clean_url_like(v)

    @field_validator("backgroundMode", mode="before")
    @classmethod
    def coerce_background_mode(cls, v):
        return coerce_choice(v, _BACKGROUND_MODES, "gradient")

    @field_validator("backgroundGradientColors", mode="before")
    @classmethod
    def sanitize_gradient(cls, v):
        return normalize_gradient_colors(v)


class SiteModeComingSoonSettings(BaseModel):
    model_config = ConfigDict(extra="ignore")

    headline: Optional[str] = None
    subheadline: Optional[str] = None
    countdown: SiteModeComingSoonCountdown = Field(default_factory=SiteModeComingSoonCountdown)
    branding: SiteModeComingSoonBranding = Field(default_factory=SiteModeComingSoonBranding)

    @field_validator("headline", "subheadline", mode="before")
    @classmethod
    def sanitize_headlines(cls, v):
        return clean_nullable_text(v)

    @field_validator("countdown", "branding", mode="before")
    @classmethod
    def nested_or_default(cls, v):
        return _object_or_empty(v)


class SiteModeSettings(BaseModel):
    """Fully-resolved settings for one mode."""

    model_config = ConfigDict(extra="ignore")

    mode: SiteModeType
    isActive: bool = False
    seo: SiteModeSeo = Field(default_factory=SiteModeSeo)
    appearance: SiteModeAppearance = Field(default_factory=SiteModeAppearance)
    mailchimpEnabled: bool = False
    mailchimpAudienceId: Optional[str] = None
    mailchimpServerPrefix: Optional[str] = None
    comingSoon: SiteModeComingSoonSettings = Field(default_factory=SiteModeComingSoonSettings)
    updatedAt: Optional[str] = None

    @field_validator("isActive", "mailchimpEnabled", mode="before")
    @classmethod
    def coerce_flags(cls, v):
        return coerce_bool(v)

    @field_validator("mailchimpAudienceId", "mailchimpServerPrefix", mode="before")
    @classmethod
    def sanitize_mailchimp(cls, v):
        return clean_nullable_text(v)

    @field_validator("seo", "appearance", "comingSoon", mode="before")
    @classmethod
    def nested_or_default(cls, v):
        return _object_or_empty(v)

    @field_validator("updatedAt", mode="before")
    @classmethod
    def parse_updated_at(cls, v):
        return normalize_iso_datetime(v)

    @model_validator(mode="after")
    def fill_blank_copy(self):
        # A blank title/description falls back to the mode's default copy.
        defaults = default_seo_for(self.mode)
        updates = {}
        if self.seo.title == "":
            updates["title"] = defaults.title
        if self.seo.description == "":
            updates["description"] = defaults.description
        if updates:
            self.seo = self.seo.model_copy(update=updates)
        return self


class SiteModeConfiguration(BaseModel):
    """Resolved view: one entry per mode, exactly one active."""

    activeMode: SiteModeType = "none"
    modes: List[SiteModeSettings] = Field(default_factory=list)

    def get_mode(self, mode: str) -> Optional[SiteModeSettings]:
        for item in self.modes:
            if item.mode == mode:
                return item
        return None


# ---------------------------------------------------------------------------
# write input
# ---------------------------------------------------------------------------

class SiteModeUpsertInput(BaseModel):
    """
    Partial settings for one mode.

    Nested blocks are plain objects; their fields are normalized leniently after
    being merged over the mode defaults. `isActive` is accepted but ignored:
    the top-level activeMode decides.
    """

    model_config = ConfigDict(extra="ignore")

    mode: SiteModeType
    isActive: Optional[bool] = None
    seo: Optional[Dict[str, Any]] = None
    appearance: Optional[Dict[str, Any]] = None
    mailchimpEnabled: Optional[Any] = None
    mailchimpAudienceId: Optional[Any] = None
    mailchimpServerPrefix: Optional[Any] = None
    comingSoon: Optional[Dict[str, Any]] = None

    def partial(self) -> Dict[str, Any]:
        """Submitted fields only (explicit nulls kept; they fall back to defaults on merge)."""
        return self.model_dump(exclude_unset=True, exclude={"mode", "isActive"})


class UpdateSiteModeConfigurationInput(BaseModel):
    model_config = ConfigDict(extra="ignore")

    activeMode: SiteModeType
    modes: List[SiteModeUpsertInput] = Field(default_factory=list)


class DeactivateSiteModeInput(BaseModel):
    mode: SiteModeType


# ---------------------------------------------------------------------------
# defaults
# ---------------------------------------------------------------------------

_DEFAULT_COPY = {
    "none": (
        "PūrVita Network",
        "Discover wellness products, plans, and resources tailored to your journey.",
    ),
    "maintenance": (
        "Site under maintenance",
        "We are currently performing scheduled maintenance. Please check back shortly.",
    ),
    "coming_soon": (
        "We are launching soon",
        "A new experience is coming soon. Leave your email to be the first to know when we launch.",
    ),
}


def default_seo_for(mode: str) -> SiteModeSeo:
    """Mode-specific default SEO copy (unknown modes use the coming-soon copy)."""
    title, description = _DEFAULT_COPY.get(mode, _DEFAULT_COPY["coming_soon"])
    return SiteModeSeo(title=title, description=description, keywords="")


def default_appearance() -> SiteModeAppearance:
    return SiteModeAppearance()


def default_coming_soon() -> SiteModeComingSoonSettings:
    return SiteModeComingSoonSettings()


def default_mode_settings(mode: str, is_active: bool = False) -> SiteModeSettings:
    return SiteModeSettings(
        mode=mode,
        isActive=is_active,
        seo=default_seo_for(mode),
        appearance=default_appearance(),
        comingSoon=default_coming_soon(),
    )


def default_configuration() -> SiteModeConfiguration:
    """Pure in-memory configuration used when the store cannot be read."""
    return SiteModeConfiguration(
        activeMode="none",
        modes=[default_mode_settings(mode, is_active=(mode == "none")) for mode in SITE_MODE_OPTIONS],
    )


__all__ = [
    "LocalizedText",
    "SiteModeType",
    "SITE_MODE_OPTIONS",
    "PERSISTED_SITE_MODE_OPTIONS",
    "SiteModeSeo",
    "SiteModeSocialLink",
    "SiteModeAppearance",
    "SiteModeComingSoonCountdown",
    "SiteModeComingSoonBranding",
    "SiteModeComingSoonSettings",
    "SiteModeSettings",
    "SiteModeConfiguration",
    "SiteModeUpsertInput",
    "UpdateSiteModeConfigurationInput",
    "DeactivateSiteModeInput",
    "default_seo_for",
    "default_appearance",
    "default_coming_soon",
    "default_mode_settings",
    "default_configuration",
]
