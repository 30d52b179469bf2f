"""
Pydantic schema package
"""

from .normalizers import LocalizedText
from .site_mode import (
    SITE_MODE_OPTIONS,
    PERSISTED_SITE_MODE_OPTIONS,
    SiteModeSeo,
    SiteModeSocialLink,
    SiteModeAppearance,
    SiteModeComingSoonCountdown,
    SiteModeComingSoonBranding,
    SiteModeComingSoonSettings,
    SiteModeSettings,
    SiteModeConfiguration,
    SiteModeUpsertInput,
    UpdateSiteModeConfigurationInput,
    DeactivateSiteModeInput,
    default_configuration,
)
from .app_settings import (
    AppSettings,
    AppSettingsUpdate,
    CurrencyVisibility,
    LevelCapacity,
    PhaseLevel,
    PhaseLevelUpsert,
    DEFAULT_APP_SETTINGS,
)

__all__ = [
    "LocalizedText",
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
    "default_configuration",
    "AppSettings",
    "AppSettingsUpdate",
    "CurrencyVisibility",
    "LevelCapacity",
    "PhaseLevel",
    "PhaseLevelUpsert",
    "DEFAULT_APP_SETTINGS",
]
