"""
Model package
"""

from .site_mode_setting import SiteModeSetting
from .app_setting import AppSetting
from .phase_level import PhaseLevelRow

__all__ = [
    "SiteModeSetting",
    "AppSetting",
    "PhaseLevelRow",
]
