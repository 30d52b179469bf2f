"""
Unit tests for the site mode schemas and their defaults.
"""

import pytest
from pydantic import ValidationError

from admin_console.schemas.normalizers import DEFAULT_GRADIENT_COLORS, LocalizedText
from admin_console.schemas.site_mode import (
    SITE_MODE_OPTIONS,
    SiteModeComingSoonSettings,
    SiteModeSettings,
    SiteModeUpsertInput,
    UpdateSiteModeConfigurationInput,
    default_configuration,
    default_mode_settings,
)


class TestDefaults:
    def test_default_configuration_has_every_mode_and_none_active(self):
        config = default_configuration()
        assert config.activeMode == "none"
        assert [m.mode for m in config.modes] == list(SITE_MODE_OPTIONS)
        assert [m.isActive for m in config.modes] == [True, False, False]

    @pytest.mark.parametrize(
        "mode, title",
        [
            ("none", "PūrVita Network"),
            ("maintenance", "Site under maintenance"),
            ("coming_soon", "We are launching soon"),
        ],
    )
    def test_default_copy_per_mode(self, mode, title):
        settings = default_mode_settings(mode)
        assert settings.seo.title == title
        assert settings.seo.description
        assert settings.seo.keywords == ""

    def test_default_appearance_and_coming_soon(self):
        settings = default_mode_settings("coming_soon")
        assert settings.appearance.backgroundOverlayOpacity == 90
        assert settings.appearance.socialLinks == []
        assert settings.comingSoon.countdown.isEnabled is False
        assert settings.comingSoon.countdown.style == "date"
        assert settings.comingSoon.branding.backgroundMode == "gradient"
        assert settings.comingSoon.branding.backgroundGradientColors == list(DEFAULT_GRADIENT_COLORS)


class TestLenientReadModel:
    """Cosmetic garbage never fails validation."""

    def test_garbage_fields_are_normalized(self):
        settings = SiteModeSettings.model_validate({
            "mode": "coming_soon",
            "isActive": "yes",
            "seo": {"title": {"en": "Launching Soon", "es": "Launching Soon"}, "ogTitle": ""},
            "appearance": {
                "backgroundImageUrl": "not a url",
                "backgroundOverlayOpacity": 150,
                "socialLinks": [{"platform": "ig", "url": "https://instagram.com/x"}],
            },
            "comingSoon": {
                "countdown": {"style": "fancy", "numericValue": "12.7", "targetDate": "garbage"},
                "branding": {"backgroundMode": "video", "backgroundGradientColors": ["#zzz"]},
            },
            "mailchimpEnabled": "0",
        })
        assert settings.isActive is True
        assert settings.seo.title == "Launching Soon"
        assert settings.seo.ogTitle is None
        assert settings.appearance.backgroundImageUrl is None
        assert settings.appearance.backgroundOverlayOpacity == 100
        assert settings.appearance.socialLinks[0].platform == "instagram"
        assert settings.comingSoon.countdown.style == "date"
        assert settings.comingSoon.countdown.numericValue == 12
        assert settings.comingSoon.countdown.targetDate is None
        assert settings.comingSoon.branding.backgroundMode == "gradient"
        assert settings.comingSoon.branding.backgroundGradientColors == [
            DEFAULT_GRADIENT_COLORS[0], DEFAULT_GRADIENT_COLORS[0],
        ]
        assert settings.mailchimpEnabled is False

    def test_blank_title_falls_back_to_mode_copy(self):
        settings = SiteModeSettings.model_validate({"mode": "maintenance", "seo": {"title": "  "}})
        assert settings.seo.title == "Site under maintenance"

    def test_localized_title_kept_as_map(self):
        settings = SiteModeSettings.model_validate({
            "mode": "maintenance",
            "seo": {"title": {"en": "Down", "es": "Caído"}},
        })
        assert settings.seo.title == LocalizedText(en="Down", es="Caído")

    def test_non_object_nested_blocks_use_defaults(self):
        cs = SiteModeComingSoonSettings.model_validate({"countdown": "x", "branding": 3})
        assert cs.countdown.isEnabled is False
        assert cs.branding.backgroundGradientColors == list(DEFAULT_GRADIENT_COLORS)


class TestStrictWriteInput:
    def test_unknown_mode_rejected_with_path(self):
        with pytest.raises(ValidationError) as exc_info:
            UpdateSiteModeConfigurationInput.model_validate({
                "activeMode": "maintenance",
                "modes": [{"mode": "holiday"}],
            })
        locs = [e["loc"] for e in exc_info.value.errors()]
        assert ("modes", 0, "mode") in locs

    def test_unknown_active_mode_rejected(self):
        with pytest.raises(ValidationError):
            UpdateSiteModeConfigurationInput.model_validate({"activeMode": "party", "modes": []})

    def test_non_object_block_rejected(self):
        with pytest.raises(ValidationError):
            SiteModeUpsertInput.model_validate({"mode": "maintenance", "seo": "title"})

    def test_partial_keeps_only_submitted_fields(self):
        item = SiteModeUpsertInput.model_validate({
            "mode": "maintenance",
            "isActive": True,
            "appearance": {"backgroundOverlayOpacity": 20},
        })
        assert item.partial() == {"appearance": {"backgroundOverlayOpacity": 20}}
