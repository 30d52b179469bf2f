"""
Site mode resolver

Read path:
- fetch every persisted per-mode row (zero or more, possibly partial)
- deep-merge each over the mode defaults (non-null stored values win, nulls fall back,
  lists are replaced wholesale), normalize through the schema layer
- recompute activeMode from the merged flags; every entry's isActive is then derived
  from activeMode, never taken from storage as-is

Write path:
- validate the structure of the input (mode enum, object shapes) before any write
- merge each submitted partial over the mode defaults, normalize, write one row per
  persistable mode in a single upsert, then resolve again from what was written

Running update_configuration(project_for_update(get_configuration())) is a no-op
(apart from updatedAt).
"""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional, Sequence, Union
import copy
import json
import logging

from pydantic import ValidationError

from admin_console.core.errors import ConfigurationValidationError
from admin_console.schemas.normalizers import (
    SOCIAL_PLATFORM_LABELS,
    coerce_bool,
    parse_stored_seo_text,
    serialize_seo_text,
)
from admin_console.schemas.site_mode import (
    PERSISTED_SITE_MODE_OPTIONS,
    SITE_MODE_OPTIONS,
    DeactivateSiteModeInput,
    SiteModeConfiguration,
    SiteModeSettings,
    UpdateSiteModeConfigurationInput,
    default_mode_settings,
)
from admin_console.services.row_store import Row, RowStore

logger = logging.getLogger(__name__)

SITE_MODE_TABLE = "site_mode_settings"
SITE_MODE_CONFLICT_KEY = "mode"

_SEO_COLUMNS = {
    "title": "meta_title",
    "description": "meta_description",
    "keywords": "meta_keywords",
    "ogTitle": "og_title",
    "ogDescription": "og_description",
    "ogImage": "og_image",
    "twitterTitle": "twitter_title",
    "twitterDescription": "twitter_description",
    "twitterImage": "twitter_image",
}


def deep_merge(defaults: Mapping[str, Any], override: Any) -> Dict[str, Any]:
    """
    Field-by-field merge over `defaults`.

    - missing / None in override -> default
    - both objects -> merged recursively
    - anything else (incl. lists) -> override value, wholesale
    Keys unknown to the defaults are dropped.
    """
    if not isinstance(override, Mapping):
        return copy.deepcopy(dict(defaults))
    out: Dict[str, Any] = {}
    for key, default_value in defaults.items():
        value = override.get(key)
        if value is None:
            out[key] = copy.deepcopy(default_value)
        elif isinstance(default_value, Mapping) and isinstance(value, Mapping):
            out[key] = deep_merge(default_value, value)
        else:
            out[key] = copy.deepcopy(value)
    return out


def build_mode_settings(
    mode: str,
    partial: Optional[Mapping[str, Any]],
    *,
    is_active: bool,
    updated_at: Any = None,
) -> SiteModeSettings:
    """Merge a partial over the mode defaults and normalize every field."""
    defaults = default_mode_settings(mode).model_dump(exclude={"updatedAt"})
    merged = deep_merge(defaults, partial or {})
    merged["mode"] = mode
    merged["isActive"] = is_active
    merged["updatedAt"] = updated_at
    return SiteModeSettings.model_validate(merged)


def _json_or_none(value: Any) -> Any:
    if isinstance(value, str):
        if not value.strip():
            return None
        try:
            return json.loads(value)
        except ValueError:
            logger.warning("[site-mode] unreadable JSON column ignored")
            return None
    return value


def row_to_partial(row: Row) -> Dict[str, Any]:
    """Stored row (snake_case columns) -> partial settings (may contain nulls)."""
    return {
        "mode": row.get("mode"),
        "isActive": coerce_bool(row.get("is_active")),
        "seo": {field: parse_stored_seo_text(row.get(column)) for field, column in _SEO_COLUMNS.items()},
        "appearance": {
            "backgroundImageUrl": row.get("background_image_url"),
            "backgroundOverlayOpacity": row.get("background_overlay_opacity"),
            "socialLinks": _json_or_none(row.get("social_links")),
        },
        "mailchimpEnabled": row.get("mailchimp_enabled"),
        "mailchimpAudienceId": row.get("mailchimp_audience_id"),
        "mailchimpServerPrefix": row.get("mailchimp_server_prefix"),
        "comingSoon": _json_or_none(row.get("coming_soon_settings")),
        "updatedAt": row.get("updated_at"),
    }


def settings_to_row(settings: SiteModeSettings) -> Row:
    """Normalized settings -> row payload for the upsert (updated_at is store-assigned)."""
    row: Row = {"mode": settings.mode}
    for field, column in _SEO_COLUMNS.items():
        row[column] = serialize_seo_text(getattr(settings.seo, field))
    appearance = settings.appearance
    row.update({
        "background_image_url": appearance.backgroundImageUrl,
        "background_overlay_opacity": appearance.backgroundOverlayOpacity,
        "social_links": [
            {"platform": link.platform, "label": SOCIAL_PLATFORM_LABELS[link.platform], "url": link.url}
            for link in appearance.socialLinks
        ],
        "mailchimp_enabled": settings.mailchimpEnabled,
        "mailchimp_audience_id": settings.mailchimpAudienceId,
        "mailchimp_server_prefix": settings.mailchimpServerPrefix,
        "coming_soon_settings": settings.comingSoon.model_dump(mode="json"),
        "is_active": settings.isActive,
    })
    return row


def resolve_configuration(rows: Sequence[Row]) -> SiteModeConfiguration:
    """Persisted rows -> complete configuration (one entry per mode, exactly one active)."""
    partials: Dict[str, Dict[str, Any]] = {}
    for row in rows or []:
        mode = row.get("mode")
        if mode not in PERSISTED_SITE_MODE_OPTIONS:
            logger.warning(f"[site-mode] ignoring stored row with mode={mode!r}")
            continue
        if mode in partials:
            continue
        partials[mode] = row_to_partial(row)

    merged: List[SiteModeSettings] = []
    for mode in SITE_MODE_OPTIONS:
        partial = partials.get(mode)
        if partial is None:
            merged.append(default_mode_settings(mode))
            continue
        merged.append(
            build_mode_settings(
                mode,
                partial,
                is_active=bool(partial.get("isActive")),
                updated_at=partial.get("updatedAt"),
            )
        )

    active_mode = next((item.mode for item in merged if item.isActive), "none")
    for item in merged:
        item.isActive = item.mode == active_mode

    return SiteModeConfiguration(activeMode=active_mode, modes=merged)


def project_for_update(configuration: SiteModeConfiguration) -> Dict[str, Any]:
    """Read configuration -> update input (drops isActive/updatedAt and the `none` entry)."""
    return {
        "activeMode": configuration.activeMode,
        "modes": [
            item.model_dump(mode="json", exclude={"isActive", "updatedAt"})
            for item in configuration.modes
            if item.mode in PERSISTED_SITE_MODE_OPTIONS
        ],
    }


def parse_update_input(
    payload: Union[UpdateSiteModeConfigurationInput, Mapping[str, Any]],
) -> UpdateSiteModeConfigurationInput:
    if isinstance(payload, UpdateSiteModeConfigurationInput):
        return payload
    try:
        return UpdateSiteModeConfigurationInput.model_validate(payload)
    except ValidationError as e:
        raise ConfigurationValidationError.from_pydantic(e, "Invalid site mode configuration") from e


class SiteModeService:
    """getConfiguration / updateConfiguration / deactivate over a RowStore."""

    def __init__(self, store: RowStore):
        self.store = store

    async def get_configuration(self) -> SiteModeConfiguration:
        rows = await self.store.fetch_all(SITE_MODE_TABLE)
        return resolve_configuration(rows)

    async def update_configuration(
        self,
        payload: Union[UpdateSiteModeConfigurationInput, Mapping[str, Any]],
    ) -> SiteModeConfiguration:
        data = parse_update_input(payload)

        rows: List[Row] = []
        for mode in PERSISTED_SITE_MODE_OPTIONS:
            provided = next((item for item in data.modes if item.mode == mode), None)
            settings = build_mode_settings(
                mode,
                provided.partial() if provided is not None else {},
                is_active=data.activeMode == mode,
            )
            rows.append(settings_to_row(settings))

        saved = await self.store.upsert_many(SITE_MODE_TABLE, rows, SITE_MODE_CONFLICT_KEY)
        logger.info(f"[site-mode] configuration saved (activeMode={data.activeMode})")
        return resolve_configuration(saved)

    async def deactivate(self, mode: str) -> SiteModeConfiguration:
        """Clear every active flag (equivalent to activeMode = none)."""
        try:
            DeactivateSiteModeInput(mode=mode)
        except ValidationError as e:
            raise ConfigurationValidationError.from_pydantic(e, "Invalid site mode") from e

        current = await self.get_configuration()
        rows = [
            settings_to_row(item.model_copy(update={"isActive": False}))
            for item in current.modes
            if item.mode in PERSISTED_SITE_MODE_OPTIONS
        ]
        saved = await self.store.upsert_many(SITE_MODE_TABLE, rows, SITE_MODE_CONFLICT_KEY)
        logger.info(f"[site-mode] deactivated (requested={mode}, previous={current.activeMode})")
        return resolve_configuration(saved)
