"""
App settings / phase level service

Loaders are what the settings cache calls on a miss; the write paths validate,
upsert and then invalidate the cache so the next read sees the new values.
"""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional, Union
import json
import logging

from pydantic import ValidationError

from admin_console.core.errors import ConfigurationValidationError
from admin_console.schemas.app_settings import (
    DEFAULT_APP_SETTINGS,
    AppSettings,
    AppSettingsUpdate,
    PhaseLevel,
    PhaseLevelUpsert,
    currency_mapping_issues,
    legacy_free_product_value_cents,
)
from admin_console.schemas.normalizers import normalize_iso_datetime
from admin_console.services.row_store import Row, RowStore
from admin_console.services.settings_cache import SettingsCache

logger = logging.getLogger(__name__)

APP_SETTINGS_TABLE = "app_settings"
PHASE_LEVELS_TABLE = "phase_levels"
GLOBAL_SETTINGS_ID = "global"


def _json_list(value: Any) -> List[Any]:
    if isinstance(value, str):
        try:
            value = json.loads(value)
        except ValueError:
            return []
    return value if isinstance(value, list) else []


def _capacities_from_row(value: Any) -> Optional[List[Dict[str, int]]]:
    """Stored capacities (maxMembers or legacy max_members) sorted by level; None when unusable."""
    if not isinstance(value, list) and not isinstance(value, str):
        return None
    out: Dict[int, int] = {}
    for entry in _json_list(value):
        if not isinstance(entry, Mapping):
            continue
        try:
            level = int(entry.get("level"))
        except (TypeError, ValueError):
            continue
        if level <= 0 or level in out:
            continue
        raw_max = entry.get("maxMembers", entry.get("max_members"))
        try:
            out[level] = int(raw_max or 0)
        except (TypeError, ValueError):
            out[level] = 0
    return [{"level": level, "maxMembers": out[level]} for level in sorted(out)]


def _currencies_from_row(value: Any) -> List[Dict[str, Any]]:
    out: List[Dict[str, Any]] = []
    for entry in _json_list(value):
        if not isinstance(entry, Mapping):
            continue
        code = entry.get("code", entry.get("currency"))
        if not isinstance(code, str):
            continue
        countries = entry.get("countryCodes", entry.get("countries", entry.get("country_codes")))
        countries = [c for c in countries if isinstance(c, str)] if isinstance(countries, list) else []
        out.append({"code": code, "countryCodes": countries})
    return out


def _or_default(row: Row, column: str, default: Any) -> Any:
    value = row.get(column)
    return default if value is None else value


def row_to_app_settings(row: Optional[Row]) -> AppSettings:
    """Stored singleton row -> AppSettings; defaults for a missing row or missing columns."""
    if not row:
        return DEFAULT_APP_SETTINGS.model_copy(deep=True)

    defaults = DEFAULT_APP_SETTINGS
    capacities = _capacities_from_row(row.get("max_members_per_level"))
    currencies = _currencies_from_row(row.get("currencies"))
    data = {
        "id": row.get("id") or defaults.id,
        "maxMembersPerLevel": capacities if capacities is not None else [
            c.model_dump() for c in defaults.maxMembersPerLevel
        ],
        "payoutFrequency": _or_default(row, "payout_frequency", defaults.payoutFrequency),
        "currency": _or_default(row, "currency", defaults.currency),
        "currencies": currencies or [c.model_dump() for c in defaults.currencies],
        "autoAdvanceEnabled": bool(_or_default(row, "auto_advance_enabled", defaults.autoAdvanceEnabled)),
        "ecommerceCommissionRate": float(_or_default(row, "ecommerce_commission_rate", defaults.ecommerceCommissionRate)),
        "teamLevelsVisible": int(_or_default(row, "team_levels_visible", defaults.teamLevelsVisible)),
        "rewardCreditLabelEn": _or_default(row, "reward_credit_label_en", defaults.rewardCreditLabelEn),
        "rewardCreditLabelEs": _or_default(row, "reward_credit_label_es", defaults.rewardCreditLabelEs),
        "freeProductLabelEn": _or_default(row, "free_product_label_en", defaults.freeProductLabelEn),
        "freeProductLabelEs": _or_default(row, "free_product_label_es", defaults.freeProductLabelEs),
        "createdAt": normalize_iso_datetime(row.get("created_at")),
        "updatedAt": normalize_iso_datetime(row.get("updated_at")),
    }
    return AppSettings.model_validate(data)


def app_settings_to_row(payload: AppSettingsUpdate) -> Row:
    return {
        "id": GLOBAL_SETTINGS_ID,
        "max_members_per_level": [
            {"level": c.level, "max_members": c.maxMembers} for c in payload.maxMembersPerLevel
        ],
        "payout_frequency": payload.payoutFrequency,
        "currency": payload.currency.upper(),
        "currencies": [
            {"code": c.code.upper(), "countryCodes": [country.upper() for country in c.countryCodes]}
            for c in payload.currencies
        ],
        "auto_advance_enabled": payload.autoAdvanceEnabled,
        "ecommerce_commission_rate": payload.ecommerceCommissionRate,
        "team_levels_visible": payload.teamLevelsVisible,
        "reward_credit_label_en": payload.rewardCreditLabelEn,
        "reward_credit_label_es": payload.rewardCreditLabelEs,
        "free_product_label_en": payload.freeProductLabelEn,
        "free_product_label_es": payload.freeProductLabelEs,
    }


def row_to_phase_level(row: Row) -> PhaseLevel:
    level = int(row.get("level"))
    free_product = row.get("free_product_value_cents")
    return PhaseLevel.model_validate({
        "id": str(row["id"]) if row.get("id") is not None else None,
        "level": level,
        "name": row.get("name") or f"Phase {level}",
        "nameEn": row.get("name_en"),
        "nameEs": row.get("name_es"),
        "commissionRate": float(row.get("commission_rate") or 0),
        "subscriptionDiscountRate": float(row.get("subscription_discount_rate") or 0),
        "creditCents": int(row.get("credit_cents") or 0),
        "freeProductValueCents": (
            int(free_product) if free_product is not None else legacy_free_product_value_cents(level)
        ),
        "isActive": bool(_or_default(row, "is_active", True)),
        "displayOrder": int(row.get("display_order") or 0),
        "createdAt": normalize_iso_datetime(row.get("created_at")),
        "updatedAt": normalize_iso_datetime(row.get("updated_at")),
    })


def phase_level_to_row(payload: PhaseLevelUpsert) -> Row:
    return {
        "level": payload.level,
        "name": payload.name,
        "name_en": payload.nameEn,
        "name_es": payload.nameEs,
        "commission_rate": payload.commissionRate,
        "subscription_discount_rate": payload.subscriptionDiscountRate,
        "credit_cents": payload.creditCents,
        "free_product_value_cents": payload.freeProductValueCents,
        "is_active": payload.isActive,
        "display_order": payload.displayOrder,
    }


async def load_app_settings(store: RowStore) -> AppSettings:
    rows = await store.fetch_all(APP_SETTINGS_TABLE)
    row = next((r for r in rows if r.get("id") == GLOBAL_SETTINGS_ID), None)
    if row is None:
        logger.info("[app-settings] no stored settings, using defaults")
        return row_to_app_settings(None)
    try:
        return row_to_app_settings(row)
    except (ValidationError, TypeError, ValueError) as e:
        logger.error(f"[app-settings] stored settings unreadable, using defaults: {e}")
        return row_to_app_settings(None)


async def load_phase_levels(store: RowStore) -> List[PhaseLevel]:
    rows = await store.fetch_all(PHASE_LEVELS_TABLE)
    levels: List[PhaseLevel] = []
    for row in rows:
        try:
            levels.append(row_to_phase_level(row))
        except (ValidationError, TypeError, ValueError) as e:
            logger.error(f"[app-settings] skipping unreadable phase level row (level={row.get('level')!r}): {e}")
    levels.sort(key=lambda p: (p.displayOrder, p.level))
    return levels


def _validated_app_settings(payload: Union[AppSettingsUpdate, Mapping[str, Any]]) -> AppSettingsUpdate:
    try:
        data = (
            payload if isinstance(payload, AppSettingsUpdate)
            else AppSettingsUpdate.model_validate(payload)
        )
    except ValidationError as e:
        raise ConfigurationValidationError.from_pydantic(e, "Invalid app settings") from e

    issues = currency_mapping_issues(data)
    if issues:
        raise ConfigurationValidationError("Invalid currency visibility mapping", issues)
    return data


async def update_app_settings(
    store: RowStore,
    payload: Union[AppSettingsUpdate, Mapping[str, Any]],
    cache: Optional[SettingsCache] = None,
) -> AppSettings:
    data = _validated_app_settings(payload)
    saved = await store.upsert_many(APP_SETTINGS_TABLE, [app_settings_to_row(data)], "id")
    if cache is not None:
        await cache.invalidate()
    logger.info("[app-settings] global settings saved")
    return row_to_app_settings(saved[0] if saved else app_settings_to_row(data))


async def upsert_phase_level(
    store: RowStore,
    payload: Union[PhaseLevelUpsert, Mapping[str, Any]],
    cache: Optional[SettingsCache] = None,
) -> PhaseLevel:
    try:
        data = (
            payload if isinstance(payload, PhaseLevelUpsert)
            else PhaseLevelUpsert.model_validate(payload)
        )
    except ValidationError as e:
        raise ConfigurationValidationError.from_pydantic(e, "Invalid phase level") from e

    row = phase_level_to_row(data)
    saved = await store.upsert_many(PHASE_LEVELS_TABLE, [row], "level")
    if cache is not None:
        await cache.invalidate()
    logger.info(f"[app-settings] phase level {data.level} saved")
    return row_to_phase_level(saved[0] if saved else row)
