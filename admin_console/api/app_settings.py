"""
App settings / phase levels API (admin only)

Admin reads go to the database, not the cache, so a screen opened right after a
save always shows the saved values. Every write invalidates the settings cache.
"""

from __future__ import annotations

from typing import Any, Dict, List
import logging

from fastapi import APIRouter, Body, Depends, HTTPException

from admin_console.core.errors import PersistenceError, safe_exc
from admin_console.core.security import require_admin
from admin_console.dependencies import get_row_store, get_settings_cache
from admin_console.schemas.app_settings import AppSettings, PhaseLevel
from admin_console.services.app_settings_service import (
    load_app_settings,
    load_phase_levels,
    update_app_settings,
    upsert_phase_level,
)
from admin_console.services.row_store import RowStore
from admin_console.services.settings_cache import SettingsCache

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", dependencies=[Depends(require_admin)])


@router.get("/app-settings", response_model=AppSettings, summary="Global app settings")
async def get_app_settings(store: RowStore = Depends(get_row_store)):
    try:
        return await load_app_settings(store)
    except PersistenceError as e:
        logger.exception(f"[app-settings] read failed: {safe_exc(e)}")
        raise HTTPException(status_code=500, detail=e.message)


@router.put("/app-settings", response_model=AppSettings, summary="Save global app settings")
async def put_app_settings(
    payload: Dict[str, Any] = Body(...),
    store: RowStore = Depends(get_row_store),
    cache: SettingsCache = Depends(get_settings_cache),
):
    try:
        return await update_app_settings(store, payload, cache)
    except PersistenceError as e:
        logger.exception(f"[app-settings] update failed: {safe_exc(e)}")
        raise HTTPException(status_code=500, detail=e.message)


@router.get("/phase-levels", response_model=List[PhaseLevel], summary="Phase levels")
async def get_phase_levels(store: RowStore = Depends(get_row_store)):
    try:
        return await load_phase_levels(store)
    except PersistenceError as e:
        logger.exception(f"[app-settings] phase levels read failed: {safe_exc(e)}")
        raise HTTPException(status_code=500, detail=e.message)


@router.put("/phase-levels/{level}", response_model=PhaseLevel, summary="Save one phase level")
async def put_phase_level(
    level: int,
    payload: Dict[str, Any] = Body(...),
    store: RowStore = Depends(get_row_store),
    cache: SettingsCache = Depends(get_settings_cache),
):
    try:
        return await upsert_phase_level(store, {**payload, "level": level}, cache)
    except PersistenceError as e:
        logger.exception(f"[app-settings] phase level {level} update failed: {safe_exc(e)}")
        raise HTTPException(status_code=500, detail=e.message)


@router.post("/settings-cache/invalidate", summary="Drop cached settings")
async def invalidate_settings_cache(cache: SettingsCache = Depends(get_settings_cache)):
    await cache.invalidate()
    return {"invalidated": True, "stats": cache.stats()}
