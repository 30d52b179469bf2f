from typing import Optional

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from admin_console.core.config import settings
from admin_console.core.database import AsyncSessionLocal, get_db, redis_client
from admin_console.services.app_settings_service import load_app_settings, load_phase_levels
from admin_console.services.row_store import RowStore, SqlAlchemyRowStore
from admin_console.services.settings_cache import SettingsCache
from admin_console.services.site_mode_service import SiteModeService

# Request dependencies shared by the routers.
# The settings cache is process-wide; everything else is per request.

_settings_cache: Optional[SettingsCache] = None


async def get_row_store(db: AsyncSession = Depends(get_db)) -> RowStore:
    return SqlAlchemyRowStore(db)


async def get_site_mode_service(store: RowStore = Depends(get_row_store)) -> SiteModeService:
    return SiteModeService(store)


async def _load_app_settings_from_db():
    async with AsyncSessionLocal() as session:
        return await load_app_settings(SqlAlchemyRowStore(session))


async def _load_phase_levels_from_db():
    async with AsyncSessionLocal() as session:
        return await load_phase_levels(SqlAlchemyRowStore(session))


def get_settings_cache() -> SettingsCache:
    """Process-wide settings cache (built on first use)."""
    global _settings_cache
    if _settings_cache is None:
        _settings_cache = SettingsCache(
            _load_app_settings_from_db,
            _load_phase_levels_from_db,
            ttl_seconds=settings.SETTINGS_CACHE_TTL_SECONDS,
            redis=redis_client if settings.SETTINGS_CACHE_USE_REDIS else None,
            redis_prefix=settings.SETTINGS_CACHE_REDIS_PREFIX,
        )
    return _settings_cache


__all__ = ["get_db", "get_row_store", "get_site_mode_service", "get_settings_cache"]
