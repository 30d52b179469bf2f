"""
Site status API (maintenance / coming soon)

- Public GET: the storefront reads the active mode and its copy on every page load.
- Admin PUT: save all modes at once (exactly one active).
- Admin POST deactivate: back to the normal site.

Read failures never break the storefront or the admin screen: the default
configuration is served with `X-Config-Fallback: 1` (the UI shows a retry).
Write failures are reported as-is; nothing is partially applied.
"""

from __future__ import annotations

from typing import Any, Dict
import logging

from fastapi import APIRouter, Body, Depends, HTTPException, Response

from admin_console.core.errors import PersistenceError, safe_exc
from admin_console.core.security import require_admin
from admin_console.dependencies import get_site_mode_service
from admin_console.schemas.site_mode import SiteModeConfiguration, default_configuration
from admin_console.services.site_mode_service import SiteModeService

logger = logging.getLogger(__name__)

router = APIRouter()

FALLBACK_HEADER = "X-Config-Fallback"


async def _read_configuration(service: SiteModeService, response: Response) -> SiteModeConfiguration:
    try:
        return await service.get_configuration()
    except PersistenceError as e:
        logger.exception(f"[site-mode] read failed, serving defaults: {safe_exc(e)}")
        response.headers[FALLBACK_HEADER] = "1"
        return default_configuration()


@router.get("/site-status", response_model=SiteModeConfiguration, summary="Site status (public)")
async def get_site_status(
    response: Response,
    service: SiteModeService = Depends(get_site_mode_service),
):
    return await _read_configuration(service, response)


@router.get(
    "/admin/site-status",
    response_model=SiteModeConfiguration,
    summary="Site status (admin)",
    dependencies=[Depends(require_admin)],
)
async def get_admin_site_status(
    response: Response,
    service: SiteModeService = Depends(get_site_mode_service),
):
    return await _read_configuration(service, response)


@router.put(
    "/admin/site-status",
    response_model=SiteModeConfiguration,
    summary="Save site status (admin)",
    dependencies=[Depends(require_admin)],
)
async def put_admin_site_status(
    payload: Dict[str, Any] = Body(...),
    service: SiteModeService = Depends(get_site_mode_service),
):
    """Invalid structure -> 422 (handled in main); persistence failure -> 500."""
    try:
        return await service.update_configuration(payload)
    except PersistenceError as e:
        logger.exception(f"[site-mode] update failed: {safe_exc(e)}")
        raise HTTPException(status_code=500, detail=e.message)


@router.post(
    "/admin/site-status/deactivate",
    response_model=SiteModeConfiguration,
    summary="Turn off maintenance / coming soon (admin)",
    dependencies=[Depends(require_admin)],
)
async def deactivate_site_status(
    payload: Dict[str, Any] = Body(...),
    service: SiteModeService = Depends(get_site_mode_service),
):
    try:
        return await service.deactivate(payload.get("mode"))
    except PersistenceError as e:
        logger.exception(f"[site-mode] deactivate failed: {safe_exc(e)}")
        raise HTTPException(status_code=500, detail=e.message)
