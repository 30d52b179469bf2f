"""
HTTP tests for the site status and app settings routers.

The row store and settings cache are swapped for in-memory instances through
FastAPI dependency overrides.
"""

import pytest
from fastapi.testclient import TestClient

from admin_console.core.security import create_access_token
from admin_console.dependencies import get_row_store, get_settings_cache
from admin_console.main import app
from admin_console.services.site_mode_service import SITE_MODE_TABLE


@pytest.fixture
def client(store, make_cache):
    cache = make_cache()
    app.dependency_overrides[get_row_store] = lambda: store
    app.dependency_overrides[get_settings_cache] = lambda: cache
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def admin_headers():
    token = create_access_token({"sub": "admin-1", "is_admin": True})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def member_headers():
    token = create_access_token({"sub": "member-1", "role": "member"})
    return {"Authorization": f"Bearer {token}"}


class TestPublicSiteStatus:
    def test_defaults_when_nothing_stored(self, client):
        res = client.get("/site-status")
        assert res.status_code == 200
        body = res.json()
        assert body["activeMode"] == "none"
        assert [m["mode"] for m in body["modes"]] == ["none", "maintenance", "coming_soon"]
        assert "X-Config-Fallback" not in res.headers

    def test_read_failure_serves_defaults_with_fallback_header(self, client, store):
        store.fail_fetch = True
        res = client.get("/site-status")
        assert res.status_code == 200
        assert res.headers["X-Config-Fallback"] == "1"
        assert res.json()["activeMode"] == "none"


class TestAdminSiteStatus:
    def test_requires_token(self, client):
        assert client.get("/admin/site-status").status_code == 401

    def test_requires_admin(self, client, member_headers):
        assert client.get("/admin/site-status", headers=member_headers).status_code == 403

    def test_role_admin_accepted(self, client):
        token = create_access_token({"sub": "admin-2", "role": "admin"})
        res = client.get("/admin/site-status", headers={"Authorization": f"Bearer {token}"})
        assert res.status_code == 200

    def test_update_and_read_back(self, client, admin_headers):
        res = client.put("/admin/site-status", headers=admin_headers, json={
            "activeMode": "maintenance",
            "modes": [{
                "mode": "maintenance",
                "seo": {"title": {"en": "Be right back", "es": "Volvemos pronto"}},
                "appearance": {"backgroundOverlayOpacity": 150},
            }],
        })
        assert res.status_code == 200
        maintenance = next(m for m in res.json()["modes"] if m["mode"] == "maintenance")
        assert maintenance["isActive"] is True
        assert maintenance["seo"]["title"] == {"en": "Be right back", "es": "Volvemos pronto"}
        assert maintenance["appearance"]["backgroundOverlayOpacity"] == 100

        public = client.get("/site-status").json()
        assert public["activeMode"] == "maintenance"

    def test_invalid_mode_returns_422_with_paths(self, client, admin_headers, store):
        res = client.put("/admin/site-status", headers=admin_headers, json={
            "activeMode": "maintenance",
            "modes": [{"mode": "holiday"}],
        })
        assert res.status_code == 422
        body = res.json()
        assert body["detail"]
        assert ["modes", 0, "mode"] in [e["loc"] for e in body["errors"]]
        assert store.upsert_calls[SITE_MODE_TABLE] == 0

    def test_write_failure_returns_500_verbatim(self, client, admin_headers, store):
        store.fail_upsert = True
        res = client.put("/admin/site-status", headers=admin_headers, json={"activeMode": "none", "modes": []})
        assert res.status_code == 500
        assert res.json()["detail"] == "Failed to upsert site_mode_settings: write rejected"

    def test_deactivate(self, client, admin_headers):
        client.put("/admin/site-status", headers=admin_headers, json={"activeMode": "coming_soon", "modes": []})
        res = client.post("/admin/site-status/deactivate", headers=admin_headers, json={"mode": "coming_soon"})
        assert res.status_code == 200
        assert res.json()["activeMode"] == "none"

    def test_deactivate_rejects_unknown_mode(self, client, admin_headers):
        res = client.post("/admin/site-status/deactivate", headers=admin_headers, json={"mode": "party"})
        assert res.status_code == 422


class TestAdminAppSettings:
    def test_get_defaults(self, client, admin_headers):
        res = client.get("/admin/app-settings", headers=admin_headers)
        assert res.status_code == 200
        assert res.json()["currency"] == "USD"

    def test_put_invalidates_cache(self, client, admin_headers):
        cache = app.dependency_overrides[get_settings_cache]()
        res = client.put("/admin/app-settings", headers=admin_headers, json={
            "maxMembersPerLevel": [{"level": 1, "maxMembers": 4}],
            "currency": "USD",
            "currencies": [{"code": "USD", "countryCodes": []}],
            "ecommerceCommissionRate": 0.2,
        })
        assert res.status_code == 200
        assert cache.stats()["appSettingsCached"] is False

    def test_put_invalid_currency_mapping_returns_422(self, client, admin_headers):
        res = client.put("/admin/app-settings", headers=admin_headers, json={
            "maxMembersPerLevel": [],
            "currency": "USD",
            "currencies": [{"code": "EUR", "countryCodes": ["ES"]}],
        })
        assert res.status_code == 422
        assert len(res.json()["errors"]) == 2

    def test_phase_level_upsert_uses_path_level(self, client, admin_headers):
        res = client.put("/admin/phase-levels/3", headers=admin_headers, json={"level": 9, "name": "Leader"})
        assert res.status_code == 200
        assert res.json()["level"] == 3

        levels = client.get("/admin/phase-levels", headers=admin_headers).json()
        assert [p["level"] for p in levels] == [3]

    def test_invalidate_endpoint(self, client, admin_headers):
        res = client.post("/admin/settings-cache/invalidate", headers=admin_headers)
        assert res.status_code == 200
        assert res.json()["invalidated"] is True

    def test_member_forbidden(self, client, member_headers):
        assert client.get("/admin/app-settings", headers=member_headers).status_code == 403
