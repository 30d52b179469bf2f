"""
Integration tests for the SQLAlchemy row store against in-memory SQLite (aiosqlite).
"""

from __future__ import annotations

from typing import AsyncGenerator

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from admin_console.core.database import Base
from admin_console.core.errors import PersistenceError
from admin_console.services.app_settings_service import (
    PHASE_LEVELS_TABLE,
    load_app_settings,
    load_phase_levels,
    update_app_settings,
    upsert_phase_level,
)
from admin_console.services.row_store import SqlAlchemyRowStore
from admin_console.services.site_mode_service import SITE_MODE_TABLE, SiteModeService, project_for_update


@pytest_asyncio.fixture
async def session() -> AsyncGenerator[AsyncSession, None]:
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    session_factory = async_sessionmaker(engine, expire_on_commit=False)
    async with session_factory() as s:
        yield s
    await engine.dispose()


@pytest.fixture
def sql_store(session) -> SqlAlchemyRowStore:
    return SqlAlchemyRowStore(session)


class TestUpsertMany:
    async def test_insert_then_update_same_key(self, sql_store):
        first = await sql_store.upsert_many(
            SITE_MODE_TABLE,
            [{"mode": "maintenance", "meta_title": "A", "is_active": True}],
            "mode",
        )
        assert first[0]["meta_title"] == "A"
        assert first[0]["updated_at"] is not None

        second = await sql_store.upsert_many(
            SITE_MODE_TABLE,
            [{"mode": "maintenance", "meta_title": "B", "is_active": False}],
            "mode",
        )
        assert second[0]["meta_title"] == "B"
        assert second[0]["is_active"] is False
        assert len(await sql_store.fetch_all(SITE_MODE_TABLE)) == 1

    async def test_multi_row_upsert_returns_written_rows_ordered(self, sql_store):
        rows = await sql_store.upsert_many(
            SITE_MODE_TABLE,
            [
                {"mode": "maintenance", "is_active": False},
                {"mode": "coming_soon", "is_active": True, "social_links": [{"platform": "x", "url": "https://x.com/a"}]},
            ],
            "mode",
        )
        assert [r["mode"] for r in rows] == ["coming_soon", "maintenance"]
        assert rows[0]["social_links"] == [{"platform": "x", "url": "https://x.com/a"}]

    async def test_generated_primary_key_filled(self, sql_store):
        rows = await sql_store.upsert_many(PHASE_LEVELS_TABLE, [{"level": 1, "name": "One"}], "level")
        assert rows[0]["id"] is not None
        again = await sql_store.upsert_many(PHASE_LEVELS_TABLE, [{"level": 1, "name": "Uno"}], "level")
        assert again[0]["id"] == rows[0]["id"]
        assert again[0]["name"] == "Uno"

    async def test_unknown_columns_ignored(self, sql_store):
        rows = await sql_store.upsert_many(SITE_MODE_TABLE, [{"mode": "maintenance", "bogus": 1}], "mode")
        assert "bogus" not in rows[0]

    async def test_unknown_table_raises(self, sql_store):
        with pytest.raises(PersistenceError):
            await sql_store.fetch_all("nope")

    async def test_empty_upsert_is_noop(self, sql_store):
        assert await sql_store.upsert_many(SITE_MODE_TABLE, [], "mode") == []

    async def test_constraint_violation_raises_persistence_error(self, sql_store):
        with pytest.raises(PersistenceError) as exc_info:
            await sql_store.upsert_many(PHASE_LEVELS_TABLE, [{"level": 1, "name": None}], "level")
        assert exc_info.value.operation == "upsert_many"
        # session is usable again after the rollback
        assert await sql_store.fetch_all(PHASE_LEVELS_TABLE) == []


class TestServicesOnSqlite:
    async def test_site_mode_round_trip(self, sql_store):
        service = SiteModeService(sql_store)
        await service.update_configuration({
            "activeMode": "coming_soon",
            "modes": [{
                "mode": "coming_soon",
                "seo": {"title": {"en": "Soon", "es": "Pronto"}},
                "appearance": {"backgroundOverlayOpacity": 150},
                "comingSoon": {"countdown": {"isEnabled": True, "targetDate": "2030-01-01T00:00:00Z"}},
            }],
        })
        before = await service.get_configuration()
        coming_soon = before.get_mode("coming_soon")
        assert before.activeMode == "coming_soon"
        assert coming_soon.appearance.backgroundOverlayOpacity == 100
        assert coming_soon.comingSoon.countdown.targetDate == "2030-01-01T00:00:00Z"
        assert coming_soon.updatedAt is not None

        await service.update_configuration(project_for_update(before))
        after = await service.get_configuration()
        assert [m.model_dump(exclude={"updatedAt"}) for m in after.modes] == [
            m.model_dump(exclude={"updatedAt"}) for m in before.modes
        ]

    async def test_app_settings_and_phase_levels(self, sql_store):
        await update_app_settings(sql_store, {
            "maxMembersPerLevel": [{"level": 1, "maxMembers": 3}],
            "currency": "USD",
            "currencies": [{"code": "USD", "countryCodes": []}],
        })
        await upsert_phase_level(sql_store, {"level": 1, "name": "Starter", "commissionRate": 0.1})

        settings = await load_app_settings(sql_store)
        levels = await load_phase_levels(sql_store)
        assert settings.maxMembersPerLevel[0].maxMembers == 3
        assert settings.updatedAt is not None
        assert levels[0].name == "Starter"
        assert levels[0].freeProductValueCents == 6500
