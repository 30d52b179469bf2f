"""
Unit tests for DATABASE_URL -> async engine argument translation.
"""

import ssl

from admin_console.core.database import _build_engine_args


class TestEngineArgs:
    def test_sqlite_url_uses_aiosqlite(self):
        url, args = _build_engine_args("sqlite:///./data/admin.db")
        assert url == "sqlite+aiosqlite:///./data/admin.db"
        assert args == {}

    def test_explicit_async_sqlite_url_is_kept(self):
        url, args = _build_engine_args("sqlite+aiosqlite:///:memory:")
        assert url == "sqlite+aiosqlite:///:memory:"
        assert args == {}

    def test_postgres_url_uses_asyncpg_without_ssl(self):
        url, args = _build_engine_args("postgresql://u:p@db:5432/admin?application_name=console")
        assert url == "postgresql+asyncpg://u:p@db:5432/admin?application_name=console"
        assert "connect_args" not in args
        assert args["pool_pre_ping"] is True

    def test_sslmode_require_encrypts_without_verifying(self):
        url, args = _build_engine_args("postgresql://u:p@db/admin?sslmode=require&ssl=true")
        assert url == "postgresql+asyncpg://u:p@db/admin"
        ctx = args["connect_args"]["ssl"]
        assert ctx.verify_mode == ssl.CERT_NONE
        assert ctx.check_hostname is False

    def test_sslmode_verify_full_verifies(self):
        _, args = _build_engine_args("postgresql://u:p@db/admin?sslmode=verify-full")
        ctx = args["connect_args"]["ssl"]
        assert ctx.verify_mode == ssl.CERT_REQUIRED
        assert ctx.check_hostname is True

    def test_sslmode_disable_has_no_context(self):
        url, args = _build_engine_args("postgresql://u:p@db/admin?sslmode=disable")
        assert url == "postgresql+asyncpg://u:p@db/admin"
        assert "connect_args" not in args
