"""
Database setup and connections

- SQLite (development/tests) goes through aiosqlite, PostgreSQL through asyncpg.
- Column types below pick the native PostgreSQL type and a portable one elsewhere.
"""

from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy import MetaData, types
from sqlalchemy.dialects.postgresql import JSONB, UUID as PostgresUUID
import redis.asyncio as redis
from typing import AsyncGenerator, Optional
import ssl
from urllib.parse import urlsplit, urlunsplit, parse_qsl, urlencode

from admin_console.core.config import settings


class UUID(types.TypeDecorator):
    """Row ids: native uuid on PostgreSQL, CHAR(36) elsewhere; always read back as str."""
    impl = types.CHAR(36)
    cache_ok = True

    def load_dialect_impl(self, dialect):
        if dialect.name == "postgresql":
            return dialect.type_descriptor(PostgresUUID(as_uuid=False))
        return dialect.type_descriptor(types.CHAR(36))

    def process_bind_param(self, value, dialect):
        return None if value is None else str(value)

    def process_result_value(self, value, dialect):
        return None if value is None else str(value)


class JSON(types.TypeDecorator):
    """Settings blobs (currencies, capacities, coming soon block): JSONB on PostgreSQL."""
    impl = types.JSON
    cache_ok = True

    def load_dialect_impl(self, dialect):
        if dialect.name == "postgresql":
            return dialect.type_descriptor(JSONB())
        return dialect.type_descriptor(types.JSON())


# libpq sslmode -> verify the server certificate?
_SSLMODE_VERIFY = {
    "require": False,
    "prefer": False,
    "verify-ca": True,
    "verify-full": True,
}


def _ssl_context(sslmode: Optional[str]) -> Optional[ssl.SSLContext]:
    verify = _SSLMODE_VERIFY.get((sslmode or "").strip().lower())
    if verify is None:
        return None
    ctx = ssl.create_default_context()
    if not verify:
        ctx.check_hostname = False
        ctx.verify_mode = ssl.CERT_NONE
    return ctx


def _build_engine_args(database_url: str) -> tuple[str, dict]:
    """DATABASE_URL -> (async driver URL, engine kwargs)."""
    if database_url.startswith("sqlite://"):
        return database_url.replace("sqlite://", "sqlite+aiosqlite://", 1), {}
    if database_url.startswith("sqlite"):
        return database_url, {}

    # asyncpg rejects sslmode/ssl query parameters; they become an SSLContext instead.
    parts = urlsplit(database_url.replace("postgresql://", "postgresql+asyncpg://", 1))
    query = parse_qsl(parts.query, keep_blank_values=True)
    sslmode = next((v for k, v in query if k.lower() == "sslmode"), None)
    query = [(k, v) for k, v in query if k.lower() not in ("sslmode", "ssl")]
    engine_url = urlunsplit(parts._replace(query=urlencode(query)))

    engine_args = {"pool_pre_ping": True, "pool_recycle": 300}
    ctx = _ssl_context(sslmode)
    if ctx is not None:
        engine_args["connect_args"] = {"ssl": ctx}
    return engine_url, engine_args


_engine_url, _engine_args = _build_engine_args(settings.DATABASE_URL)
engine = create_async_engine(
    _engine_url,
    echo=settings.DEBUG,
    future=True,
    **_engine_args,
)

AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
    autocommit=False,
)

# Connections are opened lazily, on first command.
redis_client = redis.from_url(settings.REDIS_URL, decode_responses=True)


class Base(DeclarativeBase):
    """SQLAlchemy Base class"""
    metadata = MetaData(
        naming_convention={
            "ix": "ix_%(column_0_label)s",
            "uq": "uq_%(table_name)s_%(column_0_name)s",
            "ck": "ck_%(table_name)s_%(constraint_name)s",
            "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
            "pk": "pk_%(table_name)s"
        }
    )


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Database session dependency"""
    async with AsyncSessionLocal() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()
