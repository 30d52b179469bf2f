"""
Row store: the persistence collaborator

Services only need two calls:
- fetch_all(table) -> rows
- upsert_many(table, rows, conflict_key) -> stored rows for the written keys

Errors surface as PersistenceError and are never retried here;
retry/timeout policy belongs to the database driver/pool.
"""

from __future__ import annotations

from collections import Counter
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Protocol, Sequence
import copy
import logging

from sqlalchemy import MetaData, Table, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from admin_console.core.database import Base
from admin_console.core.errors import PersistenceError, safe_exc
import admin_console.models  # noqa: F401  (registers tables on Base.metadata)

logger = logging.getLogger(__name__)

Row = Dict[str, Any]


class RowStore(Protocol):
    async def fetch_all(self, table: str) -> List[Row]:
        ...

    async def upsert_many(self, table: str, rows: Sequence[Row], conflict_key: str) -> List[Row]:
        ...


class SqlAlchemyRowStore:
    """RowStore over an AsyncSession (SQLite or PostgreSQL)."""

    def __init__(self, session: AsyncSession, metadata: MetaData = Base.metadata):
        self.session = session
        self.metadata = metadata

    def _table(self, name: str, operation: str) -> Table:
        table = self.metadata.tables.get(name)
        if table is None:
            raise PersistenceError(f"Unknown table: {name}", table=name, operation=operation)
        return table

    def _insert_factory(self, table_name: str):
        dialect = self.session.get_bind().dialect.name
        if dialect == "postgresql":
            from sqlalchemy.dialects.postgresql import insert
            return insert
        if dialect == "sqlite":
            from sqlalchemy.dialects.sqlite import insert
            return insert
        raise PersistenceError(f"Upsert is not supported on dialect {dialect}", table=table_name, operation="upsert_many")

    @staticmethod
    def _column_default(column) -> Any:
        default = column.default
        if default is None:
            return None
        if default.is_callable:
            return default.arg(None)
        if default.is_scalar:
            return default.arg
        return None

    def _prepare(self, table: Table, rows: Sequence[Row], conflict_key: str) -> List[Row]:
        prepared = [{k: v for k, v in row.items() if k in table.c} for row in rows]
        # Multi-row INSERT: every row needs the same keys, and generated primary keys
        # (e.g. uuid4 ids) must be filled explicitly.
        names = {name for values in prepared for name in values}
        names.update(
            c.name for c in table.primary_key.columns
            if c.name != conflict_key and c.default is not None
        )
        for values in prepared:
            for name in names:
                if name not in values:
                    values[name] = self._column_default(table.c[name])
        return prepared

    async def fetch_all(self, table: str) -> List[Row]:
        t = self._table(table, "fetch_all")
        try:
            result = await self.session.execute(select(t))
            return [dict(r) for r in result.mappings().all()]
        except SQLAlchemyError as e:
            raise PersistenceError(
                f"Failed to fetch {table}: {safe_exc(e)}", table=table, operation="fetch_all"
            ) from e

    async def upsert_many(self, table: str, rows: Sequence[Row], conflict_key: str) -> List[Row]:
        t = self._table(table, "upsert_many")
        if not rows:
            return []
        if conflict_key not in t.c:
            raise PersistenceError(
                f"Unknown conflict key {conflict_key} for {table}", table=table, operation="upsert_many"
            )

        insert = self._insert_factory(table)
        values = self._prepare(t, rows, conflict_key)
        keys = [v.get(conflict_key) for v in values]
        columns = sorted({name for v in values for name in v})

        stmt = insert(t).values(values)
        set_ = {
            name: stmt.excluded[name]
            for name in columns
            if name != conflict_key and not t.c[name].primary_key and name != "created_at"
        }
        if "updated_at" in t.c:
            set_["updated_at"] = func.now()
        stmt = stmt.on_conflict_do_update(index_elements=[t.c[conflict_key]], set_=set_)

        try:
            await self.session.execute(stmt)
            await self.session.commit()
        except SQLAlchemyError as e:
            try:
                await self.session.rollback()
            except SQLAlchemyError:
                logger.warning(f"[row-store] rollback failed after upsert error on {table}")
            raise PersistenceError(
                f"Failed to upsert {table}: {safe_exc(e)}", table=table, operation="upsert_many"
            ) from e

        try:
            result = await self.session.execute(
                select(t).where(t.c[conflict_key].in_(keys)).order_by(t.c[conflict_key])
            )
            return [dict(r) for r in result.mappings().all()]
        except SQLAlchemyError as e:
            raise PersistenceError(
                f"Failed to re-read {table}: {safe_exc(e)}", table=table, operation="upsert_many"
            ) from e


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


class InMemoryRowStore:
    """
    Dict-backed RowStore for local runs and tests.

    - updated_at is stamped on every upsert (like the database default)
    - fetch/upsert calls are counted per table
    - set `fail_fetch` / `fail_upsert` to simulate an unreachable store
    """

    def __init__(self, tables: Optional[Dict[str, Sequence[Row]]] = None, clock: Callable[[], str] = _utc_now_iso):
        self._tables: Dict[str, List[Row]] = {
            name: [copy.deepcopy(dict(r)) for r in rows] for name, rows in (tables or {}).items()
        }
        self._clock = clock
        self.fetch_calls: Counter = Counter()
        self.upsert_calls: Counter = Counter()
        self.fail_fetch = False
        self.fail_upsert = False

    def rows(self, table: str) -> List[Row]:
        return copy.deepcopy(self._tables.get(table, []))

    async def fetch_all(self, table: str) -> List[Row]:
        self.fetch_calls[table] += 1
        if self.fail_fetch:
            raise PersistenceError(f"Failed to fetch {table}: store unavailable", table=table, operation="fetch_all")
        return copy.deepcopy(self._tables.get(table, []))

    async def upsert_many(self, table: str, rows: Sequence[Row], conflict_key: str) -> List[Row]:
        self.upsert_calls[table] += 1
        if self.fail_upsert:
            raise PersistenceError(f"Failed to upsert {table}: write rejected", table=table, operation="upsert_many")

        stored = self._tables.setdefault(table, [])
        now = self._clock()
        written_keys = []
        for row in rows:
            if conflict_key not in row:
                raise PersistenceError(
                    f"Row without conflict key {conflict_key}", table=table, operation="upsert_many"
                )
            key = row[conflict_key]
            existing = next((r for r in stored if r.get(conflict_key) == key), None)
            if existing is None:
                existing = {"created_at": now}
                stored.append(existing)
            existing.update(copy.deepcopy(dict(row)))
            existing["updated_at"] = now
            written_keys.append(key)

        out = [copy.deepcopy(r) for r in stored if r.get(conflict_key) in written_keys]
        return sorted(out, key=lambda r: r.get(conflict_key))
