import asyncio
import json
import logging
import re
from typing import Any, Dict, Iterable, List, Optional

import asyncpg
import httpx
from postgrest.exceptions import APIError
from supabase import create_client, Client

from config import Settings
from errors import StoreError

logger = logging.getLogger(__name__)

Document = Dict[str, Any]

_IDENTIFIER_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*(\.[A-Za-z_][A-Za-z0-9_]*)?$")

# Upper bound for the full name scan; matches the PostgREST row cap used elsewhere.
NAME_SCAN_LIMIT = 10000


def escape_like(value: str) -> str:
    """Escape LIKE/ILIKE metacharacters so the value only matches literally."""
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _postgrest_pattern(value: str) -> str:
    # PostgREST treats '*' as an alias for '%' and cannot escape it, so it is
    # widened to a single-char wildcard here and re-checked in Python.
    return escape_like(value).replace("*", "_")


class CompanyStore:
    """
    Read access to the enriched company documents.

    Implementations are constructed explicitly and own their connection:
    call connect() before use and close() when done.
    """

    async def connect(self) -> None:
        pass

    async def close(self) -> None:
        pass

    async def find_exact(self, name: str) -> Optional[Document]:
        """Document whose name equals `name`, ignoring case only."""
        raise NotImplementedError

    async def list_names(self) -> List[str]:
        """All stored names, in store order."""
        raise NotImplementedError

    async def find_by_name(self, stored_name: str) -> Optional[Document]:
        """Document stored under exactly `stored_name`."""
        raise NotImplementedError

    async def find_containing(self, fragment: str) -> Optional[Document]:
        """First document whose name contains `fragment`, ignoring case."""
        raise NotImplementedError


class InMemoryCompanyStore(CompanyStore):
    """List-backed store for tests and local runs."""

    def __init__(self, documents: Optional[Iterable[Document]] = None):
        self._documents: List[Document] = list(documents or [])

    def add(self, document: Document) -> None:
        self._documents.append(document)

    def _named(self):
        for doc in self._documents:
            name = doc.get("name")
            if isinstance(name, str):
                yield name, doc

    async def find_exact(self, name: str) -> Optional[Document]:
        target = name.lower()
        for stored, doc in self._named():
            if stored.lower() == target:
                return dict(doc)
        return None

    async def list_names(self) -> List[str]:
        return [stored for stored, _ in self._named()]

    async def find_by_name(self, stored_name: str) -> Optional[Document]:
        for stored, doc in self._named():
            if stored == stored_name:
                return dict(doc)
        return None

    async def find_containing(self, fragment: str) -> Optional[Document]:
        target = fragment.lower()
        for stored, doc in self._named():
            if target in stored.lower():
                return dict(doc)
        return None


class SupabaseCompanyStore(CompanyStore):
    """Company documents in a Supabase table, queried through PostgREST."""

    def __init__(self, url: str, key: str, table: str = "bot_data", schema: str = "public"):
        self.url = url
        self.key = key
        self.table = table
        self.schema = schema
        self._client: Optional[Client] = None

    async def connect(self) -> None:
        if self._client is None:
            self._client = create_client(self.url, self.key)

    async def close(self) -> None:
        self._client = None

    def _table(self):
        if self._client is None:
            raise RuntimeError("Supabase client not initialized. Call connect() first.")
        return self._client.schema(self.schema).from_(self.table)

    async def _execute(self, query) -> List[Document]:
        # supabase-py is synchronous; keep it off the event loop
        try:
            result = await asyncio.to_thread(query.execute)
        except (APIError, httpx.HTTPError) as e:
            logger.warning("Supabase query on %s failed: %s", self.table, e)
            raise StoreError(f"Company store query failed: {e}") from e
        return result.data or []

    async def _first_ilike(self, pattern: str, accept) -> Optional[Document]:
        # Only names are fetched for the wildcard hits, so false hits from a
        # widened '*' cannot crowd the real match out of the result window.
        rows = await self._execute(
            self._table().select("name").ilike("name", pattern).limit(NAME_SCAN_LIMIT)
        )
        for row in rows:
            name = row.get("name")
            if isinstance(name, str) and accept(name.lower()):
                return await self.find_by_name(name)
        return None

    async def find_exact(self, name: str) -> Optional[Document]:
        target = name.lower()
        return await self._first_ilike(_postgrest_pattern(name), lambda stored: stored == target)

    async def list_names(self) -> List[str]:
        rows = await self._execute(
            self._table().select("name").not_.is_("name", "null").limit(NAME_SCAN_LIMIT)
        )
        return [row["name"] for row in rows if isinstance(row.get("name"), str)]

    async def find_by_name(self, stored_name: str) -> Optional[Document]:
        rows = await self._execute(
            self._table().select("*").eq("name", stored_name).limit(1)
        )
        return rows[0] if rows else None

    async def find_containing(self, fragment: str) -> Optional[Document]:
        target = fragment.lower()
        return await self._first_ilike(
            f"%{_postgrest_pattern(fragment)}%", lambda stored: target in stored
        )


class PostgresCompanyStore(CompanyStore):
    """Company documents read directly from PostgreSQL through an asyncpg pool."""

    def __init__(self, dsn: str, table: str = "bot_data", min_size: int = 1, max_size: int = 10):
        if not _IDENTIFIER_RE.match(table):
            raise ValueError(f"Invalid table name: {table!r}")
        self.dsn = dsn
        self.table = table
        self.min_size = min_size
        self.max_size = max_size
        self._pool: Optional[asyncpg.Pool] = None

    async def connect(self) -> None:
        if self._pool is not None:
            return
        try:
            self._pool = await asyncpg.create_pool(
                self.dsn,
                min_size=self.min_size,
                max_size=self.max_size,
                command_timeout=30,
            )
        except (asyncpg.PostgresError, OSError) as e:
            raise StoreError(f"Could not connect to company store: {e}") from e

    async def close(self) -> None:
        if self._pool:
            await self._pool.close()
            self._pool = None

    def get_pool(self) -> asyncpg.Pool:
        if self._pool is None:
            raise RuntimeError("Database pool not initialized. Call connect() first.")
        return self._pool

    async def _fetch_doc(self, where: str, *args) -> Optional[Document]:
        sql = f"SELECT row_to_json(t)::text AS doc FROM {self.table} t WHERE {where} LIMIT 1"
        try:
            row = await self.get_pool().fetchrow(sql, *args)
        except (asyncpg.PostgresError, asyncpg.InterfaceError, OSError, asyncio.TimeoutError) as e:
            logger.warning("Query on %s failed: %s", self.table, e)
            raise StoreError(f"Company store query failed: {e}") from e
        if not row:
            return None
        return json.loads(row["doc"])

    async def find_exact(self, name: str) -> Optional[Document]:
        return await self._fetch_doc("t.name ILIKE $1 ESCAPE '\\'", escape_like(name))

    async def list_names(self) -> List[str]:
        try:
            rows = await self.get_pool().fetch(
                f"SELECT name FROM {self.table} WHERE name IS NOT NULL"
            )
        except (asyncpg.PostgresError, asyncpg.InterfaceError, OSError, asyncio.TimeoutError) as e:
            logger.warning("Name scan on %s failed: %s", self.table, e)
            raise StoreError(f"Company store query failed: {e}") from e
        return [r["name"] for r in rows]

    async def find_by_name(self, stored_name: str) -> Optional[Document]:
        return await self._fetch_doc("t.name = $1", stored_name)

    async def find_containing(self, fragment: str) -> Optional[Document]:
        return await self._fetch_doc(
            "t.name ILIKE '%' || $1 || '%' ESCAPE '\\'", escape_like(fragment)
        )


def create_store(settings: Settings) -> CompanyStore:
    """Build the store selected by STORE_BACKEND. Does not connect."""
    backend = settings.store_backend
    if backend == "supabase":
        if not settings.supabase_url or not settings.supabase_key:
            raise ValueError("SUPABASE_URL and SUPABASE_SERVICE_KEY must be set")
        return SupabaseCompanyStore(
            settings.supabase_url,
            settings.supabase_key,
            table=settings.company_table,
            schema=settings.supabase_schema,
        )
    if backend == "postgres":
        if not settings.database_url:
            raise ValueError("DATABASE_URL must be set")
        return PostgresCompanyStore(settings.database_url, table=settings.company_table)
    if backend == "memory":
        return InMemoryCompanyStore()
    raise ValueError(f"Unknown STORE_BACKEND: {backend!r}")
