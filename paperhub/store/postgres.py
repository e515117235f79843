import asyncio
import json
import logging
import uuid
from datetime import date, datetime
from functools import partial
from typing import Any, Dict, List, Optional, Tuple

import psycopg2
from psycopg2.extras import Json, RealDictCursor

from paperhub.store.base import (
    DocumentMissingError,
    DocumentStore,
    Query,
    resolve_server_timestamps,
)

logger = logging.getLogger(__name__)

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS documents (
    collection TEXT NOT NULL,
    id TEXT NOT NULL,
    data JSONB NOT NULL,
    PRIMARY KEY (collection, id)
)
"""


def _json_default(value: Any) -> Any:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


_dumps = partial(json.dumps, default=_json_default)


def build_select(query: Query) -> Tuple[str, List[Any]]:
    """Compile a Query into SQL over the JSONB ``data`` column.

    Ranges and ordering use the "C" collation so prefix bounds compare
    byte-wise, whatever the database locale.
    """
    clauses = ["collection = %s"]
    params: List[Any] = [query.collection]

    for name, value in query.filters:
        clauses.append("data->%s = %s")
        params.extend([name, Json(value, dumps=_dumps)])

    if query.order_by is not None:
        clauses.append("data->>%s IS NOT NULL")
        params.append(query.order_by)
        if query.start_at is not None:
            clauses.append('(data->>%s) COLLATE "C" >= %s')
            params.extend([query.order_by, query.start_at])
        if query.end_at is not None:
            clauses.append('(data->>%s) COLLATE "C" <= %s')
            params.extend([query.order_by, query.end_at])

    sql = "SELECT id, data FROM documents WHERE " + " AND ".join(clauses)

    if query.order_by is not None:
        sql += ' ORDER BY (data->>%s) COLLATE "C" ' + ("DESC" if query.descending else "ASC")
        params.append(query.order_by)
    if query.limit is not None:
        sql += " LIMIT %s"
        params.append(query.limit)
    return sql, params


class PostgresDocumentStore(DocumentStore):
    """
    Document store backed by a single PostgreSQL table.

    Each blocking psycopg2 call runs in a worker thread so the event loop
    is never held by the database.
    """

    def __init__(self, database_url: str):
        super().__init__()
        self.database_url = database_url
        self._schema_ready = False

    def get_db_connection(self):
        """Get PostgreSQL connection"""
        conn = psycopg2.connect(self.database_url, cursor_factory=RealDictCursor)
        if not self._schema_ready:
            with conn.cursor() as cur:
                cur.execute(SCHEMA_SQL)
            conn.commit()
            self._schema_ready = True
        return conn

    def _execute(self, sql: str, params: List[Any], fetch: Optional[str] = None):
        conn = self.get_db_connection()
        try:
            with conn.cursor() as cur:
                cur.execute(sql, params)
                if fetch == "one":
                    result = cur.fetchone()
                elif fetch == "all":
                    result = cur.fetchall()
                else:
                    result = cur.rowcount
            conn.commit()
            return result
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    async def _run(self, sql: str, params: List[Any], fetch: Optional[str] = None):
        return await asyncio.to_thread(self._execute, sql, params, fetch)

    async def add(self, collection: str, data: Dict[str, Any]) -> str:
        doc_id = uuid.uuid4().hex
        await self._run(
            "INSERT INTO documents (collection, id, data) VALUES (%s, %s, %s)",
            [collection, doc_id, Json(resolve_server_timestamps(data), dumps=_dumps)],
        )
        logger.debug(f"Created {collection}/{doc_id}")
        await self._notify(collection)
        return doc_id

    async def get(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        row = await self._run(
            "SELECT id, data FROM documents WHERE collection = %s AND id = %s",
            [collection, doc_id],
            fetch="one",
        )
        if not row:
            return None
        return {"id": row["id"], **row["data"]}

    async def update(self, collection: str, doc_id: str, data: Dict[str, Any]) -> None:
        rowcount = await self._run(
            "UPDATE documents SET data = data || %s WHERE collection = %s AND id = %s",
            [Json(resolve_server_timestamps(data), dumps=_dumps), collection, doc_id],
        )
        if rowcount == 0:
            raise DocumentMissingError(f"{collection}/{doc_id} does not exist")
        await self._notify(collection)

    async def delete(self, collection: str, doc_id: str) -> None:
        await self._run(
            "DELETE FROM documents WHERE collection = %s AND id = %s",
            [collection, doc_id],
        )
        await self._notify(collection)

    async def query(self, query: Query) -> List[Dict[str, Any]]:
        sql, params = build_select(query)
        rows = await self._run(sql, params, fetch="all")
        return [{"id": row["id"], **row["data"]} for row in rows]
