"""Postgres side of the clearing scripts."""

import logging
import re
import ssl
from typing import Dict, List, Tuple
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from sqlalchemy import text
from sqlalchemy.ext.asyncio import create_async_engine

logger = logging.getLogger(__name__)

TABLE_NAME_PATTERN = re.compile(r"^[a-z_][a-z0-9_]*$")

# libpq options asyncpg does not accept as query parameters
_LIBPQ_ONLY_PARAMS = {"sslmode", "channel_binding"}


def to_async_url(database_url: str) -> Tuple[str, dict]:
    """Convert a libpq-style URL to an asyncpg URL plus connect_args."""
    parts = urlsplit(database_url.strip())
    scheme = parts.scheme
    if scheme in ("postgres", "postgresql"):
        scheme = "postgresql+asyncpg"

    query = parse_qsl(parts.query, keep_blank_values=True)
    sslmode = None
    kept = []
    for key, value in query:
        if key == "sslmode":
            sslmode = value
        if key not in _LIBPQ_ONLY_PARAMS:
            kept.append((key, value))

    connect_args = {}
    if sslmode and sslmode != "disable":
        connect_args["ssl"] = ssl.create_default_context()

    url = urlunsplit((scheme, parts.netloc, parts.path, urlencode(kept), parts.fragment))
    return url, connect_args


async def clear_tables(database_url: str, tables: List[str]) -> Dict[str, object]:
    """DELETE every row of each table; each table runs in its own transaction.

    Returns {table: rows_deleted} with an error string in place of the count
    for tables that failed.
    """
    for table in tables:
        if not TABLE_NAME_PATTERN.match(table):
            raise ValueError(f"Invalid table name: {table}")

    url, connect_args = to_async_url(database_url)
    engine = create_async_engine(url, connect_args=connect_args)
    results: Dict[str, object] = {}
    try:
        for table in tables:
            try:
                async with engine.begin() as conn:
                    result = await conn.execute(text(f"DELETE FROM {table}"))
                    results[table] = result.rowcount
                logger.info(f"Cleared {results[table]} row(s) from {table}")
            except Exception as e:
                logger.error(f"Failed to clear {table}: {e}")
                results[table] = f"{type(e).__name__}: {e}"
    finally:
        await engine.dispose()
    return results
