"""SQLite database client wrapper with CRUD operations."""

import asyncio
import json
import logging
import re
import threading
from datetime import UTC, date, datetime
from pathlib import Path
from typing import Any

import aiosqlite

from src.core.config import settings


logger = logging.getLogger(__name__)

# Columns persisted as JSON text and decoded on read
JSON_FIELDS = {"tags", "details"}


class DatabaseError(RuntimeError):
    """Raised when a storage operation fails."""


class RecordNotFoundError(KeyError):
    """Raised when a record with the requested id does not exist."""


class DuplicateRecordError(DatabaseError):
    """Raised when an insert or update violates a UNIQUE constraint."""


def _validate_collection_name(collection: str) -> None:
    """Validate that a collection name contains only alphanumeric characters and underscores."""
    if not re.match(r"^[a-zA-Z_][a-zA-Z0-9_]*$", collection):
        msg = f"Invalid collection name: {collection}. Only alphanumeric characters and underscores are allowed."
        raise ValueError(msg)


def sanitize_param(value: str | int | float | bool | None) -> str:
    """Escape a value for safe embedding in filter queries via json.dumps."""
    return json.dumps(str(value))[1:-1]


def now_iso() -> str:
    """Current UTC time in the ISO format used for created/updated columns."""
    return datetime.now(UTC).isoformat().replace("+00:00", "Z")


def _convert_record(record: dict[str, Any]) -> dict[str, Any]:
    """Convert integer ids to strings and decode JSON columns for Pydantic compatibility."""
    converted = record.copy()
    for key, value in converted.items():
        if isinstance(value, int) and (key == "id" or key.endswith("_id")):
            converted[key] = str(value)
        elif key in JSON_FIELDS and isinstance(value, str):
            try:
                converted[key] = json.loads(value)
            except json.JSONDecodeError:
                logger.warning("Undecodable JSON column", extra={"column": key})
    return converted


def _serialize_value(val: Any) -> Any:
    """Convert a Python value to something SQLite can bind."""
    if isinstance(val, datetime | date):
        return val.isoformat()
    if isinstance(val, dict | list):
        return json.dumps(val)
    return val


def get_db_path(db_path: str | None = None) -> Path:
    """Get the resolved SQLite database file path."""
    path_str = db_path or settings.sqlite_db_path
    return Path(path_str).resolve()


# One `field op "value"` comparison; the value is a JSON string body, as written by sanitize_param
_COMPARISON_RE = re.compile(r'\s*(\w+)\s*(!=|>=|<=|=|>|<)\s*"((?:[^"\\]|\\.)*)"\s*')
_CONJUNCTION_RE = re.compile(r"&&")


def _parse_value(value: str) -> str | int:
    """Parse a filter value to the type SQLite should compare against."""
    if value.isascii() and value.isdigit():
        return int(value)
    return value


def parse_filter(filter_query: str) -> tuple[str, list[str | int]]:
    """Parse `field = "value" && ...` filter syntax into a SQL WHERE clause and parameters.

    Values may contain escaped quotes and backslashes (see ``sanitize_param``).

    Raises:
        ValueError: If the filter is malformed
    """
    if not filter_query:
        return "", []

    conditions = []
    params: list[str | int] = []
    pos = 0
    while True:
        match = _COMPARISON_RE.match(filter_query, pos)
        if not match:
            msg = f"Invalid filter syntax: {filter_query}"
            raise ValueError(msg)

        field, op, raw_value = match.groups()
        try:
            value = json.loads(f'"{raw_value}"')
        except json.JSONDecodeError as e:
            msg = f"Invalid filter value: {raw_value}"
            raise ValueError(msg) from e

        conditions.append(f"{field} {op} ?")
        params.append(_parse_value(value))

        pos = match.end()
        if pos == len(filter_query):
            break
        conjunction = _CONJUNCTION_RE.match(filter_query, pos)
        if not conjunction:
            msg = f"Invalid filter syntax: {filter_query}"
            raise ValueError(msg)
        pos = conjunction.end()

    return " AND ".join(conditions), params


def _parse_sort(sort: str) -> str:
    """Translate `-field` / `+field` / `field DESC` sort strings into an ORDER BY clause."""
    clauses = []
    for raw_part in sort.split(","):
        part = raw_part.strip()
        if not part:
            continue
        if part[0] in "+-":
            direction = "DESC" if part[0] == "-" else "ASC"
            part = f"{part[1:]} {direction}"
        if not re.match(r"^[A-Za-z_][A-Za-z0-9_]*(\s+(ASC|DESC))?$", part, re.IGNORECASE):
            logger.warning("Invalid sort parameter, using default", extra={"sort": sort})
            return "id ASC"
        clauses.append(part)
    clauses.append("id ASC")
    return ", ".join(clauses)


_db_connections: dict[tuple[int, int, str], aiosqlite.Connection] = {}
_db_lock = asyncio.Lock()


async def get_connection(*, db_path: str | None = None) -> aiosqlite.Connection:
    """Get or create a cached connection for the current thread, loop, and db path."""
    thread_id = threading.get_ident()
    loop_id = id(asyncio.get_running_loop())
    path = get_db_path(db_path)
    cache_key = (thread_id, loop_id, str(path))

    if cache_key in _db_connections:
        return _db_connections[cache_key]

    async with _db_lock:
        # Double-check after acquiring lock
        if cache_key in _db_connections:
            return _db_connections[cache_key]

        path.parent.mkdir(parents=True, exist_ok=True)

        conn = await aiosqlite.connect(str(path))
        await conn.execute("PRAGMA foreign_keys = ON")
        await conn.execute("PRAGMA journal_mode = WAL")

        _db_connections[cache_key] = conn

        logger.info(
            "Created new SQLite connection",
            extra={"db_path": str(path), "thread_id": thread_id, "loop_id": loop_id},
        )
        return conn


async def close_connection(*, db_path: str | None = None) -> None:
    """Close the cached SQLite connection for the current thread, loop, and db path."""
    thread_id = threading.get_ident()
    loop_id = id(asyncio.get_running_loop())
    path = get_db_path(db_path)
    cache_key = (thread_id, loop_id, str(path))

    if cache_key not in _db_connections:
        return

    try:
        async with _db_lock:
            conn = _db_connections.pop(cache_key, None)
            if conn is not None:
                await conn.close()
                logger.info("Closed SQLite connection", extra={"db_path": str(path)})
    except Exception as e:
        logger.warning("Error closing SQLite connection", extra={"error": str(e)})


async def init_db(*, db_path: str | None = None) -> None:
    """Initialize the database schema by delegating to schema.init_db()."""
    from src.core import schema

    await schema.init_db(db_path=db_path)


def _raise_storage_error(*, operation: str, collection: str, error: Exception) -> None:
    """Translate an aiosqlite failure into the client's error hierarchy."""
    if isinstance(error, aiosqlite.IntegrityError) and "UNIQUE" in str(error):
        logger.warning("unique_constraint_violation", extra={"collection": collection, "operation": operation})
        msg = f"Duplicate record in {collection}: {error}"
        raise DuplicateRecordError(msg) from error
    if isinstance(error, aiosqlite.OperationalError) and "no such table" in str(error):
        logger.error("Table not found", extra={"collection": collection})
        msg = f"Table '{collection}' does not exist. Call init_db() first."
        raise DatabaseError(msg) from error
    logger.error(f"{operation}_failed", extra={"collection": collection, "error": str(error)})
    msg = f"Failed to {operation.replace('_', ' ')} in {collection}: {error}"
    raise DatabaseError(msg) from error


async def create_record(*, collection: str, data: dict[str, Any]) -> dict[str, Any]:
    """Insert a new record and return it with its assigned id and timestamps."""
    _validate_collection_name(collection)
    timestamp = now_iso()
    row = {"created": timestamp, "updated": timestamp, **data}

    try:
        conn = await get_connection()

        columns = list(row.keys())
        columns_str = ", ".join(columns)
        placeholders_str = ", ".join("?" for _ in columns)
        values = [_serialize_value(row[key]) for key in columns]

        query = f"INSERT INTO {collection} ({columns_str}) VALUES ({placeholders_str})"  # noqa: S608 - collection is validated
        cursor = await conn.execute(query, values)
        await conn.commit()
        record_id = cursor.lastrowid
    except Exception as e:
        _raise_storage_error(operation="create_record", collection=collection, error=e)

    logger.info("Created record", extra={"collection": collection, "record_id": record_id})
    return await get_record(collection=collection, record_id=str(record_id))


async def get_record(*, collection: str, record_id: str) -> dict[str, Any]:
    """Fetch a single record by ID, raising RecordNotFoundError if not found."""
    _validate_collection_name(collection)
    if not str(record_id).isdigit():
        msg = f"Record not found in {collection}: {record_id}"
        raise RecordNotFoundError(msg)

    try:
        conn = await get_connection()

        query = f"SELECT * FROM {collection} WHERE id = ?"  # noqa: S608 - collection is validated
        cursor = await conn.execute(query, (int(record_id),))
        row = await cursor.fetchone()
        columns = [description[0] for description in cursor.description]
    except Exception as e:
        _raise_storage_error(operation="get_record", collection=collection, error=e)

    if row is None:
        msg = f"Record not found in {collection}: {record_id}"
        raise RecordNotFoundError(msg)

    logger.debug("Retrieved record", extra={"collection": collection, "record_id": record_id})
    return _convert_record(dict(zip(columns, row, strict=True)))


async def update_record(*, collection: str, record_id: str, data: dict[str, Any]) -> dict[str, Any]:
    """Update a record by ID, refresh its `updated` timestamp, and return it."""
    if not data:
        msg = "Empty update payload"
        raise ValueError(msg)

    _validate_collection_name(collection)
    # Raises RecordNotFoundError before attempting the write
    await get_record(collection=collection, record_id=record_id)

    row = {**data, "updated": now_iso()}
    try:
        conn = await get_connection()

        set_clause = ", ".join(f"{key} = ?" for key in row)
        values = [_serialize_value(val) for val in row.values()]
        values.append(int(record_id))

        query = f"UPDATE {collection} SET {set_clause} WHERE id = ?"  # noqa: S608 - collection is validated
        await conn.execute(query, values)
        await conn.commit()
    except Exception as e:
        _raise_storage_error(operation="update_record", collection=collection, error=e)

    logger.info("Updated record", extra={"collection": collection, "record_id": record_id})
    return await get_record(collection=collection, record_id=record_id)


async def delete_record(*, collection: str, record_id: str) -> None:
    """Delete a record by ID, raising RecordNotFoundError if not found."""
    _validate_collection_name(collection)
    if not str(record_id).isdigit():
        msg = f"Record not found in {collection}: {record_id}"
        raise RecordNotFoundError(msg)

    try:
        conn = await get_connection()

        query = f"DELETE FROM {collection} WHERE id = ?"  # noqa: S608 - collection is validated
        cursor = await conn.execute(query, (int(record_id),))
        await conn.commit()
        deleted = cursor.rowcount
    except Exception as e:
        _raise_storage_error(operation="delete_record", collection=collection, error=e)

    if deleted == 0:
        msg = f"Record not found in {collection}: {record_id}"
        raise RecordNotFoundError(msg)

    logger.info("Deleted record", extra={"collection": collection, "record_id": record_id})


async def list_records(
    *,
    collection: str,
    page: int = 1,
    per_page: int = 50,
    filter_query: str = "",
    sort: str = "",
) -> list[dict[str, Any]]:
    """List records with optional filtering, sorting, and pagination."""
    _validate_collection_name(collection)

    where_clause = ""
    params: list[Any] = []
    if filter_query:
        where_clause, params = parse_filter(filter_query)
        where_clause = f"WHERE {where_clause}"

    order_by = _parse_sort(sort) if sort else "id ASC"
    offset = (page - 1) * per_page

    try:
        conn = await get_connection()

        query = f"SELECT * FROM {collection} {where_clause} ORDER BY {order_by} LIMIT ? OFFSET ?"  # noqa: S608 - collection is validated
        params.extend([per_page, offset])

        cursor = await conn.execute(query, params)
        rows = await cursor.fetchall()
        columns = [description[0] for description in cursor.description]
    except Exception as e:
        _raise_storage_error(operation="list_records", collection=collection, error=e)

    records = [_convert_record(dict(zip(columns, row, strict=True))) for row in rows]
    logger.debug("Listed records", extra={"collection": collection, "count": len(records)})
    return records


async def get_first_record(*, collection: str, filter_query: str) -> dict[str, Any] | None:
    """Return the first record matching the filter, or None."""
    records = await list_records(collection=collection, per_page=1, filter_query=filter_query)
    return records[0] if records else None
