"""
Database Manager for Game Tracker
SQLite-based persistent storage for the game library and watched threads

- Schema creation with sqlite3 in a worker thread
- Connection pooling with aiosqlite for true async operations
- ThreadStore / GameStore: the record stores used by the sync and
  ingestion services, validated with msgspec at the boundary
"""

import sqlite3
import asyncio
from contextlib import asynccontextmanager
from datetime import datetime
from pathlib import Path
from typing import Optional, List, Dict, Any, Mapping

import aiosqlite
import msgspec

from game_tracker.constants import THREAD_FILTER_FIELDS, GAME_FILTER_FIELDS
from game_tracker.errors import StoreError, StoreUnavailableError
from game_tracker.logger import setup_logger
from game_tracker.models import (
    ThreadRecord,
    GameRecord,
    convert_record,
    encode_json,
    decode_tags,
)

logger = setup_logger()


class DatabaseManager:
    """
    Owns the SQLite file, its schema and the async connection pool.

    Usage:
        async with DatabaseManager(path) as db:
            threads = ThreadStore(db)
    """

    def __init__(self, db_path, pool_size: int = 3):
        self.db_path = Path(db_path)
        self.initialized = False

        # Connection pool for async operations (aiosqlite)
        self._async_pool: List[aiosqlite.Connection] = []
        self._pool_size = pool_size
        self._pool_lock = asyncio.Lock()
        self._pool_semaphore: Optional[asyncio.Semaphore] = None

        logger.info(f"Database path: {self.db_path}")

    async def __aenter__(self):
        await self.initialize()
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()

    async def initialize(self):
        """Initialize database schema and connection pool"""
        if self.initialized:
            return

        try:
            await asyncio.to_thread(self._create_schema)
        except (sqlite3.Error, OSError) as e:
            raise StoreUnavailableError(f"Cannot create database at {self.db_path}: {e}") from e

        # Initialize semaphore for connection pool
        self._pool_semaphore = asyncio.Semaphore(self._pool_size)

        # Pre-warm async connection pool
        try:
            for _ in range(self._pool_size):
                self._async_pool.append(await self._connect())
            logger.info(f"Connection pool initialized ({len(self._async_pool)} connections)")
        except (sqlite3.Error, OSError) as e:
            logger.error(f"Failed to initialize async pool: {e}")
            await self.close()
            raise StoreUnavailableError(f"Cannot open database at {self.db_path}: {e}") from e

        self.initialized = True
        logger.info("Database initialized successfully")

    async def _connect(self) -> aiosqlite.Connection:
        conn = await aiosqlite.connect(str(self.db_path))
        conn.row_factory = aiosqlite.Row
        return conn

    @asynccontextmanager
    async def get_async_connection(self):
        """
        Get an async connection from the pool.

        Usage:
            async with db_manager.get_async_connection() as conn:
                await conn.execute(...)
        """
        if not self.initialized:
            raise StoreUnavailableError("Database is not initialized")

        await self._pool_semaphore.acquire()
        conn = None

        try:
            async with self._pool_lock:
                if self._async_pool:
                    conn = self._async_pool.pop()
                else:
                    # Pool exhausted, create new connection
                    conn = await self._connect()

            yield conn

        finally:
            if conn is not None:
                async with self._pool_lock:
                    self._async_pool.append(conn)
            self._pool_semaphore.release()

    async def close(self):
        """Close all pooled connections"""
        async with self._pool_lock:
            for conn in self._async_pool:
                try:
                    await conn.close()
                except sqlite3.Error as e:
                    logger.debug(f"Error closing pooled connection: {e}")
            self._async_pool.clear()
        self.initialized = False
        logger.info("Database connections closed")

    def _create_schema(self):
        """Create database schema (runs in thread)"""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(str(self.db_path))
        cursor = conn.cursor()

        try:
            # Installed games
            cursor.execute("""
                CREATE TABLE IF NOT EXISTS games (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    remote_id INTEGER NOT NULL UNIQUE,
                    name TEXT NOT NULL,
                    version TEXT NOT NULL,
                    game_directory TEXT NOT NULL,
                    mod BOOLEAN NOT NULL DEFAULT 0,
                    author TEXT NOT NULL DEFAULT '',
                    url TEXT NOT NULL DEFAULT '',
                    remote_version TEXT NOT NULL DEFAULT '',
                    overview TEXT NOT NULL DEFAULT '',
                    tags TEXT NOT NULL DEFAULT '[]',
                    created_at TIMESTAMP NOT NULL
                )
            """)

            # Watched threads
            cursor.execute("""
                CREATE TABLE IF NOT EXISTS threads (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    remote_id INTEGER NOT NULL UNIQUE,
                    url TEXT NOT NULL,
                    name TEXT NOT NULL,
                    author TEXT NOT NULL DEFAULT '',
                    version TEXT NOT NULL DEFAULT '',
                    update_available BOOLEAN NOT NULL DEFAULT 0,
                    marked_as_read BOOLEAN NOT NULL DEFAULT 0,
                    last_synced TIMESTAMP NOT NULL
                )
            """)

            # Create indexes
            cursor.execute("CREATE INDEX IF NOT EXISTS idx_games_name ON games(name COLLATE NOCASE)")
            cursor.execute("CREATE INDEX IF NOT EXISTS idx_threads_name ON threads(name COLLATE NOCASE)")
            cursor.execute(
                "CREATE INDEX IF NOT EXISTS idx_threads_updates ON threads(update_available, marked_as_read)"
            )

            conn.commit()
            logger.info("Database schema created successfully")

        except sqlite3.Error as e:
            logger.error(f"Error creating database schema: {e}", exc_info=True)
            conn.rollback()
            raise
        finally:
            conn.close()


class _SqliteStore:
    """
    Shared find/insert/update/delete on one table.

    Subclasses describe the table, its columns and the row <-> record mapping.
    """

    table: str = ""
    record_type: type = msgspec.Struct
    id_field: str = "id"
    filter_fields: Dict[str, str] = {}

    def __init__(self, db: DatabaseManager):
        self.db = db

    # ----- mapping -----

    def _to_row(self, record) -> Dict[str, Any]:
        raise NotImplementedError

    def _from_row(self, row: Mapping[str, Any]):
        raise NotImplementedError

    def _validate(self, record):
        try:
            return convert_record(record, self.record_type)
        except msgspec.ValidationError as e:
            raise StoreError(f"Invalid {self.record_type.__name__}: {e}") from e

    def _load(self, row):
        try:
            return self._from_row(dict(zip(row.keys(), row)))
        except (msgspec.DecodeError, ValueError, TypeError) as e:
            raise StoreError(f"Malformed row in {self.table}: {e}") from e

    def _where(self, filters: Optional[Mapping[str, Any]]):
        clauses = []
        params = []
        for field_name, value in (filters or {}).items():
            column = self.filter_fields.get(field_name)
            if column is None:
                raise StoreError(f"Cannot filter {self.table} on '{field_name}'")
            clauses.append(f"{column} = ?")
            params.append(int(value) if isinstance(value, bool) else value)
        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        return where, params

    def _order(self, order_by: Optional[str]) -> str:
        if not order_by:
            return "ORDER BY id"
        column = self.filter_fields.get(order_by)
        if column is None:
            raise StoreError(f"Cannot order {self.table} by '{order_by}'")
        if column == "name":
            return "ORDER BY name COLLATE NOCASE, id"
        return f"ORDER BY {column}, id"

    # ----- store protocol -----

    async def find(self, filters: Optional[Mapping[str, Any]] = None, order_by: Optional[str] = None) -> list:
        """Records matching every field of filters (equality), ordered by order_by"""
        where, params = self._where(filters)
        query = f"SELECT * FROM {self.table} {where} {self._order(order_by)}"
        try:
            async with self.db.get_async_connection() as conn:
                async with conn.execute(query, params) as cursor:
                    rows = await cursor.fetchall()
        except sqlite3.Error as e:
            logger.error(f"Error querying {self.table}: {e}", exc_info=True)
            raise StoreError(f"Error querying {self.table}: {e}") from e
        return [self._load(row) for row in rows]

    async def insert(self, record):
        """Insert a new record and return it with its store id"""
        record = self._validate(record)
        row = self._to_row(record)
        row.pop("id", None)
        columns = ", ".join(row)
        placeholders = ", ".join("?" * len(row))

        try:
            async with self.db.get_async_connection() as conn:
                cursor = await conn.execute(
                    f"INSERT INTO {self.table} ({columns}) VALUES ({placeholders})",
                    list(row.values()),
                )
                new_id = cursor.lastrowid
                await cursor.close()
                await conn.commit()
        except sqlite3.IntegrityError as e:
            raise StoreError(f"Duplicate {self.record_type.__name__} (remote id {record.remote_id}): {e}") from e
        except sqlite3.Error as e:
            logger.error(f"Error inserting into {self.table}: {e}", exc_info=True)
            raise StoreError(f"Error inserting into {self.table}: {e}") from e

        return msgspec.structs.replace(record, **{self.id_field: new_id})

    async def update(self, record):
        """Overwrite the stored record having the same store id"""
        record = self._validate(record)
        record_id = getattr(record, self.id_field)
        if record_id is None:
            raise StoreError(f"Cannot update a {self.record_type.__name__} without {self.id_field}")

        row = self._to_row(record)
        row.pop("id", None)
        assignments = ", ".join(f"{column} = ?" for column in row)

        try:
            async with self.db.get_async_connection() as conn:
                cursor = await conn.execute(
                    f"UPDATE {self.table} SET {assignments} WHERE id = ?",
                    [*row.values(), record_id],
                )
                affected_rows = cursor.rowcount
                await cursor.close()
                await conn.commit()
        except sqlite3.Error as e:
            logger.error(f"Error updating {self.table}: {e}", exc_info=True)
            raise StoreError(f"Error updating {self.table}: {e}") from e

        if affected_rows == 0:
            raise StoreError(f"No {self.record_type.__name__} with {self.id_field}={record_id}")

    async def delete(self, record_id: int):
        """Delete by store id, deleting a missing record is not an error"""
        try:
            async with self.db.get_async_connection() as conn:
                await conn.execute(f"DELETE FROM {self.table} WHERE id = ?", (record_id,))
                await conn.commit()
        except sqlite3.Error as e:
            logger.error(f"Error deleting from {self.table}: {e}", exc_info=True)
            raise StoreError(f"Error deleting from {self.table}: {e}") from e

    async def find_by_remote_id(self, remote_id: int):
        records = await self.find({"remote_id": remote_id})
        return records[0] if records else None

    async def count(self) -> int:
        try:
            async with self.db.get_async_connection() as conn:
                async with conn.execute(f"SELECT COUNT(*) FROM {self.table}") as cursor:
                    row = await cursor.fetchone()
        except sqlite3.Error as e:
            raise StoreError(f"Error counting {self.table}: {e}") from e
        return row[0]


class ThreadStore(_SqliteStore):
    """Watched threads, one per remote id"""

    table = "threads"
    record_type = ThreadRecord
    id_field = "internal_id"
    filter_fields = THREAD_FILTER_FIELDS

    def _to_row(self, record: ThreadRecord) -> Dict[str, Any]:
        return {
            "id": record.internal_id,
            "remote_id": record.remote_id,
            "url": record.url,
            "name": record.name,
            "author": record.author,
            "version": record.version,
            "update_available": int(record.update_available),
            "marked_as_read": int(record.marked_as_read),
            "last_synced": record.last_synced.isoformat(),
        }

    def _from_row(self, row: Mapping[str, Any]) -> ThreadRecord:
        return ThreadRecord(
            internal_id=row["id"],
            remote_id=row["remote_id"],
            url=row["url"],
            name=row["name"],
            author=row["author"],
            version=row["version"],
            update_available=bool(row["update_available"]),
            marked_as_read=bool(row["marked_as_read"]),
            last_synced=datetime.fromisoformat(row["last_synced"]),
        )


class GameStore(_SqliteStore):
    """Installed games, one per remote id"""

    table = "games"
    record_type = GameRecord
    id_field = "id"
    filter_fields = GAME_FILTER_FIELDS

    def _to_row(self, record: GameRecord) -> Dict[str, Any]:
        return {
            "id": record.id,
            "remote_id": record.remote_id,
            "name": record.name,
            "version": record.version,
            "game_directory": record.game_directory,
            "mod": int(record.mod),
            "author": record.author,
            "url": record.url,
            "remote_version": record.remote_version,
            "overview": record.overview,
            "tags": encode_json(record.tags).decode("utf-8"),
            "created_at": record.created_at.isoformat(),
        }

    def _from_row(self, row: Mapping[str, Any]) -> GameRecord:
        return GameRecord(
            id=row["id"],
            remote_id=row["remote_id"],
            name=row["name"],
            version=row["version"],
            game_directory=row["game_directory"],
            mod=bool(row["mod"]),
            author=row["author"],
            url=row["url"],
            remote_version=row["remote_version"],
            overview=row["overview"],
            tags=decode_tags(row["tags"].encode("utf-8")),
            created_at=datetime.fromisoformat(row["created_at"]),
        )

    async def search(self, query: str) -> List[GameRecord]:
        """Library entries whose name contains query (case-insensitive), by name"""
        query = query.strip()
        if not query:
            return await self.find(order_by="name")

        # Escape LIKE wildcards so "100%" matches literally
        pattern = "%" + query.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_") + "%"
        try:
            async with self.db.get_async_connection() as conn:
                async with conn.execute(
                    "SELECT * FROM games WHERE name LIKE ? ESCAPE '\\' ORDER BY name COLLATE NOCASE, id",
                    (pattern,),
                ) as cursor:
                    rows = await cursor.fetchall()
        except sqlite3.Error as e:
            logger.error(f"Error searching games: {e}", exc_info=True)
            raise StoreError(f"Error searching games: {e}") from e
        return [self._load(row) for row in rows]
