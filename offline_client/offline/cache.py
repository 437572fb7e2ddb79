"""
Offline Cache

SQLite-based mirror of the Trickipedia catalog for offline browsing.
Each collection stores denormalized JSON snapshots keyed by identifier;
tricks carry two extra indexed columns for category / subcategory lookups.
"""

import json
import logging
import os
from dataclasses import dataclass
from typing import Optional, List, Dict, Any, Iterable, Tuple

import aiosqlite

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Collection:
    """A named object store inside the offline cache."""
    name: str
    table: str
    key_field: str


COLLECTIONS: Dict[str, Collection] = {
    "tricks": Collection("tricks", "tricks", "id"),
    "categories": Collection("categories", "categories", "id"),
    "subcategories": Collection("subcategories", "subcategories", "id"),
    "user_progress": Collection("user_progress", "user_progress", "trick_id"),
}

# Secondary indexes on the tricks collection: index name -> (column, payload path)
TRICK_INDEXES: Dict[str, Tuple[str, Tuple[str, ...]]] = {
    "by-category": ("category_slug", ("subcategory", "master_category", "slug")),
    "by-subcategory": ("subcategory_slug", ("subcategory", "slug")),
}

LAST_SYNC_KEY = "lastSync"


def _dig(record: Dict[str, Any], path: Tuple[str, ...]) -> Optional[str]:
    """Follow a nested key path, returning None when any hop is missing."""
    value: Any = record
    for part in path:
        if not isinstance(value, dict):
            return None
        value = value.get(part)
    return value if isinstance(value, str) else None


class OfflineCache:
    """
    SQLite-based offline cache for the catalog client.

    Features:
    - Named collections (tricks, categories, subcategories, user_progress)
    - Tricks indexed by category slug and subcategory slug
    - Sync metadata (last successful sync timestamp)
    - Wholesale overwrite of records on every sync
    """

    def __init__(self, db_path: Optional[str] = None):
        """
        Initialize the cache.

        Args:
            db_path: Path to SQLite database. Defaults to ~/.trickipedia_offline.db
        """
        if db_path is None:
            db_path = os.path.expanduser("~/.trickipedia_offline.db")

        self.db_path = db_path
        self._db: Optional[aiosqlite.Connection] = None

    @classmethod
    async def open(cls, db_path: Optional[str] = None) -> "OfflineCache":
        """Create a cache and connect it, returning a ready handle."""
        cache = cls(db_path)
        await cache.connect()
        return cache

    async def connect(self):
        """Connect to the database and initialize tables."""
        self._db = await aiosqlite.connect(self.db_path)
        await self._init_tables()
        logger.info(f"Connected to offline cache: {self.db_path}")

    async def close(self):
        """Close the database connection."""
        if self._db:
            await self._db.close()
            self._db = None

    async def __aenter__(self) -> "OfflineCache":
        if self._db is None:
            await self.connect()
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()

    @property
    def is_connected(self) -> bool:
        return self._db is not None

    def _conn(self) -> aiosqlite.Connection:
        if self._db is None:
            raise RuntimeError("OfflineCache is not connected; call connect() first")
        return self._db

    async def _init_tables(self):
        """Initialize database tables."""
        db = self._conn()

        await db.execute("""
            CREATE TABLE IF NOT EXISTS tricks (
                id TEXT PRIMARY KEY,
                category_slug TEXT,
                subcategory_slug TEXT,
                payload TEXT NOT NULL,
                cached_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        """)

        for table in ("categories", "subcategories"):
            await db.execute(f"""
                CREATE TABLE IF NOT EXISTS {table} (
                    id TEXT PRIMARY KEY,
                    payload TEXT NOT NULL,
                    cached_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                )
            """)

        await db.execute("""
            CREATE TABLE IF NOT EXISTS user_progress (
                trick_id TEXT PRIMARY KEY,
                payload TEXT NOT NULL,
                cached_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        """)

        await db.execute("""
            CREATE TABLE IF NOT EXISTS metadata (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL,
                updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        """)

        await db.execute("""
            CREATE INDEX IF NOT EXISTS idx_tricks_category
            ON tricks(category_slug)
        """)

        await db.execute("""
            CREATE INDEX IF NOT EXISTS idx_tricks_subcategory
            ON tricks(subcategory_slug)
        """)

        await db.commit()

    # Generic collection access

    @staticmethod
    def _collection(name: str) -> Collection:
        try:
            return COLLECTIONS[name]
        except KeyError:
            raise ValueError(f"Unknown collection: {name}") from None

    @staticmethod
    def _record_key(collection: Collection, record: Dict[str, Any]) -> str:
        key = record.get(collection.key_field)
        if key is None or key == "":
            raise ValueError(
                f"Record for '{collection.name}' is missing key field '{collection.key_field}'"
            )
        return str(key)

    def _rows_for(
        self,
        collection: Collection,
        records: Iterable[Dict[str, Any]]
    ) -> List[tuple]:
        rows = []
        for record in records:
            key = self._record_key(collection, record)
            payload = json.dumps(record)
            if collection.name == "tricks":
                category_slug = _dig(record, TRICK_INDEXES["by-category"][1])
                subcategory_slug = _dig(record, TRICK_INDEXES["by-subcategory"][1])
                rows.append((key, category_slug, subcategory_slug, payload))
            else:
                rows.append((key, payload))
        return rows

    async def put_many(self, collection_name: str, records: Iterable[Dict[str, Any]]) -> int:
        """
        Overwrite records in a collection, keyed by identifier.

        Args:
            collection_name: One of COLLECTIONS
            records: Denormalized records; each must carry the key field

        Returns:
            Number of records written
        """
        collection = self._collection(collection_name)
        rows = self._rows_for(collection, records)
        db = self._conn()

        if collection.name == "tricks":
            query = """
                INSERT OR REPLACE INTO tricks
                (id, category_slug, subcategory_slug, payload, cached_at)
                VALUES (?, ?, ?, ?, CURRENT_TIMESTAMP)
            """
        else:
            query = f"""
                INSERT OR REPLACE INTO {collection.table}
                ({collection.key_field}, payload, cached_at)
                VALUES (?, ?, CURRENT_TIMESTAMP)
            """

        await db.executemany(query, rows)
        await db.commit()

        logger.debug(f"Cached {len(rows)} records into {collection.name}")
        return len(rows)

    async def get_all(self, collection_name: str) -> List[Dict[str, Any]]:
        """Get every record of a collection, ordered by key."""
        collection = self._collection(collection_name)
        query = f"SELECT payload FROM {collection.table} ORDER BY {collection.key_field}"
        return await self._fetch_payloads(query)

    async def get(self, collection_name: str, key: Any) -> Optional[Dict[str, Any]]:
        """Get a single record by its key."""
        collection = self._collection(collection_name)
        async with self._conn().execute(
            f"SELECT payload FROM {collection.table} WHERE {collection.key_field} = ?",
            (str(key),)
        ) as cursor:
            row = await cursor.fetchone()
            return json.loads(row[0]) if row else None

    async def get_by_index(self, index: str, value: str) -> List[Dict[str, Any]]:
        """
        Get tricks through a secondary index.

        Args:
            index: "by-category" or "by-subcategory"
            value: Slug to match

        Returns:
            Matching trick records
        """
        if index not in TRICK_INDEXES:
            raise ValueError(f"Unknown index: {index}")

        column = TRICK_INDEXES[index][0]
        return await self._fetch_payloads(
            f"SELECT payload FROM tricks WHERE {column} = ? ORDER BY id",
            (value,)
        )

    async def count(self, collection_name: str) -> int:
        """Get count of records in a collection."""
        collection = self._collection(collection_name)
        async with self._conn().execute(
            f"SELECT COUNT(*) FROM {collection.table}"
        ) as cursor:
            row = await cursor.fetchone()
            return row[0] if row else 0

    async def clear(self, collection_name: str):
        """Remove every record from a collection."""
        collection = self._collection(collection_name)
        await self._conn().execute(f"DELETE FROM {collection.table}")
        await self._conn().commit()

    async def _fetch_payloads(self, query: str, params: tuple = ()) -> List[Dict[str, Any]]:
        items = []
        async with self._conn().execute(query, params) as cursor:
            async for row in cursor:
                items.append(json.loads(row[0]))
        return items

    # Tricks

    async def cache_tricks(self, tricks: List[Dict[str, Any]]) -> int:
        return await self.put_many("tricks", tricks)

    async def get_cached_tricks(
        self,
        category_slug: Optional[str] = None,
        subcategory_slug: Optional[str] = None
    ) -> List[Dict[str, Any]]:
        """
        Get cached tricks, optionally narrowed by slug.

        The subcategory filter takes precedence when both are given.
        """
        if subcategory_slug:
            return await self.get_by_index("by-subcategory", subcategory_slug)
        if category_slug:
            return await self.get_by_index("by-category", category_slug)
        return await self.get_all("tricks")

    async def get_cached_trick(self, trick_id: str) -> Optional[Dict[str, Any]]:
        return await self.get("tricks", trick_id)

    # Categories

    async def cache_categories(self, categories: List[Dict[str, Any]]) -> int:
        return await self.put_many("categories", categories)

    async def get_cached_categories(self) -> List[Dict[str, Any]]:
        return await self.get_all("categories")

    async def cache_subcategories(self, subcategories: List[Dict[str, Any]]) -> int:
        return await self.put_many("subcategories", subcategories)

    async def get_cached_subcategories(self) -> List[Dict[str, Any]]:
        return await self.get_all("subcategories")

    # User progress

    async def cache_user_progress(self, progress: List[Dict[str, Any]]) -> int:
        return await self.put_many("user_progress", progress)

    async def get_cached_user_progress(self) -> List[Dict[str, Any]]:
        return await self.get_all("user_progress")

    # Metadata

    async def set_last_sync(self, timestamp: float):
        """Record the epoch timestamp of the last successful sync."""
        await self._conn().execute("""
            INSERT OR REPLACE INTO metadata (key, value, updated_at)
            VALUES (?, ?, CURRENT_TIMESTAMP)
        """, (LAST_SYNC_KEY, json.dumps(timestamp)))
        await self._conn().commit()

    async def get_last_sync(self) -> Optional[float]:
        """Get the last sync timestamp, or None if never synced."""
        async with self._conn().execute(
            "SELECT value FROM metadata WHERE key = ?",
            (LAST_SYNC_KEY,)
        ) as cursor:
            row = await cursor.fetchone()
            return float(json.loads(row[0])) if row else None

    async def clear_all(self):
        """Clear all cached catalog data. Sync metadata is kept."""
        for name in COLLECTIONS:
            await self._conn().execute(f"DELETE FROM {COLLECTIONS[name].table}")
        await self._conn().commit()
        logger.info("Cleared offline cache")

    # Statistics

    async def get_cache_stats(self) -> Dict[str, Any]:
        """Get cache statistics."""
        stats: Dict[str, Any] = {}

        stats["collections"] = {
            name: await self.count(name) for name in COLLECTIONS
        }
        stats["last_sync"] = await self.get_last_sync()

        try:
            stats["db_size_bytes"] = os.path.getsize(self.db_path)
        except OSError:
            stats["db_size_bytes"] = 0

        return stats
