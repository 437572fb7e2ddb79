"""
CatalogStore: SQLite-backed trick catalog.

Holds master categories (sports), subcategories, tricks, users and the
per-user "can do" records. Tricks are returned denormalized: each one embeds
its subcategory and master category so clients can cache it standalone.
"""

import json
import logging
import sqlite3
import uuid
from contextlib import closing
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from backend.config import get_settings

logger = logging.getLogger(__name__)

# Trick columns stored as JSON text
JSON_FIELDS = (
    "step_by_step_guide",
    "video_urls",
    "image_urls",
    "tags",
    "source_urls",
    "prerequisite_ids",
    "components",
)

BOOL_FIELDS = ("is_published", "is_combo")

# Columns a null update leaves unchanged
NOT_NULL_FIELDS = ("name",) + BOOL_FIELDS

# Trick columns a caller may set on create/update
TRICK_FIELDS = (
    "subcategory_id",
    "name",
    "slug",
    "description",
    "difficulty_level",
    "tips_and_tricks",
    "common_mistakes",
    "safety_notes",
    "inventor_name",
    "created_by",
) + JSON_FIELDS + BOOL_FIELDS

TRICK_SELECT = """
    SELECT t.*,
           s.name AS sub_name, s.slug AS sub_slug,
           m.name AS cat_name, m.slug AS cat_slug, m.color AS cat_color
    FROM tricks t
    JOIN subcategories s ON s.id = t.subcategory_id
    JOIN master_categories m ON m.id = s.master_category_id
"""


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class CatalogStore:
    """
    Trick catalog on SQLite.

    Features:
    - Categories, subcategories and tricks with slug lookups
    - Denormalized trick reads for bulk offline sync
    - View counting and per-user "can do" tracking
    - User XP ledger with profile creation on first award
    """

    def __init__(self, db_path: str = None):
        """
        Initialize the catalog store.

        Args:
            db_path: Path to SQLite database file
        """
        if db_path is None:
            db_path = get_settings().database_path

        self.db_path = db_path
        self._init_db()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        return conn

    def _init_db(self):
        """Create the database tables if they don't exist."""
        with closing(self._connect()) as conn, conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS master_categories (
                    id TEXT PRIMARY KEY,
                    name TEXT NOT NULL,
                    slug TEXT NOT NULL UNIQUE,
                    description TEXT,
                    color TEXT,
                    sort_order INTEGER DEFAULT 0,
                    is_active BOOLEAN DEFAULT TRUE,
                    created_at TEXT NOT NULL
                )
            """)
            conn.execute("""
                CREATE TABLE IF NOT EXISTS subcategories (
                    id TEXT PRIMARY KEY,
                    master_category_id TEXT NOT NULL REFERENCES master_categories(id),
                    name TEXT NOT NULL,
                    slug TEXT NOT NULL,
                    description TEXT,
                    sort_order INTEGER DEFAULT 0,
                    is_active BOOLEAN DEFAULT TRUE,
                    created_at TEXT NOT NULL,
                    UNIQUE (master_category_id, slug)
                )
            """)
            conn.execute("""
                CREATE TABLE IF NOT EXISTS tricks (
                    id TEXT PRIMARY KEY,
                    subcategory_id TEXT NOT NULL REFERENCES subcategories(id),
                    name TEXT NOT NULL,
                    slug TEXT NOT NULL,
                    description TEXT,
                    difficulty_level INTEGER,
                    step_by_step_guide TEXT,
                    tips_and_tricks TEXT,
                    common_mistakes TEXT,
                    safety_notes TEXT,
                    video_urls TEXT,
                    image_urls TEXT,
                    tags TEXT,
                    source_urls TEXT,
                    prerequisite_ids TEXT,
                    components TEXT,
                    view_count INTEGER DEFAULT 0,
                    is_published BOOLEAN DEFAULT TRUE,
                    is_combo BOOLEAN DEFAULT FALSE,
                    inventor_name TEXT,
                    created_by TEXT,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL,
                    UNIQUE (subcategory_id, slug)
                )
            """)
            conn.execute("""
                CREATE TABLE IF NOT EXISTS users (
                    id TEXT PRIMARY KEY,
                    email TEXT,
                    role TEXT DEFAULT 'user',
                    xp INTEGER DEFAULT 0,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
            """)
            conn.execute("""
                CREATE TABLE IF NOT EXISTS user_tricks (
                    user_id TEXT NOT NULL,
                    trick_id TEXT NOT NULL REFERENCES tricks(id),
                    can_do BOOLEAN DEFAULT TRUE,
                    achieved_at TEXT,
                    PRIMARY KEY (user_id, trick_id)
                )
            """)
            conn.execute("CREATE INDEX IF NOT EXISTS idx_tricks_subcategory ON tricks(subcategory_id)")
            conn.execute("CREATE INDEX IF NOT EXISTS idx_tricks_updated ON tricks(updated_at)")
            conn.execute("CREATE INDEX IF NOT EXISTS idx_subcategories_master ON subcategories(master_category_id)")

    def _execute(self, query: str, params: list = None) -> sqlite3.Cursor:
        """Execute a write and return the cursor."""
        with closing(self._connect()) as conn, conn:
            return conn.execute(query, params or [])

    def _fetch_all(self, query: str, params: list = None) -> List[Dict]:
        """Execute query and fetch all results as dicts."""
        with closing(self._connect()) as conn:
            return [dict(row) for row in conn.execute(query, params or []).fetchall()]

    def _fetch_one(self, query: str, params: list = None) -> Optional[Dict]:
        """Execute query and fetch one result as dict."""
        with closing(self._connect()) as conn:
            row = conn.execute(query, params or []).fetchone()
            return dict(row) if row else None

    # ==================== Categories ====================

    def create_category(
        self,
        name: str,
        slug: str,
        description: str = None,
        color: str = None,
        sort_order: int = 0,
        is_active: bool = True
    ) -> Dict:
        """Create a master category (a sport or discipline)."""
        category_id = str(uuid.uuid4())
        self._execute(
            """
            INSERT INTO master_categories (id, name, slug, description, color, sort_order, is_active, created_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            """,
            [category_id, name, slug, description, color, sort_order, is_active, _now()]
        )
        logger.info(f"Created category {slug}")
        return self.get_category_by_slug(slug)

    def create_subcategory(
        self,
        master_category_id: str,
        name: str,
        slug: str,
        description: str = None,
        sort_order: int = 0,
        is_active: bool = True
    ) -> Dict:
        """Create a subcategory under a master category."""
        subcategory_id = str(uuid.uuid4())
        self._execute(
            """
            INSERT INTO subcategories (id, master_category_id, name, slug, description, sort_order, is_active, created_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            """,
            [subcategory_id, master_category_id, name, slug, description, sort_order, is_active, _now()]
        )
        return self._fetch_one("SELECT * FROM subcategories WHERE id = ?", [subcategory_id])

    def _category_query(self, where: str) -> str:
        return f"""
            SELECT m.*,
                   (SELECT COUNT(*) FROM tricks t
                    JOIN subcategories s ON s.id = t.subcategory_id
                    WHERE s.master_category_id = m.id AND t.is_published) AS trick_count
            FROM master_categories m
            {where}
        """

    @staticmethod
    def _category_to_dict(row: Dict) -> Dict:
        row["is_active"] = bool(row["is_active"])
        return row

    def list_categories(self, active_only: bool = True) -> List[Dict]:
        """List master categories with their published trick counts."""
        where = "WHERE m.is_active" if active_only else ""
        rows = self._fetch_all(self._category_query(where) + " ORDER BY m.sort_order, m.name")
        return [self._category_to_dict(r) for r in rows]

    def get_category_by_slug(self, slug: str) -> Optional[Dict]:
        row = self._fetch_one(self._category_query("WHERE m.slug = ?"), [slug])
        return self._category_to_dict(row) if row else None

    def list_subcategories(self, category_slug: str = None) -> List[Dict]:
        query = """
            SELECT s.* FROM subcategories s
            JOIN master_categories m ON m.id = s.master_category_id
        """
        params = []
        if category_slug:
            query += " WHERE m.slug = ?"
            params.append(category_slug)
        return self._fetch_all(query + " ORDER BY s.sort_order, s.name", params)

    def get_navigation(self) -> List[Dict]:
        """
        Category -> subcategory -> trick tree for browsing.

        Only active categories and subcategories appear, and only published
        tricks. Tricks are ordered by difficulty (unset first), then name.
        """
        categories = self._fetch_all(
            """
            SELECT id, name, slug, color, sort_order FROM master_categories
            WHERE is_active ORDER BY sort_order, name
            """
        )
        subcategories = self._fetch_all(
            """
            SELECT id, master_category_id, name, slug, sort_order FROM subcategories
            WHERE is_active ORDER BY sort_order, name
            """
        )
        tricks = self._fetch_all(
            """
            SELECT id, subcategory_id, name, slug, difficulty_level FROM tricks
            WHERE is_published ORDER BY COALESCE(difficulty_level, 0), name
            """
        )

        tricks_by_sub: Dict[str, List[Dict]] = {}
        for trick in tricks:
            tricks_by_sub.setdefault(trick.pop("subcategory_id"), []).append(trick)

        subs_by_cat: Dict[str, List[Dict]] = {}
        for sub in subcategories:
            sub["tricks"] = tricks_by_sub.get(sub["id"], [])
            subs_by_cat.setdefault(sub.pop("master_category_id"), []).append(sub)

        for category in categories:
            category["subcategories"] = subs_by_cat.get(category["id"], [])
        return categories

    # ==================== Tricks ====================

    @staticmethod
    def _trick_to_dict(row: Dict) -> Dict:
        """Decode JSON columns and nest the joined subcategory/category."""
        trick = dict(row)
        for name in JSON_FIELDS:
            value = trick.get(name)
            trick[name] = json.loads(value) if value else []
        for name in BOOL_FIELDS:
            trick[name] = bool(trick.get(name))

        trick["subcategory"] = {
            "name": trick.pop("sub_name"),
            "slug": trick.pop("sub_slug"),
            "master_category": {
                "name": trick.pop("cat_name"),
                "slug": trick.pop("cat_slug"),
                "color": trick.pop("cat_color"),
            },
        }
        return trick

    @staticmethod
    def _encode(field: str, value: Any) -> Any:
        if field in JSON_FIELDS:
            return json.dumps(value) if value is not None else None
        return value

    def create_trick(self, data: Dict[str, Any]) -> Dict:
        """
        Create a trick.

        Args:
            data: Trick fields; subcategory_id, name and slug are required

        Returns:
            The stored trick, denormalized

        Raises:
            sqlite3.IntegrityError: unknown subcategory or duplicate slug
        """
        trick_id = str(uuid.uuid4())
        now = _now()
        fields = [f for f in TRICK_FIELDS if f in data]
        columns = ["id", "created_at", "updated_at"] + fields
        values = [trick_id, now, now] + [self._encode(f, data[f]) for f in fields]
        placeholders = ", ".join("?" for _ in columns)

        self._execute(
            f"INSERT INTO tricks ({', '.join(columns)}) VALUES ({placeholders})",
            values
        )
        logger.info(f"Created trick {data.get('slug')} ({trick_id})")
        return self.get_trick(trick_id)

    def update_trick(self, trick_id: str, changes: Dict[str, Any]) -> Optional[Tuple[Dict, Dict]]:
        """
        Update a trick.

        A None for name, is_published or is_combo leaves that column as is.

        Returns:
            (old, new) denormalized tricks, or None if the trick doesn't exist
        """
        old = self.get_trick(trick_id)
        if old is None:
            return None

        fields = [
            f for f in TRICK_FIELDS
            if f in changes and f != "created_by"
            and not (f in NOT_NULL_FIELDS and changes[f] is None)
        ]
        if fields:
            assignments = ", ".join(f"{f} = ?" for f in fields)
            values = [self._encode(f, changes[f]) for f in fields] + [_now(), trick_id]
            self._execute(
                f"UPDATE tricks SET {assignments}, updated_at = ? WHERE id = ?",
                values
            )

        return old, self.get_trick(trick_id)

    def get_trick(self, trick_id: str, published_only: bool = False) -> Optional[Dict]:
        query = TRICK_SELECT + " WHERE t.id = ?"
        if published_only:
            query += " AND t.is_published"
        row = self._fetch_one(query, [trick_id])
        return self._trick_to_dict(row) if row else None

    def list_all_tricks(self) -> List[Dict]:
        """Every published trick, denormalized. Feeds the offline bulk sync."""
        rows = self._fetch_all(TRICK_SELECT + " WHERE t.is_published ORDER BY t.updated_at DESC")
        return [self._trick_to_dict(r) for r in rows]

    def query_tricks(
        self,
        category: str = None,
        subcategory: str = None,
        difficulty: int = None,
        search: str = None,
        inventor_name: str = None,
        limit: int = 20,
        offset: int = 0
    ) -> Tuple[List[Dict], int]:
        """
        Filtered, paginated published tricks.

        The subcategory filter replaces the category filter when both are given.

        Returns:
            (tricks for the page, total matching count)
        """
        conditions = ["t.is_published"]
        params: List[Any] = []

        if subcategory:
            conditions.append("s.slug = ?")
            params.append(subcategory)
        elif category:
            conditions.append("m.slug = ?")
            params.append(category)

        if difficulty is not None:
            conditions.append("t.difficulty_level = ?")
            params.append(difficulty)

        if search:
            conditions.append("(t.name LIKE ? OR t.description LIKE ?)")
            pattern = f"%{search}%"
            params.extend([pattern, pattern])

        if inventor_name:
            conditions.append("t.inventor_name = ?")
            params.append(inventor_name)

        where = " WHERE " + " AND ".join(conditions)
        count_row = self._fetch_one(
            """
            SELECT COUNT(*) AS total FROM tricks t
            JOIN subcategories s ON s.id = t.subcategory_id
            JOIN master_categories m ON m.id = s.master_category_id
            """ + where,
            params
        )

        rows = self._fetch_all(
            TRICK_SELECT + where + " ORDER BY t.updated_at DESC LIMIT ? OFFSET ?",
            params + [limit, offset]
        )
        return [self._trick_to_dict(r) for r in rows], count_row["total"]

    def increment_views(self, trick_id: str) -> Optional[int]:
        """Add one view to a published trick; None if it doesn't exist."""
        cursor = self._execute(
            "UPDATE tricks SET view_count = view_count + 1 WHERE id = ? AND is_published",
            [trick_id]
        )
        if cursor.rowcount == 0:
            return None
        row = self._fetch_one("SELECT view_count FROM tricks WHERE id = ?", [trick_id])
        return row["view_count"]

    # ==================== User progress ====================

    def set_can_do(self, user_id: str, trick_id: str, can_do: bool) -> int:
        """
        Mark or unmark a trick as landed by a user.

        Marking keeps the first achieved_at; unmarking deletes the record.

        Returns:
            Number of users who can do the trick
        """
        if can_do:
            self._execute(
                """
                INSERT INTO user_tricks (user_id, trick_id, can_do, achieved_at)
                VALUES (?, ?, TRUE, ?)
                ON CONFLICT(user_id, trick_id) DO UPDATE SET can_do = TRUE
                """,
                [user_id, trick_id, _now()]
            )
        else:
            self._execute(
                "DELETE FROM user_tricks WHERE user_id = ? AND trick_id = ?",
                [user_id, trick_id]
            )

        row = self._fetch_one(
            "SELECT COUNT(*) AS n FROM user_tricks WHERE trick_id = ? AND can_do",
            [trick_id]
        )
        return row["n"]

    def get_user_tricks(self, user_id: str) -> List[Dict]:
        rows = self._fetch_all(
            "SELECT trick_id, can_do, achieved_at FROM user_tricks WHERE user_id = ? ORDER BY achieved_at",
            [user_id]
        )
        for row in rows:
            row["can_do"] = bool(row["can_do"])
        return rows

    # ==================== Users & XP ====================

    def get_user(self, user_id: str) -> Optional[Dict]:
        return self._fetch_one("SELECT * FROM users WHERE id = ?", [user_id])

    def award_xp(self, user_id: str, amount: int, reason: str = "general", email: str = None) -> int:
        """
        Add XP to a user, creating the profile if it doesn't exist yet.

        Returns:
            The user's new XP total
        """
        now = _now()
        self._execute(
            """
            INSERT INTO users (id, email, role, xp, created_at, updated_at)
            VALUES (?, ?, 'user', ?, ?, ?)
            ON CONFLICT(id) DO UPDATE SET xp = xp + excluded.xp, updated_at = excluded.updated_at
            """,
            [user_id, email, amount, now, now]
        )
        new_xp = self.get_user(user_id)["xp"]
        logger.info(f"Awarded {amount} XP to user {user_id} for {reason}; total {new_xp}")
        return new_xp


# Global store instance
_store_instance: Optional[CatalogStore] = None


def get_store() -> CatalogStore:
    """Get the global catalog store instance."""
    global _store_instance
    if _store_instance is None:
        _store_instance = CatalogStore()
    return _store_instance
