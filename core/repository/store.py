# Path: core/repository/store.py
# Purpose: Persist repository images and their matching rules in SQLite.
# Layer: core/repository.
# Details: Rules reference images with ON DELETE CASCADE; deletes are idempotent no-ops for unknown ids.

from __future__ import annotations

import json
import logging
import sqlite3
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Optional, Sequence

from config.settings import AppSettings
from core.errors import NotFoundError, ValidationError
from core.matching.rules import default_priority, normalize_keywords
from core.models.domain import ImageBlob, MatchingRule, RepositoryImage, RuleFilters
from .imaging import make_thumbnail_data_url, validate_image_payload

logger = logging.getLogger(__name__)

DEFAULT_MIME_TYPES = ("image/jpeg", "image/png", "image/webp")

_RULE_COLUMNS = """
    r.id, r.image_id, r.brand_name, r.category, r.strain, r.strain_type,
    r.product_name_keywords, r.priority, r.created_at, ri.name
"""


def _utcnow() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="microseconds")


def _parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    return datetime.fromisoformat(value) if value else None


def _row_to_rule(row: Sequence) -> MatchingRule:
    keywords = json.loads(row[6]) if row[6] else None
    return MatchingRule(
        id=int(row[0]),
        image_id=int(row[1]),
        filters=RuleFilters(brand_name=row[2], category=row[3], strain=row[4], strain_type=row[5]),
        product_name_keywords=keywords or None,
        priority=int(row[7]),
        created_at=_parse_timestamp(row[8]),
        image_name=row[9],
    )


class RuleStore:
    """SQLite-backed store of repository images and matching rules.

    Each public call opens its own connection, so a store instance can be
    shared between request handlers without coordination.
    """

    def __init__(
        self,
        db_path: Path | str,
        supported_mime_types: Iterable[str] = DEFAULT_MIME_TYPES,
        max_image_size_bytes: int = 10 * 1024 * 1024,
        thumbnail_size: int = 160,
    ) -> None:
        self.db_path = Path(db_path)
        self.supported_mime_types = list(supported_mime_types)
        self.max_image_size_bytes = max_image_size_bytes
        self.thumbnail_size = thumbnail_size
        self.ensure_schema()

    @classmethod
    def from_settings(cls, settings: AppSettings) -> "RuleStore":
        """Build a store configured from application settings."""

        return cls(
            settings.database_path,
            supported_mime_types=settings.supported_mime_types,
            max_image_size_bytes=settings.max_image_size_bytes,
            thumbnail_size=settings.thumbnail_size,
        )

    # SQLite helpers
    @staticmethod
    def _connect_sqlite(path: Path) -> sqlite3.Connection:
        """Create a SQLite connection with foreign keys enabled."""

        conn = sqlite3.connect(path)
        conn.execute("PRAGMA foreign_keys = ON")
        return conn

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        """Open a connection, commit on success, roll back on error, and always close."""

        conn = self._connect_sqlite(self.db_path)
        try:
            with conn:
                yield conn
        finally:
            conn.close()

    # Schema
    def ensure_schema(self) -> None:
        """Create or migrate the repository tables."""

        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        with self._connect() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS repository_images (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    name TEXT NOT NULL,
                    file_name TEXT NOT NULL,
                    mime_type TEXT NOT NULL,
                    image_data BLOB NOT NULL,
                    group_name TEXT,
                    thumbnail TEXT,
                    created_at TEXT NOT NULL
                )
                """
            )
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS matching_rules (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    image_id INTEGER NOT NULL REFERENCES repository_images(id) ON DELETE CASCADE,
                    brand_name TEXT,
                    category TEXT,
                    strain TEXT,
                    strain_type TEXT,
                    product_name_keywords TEXT,
                    priority INTEGER NOT NULL DEFAULT 0,
                    created_at TEXT NOT NULL
                )
                """
            )
            self._ensure_column(conn, "repository_images", "group_name", "TEXT")
            self._ensure_column(conn, "repository_images", "thumbnail", "TEXT")
            added = self._ensure_column(conn, "matching_rules", "product_name_keywords", "TEXT")
            if added:
                self._migrate_name_contains(conn)

            conn.execute("CREATE INDEX IF NOT EXISTS idx_rules_image_id ON matching_rules(image_id)")
            conn.execute("CREATE INDEX IF NOT EXISTS idx_rules_brand ON matching_rules(brand_name)")
            conn.execute("CREATE INDEX IF NOT EXISTS idx_rules_category ON matching_rules(category)")
            conn.execute("CREATE INDEX IF NOT EXISTS idx_rules_priority ON matching_rules(priority)")

    @staticmethod
    def _table_columns(conn: sqlite3.Connection, table: str) -> List[str]:
        return [str(row[1]) for row in conn.execute(f"PRAGMA table_info({table})").fetchall()]

    def _ensure_column(self, conn: sqlite3.Connection, table: str, column: str, decl: str) -> bool:
        """Add a column to an older table layout; return True when it was added."""

        if column in self._table_columns(conn, table):
            return False
        conn.execute(f"ALTER TABLE {table} ADD COLUMN {column} {decl}")
        logger.info("Added column %s.%s", table, column)
        return True

    def _migrate_name_contains(self, conn: sqlite3.Connection) -> None:
        """Convert the deprecated single-string name filter into one-keyword lists.

        The legacy column is left in place but is no longer read or written.
        """

        if "product_name_contains" not in self._table_columns(conn, "matching_rules"):
            return
        rows = conn.execute(
            "SELECT id, product_name_contains FROM matching_rules WHERE product_name_contains IS NOT NULL"
        ).fetchall()
        updates = []
        for rule_id, contains in rows:
            keywords = normalize_keywords([str(contains)])
            if keywords:
                updates.append((json.dumps(keywords), rule_id))
        conn.executemany("UPDATE matching_rules SET product_name_keywords = ? WHERE id = ?", updates)
        logger.info("Migrated %d legacy name filters to keyword lists", len(updates))

    # Images
    def list_images(self) -> List[RepositoryImage]:
        """Return all images with their rules.

        Images are ordered by group name (ungrouped last), then newest first.
        Rules within an image are ordered by descending priority, then id.
        """

        with self._connect() as conn:
            image_rows = conn.execute(
                """
                SELECT id, name, file_name, mime_type, group_name, thumbnail, created_at
                FROM repository_images
                ORDER BY group_name IS NULL, group_name, created_at DESC, id DESC
                """
            ).fetchall()
            rule_rows = conn.execute(
                f"""
                SELECT {_RULE_COLUMNS}
                FROM matching_rules AS r
                JOIN repository_images AS ri ON ri.id = r.image_id
                ORDER BY r.priority DESC, r.id ASC
                """
            ).fetchall()

        rules_by_image: Dict[int, List[MatchingRule]] = {}
        for row in rule_rows:
            rule = _row_to_rule(row)
            rules_by_image.setdefault(rule.image_id, []).append(rule)

        images: List[RepositoryImage] = []
        for row in image_rows:
            image_id = int(row[0])
            images.append(
                RepositoryImage(
                    id=image_id,
                    name=row[1],
                    file_name=row[2],
                    mime_type=row[3],
                    group_name=row[4],
                    thumbnail_data_url=row[5],
                    created_at=_parse_timestamp(row[6]),
                    rules=rules_by_image.get(image_id, []),
                )
            )
        return images

    def get_image(self, image_id: int) -> RepositoryImage:
        """Return one image with its rules, raising NotFoundError when absent."""

        with self._connect() as conn:
            row = conn.execute(
                """
                SELECT id, name, file_name, mime_type, group_name, thumbnail, created_at
                FROM repository_images
                WHERE id = ?
                """,
                (image_id,),
            ).fetchone()
            if row is None:
                raise NotFoundError(f"Repository image {image_id} not found")
            rule_rows = conn.execute(
                f"""
                SELECT {_RULE_COLUMNS}
                FROM matching_rules AS r
                JOIN repository_images AS ri ON ri.id = r.image_id
                WHERE r.image_id = ?
                ORDER BY r.priority DESC, r.id ASC
                """,
                (image_id,),
            ).fetchall()

        return RepositoryImage(
            id=int(row[0]),
            name=row[1],
            file_name=row[2],
            mime_type=row[3],
            group_name=row[4],
            thumbnail_data_url=row[5],
            created_at=_parse_timestamp(row[6]),
            rules=[_row_to_rule(rule_row) for rule_row in rule_rows],
        )

    def get_image_blob(self, image_id: int) -> ImageBlob:
        """Return the stored bytes and file metadata of an image."""

        with self._connect() as conn:
            row = conn.execute(
                "SELECT image_data, file_name, mime_type FROM repository_images WHERE id = ?",
                (image_id,),
            ).fetchone()
        if row is None:
            raise NotFoundError(f"Repository image {image_id} not found")
        return ImageBlob(data=bytes(row[0]), file_name=row[1], mime_type=row[2])

    def create_image(
        self,
        name: str,
        data: bytes,
        file_name: str,
        mime_type: str,
        group_name: Optional[str] = None,
    ) -> RepositoryImage:
        """Validate and insert a new repository image."""

        missing = [
            label
            for label, value in (("name", name), ("data", data), ("fileName", file_name), ("mimeType", mime_type))
            if not value
        ]
        if missing:
            raise ValidationError(f"Missing required image fields: {', '.join(missing)}")
        validate_image_payload(data, mime_type, self.supported_mime_types, self.max_image_size_bytes)

        group_name = (group_name or "").strip() or None
        thumbnail = make_thumbnail_data_url(data, self.thumbnail_size)
        created_at = _utcnow()

        with self._connect() as conn:
            cursor = conn.execute(
                """
                INSERT INTO repository_images (name, file_name, mime_type, image_data, group_name, thumbnail, created_at)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (name, file_name, mime_type, sqlite3.Binary(data), group_name, thumbnail, created_at),
            )
            image_id = int(cursor.lastrowid)

        logger.info("Created repository image %s (%s, %d bytes)", image_id, file_name, len(data))
        return RepositoryImage(
            id=image_id,
            name=name,
            file_name=file_name,
            mime_type=mime_type,
            group_name=group_name,
            created_at=_parse_timestamp(created_at),
            thumbnail_data_url=thumbnail,
        )

    def delete_image(self, image_id: int) -> None:
        """Delete an image and, via cascade, its rules. Unknown ids are a no-op."""

        with self._connect() as conn:
            deleted = conn.execute("DELETE FROM repository_images WHERE id = ?", (image_id,)).rowcount
        if deleted:
            logger.info("Deleted repository image %s", image_id)

    # Rules
    def create_rule(
        self,
        image_id: Optional[int],
        filters: Optional[RuleFilters] = None,
        keywords: Optional[Iterable[str]] = None,
        priority: Optional[int] = None,
    ) -> MatchingRule:
        """Insert a rule for an existing image.

        When ``priority`` is omitted it defaults to the number of criteria the rule sets.
        """

        if not image_id:
            raise ValidationError("imageId is required")
        if priority is not None and (isinstance(priority, bool) or not isinstance(priority, int)):
            raise ValidationError(f"priority must be an integer, got {priority!r}")

        filters = filters or RuleFilters()
        filters = RuleFilters(*[(value or None) for value in filters.values()])
        keyword_list = normalize_keywords(keywords)
        if priority is None:
            priority = default_priority(filters, keyword_list)
        created_at = _utcnow()

        with self._connect() as conn:
            image_row = conn.execute("SELECT name FROM repository_images WHERE id = ?", (image_id,)).fetchone()
            if image_row is None:
                raise NotFoundError(f"Repository image {image_id} not found")
            try:
                cursor = conn.execute(
                    """
                    INSERT INTO matching_rules
                        (image_id, brand_name, category, strain, strain_type, product_name_keywords, priority, created_at)
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        image_id,
                        filters.brand_name,
                        filters.category,
                        filters.strain,
                        filters.strain_type,
                        json.dumps(keyword_list) if keyword_list else None,
                        priority,
                        created_at,
                    ),
                )
            except sqlite3.IntegrityError as exc:
                raise NotFoundError(f"Repository image {image_id} not found") from exc
            rule_id = int(cursor.lastrowid)

        logger.info("Created rule %s for image %s with priority %s", rule_id, image_id, priority)
        return MatchingRule(
            id=rule_id,
            image_id=int(image_id),
            filters=filters,
            product_name_keywords=keyword_list,
            priority=priority,
            created_at=_parse_timestamp(created_at),
            image_name=image_row[0],
        )

    def delete_rule(self, rule_id: int) -> None:
        """Delete a rule. Unknown ids are a no-op."""

        with self._connect() as conn:
            deleted = conn.execute("DELETE FROM matching_rules WHERE id = ?", (rule_id,)).rowcount
        if deleted:
            logger.info("Deleted rule %s", rule_id)

    def list_rules_by_priority_desc(self) -> List[MatchingRule]:
        """Return every rule joined with its image name, highest priority first, then lowest id."""

        with self._connect() as conn:
            rows = conn.execute(
                f"""
                SELECT {_RULE_COLUMNS}
                FROM matching_rules AS r
                JOIN repository_images AS ri ON ri.id = r.image_id
                ORDER BY r.priority DESC, r.id ASC
                """
            ).fetchall()
        return [_row_to_rule(row) for row in rows]
