"""
Practice Board - SQLite song store

Songs live in a single ``songs`` table accessed through aiosqlite.  The
table is created on first use and the bootstrap is re-run (as a no-op)
before every operation, so a fresh or deleted database file just works.

Updates are coalesce merges done in one ``UPDATE`` statement: each column
keeps its stored value unless the update supplies a new one.  Two
concurrent partial updates touching different columns therefore both
survive; on the same column the last writer wins.
"""

import json
import uuid
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, Dict, List, Optional

import aiosqlite
from loguru import logger

from practiceboard.errors import NotFound, StoreError

DEFAULT_TITLE = "Untitled Song"
SONG_STATUSES = ("current", "future")
LINK_TYPES = ("youtube", "spotify", "soundcloud", "other")

_NOW_SQL = "strftime('%Y-%m-%dT%H:%M:%fZ', 'now')"

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------
SCHEMA_SQL = f"""
CREATE TABLE IF NOT EXISTS songs (
    id TEXT PRIMARY KEY,
    title TEXT NOT NULL,
    status TEXT NOT NULL CHECK (status IN ('current', 'future')),
    progress INTEGER,
    lyrics TEXT,
    links TEXT DEFAULT '[]',
    created_at TEXT NOT NULL DEFAULT ({_NOW_SQL}),
    updated_at TEXT NOT NULL DEFAULT ({_NOW_SQL})
);

CREATE INDEX IF NOT EXISTS idx_songs_created_at ON songs(created_at);
"""


# ---------------------------------------------------------------------------
# Field normalization
# ---------------------------------------------------------------------------
def clamp_progress(value: Any) -> Optional[int]:
    """Clamp a numeric progress into [0, 100]; non-numbers become None."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if value != value:  # NaN
        return None
    return int(min(max(value, 0), 100))


def normalize_status(value: Any, default: Optional[str] = "current") -> Optional[str]:
    """Return *value* if it is a known status, otherwise *default*."""
    return value if value in SONG_STATUSES else default


def normalize_links(value: Any) -> List[Dict[str, str]]:
    """Keep well-formed embed descriptors; unknown types become ``other``."""
    if not isinstance(value, list):
        return []

    links = []
    for item in value:
        if not isinstance(item, dict) or not isinstance(item.get("url"), str):
            continue
        link = {
            "type": item.get("type") if item.get("type") in LINK_TYPES else "other",
            "url": item["url"],
        }
        if isinstance(item.get("label"), str):
            link["label"] = item["label"]
        links.append(link)
    return links


def _parse_links(raw: Any) -> List[Dict[str, str]]:
    if isinstance(raw, list):
        return raw
    if isinstance(raw, str):
        try:
            parsed = json.loads(raw)
        except (json.JSONDecodeError, TypeError):
            return []
        return parsed if isinstance(parsed, list) else []
    return []


def row_to_song(row) -> Dict[str, Any]:
    """Convert a database row to the public song shape."""
    return {
        "id": row["id"],
        "title": row["title"],
        "status": row["status"],
        "progress": row["progress"],
        "lyrics": row["lyrics"] if row["lyrics"] is not None else "",
        "links": _parse_links(row["links"]),
        "created_at": row["created_at"],
        "updated_at": row["updated_at"],
    }


# ---------------------------------------------------------------------------
# Store
# ---------------------------------------------------------------------------
class SongStore:
    """CRUD operations over the ``songs`` table."""

    def __init__(self, db_path: Path | str):
        self.db_path = Path(db_path)

    @asynccontextmanager
    async def _connect(self):
        """Open a connection with the schema in place and a row factory."""
        db = await aiosqlite.connect(str(self.db_path))
        db.row_factory = aiosqlite.Row
        try:
            await db.executescript(SCHEMA_SQL)
            yield db
        finally:
            await db.close()

    async def ensure_schema(self) -> None:
        """Create the songs table if it does not exist.  Safe to repeat."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        try:
            async with self._connect():
                pass
        except aiosqlite.Error as e:
            raise StoreError("Failed to initialize database") from e
        logger.debug("Song table ready at {}", self.db_path)

    async def list_songs(self) -> List[Dict[str, Any]]:
        """All songs, oldest first."""
        try:
            async with self._connect() as db:
                cursor = await db.execute(
                    "SELECT * FROM songs ORDER BY created_at ASC, rowid ASC"
                )
                rows = await cursor.fetchall()
        except aiosqlite.Error as e:
            raise StoreError("Failed to fetch songs") from e
        return [row_to_song(r) for r in rows]

    async def get_song(self, song_id: str) -> Optional[Dict[str, Any]]:
        try:
            async with self._connect() as db:
                cursor = await db.execute("SELECT * FROM songs WHERE id = ?", (song_id,))
                row = await cursor.fetchone()
        except aiosqlite.Error as e:
            raise StoreError("Failed to fetch song") from e
        return row_to_song(row) if row else None

    async def create_song(self, incoming: Dict[str, Any]) -> Dict[str, Any]:
        """Insert a song, filling in defaults, and return the stored record."""
        song_id = str(incoming.get("id") or uuid.uuid4())
        title = incoming.get("title") or DEFAULT_TITLE
        status = normalize_status(incoming.get("status"))
        progress = clamp_progress(incoming.get("progress"))
        lyrics = incoming.get("lyrics") or ""
        links = normalize_links(incoming.get("links"))

        try:
            async with self._connect() as db:
                await db.execute(
                    """
                    INSERT INTO songs (id, title, status, progress, lyrics, links)
                    VALUES (?, ?, ?, ?, ?, ?)
                    """,
                    (song_id, title, status, progress, lyrics, json.dumps(links)),
                )
                await db.commit()
                cursor = await db.execute("SELECT * FROM songs WHERE id = ?", (song_id,))
                row = await cursor.fetchone()
        except aiosqlite.Error as e:
            raise StoreError("Failed to create song") from e

        logger.success("✅ Song added (id={}): {}", song_id, title)
        return row_to_song(row)

    async def update_song(self, song_id: str, updates: Dict[str, Any]) -> Dict[str, Any]:
        """Merge the supplied fields into a song.  Raises ``NotFound``."""
        title = updates.get("title")
        status = normalize_status(updates.get("status"), default=None)
        progress = clamp_progress(updates.get("progress"))
        lyrics = updates.get("lyrics")
        links = updates.get("links")
        links_json = json.dumps(normalize_links(links)) if links is not None else None

        try:
            async with self._connect() as db:
                cursor = await db.execute(
                    f"""
                    UPDATE songs
                    SET title = COALESCE(?, title),
                        status = COALESCE(?, status),
                        progress = COALESCE(?, progress),
                        lyrics = COALESCE(?, lyrics),
                        links = COALESCE(?, links),
                        updated_at = {_NOW_SQL}
                    WHERE id = ?
                    """,
                    (title, status, progress, lyrics, links_json, song_id),
                )
                await db.commit()
                if cursor.rowcount == 0:
                    raise NotFound("Song", song_id)
                cursor = await db.execute("SELECT * FROM songs WHERE id = ?", (song_id,))
                row = await cursor.fetchone()
        except aiosqlite.Error as e:
            raise StoreError("Failed to update song") from e

        if row is None:
            # deleted between the update and the read-back
            raise NotFound("Song", song_id)

        changed = [k for k in ("title", "status", "progress", "lyrics", "links") if k in updates]
        logger.info("✏️ Song id={} updated: {}", song_id, changed)
        return row_to_song(row)

    async def delete_song(self, song_id: str) -> bool:
        """Delete a song.  Returns True if a row was removed."""
        try:
            async with self._connect() as db:
                cursor = await db.execute("DELETE FROM songs WHERE id = ?", (song_id,))
                await db.commit()
                deleted = cursor.rowcount > 0
        except aiosqlite.Error as e:
            raise StoreError("Failed to delete song") from e

        if deleted:
            logger.info("🗑️ Song id={} deleted", song_id)
        else:
            logger.debug("Song id={} already absent", song_id)
        return deleted
