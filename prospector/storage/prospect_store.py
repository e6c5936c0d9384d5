"""Prospect persistence.

Two sinks share the pipeline's `has_url` / `upsert` contract:
- InMemoryProspectSink: dict-backed, for tests and dry runs
- SQLiteProspectStore: one row per article URL; the prospect id is the URL
  hash, so re-running over the same article updates the row in place and
  keeps its original created_at
"""

from __future__ import annotations

import dataclasses
import json
import logging
import sqlite3
import threading
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional

from prospector.ingestion.url_utils import url_hash
from prospector.pipeline import Prospect
from prospector.sentiment.competitor_sentiment import sentiment_summary

logger = logging.getLogger(__name__)


class DatabaseError(Exception):
    """Raised when the prospect database cannot be opened or written."""


class InMemoryProspectSink:
    def __init__(self):
        self._lock = threading.Lock()
        self._items: Dict[str, Prospect] = {}

    def has_url(self, url: str) -> bool:
        with self._lock:
            return url_hash(url) in self._items

    def upsert(self, prospect: Prospect) -> None:
        with self._lock:
            existing = self._items.get(prospect.id)
            if existing is not None:
                prospect = dataclasses.replace(prospect, created_at=existing.created_at)
            self._items[prospect.id] = prospect

    def get(self, url: str) -> Optional[Prospect]:
        with self._lock:
            return self._items.get(url_hash(url))

    def all(self) -> List[Prospect]:
        with self._lock:
            return sorted(self._items.values(), key=lambda p: p.score, reverse=True)

    def count(self) -> int:
        with self._lock:
            return len(self._items)


_SCHEMA = """
CREATE TABLE IF NOT EXISTS prospects (
    id TEXT PRIMARY KEY,
    url TEXT UNIQUE NOT NULL,
    title TEXT NOT NULL,
    publication TEXT,
    domain TEXT,
    publish_date TEXT,
    last_updated TEXT,
    excerpt TEXT,
    word_count INTEGER,
    content_type TEXT,
    detected_topics TEXT,
    mentions_product INTEGER,
    mentioned_competitors TEXT,

    author_name TEXT,
    author_email TEXT,
    author_linkedin TEXT,
    author_twitter TEXT,
    author_website TEXT,
    author_contact_method TEXT,
    author_is_freelance INTEGER,
    author_is_editor INTEGER,
    author_bio TEXT,

    score INTEGER NOT NULL,
    score_breakdown TEXT,
    priority TEXT,
    sentiment_summary TEXT,
    best_angle TEXT,
    outreach_angle TEXT,

    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_prospects_score ON prospects(score DESC);
CREATE INDEX IF NOT EXISTS idx_prospects_domain ON prospects(domain);
"""

_COLUMNS = (
    "id", "url", "title", "publication", "domain", "publish_date", "last_updated",
    "excerpt", "word_count", "content_type", "detected_topics", "mentions_product",
    "mentioned_competitors", "author_name", "author_email", "author_linkedin",
    "author_twitter", "author_website", "author_contact_method", "author_is_freelance",
    "author_is_editor", "author_bio", "score", "score_breakdown", "priority",
    "sentiment_summary", "best_angle", "outreach_angle", "created_at", "updated_at",
)

# Columns that keep their first-written value on conflict
_PRESERVED_ON_UPDATE = {"id", "url", "created_at"}

_JSON_COLUMNS = ("detected_topics", "mentioned_competitors", "score_breakdown")

# Columns added after the first release; older databases gain them on open
_ADDED_COLUMNS = (("outreach_angle", "TEXT"),)


def _iso(dt) -> Optional[str]:
    return dt.isoformat() if dt is not None else None


def prospect_row(prospect: Prospect) -> Dict[str, Any]:
    article = prospect.article
    author = prospect.author
    return {
        "id": prospect.id,
        "url": article.url,
        "title": article.title,
        "publication": article.publication_name,
        "domain": article.domain,
        "publish_date": _iso(article.publish_date),
        "last_updated": _iso(article.last_updated),
        "excerpt": article.excerpt,
        "word_count": article.word_count,
        "content_type": article.content_type.value,
        "detected_topics": json.dumps(sorted(article.detected_topics)),
        "mentions_product": int(article.mentions_product),
        "mentioned_competitors": json.dumps(sorted(article.mentioned_competitors)),
        "author_name": author.name,
        "author_email": author.public_email,
        "author_linkedin": author.linkedin,
        "author_twitter": author.twitter,
        "author_website": author.website,
        "author_contact_method": author.best_contact_method.value,
        "author_is_freelance": int(author.is_freelance),
        "author_is_editor": int(author.is_editor),
        "author_bio": author.bio,
        "score": prospect.score,
        "score_breakdown": json.dumps(prospect.breakdown.as_dict()),
        "priority": prospect.priority.value,
        "sentiment_summary": sentiment_summary(prospect.sentiment),
        "best_angle": prospect.sentiment.best_angle,
        "outreach_angle": prospect.angle,
        "created_at": _iso(prospect.created_at),
        "updated_at": _iso(prospect.updated_at),
    }


class SQLiteProspectStore:
    def __init__(self, db_path: str = "./data/prospects.db", *, max_retries: int = 3, retry_delay: float = 1.0):
        self.db_path = db_path
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self._ensure_db_directory()
        self.init_database()

    def _ensure_db_directory(self) -> None:
        Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)

    def _connect(self) -> sqlite3.Connection:
        for attempt in range(self.max_retries):
            try:
                conn = sqlite3.connect(self.db_path, timeout=30.0, check_same_thread=False)
                conn.row_factory = sqlite3.Row
                conn.execute("PRAGMA journal_mode=WAL;")
                conn.execute("PRAGMA synchronous=NORMAL;")
                return conn
            except sqlite3.OperationalError as e:
                if "database is locked" in str(e) and attempt < self.max_retries - 1:
                    logger.warning("Database locked, retrying in %ss (attempt %d)", self.retry_delay, attempt + 1)
                    time.sleep(self.retry_delay)
                    continue
                raise DatabaseError(f"Database connection failed: {e}") from e
        raise DatabaseError("Database connection failed")

    @contextmanager
    def get_connection(self) -> Iterator[sqlite3.Connection]:
        conn = self._connect()
        try:
            yield conn
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            raise DatabaseError(f"Database error: {e}") from e
        finally:
            conn.close()

    def init_database(self) -> None:
        with self.get_connection() as conn:
            conn.executescript(_SCHEMA)
            existing = {r[1] for r in conn.execute("PRAGMA table_info(prospects)").fetchall()}
            for name, kind in _ADDED_COLUMNS:
                if name not in existing:
                    logger.info("Adding column %s to prospects", name)
                    conn.execute(f"ALTER TABLE prospects ADD COLUMN {name} {kind}")

    def has_url(self, url: str) -> bool:
        with self.get_connection() as conn:
            row = conn.execute("SELECT 1 FROM prospects WHERE url = ? OR id = ? LIMIT 1", (url, url_hash(url))).fetchone()
        return row is not None

    def upsert(self, prospect: Prospect) -> None:
        row = prospect_row(prospect)
        placeholders = ", ".join(f":{c}" for c in _COLUMNS)
        updates = ", ".join(f"{c} = excluded.{c}" for c in _COLUMNS if c not in _PRESERVED_ON_UPDATE)
        sql = (
            f"INSERT INTO prospects ({', '.join(_COLUMNS)}) VALUES ({placeholders}) "
            f"ON CONFLICT(id) DO UPDATE SET {updates}"
        )
        with self.get_connection() as conn:
            conn.execute(sql, row)

    def top_prospects(self, limit: int = 20, min_score: int = 0) -> List[Dict[str, Any]]:
        with self.get_connection() as conn:
            rows = conn.execute(
                "SELECT * FROM prospects WHERE score >= ? ORDER BY score DESC, updated_at DESC LIMIT ?",
                (min_score, limit),
            ).fetchall()
        out = []
        for r in rows:
            item = dict(r)
            for col in _JSON_COLUMNS:
                if item.get(col):
                    item[col] = json.loads(item[col])
            out.append(item)
        return out

    def count(self) -> int:
        with self.get_connection() as conn:
            return int(conn.execute("SELECT COUNT(*) FROM prospects").fetchone()[0])
