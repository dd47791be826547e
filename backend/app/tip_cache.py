"""
Daily tip cache: at most one stored tip set per (user, day window).

Uniqueness is enforced by the storage layer itself: the Supabase table has a
unique constraint on (user_id, window_start) and the in-memory backend checks
and inserts under a lock. A losing writer gets PersistenceConflict from the
backend and `store` answers with the winning entry instead.
"""
import logging
import threading
from datetime import datetime, timezone
from typing import Dict, Optional, Tuple

from supabase import PostgrestAPIError

from . import config
from .database import SB, retry
from .logging_config import PersistenceConflict, PersistenceError
from .schemas import CachedTipSet, DayWindow, TipsByCategory
from .windows import window_for

logger = logging.getLogger(__name__)

UNIQUE_VIOLATION = "23505"

class TipCache:
    """Backend-agnostic cache operations; subclasses provide _get/_insert/_delete_expired."""

    def lookup(self, user_id: str, now: datetime) -> Optional[CachedTipSet]:
        return self._get(user_id, window_for(now))

    def store(self, user_id: str, window: DayWindow, tips: TipsByCategory) -> CachedTipSet:
        entry = CachedTipSet(
            user_id=user_id,
            window=window,
            tips_by_category=tips,
            created_at=datetime.now(timezone.utc)
        )
        try:
            stored = self._insert(entry)
        except PersistenceConflict:
            existing = self._get(user_id, window)
            if existing is None:
                raise PersistenceError("store", f"conflicting entry for user {user_id} vanished")
            logger.info(
                "Tips already cached by a concurrent writer, using existing entry",
                extra={"user_id": user_id, "window_start": window.start.isoformat()}
            )
            return existing

        logger.info(
            "Cached daily tips",
            extra={"user_id": user_id, "window_start": window.start.isoformat()}
        )
        return stored

    def purge_expired(self, now: datetime) -> int:
        removed = self._delete_expired(now)
        logger.info(f"Purged {removed} expired tip entries")
        return removed

    def _get(self, user_id: str, window: DayWindow) -> Optional[CachedTipSet]:
        raise NotImplementedError

    def _insert(self, entry: CachedTipSet) -> CachedTipSet:
        raise NotImplementedError

    def _delete_expired(self, now: datetime) -> int:
        raise NotImplementedError

class InMemoryTipCache(TipCache):
    """Process-local cache for development and tests"""

    def __init__(self):
        self._entries: Dict[Tuple[str, datetime], CachedTipSet] = {}
        self._lock = threading.Lock()

    def _get(self, user_id, window):
        with self._lock:
            entry = self._entries.get((user_id, window.start))
        return entry.model_copy(deep=True) if entry else None

    def _insert(self, entry):
        key = (entry.user_id, entry.window.start)
        with self._lock:
            if key in self._entries:
                raise PersistenceConflict(entry.user_id, entry.window.start)
            self._entries[key] = entry.model_copy(deep=True)
        return entry

    def _delete_expired(self, now):
        with self._lock:
            expired = [key for key, entry in self._entries.items() if entry.window.end < now]
            for key in expired:
                del self._entries[key]
        return len(expired)

    def entries_for(self, user_id: str) -> list:
        with self._lock:
            return [e.model_copy(deep=True) for (uid, _), e in self._entries.items() if uid == user_id]

class SupabaseTipCache(TipCache):
    """Tips persisted in the daily_ai_tips table"""

    TABLE = "daily_ai_tips"

    def __init__(self, client=None):
        self._client = client

    @property
    def client(self):
        return self._client or SB.client()

    def _get(self, user_id, window):
        try:
            result = retry(lambda: self.client.table(self.TABLE)
                           .select("user_id, window_start, window_end, payload, created_at")
                           .eq("user_id", user_id)
                           .eq("window_start", window.start.isoformat())
                           .limit(1)
                           .execute())
        except Exception as e:
            raise PersistenceError("lookup", str(e)) from e

        if not result.data:
            return None
        return self._from_row(result.data[0])

    def _insert(self, entry):
        row = {
            "user_id": entry.user_id,
            "window_start": entry.window.start.isoformat(),
            "window_end": entry.window.end.isoformat(),
            "payload": {
                category: [tip.model_dump() for tip in tips]
                for category, tips in entry.tips_by_category.items()
            },
            "created_at": entry.created_at.isoformat()
        }
        try:
            result = self.client.table(self.TABLE).insert(row).execute()
        except PostgrestAPIError as e:
            if e.code == UNIQUE_VIOLATION:
                raise PersistenceConflict(entry.user_id, entry.window.start) from e
            raise PersistenceError("insert", str(e)) from e
        except Exception as e:
            raise PersistenceError("insert", str(e)) from e

        return self._from_row(result.data[0]) if result.data else entry

    def _delete_expired(self, now):
        try:
            result = (self.client.table(self.TABLE)
                      .delete()
                      .lt("window_end", now.isoformat())
                      .execute())
        except Exception as e:
            raise PersistenceError("delete", str(e)) from e
        return len(result.data or [])

    @staticmethod
    def _from_row(row: dict) -> CachedTipSet:
        return CachedTipSet(
            user_id=str(row["user_id"]),
            window=DayWindow(start=row["window_start"], end=row["window_end"]),
            tips_by_category=row.get("payload") or {},
            created_at=row.get("created_at") or datetime.now(timezone.utc)
        )

def build_tip_cache() -> TipCache:
    if config.supabase_configured():
        return SupabaseTipCache()
    logger.warning("Supabase not configured; daily tips cached in process memory only")
    return InMemoryTipCache()
