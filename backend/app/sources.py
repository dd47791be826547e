"""Read-only collaborators backed by tables owned by other parts of the system."""
import logging
from typing import List, Optional

from . import config
from .database import SB, retry
from .schemas import BiometricSnapshot

logger = logging.getLogger(__name__)

class SupabaseSnapshotSource:
    """Latest recorded test result per user, from the jendo_tests table"""

    def __init__(self, client=None):
        self._client = client

    @property
    def client(self):
        return self._client or SB.client()

    def latest_for(self, user_id: str) -> Optional[BiometricSnapshot]:
        result = retry(lambda: self.client.table("jendo_tests")
                       .select("user_id, risk_level, score, heart_rate, blood_pressure, "
                               "spo2, vascular_risk, test_date, created_at")
                       .eq("user_id", user_id)
                       .order("test_date", desc=True)
                       .order("created_at", desc=True)
                       .limit(1)
                       .execute())
        if not result.data:
            return None

        row = result.data[0]
        return BiometricSnapshot(
            user_id=str(row["user_id"]),
            risk_level=row.get("risk_level"),
            score=row.get("score"),
            heart_rate=row.get("heart_rate"),
            blood_pressure=row.get("blood_pressure"),
            spo2=row.get("spo2"),
            vascular_risk=row.get("vascular_risk"),
            observed_at=row.get("created_at")
        )

class SupabaseUserDirectory:
    def __init__(self, client=None, page_size: int = None):
        self._client = client
        self.page_size = page_size or config.USER_PAGE_SIZE

    @property
    def client(self):
        return self._client or SB.client()

    def all_user_ids(self) -> List[str]:
        ids: List[str] = []
        offset = 0
        while True:
            start = offset
            page = retry(lambda: self.client.table("users")
                         .select("id")
                         .order("id")
                         .range(start, start + self.page_size - 1)
                         .execute())
            rows = page.data or []
            ids.extend(str(row["id"]) for row in rows)
            if len(rows) < self.page_size:
                break
            offset += self.page_size

        logger.debug(f"Loaded {len(ids)} user ids")
        return ids
