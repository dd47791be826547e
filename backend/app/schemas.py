from enum import Enum
from typing import Dict, List, Optional
from pydantic import BaseModel, Field
from datetime import datetime, timedelta

class RiskLevel(str, Enum):
    LOW = "LOW"
    MODERATE = "MODERATE"
    HIGH = "HIGH"

    @classmethod
    def parse(cls, value: Optional[str]) -> Optional["RiskLevel"]:
        """Case-insensitive lookup; None for empty or unknown values"""
        if not value or not value.strip():
            return None
        try:
            return cls(value.strip().upper())
        except ValueError:
            return None

class Category(str, Enum):
    DIET = "diet"
    EXERCISE = "exercise"
    SLEEP = "sleep"
    STRESS = "stress"

TIP_CATEGORIES = [c.value for c in Category]
MAX_TIPS_PER_CATEGORY = 3

class Tip(BaseModel):
    title: str
    short_description: str
    long_description: str
    category: str

TipsByCategory = Dict[str, List[Tip]]

class DayWindow(BaseModel):
    start: datetime
    end: datetime

    def contains(self, instant: datetime) -> bool:
        return self.start <= instant < self.start + timedelta(days=1)

class BiometricSnapshot(BaseModel):
    user_id: str
    risk_level: Optional[str] = None
    score: Optional[float] = None
    heart_rate: Optional[int] = None
    blood_pressure: Optional[str] = None
    spo2: Optional[float] = None
    vascular_risk: Optional[float] = None
    observed_at: Optional[datetime] = None

class CachedTipSet(BaseModel):
    user_id: str
    window: DayWindow
    tips_by_category: TipsByCategory
    created_at: datetime

class BatchSummary(BaseModel):
    total: int = 0
    generated: int = 0
    skipped_existing: int = 0
    skipped_no_snapshot: int = 0
    failed: int = 0

class DailyTipsResp(BaseModel):
    user_id: str
    window: DayWindow
    tips: TipsByCategory

class RiskLevelTipsResp(BaseModel):
    risk_level: str
    tips: List[Tip]

class RecommendationsResp(BaseModel):
    user_id: str
    tips: List[Tip]

class BatchRunResp(BaseModel):
    ok: bool = True
    summary: BatchSummary
    finished_at: datetime

class CleanupResp(BaseModel):
    ok: bool
    removed: Optional[int] = Field(None, ge=0)
    finished_at: datetime
