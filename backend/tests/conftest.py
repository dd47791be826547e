import itertools
import json
import threading
from datetime import datetime
from zoneinfo import ZoneInfo

import pytest

from backend.app.pipeline import TipGenerationPipeline
from backend.app.schemas import BiometricSnapshot
from backend.app.tip_cache import InMemoryTipCache
from backend.tools import DeterministicTipProvider, ExternalTipGenerator

TZ = ZoneInfo("UTC")

def tip_json(category: str, n: int = 3, tag: str = "") -> list:
    return [
        {
            "title": f"{category} tip {i+1}{tag}",
            "short_description": f"Short {category} advice number {i+1}{tag}.",
            "long_description": f"Longer {category} guidance number {i+1}{tag} with more detail."
        }
        for i in range(n)
    ]

class FakeClock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

class FakeSnapshotSource:
    def __init__(self, snapshots=None):
        self.snapshots = dict(snapshots or {})
        self.calls = []

    def latest_for(self, user_id):
        self.calls.append(user_id)
        return self.snapshots.get(user_id)

class FakeUserDirectory:
    def __init__(self, user_ids):
        self.user_ids = list(user_ids)

    def all_user_ids(self):
        return list(self.user_ids)

class FakeBackend:
    """Returns a distinct, valid payload on every call unless told otherwise"""

    def __init__(self, response=None, error=None, configured=True):
        self.response = response
        self.error = error
        self.configured = configured
        self.prompts = []
        self._counter = itertools.count(1)
        self._lock = threading.Lock()

    def complete(self, prompt, metadata=None):
        with self._lock:
            self.prompts.append(prompt)
            call = next(self._counter)
        if self.error:
            raise self.error
        if self.response is not None:
            return self.response
        return json.dumps({
            c: tip_json(c, tag=f" #{call}") for c in ("diet", "exercise", "sleep", "stress")
        })

def make_snapshot(user_id="user-1", risk_level="MODERATE"):
    return BiometricSnapshot(
        user_id=user_id,
        risk_level=risk_level,
        score=72.5,
        heart_rate=78,
        blood_pressure="128/84",
        spo2=97.0,
        vascular_risk=0.42
    )

@pytest.fixture
def clock():
    return FakeClock(datetime(2026, 3, 10, 9, 30, tzinfo=TZ))

@pytest.fixture
def cache():
    return InMemoryTipCache()

@pytest.fixture
def backend():
    return FakeBackend()

@pytest.fixture
def snapshots():
    return FakeSnapshotSource({"user-1": make_snapshot("user-1")})

@pytest.fixture
def pipeline(cache, snapshots, backend, clock):
    return TipGenerationPipeline(
        cache=cache,
        snapshots=snapshots,
        generator=ExternalTipGenerator(backend),
        fallback=DeterministicTipProvider(),
        clock=clock
    )
