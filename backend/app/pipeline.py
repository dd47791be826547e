import logging
from typing import Callable, List, Optional
from datetime import datetime

from backend.tools import DeterministicTipProvider, ExternalTipGenerator, tip_catalog

from .llm import AnthropicBackend
from .logging_config import GenerationError, NotFoundError, PersistenceError, log_error
from .schemas import BiometricSnapshot, CachedTipSet, DayWindow, Tip, TipsByCategory
from .sources import SupabaseSnapshotSource
from .tip_cache import TipCache, build_tip_cache
from .windows import day_seed, now_service, window_for

logger = logging.getLogger(__name__)

class TipGenerationPipeline:
    """Cache lookup -> snapshot -> external tier (else fallback) -> persist."""

    def __init__(self, cache: TipCache, snapshots, generator: ExternalTipGenerator,
                 fallback: DeterministicTipProvider = None,
                 clock: Callable[[], datetime] = None):
        self.cache = cache
        self.snapshots = snapshots
        self.generator = generator
        self.fallback = fallback or tip_catalog
        self.clock = clock or now_service

    def get_daily_tips(self, user_id: str) -> TipsByCategory:
        now = self.clock()
        window = window_for(now)

        try:
            cached = self.cache.lookup(user_id, now)
        except PersistenceError as e:
            logger.warning(f"Tip cache lookup failed, regenerating: {e.message}",
                           extra={"user_id": user_id})
            cached = None
        if cached is not None:
            return cached.tips_by_category

        snapshot = self.snapshots.latest_for(user_id)
        if snapshot is None:
            raise NotFoundError(f"No test results found for user id: {user_id}", "snapshot")

        tips = self.generate_for(snapshot, window)
        try:
            stored = self.persist(user_id, window, tips)
        except PersistenceError as e:
            logger.error(f"Failed to persist daily tips: {e.message}", extra={"user_id": user_id})
            return tips
        return stored.tips_by_category

    def generate_for(self, snapshot: BiometricSnapshot, window: DayWindow) -> TipsByCategory:
        if self.generator.configured:
            try:
                return self.generator.generate(snapshot, day_seed(window))
            except GenerationError as e:
                logger.warning(f"External tip generation failed, using fallback: {e.message}",
                               extra={"user_id": snapshot.user_id, "tier": "fallback"})
            except Exception as e:
                log_error(logger, e, {"user_id": snapshot.user_id, "tier": "fallback"})
        else:
            logger.warning("Tip generation backend not configured, using fallback",
                           extra={"user_id": snapshot.user_id, "tier": "fallback"})

        return self.fallback.fallback_for(snapshot.risk_level)

    def persist(self, user_id: str, window: DayWindow, tips: TipsByCategory) -> CachedTipSet:
        return self.cache.store(user_id, window, tips)

    def recommendations_for(self, user_id: str) -> List[Tip]:
        """Full static catalog for the risk level of the user's latest test.

        Raises NotFoundError when the user has no test; an empty or unknown
        risk level yields an empty list.
        """
        snapshot = self.snapshots.latest_for(user_id)
        if snapshot is None:
            raise NotFoundError(f"No test results found for user id: {user_id}", "snapshot")
        return self.fallback.by_risk_level(snapshot.risk_level)

def build_pipeline(cache: Optional[TipCache] = None) -> TipGenerationPipeline:
    return TipGenerationPipeline(
        cache=cache or build_tip_cache(),
        snapshots=SupabaseSnapshotSource(),
        generator=ExternalTipGenerator(AnthropicBackend())
    )
