import asyncio
import time
from typing import Dict, Any
from datetime import datetime, timezone
import logging
import os

import sentry_sdk
from starlette.concurrency import run_in_threadpool

from . import config
from .database import SB
from .llm import langfuse
from .logging_config import DatabaseError

logger = logging.getLogger(__name__)

class HealthChecker:
    """Dependency checks for the tips service"""

    def __init__(self):
        self.checks = {
            'database': self._check_database,
            'tip_generation': self._check_tip_generation,
            'langfuse': self._check_langfuse,
            'sentry': self._check_sentry
        }

    async def run_all_checks(self) -> Dict[str, Any]:
        """Run all health checks and return comprehensive status"""
        start_time = time.time()

        names = list(self.checks)
        check_results = await asyncio.gather(
            *(self._run_single_check(name, self.checks[name]) for name in names)
        )
        results = dict(zip(names, check_results))
        overall_healthy = all(r['healthy'] for r in check_results)

        return {
            'status': 'healthy' if overall_healthy else 'degraded',
            'timestamp': datetime.now(timezone.utc).isoformat().replace('+00:00', 'Z'),
            'response_time_ms': int((time.time() - start_time) * 1000),
            'checks': results,
            'version': '1.0.0',
            'environment': os.environ.get('ENVIRONMENT', 'unknown')
        }

    async def _run_single_check(self, name: str, check_func) -> Dict[str, Any]:
        """Run a single health check with timing"""
        start_time = time.time()
        try:
            result = await check_func()
            return {
                'status': 'ok',
                'healthy': True,
                'response_time_ms': int((time.time() - start_time) * 1000),
                **result
            }
        except Exception as e:
            logger.error(f"Health check failed for {name}: {e}")
            return {
                'status': 'error',
                'healthy': False,
                'error': str(e),
                'response_time_ms': int((time.time() - start_time) * 1000)
            }

    async def _check_database(self) -> Dict[str, Any]:
        if not config.supabase_configured():
            return {'connection': 'disabled', 'details': 'Supabase not configured; in-memory tip cache'}

        if not await run_in_threadpool(SB.ping):
            raise DatabaseError("health_check", "daily_ai_tips probe failed")
        return {'connection': 'ok', 'details': 'daily_ai_tips readable'}

    async def _check_tip_generation(self) -> Dict[str, Any]:
        # No live call here: the fallback tier keeps tips available either way
        if not config.ANTHROPIC_API_KEY:
            return {'connection': 'disabled', 'tier': 'fallback',
                    'details': 'Claude API key not configured'}
        return {'connection': 'configured', 'tier': 'external', 'model': config.TIP_LLM_MODEL,
                'timeout_s': config.TIP_LLM_TIMEOUT_SECONDS}

    async def _check_langfuse(self) -> Dict[str, Any]:
        if langfuse is None:
            return {'connection': 'disabled', 'details': 'Langfuse not configured'}
        return {'connection': 'ok', 'host': config.LANGFUSE_HOST}

    async def _check_sentry(self) -> Dict[str, Any]:
        if not config.SENTRY_DSN:
            return {'connection': 'disabled', 'details': 'Sentry not configured'}
        if not sentry_sdk.get_client().is_active():
            raise Exception("Sentry client not initialized")
        return {'connection': 'ok', 'dsn_configured': True}

health_checker = HealthChecker()
