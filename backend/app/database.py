"""
Supabase database connection manager with singleton pattern and retry logic
"""
import time
import random
import threading
from supabase import create_client, Client
from typing import Optional
import logging

from . import config

logger = logging.getLogger(__name__)

def retry(f, tries=3, base=0.15):
    """Retry with exponential backoff + jitter"""
    for i in range(tries):
        try:
            return f()
        except Exception as e:
            if i == tries-1:
                raise
            logger.warning(f"Attempt {i+1}/{tries} failed, retrying: {e}")
            time.sleep(base*(2**i)+random.random()*0.05)

class SB:
    """Supabase singleton client manager"""
    _client: Optional[Client] = None
    _lock = threading.Lock()

    @classmethod
    def client(cls) -> Client:
        """Get or create singleton Supabase client"""
        if cls._client is None:
            with cls._lock:
                if cls._client is None:
                    if not config.supabase_configured():
                        raise RuntimeError("SUPABASE_URL / SUPABASE_KEY not configured")

                    # Warn if pooling not configured
                    if "pgbouncer=true" not in config.SUPABASE_URL and "pooler" not in config.SUPABASE_URL:
                        logger.warning("SUPABASE_URL missing pooling params (pgbouncer=true)")

                    cls._client = create_client(config.SUPABASE_URL, config.SUPABASE_KEY)
                    logger.info("Supabase client initialized")
        return cls._client

    @classmethod
    def ping(cls) -> bool:
        """Lightweight probe against the tip cache table"""
        try:
            r = cls.client().table("daily_ai_tips").select("id").limit(1).execute()
            return r.data is not None
        except Exception as e:
            logger.error(f"Health probe failed: {e}")
            return False

    @classmethod
    def dispose(cls):
        """Clean up client if needed"""
        cls._client = None
        logger.info("Supabase client disposed")
