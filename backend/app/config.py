import os
import pathlib
from dotenv import load_dotenv

# .env lives at the repository root
env_path = pathlib.Path(__file__).parent.parent.parent / '.env'
load_dotenv(dotenv_path=env_path)

ENVIRONMENT = os.environ.get("ENVIRONMENT", "production")

SUPABASE_URL = os.environ.get("SUPABASE_URL", "")
SUPABASE_KEY = os.environ.get("SUPABASE_KEY", "")

ANTHROPIC_API_KEY = os.environ.get("ANTHROPIC_API_KEY", "")
TIP_LLM_MODEL = os.environ.get("TIP_LLM_MODEL", "claude-3-5-haiku-20241022")
TIP_LLM_TIMEOUT_SECONDS = float(os.environ.get("TIP_LLM_TIMEOUT_SECONDS", "20"))
TIP_LLM_MAX_TOKENS = int(os.environ.get("TIP_LLM_MAX_TOKENS", "1500"))

SERVICE_TIMEZONE = os.environ.get("SERVICE_TIMEZONE", "UTC")
TIP_WINDOW_ANCHOR_HOUR = int(os.environ.get("TIP_WINDOW_ANCHOR_HOUR", "6"))

# 5-field cron expressions (min hour day month dow)
TIP_BATCH_CRON = os.environ.get("TIP_BATCH_CRON", "0 6 * * *")
TIP_CLEANUP_CRON = os.environ.get("TIP_CLEANUP_CRON", "5 6 * * *")

USER_PAGE_SIZE = int(os.environ.get("USER_PAGE_SIZE", "500"))

ADMIN_API_KEY = os.environ.get("ADMIN_API_KEY", "")

SENTRY_DSN = os.environ.get("SENTRY_DSN")
LANGFUSE_PUBLIC_KEY = os.environ.get("LANGFUSE_PUBLIC_KEY")
LANGFUSE_SECRET_KEY = os.environ.get("LANGFUSE_SECRET_KEY")
LANGFUSE_HOST = os.environ.get("LANGFUSE_HOST", "https://cloud.langfuse.com")


def supabase_configured() -> bool:
    return bool(SUPABASE_URL and SUPABASE_KEY)
