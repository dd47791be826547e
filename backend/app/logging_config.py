import logging
import sys
import os
from typing import Dict, Any, Optional
import traceback
from datetime import datetime, timezone
import json

# Extra record attributes copied into the JSON log line
EXTRA_FIELDS = {
    "user_id": "user_id",
    "request_id": "request_id",
    "endpoint": "endpoint",
    "execution_time": "execution_time_ms",
    "job": "job",
    "window_start": "window_start",
    "tier": "tier",
    "error_code": "error_code",
}

class StructuredFormatter(logging.Formatter):
    """Custom formatter for structured JSON logging"""

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        for attr, key in EXTRA_FIELDS.items():
            if hasattr(record, attr):
                log_entry[key] = getattr(record, attr)

        if record.exc_info:
            log_entry['exception'] = {
                "type": record.exc_info[0].__name__,
                "message": str(record.exc_info[1]),
                "traceback": traceback.format_exception(*record.exc_info)
            }

        return json.dumps(log_entry, default=str)

def setup_logging():
    """Configure application logging"""
    log_level = os.environ.get("LOG_LEVEL", "INFO").upper()

    logger = logging.getLogger()
    logger.setLevel(getattr(logging, log_level, logging.INFO))

    for handler in logger.handlers[:]:
        logger.removeHandler(handler)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(StructuredFormatter())
    logger.addHandler(console_handler)

    # Silence some noisy loggers
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("apscheduler").setLevel(logging.WARNING)

    return logger

# Application error classes
class AppError(Exception):
    """Base application error"""
    def __init__(self, message: str, error_code: str = None, details: Dict[str, Any] = None):
        self.message = message
        self.error_code = error_code or "GENERAL_ERROR"
        self.details = details or {}
        super().__init__(self.message)

class NotFoundError(AppError):
    """Requested resource does not exist"""
    def __init__(self, message: str, resource: str = None):
        super().__init__(message, "NOT_FOUND", {"resource": resource} if resource else None)

class AuthenticationError(AppError):
    """Authentication error"""
    def __init__(self, message: str = "Authentication required"):
        super().__init__(message, "AUTH_ERROR")

class ExternalServiceError(AppError):
    """External service error (Claude API, Supabase, etc.)"""
    def __init__(self, service: str, message: str, status_code: int = None):
        super().__init__(f"{service} error: {message}", "EXTERNAL_SERVICE_ERROR", {
            "service": service,
            "status_code": status_code
        })

class GenerationError(AppError):
    """External tip generation produced no usable result"""
    def __init__(self, message: str):
        super().__init__(message, "GENERATION_ERROR")

class DatabaseError(AppError):
    """Database operation error"""
    def __init__(self, operation: str, message: str):
        super().__init__(f"Database {operation} failed: {message}", "DATABASE_ERROR", {
            "operation": operation
        })

class PersistenceError(DatabaseError):
    """Tip cache read/write/delete failed"""

class PersistenceConflict(AppError):
    """An entry for the same (user, window) already exists"""
    def __init__(self, user_id: str, window_start: datetime):
        super().__init__(
            f"Tips already stored for user {user_id} window {window_start.isoformat()}",
            "PERSISTENCE_CONFLICT",
            {"user_id": user_id, "window_start": window_start.isoformat()}
        )

def log_error(logger: logging.Logger, error: Exception, context: Optional[Dict[str, Any]] = None):
    """Log an error with context"""
    context = context or {}

    if isinstance(error, AppError):
        logger.error(
            f"Application error: {error.message}",
            extra={
                "error_code": error.error_code,
                "error_details": error.details,
                **context
            },
            exc_info=error
        )
    else:
        logger.error(
            f"Unexpected error: {str(error)}",
            extra=context,
            exc_info=error
        )

def log_api_call(logger: logging.Logger,
                endpoint: str,
                user_id: str = None,
                execution_time: float = None,
                status_code: int = None):
    """Log API call metrics"""
    logger.info(
        f"API call completed: {endpoint}",
        extra={
            "endpoint": endpoint,
            "user_id": user_id,
            "execution_time": execution_time,
            "status_code": status_code
        }
    )
