"""Day-window arithmetic for the daily tip cache.

A window starts at the anchor hour (06:00 by default) and ends one second
before the next anchor, so 06:00:00 opens a new window and 05:59:59 still
belongs to the previous one.
"""
from datetime import datetime, time, timedelta
from zoneinfo import ZoneInfo

from . import config
from .schemas import DayWindow

def window_for(now: datetime, anchor_hour: int = None) -> DayWindow:
    anchor = time(config.TIP_WINDOW_ANCHOR_HOUR if anchor_hour is None else anchor_hour)
    day = now.date()
    if now.time() < anchor:
        day -= timedelta(days=1)
    start = datetime.combine(day, anchor, tzinfo=now.tzinfo)
    return DayWindow(start=start, end=start + timedelta(days=1) - timedelta(seconds=1))

def day_seed(window: DayWindow) -> int:
    """Day-of-year of the window start, fed to the generator so tips vary daily"""
    return window.start.timetuple().tm_yday

def now_service() -> datetime:
    return datetime.now(ZoneInfo(config.SERVICE_TIMEZONE))
