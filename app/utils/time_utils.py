from datetime import datetime, timedelta
from typing import Any, Optional, Tuple
import logging
import math
import pytz

logger = logging.getLogger(__name__)

UTC = pytz.UTC

def get_utc_time():
    """Get current time in UTC"""
    return datetime.now(UTC)

def ensure_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """Attach UTC to naive datetimes (SQLite drops tzinfo) and convert aware ones"""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return UTC.localize(dt)
    return dt.astimezone(UTC)

def parse_iso_datetime(value: Any) -> Optional[datetime]:
    """Parse an ISO8601 string into an aware UTC datetime, or None"""
    if isinstance(value, datetime):
        return ensure_utc(value)
    if not isinstance(value, str) or not value.strip():
        return None
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return ensure_utc(datetime.fromisoformat(text))
    except ValueError:
        return None

def to_iso(dt: Optional[datetime]) -> Optional[str]:
    dt = ensure_utc(dt)
    return dt.isoformat() if dt else None

def format_day_label(dt):
    """Short day-month label used on timeline charts"""
    return ensure_utc(dt).strftime("%d %b")

def sanitize_time_spent(time_spent: Any, answered_count: int, max_seconds: int) -> Tuple[int, bool]:
    """Clamp client-reported seconds into [0, max_seconds].

    Returns (seconds, suspect). The attempt is still scored either way.
    """
    try:
        value = float(time_spent)
    except (TypeError, ValueError):
        return 0, True
    except OverflowError:
        # Integers too large for a float
        return (max_seconds, True) if time_spent > 0 else (0, True)

    if math.isnan(value) or value == -math.inf:
        return 0, True
    if value == math.inf:
        return max_seconds, True
    seconds = int(value)

    if seconds < 0:
        return 0, True
    if seconds == 0:
        return 0, answered_count > 0
    if seconds > max_seconds:
        return max_seconds, True
    return seconds, False

def resolve_started_at(started_at: Any, completed_at: datetime, time_spent: int) -> Tuple[datetime, bool]:
    """Return (started_at, suspect).

    A missing, unparseable or future start time is replaced by
    completed_at - time_spent, matching how the attempt would have run.
    """
    fallback = completed_at - timedelta(seconds=time_spent)
    parsed = parse_iso_datetime(started_at)
    if parsed is None:
        return fallback, started_at is not None
    if parsed > completed_at:
        logger.warning(f"startedAt {parsed.isoformat()} is after completion, using fallback")
        return fallback, True
    return parsed, False
