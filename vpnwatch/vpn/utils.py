"""Utility functions for VPN session monitoring."""

from datetime import datetime, timedelta
from typing import Optional

from .models import Stage


IDLE_TOKENS = ("", "idle", "invalid")


def parse_stage(raw: Optional[str]) -> Stage:
    """
    Convert a raw stage token produced by the native side to a Stage.

    Args:
        raw: Raw token, possibly abbreviated, prefixed or None

    Returns:
        Stage: first stage whose name contains the token, DISCONNECTED for
        empty/idle/invalid tokens, UNKNOWN when nothing matches
    """
    if raw is None:
        return Stage.DISCONNECTED

    token = str(raw).strip().lower()
    if token in IDLE_TOKENS:
        return Stage.DISCONNECTED

    for stage in Stage:
        if token in stage.value:
            return stage
    return Stage.UNKNOWN


def format_duration(elapsed: timedelta) -> str:
    """
    Format an elapsed time as HH:MM:SS.

    Hours are not wrapped at 24.

    Args:
        elapsed: Elapsed time

    Returns:
        str: Zero padded duration string
    """
    total_seconds = int(abs(elapsed).total_seconds())
    hours, remainder = divmod(total_seconds, 3600)
    minutes, seconds = divmod(remainder, 60)
    return f"{hours:02d}:{minutes:02d}:{seconds:02d}"


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """
    Parse an ISO-8601 timestamp reported by the native side.

    Args:
        value: Timestamp string, a trailing 'Z' is accepted as UTC

    Returns:
        datetime or None if the value cannot be parsed
    """
    if value is None:
        return None

    text = str(value).strip()
    if not text:
        return None
    if text[-1] in ("Z", "z"):
        text = text[:-1] + "+00:00"

    try:
        return datetime.fromisoformat(text)
    except ValueError:
        return None


def elapsed_since(moment: datetime) -> timedelta:
    """Absolute time elapsed since moment, aware or naive."""
    now = datetime.now(moment.tzinfo) if moment.tzinfo else datetime.now()
    return abs(now - moment)
