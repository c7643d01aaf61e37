"""
Deadline enforcement for mock test attempts.

The deadline is fixed when an attempt starts and is the only authoritative
time boundary. The client countdown is advisory: it decides when to *call*
submit, never whether a submission counts.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

from app.core.config import settings


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """SQLite hands back naive datetimes; everything stored is UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def compute_deadline(started_at: datetime, time_limit_minutes: int) -> datetime:
    return as_utc(started_at) + timedelta(minutes=time_limit_minutes)


def _grace(grace_seconds: Optional[int]) -> timedelta:
    if grace_seconds is None:
        grace_seconds = settings.attempt_grace_period_seconds
    return timedelta(seconds=grace_seconds)


def remaining_seconds(attempt, now: Optional[datetime] = None) -> int:
    """Whole seconds left before the deadline, never negative."""
    if attempt.submitted_at is not None:
        return 0
    now = as_utc(now or utc_now())
    remaining = (as_utc(attempt.deadline_at) - now).total_seconds()
    return max(0, int(remaining))


def is_expired(
    attempt, now: Optional[datetime] = None, grace_seconds: Optional[int] = None
) -> bool:
    now = as_utc(now or utc_now())
    return now > as_utc(attempt.deadline_at) + _grace(grace_seconds)


def elapsed_seconds(attempt, submitted_at: datetime) -> int:
    return int((as_utc(submitted_at) - as_utc(attempt.started_at)).total_seconds())


def is_late(
    attempt, submitted_at: datetime, grace_seconds: Optional[int] = None
) -> bool:
    """
    A submission is late when the server-measured time since start exceeds
    the time limit plus the grace period. Late submissions are still scored.
    """
    allowed = (as_utc(attempt.deadline_at) - as_utc(attempt.started_at)) + _grace(
        grace_seconds
    )
    return (as_utc(submitted_at) - as_utc(attempt.started_at)) > allowed
