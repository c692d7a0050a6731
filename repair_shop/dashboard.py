"""
Dashboard statistics: pending/completed totals and a 7-day histogram of
received and completed repairs.
"""
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Dict, Iterable, List, Optional

from .models import STATUS_COMPLETED, RepairJob

WINDOW_DAYS = 7


@dataclass
class DayBucket:
    day: date
    received: int = 0
    completed: int = 0


@dataclass
class DashboardSummary:
    pending_count: int = 0
    completed_count: int = 0
    days: List[DayBucket] = field(default_factory=list)


def millis_to_datetime(ms: int) -> datetime:
    return datetime.fromtimestamp(ms / 1000.0)


def datetime_to_millis(dt: datetime) -> int:
    return int(dt.timestamp() * 1000)


def aggregate(repairs: Iterable[RepairJob], now: Optional[datetime] = None) -> DashboardSummary:
    now = now or datetime.now()
    window_start = now - timedelta(days=WINDOW_DAYS)
    today = now.date()
    days = [DayBucket(today - timedelta(days=i)) for i in range(WINDOW_DAYS - 1, -1, -1)]
    by_day: Dict[date, DayBucket] = {b.day: b for b in days}

    summary = DashboardSummary(days=days)
    for r in repairs:
        if r.status == STATUS_COMPLETED:
            summary.completed_count += 1
        else:
            summary.pending_count += 1

        created = millis_to_datetime(r.created_at)
        if created < window_start:
            continue
        bucket = by_day.get(created.date())
        if bucket is not None:
            bucket.received += 1
        if r.status == STATUS_COMPLETED and r.completed_at is not None:
            finished = millis_to_datetime(r.completed_at)
            if finished >= window_start:
                bucket = by_day.get(finished.date())
                if bucket is not None:
                    bucket.completed += 1
    return summary
