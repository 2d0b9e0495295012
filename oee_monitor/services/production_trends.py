"""
OEE Monitor - Production Trends

Chart data derived from the same interval snapshot as the OEE figures:
hourly output of a shift window, the unplanned downtime Pareto and the daily
run/idle/off trend of the last days.
"""

from collections import defaultdict
from datetime import datetime, time, timedelta
from typing import Dict, List, Sequence

from oee_monitor.models.oee import (
    DailyTrendPoint, DowntimeReasonTotal, HourlyProduction, JobRunInterval, ShiftWindow
)
from oee_monitor.services.downtime_classifier import is_unplanned
from oee_monitor.services.intervals import effective_end, overlap_seconds

UNKNOWN_REASON = "Unknown"
DEFAULT_TREND_DAYS = 7


def _hour_floor(value: datetime) -> datetime:
    return value.replace(minute=0, second=0, microsecond=0)


def hourly_production(window: ShiftWindow, job_runs: Sequence[JobRunInterval]) -> List[HourlyProduction]:
    """Counts bucketed per wall-clock hour, one bucket for every hour overlapping the window."""
    good: Dict[datetime, int] = defaultdict(int)
    reject: Dict[datetime, int] = defaultdict(int)
    for run in job_runs:
        for sample in run.production_counts:
            if window.start <= sample.timestamp < window.end:
                hour = _hour_floor(sample.timestamp)
                good[hour] += sample.good_count
                reject[hour] += sample.reject_count

    buckets = []
    hour = _hour_floor(window.start)
    while hour < window.end:
        buckets.append(HourlyProduction(
            label=hour.strftime("%H:00"),
            hour_start=hour,
            output=good[hour] + reject[hour],
            good_count=good[hour],
            reject_count=reject[hour]
        ))
        hour += timedelta(hours=1)
    return buckets


def downtime_pareto(
    window: ShiftWindow,
    job_runs: Sequence[JobRunInterval],
    now: datetime
) -> List[DowntimeReasonTotal]:
    """Unplanned downtime minutes inside the window per reason, largest first."""
    totals: Dict[str, float] = defaultdict(float)
    for run in job_runs:
        for event in run.downtime_events:
            if not is_unplanned(event):
                continue
            event_end = effective_end(event.end, now, window.end)
            seconds = overlap_seconds(event.start, event_end, window.start, window.end)
            if seconds > 0:
                totals[event.reason_description or UNKNOWN_REASON] += seconds

    ranked = sorted(totals.items(), key=lambda item: item[1], reverse=True)
    return [
        DowntimeReasonTotal(reason=reason, duration_minutes=seconds / 60.0)
        for reason, seconds in ranked
    ]


def daily_trend(
    job_runs: Sequence[JobRunInterval],
    now: datetime,
    days: int = DEFAULT_TREND_DAYS
) -> List[DailyTrendPoint]:
    """
    Run, idle and off minutes per calendar day for the ``days`` days ending today.

    Run time is job-run coverage minus downtime of any category, off time is
    that downtime, and idle time is the elapsed part of the day (up to ``now``)
    not covered by a job run.
    """
    points = []
    first_day = now.date() - timedelta(days=days - 1)
    for offset in range(days):
        day = first_day + timedelta(days=offset)
        day_start = datetime.combine(day, time.min, tzinfo=now.tzinfo)
        day_end = day_start + timedelta(days=1)
        elapsed_end = now if now < day_end else day_end

        covered = 0.0
        downtime = 0.0
        for run in job_runs:
            run_end = effective_end(run.end, now, elapsed_end)
            covered += overlap_seconds(run.start, run_end, day_start, elapsed_end)
            for event in run.downtime_events:
                event_end = effective_end(event.end, now, elapsed_end)
                downtime += overlap_seconds(event.start, event_end, day_start, elapsed_end)

        elapsed = max(0.0, (elapsed_end - day_start).total_seconds())
        points.append(DailyTrendPoint(
            day=day,
            label=day.strftime("%b %d"),
            run_minutes=max(0.0, covered - downtime) / 60.0,
            idle_minutes=max(0.0, elapsed - covered) / 60.0,
            off_minutes=downtime / 60.0
        ))
    return points
