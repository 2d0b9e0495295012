"""Builders for interval snapshots used across the test suite."""

from datetime import date, datetime, time, timedelta

from oee_monitor.models.oee import (
    DowntimeInterval, JobRunInterval, MachineSnapshot, ProductionCountSample,
    ShiftDefinition, ShiftWindow
)
from oee_monitor.services.shift_window import parse_time_of_day

DAY = date(2026, 3, 10)


def at(hour, minute=0, days=0, second=0):
    """Wall-clock instant on DAY, shifted by ``days``."""
    return datetime.combine(DAY + timedelta(days=days), time(hour, minute, second))


def shift(shift_id, name, start, end):
    return ShiftDefinition(
        id=shift_id,
        name=name,
        start_time=parse_time_of_day(start),
        end_time=parse_time_of_day(end)
    )


CATALOG = [
    shift(1, "A", "06:00", "14:00"),
    shift(2, "B", "14:00", "22:00"),
    shift(3, "C", "22:00", "06:00"),
]


def window(start, end, shift_id=1, label="A"):
    return ShiftWindow(
        start=start,
        end=end,
        shift_date=start.date(),
        label=label,
        key=f"{start.date().isoformat()}|{shift_id}",
        shift_id=shift_id
    )


def stop(start, end=None, category="Unplanned", description=None, event_id=None):
    return DowntimeInterval(
        id=event_id,
        start=start,
        end=end,
        reason_category=category,
        reason_description=description
    )


def sample(timestamp, good, reject=0):
    return ProductionCountSample(timestamp=timestamp, good_count=good, reject_count=reject)


def run(start, end=None, cycle=0.0, target=0, stops=(), counts=(), **kwargs):
    return JobRunInterval(
        start=start,
        end=end,
        product_standard_cycle_seconds=cycle,
        target_quantity=target,
        downtime_events=list(stops),
        production_counts=list(counts),
        **kwargs
    )


def machine(machine_id, runs=(), name=None, line_id="L1"):
    return MachineSnapshot(
        machine_id=machine_id,
        name=name or f"Machine {machine_id}",
        line_id=line_id,
        job_runs=list(runs)
    )
