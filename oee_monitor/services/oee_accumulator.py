"""
OEE Monitor - OEE Accumulator

This module walks job runs and their downtime events clipped to a shift window
and accumulates the raw quantities the OEE calculator needs.

Accounting rules:
- An open job run or downtime event ends at ``min(now, window.end)``.
- Downtime is clipped to its run. Overlapping events of the same category
  within one run count once.
- Operating time of a run is its clipped duration minus its unplanned
  downtime. Planned downtime does not reduce it.
- Production count samples are summed when ``window.start <= t < window.end``.
- The standard cycle time is that of the open run among the runs touching the
  window, so a past window is not scaled by the product running now.
- Run time, downtime and idle time need not add up to the window length;
  windows with no job loaded leave true idle gaps.
"""

from datetime import datetime
from typing import Iterable, Iterator, List, Sequence, Tuple

import structlog

from oee_monitor.models.oee import DowntimeInterval, JobRunInterval, OeeAccumulation, ShiftWindow
from oee_monitor.services.downtime_classifier import partition_downtime
from oee_monitor.services.intervals import clip, effective_end, merged_seconds
from oee_monitor.services.machine_status import find_active_job_run

logger = structlog.get_logger()


def runs_in_window(
    window: ShiftWindow,
    job_runs: Iterable[JobRunInterval],
    now: datetime
) -> List[JobRunInterval]:
    """Job runs with a non-empty part inside ``window``."""
    return [
        run for run in job_runs
        if clip(run.start, effective_end(run.end, now, window.end), window.start, window.end) is not None
    ]


def active_standard_cycle_seconds(job_runs: Iterable[JobRunInterval]) -> float:
    """Standard cycle time of the product on the currently open run, else 0."""
    active = find_active_job_run(job_runs)
    if active is None:
        return 0.0
    return active.product_standard_cycle_seconds


def _clipped_spans(
    events: Iterable[DowntimeInterval],
    now: datetime,
    window: ShiftWindow,
    span_start: datetime,
    span_end: datetime
) -> Iterator[Tuple[datetime, datetime]]:
    for event in events:
        span = clip(event.start, effective_end(event.end, now, window.end), span_start, span_end)
        if span is not None:
            yield span


def accumulate(
    window: ShiftWindow,
    job_runs: Sequence[JobRunInterval],
    now: datetime
) -> OeeAccumulation:
    """Accumulate run time, downtime and counts of one machine over ``window``."""
    run_time = 0.0
    operating_time = 0.0
    planned_downtime = 0.0
    unplanned_downtime = 0.0

    window_runs = runs_in_window(window, job_runs, now)
    for run in window_runs:
        span_start, span_end = clip(run.start, effective_end(run.end, now, window.end), window.start, window.end)
        run_seconds = (span_end - span_start).total_seconds()

        planned, unplanned = partition_downtime(run.downtime_events)
        run_unplanned = merged_seconds(_clipped_spans(unplanned, now, window, span_start, span_end))
        planned_downtime += merged_seconds(_clipped_spans(planned, now, window, span_start, span_end))

        unplanned_downtime += run_unplanned
        run_time += run_seconds
        operating_time += max(0.0, run_seconds - run_unplanned)

    good_count = 0
    reject_count = 0
    for run in job_runs:
        for sample in run.production_counts:
            if window.start <= sample.timestamp < window.end:
                good_count += sample.good_count
                reject_count += sample.reject_count

    return OeeAccumulation(
        loading_time_seconds=window.duration_seconds,
        run_time_seconds=run_time,
        operating_time_seconds=operating_time,
        planned_downtime_seconds=planned_downtime,
        unplanned_downtime_seconds=unplanned_downtime,
        total_count=good_count + reject_count,
        good_count=good_count,
        reject_count=reject_count,
        avg_standard_cycle_seconds=active_standard_cycle_seconds(window_runs)
    )


def combine(accumulations: Iterable[OeeAccumulation]) -> OeeAccumulation:
    """
    Aggregate per-machine accumulations.

    Times and counts are summed, so loading time becomes machine time. The
    standard cycle time is averaged over machines that have a positive value,
    and is 0 when none does.
    """
    combined = OeeAccumulation()
    cycle_times: List[float] = []
    for acc in accumulations:
        combined.loading_time_seconds += acc.loading_time_seconds
        combined.run_time_seconds += acc.run_time_seconds
        combined.operating_time_seconds += acc.operating_time_seconds
        combined.planned_downtime_seconds += acc.planned_downtime_seconds
        combined.unplanned_downtime_seconds += acc.unplanned_downtime_seconds
        combined.total_count += acc.total_count
        combined.good_count += acc.good_count
        combined.reject_count += acc.reject_count
        if acc.avg_standard_cycle_seconds > 0:
            cycle_times.append(acc.avg_standard_cycle_seconds)

    if cycle_times:
        combined.avg_standard_cycle_seconds = sum(cycle_times) / len(cycle_times)
    return combined


def accumulate_machines(
    window: ShiftWindow,
    machines_job_runs: Iterable[Sequence[JobRunInterval]],
    now: datetime
) -> OeeAccumulation:
    """Accumulate several machines over the same window."""
    per_machine = [accumulate(window, job_runs, now) for job_runs in machines_job_runs]
    combined = combine(per_machine)
    logger.debug(
        "Machines accumulated",
        key=window.key,
        machines=len(per_machine),
        operating_time_seconds=combined.operating_time_seconds
    )
    return combined
