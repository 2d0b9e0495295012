"""
OEE Monitor - Machine State Timeline

Builds the Run/Stop/Idle strip chart of one machine over a shift window.
Segments are contiguous and cover the whole window: time without a job run is
Idle, downtime inside a run is Stop regardless of its category, and the rest
of a run is Run.
"""

from datetime import datetime, timedelta
from typing import List, Sequence

from oee_monitor.models.oee import (
    JobRunInterval, MachineState, MachineStateTimeline, ShiftWindow, StateSegment
)
from oee_monitor.services.intervals import clip, effective_end

DEFAULT_LABEL_INTERVAL_MINUTES = 15


def time_labels(window: ShiftWindow, interval_minutes: int = DEFAULT_LABEL_INTERVAL_MINUTES) -> List[str]:
    """``HH:MM`` axis labels from the window start through its end."""
    step = timedelta(minutes=interval_minutes)
    labels = []
    cursor = window.start
    while cursor <= window.end:
        labels.append(cursor.strftime("%H:%M"))
        cursor += step
    return labels


def _append(segments: List[StateSegment], state: MachineState, start: datetime, end: datetime) -> None:
    if end <= start:
        return
    if segments and segments[-1].state == state and segments[-1].end == start:
        previous = segments.pop()
        start = previous.start
    segments.append(StateSegment(
        state=state,
        start=start,
        end=end,
        duration_minutes=(end - start).total_seconds() / 60.0
    ))


def build_segments(
    window: ShiftWindow,
    job_runs: Sequence[JobRunInterval],
    now: datetime
) -> List[StateSegment]:
    """Contiguous Run/Stop/Idle segments covering ``[window.start, window.end)``."""
    segments: List[StateSegment] = []
    cursor = window.start

    for run in sorted(job_runs, key=lambda r: r.start):
        run_end = effective_end(run.end, now, window.end)
        # clipping to the cursor keeps overlapping runs from overlapping segments
        span = clip(run.start, run_end, cursor, window.end)
        if span is None:
            continue
        span_start, span_end = span

        _append(segments, MachineState.IDLE, cursor, span_start)

        run_cursor = span_start
        for event in sorted(run.downtime_events, key=lambda d: d.start):
            event_end = effective_end(event.end, now, window.end)
            stop = clip(event.start, event_end, run_cursor, span_end)
            if stop is None:
                continue
            _append(segments, MachineState.RUN, run_cursor, stop[0])
            _append(segments, MachineState.STOP, stop[0], stop[1])
            run_cursor = stop[1]

        _append(segments, MachineState.RUN, run_cursor, span_end)
        cursor = span_end

    _append(segments, MachineState.IDLE, cursor, window.end)
    return segments


def build_state_timeline(
    window: ShiftWindow,
    job_runs: Sequence[JobRunInterval],
    now: datetime,
    machine_id: str = "",
    machine_name: str = "",
    interval_minutes: int = DEFAULT_LABEL_INTERVAL_MINUTES
) -> MachineStateTimeline:
    return MachineStateTimeline(
        machine_id=machine_id,
        machine_name=machine_name,
        time_labels=time_labels(window, interval_minutes),
        segments=build_segments(window, job_runs, now)
    )
