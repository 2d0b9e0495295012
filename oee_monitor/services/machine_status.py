"""
OEE Monitor - Real-Time Machine Status

Machine status is never stored; it is re-derived on every call from the
current job-run facts. An open downtime on the running job wins over the
running job itself.
"""

from typing import Iterable, Optional

from oee_monitor.models.oee import JobRunInterval, MachineStatus


def machine_status(has_open_job_run: bool, has_open_downtime: bool) -> MachineStatus:
    """Map the two live facts to a status."""
    if has_open_downtime:
        return MachineStatus.INACTIVE
    if has_open_job_run:
        return MachineStatus.ACTIVE
    return MachineStatus.INACTIVE


def find_active_job_run(job_runs: Iterable[JobRunInterval]) -> Optional[JobRunInterval]:
    """The open job run with the latest start, if any."""
    active = None
    for run in job_runs:
        if run.is_open and (active is None or run.start > active.start):
            active = run
    return active


def has_open_downtime(job_run: Optional[JobRunInterval]) -> bool:
    if job_run is None:
        return False
    return any(event.is_open for event in job_run.downtime_events)


def resolve_machine_status(job_runs: Iterable[JobRunInterval]) -> MachineStatus:
    """Status of a machine from all of its job runs."""
    active = find_active_job_run(job_runs)
    return machine_status(active is not None, has_open_downtime(active))
