"""
OEE Monitor - OEE Report Service

This module is the single entry point the reporting endpoints use to turn a
machine snapshot into OEE figures. It resolves the shift window once, runs the
accumulator and calculator, and assembles the chart data around them, so
every view computes OEE the same way.
"""

from datetime import date, datetime, timedelta
from typing import Iterable, List, Optional, Sequence

import structlog

from oee_monitor.config import settings
from oee_monitor.models.oee import (
    ActiveJobSummary, DashboardReport, DowntimeEventSummary, JobRunInterval, MachineCard,
    MachineOeeReport, MachineSnapshot, ProductionCountSample, ShiftDefinition, ShiftWindow
)
from oee_monitor.monitoring.metrics import metrics
from oee_monitor.services.downtime_classifier import classify_downtime
from oee_monitor.services.intervals import effective_end
from oee_monitor.services.machine_status import (
    find_active_job_run, has_open_downtime, resolve_machine_status
)
from oee_monitor.services.machine_timeline import build_state_timeline
from oee_monitor.services.oee_accumulator import accumulate, accumulate_machines
from oee_monitor.services.oee_calculator import OEECalculator
from oee_monitor.services.production_trends import daily_trend, downtime_pareto, hourly_production
from oee_monitor.services.shift_window import (
    default_shift, parse_shift_catalog, parse_time_of_day, resolve_shift_window
)
from oee_monitor.utils.exceptions import OEEError, OEEMonitorException

logger = structlog.get_logger()


def configured_shift_catalog() -> List[ShiftDefinition]:
    """Shift catalog from the ``SHIFT_CATALOG`` setting."""
    return parse_shift_catalog(settings.SHIFT_CATALOG)


def configured_default_shift() -> ShiftDefinition:
    """Fallback shift from the ``DEFAULT_SHIFT_START``/``DEFAULT_SHIFT_END`` settings."""
    return default_shift(
        parse_time_of_day(settings.DEFAULT_SHIFT_START),
        parse_time_of_day(settings.DEFAULT_SHIFT_END)
    )


class OEEReportService:
    """OEE report assembly service."""

    @staticmethod
    def resolve_window(
        now: datetime,
        shifts: Optional[Sequence[ShiftDefinition]] = None,
        shift_id: Optional[int] = None,
        shift_date: Optional[date] = None
    ) -> ShiftWindow:
        """Resolve a window against the given catalog, or the configured one when None."""
        catalog = configured_shift_catalog() if shifts is None else list(shifts)
        return resolve_shift_window(
            now,
            catalog,
            explicit_shift_id=shift_id,
            explicit_date=shift_date,
            fallback_shift=configured_default_shift()
        )

    @staticmethod
    def build_machine_report(
        machine: MachineSnapshot,
        now: datetime,
        shifts: Optional[Sequence[ShiftDefinition]] = None,
        shift_id: Optional[int] = None,
        shift_date: Optional[date] = None
    ) -> MachineOeeReport:
        """Build the OEE detail report of one machine for one shift window."""
        with metrics.track_report("machine"):
            try:
                window = OEEReportService.resolve_window(now, shifts, shift_id, shift_date)
                job_runs = machine.job_runs

                accumulation = accumulate(window, job_runs, now)
                result = OEECalculator.calculate_from_accumulation(
                    accumulation, decimals=settings.RESULT_DECIMALS
                )

                report = MachineOeeReport(
                    machine_id=machine.machine_id,
                    machine_name=machine.name,
                    line_id=machine.line_id,
                    window=window,
                    status=resolve_machine_status(job_runs),
                    standard_cycle_seconds=accumulation.avg_standard_cycle_seconds,
                    accumulation=accumulation,
                    result=result,
                    active_job=OEEReportService._summarize_active_job(window, job_runs, now),
                    timeline=build_state_timeline(
                        window, job_runs, now,
                        machine_id=machine.machine_id,
                        machine_name=machine.name,
                        interval_minutes=settings.TIMELINE_INTERVAL_MINUTES
                    ),
                    hourly_production=hourly_production(window, job_runs),
                    downtime_pareto=downtime_pareto(window, job_runs, now),
                    daily_trend=daily_trend(job_runs, now, days=settings.TREND_DAYS),
                    recent_downtimes=OEEReportService._recent_downtimes(window, job_runs, now),
                    recent_counts=OEEReportService._recent_counts(window, job_runs)
                )

            except OEEMonitorException:
                raise
            except Exception as e:
                logger.error(
                    "Failed to build machine OEE report",
                    error=str(e),
                    machine_id=machine.machine_id
                )
                raise OEEError("Failed to build machine OEE report", {"original_error": str(e)}) from e

        metrics.record_machine_result(machine.machine_id, result)

        logger.info(
            "Machine OEE report built",
            machine_id=machine.machine_id,
            shift_key=window.key,
            status=report.status,
            oee=result.oee,
            availability=result.availability,
            performance=result.performance,
            quality=result.quality
        )

        return report

    @staticmethod
    def build_dashboard(
        machines: Iterable[MachineSnapshot],
        now: datetime,
        shifts: Optional[Sequence[ShiftDefinition]] = None,
        shift_id: Optional[int] = None,
        shift_date: Optional[date] = None,
        line_id: Optional[str] = None,
        machine_id: Optional[str] = None
    ) -> DashboardReport:
        """Build the plant dashboard: one window, machine cards and the aggregate OEE."""
        with metrics.track_report("dashboard"):
            try:
                selected = [
                    m for m in machines
                    if (line_id is None or m.line_id == line_id)
                    and (machine_id is None or m.machine_id == machine_id)
                ]
                window = OEEReportService.resolve_window(now, shifts, shift_id, shift_date)

                cards = []
                timelines = []
                for machine in selected:
                    active = find_active_job_run(machine.job_runs)
                    cards.append(MachineCard(
                        machine_id=machine.machine_id,
                        machine_name=machine.name,
                        line_id=machine.line_id,
                        status=resolve_machine_status(machine.job_runs),
                        product_name=active.product_name if active else None,
                        work_order_number=active.work_order_number if active else None
                    ))
                    timelines.append(build_state_timeline(
                        window, machine.job_runs, now,
                        machine_id=machine.machine_id,
                        machine_name=machine.name,
                        interval_minutes=settings.TIMELINE_INTERVAL_MINUTES
                    ))

                accumulation = accumulate_machines(window, [m.job_runs for m in selected], now)
                result = OEECalculator.calculate_from_accumulation(
                    accumulation, decimals=settings.RESULT_DECIMALS
                )

            except OEEMonitorException:
                raise
            except Exception as e:
                logger.error("Failed to build OEE dashboard", error=str(e))
                raise OEEError("Failed to build OEE dashboard", {"original_error": str(e)}) from e

        logger.info(
            "OEE dashboard built",
            shift_key=window.key,
            machines=len(selected),
            oee=result.oee
        )

        return DashboardReport(
            generated_at=now,
            window=window,
            machines=cards,
            accumulation=accumulation,
            result=result,
            timelines=timelines
        )

    @staticmethod
    def _summarize_active_job(
        window: ShiftWindow,
        job_runs: Sequence[JobRunInterval],
        now: datetime
    ) -> Optional[ActiveJobSummary]:
        """Summary of the running job, with elapsed time since its last status change."""
        active = find_active_job_run(job_runs)
        if active is None:
            return None

        open_stops = [event for event in active.downtime_events if event.is_open]
        last_change = max(open_stops, key=lambda d: d.start).start if open_stops else active.start

        good = sum(sample.good_count for sample in active.production_counts)
        current_quantity = sum(sample.total_count for sample in active.production_counts)

        estimated_completion = None
        remaining = active.target_quantity - good
        elapsed = (now - active.start).total_seconds()
        if active.target_quantity > 0 and good > 0 and elapsed > 0 and remaining > 0:
            rate = good / elapsed
            estimated_completion = now + timedelta(seconds=remaining / rate)

        return ActiveJobSummary(
            job_run_id=active.id,
            work_order_number=active.work_order_number,
            product_name=active.product_name,
            display_start=max(active.start, window.start),
            target_quantity=active.target_quantity,
            current_quantity=current_quantity,
            last_status_change=last_change,
            since_last_change_seconds=max(0, int((now - last_change).total_seconds())),
            has_open_downtime=has_open_downtime(active),
            estimated_completion=estimated_completion
        )

    @staticmethod
    def _recent_downtimes(
        window: ShiftWindow,
        job_runs: Sequence[JobRunInterval],
        now: datetime
    ) -> List[DowntimeEventSummary]:
        """Latest downtime events touching the window."""
        events = []
        for run in job_runs:
            for event in run.downtime_events:
                event_end = effective_end(event.end, now, window.end)
                if event.start < window.end and event_end > window.start:
                    events.append(DowntimeEventSummary(
                        id=event.id,
                        category=classify_downtime(event),
                        reason_category=event.reason_category,
                        reason_description=event.reason_description,
                        start=event.start,
                        end=event.end,
                        duration_seconds=max(0.0, (event_end - event.start).total_seconds())
                    ))
        events.sort(key=lambda e: e.start, reverse=True)
        return events[:settings.RECENT_DOWNTIME_LIMIT]

    @staticmethod
    def _recent_counts(
        window: ShiftWindow,
        job_runs: Sequence[JobRunInterval]
    ) -> List[ProductionCountSample]:
        """Latest production count samples inside the window."""
        samples = [
            sample
            for run in job_runs
            for sample in run.production_counts
            if window.start <= sample.timestamp < window.end
        ]
        samples.sort(key=lambda s: s.timestamp, reverse=True)
        return samples[:settings.RECENT_COUNT_LIMIT]
