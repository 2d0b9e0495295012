"""
OEE Monitor - OEE Accounting Models

This module defines Pydantic models for the shift-window and OEE accounting
engine: shift definitions, interval snapshots supplied by the caller (job runs,
downtime events, production counts) and the report models returned to the
reporting layer.

All timestamps of one request are expected in the same convention (plant local
wall-clock time, naive or consistently timezone-aware).
"""

from datetime import datetime, date, time
from typing import List, Optional
from enum import Enum

from pydantic import BaseModel, Field


# Enums for status and categories
class MachineStatus(str, Enum):
    """Real-time machine status enumeration."""
    ACTIVE = "Active"
    INACTIVE = "Inactive"


class DowntimeCategory(str, Enum):
    """Downtime category enumeration."""
    PLANNED = "Planned"
    UNPLANNED = "Unplanned"


class MachineState(str, Enum):
    """State of a machine timeline segment."""
    RUN = "Run"
    STOP = "Stop"
    IDLE = "Idle"


# Base models
class BaseOEEModel(BaseModel):
    """Base model for OEE entities."""

    class Config:
        from_attributes = True
        use_enum_values = True
        json_encoders = {
            datetime: lambda v: v.isoformat(),
            date: lambda v: v.isoformat(),
            time: lambda v: v.isoformat()
        }


# Shift Models
class ShiftDefinition(BaseOEEModel):
    """Shift reference data. An end before the start denotes a shift spanning midnight."""
    id: int = Field(..., description="Shift ID")
    name: str = Field(..., min_length=1, max_length=100, description="Shift name")
    start_time: time = Field(..., description="Start time of day")
    end_time: time = Field(..., description="End time of day")

    class Config:
        frozen = True

    @property
    def crosses_midnight(self) -> bool:
        # equal start and end is a round-the-clock shift
        return self.end_time <= self.start_time

    def contains(self, time_of_day: time) -> bool:
        """Half-open ``[start, end)`` membership of a time of day, wrapped over midnight."""
        if self.crosses_midnight:
            return time_of_day >= self.start_time or time_of_day < self.end_time
        return self.start_time <= time_of_day < self.end_time


class ShiftWindow(BaseOEEModel):
    """Concrete wall-clock window of one shift occurrence."""
    start: datetime
    end: datetime
    shift_date: date
    label: str
    key: str
    shift_id: int
    auto_detected: bool = False

    class Config:
        frozen = True

    @property
    def duration_seconds(self) -> float:
        return (self.end - self.start).total_seconds()


# Interval snapshot models
class DowntimeInterval(BaseOEEModel):
    """Downtime event nested in a job run. ``end`` is None while the stop is ongoing."""
    id: Optional[int] = None
    start: datetime = Field(..., description="Downtime start time")
    end: Optional[datetime] = Field(None, description="Downtime end time")
    reason_category: Optional[str] = Field(None, max_length=50, description="Reason category")
    reason_description: Optional[str] = Field(None, max_length=500, description="Reason description")

    @property
    def is_open(self) -> bool:
        return self.end is None

    @property
    def category(self) -> DowntimeCategory:
        from oee_monitor.services.downtime_classifier import classify_downtime
        return classify_downtime(self)


class ProductionCountSample(BaseOEEModel):
    """Point-in-time production count delta."""
    id: Optional[int] = None
    timestamp: datetime = Field(..., description="Sample time")
    good_count: int = Field(0, ge=0, description="Good units")
    reject_count: int = Field(0, ge=0, description="Rejected units")
    reject_reason: Optional[str] = Field(None, max_length=200)

    @property
    def total_count(self) -> int:
        return self.good_count + self.reject_count


class JobRunInterval(BaseOEEModel):
    """One continuous machine operating episode. ``end`` is None while running."""
    id: Optional[int] = None
    start: datetime = Field(..., description="Job run start time")
    end: Optional[datetime] = Field(None, description="Job run end time")
    product_standard_cycle_seconds: float = Field(0.0, ge=0, description="Standard cycle time in seconds")
    target_quantity: int = Field(0, ge=0, description="Work order target quantity")
    work_order_number: Optional[str] = Field(None, max_length=50)
    product_name: Optional[str] = Field(None, max_length=100)
    downtime_events: List[DowntimeInterval] = Field(default_factory=list)
    production_counts: List[ProductionCountSample] = Field(default_factory=list)

    @property
    def is_open(self) -> bool:
        return self.end is None


class MachineSnapshot(BaseOEEModel):
    """All job-run facts of one machine, already fetched by the caller."""
    machine_id: str = Field(..., min_length=1, max_length=50)
    name: str = Field("", max_length=100)
    line_id: Optional[str] = Field(None, max_length=50)
    job_runs: List[JobRunInterval] = Field(default_factory=list)


# OEE Models
class OeeResult(BaseOEEModel):
    """The four OEE percentages."""
    availability: float = Field(..., ge=0, le=100)
    performance: float = Field(..., ge=0, le=100)
    quality: float = Field(..., ge=0, le=100)
    oee: float = Field(..., ge=0, le=100)


class OeeAccumulation(BaseOEEModel):
    """Raw quantities accumulated over a shift window, kept at full precision."""
    loading_time_seconds: float = 0.0
    run_time_seconds: float = 0.0
    operating_time_seconds: float = 0.0
    planned_downtime_seconds: float = 0.0
    unplanned_downtime_seconds: float = 0.0
    total_count: int = 0
    good_count: int = 0
    reject_count: int = 0
    avg_standard_cycle_seconds: float = 0.0

    @property
    def downtime_seconds(self) -> float:
        return self.planned_downtime_seconds + self.unplanned_downtime_seconds

    @property
    def idle_seconds(self) -> float:
        """Window time with no job run loaded at all."""
        return max(0.0, self.loading_time_seconds - self.run_time_seconds)


# Report Models
class ActiveJobSummary(BaseOEEModel):
    """Currently running job as shown on the machine detail page."""
    job_run_id: Optional[int]
    work_order_number: Optional[str]
    product_name: Optional[str]
    display_start: datetime
    target_quantity: int
    current_quantity: int
    last_status_change: datetime
    since_last_change_seconds: int
    has_open_downtime: bool
    estimated_completion: Optional[datetime] = None


class StateSegment(BaseOEEModel):
    """Contiguous Run/Stop/Idle span of a machine timeline."""
    state: MachineState
    start: datetime
    end: datetime
    duration_minutes: float


class MachineStateTimeline(BaseOEEModel):
    """Run/Stop/Idle timeline of one machine over a shift window."""
    machine_id: str
    machine_name: str
    time_labels: List[str]
    segments: List[StateSegment]


class HourlyProduction(BaseOEEModel):
    """Production counts of one wall-clock hour."""
    label: str
    hour_start: datetime
    output: int
    good_count: int
    reject_count: int


class DowntimeReasonTotal(BaseOEEModel):
    """Unplanned downtime minutes of one reason."""
    reason: str
    duration_minutes: float


class DailyTrendPoint(BaseOEEModel):
    """Run/idle/off minutes of one calendar day."""
    day: date
    label: str
    run_minutes: float
    idle_minutes: float
    off_minutes: float


class DowntimeEventSummary(BaseOEEModel):
    """Downtime event as listed in the recent stops table."""
    id: Optional[int]
    category: DowntimeCategory
    reason_category: Optional[str]
    reason_description: Optional[str]
    start: datetime
    end: Optional[datetime]
    duration_seconds: float


class MachineOeeReport(BaseOEEModel):
    """Per-machine OEE report for one shift window."""
    machine_id: str
    machine_name: str
    line_id: Optional[str]
    window: ShiftWindow
    status: MachineStatus
    standard_cycle_seconds: float
    accumulation: OeeAccumulation
    result: OeeResult
    active_job: Optional[ActiveJobSummary] = None
    timeline: MachineStateTimeline
    hourly_production: List[HourlyProduction]
    downtime_pareto: List[DowntimeReasonTotal]
    daily_trend: List[DailyTrendPoint]
    recent_downtimes: List[DowntimeEventSummary]
    recent_counts: List[ProductionCountSample]


class MachineCard(BaseOEEModel):
    """Machine tile of the live dashboard."""
    machine_id: str
    machine_name: str
    line_id: Optional[str]
    status: MachineStatus
    product_name: Optional[str] = None
    work_order_number: Optional[str] = None


class DashboardReport(BaseOEEModel):
    """Plant dashboard aggregated over all requested machines."""
    generated_at: datetime
    window: ShiftWindow
    machines: List[MachineCard]
    accumulation: OeeAccumulation
    result: OeeResult
    timelines: List[MachineStateTimeline]


# Request Models
class ShiftWindowRequest(BaseOEEModel):
    """Model for resolving a shift window."""
    now: Optional[datetime] = Field(None, description="Reference instant (defaults to server time)")
    shifts: Optional[List[ShiftDefinition]] = Field(None, description="Shift catalog (defaults to configured catalog)")
    shift_id: Optional[int] = Field(None, description="Explicitly selected shift")
    shift_date: Optional[date] = Field(None, description="Explicit shift date")


class OeeCalculationRequest(BaseOEEModel):
    """Model for calculating OEE from raw quantities."""
    loading_time_seconds: float = Field(..., ge=0, description="Loading time in seconds")
    down_time_seconds: float = Field(..., ge=0, description="Down time in seconds")
    total_count: int = Field(..., ge=0, description="Total units produced")
    good_count: int = Field(..., ge=0, description="Good units produced")
    standard_cycle_seconds: float = Field(..., description="Standard cycle time in seconds")


class MachineReportRequest(ShiftWindowRequest):
    """Model for a per-machine report request."""
    machines: List[MachineSnapshot] = Field(..., min_length=1, description="Machine snapshots")


class DashboardRequest(ShiftWindowRequest):
    """Model for a dashboard request."""
    machines: List[MachineSnapshot] = Field(default_factory=list, description="Machine snapshots")
    line_id: Optional[str] = Field(None, description="Only include machines of this line")
    machine_id: Optional[str] = Field(None, description="Only include this machine")
