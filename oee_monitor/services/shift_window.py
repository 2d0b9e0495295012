"""
OEE Monitor - Shift Window Resolution

This module turns a shift catalog and a reference instant into the concrete
wall-clock window a report is computed over, handling shifts that cross
midnight.

Resolution rules:
- Without an explicit shift the shift containing ``now`` (half-open,
  first match in catalog order) is used, falling back to the first catalog
  entry and then to a default 06:00-14:00 shift. Today's occurrence is used
  unless ``now`` precedes it, in which case yesterday's is used, and the
  window end is clipped to ``now``.
- An explicitly selected shift shows today's occurrence when it contains
  ``now`` and yesterday's full occurrence otherwise, also when today's has
  not started yet.
- An explicit date pins the occurrence date directly.
"""

from datetime import date, datetime, time, timedelta
from typing import Iterable, List, Optional, Tuple

import structlog

from oee_monitor.models.oee import ShiftDefinition, ShiftWindow
from oee_monitor.utils.exceptions import ShiftConfigurationError

logger = structlog.get_logger()

DEFAULT_SHIFT_ID = 0
DEFAULT_SHIFT_NAME = "Default"
DEFAULT_SHIFT_START = time(6, 0)
DEFAULT_SHIFT_END = time(14, 0)

# Smallest window returned for a shift that starts exactly at ``now``.
MIN_WINDOW = timedelta(seconds=1)


def parse_time_of_day(value: str) -> time:
    """Parse ``HH:MM`` or ``HH:MM:SS``."""
    parts = value.strip().split(":")
    if len(parts) not in (2, 3) or not all(part.isdigit() for part in parts):
        raise ValueError(f"Invalid time of day: {value!r}")
    return time(*(int(part) for part in parts))


def parse_shift_catalog(value: str) -> List[ShiftDefinition]:
    """
    Parse a shift catalog such as ``"A=06:00-14:00,B=14:00-22:00,C=22:00-06:00"``.

    Shifts get ids 1..n in catalog order. An empty string is an empty catalog.
    """
    shifts: List[ShiftDefinition] = []
    for index, entry in enumerate(e.strip() for e in value.split(",") if e.strip()):
        name, sep, span = entry.partition("=")
        start_text, dash, end_text = span.partition("-")
        if not sep or not dash or not name.strip():
            raise ShiftConfigurationError(entry, "Shift entries must look like NAME=HH:MM-HH:MM")
        try:
            start_time = parse_time_of_day(start_text)
            end_time = parse_time_of_day(end_text)
        except ValueError as e:
            raise ShiftConfigurationError(entry, details={"original_error": str(e)})
        shifts.append(ShiftDefinition(
            id=index + 1,
            name=name.strip(),
            start_time=start_time,
            end_time=end_time
        ))
    return shifts


def default_shift(
    start_time: time = DEFAULT_SHIFT_START,
    end_time: time = DEFAULT_SHIFT_END
) -> ShiftDefinition:
    """Shift used when the catalog is empty."""
    return ShiftDefinition(
        id=DEFAULT_SHIFT_ID,
        name=DEFAULT_SHIFT_NAME,
        start_time=start_time,
        end_time=end_time
    )


def detect_shift(now: datetime, shifts: Iterable[ShiftDefinition]) -> Optional[ShiftDefinition]:
    """First shift in catalog order whose time-of-day range contains ``now``."""
    time_of_day = now.time()
    for shift in shifts:
        if shift.contains(time_of_day):
            return shift
    return None


def shift_occurrence(shift: ShiftDefinition, base_date: date, tzinfo=None) -> Tuple[datetime, datetime]:
    """Start and end of the occurrence of ``shift`` that starts on ``base_date``."""
    start = datetime.combine(base_date, shift.start_time, tzinfo=tzinfo)
    end_date = base_date + timedelta(days=1) if shift.crosses_midnight else base_date
    end = datetime.combine(end_date, shift.end_time, tzinfo=tzinfo)
    return start, end


def resolve_shift_window(
    now: datetime,
    shifts: Optional[Iterable[ShiftDefinition]] = None,
    explicit_shift_id: Optional[int] = None,
    explicit_date: Optional[date] = None,
    fallback_shift: Optional[ShiftDefinition] = None
) -> ShiftWindow:
    """
    Resolve the shift window to report on.

    Args:
        now: Reference instant; the only clock the resolver reads
        shifts: Shift catalog in display order
        explicit_shift_id: Shift selected by the user, if any
        explicit_date: Occurrence date selected by the user, if any
        fallback_shift: Shift used for an empty catalog (defaults to 06:00-14:00)

    Returns:
        The resolved window; ``end > start`` always holds
    """
    catalog = list(shifts or [])

    selected: Optional[ShiftDefinition] = None
    if explicit_shift_id is not None:
        selected = next((s for s in catalog if s.id == explicit_shift_id), None)
        if selected is None:
            logger.warning(
                "Selected shift not in catalog, detecting current shift",
                shift_id=explicit_shift_id,
                catalog_size=len(catalog)
            )

    auto_detected = selected is None
    if auto_detected:
        selected = detect_shift(now, catalog)
        if selected is None:
            selected = catalog[0] if catalog else (fallback_shift or default_shift())

    today = now.date()
    yesterday = today - timedelta(days=1)
    tzinfo = now.tzinfo

    if explicit_date is not None:
        base_date = explicit_date
        start, end = shift_occurrence(selected, base_date, tzinfo)
    elif not auto_detected:
        base_date = today
        start, end = shift_occurrence(selected, base_date, tzinfo)
        if not (start <= now < end):
            # before today's start or after today's end: yesterday's full occurrence
            base_date = yesterday
            start, end = shift_occurrence(selected, base_date, tzinfo)
    else:
        base_date = today
        start, end = shift_occurrence(selected, base_date, tzinfo)
        if now < start:
            base_date = yesterday
            start, end = shift_occurrence(selected, base_date, tzinfo)

    if auto_detected and start <= now < end:
        # the current shift never extends into the future
        end = max(now, start + MIN_WINDOW)

    window = ShiftWindow(
        start=start,
        end=end,
        shift_date=base_date,
        label=selected.name,
        key=f"{base_date.isoformat()}|{selected.id}",
        shift_id=selected.id,
        auto_detected=auto_detected
    )

    logger.debug(
        "Shift window resolved",
        key=window.key,
        start=window.start.isoformat(),
        end=window.end.isoformat(),
        auto_detected=auto_detected
    )

    return window
