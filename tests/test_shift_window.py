from datetime import datetime, time, timedelta, timezone

import pytest
from hypothesis import given, strategies as st

from oee_monitor.models.oee import ShiftDefinition
from oee_monitor.services.shift_window import (
    MIN_WINDOW, default_shift, detect_shift, parse_shift_catalog, parse_time_of_day,
    resolve_shift_window, shift_occurrence
)
from oee_monitor.utils.exceptions import ShiftConfigurationError
from tests.helpers import CATALOG, DAY, at, shift


# =====================================================================
# Auto-detection
# =====================================================================

class TestAutoDetect:

    def test_current_shift_clipped_to_now(self, catalog):
        window = resolve_shift_window(at(10), catalog)
        assert window.label == "A"
        assert window.start == at(6)
        assert window.end == at(10)
        assert window.key == "2026-03-10|1"
        assert window.auto_detected

    def test_overnight_shift_after_midnight(self, catalog):
        window = resolve_shift_window(at(2), catalog)
        assert window.label == "C"
        assert window.start == at(22, days=-1)
        assert window.end == at(2)
        assert window.shift_date == DAY - timedelta(days=1)
        assert window.key == "2026-03-09|3"

    def test_overnight_shift_before_midnight(self, catalog):
        window = resolve_shift_window(at(23), catalog)
        assert window.label == "C"
        assert window.start == at(22)
        assert window.end == at(23)
        assert window.key == "2026-03-10|3"

    def test_boundary_belongs_to_next_shift(self, catalog):
        window = resolve_shift_window(at(14), catalog)
        assert window.label == "B"
        assert window.start == at(14)
        assert window.end == at(14) + MIN_WINDOW

    def test_overnight_end_is_exclusive(self, catalog):
        assert resolve_shift_window(at(6), catalog).label == "A"
        assert resolve_shift_window(at(5, 59), catalog).label == "C"

    def test_first_match_wins_for_duplicate_ranges(self):
        shifts = [shift(7, "Day", "06:00", "18:00"), shift(8, "Also day", "06:00", "18:00")]
        window = resolve_shift_window(at(9), shifts)
        assert window.shift_id == 7

    def test_gap_falls_back_to_first_shift(self):
        shifts = [shift(1, "A", "06:00", "14:00")]
        window = resolve_shift_window(at(16), shifts)
        assert window.shift_id == 1
        assert window.start == at(6)
        assert window.end == at(14)
        assert window.auto_detected

    def test_gap_before_first_shift_uses_yesterday(self):
        shifts = [shift(1, "A", "06:00", "14:00")]
        window = resolve_shift_window(at(4), shifts)
        assert window.start == at(6, days=-1)
        assert window.end == at(14, days=-1)

    def test_round_the_clock_shift(self):
        shifts = [shift(1, "All day", "06:00", "06:00")]
        window = resolve_shift_window(at(3), shifts)
        assert window.start == at(6, days=-1)
        assert window.end == at(3)

    def test_timezone_aware_now(self, catalog):
        now = datetime(2026, 3, 10, 10, 0, tzinfo=timezone.utc)
        window = resolve_shift_window(now, catalog)
        assert window.start == datetime(2026, 3, 10, 6, 0, tzinfo=timezone.utc)
        assert window.end == now


# =====================================================================
# Empty catalog
# =====================================================================

class TestEmptyCatalog:

    def test_default_shift_in_progress(self):
        window = resolve_shift_window(at(10), [])
        assert window.label == "Default"
        assert window.shift_id == 0
        assert window.key == "2026-03-10|0"
        assert window.start == at(6)
        assert window.end == at(10)

    def test_default_shift_before_start(self):
        window = resolve_shift_window(at(3), None)
        assert window.start == at(6, days=-1)
        assert window.end == at(14, days=-1)

    def test_configured_fallback_shift(self):
        fallback = default_shift(time(7, 0), time(15, 0))
        window = resolve_shift_window(at(20), [], fallback_shift=fallback)
        assert window.start == at(7)
        assert window.end == at(15)


# =====================================================================
# Explicit selection
# =====================================================================

class TestExplicitShift:

    def test_in_progress_shows_full_occurrence(self, catalog):
        window = resolve_shift_window(at(10), catalog, explicit_shift_id=1)
        assert window.start == at(6)
        assert window.end == at(14)
        assert not window.auto_detected

    def test_not_started_today_shows_yesterday(self, catalog):
        window = resolve_shift_window(at(10), catalog, explicit_shift_id=2)
        assert window.start == at(14, days=-1)
        assert window.end == at(22, days=-1)
        assert window.key == "2026-03-09|2"

    def test_finished_today_still_shows_yesterday(self, catalog):
        window = resolve_shift_window(at(15), catalog, explicit_shift_id=1)
        assert window.start == at(6, days=-1)
        assert window.end == at(14, days=-1)

    def test_exact_end_is_outside_today(self, catalog):
        window = resolve_shift_window(at(14), catalog, explicit_shift_id=1)
        assert window.start == at(6, days=-1)

    def test_overnight_after_midnight(self, catalog):
        window = resolve_shift_window(at(2), catalog, explicit_shift_id=3)
        assert window.start == at(22, days=-1)
        assert window.end == at(6)

    def test_overnight_before_midnight(self, catalog):
        window = resolve_shift_window(at(23), catalog, explicit_shift_id=3)
        assert window.start == at(22)
        assert window.end == at(6, days=1)

    def test_unknown_id_detects_current_shift(self, catalog):
        window = resolve_shift_window(at(10), catalog, explicit_shift_id=99)
        assert window.shift_id == 1
        assert window.end == at(10)
        assert window.auto_detected

    def test_explicit_date_pins_occurrence(self, catalog):
        target = DAY - timedelta(days=3)
        window = resolve_shift_window(at(10), catalog, explicit_shift_id=3, explicit_date=target)
        assert window.start == datetime.combine(target, time(22, 0))
        assert window.end == datetime.combine(target + timedelta(days=1), time(6, 0))
        assert window.key == "2026-03-07|3"

    def test_explicit_date_with_detected_shift_clips_today(self, catalog):
        window = resolve_shift_window(at(10), catalog, explicit_date=DAY)
        assert window.start == at(6)
        assert window.end == at(10)

    def test_explicit_date_in_the_past_is_not_clipped(self, catalog):
        window = resolve_shift_window(at(10), catalog, explicit_date=DAY - timedelta(days=1))
        assert window.start == at(6, days=-1)
        assert window.end == at(14, days=-1)


def test_detect_shift_no_match():
    assert detect_shift(at(16), [shift(1, "A", "06:00", "14:00")]) is None


def test_shift_occurrence_crossing_midnight():
    start, end = shift_occurrence(CATALOG[2], DAY)
    assert start == at(22)
    assert end == at(6, days=1)


# =====================================================================
# Catalog parsing
# =====================================================================

class TestParseCatalog:

    def test_default_catalog(self):
        shifts = parse_shift_catalog("A=06:00-14:00,B=14:00-22:00,C=22:00-06:00")
        assert [s.id for s in shifts] == [1, 2, 3]
        assert [s.name for s in shifts] == ["A", "B", "C"]
        assert shifts[2].crosses_midnight
        assert not shifts[0].crosses_midnight

    def test_whitespace_and_seconds(self):
        shifts = parse_shift_catalog(" Early = 05:30:00-13:30 , ")
        assert shifts == [ShiftDefinition(id=1, name="Early", start_time=time(5, 30), end_time=time(13, 30))]

    def test_empty_catalog(self):
        assert parse_shift_catalog("") == []

    @pytest.mark.parametrize("value", ["A06:00-14:00", "A=06:00", "=06:00-14:00", "A=0600-1400", "A=25:00-14:00"])
    def test_malformed_entries(self, value):
        with pytest.raises(ShiftConfigurationError):
            parse_shift_catalog(value)

    def test_parse_time_of_day(self):
        assert parse_time_of_day("6:05") == time(6, 5)
        with pytest.raises(ValueError):
            parse_time_of_day("six")


# =====================================================================
# Properties
# =====================================================================

shift_times = st.times().map(lambda t: t.replace(microsecond=0))
catalogs = st.lists(st.tuples(shift_times, shift_times), max_size=4).map(
    lambda spans: [
        ShiftDefinition(id=i + 1, name=f"S{i + 1}", start_time=start, end_time=end)
        for i, (start, end) in enumerate(spans)
    ]
)
instants = st.datetimes(min_value=datetime(2024, 1, 1), max_value=datetime(2030, 12, 31))


@given(instants, catalogs, st.one_of(st.none(), st.integers(min_value=0, max_value=5)))
def test_window_end_after_start(now, shifts, shift_id):
    window = resolve_shift_window(now, shifts, explicit_shift_id=shift_id)
    assert window.end > window.start
    assert window.key == f"{window.shift_date.isoformat()}|{window.shift_id}"


@given(instants, catalogs)
def test_detected_window_never_extends_past_now(now, shifts):
    window = resolve_shift_window(now, shifts)
    assert window.start <= now
    assert window.end <= now or window.end - window.start == MIN_WINDOW
