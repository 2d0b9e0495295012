from oee_monitor.models.oee import MachineState
from oee_monitor.services.machine_timeline import build_segments, build_state_timeline, time_labels
from tests.helpers import at, run, stop, window


def _states(segments):
    return [(s.state, s.start, s.end) for s in segments]


def test_labels_every_quarter_hour():
    labels = time_labels(window(at(6), at(10)), interval_minutes=15)
    assert len(labels) == 17
    assert labels[0] == "06:00"
    assert labels[1] == "06:15"
    assert labels[-1] == "10:00"


def test_labels_across_midnight():
    labels = time_labels(window(at(22), at(2, days=1), shift_id=3, label="C"), interval_minutes=60)
    assert labels == ["22:00", "23:00", "00:00", "01:00", "02:00"]


def test_no_job_runs_is_one_idle_segment():
    segments = build_segments(window(at(6), at(10)), [], now=at(12))
    assert _states(segments) == [(MachineState.IDLE, at(6), at(10))]
    assert segments[0].duration_minutes == 240


def test_run_stop_idle_sequence():
    runs = [run(at(7), at(9), stops=[stop(at(7, 30), at(8), category="Break")])]
    segments = build_segments(window(at(6), at(10)), runs, now=at(12))
    assert _states(segments) == [
        (MachineState.IDLE, at(6), at(7)),
        (MachineState.RUN, at(7), at(7, 30)),
        (MachineState.STOP, at(7, 30), at(8)),
        (MachineState.RUN, at(8), at(9)),
        (MachineState.IDLE, at(9), at(10)),
    ]


def test_stop_at_run_start():
    runs = [run(at(6), at(8), stops=[stop(at(6), at(7))])]
    segments = build_segments(window(at(6), at(8)), runs, now=at(12))
    assert _states(segments) == [
        (MachineState.STOP, at(6), at(7)),
        (MachineState.RUN, at(7), at(8)),
    ]


def test_open_intervals_end_at_now():
    runs = [run(at(6), stops=[stop(at(8))])]
    segments = build_segments(window(at(6), at(8, 30)), runs, now=at(8, 30))
    assert _states(segments) == [
        (MachineState.RUN, at(6), at(8)),
        (MachineState.STOP, at(8), at(8, 30)),
    ]


def test_overlapping_runs_merge():
    runs = [run(at(7), at(9)), run(at(6), at(8))]
    segments = build_segments(window(at(6), at(10)), runs, now=at(12))
    assert _states(segments) == [
        (MachineState.RUN, at(6), at(9)),
        (MachineState.IDLE, at(9), at(10)),
    ]


def test_segments_cover_window():
    runs = [
        run(at(5), at(7), stops=[stop(at(6, 30), at(8))]),
        run(at(8), at(11), stops=[stop(at(9), at(9, 20)), stop(at(10), at(12))]),
        run(at(13)),
    ]
    shift = window(at(6), at(14))
    segments = build_segments(shift, runs, now=at(13, 30))
    assert segments[0].start == shift.start
    assert segments[-1].end == shift.end
    for previous, current in zip(segments, segments[1:]):
        assert previous.end == current.start
        assert previous.state != current.state
    assert sum(s.duration_minutes for s in segments) == 480


def test_build_state_timeline():
    timeline = build_state_timeline(
        window(at(6), at(7)), [run(at(6))], now=at(7),
        machine_id="M1", machine_name="Filler", interval_minutes=30
    )
    assert timeline.machine_id == "M1"
    assert timeline.machine_name == "Filler"
    assert timeline.time_labels == ["06:00", "06:30", "07:00"]
    assert [s.state for s in timeline.segments] == [MachineState.RUN]
