import pytest

from pulse_bar import ConfigurationError, PulseBar, ThrottleGate


def test_check_requires_both_thresholds():
    assert ThrottleGate.check(0.2, 5, 0.0, 0, 0.1, 1)
    assert not ThrottleGate.check(0.05, 5, 0.0, 0, 0.1, 1)
    assert not ThrottleGate.check(0.2, 0, 0.0, 0, 0.1, 1)
    # thresholds are inclusive
    assert ThrottleGate.check(1.5, 3, 1.0, 2, 0.5, 1)


def test_gate_tracks_last_render():
    gate = ThrottleGate(min_interval=0.1, min_delta=2)
    assert gate.allow(0.5, 2)
    gate.mark(0.5, 2)
    assert not gate.allow(0.55, 10)
    assert not gate.allow(1.0, 3)
    assert gate.allow(1.0, 4)


def test_gate_validates_thresholds():
    with pytest.raises(ConfigurationError):
        ThrottleGate(min_interval=-1)
    with pytest.raises(ConfigurationError):
        ThrottleGate(min_delta=-1)


def test_rapid_updates_do_not_write(session, stream, clock):
    bar = PulseBar(100, session=session, clock=clock)
    clock.advance(0.2)
    assert bar.update(10)
    writes = len(stream.writes)

    clock.advance(0.05)
    assert not bar.update(10)
    assert not bar.update(11)
    clock.advance(0.5)
    assert not bar.update(10)
    assert len(stream.writes) == writes
    # throttled values still count as current progress
    assert bar.current == 10


def test_first_update_waits_for_interval(session, stream, clock):
    bar = PulseBar(10, session=session, clock=clock)
    assert not bar.update(5)
    assert stream.getvalue() == ''


def test_complete_bypasses_throttle(session, stream, clock):
    bar = PulseBar(100, session=session, clock=clock)
    clock.advance(0.01)
    bar.complete()
    assert '100%' in stream.getvalue()
    assert bar.closed


def test_throttle_settings_are_configurable(session, clock):
    bar = PulseBar(100, session=session, clock=clock, min_interval=0.0, min_delta=0)
    assert bar.update(0)
    bar.min_interval = 1.0
    bar.min_delta = 5
    clock.advance(0.5)
    assert not bar.update(10)
    clock.advance(0.5)
    assert bar.update(10)
    with pytest.raises(ConfigurationError):
        bar.min_interval = -0.1
