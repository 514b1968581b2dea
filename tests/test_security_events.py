"""Tests for the security event log."""
from security_events import SecurityEventLog


def test_threat_level_only_rises(clock):
    log = SecurityEventLog(clock=clock)
    assert log.raise_threat_level("high") is True
    assert log.raise_threat_level("medium") is False
    assert log.threat_level == "high"
    assert log.recent()[-1].type == "threat_level_raised"


def test_severity_escalates_threat_level(clock):
    log = SecurityEventLog(clock=clock)
    event = log.record("suspicious_timing_pattern", "high", reason="too_perfect_timing")
    assert event.threat_level_at_time == "low"
    assert log.threat_level == "high"

    log.reset_threat_level()
    assert log.threat_level == "low"


def test_log_is_bounded(clock):
    log = SecurityEventLog(max_events=10, clock=clock)
    for i in range(25):
        log.record("test_event", index=i)
    assert len(log) == 10
    assert log.recent()[0].data["index"] == 15


def test_recent_filters_by_time(clock):
    log = SecurityEventLog(clock=clock)
    log.record("old")
    clock.advance(5000)
    log.record("new")
    assert [e.type for e in log.recent(since_ms=clock() - 1000)] == ["new"]


def test_low_confidence_validation(clock):
    log = SecurityEventLog(clock=clock)
    log.note_validation("alice", 0.95)
    assert len(log) == 0
    log.note_validation("alice", 0.4)
    assert log.recent()[-1].type == "low_gesture_confidence"


def test_rapid_validations_raise_threat(clock):
    log = SecurityEventLog(clock=clock)
    for _ in range(5):
        clock.advance(1000)
        log.note_validation("alice", 0.9)
    assert log.threat_level == "low"

    clock.advance(1000)
    log.note_validation("alice", 0.9)
    assert "rapid_gesture_validation" in [e.type for e in log.recent()]
    assert log.threat_level == "medium"


def test_spread_out_validations_are_not_rapid(clock):
    log = SecurityEventLog(clock=clock)
    for _ in range(10):
        clock.advance(30_000)
        log.note_validation("alice", 0.9)
    assert log.threat_level == "low"


def test_idle_identities_are_forgotten(clock):
    log = SecurityEventLog(clock=clock)
    for i in range(50):
        log.note_validation(f"user-{i}", 0.9)
    assert log.tracked_identities() == 50

    clock.advance(61_000)
    log.note_validation("alice", 0.9)
    assert log.tracked_identities() == 1
