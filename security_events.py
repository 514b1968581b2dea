"""
Append-only security event log with a coarse threat level.

Events are observational. The only place they influence authentication
is through the anti-spoofing reject path, which records here before
raising.
"""

import logging
import threading
import time
from collections import defaultdict, deque
from dataclasses import dataclass, field
from typing import Any

from config import LOW_CONFIDENCE_THRESHOLD, MAX_SECURITY_EVENTS

logger = logging.getLogger(__name__)

THREAT_LEVELS = ["low", "medium", "high", "critical"]

RAPID_VALIDATION_WINDOW_MS = 60 * 1000
RAPID_VALIDATION_LIMIT = 5


@dataclass(frozen=True)
class SecurityEvent:
    type: str
    severity: str
    timestamp: int
    threat_level_at_time: str
    data: dict[str, Any] = field(default_factory=dict)

    def to_dict(self):
        return {
            "type": self.type,
            "severity": self.severity,
            "data": dict(self.data),
            "timestamp": self.timestamp,
            "threatLevel": self.threat_level_at_time,
        }


class SecurityEventLog:
    def __init__(self, max_events=MAX_SECURITY_EVENTS, clock=None):
        self._events = deque(maxlen=max_events)
        self._validations = defaultdict(deque)
        self._last_purge = 0
        self._threat_level = "low"
        self._lock = threading.Lock()
        self._clock = clock or (lambda: int(time.time() * 1000))

    @property
    def threat_level(self):
        return self._threat_level

    def record(self, event_type, severity="low", **data):
        """Append an event and escalate the threat level for medium/high severity."""
        with self._lock:
            event = SecurityEvent(
                type=event_type,
                severity=severity,
                timestamp=self._clock(),
                threat_level_at_time=self._threat_level,
                data=data,
            )
            self._events.append(event)

        log = logger.warning if severity in ("medium", "high", "critical") else logger.info
        log("Security event %s (severity=%s) %s", event_type, severity, data)

        if severity in ("medium", "high"):
            self.raise_threat_level(severity)
        return event

    def raise_threat_level(self, level):
        """Only ever moves the level up the ladder."""
        with self._lock:
            current = self._threat_level
            if THREAT_LEVELS.index(level) <= THREAT_LEVELS.index(current):
                return False
            self._threat_level = level
        self.record("threat_level_raised", "low", **{"from": current, "to": level})
        return True

    def reset_threat_level(self):
        with self._lock:
            self._threat_level = "low"

    def note_validation(self, identity, confidence):
        """Watch validations for low confidence and rapid-fire attempts."""
        now = self._clock()
        if confidence < LOW_CONFIDENCE_THRESHOLD:
            self.record(
                "low_gesture_confidence",
                identity=identity,
                confidence=confidence,
                threshold=LOW_CONFIDENCE_THRESHOLD,
            )

        with self._lock:
            # Drop identities with no validation inside the window, once per window
            if now - self._last_purge >= RAPID_VALIDATION_WINDOW_MS:
                cutoff = now - RAPID_VALIDATION_WINDOW_MS
                expired = [k for k, times in self._validations.items() if times[-1] <= cutoff]
                for k in expired:
                    del self._validations[k]
                self._last_purge = now

            recent = self._validations[identity]
            recent.append(now)
            while recent and recent[0] <= now - RAPID_VALIDATION_WINDOW_MS:
                recent.popleft()
            count = len(recent)

        if count > RAPID_VALIDATION_LIMIT:
            self.record(
                "rapid_gesture_validation",
                identity=identity,
                validationCount=count,
                timeWindow="1 minute",
            )
            self.raise_threat_level("medium")

    def recent(self, since_ms=None):
        with self._lock:
            events = list(self._events)
        if since_ms is None:
            return events
        return [event for event in events if event.timestamp >= since_ms]

    def __len__(self):
        return len(self._events)

    def tracked_identities(self):
        with self._lock:
            return len(self._validations)
