"""
Gesture login decisions.

Authenticator ties the pieces together for one store:

    live sample -> shape check -> lockout gate -> anti-spoofing gate
                -> template match (+ usage stats) -> lockout update

Everything after the shape check runs under the identity's lock, so two
concurrent attempts for the same identity can never both read the same
failure count or usage stats.
"""

import logging
import time
from dataclasses import dataclass
from typing import Optional

from antispoof import AntiSpoofingAnalyzer
from cipher import TemplateCipher
from complexity import analyze_for_insights, score_sample
from config import Tolerance
from errors import (
    AccountLockedError,
    SuspectedSpoofingError,
    TemplateCorruptError,
    TemplateExistsError,
    TemplateNotFoundError,
)
from gestures import GestureTemplate, validate_sample
from lockout import LockoutPolicy
from matcher import GestureMatcher
from security_events import SecurityEventLog
from users import IdentityLocks

logger = logging.getLogger(__name__)

OUTCOME_SUCCESS = "success"
OUTCOME_FAILURE = "failure"

SPOOF_EVENT_TYPES = {
    "depth": "depth_inconsistency_detected",
    "motion": "suspicious_motion_pattern",
    "timing": "suspicious_timing_pattern",
}


@dataclass(frozen=True)
class AuthResult:
    outcome: str
    confidence: float
    attempts_remaining: Optional[int] = None
    locked: bool = False

    @property
    def success(self):
        return self.outcome == OUTCOME_SUCCESS

    def to_dict(self):
        return {
            "outcome": self.outcome,
            "confidence": self.confidence,
            "attemptsRemaining": self.attempts_remaining,
            "locked": self.locked,
        }


class Authenticator:
    """
    Registration and login over a template/lockout store.

    Args:
        store: Object with load_template/save_template and
            load_lockout/save_lockout (see users.py)
        cipher: TemplateCipher for encryption at rest
        analyzer: AntiSpoofingAnalyzer
        lockout_policy: LockoutPolicy
        events: SecurityEventLog
        clock: Callable returning epoch milliseconds, shared with the
            default components
    """

    def __init__(
        self,
        store,
        cipher=None,
        analyzer=None,
        lockout_policy=None,
        events=None,
        clock=None,
    ):
        self.clock = clock or (lambda: int(time.time() * 1000))
        self.store = store
        self.cipher = cipher or TemplateCipher()
        self.matcher = GestureMatcher(self.cipher, clock=self.clock)
        self.analyzer = analyzer or AntiSpoofingAnalyzer()
        self.lockout = lockout_policy or LockoutPolicy(clock=self.clock)
        self.events = events or SecurityEventLog(clock=self.clock)
        self.locks = IdentityLocks()

    # -------------------------------------------------------------------------
    # Internal helpers
    # -------------------------------------------------------------------------

    def _active_template(self, identity):
        template = self.store.load_template(identity)
        if template is None or not template.is_active:
            raise TemplateNotFoundError(f"No gesture found for {identity}")
        return template

    def _screen(self, identity, sample):
        report = self.analyzer.analyze(sample)
        if report.passed:
            return
        for finding in report.findings:
            self.events.record(
                SPOOF_EVENT_TYPES.get(finding.name, "anti_spoofing_failure"),
                finding.severity,
                identity=identity,
                reason=finding.reason,
            )
        logger.warning(
            "Rejected gesture for %s: suspected spoofing (%s)",
            identity,
            ", ".join(f.reason for f in report.findings),
        )
        raise SuspectedSpoofingError(report.findings)

    def _build_template(self, identity, sample, name, tolerance):
        complexity, profile = score_sample(sample)
        salt = self.cipher.new_salt()
        now = self.clock()
        return GestureTemplate(
            identity=identity,
            encrypted_sample=self.cipher.encrypt(sample, salt),
            salt=salt,
            complexity=complexity,
            biometric_profile=profile,
            sequence_length=len(sample),
            average_duration=sample.duration,
            tolerance=tolerance or Tolerance(),
            name=name or "My Gesture",
            created_at=now,
            updated_at=now,
        )

    # -------------------------------------------------------------------------
    # Public operations
    # -------------------------------------------------------------------------

    def register_template(self, identity, sample, name=None, tolerance=None):
        """
        Store the first gesture for an identity.

        Raises:
            InputShapeError: Sample is malformed.
            TemplateExistsError: Identity already has an active template.
        """
        validate_sample(sample)
        if self.analyzer.config.screen_enrollment:
            self._screen(identity, sample)

        with self.locks.hold(identity):
            existing = self.store.load_template(identity)
            if existing is not None and existing.is_active:
                raise TemplateExistsError(f"{identity} already has a registered gesture")

            template = self._build_template(identity, sample, name, tolerance)
            self.store.save_template(identity, template)

        logger.info(
            "New gesture registered for %s (complexity=%d, positions=%d)",
            identity,
            template.complexity,
            template.sequence_length,
        )
        return template.summary()

    def validate_live(self, identity, sample):
        """
        Decide a gesture login attempt.

        A wrong gesture is a normal outcome (AuthResult with outcome
        "failure") and counts towards lockout. Spoofing rejections do not
        count towards lockout.

        Raises:
            InputShapeError: Sample is malformed. No state is touched.
            AccountLockedError: Identity is inside a lock window.
            SuspectedSpoofingError: Anti-spoofing rejected the sample.
            TemplateNotFoundError: Identity has no active template.
            TemplateCorruptError: Stored template cannot be decrypted.
        """
        validate_sample(sample)

        with self.locks.hold(identity):
            state = self.store.load_lockout(identity)
            try:
                self.lockout.ensure_unlocked(identity, state)
            except AccountLockedError:
                logger.warning("Rejected gesture for %s: account locked", identity)
                raise

            self._screen(identity, sample)
            template = self._active_template(identity)

            try:
                result = self.matcher.validate(template, sample)
            except TemplateCorruptError:
                self.events.record("template_corrupt", "high", identity=identity)
                logger.error("Stored gesture for %s could not be decrypted", identity)
                raise

            self.store.save_template(identity, template)

            locked = False
            if result.success:
                self.lockout.register_success(state)
            else:
                locked = self.lockout.register_failure(identity, state)
            self.store.save_lockout(identity, state)

        self.events.note_validation(identity, result.confidence)
        if locked:
            self.events.record(
                "account_locked",
                "medium",
                identity=identity,
                reason="too_many_failed_attempts",
                lockUntil=state.lock_until,
            )

        if result.success:
            logger.info("Gesture login for %s: SUCCESS (%.3f)", identity, result.confidence)
            return AuthResult(outcome=OUTCOME_SUCCESS, confidence=result.confidence)

        remaining = self.lockout.attempts_remaining(state)
        logger.info(
            "Gesture login for %s: FAILED (%.3f, %d attempts remaining)",
            identity,
            result.confidence,
            remaining,
        )
        return AuthResult(
            outcome=OUTCOME_FAILURE,
            confidence=result.confidence,
            attempts_remaining=remaining,
            locked=locked,
        )

    authenticate = validate_live

    def update_template(self, identity, new_sample, name=None):
        """Replace the stored gesture, keeping tolerance and usage stats."""
        validate_sample(new_sample)
        if self.analyzer.config.screen_enrollment:
            self._screen(identity, new_sample)

        with self.locks.hold(identity):
            template = self._active_template(identity)
            complexity, profile = score_sample(new_sample)

            template.salt = self.cipher.new_salt()
            template.encrypted_sample = self.cipher.encrypt(new_sample, template.salt)
            template.complexity = complexity
            template.biometric_profile = profile
            template.sequence_length = len(new_sample)
            template.average_duration = new_sample.duration
            template.name = name or template.name
            template.updated_at = self.clock()
            self.store.save_template(identity, template)

        logger.info("Gesture updated for %s (complexity=%d)", identity, complexity)
        return template.summary()

    def delete_template(self, identity):
        """Soft delete: the template stays stored but inactive."""
        with self.locks.hold(identity):
            template = self._active_template(identity)
            template.is_active = False
            template.updated_at = self.clock()
            self.store.save_template(identity, template)
        logger.info("Gesture deleted for %s", identity)

    def get_profile(self, identity):
        return self._active_template(identity).summary()

    def is_locked(self, identity):
        return self.lockout.is_locked(self.store.load_lockout(identity))

    def analyze_for_insights(self, sample):
        validate_sample(sample)
        return analyze_for_insights(sample)
