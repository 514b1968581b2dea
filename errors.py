"""
Error taxonomy for the gesture authentication core.

Wrong gestures are not errors: they come back as a normal result with
success=False. Everything in here is a hard rejection.
"""


class GestureAuthError(Exception):
    """Base class for all gesture authentication errors."""

    reason = "gesture_auth_error"


class ConfigError(GestureAuthError, ValueError):
    """A configuration value is missing or out of range."""

    reason = "invalid_config"


class InputShapeError(GestureAuthError, ValueError):
    """Sample fails the length/timing invariants."""

    reason = "invalid_input_shape"


class DegenerateVectorError(GestureAuthError, ArithmeticError):
    """Zero-magnitude vector in an angle computation."""

    reason = "degenerate_vector"


class TemplateCorruptError(GestureAuthError):
    """Stored sample could not be decrypted or parsed."""

    reason = "template_corrupt"


class TemplateExistsError(GestureAuthError):
    """Identity already has an active template."""

    reason = "template_exists"


class TemplateNotFoundError(GestureAuthError):
    """Identity has no active template."""

    reason = "template_not_found"


class AccountLockedError(GestureAuthError):
    """Identity is locked out after repeated failures."""

    reason = "account_locked"

    def __init__(self, identity, lock_until):
        super().__init__(f"Account {identity} is locked until {lock_until}")
        self.identity = identity
        self.lock_until = lock_until


class SuspectedSpoofingError(GestureAuthError):
    """Live sample looks replayed, automated or otherwise non-live."""

    reason = "suspected_spoofing"

    def __init__(self, findings):
        reasons = ", ".join(f.reason for f in findings) or "unknown"
        super().__init__(f"Suspected spoofing: {reasons}")
        self.findings = list(findings)
