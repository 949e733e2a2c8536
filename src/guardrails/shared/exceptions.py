"""Exception hierarchy for the guardrails preflight platform.

Every exception carries a machine-readable ``error_code`` and an arbitrary
``context`` dict for structured logging.  The presentation layer maps these
exceptions to JSON error bodies via a global exception handler.

Check execution never raises: structural and audit failures are reported as
``fail`` checks inside the posture snapshot.  The exceptions below cover the
paths that *consult* a snapshot (remote endpoint, local artifact) and the
guarded action wrapper.
"""
from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from guardrails.domain.entities.outcome import EnforcementOutcome


# ---------------------------------------------------------------------------
# Base exception
# ---------------------------------------------------------------------------

class GuardrailsError(Exception):
    """Root exception for every guardrails failure.

    Attributes:
        message:    Human-readable description.
        error_code: Machine-readable code (e.g. ``"GR_TRANSPORT_ERROR"``).
        context:    Arbitrary key-value context for structured logging.
    """

    def __init__(
        self,
        message: str = "Guardrails error",
        error_code: str = "GR_ERROR",
        context: dict[str, Any] | None = None,
    ) -> None:
        self.message = message
        self.error_code = error_code
        self.context: dict[str, Any] = context or {}
        super().__init__(message)

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}("
            f"error_code={self.error_code!r}, "
            f"message={self.message!r})"
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialise the exception for API error responses."""
        return {
            "error_code": self.error_code,
            "message": self.message,
            "context": self.context,
        }


# ---------------------------------------------------------------------------
# Posture source failures
# ---------------------------------------------------------------------------

class PreflightUnavailableError(GuardrailsError):
    """Raised when the posture source could not be consulted at all."""

    def __init__(self, message: str = "Preflight unavailable", **kwargs: Any) -> None:
        super().__init__(message, error_code=kwargs.pop("error_code", "GR_UNAVAILABLE"), **kwargs)


class PreflightTransportError(PreflightUnavailableError):
    """Raised when a remote preflight endpoint is unreachable or malformed."""

    def __init__(self, message: str = "Preflight endpoint unreachable", **kwargs: Any) -> None:
        super().__init__(message, error_code=kwargs.pop("error_code", "GR_TRANSPORT_ERROR"), **kwargs)


class SnapshotReadError(PreflightUnavailableError):
    """Raised when a local posture snapshot cannot be read or validated."""

    def __init__(self, message: str = "Posture snapshot unreadable", **kwargs: Any) -> None:
        super().__init__(message, error_code=kwargs.pop("error_code", "GR_SNAPSHOT_READ_ERROR"), **kwargs)


# ---------------------------------------------------------------------------
# Enforcement
# ---------------------------------------------------------------------------

class GuardrailsViolationError(GuardrailsError):
    """Raised when the enforcement gate blocks a guarded action.

    The full :class:`EnforcementOutcome` is attached so callers can inspect
    ``reason`` and ``snapshot.checks`` without re-querying.
    """

    def __init__(self, message: str, outcome: EnforcementOutcome, **kwargs: Any) -> None:
        self.outcome = outcome
        context = kwargs.pop("context", None) or {
            "mode": outcome.mode.value,
            "overall": outcome.snapshot.overall.value,
            "source": outcome.source,
        }
        super().__init__(
            message,
            error_code=kwargs.pop("error_code", "GR_VIOLATION"),
            context=context,
            **kwargs,
        )

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["outcome"] = self.outcome.to_payload()
        return data


class GuardrailsUnavailableError(GuardrailsViolationError):
    """Fail-closed violation: the posture source failed in enforced mode.

    Distinguishable from a legitimate red posture by type and by ``cause``,
    which holds the underlying :class:`PreflightUnavailableError`.
    """

    def __init__(
        self,
        message: str,
        outcome: EnforcementOutcome,
        cause: PreflightUnavailableError,
        **kwargs: Any,
    ) -> None:
        self.cause = cause
        super().__init__(
            message,
            outcome,
            error_code=kwargs.pop("error_code", "GR_FAIL_CLOSED"),
            **kwargs,
        )


class DependencyVersionError(GuardrailsError):
    """Raised when the installed library version differs from the expected one."""

    def __init__(self, message: str = "Unexpected dependency version", **kwargs: Any) -> None:
        super().__init__(message, error_code=kwargs.pop("error_code", "GR_DEPENDENCY_VERSION"), **kwargs)


__all__ = [
    "DependencyVersionError",
    "GuardrailsError",
    "GuardrailsUnavailableError",
    "GuardrailsViolationError",
    "PreflightTransportError",
    "PreflightUnavailableError",
    "SnapshotReadError",
]
