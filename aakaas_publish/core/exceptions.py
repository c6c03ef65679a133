"""Unified step exception taxonomy.

Every error the step can surface inherits from ``PipelineError`` and
carries structured context fields, so the CLI can report one classified
outcome regardless of where the failure happened.

Taxonomy categories
-------------------
- ``ConfigurationError`` — bad options, budget, or scope. Raised before
  any network call, never retried.
- ``AuthError``          — credential rejection by the remote service.
- ``ValidationError``    — the remote service rejected the request shape.
- ``TransportError``     — network/HTTP failure. Retryable only by
  continued polling, never for the initial submission.
- ``RemoteFailureError`` — the remote operation reached a failed state.
- ``PollTimeoutError``   — the poll budget ran out before a terminal state.

Every exception exposes ``to_error_dict()`` for a stable structured
error payload suitable for logging and exit reporting. Messages must not
contain credentials.
"""

from __future__ import annotations

#: Category reported for exceptions outside the taxonomy.
UNDEFINED_CATEGORY = "undefined"


class PipelineError(Exception):
    """Base exception for all step-domain errors.

    Attributes:
        message: Human-readable error description.
        stage: Step stage where the error occurred
            (e.g. ``"config"``, ``"submit"``, ``"poll"``).
        code: Machine-readable error code (e.g. ``"PUBLISH_TIMED_OUT"``).
        retryable: Whether the operation may succeed when repeated.
        correlation_id: Pipeline run correlation identifier.
    """

    #: Default stage for subclasses (override via class attribute or kwarg).
    default_stage: str = ""
    #: Default code for subclasses (override via class attribute or kwarg).
    default_code: str = ""

    def __init__(
        self,
        message: str = "",
        *,
        stage: str = "",
        code: str = "",
        retryable: bool = False,
        correlation_id: str = "",
    ) -> None:
        self.message = message
        self.stage = stage or self.default_stage
        self.code = code or self.default_code
        self.retryable = retryable
        self.correlation_id = correlation_id
        super().__init__(message)

    @property
    def category(self) -> str:
        """Return the error category based on concrete class."""
        if isinstance(self, ConfigurationError):
            return "configuration"
        if isinstance(self, AuthError):
            return "auth"
        if isinstance(self, ValidationError):
            return "validation"
        if isinstance(self, TransportError):
            return "transport"
        if isinstance(self, RemoteFailureError):
            return "remote_failure"
        if isinstance(self, PollTimeoutError):
            return "timeout"
        return "transport" if self.retryable else UNDEFINED_CATEGORY

    def to_error_dict(self) -> dict[str, object]:
        """Return a structured error payload with stable keys."""
        return {
            "category": self.category,
            "code": self.code,
            "stage": self.stage,
            "message": self.message,
            "retryable": self.retryable,
            "correlation_id": self.correlation_id,
        }


# ---------------------------------------------------------------------------
# Category base classes
# ---------------------------------------------------------------------------


class ConfigurationError(PipelineError):
    """Invalid step configuration. Never retryable."""

    default_stage = "config"
    default_code = "CONFIGURATION_INVALID"

    def __init__(self, message: str = "", **kwargs: object) -> None:
        kwargs.setdefault("retryable", False)
        super().__init__(message, **kwargs)  # type: ignore[arg-type]


class AuthError(PipelineError):
    """Credentials rejected by the remote service. Never retryable."""

    default_code = "AUTH_REJECTED"

    def __init__(self, message: str = "", **kwargs: object) -> None:
        kwargs.setdefault("retryable", False)
        super().__init__(message, **kwargs)  # type: ignore[arg-type]


class ValidationError(PipelineError):
    """Request rejected by the remote service as malformed. Never retryable."""

    default_code = "REQUEST_REJECTED"

    def __init__(self, message: str = "", **kwargs: object) -> None:
        kwargs.setdefault("retryable", False)
        super().__init__(message, **kwargs)  # type: ignore[arg-type]


class TransportError(PipelineError):
    """Network or HTTP failure talking to the remote service."""

    default_code = "TRANSPORT_FAILED"

    def __init__(self, message: str = "", **kwargs: object) -> None:
        kwargs.setdefault("retryable", True)
        super().__init__(message, **kwargs)  # type: ignore[arg-type]


class RemoteFailureError(PipelineError):
    """The remote operation finished in a failed state.

    Attributes:
        reason: Failure reason as reported by the remote service.
    """

    default_stage = "poll"
    default_code = "REMOTE_OPERATION_FAILED"

    def __init__(self, message: str = "", *, reason: str = "", **kwargs: object) -> None:
        self.reason = reason
        kwargs.setdefault("retryable", False)
        super().__init__(message, **kwargs)  # type: ignore[arg-type]

    def to_error_dict(self) -> dict[str, object]:
        """Return the base payload plus the remote-supplied reason."""
        payload = super().to_error_dict()
        payload["reason"] = self.reason
        return payload


class PollTimeoutError(PipelineError):
    """The poll budget was exhausted before a terminal state was seen.

    Attributes:
        max_runtime_seconds: The budget that ran out.
        check_count: Number of status checks performed.
    """

    default_stage = "poll"
    default_code = "PUBLISH_TIMED_OUT"

    def __init__(
        self,
        message: str = "",
        *,
        max_runtime_seconds: float = 0.0,
        check_count: int = 0,
        **kwargs: object,
    ) -> None:
        self.max_runtime_seconds = max_runtime_seconds
        self.check_count = check_count
        kwargs.setdefault("retryable", False)
        super().__init__(message, **kwargs)  # type: ignore[arg-type]
