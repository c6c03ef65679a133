"""Typed models for the submit → poll protocol.

Defines the data structures exchanged between the step, the poller,
and operation clients:

- ``TargetVectorScope``: Environment a Target Vector is published to
- ``OperationStatus``: Closed set of remote operation states
- ``Credentials``: Opaque user/password pair, never shown in ``repr``
- ``PublishRequest``: What is submitted, once per invocation
- ``OperationHandle``: Opaque identifier returned on submission
- ``StatusReport``: One status-check observation
- ``PollBudget``: Max runtime and interval bounding a polling session
- ``PollResult``: The single terminal outcome of a polling session

Design notes:
- All models are frozen dataclasses.
- Status values are enums, never compared as ad hoc strings.
- Durations are seconds (``float``) throughout.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any

from aakaas_publish.core import constants as C
from aakaas_publish.core.config import VALID_SCOPES, ConfigValidationError
from aakaas_publish.core.exceptions import PipelineError

# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class TargetVectorScope(enum.Enum):
    """Environment a Target Vector is published to.

    Values:
        TEST:       Test environment (``"T"``).
        PRODUCTIVE: Productive environment (``"P"``).
    """

    TEST = "T"
    PRODUCTIVE = "P"

    @classmethod
    def parse(cls, value: str) -> TargetVectorScope:
        """Return the scope for *value*. Raises ``ConfigValidationError``."""
        try:
            return cls(value)
        except ValueError as exc:
            raise ConfigValidationError(
                C.OPT_SCOPE, value, f"must be one of {', '.join(VALID_SCOPES)}"
            ) from exc


class OperationStatus(enum.Enum):
    """State of a remote long-running operation.

    Values:
        PENDING:   Accepted, not started yet.
        RUNNING:   In progress.
        SUCCEEDED: Finished successfully (terminal).
        FAILED:    Finished with an error (terminal).
        UNKNOWN:   Malformed or unrecognised response; treated as transient.
    """

    PENDING = "pending"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    UNKNOWN = "unknown"

    @property
    def is_terminal(self) -> bool:
        """Whether no further transition is expected from this state."""
        return self in (OperationStatus.SUCCEEDED, OperationStatus.FAILED)


class PollOutcome(enum.Enum):
    """Variant tag of a ``PollResult``."""

    SUCCEEDED = "succeeded"
    FAILED = "failed"
    TIMED_OUT = "timed_out"
    TRANSPORT_ERROR = "transport_error"


# ---------------------------------------------------------------------------
# Request / handle models
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Credentials:
    """User and password for the remote service.

    The password is excluded from ``repr`` so it cannot leak through
    logging or exception messages.
    """

    username: str
    password: str = field(repr=False)


@dataclass(frozen=True, slots=True)
class PublishRequest:
    """Request to publish one Target Vector.

    Attributes:
        scope: Target environment.
        target_vector_id: Identifier of the Target Vector to publish.
        endpoint: Base URL of the remote service.
        credentials: Opaque credentials for the remote service.
    """

    scope: TargetVectorScope
    target_vector_id: str
    endpoint: str
    credentials: Credentials = field(repr=False)

    def __post_init__(self) -> None:
        if not self.target_vector_id or not self.target_vector_id.strip():
            raise ConfigValidationError(
                "targetVectorID", self.target_vector_id, "must not be empty"
            )
        if not self.endpoint:
            raise ConfigValidationError(C.OPT_ENDPOINT, self.endpoint, "must not be empty")


@dataclass(frozen=True, slots=True)
class OperationHandle:
    """Opaque identifier of a submitted remote operation.

    Attributes:
        operation_id: Identifier the remote service uses for status checks.
        scope: Scope the operation was submitted for.
    """

    operation_id: str
    scope: TargetVectorScope


@dataclass(frozen=True, slots=True)
class StatusReport:
    """One observation of a remote operation's status.

    Attributes:
        status: Classified operation status.
        payload: Raw status payload returned by the remote service.
        reason: Failure or status reason, if the service supplied one.
    """

    status: OperationStatus
    payload: dict[str, Any] = field(default_factory=dict)
    reason: str = ""


# ---------------------------------------------------------------------------
# Polling models
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class PollBudget:
    """Time budget bounding one polling session.

    Attributes:
        max_runtime_seconds: Maximum total wall-clock time for polling.
        interval_seconds: Fixed wait between status checks.
    """

    max_runtime_seconds: float
    interval_seconds: float

    @classmethod
    def from_minutes(cls, max_runtime_minutes: int, interval_seconds: int) -> PollBudget:
        """Build a budget from the step's minute/second options."""
        return cls(
            max_runtime_seconds=float(max_runtime_minutes * 60),
            interval_seconds=float(interval_seconds),
        )

    def validate(self) -> None:
        """Raise ``ConfigValidationError`` unless ``0 < interval <= max_runtime``."""
        if self.interval_seconds <= 0:
            raise ConfigValidationError(
                C.OPT_POLL_INTERVAL, self.interval_seconds, "must be > 0 (seconds)"
            )
        if self.max_runtime_seconds <= 0:
            raise ConfigValidationError(
                C.OPT_MAX_RUNTIME, self.max_runtime_seconds, "must be > 0"
            )
        if self.interval_seconds > self.max_runtime_seconds:
            raise ConfigValidationError(
                C.OPT_POLL_INTERVAL,
                self.interval_seconds,
                f"must not exceed the maximum runtime ({self.max_runtime_seconds:.0f}s)",
            )


@dataclass(frozen=True, slots=True)
class PollResult:
    """Terminal outcome of one polling session.

    Exactly one variant is produced per session; use the classmethod
    constructors rather than building instances by hand.

    Attributes:
        outcome: Variant tag.
        payload: Final status payload (``SUCCEEDED`` and ``FAILED``).
        reason: Remote failure reason (``FAILED``).
        error: The client error (``TRANSPORT_ERROR``).
        handle: Handle of the submitted operation, if submission succeeded.
        check_count: Number of status checks performed.
        elapsed_seconds: Time spent polling, measured on the injected clock.
    """

    outcome: PollOutcome
    payload: dict[str, Any] = field(default_factory=dict)
    reason: str = ""
    error: PipelineError | None = None
    handle: OperationHandle | None = None
    check_count: int = 0
    elapsed_seconds: float = 0.0

    @classmethod
    def succeeded(cls, payload: dict[str, Any], **kwargs: Any) -> PollResult:
        return cls(PollOutcome.SUCCEEDED, payload=payload, **kwargs)

    @classmethod
    def failed(cls, reason: str, payload: dict[str, Any] | None = None, **kwargs: Any) -> PollResult:
        return cls(PollOutcome.FAILED, payload=payload or {}, reason=reason, **kwargs)

    @classmethod
    def timed_out(cls, **kwargs: Any) -> PollResult:
        return cls(PollOutcome.TIMED_OUT, **kwargs)

    @classmethod
    def transport_error(cls, error: PipelineError, **kwargs: Any) -> PollResult:
        return cls(PollOutcome.TRANSPORT_ERROR, error=error, **kwargs)

    @property
    def is_success(self) -> bool:
        return self.outcome is PollOutcome.SUCCEEDED
