"""OperationClient abstract base class.

Defines the contract every remote operation client must implement.
The poller interacts exclusively with this interface and never knows
which remote service is behind it.

Lifecycle:
    1. ``submit(request)``      — create the remote job, exactly once.
    2. ``check_status(handle)`` — observe the job; read-only, repeatable.

Each concrete client (``AakaasClient``, test fakes) implements these
two methods per the remote service's API specifics and maps its
failures onto the client exception tree below.
"""

from __future__ import annotations

import abc
from typing import TYPE_CHECKING

from aakaas_publish.core.exceptions import AuthError, TransportError, ValidationError

if TYPE_CHECKING:
    from types import TracebackType

    from aakaas_publish.models.operation import (
        OperationHandle,
        PublishRequest,
        StatusReport,
    )


class OperationClient(abc.ABC):
    """Abstract base class for remote operation clients.

    Example usage::

        with get_client("aakaas", endpoint=url, credentials=creds) as client:
            handle = client.submit(request)
            report = client.check_status(handle)
    """

    #: Client name used in error messages and the factory registry.
    name: str = "operation_client"

    @abc.abstractmethod
    def submit(self, request: PublishRequest) -> OperationHandle:
        """Create the remote operation for *request*.

        At most one remote job is created per successful call. Callers
        must not retry blindly: the remote service is not guaranteed to
        be idempotent on resubmission.

        Returns:
            The handle required for all subsequent status checks.

        Raises:
            ClientTransportError: On network or server-side HTTP failure.
            ClientAuthError: When the credentials are rejected.
            ClientValidationError: When the request itself is rejected.
        """

    @abc.abstractmethod
    def check_status(self, handle: OperationHandle) -> StatusReport:
        """Return the current status of the operation behind *handle*.

        Safe to call repeatedly. Transient failures raise
        ``ClientTransportError`` and leave the handle valid.

        Raises:
            ClientTransportError: On network or HTTP failure.
            ClientAuthError: When the credentials are rejected.
        """

    def close(self) -> None:  # noqa: B027
        """Release network resources. Default is a no-op."""

    def __enter__(self) -> OperationClient:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()


# ---------------------------------------------------------------------------
# Client exceptions
# ---------------------------------------------------------------------------


class _ClientErrorMixin:
    """Shared ``client`` attribute and message prefix for client errors."""

    client: str
    message: str

    def __str__(self) -> str:
        return f"[{self.client}] {self.message}"


class ClientTransportError(_ClientErrorMixin, TransportError):
    """Network failure or server-side HTTP error.

    Attributes:
        client: Name of the client that raised the error.
        status_code: HTTP status code, or ``None`` for network errors.
    """

    default_stage = "client"
    default_code = "CLIENT_TRANSPORT_FAILED"

    def __init__(self, client: str, message: str, *, status_code: int | None = None) -> None:
        self.client = client
        self.status_code = status_code
        super().__init__(message)


class ClientAuthError(_ClientErrorMixin, AuthError):
    """Credentials rejected (HTTP 401/403)."""

    default_stage = "client"
    default_code = "CLIENT_AUTH_FAILED"

    def __init__(self, client: str, message: str, *, status_code: int | None = None) -> None:
        self.client = client
        self.status_code = status_code
        super().__init__(message)


class ClientValidationError(_ClientErrorMixin, ValidationError):
    """Request shape rejected by the remote service (HTTP 4xx other than auth)."""

    default_stage = "client"
    default_code = "CLIENT_REQUEST_REJECTED"

    def __init__(self, client: str, message: str, *, status_code: int | None = None) -> None:
        self.client = client
        self.status_code = status_code
        super().__init__(message)
