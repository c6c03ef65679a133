"""AAKaaS OData client for Target Vector publication.

Concrete ``OperationClient`` against the Addon Assembly Kit as a Service
package service (``/odata/aas_ocs_package``).

Protocol:
    Submit — fetch a CSRF token (``GET`` with ``x-csrf-token: fetch``),
    then ``POST PublishTargetVector?Id='<id>'&Scope='<T|P>'`` with the
    token. The session cookies returned with the token are kept by the
    ``httpx.Client``.

    Status — ``GET TargetVectorSet('<id>')`` returns an OData v2 envelope
    ``{"d": {...}}``; ``PublishStatus`` carries the publication state.

Publish status codes:
    ``R`` running, ``S`` success, ``E`` error, blank pending.
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any
from urllib.parse import quote

import httpx

from aakaas_publish.clients.base import (
    ClientAuthError,
    ClientTransportError,
    ClientValidationError,
    OperationClient,
)
from aakaas_publish.core import constants as C
from aakaas_publish.models.operation import (
    OperationHandle,
    OperationStatus,
    StatusReport,
)

if TYPE_CHECKING:
    from aakaas_publish.models.operation import Credentials, PublishRequest

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

_PUBLISH_STATUS_MAP: dict[str, OperationStatus] = {
    "": OperationStatus.PENDING,
    "R": OperationStatus.RUNNING,
    "S": OperationStatus.SUCCEEDED,
    "E": OperationStatus.FAILED,
}

_AUTH_STATUS_CODES = frozenset({401, 403})


class AakaasClient(OperationClient):
    """AAKaaS Target Vector client built on ``httpx``.

    Args:
        endpoint: Base URL of the AAKaaS system.
        credentials: User and password for basic authentication.
        timeout: Per-request timeout in seconds.
        transport: Optional ``httpx`` transport (used by tests).
    """

    name = "aakaas"

    def __init__(
        self,
        endpoint: str,
        credentials: Credentials,
        *,
        timeout: float = C.DEFAULT_HTTP_TIMEOUT_SECONDS,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._endpoint = endpoint.rstrip("/")
        self._http = httpx.Client(
            base_url=self._endpoint,
            auth=httpx.BasicAuth(credentials.username, credentials.password),
            headers={"Accept": "application/json"},
            timeout=timeout,
            follow_redirects=True,
            transport=transport,
        )

    @property
    def endpoint(self) -> str:
        return self._endpoint

    # ------------------------------------------------------------------
    # OperationClient
    # ------------------------------------------------------------------

    def submit(self, request: PublishRequest) -> OperationHandle:
        """Trigger publication of the Target Vector in *request*."""
        token = self._fetch_csrf_token()
        path = (
            f"{C.AAKAAS_PACKAGE_SERVICE}/PublishTargetVector"
            f"?Id='{_quote(request.target_vector_id)}'"
            f"&Scope='{_quote(request.scope.value)}'"
        )
        logger.info(
            "Publishing target vector | id=%s | scope=%s | endpoint=%s",
            request.target_vector_id,
            request.scope.value,
            self._endpoint,
        )
        self._request("POST", path, headers={C.CSRF_TOKEN_HEADER: token}, submitting=True)
        return OperationHandle(operation_id=request.target_vector_id, scope=request.scope)

    def check_status(self, handle: OperationHandle) -> StatusReport:
        """Read the Target Vector and classify its publish status."""
        path = f"{C.AAKAAS_PACKAGE_SERVICE}/TargetVectorSet('{_quote(handle.operation_id)}')"
        response = self._request("GET", path, submitting=False)
        return parse_target_vector(response.content)

    def close(self) -> None:
        self._http.close()

    # ------------------------------------------------------------------
    # HTTP helpers
    # ------------------------------------------------------------------

    def _fetch_csrf_token(self) -> str:
        response = self._request(
            "GET",
            C.AAKAAS_PACKAGE_SERVICE,
            headers={C.CSRF_TOKEN_HEADER: "fetch"},
            submitting=True,
        )
        token = response.headers.get(C.CSRF_TOKEN_HEADER, "")
        if not token:
            msg = "AAKaaS did not return a CSRF token"
            raise ClientTransportError(self.name, msg, status_code=response.status_code)
        return token

    def _request(
        self,
        method: str,
        path: str,
        *,
        headers: dict[str, str] | None = None,
        submitting: bool,
    ) -> httpx.Response:
        """Send one request and map failures onto the client exception tree.

        Non-auth 4xx responses are request-shape errors while submitting,
        but transport errors during status checks so polling continues.
        """
        try:
            response = self._http.request(method, path, headers=headers)
        except httpx.HTTPError as exc:
            msg = f"{method} {_strip_query(path)} failed: {type(exc).__name__}"
            raise ClientTransportError(self.name, msg) from exc

        status = response.status_code
        if status < 400:
            return response

        msg = f"{method} {_strip_query(path)} returned HTTP {status}{_odata_error(response)}"
        if status in _AUTH_STATUS_CODES:
            raise ClientAuthError(self.name, msg, status_code=status)
        if status < 500 and submitting:
            raise ClientValidationError(self.name, msg, status_code=status)
        raise ClientTransportError(self.name, msg, status_code=status)


# ---------------------------------------------------------------------------
# Parsing helpers (module-private unless noted)
# ---------------------------------------------------------------------------


def parse_target_vector(body: bytes) -> StatusReport:
    """Classify a ``TargetVectorSet`` response body.

    Unparseable bodies and unrecognised codes yield ``UNKNOWN``.
    """
    try:
        document = json.loads(body)
    except ValueError:
        logger.warning("Unparseable target vector response | size=%d", len(body))
        return StatusReport(status=OperationStatus.UNKNOWN, reason="unparseable response")

    entity = document.get("d") if isinstance(document, dict) else None
    if not isinstance(entity, dict):
        return StatusReport(status=OperationStatus.UNKNOWN, reason="missing OData entity")

    code = str(entity.get("PublishStatus") or "").strip()
    status = _PUBLISH_STATUS_MAP.get(code, OperationStatus.UNKNOWN)
    reason = ""
    if status is OperationStatus.FAILED:
        reason = (
            f"Publishing of Target Vector {entity.get('Id', '')} "
            f"resulted in state {code}"
        )
    elif status is OperationStatus.UNKNOWN:
        reason = f"unrecognised PublishStatus {code!r}"
    return StatusReport(status=status, payload=_clean_entity(entity), reason=reason)


def _clean_entity(entity: dict[str, Any]) -> dict[str, Any]:
    """Drop OData bookkeeping keys (``__metadata``, deferred navigations)."""
    return {
        key: value
        for key, value in entity.items()
        if not key.startswith("__") and not (isinstance(value, dict) and "__deferred" in value)
    }


def _odata_error(response: httpx.Response) -> str:
    """Return ``": <message>"`` from an OData error body, or ``""``."""
    try:
        document = response.json()
    except ValueError:
        return ""
    error = document.get("error") if isinstance(document, dict) else None
    if not isinstance(error, dict):
        return ""
    message = error.get("message")
    if isinstance(message, dict):
        message = message.get("value")
    return f": {message}" if message else ""


def _quote(value: str) -> str:
    return quote(value, safe="")


def _strip_query(path: str) -> str:
    return path.split("?", 1)[0]
