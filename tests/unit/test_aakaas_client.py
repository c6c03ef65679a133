"""Tests for the AakaasClient.

All HTTP traffic is served by ``httpx.MockTransport``; no network access.
"""

from __future__ import annotations

import base64
import json
import unittest
from typing import Any

import httpx

from aakaas_publish.clients.aakaas import AakaasClient, parse_target_vector
from aakaas_publish.clients.base import (
    ClientAuthError,
    ClientTransportError,
    ClientValidationError,
)
from aakaas_publish.models.operation import (
    Credentials,
    OperationHandle,
    OperationStatus,
    PublishRequest,
    TargetVectorScope,
)

_ENDPOINT = "https://aakaas.example.com"
_TV_ID = "W7Q00207512600000353"
_CREDS = Credentials(username="PIPELINE_USER", password="s3cr3t")


def _entity(publish_status: str, status: str = "G") -> bytes:
    return json.dumps(
        {
            "d": {
                "__metadata": {"type": "SSDA.AAS_ODATA_PACKAGE_SRV.TargetVector"},
                "Id": _TV_ID,
                "Status": status,
                "PublishStatus": publish_status,
                "ToContentVectors": {"__deferred": {"uri": "..."}},
            }
        }
    ).encode()


class _Recorder:
    """Mock transport handler that records requests and replays responses."""

    def __init__(self, responses: dict[tuple[str, str], Any]) -> None:
        self.responses = responses
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        key = (request.method, request.url.path)
        response = self.responses[key]
        if isinstance(response, Exception):
            raise response
        return response


def _client(recorder: _Recorder) -> AakaasClient:
    return AakaasClient(_ENDPOINT, _CREDS, transport=httpx.MockTransport(recorder))


def _request(scope: TargetVectorScope = TargetVectorScope.TEST) -> PublishRequest:
    return PublishRequest(
        scope=scope,
        target_vector_id=_TV_ID,
        endpoint=_ENDPOINT,
        credentials=_CREDS,
    )


_SERVICE = "/odata/aas_ocs_package"
_PUBLISH = f"{_SERVICE}/PublishTargetVector"
_STATUS = f"{_SERVICE}/TargetVectorSet('{_TV_ID}')"


# ---------------------------------------------------------------------------
# Submit
# ---------------------------------------------------------------------------


class TestSubmit(unittest.TestCase):
    """CSRF handshake and publish call."""

    def _recorder(self, publish_response: Any) -> _Recorder:
        return _Recorder(
            {
                ("GET", _SERVICE): httpx.Response(200, headers={"x-csrf-token": "tok-123"}),
                ("POST", _PUBLISH): publish_response,
            }
        )

    def test_submit_fetches_token_then_posts(self) -> None:
        recorder = self._recorder(httpx.Response(200, json={"d": {}}))
        with _client(recorder) as client:
            handle = client.submit(_request(TargetVectorScope.PRODUCTIVE))

        assert handle == OperationHandle(operation_id=_TV_ID, scope=TargetVectorScope.PRODUCTIVE)
        fetch, post = recorder.requests
        assert fetch.method == "GET"
        assert fetch.headers["x-csrf-token"] == "fetch"
        assert post.method == "POST"
        assert post.headers["x-csrf-token"] == "tok-123"
        assert post.url.params["Id"] == f"'{_TV_ID}'"
        assert post.url.params["Scope"] == "'P'"

    def test_basic_auth_header_sent(self) -> None:
        recorder = self._recorder(httpx.Response(201))
        with _client(recorder) as client:
            client.submit(_request())

        expected = base64.b64encode(b"PIPELINE_USER:s3cr3t").decode()
        assert recorder.requests[1].headers["authorization"] == f"Basic {expected}"

    def test_missing_csrf_token_is_transport_error(self) -> None:
        recorder = _Recorder({("GET", _SERVICE): httpx.Response(200)})
        with _client(recorder) as client, self.assertRaises(ClientTransportError):
            client.submit(_request())

    def test_unauthorized_is_auth_error(self) -> None:
        recorder = self._recorder(httpx.Response(401))
        with _client(recorder) as client, self.assertRaises(ClientAuthError) as ctx:
            client.submit(_request())
        assert ctx.exception.status_code == 401
        assert ctx.exception.category == "auth"

    def test_forbidden_on_token_fetch_is_auth_error(self) -> None:
        recorder = _Recorder({("GET", _SERVICE): httpx.Response(403)})
        with _client(recorder) as client, self.assertRaises(ClientAuthError):
            client.submit(_request())

    def test_bad_request_is_validation_error(self) -> None:
        body = {"error": {"code": "/AAK/TV", "message": {"lang": "en", "value": "Target Vector unknown"}}}
        recorder = self._recorder(httpx.Response(400, json=body))
        with _client(recorder) as client, self.assertRaises(ClientValidationError) as ctx:
            client.submit(_request())
        assert "Target Vector unknown" in ctx.exception.message
        assert ctx.exception.category == "validation"

    def test_server_error_is_transport_error(self) -> None:
        recorder = self._recorder(httpx.Response(503))
        with _client(recorder) as client, self.assertRaises(ClientTransportError) as ctx:
            client.submit(_request())
        assert ctx.exception.status_code == 503
        assert ctx.exception.retryable is True

    def test_network_error_is_transport_error(self) -> None:
        recorder = self._recorder(httpx.ConnectError("connection refused"))
        with _client(recorder) as client, self.assertRaises(ClientTransportError) as ctx:
            client.submit(_request())
        assert ctx.exception.status_code is None
        assert "ConnectError" in ctx.exception.message

    def test_error_message_has_no_credentials(self) -> None:
        recorder = self._recorder(httpx.Response(401))
        with _client(recorder) as client, self.assertRaises(ClientAuthError) as ctx:
            client.submit(_request())
        assert "s3cr3t" not in str(ctx.exception)
        assert "s3cr3t" not in repr(ctx.exception.to_error_dict())


# ---------------------------------------------------------------------------
# Status checks
# ---------------------------------------------------------------------------


class TestCheckStatus(unittest.TestCase):
    """TargetVectorSet reads and PublishStatus mapping."""

    _HANDLE = OperationHandle(operation_id=_TV_ID, scope=TargetVectorScope.TEST)

    def _check(self, response: Any):
        recorder = _Recorder({("GET", _STATUS): response})
        with _client(recorder) as client:
            return client.check_status(self._HANDLE)

    def test_running(self) -> None:
        assert self._check(httpx.Response(200, content=_entity("R"))).status is OperationStatus.RUNNING

    def test_success_payload_cleaned(self) -> None:
        report = self._check(httpx.Response(200, content=_entity("S", status="T")))
        assert report.status is OperationStatus.SUCCEEDED
        assert report.payload == {"Id": _TV_ID, "Status": "T", "PublishStatus": "S"}

    def test_error_has_reason(self) -> None:
        report = self._check(httpx.Response(200, content=_entity("E")))
        assert report.status is OperationStatus.FAILED
        assert _TV_ID in report.reason

    def test_not_found_during_polling_is_transport_error(self) -> None:
        with self.assertRaises(ClientTransportError):
            self._check(httpx.Response(404))

    def test_unauthorized_during_polling_is_auth_error(self) -> None:
        with self.assertRaises(ClientAuthError):
            self._check(httpx.Response(401))

    def test_timeout_during_polling_is_transport_error(self) -> None:
        with self.assertRaises(ClientTransportError):
            self._check(httpx.ReadTimeout("timed out"))


class TestParseTargetVector(unittest.TestCase):
    """Response body classification."""

    def test_blank_status_is_pending(self) -> None:
        assert parse_target_vector(_entity("")).status is OperationStatus.PENDING

    def test_unrecognised_code_is_unknown(self) -> None:
        report = parse_target_vector(_entity("X"))
        assert report.status is OperationStatus.UNKNOWN
        assert "'X'" in report.reason

    def test_invalid_json_is_unknown(self) -> None:
        assert parse_target_vector(b"<html>maintenance</html>").status is OperationStatus.UNKNOWN

    def test_missing_envelope_is_unknown(self) -> None:
        assert parse_target_vector(b'{"value": []}').status is OperationStatus.UNKNOWN
