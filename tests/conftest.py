"""Shared pytest fixtures for the Target Vector publication test suite."""

from __future__ import annotations

import json
from collections.abc import Iterable, Iterator
from typing import Any

import pytest

from aakaas_publish.clients.base import OperationClient
from aakaas_publish.core.config import StepConfig
from aakaas_publish.core.secrets import clear_secrets
from aakaas_publish.models.operation import (
    Credentials,
    OperationHandle,
    OperationStatus,
    PublishRequest,
    StatusReport,
    TargetVectorScope,
)

TARGET_VECTOR_ID = "W7Q00207512600000353"
USERNAME = "PIPELINE_USER"
PASSWORD = "s3cr3t-P4ssw0rd"

# ---------------------------------------------------------------------------
# Test doubles
# ---------------------------------------------------------------------------


class FakeClock:
    """Deterministic monotonic clock; ``sleep`` advances time instantly."""

    def __init__(self, start: float = 0.0) -> None:
        self.now = start
        self.sleeps: list[float] = []

    def monotonic(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


class ScriptedClient(OperationClient):
    """In-memory client replaying a script of status-check results.

    Each script entry is either an ``OperationStatus``, a ``StatusReport``,
    or an exception instance to raise. The last entry repeats once the
    script is exhausted. Check times are recorded from *clock*.
    """

    name = "scripted"

    def __init__(
        self,
        script: Iterable[OperationStatus | StatusReport | Exception],
        *,
        clock: FakeClock | None = None,
        submit_error: Exception | None = None,
        check_duration: float = 0.0,
    ) -> None:
        self.script = list(script)
        self.clock = clock
        self.submit_error = submit_error
        self.check_duration = check_duration
        self.submit_calls: list[PublishRequest] = []
        self.check_times: list[float] = []
        self.closed = False

    @property
    def check_count(self) -> int:
        return len(self.check_times)

    def submit(self, request: PublishRequest) -> OperationHandle:
        self.submit_calls.append(request)
        if self.submit_error is not None:
            raise self.submit_error
        return OperationHandle(operation_id=request.target_vector_id, scope=request.scope)

    def check_status(self, handle: OperationHandle) -> StatusReport:
        self.check_times.append(self.clock.monotonic() if self.clock else 0.0)
        index = min(len(self.check_times) - 1, len(self.script) - 1)
        entry = self.script[index]
        if self.clock is not None and self.check_duration:
            self.clock.now += self.check_duration
        if isinstance(entry, Exception):
            raise entry
        if isinstance(entry, StatusReport):
            return entry
        payload = {"Id": handle.operation_id, "PublishStatus": entry.value}
        reason = "rejected by AAKaaS" if entry is OperationStatus.FAILED else ""
        return StatusReport(status=entry, payload=payload, reason=reason)

    def close(self) -> None:
        self.closed = True


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _isolate_secrets() -> Iterator[None]:
    """Registered secrets are process-global; reset them around each test."""
    clear_secrets()
    yield
    clear_secrets()


@pytest.fixture()
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def scripted_client_factory(fake_clock: FakeClock):
    """Return a factory building ``ScriptedClient`` instances on ``fake_clock``."""

    def _make(script: Iterable[Any], **kwargs: Any) -> ScriptedClient:
        kwargs.setdefault("clock", fake_clock)
        return ScriptedClient(script, **kwargs)

    return _make


@pytest.fixture()
def credentials() -> Credentials:
    return Credentials(username=USERNAME, password=PASSWORD)


@pytest.fixture()
def publish_request(credentials: Credentials) -> PublishRequest:
    return PublishRequest(
        scope=TargetVectorScope.TEST,
        target_vector_id=TARGET_VECTOR_ID,
        endpoint="https://aakaas.example.com",
        credentials=credentials,
    )


@pytest.fixture()
def addon_descriptor_json() -> str:
    """A descriptor as produced by the earlier add-on build steps."""
    return json.dumps(
        {
            "addonProduct": "/DMO/PRODUCT1",
            "addonVersion": "1.2.0",
            "targetVectorID": TARGET_VECTOR_ID,
            "repositories": [
                {"name": "/DMO/SWC", "version": "1.2.0", "packageName": "SAPK-001AAINDMO"},
            ],
        }
    )


@pytest.fixture()
def step_config(addon_descriptor_json: str) -> StepConfig:
    return StepConfig(
        endpoint="https://aakaas.example.com",
        username=USERNAME,
        password=PASSWORD,
        target_vector_scope="T",
        max_runtime_minutes=5,
        polling_interval_seconds=30,
        addon_descriptor=addon_descriptor_json,
    )
