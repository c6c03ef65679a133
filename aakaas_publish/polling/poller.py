"""Bounded poller — one submission, fixed-interval status checks, one result.

Protocol:
    1. Validate the ``PollBudget``; nothing is sent for a bad budget.
    2. Submit once. A transport failure ends the session with
       ``TRANSPORT_ERROR``; auth and validation errors propagate.
    3. Poll at a fixed interval until a terminal status is observed or
       the deadline passes. Transport errors while polling are transient.

The deadline alone bounds the loop; there is no separate attempt limit.
A terminal status wins over an elapsed deadline when both are observed
in the same check, because the check completed before the deadline test.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from aakaas_publish.clients.base import ClientTransportError
from aakaas_publish.core.clock import Clock, SystemClock
from aakaas_publish.models.operation import OperationStatus, PollResult

if TYPE_CHECKING:
    from aakaas_publish.clients.base import OperationClient
    from aakaas_publish.models.operation import (
        OperationHandle,
        PollBudget,
        PublishRequest,
    )

_DEFAULT_LOGGER = logging.getLogger("aakaas_publish.polling.poller")


class BoundedPoller:
    """Drive one submit → poll session to a single ``PollResult``.

    Args:
        client: Operation client used for submit and status checks.
        clock: Monotonic clock; defaults to ``SystemClock``.
        logger: Logger for progress messages; defaults to the module logger.
    """

    def __init__(
        self,
        client: OperationClient,
        *,
        clock: Clock | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self._client = client
        self._clock = clock or SystemClock()
        self._logger = logger or _DEFAULT_LOGGER

    def run(self, request: PublishRequest, budget: PollBudget) -> PollResult:
        """Submit *request* and poll until terminal, timed out, or failed.

        Raises:
            ConfigValidationError: If *budget* is invalid (before any call).
            ClientAuthError: If the credentials are rejected.
            ClientValidationError: If the submission is rejected.
        """
        budget.validate()

        try:
            handle = self._client.submit(request)
        except ClientTransportError as exc:
            self._logger.error(
                "Submit failed | target_vector=%s | scope=%s | error=%s",
                request.target_vector_id,
                request.scope.value,
                exc,
            )
            return PollResult.transport_error(exc)

        self._logger.info(
            "Submitted | operation=%s | scope=%s | max_runtime=%.0fs | interval=%.0fs",
            handle.operation_id,
            handle.scope.value,
            budget.max_runtime_seconds,
            budget.interval_seconds,
        )
        return self._poll(handle, budget)

    def _poll(self, handle: OperationHandle, budget: PollBudget) -> PollResult:
        started = self._clock.monotonic()
        deadline = started + budget.max_runtime_seconds
        check_count = 0

        while True:
            now = self._clock.monotonic()
            if now >= deadline:
                self._logger.warning(
                    "Poll timeout | operation=%s | timeout=%.0fs | check_count=%d",
                    handle.operation_id,
                    budget.max_runtime_seconds,
                    check_count,
                )
                return PollResult.timed_out(
                    handle=handle,
                    check_count=check_count,
                    elapsed_seconds=now - started,
                )

            check_count += 1
            try:
                report = self._client.check_status(handle)
            except ClientTransportError as exc:
                self._logger.warning(
                    "Status check failed, will retry | operation=%s | check=%d | error=%s",
                    handle.operation_id,
                    check_count,
                    exc,
                )
            else:
                self._logger.info(
                    "Poll result | operation=%s | status=%s | check=%d",
                    handle.operation_id,
                    report.status.value,
                    check_count,
                )
                elapsed = self._clock.monotonic() - started
                if report.status is OperationStatus.SUCCEEDED:
                    return PollResult.succeeded(
                        report.payload,
                        handle=handle,
                        check_count=check_count,
                        elapsed_seconds=elapsed,
                    )
                if report.status is OperationStatus.FAILED:
                    return PollResult.failed(
                        report.reason or "remote operation failed",
                        report.payload,
                        handle=handle,
                        check_count=check_count,
                        elapsed_seconds=elapsed,
                    )
                if report.status is OperationStatus.UNKNOWN:
                    self._logger.debug(
                        "Unrecognised status treated as transient | operation=%s | reason=%s",
                        handle.operation_id,
                        report.reason,
                    )

            remaining = deadline - self._clock.monotonic()
            if remaining > 0:
                self._clock.sleep(min(budget.interval_seconds, remaining))
