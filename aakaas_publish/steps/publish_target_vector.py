"""Publish Target Vector step — trigger publication and wait for the result.

Reads the Target Vector ID from the add-on descriptor, submits the
publication for the configured scope, and polls AAKaaS until the
publication finishes or the runtime budget is exhausted.

Every non-success outcome is raised as a classified ``PipelineError``
so the caller can tell configuration mistakes, transport problems,
remote failures, and timeouts apart.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from aakaas_publish.clients.factory import AAKAAS, get_client
from aakaas_publish.core.exceptions import (
    PipelineError,
    PollTimeoutError,
    RemoteFailureError,
    TransportError,
)
from aakaas_publish.models.addon import AddonDescriptor
from aakaas_publish.models.operation import (
    Credentials,
    PollBudget,
    PollOutcome,
    PublishRequest,
    TargetVectorScope,
)
from aakaas_publish.polling.poller import BoundedPoller

if TYPE_CHECKING:
    from aakaas_publish.clients.base import OperationClient
    from aakaas_publish.core.clock import Clock
    from aakaas_publish.core.config import StepConfig
    from aakaas_publish.models.operation import PollResult

_logger = logging.getLogger("aakaas_publish.steps.publish_target_vector")


@dataclass(frozen=True, slots=True)
class StepOutcome:
    """Successful result of the step.

    Attributes:
        target_vector_id: The published Target Vector.
        scope: Scope it was published to.
        payload: Final status payload from the remote service.
        check_count: Number of status checks performed.
        elapsed_seconds: Time spent polling.
    """

    target_vector_id: str
    scope: TargetVectorScope
    payload: dict[str, Any] = field(default_factory=dict)
    check_count: int = 0
    elapsed_seconds: float = 0.0


def build_request(config: StepConfig) -> PublishRequest:
    """Build the ``PublishRequest`` from a validated ``StepConfig``.

    Raises:
        ConfigValidationError: If the scope or add-on descriptor is invalid.
    """
    descriptor = AddonDescriptor.from_json(config.addon_descriptor)
    return PublishRequest(
        scope=TargetVectorScope.parse(config.target_vector_scope),
        target_vector_id=descriptor.require_target_vector_id(),
        endpoint=config.endpoint,
        credentials=Credentials(username=config.username, password=config.password),
    )


def publish_target_vector(
    config: StepConfig,
    *,
    client: OperationClient | None = None,
    client_name: str = AAKAAS,
    clock: Clock | None = None,
    logger: logging.Logger | None = None,
) -> StepOutcome:
    """Publish the Target Vector described by *config* and wait for completion.

    Args:
        config: Validated step configuration.
        client: Operation client to use; created through the factory when
            ``None`` and closed before returning.
        client_name: Factory name of the client to create.
        clock: Monotonic clock for the poller (defaults to system time).
        logger: Logger for step and poll progress (defaults to the module logger).

    Returns:
        ``StepOutcome`` describing the published Target Vector.

    Raises:
        ConfigValidationError: Bad scope, budget, or add-on descriptor.
        AuthError: Credentials rejected.
        ValidationError: Submission rejected by the remote service.
        TransportError: Submission could not be delivered.
        RemoteFailureError: Publication finished in an error state.
        PollTimeoutError: Publication did not finish within the budget.
    """
    log = logger or _logger
    request = build_request(config)
    budget = PollBudget.from_minutes(config.max_runtime_minutes, config.polling_interval_seconds)

    log.info(
        "publish_target_vector started | target_vector=%s | scope=%s | "
        "max_runtime=%dmin | interval=%ds",
        request.target_vector_id,
        request.scope.value,
        config.max_runtime_minutes,
        config.polling_interval_seconds,
    )

    owns_client = client is None
    if client is None:
        client = get_client(client_name, endpoint=request.endpoint, credentials=request.credentials)

    try:
        result = BoundedPoller(client, clock=clock, logger=log).run(request, budget)
        outcome = _resolve(request, budget, result, correlation_id=config.correlation_id)
    except PipelineError as exc:
        if not exc.correlation_id:
            exc.correlation_id = config.correlation_id
        raise
    finally:
        if owns_client:
            client.close()

    log.info(
        "publish_target_vector completed | target_vector=%s | scope=%s | checks=%d | elapsed=%.1fs",
        outcome.target_vector_id,
        outcome.scope.value,
        outcome.check_count,
        outcome.elapsed_seconds,
    )
    return outcome


def _resolve(
    request: PublishRequest,
    budget: PollBudget,
    result: PollResult,
    *,
    correlation_id: str,
) -> StepOutcome:
    """Turn a ``PollResult`` into a ``StepOutcome`` or a classified error."""
    if result.outcome is PollOutcome.SUCCEEDED:
        return StepOutcome(
            target_vector_id=request.target_vector_id,
            scope=request.scope,
            payload=result.payload,
            check_count=result.check_count,
            elapsed_seconds=result.elapsed_seconds,
        )

    if result.outcome is PollOutcome.FAILED:
        msg = (
            f"Publishing of Target Vector {request.target_vector_id} to scope "
            f"{request.scope.value} failed: {result.reason}"
        )
        raise RemoteFailureError(msg, reason=result.reason, correlation_id=correlation_id)

    if result.outcome is PollOutcome.TIMED_OUT:
        msg = (
            f"Timed out after {result.elapsed_seconds:.0f}s ({result.check_count} checks) "
            f"waiting for publication of Target Vector {request.target_vector_id}"
        )
        raise PollTimeoutError(
            msg,
            max_runtime_seconds=budget.max_runtime_seconds,
            check_count=result.check_count,
            correlation_id=correlation_id,
        )

    msg = f"Could not submit publication of Target Vector {request.target_vector_id}: {result.error}"
    raise TransportError(msg, stage="submit", correlation_id=correlation_id) from result.error
