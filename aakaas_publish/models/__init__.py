"""Domain models for the Target Vector publication step."""

from aakaas_publish.models.addon import AddonDescriptor, Repository
from aakaas_publish.models.operation import (
    Credentials,
    OperationHandle,
    OperationStatus,
    PollBudget,
    PollOutcome,
    PollResult,
    PublishRequest,
    StatusReport,
    TargetVectorScope,
)

__all__ = [
    "AddonDescriptor",
    "Credentials",
    "OperationHandle",
    "OperationStatus",
    "PollBudget",
    "PollOutcome",
    "PollResult",
    "PublishRequest",
    "Repository",
    "StatusReport",
    "TargetVectorScope",
]
