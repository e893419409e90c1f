from .management import ManagementState
from .observation import (
    DEFAULT_REPLICAS,
    WorkloadObservation,
    MissingWorkload,
    PreconditionResult,
    SyncOutcome,
)
from .condition import (
    Condition,
    ConditionStatus,
    ConditionTypes,
    GenerationStatus,
    VersionRecord,
)
from .operator_spec import WorkloadTemplate, WorkloadOperatorSpec

__all__ = [
    "ManagementState",
    "DEFAULT_REPLICAS",
    "WorkloadObservation",
    "MissingWorkload",
    "PreconditionResult",
    "SyncOutcome",
    "Condition",
    "ConditionStatus",
    "ConditionTypes",
    "GenerationStatus",
    "VersionRecord",
    "WorkloadTemplate",
    "WorkloadOperatorSpec",
]
