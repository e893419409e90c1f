from typing import Optional
from workloadctl.types.base import BaseModel


class ConditionStatus:
    TRUE = "True"
    FALSE = "False"
    UNKNOWN = "Unknown"


class Condition(BaseModel):
    """A named health signal published on the operator status."""

    type: str
    status: str
    reason: Optional[str] = None
    message: Optional[str] = None

    @property
    def is_true(self) -> bool:
        return self.status == ConditionStatus.TRUE


class ConditionTypes:
    """Condition type names for a given prefix.

    For a prefix of ``APIServer`` the available condition is published as
    ``APIServerDeploymentAvailable``.
    """

    def __init__(self, prefix: str = "") -> None:
        self.prefix = prefix or ""

    @property
    def available(self) -> str:
        return f"{self.prefix}DeploymentAvailable"

    @property
    def degraded(self) -> str:
        return f"{self.prefix}DeploymentDegraded"

    @property
    def progressing(self) -> str:
        return f"{self.prefix}DeploymentProgressing"

    @property
    def workload_degraded(self) -> str:
        return f"{self.prefix}WorkloadDegraded"


class GenerationStatus(BaseModel):
    """Entry of the status ledger that tracks the last applied generation of a resource."""

    group: str
    resource: str
    namespace: str
    name: str
    last_generation: int


class VersionRecord(BaseModel):
    operand: str
    version: str
