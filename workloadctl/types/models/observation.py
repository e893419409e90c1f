from typing import Dict, List, Optional
from kubernetes_asyncio.client import V1Deployment
from workloadctl.types.base import BaseModel

DEFAULT_REPLICAS = 1


class WorkloadObservation(BaseModel):
    """Observed state of the managed Deployment for one reconciliation pass."""

    present = True

    name: str
    namespace: str
    generation: int
    observed_generation: int
    desired_replicas: int
    available_replicas: int
    updated_replicas: int
    pod_labels: Dict[str, str]
    group: str = "apps"
    resource: str = "deployments"

    @classmethod
    def from_deployment(cls, deployment: V1Deployment) -> "WorkloadObservation":
        metadata = deployment.metadata
        spec = deployment.spec
        status = deployment.status
        desired_replicas = DEFAULT_REPLICAS
        if spec is not None and spec.replicas is not None:
            desired_replicas = spec.replicas
        pod_labels = {}
        if spec is not None and spec.template and spec.template.metadata:
            pod_labels = dict(spec.template.metadata.labels or {})
        return cls(
            name=metadata.name,
            namespace=metadata.namespace,
            generation=metadata.generation or 0,
            observed_generation=(status.observed_generation or 0) if status else 0,
            desired_replicas=desired_replicas,
            available_replicas=(status.available_replicas or 0) if status else 0,
            updated_replicas=(status.updated_replicas or 0) if status else 0,
            pod_labels=pod_labels,
        )

    @property
    def at_highest_generation(self) -> bool:
        return self.generation == self.observed_generation

    @property
    def all_available(self) -> bool:
        # Surge during a rollout may leave more available replicas than desired.
        return self.available_replicas >= self.desired_replicas

    @property
    def all_updated(self) -> bool:
        return self.updated_replicas == self.desired_replicas

    @property
    def unavailable_replicas(self) -> int:
        return max(self.desired_replicas - self.available_replicas, 0)


class MissingWorkload(BaseModel):
    """Stands in for a Deployment that could not be retrieved."""

    present = False

    name: Optional[str] = None
    namespace: Optional[str] = None


class PreconditionResult(BaseModel):
    fulfilled: bool
    error: Optional[Exception] = None


class SyncOutcome(BaseModel):
    """What a delegate reports back after bringing the workload into operation."""

    def __init__(
        self,
        workload: Optional[WorkloadObservation] = None,
        config_at_highest_generation: bool = False,
        errors: Optional[List[Exception]] = None,
    ) -> None:
        super().__init__(
            workload=workload if workload is not None else MissingWorkload(),
            config_at_highest_generation=config_at_highest_generation,
            errors=[err for err in (errors or []) if err is not None],
        )
