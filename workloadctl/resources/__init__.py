from workloadctl.resources.base import BaseResource
from workloadctl.resources.deployment import (
    DeploymentDelegate,
    DeploymentPods,
    pod_containers_status,
)
from workloadctl.resources.operator import (
    NamespaceRemover,
    WorkloadOperatorNotFound,
    WorkloadOperatorResource,
)

__all__ = [
    "BaseResource",
    "DeploymentDelegate",
    "DeploymentPods",
    "pod_containers_status",
    "NamespaceRemover",
    "WorkloadOperatorNotFound",
    "WorkloadOperatorResource",
]
