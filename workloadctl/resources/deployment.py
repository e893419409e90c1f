import logging
from logging import Logger
from typing import List, Optional
from kubernetes_asyncio.client import (
    V1Container,
    V1ContainerPort,
    V1Deployment,
    V1DeploymentSpec,
    V1LabelSelector,
    V1ObjectMeta,
    V1Pod,
    V1PodSpec,
    V1PodTemplateSpec,
)
from kubernetes_asyncio.client.api_client import ApiClient
from workloadctl.common.models.labels import Labels
from workloadctl.controller.base import Delegate
from workloadctl.controller.scheduling import NodeCounter, ensure_at_most_one_pod_per_node
from workloadctl.resources.base import BaseResource
from workloadctl.types.models import (
    DEFAULT_REPLICAS,
    SyncOutcome,
    WorkloadObservation,
    WorkloadTemplate,
)


class DeploymentPods(BaseResource):
    """Explains why the pods of a Deployment are not available."""

    async def containers_status(self, workload: WorkloadObservation) -> List[str]:
        pods = await self.list_pods(self.core_v1_api, workload.namespace, workload.pod_labels)
        states = []
        for pod in pods.items or []:
            states.extend(pod_containers_status(pod))
        return states

    __call__ = containers_status


def pod_containers_status(pod: V1Pod) -> List[str]:
    """One line per container that is waiting or terminated."""
    states = []
    if pod.status is None:
        return states
    for container in pod.status.container_statuses or []:
        state = container.state
        if state is None:
            continue
        if state.waiting is not None:
            states.append(
                f'container "{container.name}" of pod "{pod.metadata.name}" is waiting: '
                f'"{state.waiting.reason or ""}" - "{state.waiting.message or ""}"'
            )
        if state.terminated is not None:
            states.append(
                f'container "{container.name}" of pod "{pod.metadata.name}" is terminated: '
                f'"{state.terminated.reason or ""}" - "{state.terminated.message or ""}"'
            )
    return states


class DeploymentDelegate(BaseResource, Delegate):
    """Keeps a single container Deployment in the target namespace as described
    by the WorkloadOperator ``workload`` template."""

    CONTAINER_NAME = "workload"
    PORT_NAME = "http"

    def __init__(
        self,
        operator_name: str,
        target_namespace: str,
        workload: WorkloadTemplate,
        node_counter: NodeCounter = None,
        api_client: ApiClient = None,
        logger: Logger = None,
    ) -> None:
        super().__init__(api_client=api_client)
        self.operator_name = operator_name
        self.target_namespace = target_namespace
        self.workload = workload
        self._node_counter = node_counter
        self.logger = logger or logging.getLogger(__name__)
        self.labels = Labels.generate_default_labels(
            operator_name,
            workload.name,
            self.component,
            self.OPERATOR_NAME,
        ).update(workload.labels or {})

    @property
    def node_counter(self) -> NodeCounter:
        if self._node_counter is None:
            self._node_counter = NodeCounter(self.core_v1_api)
        return self._node_counter

    @property
    def component(self) -> str:
        return self.workload.component or self.workload.name

    async def precondition_fulfilled(self) -> bool:
        if not self.workload.image:
            self.logger.info(f"Workload {self.workload.name} has no image configured")
            return False
        namespace = await self.fetch_namespace(self.core_v1_api, self.target_namespace)
        if namespace is None:
            self.logger.info(f"Target namespace {self.target_namespace} does not exist yet")
            return False
        return True

    async def sync(self) -> SyncOutcome:
        errors = []
        actual: Optional[V1Deployment] = None
        try:
            desired = await self.prepare_deployment()
            actual = await self.fetch_deployment(
                self.apps_v1_api, self.workload.name, self.target_namespace
            )
            actual = await self.apply(desired, actual)
        except Exception as ex:
            self.logger.error(f"Failed to sync deployment {self.workload.name}: {ex}")
            errors.append(ex)
            actual = await self.refetch(errors)

        workload = WorkloadObservation.from_deployment(actual) if actual else None
        return SyncOutcome(
            workload=workload,
            config_at_highest_generation=not errors,
            errors=errors,
        )

    async def apply(
        self, desired: V1Deployment, actual: Optional[V1Deployment]
    ) -> V1Deployment:
        """Create the deployment, or replace it when its content hash drifted."""
        if actual is None:
            self.logger.info(f"Creating deployment {self.target_namespace}/{self.workload.name}")
            return await self.create_deployment(self.apps_v1_api, self.target_namespace, desired)
        annotations = actual.metadata.annotations or {}
        if annotations.get(self.HASH_ANNOTATION) == desired.metadata.annotations[self.HASH_ANNOTATION]:
            return actual
        self.logger.info(f"Replacing deployment {self.target_namespace}/{self.workload.name}")
        return await self.replace_deployment(
            self.apps_v1_api,
            self.workload.name,
            self.target_namespace,
            desired,
            actual.metadata.resource_version,
        )

    async def refetch(self, errors: List[Exception]) -> Optional[V1Deployment]:
        """Best effort read so conditions reflect the deployment even after a failed write."""
        try:
            return await self.fetch_deployment(
                self.apps_v1_api, self.workload.name, self.target_namespace
            )
        except Exception as ex:
            errors.append(ex)
            return None

    async def prepare_replicas(self) -> int:
        if self.workload.replicas_from_node_count:
            return await self.node_counter.count_nodes(self.workload.node_selector)
        if self.workload.replicas is not None:
            return self.workload.replicas
        return DEFAULT_REPLICAS

    def prepare_container(self) -> V1Container:
        ports = None
        if self.workload.port:
            ports = [V1ContainerPort(name=self.PORT_NAME, container_port=self.workload.port)]
        return V1Container(name=self.CONTAINER_NAME, image=self.workload.image, ports=ports)

    async def prepare_deployment(self) -> V1Deployment:
        selector_labels = self.labels.selector_labels().as_dict()
        spec = V1DeploymentSpec(
            replicas=await self.prepare_replicas(),
            selector=V1LabelSelector(match_labels=selector_labels),
            template=V1PodTemplateSpec(
                metadata=V1ObjectMeta(labels=self.labels.as_dict()),
                spec=V1PodSpec(
                    containers=[self.prepare_container()],
                    node_selector=self.workload.node_selector or None,
                ),
            ),
        )
        if self.workload.one_replica_per_node:
            ensure_at_most_one_pod_per_node(spec, self.component)

        deployment = V1Deployment(
            api_version="apps/v1",
            kind="Deployment",
            metadata=V1ObjectMeta(
                name=self.workload.name,
                namespace=self.target_namespace,
                labels=self.labels.as_dict(),
            ),
            spec=spec,
        )
        deployment.metadata.annotations = self.prepare_hash_annotation(
            self.compute_hash(deployment.to_dict())
        )
        return deployment

