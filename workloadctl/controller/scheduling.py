import logging
from typing import Dict, Optional
from kubernetes_asyncio.client import (
    CoreV1Api,
    V1Affinity,
    V1DeploymentSpec,
    V1LabelSelector,
    V1ObjectMeta,
    V1PodAffinityTerm,
    V1PodAntiAffinity,
)
from workloadctl.utils.errors import InvalidArgumentError
from workloadctl.utils.helpers import label_selector

logger = logging.getLogger(__name__)

HOSTNAME_TOPOLOGY_KEY = "kubernetes.io/hostname"
ANTI_AFFINITY_VALUE = "true"


def anti_affinity_label(component: str) -> str:
    return f"{component}-anti-affinity"


def ensure_at_most_one_pod_per_node(spec: V1DeploymentSpec, component: str) -> None:
    """Prevent more than one pod of the Deployment from landing on a node.

    Labels the pod template with ``<component>-anti-affinity: "true"`` and
    replaces the pod affinity with a required anti-affinity term on the node
    hostname that selects that label plus the Deployment's own selector
    labels. The spec is left untouched when validation fails.

    Raises:
        InvalidArgumentError: component is empty, or the Deployment has no
            selector match labels.
    """
    if not component:
        raise InvalidArgumentError("please specify the component name")
    if spec.selector is None:
        raise InvalidArgumentError("deployment is missing spec.selector")
    if not spec.selector.match_labels:
        raise InvalidArgumentError("deployment is missing spec.selector.matchLabels")
    if spec.template is None or spec.template.spec is None:
        raise InvalidArgumentError("deployment is missing spec.template.spec")

    key = anti_affinity_label(component)

    template = spec.template
    if template.metadata is None:
        template.metadata = V1ObjectMeta()
    template.metadata.labels = {**(template.metadata.labels or {}), key: ANTI_AFFINITY_VALUE}

    match_labels = {key: ANTI_AFFINITY_VALUE}
    match_labels.update(spec.selector.match_labels)

    template.spec.affinity = V1Affinity(
        pod_anti_affinity=V1PodAntiAffinity(
            required_during_scheduling_ignored_during_execution=[
                V1PodAffinityTerm(
                    topology_key=HOSTNAME_TOPOLOGY_KEY,
                    label_selector=V1LabelSelector(match_labels=match_labels),
                )
            ]
        )
    )


class NodeCounter:
    """Counts the nodes matching a label set, to size replicas to eligible nodes.

    For example, one replica per control plane node.
    """

    def __init__(self, core_v1_api: CoreV1Api) -> None:
        self.core_v1_api = core_v1_api

    async def count_nodes(self, node_selector: Optional[Dict[str, str]]) -> int:
        nodes = await self.core_v1_api.list_node(label_selector=label_selector(node_selector))
        count = len(nodes.items or [])
        logger.debug(f"{count} node(s) match selector {node_selector}")
        return count

    __call__ = count_nodes
