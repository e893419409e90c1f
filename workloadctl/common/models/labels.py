from typing import Dict


class ResourceLabels:
    WORKLOADCTL_DOMAIN: str = "workloadctl.io/"

    WORKLOADCTL_OPERATOR_LABEL = WORKLOADCTL_DOMAIN + "operator"

    WORKLOADCTL_COMPONENT_LABEL = WORKLOADCTL_DOMAIN + "component"


class Labels(ResourceLabels):
    KUBERNETES_DOMAIN = "app.kubernetes.io/"

    KUBERNETES_NAME_LABEL = KUBERNETES_DOMAIN + "name"

    KUBERNETES_INSTANCE_LABEL = KUBERNETES_DOMAIN + "instance"

    KUBERNETES_COMPONENT_LABEL = KUBERNETES_DOMAIN + "component"

    KUBERNETES_MANAGED_BY_LABEL = KUBERNETES_DOMAIN + "managed-by"

    _labels: Dict[str, str]

    def __init__(self, labels: Dict[str, str] = None) -> None:
        self._labels = dict(labels) if labels else dict()

    def update(self, labels: Dict[str, str]) -> "Labels":
        self._labels.update(labels.copy())
        return self

    def as_dict(self) -> Dict[str, str]:
        """Return labels as dictionary."""
        return self._labels.copy()

    def include(self, label: str, value: str) -> "Labels":
        self.update({label: value})
        return self

    def include_operator(self, operator_name: str) -> "Labels":
        return self.include(self.WORKLOADCTL_OPERATOR_LABEL, operator_name)

    def include_component(self, component: str) -> "Labels":
        return self.include(self.WORKLOADCTL_COMPONENT_LABEL, component)

    def include_kubernetes_name(self, name: str) -> "Labels":
        return self.include(self.KUBERNETES_NAME_LABEL, name)

    def include_kubernetes_instance(self, instance_name: str) -> "Labels":
        return self.include(self.KUBERNETES_INSTANCE_LABEL, instance_name)

    def include_kubernetes_managed_by(self, manager: str) -> "Labels":
        return self.include(self.KUBERNETES_MANAGED_BY_LABEL, manager)

    def selector_labels(self) -> "Labels":
        """Subset of labels that is stable for the lifetime of a workload and safe to select on."""
        keys = [
            self.WORKLOADCTL_OPERATOR_LABEL,
            self.KUBERNETES_NAME_LABEL,
            self.KUBERNETES_INSTANCE_LABEL,
        ]
        return Labels({key: self._labels[key] for key in keys if key in self._labels})

    def __str__(self):
        return f"Labels<{self._labels}>"

    @classmethod
    def generate_default_labels(
        cls,
        operator_name: str,
        workload_name: str,
        component: str,
        managed_by: str,
    ) -> "Labels":
        labels = Labels()
        return (
            labels.include_operator(operator_name)
            .include_component(component)
            .include_kubernetes_name(workload_name)
            .include_kubernetes_instance(operator_name)
            .include_kubernetes_managed_by(managed_by)
        )
