import copy
import logging
from logging import Logger
from typing import Any, Dict, Tuple
from kubernetes_asyncio.client import ApiException
from kubernetes_asyncio.client.api_client import ApiClient
from workloadctl.controller.base import NamespaceDeleter, StateObserver, StatusMutator
from workloadctl.resources.base import BaseResource
from workloadctl.types.models import WorkloadOperatorSpec
from workloadctl.types.schemas import WorkloadOperatorSpecSchema
from workloadctl.utils.helpers import deep_compare_dict


class WorkloadOperatorNotFound(LookupError):
    pass


class WorkloadOperatorResource(BaseResource, StateObserver):
    """The WorkloadOperator custom resource: management intent in, status out.

    Status updates are read-modify-write against the ``/status`` subresource
    with the ``resourceVersion`` that was read, so a concurrent writer makes
    the update fail with a 409 rather than be overwritten. Conflicts are not
    retried here; the pass is retried as a whole.
    """

    KIND = "WorkloadOperator"
    GROUP_NAME = "workloadctl.io"
    GROUP_VERSION = "v1alpha1"
    PLURAL_NAME = "workloadoperators"

    def __init__(
        self,
        name: str,
        namespace: str,
        api_client: ApiClient = None,
        logger: Logger = None,
    ) -> None:
        super().__init__(api_client=api_client)
        self.name = name
        self.namespace = namespace
        self.logger = logger or logging.getLogger(__name__)

    @property
    def api_version(self) -> str:
        return f"{self.GROUP_NAME}/{self.GROUP_VERSION}"

    async def fetch(self) -> Dict[str, Any]:
        """Fetch the resource from kubernetes."""
        obj = await self.get_custom_object(
            self.custom_objects_api,
            namespace=self.namespace,
            group=self.GROUP_NAME,
            version=self.GROUP_VERSION,
            plural=self.PLURAL_NAME,
            name=self.name,
        )
        if obj is None:
            raise WorkloadOperatorNotFound(
                f"{self.KIND} `{self.name}` does not exist in `{self.namespace}` namespace."
            )
        return obj

    async def fetch_spec(self) -> WorkloadOperatorSpec:
        obj = await self.fetch()
        return WorkloadOperatorSpecSchema().load(obj.get("spec") or {})

    async def get_management_state(self) -> str:
        return (await self.fetch_spec()).management_state

    async def get_status(self) -> Dict[str, Any]:
        obj = await self.fetch()
        return obj.get("status") or {}

    async def update_status(
        self, *mutators: StatusMutator
    ) -> Tuple[Dict[str, Any], Dict[str, Any]]:
        obj = await self.fetch()
        old_status = obj.get("status") or {}
        new_status = copy.deepcopy(old_status)
        for mutate in mutators:
            mutate(new_status)

        if deep_compare_dict(old_status, new_status):
            return old_status, new_status

        body = {
            "apiVersion": self.api_version,
            "kind": self.KIND,
            "metadata": {
                "name": self.name,
                "namespace": self.namespace,
                "resourceVersion": obj.get("metadata", {}).get("resourceVersion"),
            },
            "status": new_status,
        }
        try:
            await self.replace_custom_object_status(
                self.custom_objects_api,
                namespace=self.namespace,
                group=self.GROUP_NAME,
                version=self.GROUP_VERSION,
                plural=self.PLURAL_NAME,
                name=self.name,
                body=body,
            )
        except ApiException as ex:
            self.logger.warning(f"Failed to update status of {self.KIND} {self.name}: {ex.reason}")
            if self.sensor:
                self.sensor.on_status_update_failed(self.name, self.namespace, ex)
            raise
        return old_status, new_status


class NamespaceRemover(BaseResource, NamespaceDeleter):
    async def delete(self, namespace: str) -> None:
        await self.delete_namespace(self.core_v1_api, namespace)

