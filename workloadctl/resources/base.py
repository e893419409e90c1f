import mmh3
import hashlib
from typing import Any, Dict, Optional, Union
from workloadctl.utils.errors import already_exists_error, not_found_error
from workloadctl.utils.helpers import canonicalize_dict, label_selector
from kubernetes_asyncio.client import (
    ApiException,
    AppsV1Api,
    CoreV1Api,
    CustomObjectsApi,
    V1Deployment,
    V1Namespace,
    V1PodList,
)
from kubernetes_asyncio.client.api_client import ApiClient


class BaseResource:
    """Base resource model."""

    OPERATOR_NAME = "workloadctl"
    HASH_ANNOTATION = "workloadctl.io/resource-hash"

    shared_api_client: ApiClient = None  # Shared across all resources
    sensor = None

    _api_client: ApiClient = None
    _apps_v1_api: AppsV1Api = None
    _core_v1_api: CoreV1Api = None
    _custom_objects_api: CustomObjectsApi = None

    def __init__(self, api_client: ApiClient = None) -> None:
        self._api_client = api_client

    @property
    def api_client(self) -> ApiClient:
        if self._api_client is None:
            # Use the shared API client if available, otherwise create a new one
            if self.shared_api_client is not None:
                self._api_client = self.shared_api_client
            else:
                self._api_client = ApiClient()
        return self._api_client

    @property
    def apps_v1_api(self) -> AppsV1Api:
        if self._apps_v1_api is None:
            self._apps_v1_api = AppsV1Api(self.api_client)
        return self._apps_v1_api

    @property
    def core_v1_api(self) -> CoreV1Api:
        if self._core_v1_api is None:
            self._core_v1_api = CoreV1Api(self.api_client)
        return self._core_v1_api

    @property
    def custom_objects_api(self) -> CustomObjectsApi:
        if self._custom_objects_api is None:
            self._custom_objects_api = CustomObjectsApi(self.api_client)
        return self._custom_objects_api

    def compute_hash(self, data: Any) -> str:
        """Compute a murmur3 based hash."""
        if isinstance(data, dict):
            _data = canonicalize_dict(data)
        elif isinstance(data, str):
            _data = data
        else:
            raise ValueError(f"Hash of {type(data)} is not supported.")
        mumur_str = str(mmh3.hash128(_data))

        hash_obj = hashlib.sha256(mumur_str.encode("utf-8"))
        # First 16 characters are enough for an annotation
        return hash_obj.hexdigest()[:16]

    def prepare_hash_annotation(self, hash: Union[str, int]) -> Dict[str, str]:
        """Prepare hash annotation for k8s resources."""
        return {self.HASH_ANNOTATION: str(hash)}

    async def fetch_deployment(
        self, apps_v1_api: AppsV1Api, name: str, namespace: str
    ) -> Optional[V1Deployment]:
        """Retrieve the latest state of a deployment"""
        try:
            return await apps_v1_api.read_namespaced_deployment(name=name, namespace=namespace)
        except ApiException as ex:
            if not_found_error(ex):
                return None
            raise

    async def create_deployment(
        self, apps_v1_api: AppsV1Api, namespace: str, deployment: V1Deployment
    ) -> V1Deployment:
        try:
            return await apps_v1_api.create_namespaced_deployment(
                namespace=namespace, body=deployment
            )
        except ApiException as ex:
            if already_exists_error(ex):
                existing = await apps_v1_api.read_namespaced_deployment(
                    name=deployment.metadata.name, namespace=namespace
                )
                return await self.replace_deployment(
                    apps_v1_api,
                    name=deployment.metadata.name,
                    namespace=namespace,
                    deployment=deployment,
                    resource_version=existing.metadata.resource_version,
                )
            raise

    async def replace_deployment(
        self,
        apps_v1_api: AppsV1Api,
        name: str,
        namespace: str,
        deployment: V1Deployment,
        resource_version: Optional[str],
    ) -> V1Deployment:
        """Replace the whole deployment, so fields dropped from the desired state are removed.

        The read ``resource_version`` makes a concurrent change fail with a 409.
        """
        deployment.metadata.resource_version = resource_version
        return await apps_v1_api.replace_namespaced_deployment(
            name=name, namespace=namespace, body=deployment
        )

    async def fetch_namespace(self, core_v1_api: CoreV1Api, name: str) -> Optional[V1Namespace]:
        try:
            return await core_v1_api.read_namespace(name=name)
        except ApiException as ex:
            if not_found_error(ex):
                return None
            raise

    async def delete_namespace(self, core_v1_api: CoreV1Api, name: str) -> None:
        """Delete a namespace. A 404 propagates so callers can tell it was already gone."""
        await core_v1_api.delete_namespace(name=name)

    async def list_pods(
        self, core_v1_api: CoreV1Api, namespace: str, labels: Optional[Dict[str, str]] = None
    ) -> V1PodList:
        return await core_v1_api.list_namespaced_pod(
            namespace=namespace, label_selector=label_selector(labels)
        )

    async def get_custom_object(
        self,
        custom_objects_api: CustomObjectsApi,
        namespace: str,
        group: str,
        version: str,
        plural: str,
        name: str,
    ) -> Optional[Dict]:
        try:
            return await custom_objects_api.get_namespaced_custom_object(
                group=group, version=version, namespace=namespace, plural=plural, name=name
            )
        except ApiException as ex:
            if not_found_error(ex):
                return None
            raise

    async def replace_custom_object_status(
        self,
        custom_objects_api: CustomObjectsApi,
        namespace: str,
        group: str,
        version: str,
        plural: str,
        name: str,
        body: Dict,
    ) -> Dict:
        return await custom_objects_api.replace_namespaced_custom_object_status(
            group=group,
            version=version,
            namespace=namespace,
            plural=plural,
            name=name,
            body=body,
        )
