"""StorageCluster (OpenShift Data Foundation) resource builder."""

import copy
import logging
from typing import Any

from constants import OCS_API_GROUP, OCS_API_VERSION
from models import DeleteAbsentPolicy, ResourceKind, StorageDeviceSet
from resources.builder import Builder

logger = logging.getLogger(__name__)

STORAGE_CLUSTER_KIND = ResourceKind(
    kind="StorageCluster",
    group=OCS_API_GROUP,
    version=OCS_API_VERSION,
    plural="storageclusters",
    label="storageCluster",
    namespaced=True,
    # An absent StorageCluster fails delete() with "cannot be deleted because it
    # does not exist" before any remote call, rather than sending the delete
    # and reporting its not-found failure.
    delete_absent=DeleteAbsentPolicy.ERROR,
)


class StorageClusterBuilder(Builder):
    """Builder for ocs.openshift.io/v1 StorageCluster objects.

    Besides the usual mutators, the ``get_*`` readers return a single spec
    field of the live object. Each one refreshes ``object`` from the cluster
    and raises BuilderError when the StorageCluster does not exist.
    """

    kind = STORAGE_CLUSTER_KIND

    def _log_setting(self, field: str, value: Any) -> None:
        logger.debug(
            f"Setting storageCluster {self.definition.name} in namespace "
            f"{self.definition.namespace} with {field} value: {value}"
        )

    # -------------------------------------------------------------------------
    # Readers
    # -------------------------------------------------------------------------

    def get_manage_nodes(self) -> bool:
        return bool(self._observed().spec.get("manageNodes", False))

    def get_managed_resources(self) -> dict[str, Any]:
        return self._observed().spec.get("managedResources", {})

    def get_mon_data_dir_host_path(self) -> str:
        return self._observed().spec.get("monDataDirHostPath", "")

    def get_multi_cloud_gateway(self) -> dict[str, Any] | None:
        return self._observed().spec.get("multiCloudGateway")

    def get_storage_device_sets(self) -> list[StorageDeviceSet]:
        return self._observed().spec.get("storageDeviceSets", [])

    # -------------------------------------------------------------------------
    # Mutators
    # -------------------------------------------------------------------------

    def with_managed_nodes(self, manage_nodes: bool) -> "StorageClusterBuilder":
        if not self.is_valid():
            return self

        self._log_setting("managedNodes", manage_nodes)

        self.definition.spec["manageNodes"] = manage_nodes
        return self

    def with_managed_resources(
        self, managed_resources: dict[str, Any]
    ) -> "StorageClusterBuilder":
        if not self.is_valid():
            return self

        self._log_setting("managedResources", managed_resources)

        if not managed_resources:
            self.error_msg = "the expectedManagedResources can not be empty"
            return self

        self.definition.spec["managedResources"] = copy.deepcopy(managed_resources)
        return self

    def with_mon_data_dir_host_path(self, path: str) -> "StorageClusterBuilder":
        if not self.is_valid():
            return self

        self._log_setting("monDataDirHostPath", path)

        if not path:
            self.error_msg = "the expectedMonDataDirHostPath can not be empty"
            return self

        self.definition.spec["monDataDirHostPath"] = path
        return self

    def with_multi_cloud_gateway(
        self, multi_cloud_gateway: dict[str, Any]
    ) -> "StorageClusterBuilder":
        if not self.is_valid():
            return self

        self._log_setting("multiCloudGateway", multi_cloud_gateway)

        if not multi_cloud_gateway:
            self.error_msg = "the expectedMultiCloudGateway can not be empty"
            return self

        self.definition.spec["multiCloudGateway"] = copy.deepcopy(multi_cloud_gateway)
        return self

    def with_storage_device_set(
        self, device_set: StorageDeviceSet
    ) -> "StorageClusterBuilder":
        """Append a device set to spec.storageDeviceSets."""
        if not self.is_valid():
            return self

        self._log_setting("storageDeviceSets", device_set)

        if not device_set:
            self.error_msg = "the expectedStorageDeviceSet can not be empty"
            return self

        self.definition.spec.setdefault("storageDeviceSets", []).append(
            copy.deepcopy(device_set)
        )
        return self
