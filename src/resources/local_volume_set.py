"""LocalVolumeSet (local storage operator) resource builder."""

import copy
import logging
from typing import Any, Literal

from constants import LSO_API_GROUP, LSO_API_VERSION
from models import DeleteAbsentPolicy, DeviceInclusionSpec, ResourceKind
from resources.builder import Builder

logger = logging.getLogger(__name__)

LOCAL_VOLUME_SET_KIND = ResourceKind(
    kind="LocalVolumeSet",
    group=LSO_API_GROUP,
    version=LSO_API_VERSION,
    plural="localvolumesets",
    label="localVolumeSet",
    namespaced=True,
    delete_absent=DeleteAbsentPolicy.ERROR,
)


class LocalVolumeSetBuilder(Builder):
    """Builder for local.storage.openshift.io/v1alpha1 LocalVolumeSet objects."""

    kind = LOCAL_VOLUME_SET_KIND

    def _log_setting(self, field: str, value: Any) -> None:
        logger.debug(
            f"Adding {field} to localVolumeSet {self.definition.name} in namespace "
            f"{self.definition.namespace}; {field} {value}"
        )

    def with_generation(self, generation: int) -> "LocalVolumeSetBuilder":
        """Set metadata.generation."""
        if not self.is_valid():
            return self

        self._log_setting("generation", generation)

        if generation == 0:
            self.error_msg = "'generation' argument cannot be equal zero"
            return self

        self.definition.metadata.generation = generation
        return self

    def with_node_selector(self, node_selector: dict[str, Any]) -> "LocalVolumeSetBuilder":
        """Set the node selector (a corev1 NodeSelector dict)."""
        if not self.is_valid():
            return self

        self._log_setting("nodeSelector", node_selector)

        self.definition.spec["nodeSelector"] = copy.deepcopy(node_selector)
        return self

    def with_storage_class_name(self, storage_class_name: str) -> "LocalVolumeSetBuilder":
        if not self.is_valid():
            return self

        self._log_setting("storageClassName", storage_class_name)

        if not storage_class_name:
            self.error_msg = "'storageClassName' argument cannot be empty"
            return self

        self.definition.spec["storageClassName"] = storage_class_name
        return self

    def with_volume_mode(
        self, volume_mode: Literal["Block", "Filesystem"]
    ) -> "LocalVolumeSetBuilder":
        if not self.is_valid():
            return self

        self._log_setting("volumeMode", volume_mode)

        if not volume_mode:
            self.error_msg = "'volumeMode' argument cannot be empty"
            return self

        self.definition.spec["volumeMode"] = volume_mode
        return self

    def with_fs_type(self, fs_type: str) -> "LocalVolumeSetBuilder":
        if not self.is_valid():
            return self

        self._log_setting("fstype", fs_type)

        if not fs_type:
            self.error_msg = "'fstype' argument cannot be empty"
            return self

        self.definition.spec["fsType"] = fs_type
        return self

    def with_max_device_count(self, max_device_count: int) -> "LocalVolumeSetBuilder":
        """Limit how many devices per node the set may claim."""
        if not self.is_valid():
            return self

        self._log_setting("maxDeviceCount", max_device_count)

        if max_device_count == 0:
            self.error_msg = "'maxDeviceCount' argument cannot be equal zero"
            return self

        self.definition.spec["maxDeviceCount"] = max_device_count
        return self

    def with_device_inclusion_spec(
        self, device_inclusion_spec: DeviceInclusionSpec
    ) -> "LocalVolumeSetBuilder":
        if not self.is_valid():
            return self

        self._log_setting("deviceInclusionSpec", device_inclusion_spec)

        self.definition.spec["deviceInclusionSpec"] = copy.deepcopy(device_inclusion_spec)
        return self
