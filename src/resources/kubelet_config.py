"""KubeletConfig (machine config operator) resource builder.

KubeletConfig is cluster-scoped: builders take a name only.
"""

import logging

from constants import MCO_API_GROUP, MCO_API_VERSION
from models import DeleteAbsentPolicy, ResourceKind
from resources.builder import Builder
from utils import set_nested

logger = logging.getLogger(__name__)

KUBELET_CONFIG_KIND = ResourceKind(
    kind="KubeletConfig",
    group=MCO_API_GROUP,
    version=MCO_API_VERSION,
    plural="kubeletconfigs",
    label="kubeletconfig",
    namespaced=False,
    delete_absent=DeleteAbsentPolicy.ERROR,
)


class KubeletConfigBuilder(Builder):
    """Builder for machineconfiguration.openshift.io/v1 KubeletConfig objects."""

    kind = KUBELET_CONFIG_KIND

    def with_mc_pool_selector(self, key: str, value: str) -> "KubeletConfigBuilder":
        """Add a matchLabels entry to machineConfigPoolSelector."""
        if not self.is_valid():
            return self

        logger.debug(
            f"Labeling the kubeletconfig {self.definition.name} with {key}={value}"
        )

        if not key:
            self.error_msg = "'key' cannot be empty"
            return self

        # label keys contain dots, so they must not go through set_nested
        selector = self.definition.spec.setdefault("machineConfigPoolSelector", {})
        selector.setdefault("matchLabels", {})[key] = value
        return self

    def with_system_reserved(self, cpu: str, memory: str) -> "KubeletConfigBuilder":
        """Reserve cpu and memory for system daemons (e.g. '500m', '1Gi')."""
        if not self.is_valid():
            return self

        logger.debug(
            f"Setting up {cpu} cpu and {memory} memory to the "
            f"{self.definition.name} kubeletconfig"
        )

        if not cpu:
            self.error_msg = "'cpu' cannot be empty"
            return self

        if not memory:
            self.error_msg = "'memory' cannot be empty"
            return self

        set_nested(
            self.definition.spec,
            "kubeletConfig.systemReserved",
            {"cpu": cpu, "memory": memory},
        )
        return self
