"""LokiStack (cluster logging) resource builder."""

import copy
import logging
from typing import get_args

from constants import LOKI_API_GROUP, LOKI_API_VERSION
from models import (
    DeleteAbsentPolicy,
    LokiStackSize,
    ObjectStorageSpec,
    ResourceKind,
    RulesSpec,
    TenantsSpec,
)
from resources.builder import Builder

logger = logging.getLogger(__name__)

LOKISTACK_KIND = ResourceKind(
    kind="LokiStack",
    group=LOKI_API_GROUP,
    version=LOKI_API_VERSION,
    plural="lokistacks",
    label="lokiStack",
    namespaced=True,
    # Deleting a LokiStack that is already gone is a no-op.
    delete_absent=DeleteAbsentPolicy.IGNORE,
)

LOKISTACK_SIZES = frozenset(get_args(LokiStackSize))


class LokiStackBuilder(Builder):
    """Builder for loki.grafana.com/v1 LokiStack objects."""

    kind = LOKISTACK_KIND

    def with_size(self, size: LokiStackSize) -> "LokiStackBuilder":
        """Set the deployment size (e.g. '1x.small')."""
        if not self.is_valid():
            return self

        logger.debug(f"Setting lokiStack {self.definition.name} size to {size}")

        if not size:
            self.error_msg = "'size' argument cannot be empty"
            return self

        if size not in LOKISTACK_SIZES:
            self.error_msg = (
                f"'size' argument {size} is not one of {', '.join(sorted(LOKISTACK_SIZES))}"
            )
            return self

        self.definition.spec["size"] = size
        return self

    def with_storage(self, storage: ObjectStorageSpec) -> "LokiStackBuilder":
        """Set the object storage configuration."""
        if not self.is_valid():
            return self

        logger.debug(f"Setting lokiStack {self.definition.name} storage to {storage}")

        if not storage.get("secret", {}).get("name"):
            self.error_msg = "'storage' argument must reference a secret name"
            return self

        self.definition.spec["storage"] = copy.deepcopy(storage)
        return self

    def with_storage_class_name(self, storage_class_name: str) -> "LokiStackBuilder":
        """Set the storage class used for the stack's persistent volumes."""
        if not self.is_valid():
            return self

        logger.debug(
            f"Setting lokiStack {self.definition.name} storageClassName "
            f"to {storage_class_name}"
        )

        if not storage_class_name:
            self.error_msg = "'storageClassName' argument cannot be empty"
            return self

        self.definition.spec["storageClassName"] = storage_class_name
        return self

    def with_tenants(self, tenants: TenantsSpec) -> "LokiStackBuilder":
        if not self.is_valid():
            return self

        logger.debug(f"Setting lokiStack {self.definition.name} tenants to {tenants}")

        self.definition.spec["tenants"] = copy.deepcopy(tenants)
        return self

    def with_rules(self, rules: RulesSpec) -> "LokiStackBuilder":
        if not self.is_valid():
            return self

        logger.debug(f"Setting lokiStack {self.definition.name} rules to {rules}")

        self.definition.spec["rules"] = copy.deepcopy(rules)
        return self
