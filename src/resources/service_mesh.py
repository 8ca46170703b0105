"""Service mesh (Maistra) resource builders.

Covers ServiceMeshControlPlane and ServiceMeshMemberRoll. Addon mutators
replace the whole addon section they configure, so applying the same
mutator twice keeps only the last call's values.
"""

import copy
import logging
from typing import Any

from constants import (
    MAISTRA_API_GROUP,
    MAISTRA_CONTROL_PLANE_VERSION,
    MAISTRA_MEMBER_ROLL_VERSION,
)
from models import DeleteAbsentPolicy, ResourceKind
from resources.builder import Builder
from utils import set_nested

logger = logging.getLogger(__name__)

CONTROL_PLANE_KIND = ResourceKind(
    kind="ServiceMeshControlPlane",
    group=MAISTRA_API_GROUP,
    version=MAISTRA_CONTROL_PLANE_VERSION,
    plural="servicemeshcontrolplanes",
    label="serviceMeshControlPlane",
    namespaced=True,
    delete_absent=DeleteAbsentPolicy.IGNORE,
)

MEMBER_ROLL_KIND = ResourceKind(
    kind="ServiceMeshMemberRoll",
    group=MAISTRA_API_GROUP,
    version=MAISTRA_MEMBER_ROLL_VERSION,
    plural="servicemeshmemberrolls",
    label="serviceMeshMemberRoll",
    namespaced=True,
    delete_absent=DeleteAbsentPolicy.IGNORE,
)

JAEGER_STORAGE_TYPES = ("Memory", "Elasticsearch")


def _ingress(
    enabled: bool,
    labels: dict[str, str] | None = None,
    annotations: dict[str, str] | None = None,
) -> dict[str, Any]:
    return {
        "enabled": enabled,
        "metadata": {
            "labels": dict(labels or {}),
            "annotations": dict(annotations or {}),
        },
    }


class ControlPlaneBuilder(Builder):
    """Builder for maistra.io/v2 ServiceMeshControlPlane objects."""

    kind = CONTROL_PLANE_KIND

    def with_all_addons_disabled(self) -> "ControlPlaneBuilder":
        """Turn off Prometheus, Grafana, Kiali and the Jaeger ingress."""
        if not self.is_valid():
            return self

        logger.debug(
            f"Creating serviceMeshControlPlane {self.definition.name} "
            "with the all addons disabled"
        )

        self.definition.spec["addons"] = {
            "prometheus": {"enabled": False},
            "jaeger": {"install": {"ingress": {"enabled": False}}},
            "grafana": {"enabled": False},
            "kiali": {"enabled": False},
        }
        return self

    def with_grafana_addon(
        self,
        enabled: bool,
        install: dict[str, Any] | None = None,
        address: str | None = None,
    ) -> "ControlPlaneBuilder":
        if not self.is_valid():
            return self

        logger.debug(
            f"Creating serviceMeshControlPlane {self.definition.name} with the Grafana "
            f"addons defined: enabled {enabled}, install {install}, address {address}"
        )

        grafana: dict[str, Any] = {"enabled": enabled}
        if install is not None:
            grafana["install"] = copy.deepcopy(install)
        if address is not None:
            grafana["address"] = address

        set_nested(self.definition.spec, "addons.grafana", grafana)
        return self

    def with_jaeger_addon(
        self,
        name: str,
        storage_type: str,
        memory_max_traces: int | None = None,
        elasticsearch: dict[str, Any] | None = None,
        ingress_enabled: bool = False,
        ingress_labels: dict[str, str] | None = None,
        ingress_annotations: dict[str, str] | None = None,
    ) -> "ControlPlaneBuilder":
        """Configure the Jaeger tracing addon.

        Args:
            name: Name of the Jaeger resource
            storage_type: 'Memory' or 'Elasticsearch'
            memory_max_traces: Trace cap for in-memory storage
            elasticsearch: Elasticsearch storage settings (nodeCount, storage,
                redundancyPolicy, indexCleaner)
            ingress_enabled: Whether to expose the Jaeger UI
            ingress_labels: Labels for the ingress object
            ingress_annotations: Annotations for the ingress object
        """
        if not self.is_valid():
            return self

        logger.debug(
            f"Creating serviceMeshControlPlane {self.definition.name} "
            "with the Jaeger addons defined"
        )

        if storage_type not in JAEGER_STORAGE_TYPES:
            self.error_msg = (
                f"'storageType' argument must be one of {', '.join(JAEGER_STORAGE_TYPES)}"
            )
            return self

        storage: dict[str, Any] = {"type": storage_type}
        if memory_max_traces is not None:
            storage["memory"] = {"maxTraces": memory_max_traces}
        if elasticsearch is not None:
            storage["elasticsearch"] = copy.deepcopy(elasticsearch)

        set_nested(
            self.definition.spec,
            "addons.jaeger",
            {
                "name": name,
                "install": {
                    "storage": storage,
                    "ingress": _ingress(
                        ingress_enabled, ingress_labels, ingress_annotations
                    ),
                },
            },
        )
        return self

    def with_kiali_addon(
        self,
        enabled: bool,
        name: str = "",
        dashboard: dict[str, bool] | None = None,
        service: dict[str, Any] | None = None,
    ) -> "ControlPlaneBuilder":
        """Configure the Kiali addon.

        ``dashboard`` holds viewOnly/enableGrafana/enablePrometheus/enableTracing
        flags; ``service`` holds the ComponentServiceConfig (metadata, nodePort,
        ingress).
        """
        if not self.is_valid():
            return self

        logger.debug(
            f"Creating serviceMeshControlPlane {self.definition.name} "
            "with the Kiali addons defined"
        )

        install: dict[str, Any] = {}
        if dashboard is not None:
            install["dashboard"] = dict(dashboard)
        if service is not None:
            install["service"] = copy.deepcopy(service)

        kiali: dict[str, Any] = {"enabled": enabled}
        if name:
            kiali["name"] = name
        if install:
            kiali["install"] = install

        set_nested(self.definition.spec, "addons.kiali", kiali)
        return self

    def with_prometheus_addon(
        self,
        enabled: bool,
        metrics_expiry_duration: str = "",
        scrape: bool = True,
        install: dict[str, Any] | None = None,
        address: str = "",
    ) -> "ControlPlaneBuilder":
        if not self.is_valid():
            return self

        logger.debug(
            f"Creating serviceMeshControlPlane {self.definition.name} "
            "with the Prometheus addons defined"
        )

        prometheus: dict[str, Any] = {"enabled": enabled, "scrape": scrape}
        if metrics_expiry_duration:
            prometheus["metricsExpiryDuration"] = metrics_expiry_duration
        if install is not None:
            prometheus["install"] = {"selfManaged": False, **copy.deepcopy(install)}
        if address:
            prometheus["address"] = address

        set_nested(self.definition.spec, "addons.prometheus", prometheus)
        return self

    def with_gateways_enablement(self, enabled: bool) -> "ControlPlaneBuilder":
        if not self.is_valid():
            return self

        logger.debug(
            f"Creating serviceMeshControlPlane {self.definition.name} "
            f"with gateways enabled={enabled}"
        )

        set_nested(self.definition.spec, "gateways.enabled", enabled)
        return self


class MemberRollBuilder(Builder):
    """Builder for maistra.io/v1 ServiceMeshMemberRoll objects."""

    kind = MEMBER_ROLL_KIND

    def with_members(self, members: list[str]) -> "MemberRollBuilder":
        """Set the namespaces enrolled in the mesh."""
        if not self.is_valid():
            return self

        logger.debug(
            f"Setting serviceMeshMemberRoll {self.definition.name} members to {members}"
        )

        if not members:
            self.error_msg = "'members' argument cannot be empty"
            return self

        if any(not member for member in members):
            self.error_msg = "'members' argument cannot contain an empty namespace"
            return self

        self.definition.spec["members"] = list(members)
        return self
