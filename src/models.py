"""Domain models for the custom resource builders.

This module defines typed data structures for resource kinds, object
metadata and custom resource bodies, plus the exception hierarchy shared by
the builders and the remote accessor.
"""

import copy
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Literal, NotRequired, TypedDict

from utils import api_version


# =============================================================================
# Enums for constrained values
# =============================================================================


class DeleteAbsentPolicy(Enum):
    """What delete() does when the remote object is already gone."""

    IGNORE = "ignore"
    ERROR = "error"


# =============================================================================
# TypedDicts for CRD specs (external data from Kubernetes)
# =============================================================================


LokiStackSize = Literal[
    "1x.demo", "1x.pico", "1x.extra-small", "1x.small", "1x.medium"
]


class ObjectStorageSecretSpec(TypedDict):
    """Secret reference for LokiStack object storage."""

    type: Literal["azure", "gcs", "s3", "swift", "alibabacloud"]
    name: str
    credentialMode: NotRequired[str]


class ObjectStorageSpec(TypedDict, total=False):
    """LokiStack object storage specification."""

    secret: ObjectStorageSecretSpec
    schemas: list[dict[str, str]]
    tls: dict[str, str]


class TenantsSpec(TypedDict, total=False):
    """LokiStack tenancy specification."""

    mode: str
    authentication: list[dict[str, Any]]
    authorization: dict[str, Any]


class LabelSelector(TypedDict, total=False):
    """Kubernetes label selector."""

    matchLabels: dict[str, str]
    matchExpressions: list[dict[str, Any]]


class RulesSpec(TypedDict, total=False):
    """LokiStack ruler specification."""

    enabled: bool
    selector: LabelSelector
    namespaceSelector: LabelSelector


class DeviceInclusionSpec(TypedDict, total=False):
    """LocalVolumeSet device filter."""

    deviceTypes: list[str]
    deviceMechanicalProperties: list[str]
    minSize: str
    maxSize: str
    models: list[str]
    vendors: list[str]


class StorageDeviceSet(TypedDict, total=False):
    """StorageCluster device set."""

    name: str
    count: int
    replica: int
    portable: bool
    dataPVCTemplate: dict[str, Any]


# =============================================================================
# Dataclasses for resource kinds and bodies
# =============================================================================


@dataclass(frozen=True)
class ResourceKind:
    """Static description of one managed custom resource kind.

    ``label`` is the lower-camel name used in user-facing messages, and
    ``delete_absent`` decides whether deleting a missing object is an error.
    """

    kind: str
    group: str
    version: str
    plural: str
    label: str
    namespaced: bool = True
    delete_absent: DeleteAbsentPolicy = DeleteAbsentPolicy.ERROR

    @property
    def api_version(self) -> str:
        return api_version(self.group, self.version)


@dataclass
class ObjectMeta:
    """Subset of Kubernetes object metadata the builders care about."""

    name: str = ""
    namespace: str = ""
    labels: dict[str, str] = field(default_factory=dict)
    annotations: dict[str, str] = field(default_factory=dict)
    generation: int = 0
    resource_version: str = ""
    creation_timestamp: str | None = None
    uid: str = ""

    def to_dict(self) -> dict[str, Any]:
        """Convert to a Kubernetes metadata dict."""
        result: dict[str, Any] = {"name": self.name}
        if self.namespace:
            result["namespace"] = self.namespace
        if self.labels:
            result["labels"] = dict(self.labels)
        if self.annotations:
            result["annotations"] = dict(self.annotations)
        if self.generation:
            result["generation"] = self.generation
        if self.resource_version:
            result["resourceVersion"] = self.resource_version
        if self.creation_timestamp:
            result["creationTimestamp"] = self.creation_timestamp
        if self.uid:
            result["uid"] = self.uid
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ObjectMeta":
        """Create from a Kubernetes metadata dict."""
        return cls(
            name=data.get("name", ""),
            namespace=data.get("namespace", "") or "",
            labels=dict(data.get("labels") or {}),
            annotations=dict(data.get("annotations") or {}),
            generation=data.get("generation", 0) or 0,
            resource_version=data.get("resourceVersion", "") or "",
            creation_timestamp=data.get("creationTimestamp"),
            uid=data.get("uid", "") or "",
        )


@dataclass
class CustomResource:
    """A custom resource body: identity, desired spec and observed status."""

    api_version: str
    kind: str
    metadata: ObjectMeta = field(default_factory=ObjectMeta)
    spec: dict[str, Any] = field(default_factory=dict)
    status: dict[str, Any] = field(default_factory=dict)

    @property
    def name(self) -> str:
        return self.metadata.name

    @property
    def namespace(self) -> str:
        return self.metadata.namespace

    def to_dict(self) -> dict[str, Any]:
        """Convert to a Kubernetes request body."""
        result: dict[str, Any] = {
            "apiVersion": self.api_version,
            "kind": self.kind,
            "metadata": self.metadata.to_dict(),
            "spec": copy.deepcopy(self.spec),
        }
        if self.status:
            result["status"] = copy.deepcopy(self.status)
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CustomResource":
        """Create from a Kubernetes response body."""
        return cls(
            api_version=data.get("apiVersion", ""),
            kind=data.get("kind", ""),
            metadata=ObjectMeta.from_dict(data.get("metadata") or {}),
            spec=copy.deepcopy(data.get("spec") or {}),
            status=copy.deepcopy(data.get("status") or {}),
        )

    @classmethod
    def for_kind(
        cls, kind: ResourceKind, name: str, namespace: str = ""
    ) -> "CustomResource":
        """Create an empty definition of ``kind`` carrying only its identity."""
        return cls(
            api_version=kind.api_version,
            kind=kind.kind,
            metadata=ObjectMeta(
                name=name, namespace=namespace if kind.namespaced else ""
            ),
        )


# =============================================================================
# Exceptions
# =============================================================================


class OperatorError(Exception):
    """Base exception for resource builder errors."""

    pass


class BuilderError(OperatorError):
    """A lifecycle operation could not be carried out."""

    pass


class BuilderValidationError(BuilderError):
    """The builder failed its validation gate."""

    pass


class NilBuilderError(BuilderValidationError):
    """The builder reference itself is missing."""

    pass


class UndefinedDefinitionError(BuilderValidationError):
    """The builder carries no definition."""

    pass


class NilAccessorError(BuilderValidationError):
    """The builder has no remote accessor."""

    pass


class DeferredConfigurationError(BuilderValidationError):
    """A configuration mistake was recorded before any remote call."""

    pass


class ResourceNotFoundError(OperatorError):
    """The requested remote object does not exist."""

    pass


class ConfigurationError(OperatorError):
    """Invalid or missing configuration."""

    pass


class RemoteAPIError(OperatorError):
    """Error communicating with the Kubernetes API."""

    def __init__(self, message: str, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status
