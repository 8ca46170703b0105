"""Shared fixtures: an in-memory ResourceAccessor standing in for the cluster."""

import copy

import pytest

from models import (
    CustomResource,
    ObjectMeta,
    OperatorError,
    RemoteAPIError,
    ResourceKind,
    ResourceNotFoundError,
)
from utils import now_iso


class FakeResourceClient:
    """Dict-backed accessor that records every call it receives.

    ``fail_on`` maps a verb ('get', 'create', 'update', 'delete') to an
    exception raised instead of touching the store.
    """

    def __init__(self, objects: list[CustomResource] | None = None) -> None:
        self.store: dict[tuple[str, str, str], CustomResource] = {}
        self.calls: list[tuple[str, str]] = []
        self.fail_on: dict[str, OperatorError] = {}
        self._version = 0
        for obj in objects or []:
            self.store[(obj.kind, obj.namespace, obj.name)] = copy.deepcopy(obj)

    @staticmethod
    def _key(kind: ResourceKind, name: str, namespace: str) -> tuple[str, str, str]:
        return (kind.kind, namespace if kind.namespaced else "", name)

    def _record(self, verb: str, name: str) -> None:
        self.calls.append((verb, name))
        if verb in self.fail_on:
            raise self.fail_on[verb]

    def _not_found(self, kind: ResourceKind, name: str) -> ResourceNotFoundError:
        return ResourceNotFoundError(f'{kind.plural}.{kind.group} "{name}" not found')

    def _next_version(self) -> str:
        self._version += 1
        return str(self._version)

    def verbs(self) -> list[str]:
        return [verb for verb, _ in self.calls]

    def get(self, kind: ResourceKind, name: str, namespace: str = "") -> CustomResource:
        self._record("get", name)
        key = self._key(kind, name, namespace)
        if key not in self.store:
            raise self._not_found(kind, name)
        return copy.deepcopy(self.store[key])

    def create(self, kind: ResourceKind, resource: CustomResource) -> CustomResource:
        self._record("create", resource.name)
        key = self._key(kind, resource.name, resource.namespace)
        if key in self.store:
            raise RemoteAPIError(f"{kind.plural} \"{resource.name}\" already exists", 409)
        stored = copy.deepcopy(resource)
        stored.metadata.creation_timestamp = now_iso()
        stored.metadata.resource_version = self._next_version()
        self.store[key] = stored
        return copy.deepcopy(stored)

    def update(self, kind: ResourceKind, resource: CustomResource) -> CustomResource:
        self._record("update", resource.name)
        key = self._key(kind, resource.name, resource.namespace)
        if key not in self.store:
            raise self._not_found(kind, resource.name)
        current = self.store[key]
        version = resource.metadata.resource_version
        if version and version != current.metadata.resource_version:
            raise RemoteAPIError("the object has been modified", 409)
        stored = copy.deepcopy(resource)
        stored.metadata.creation_timestamp = current.metadata.creation_timestamp
        stored.metadata.resource_version = self._next_version()
        self.store[key] = stored
        return copy.deepcopy(stored)

    def delete(self, kind: ResourceKind, resource: CustomResource) -> None:
        self._record("delete", resource.name)
        key = self._key(kind, resource.name, resource.namespace)
        if key not in self.store:
            raise self._not_found(kind, resource.name)
        del self.store[key]


def make_resource(
    kind: ResourceKind,
    name: str,
    namespace: str = "",
    spec: dict | None = None,
) -> CustomResource:
    """Build a stored object of ``kind`` as the cluster would return it."""
    return CustomResource(
        api_version=kind.api_version,
        kind=kind.kind,
        metadata=ObjectMeta(
            name=name,
            namespace=namespace if kind.namespaced else "",
            resource_version="100",
            creation_timestamp="2024-01-01T00:00:00Z",
        ),
        spec=copy.deepcopy(spec or {}),
    )


@pytest.fixture
def fake_client() -> FakeResourceClient:
    """An empty cluster."""
    return FakeResourceClient()
