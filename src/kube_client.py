"""Kubernetes custom object accessor with retry logic and connection management."""

import logging
import os
import time
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from functools import wraps
from typing import Any, ParamSpec, Protocol, TypeVar

from kubernetes import client as k8s_client
from kubernetes import config as k8s_config
from kubernetes.client import ApiException
from urllib3.exceptions import HTTPError

from constants import HTTP_NOT_FOUND, HTTP_TOO_MANY_REQUESTS
from metrics import KUBE_API_CALLS, KUBE_API_DURATION, KUBE_API_RETRIES
from models import (
    ConfigurationError,
    CustomResource,
    RemoteAPIError,
    ResourceKind,
    ResourceNotFoundError,
)
from ratelimit import RateLimiter, get_rate_limiter
from utils import object_key

logger = logging.getLogger(__name__)

P = ParamSpec("P")
T = TypeVar("T")


class ResourceAccessor(Protocol):
    """Remote store capability handed to every builder.

    ``get`` must raise ResourceNotFoundError when the object is absent so
    callers can tell a clean not-found from any other failure.
    """

    def get(self, kind: ResourceKind, name: str, namespace: str = "") -> CustomResource:
        ...

    def create(self, kind: ResourceKind, resource: CustomResource) -> CustomResource:
        ...

    def update(self, kind: ResourceKind, resource: CustomResource) -> CustomResource:
        ...

    def delete(self, kind: ResourceKind, resource: CustomResource) -> None:
        ...


def is_transient(error: Exception) -> bool:
    """Whether an API failure is worth retrying (throttling, server or connection errors).

    Connection failures surface from urllib3 rather than as ApiException.
    """
    if isinstance(error, HTTPError):
        return True
    if not isinstance(error, ApiException):
        return False
    status = error.status or 0
    return status == 0 or status == HTTP_TOO_MANY_REQUESTS or status >= 500


def retry_on_error(
    max_retries: int | None = None,
    delay: float = 1.0,
    backoff: float = 2.0,
) -> Callable[[Callable[P, T]], Callable[P, T]]:
    """Decorator to retry Kubernetes calls on transient errors.

    Non-transient ApiExceptions (404, 409, 422, ...) propagate on the first
    attempt; urllib3 connection errors are always retried. ``max_retries`` defaults to KUBE_API_MAX_RETRIES (3).
    """

    def decorator(func: Callable[P, T]) -> Callable[P, T]:
        @wraps(func)
        def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
            retries = (
                max_retries
                if max_retries is not None
                else int(os.environ.get("KUBE_API_MAX_RETRIES", "3"))
            )
            current_delay = delay

            for attempt in range(retries + 1):
                try:
                    return func(*args, **kwargs)
                except (ApiException, HTTPError) as e:
                    if not is_transient(e):
                        raise
                    if attempt >= retries:
                        logger.error(
                            "All %d attempts failed for %s", retries + 1, func.__name__
                        )
                        raise
                    logger.warning(
                        "Attempt %d/%d failed for %s: %s. Retrying in %.1fs...",
                        attempt + 1,
                        retries + 1,
                        func.__name__,
                        getattr(e, "reason", None) or e,
                        current_delay,
                    )
                    KUBE_API_RETRIES.labels(verb=func.__name__.strip("_")).inc()
                    time.sleep(current_delay)
                    current_delay *= backoff

            raise RemoteAPIError(f"Operation {func.__name__} failed unexpectedly")

        return wrapper

    return decorator


def load_kube_config() -> None:
    """Load in-cluster configuration, falling back to the local kubeconfig."""
    try:
        k8s_config.load_incluster_config()
    except k8s_config.ConfigException:
        try:
            k8s_config.load_kube_config()
        except (k8s_config.ConfigException, FileNotFoundError) as e:
            raise ConfigurationError(f"No Kubernetes configuration available: {e}") from e


class KubeResourceClient:
    """ResourceAccessor backed by the Kubernetes CustomObjectsApi."""

    def __init__(
        self,
        api: k8s_client.CustomObjectsApi | None = None,
        rate_limiter: RateLimiter | None = None,
    ) -> None:
        """Initialize the accessor.

        Args:
            api: CustomObjectsApi to use. If None, one is created lazily from kube config.
            rate_limiter: Limiter shared by all calls (default: process-wide limiter)
        """
        self._api = api
        self._rate_limiter = rate_limiter or get_rate_limiter()

    @property
    def api(self) -> k8s_client.CustomObjectsApi:
        """Get or create the CustomObjectsApi."""
        if self._api is None:
            logger.info("Connecting to Kubernetes API server")
            load_kube_config()
            self._api = k8s_client.CustomObjectsApi()
        return self._api

    def close(self) -> None:
        """Close the underlying API client."""
        if self._api is not None:
            self._api.api_client.close()
            self._api = None

    @contextmanager
    def _observe(
        self, kind: ResourceKind, verb: str, name: str, namespace: str
    ) -> Iterator[None]:
        """Time a call, count it, and translate client failures into operator errors."""
        start_time = time.monotonic()
        status = "success"
        try:
            yield
        except ApiException as e:
            if e.status == HTTP_NOT_FOUND:
                status = "not_found"
                raise ResourceNotFoundError(
                    f'{kind.plural}.{kind.group} "{name}" not found'
                ) from e
            status = "error"
            raise RemoteAPIError(
                f"{verb} {kind.kind} {object_key(name, namespace)} failed: "
                f"({e.status}) {e.reason}",
                status=e.status,
            ) from e
        except HTTPError as e:
            status = "error"
            raise RemoteAPIError(
                f"{verb} {kind.kind} {object_key(name, namespace)} failed: {e}"
            ) from e
        finally:
            KUBE_API_CALLS.labels(resource=kind.kind, verb=verb, status=status).inc()
            KUBE_API_DURATION.labels(resource=kind.kind, verb=verb).observe(
                time.monotonic() - start_time
            )

    # -------------------------------------------------------------------------
    # Raw CustomObjectsApi calls
    # -------------------------------------------------------------------------

    @retry_on_error()
    def _get(self, kind: ResourceKind, name: str, namespace: str) -> dict[str, Any]:
        with self._rate_limiter.acquire():
            if kind.namespaced:
                return self.api.get_namespaced_custom_object(
                    kind.group, kind.version, namespace, kind.plural, name
                )
            return self.api.get_cluster_custom_object(
                kind.group, kind.version, kind.plural, name
            )

    @retry_on_error()
    def _create(self, kind: ResourceKind, body: dict[str, Any]) -> dict[str, Any]:
        with self._rate_limiter.acquire():
            if kind.namespaced:
                return self.api.create_namespaced_custom_object(
                    kind.group,
                    kind.version,
                    body["metadata"].get("namespace", ""),
                    kind.plural,
                    body,
                )
            return self.api.create_cluster_custom_object(
                kind.group, kind.version, kind.plural, body
            )

    @retry_on_error()
    def _update(self, kind: ResourceKind, body: dict[str, Any]) -> dict[str, Any]:
        metadata = body["metadata"]
        with self._rate_limiter.acquire():
            if kind.namespaced:
                return self.api.replace_namespaced_custom_object(
                    kind.group,
                    kind.version,
                    metadata.get("namespace", ""),
                    kind.plural,
                    metadata["name"],
                    body,
                )
            return self.api.replace_cluster_custom_object(
                kind.group, kind.version, kind.plural, metadata["name"], body
            )

    @retry_on_error()
    def _delete(self, kind: ResourceKind, name: str, namespace: str) -> None:
        with self._rate_limiter.acquire():
            if kind.namespaced:
                self.api.delete_namespaced_custom_object(
                    kind.group, kind.version, namespace, kind.plural, name
                )
            else:
                self.api.delete_cluster_custom_object(
                    kind.group, kind.version, kind.plural, name
                )

    # -------------------------------------------------------------------------
    # ResourceAccessor
    # -------------------------------------------------------------------------

    def get(self, kind: ResourceKind, name: str, namespace: str = "") -> CustomResource:
        """Fetch one object; raises ResourceNotFoundError when absent."""
        with self._observe(kind, "get", name, namespace):
            body = self._get(kind, name, namespace)
        return CustomResource.from_dict(body)

    def create(self, kind: ResourceKind, resource: CustomResource) -> CustomResource:
        """Create an object from its desired state."""
        logger.info(
            "Creating %s %s", kind.kind, object_key(resource.name, resource.namespace)
        )
        with self._observe(kind, "create", resource.name, resource.namespace):
            body = self._create(kind, resource.to_dict())
        return CustomResource.from_dict(body)

    def update(self, kind: ResourceKind, resource: CustomResource) -> CustomResource:
        """Replace an existing object with the given desired state."""
        logger.info(
            "Updating %s %s", kind.kind, object_key(resource.name, resource.namespace)
        )
        with self._observe(kind, "update", resource.name, resource.namespace):
            body = self._update(kind, resource.to_dict())
        return CustomResource.from_dict(body)

    def delete(self, kind: ResourceKind, resource: CustomResource) -> None:
        """Delete an object by its identity."""
        logger.info(
            "Deleting %s %s", kind.kind, object_key(resource.name, resource.namespace)
        )
        with self._observe(kind, "delete", resource.name, resource.namespace):
            self._delete(kind, resource.name, resource.namespace)
