"""Shared state - thread-safe singleton for the Kubernetes resource accessor."""

import threading
from dataclasses import dataclass, field

from kube_client import KubeResourceClient


@dataclass
class ClientState:
    """Thread-safe container for the shared resource accessor.

    Builders do not own their accessor; callers that have no accessor of
    their own should use the global `state` instance so that every builder
    in the process shares one connection and one rate limiter.
    """

    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)
    _kube_client: KubeResourceClient | None = field(default=None, repr=False)

    def get_kube_client(self) -> KubeResourceClient:
        """Get or create the shared accessor (thread-safe)."""
        with self._lock:
            if self._kube_client is None:
                self._kube_client = KubeResourceClient()
            return self._kube_client

    def close(self) -> None:
        """Close the shared accessor."""
        with self._lock:
            if self._kube_client is not None:
                self._kube_client.close()
                self._kube_client = None


# Global state singleton
state = ClientState()


def get_kube_client() -> KubeResourceClient:
    """Get the shared resource accessor."""
    return state.get_kube_client()
