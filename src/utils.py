"""Utility functions for the resource builders."""

import datetime
from typing import Any


def api_version(group: str, version: str) -> str:
    """Join an API group and version the way Kubernetes spells apiVersion.

    Example: ('loki.grafana.com', 'v1') -> 'loki.grafana.com/v1'
    """
    if not group:
        return version
    return f"{group}/{version}"


def object_key(name: str, namespace: str = "") -> str:
    """Render a name/namespace pair for log and error messages.

    Example: ('lokistack', 'openshift-logging') -> 'openshift-logging/lokistack'
    """
    return f"{namespace}/{name}" if namespace else name


def set_nested(data: dict[str, Any], path: str, value: Any) -> None:
    """Write a dotted path into nested dicts, creating intermediate dicts.

    Intermediate values that are not dicts are replaced.
    """
    keys = path.split(".")
    current = data
    for key in keys[:-1]:
        if not isinstance(current.get(key), dict):
            current[key] = {}
        current = current[key]
    current[keys[-1]] = value


def now_iso() -> str:
    """Return current UTC time in ISO format."""
    return datetime.datetime.now(datetime.UTC).isoformat()
