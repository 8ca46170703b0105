"""Constants used across the resource builders."""

# API groups and versions of the managed custom resources
LOKI_API_GROUP = "loki.grafana.com"
LOKI_API_VERSION = "v1"

LSO_API_GROUP = "local.storage.openshift.io"
LSO_API_VERSION = "v1alpha1"

MCO_API_GROUP = "machineconfiguration.openshift.io"
MCO_API_VERSION = "v1"

OCS_API_GROUP = "ocs.openshift.io"
OCS_API_VERSION = "v1"

MAISTRA_API_GROUP = "maistra.io"
MAISTRA_CONTROL_PLANE_VERSION = "v2"
MAISTRA_MEMBER_ROLL_VERSION = "v1"

# HTTP status codes the accessor classifies
HTTP_NOT_FOUND = 404
HTTP_TOO_MANY_REQUESTS = 429
