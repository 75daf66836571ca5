"""Kubernetes resource shapes: constructors and type checks.

Resources are plain dictionaries in the shape of their manifest
(``apiVersion``, ``kind``, ``metadata``, ``spec`` ...), so they can be
decoded from and encoded to YAML without any conversion layer.
"""

from __future__ import annotations

from typing import Any

Resource = dict[str, Any]

# (apiVersion, kind) pairs that the auditors know how to handle.
SUPPORTED_RESOURCE_TYPES: frozenset[tuple[str, str]] = frozenset(
    {
        ("batch/v1beta1", "CronJob"),
        ("apps/v1", "DaemonSet"),
        ("extensions/v1beta1", "DaemonSet"),
        ("apps/v1beta2", "DaemonSet"),
        ("extensions/v1beta1", "Deployment"),
        ("apps/v1", "Deployment"),
        ("apps/v1beta1", "Deployment"),
        ("apps/v1beta2", "Deployment"),
        ("v1", "Namespace"),
        ("networking.k8s.io/v1", "NetworkPolicy"),
        ("v1", "Pod"),
        ("v1", "PodTemplate"),
        ("v1", "ReplicationController"),
        ("v1", "ServiceAccount"),
        ("apps/v1", "StatefulSet"),
        ("apps/v1beta1", "StatefulSet"),
    }
)


def _pod_template_spec() -> dict[str, Any]:
    return {"metadata": {}, "spec": {}}


def _resource(api_version: str, kind: str, **fields: Any) -> Resource:
    resource: Resource = {"apiVersion": api_version, "kind": kind, "metadata": {}}
    resource.update(fields)
    return resource


def new_deployment() -> Resource:
    """Return a new, empty apps/v1 Deployment."""
    return _resource("apps/v1", "Deployment", spec={"template": _pod_template_spec()})


def new_pod() -> Resource:
    """Return a new, empty v1 Pod."""
    return _resource("v1", "Pod", spec={})


def new_namespace() -> Resource:
    """Return a new, empty v1 Namespace."""
    return _resource("v1", "Namespace", spec={})


def new_daemon_set() -> Resource:
    """Return a new, empty apps/v1 DaemonSet."""
    return _resource("apps/v1", "DaemonSet", spec={"template": _pod_template_spec()})


def new_replication_controller() -> Resource:
    """Return a new, empty v1 ReplicationController."""
    return _resource(
        "v1", "ReplicationController", spec={"template": _pod_template_spec()}
    )


def new_stateful_set() -> Resource:
    """Return a new, empty apps/v1 StatefulSet."""
    return _resource("apps/v1", "StatefulSet", spec={"template": _pod_template_spec()})


def new_network_policy() -> Resource:
    """Return a new, empty networking.k8s.io/v1 NetworkPolicy."""
    return _resource("networking.k8s.io/v1", "NetworkPolicy", spec={})


def new_pod_template() -> Resource:
    """Return a new, empty v1 PodTemplate."""
    return _resource("v1", "PodTemplate", template=_pod_template_spec())


def new_cron_job() -> Resource:
    """Return a new, empty batch/v1beta1 CronJob."""
    return _resource(
        "batch/v1beta1",
        "CronJob",
        spec={"jobTemplate": {"spec": {"template": _pod_template_spec()}}},
    )


def new_service_account() -> Resource:
    """Return a new, empty v1 ServiceAccount."""
    return _resource("v1", "ServiceAccount")


def api_version_and_kind(resource: Any) -> tuple[str, str]:
    """Return the resource's apiVersion and kind, empty strings when unset."""
    if not isinstance(resource, dict):
        return "", ""
    return str(resource.get("apiVersion") or ""), str(resource.get("kind") or "")


def is_namespace_v1(resource: Any) -> bool:
    """Return True if the resource is a v1 Namespace."""
    return api_version_and_kind(resource) == ("v1", "Namespace")


def is_supported_resource_type(resource: Any) -> bool:
    """Return True if the resource is of a type the auditors support."""
    return api_version_and_kind(resource) in SUPPORTED_RESOURCE_TYPES