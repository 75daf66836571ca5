"""Decoding, encoding and navigating Kubernetes resources."""

from __future__ import annotations

from typing import Any

import yaml

from kubeaudit.k8stypes import Resource, api_version_and_kind, is_supported_resource_type
from kubeaudit.scheme import is_registered


class DecodeError(ValueError):
    """Raised when bytes cannot be decoded into a known Kubernetes resource."""


_TEMPLATE_IN_SPEC = frozenset(
    {
        ("apps/v1", "DaemonSet"),
        ("extensions/v1beta1", "DaemonSet"),
        ("apps/v1beta2", "DaemonSet"),
        ("extensions/v1beta1", "Deployment"),
        ("apps/v1", "Deployment"),
        ("apps/v1beta1", "Deployment"),
        ("apps/v1beta2", "Deployment"),
        ("apps/v1", "StatefulSet"),
        ("apps/v1beta1", "StatefulSet"),
    }
)


def _child(mapping: dict[str, Any], key: str) -> dict[str, Any] | None:
    """Return mapping[key], creating an empty mapping when it is missing."""
    value = mapping.get(key)
    if value is None:
        value = {}
        mapping[key] = value
    return value if isinstance(value, dict) else None


def _walk(mapping: dict[str, Any] | None, *keys: str) -> dict[str, Any] | None:
    for key in keys:
        if mapping is None:
            return None
        mapping = _child(mapping, key)
    return mapping


def decode_resource(data: bytes | str) -> Resource:
    """Decode one YAML or JSON document into a resource of a registered kind."""
    if isinstance(data, (bytes, bytearray)):
        try:
            text = bytes(data).decode("utf-8")
        except UnicodeDecodeError as err:
            raise DecodeError(f"invalid encoding: {err}") from err
    else:
        text = data
    try:
        document = yaml.safe_load(text)
    except yaml.YAMLError as err:
        raise DecodeError(f"invalid yaml: {err}") from err
    if not isinstance(document, dict):
        raise DecodeError("Object 'Kind' is missing")
    api_version, kind = api_version_and_kind(document)
    if not kind:
        raise DecodeError("Object 'Kind' is missing")
    if not api_version:
        raise DecodeError("Object 'apiVersion' is missing")
    if not is_registered(api_version, kind):
        raise DecodeError(f'no kind "{kind}" is registered for version "{api_version}"')
    return document


def encode_resource(resource: Resource) -> bytes:
    """Encode a resource as YAML with keys in sorted order."""
    if not isinstance(resource, dict):
        raise TypeError("resource must be a mapping")
    return yaml.safe_dump(resource, default_flow_style=False, sort_keys=True).encode("utf-8")


def get_pod_template_spec(resource: Any) -> dict[str, Any] | None:
    """Return the pod template of a resource, or None if it has none."""
    type_key = api_version_and_kind(resource)
    if type_key in _TEMPLATE_IN_SPEC:
        return _walk(resource, "spec", "template")
    if type_key == ("batch/v1beta1", "CronJob"):
        return _walk(resource, "spec", "jobTemplate", "spec", "template")
    if type_key == ("v1", "PodTemplate"):
        return _walk(resource, "template")
    if type_key == ("v1", "ReplicationController"):
        spec = _child(resource, "spec")
        template = spec.get("template") if spec is not None else None
        return template if isinstance(template, dict) else None
    return None


def get_object_meta(resource: Any) -> dict[str, Any] | None:
    """Return the top-level metadata of a supported resource."""
    if not is_supported_resource_type(resource):
        return None
    return _child(resource, "metadata")


def get_pod_object_meta(resource: Any) -> dict[str, Any] | None:
    """Return pod-level metadata, falling back to the top-level metadata."""
    template = get_pod_template_spec(resource)
    if template is not None:
        return _child(template, "metadata")
    return get_object_meta(resource)


def get_pod_spec(resource: Any) -> dict[str, Any] | None:
    """Return the pod spec of a resource, or None if it has none."""
    template = get_pod_template_spec(resource)
    if template is not None:
        return _child(template, "spec")
    if api_version_and_kind(resource) == ("v1", "Pod"):
        return _child(resource, "spec")
    return None


def get_containers(resource: Any) -> list[dict[str, Any]] | None:
    """Return the containers of a resource's pod spec, or None without one."""
    pod_spec = get_pod_spec(resource)
    if pod_spec is None:
        return None
    containers = pod_spec.get("containers")
    if not isinstance(containers, list):
        return []
    return [container for container in containers if isinstance(container, dict)]


def get_annotations(resource: Any) -> dict[str, str] | None:
    """Return pod-level annotations, or the least nested ones."""
    meta = get_pod_object_meta(resource)
    return meta.get("annotations") if meta is not None else None


def get_labels(resource: Any) -> dict[str, str] | None:
    """Return pod-level labels, or the least nested ones."""
    meta = get_pod_object_meta(resource)
    return meta.get("labels") if meta is not None else None