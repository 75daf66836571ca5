"""Collecting resources from manifests or clusters and running auditors on them."""

from __future__ import annotations

from typing import Any, Iterable, Sequence

import yaml

from kubeaudit.client import ClientOptions, get_all_resources
from kubeaudit.k8stypes import Resource, is_supported_resource_type
from kubeaudit.result import (
    ERROR_UNSUPPORTED_RESOURCE,
    AuditResult,
    KubeResource,
    SeverityLevel,
    WorkloadResult,
)
from kubeaudit.runtime import DecodeError, decode_resource

_DOCUMENT_SEPARATOR = b"---"


def get_resources_from_clientset(clientset: Any, options: ClientOptions) -> list[KubeResource]:
    """Return every supported resource in the cluster, wrapped for auditing."""
    return [KubeResource(object=resource) for resource in get_all_resources(clientset, options)]


def _check_yaml(data: bytes) -> None:
    try:
        text = data.decode("utf-8")
        documents = yaml.safe_load_all(text)
        next(documents, None)
    except (yaml.YAMLError, UnicodeDecodeError) as err:
        raise ValueError(f"Invalid yaml: {err}") from err


def get_resources_from_manifest(data: bytes | str) -> list[KubeResource]:
    """Split a manifest into its documents and decode each one.

    Documents that are not a known Kubernetes resource are kept with their raw
    bytes only. Raises ValueError if the manifest is not valid YAML.
    """
    if isinstance(data, str):
        data = data.encode("utf-8")
    resources: list[KubeResource] = []
    for chunk in bytes(data).split(_DOCUMENT_SEPARATOR):
        try:
            obj = decode_resource(chunk)
        except DecodeError:
            obj = None
        if obj is not None:
            resources.append(KubeResource(object=obj, raw=chunk))
            continue
        _check_yaml(data)
        resources.append(KubeResource(raw=chunk))
    return resources


def unwrap_resources(resources: Iterable[KubeResource]) -> list[Resource | None]:
    """Return the decoded objects of the wrapped resources."""
    return [resource.object for resource in resources]


def audit_resource(
    resource: KubeResource,
    resources: Sequence[KubeResource],
    auditables: Iterable[Any],
) -> WorkloadResult:
    """Run every auditor on one resource, with all resources as context."""
    result = WorkloadResult(resource=resource, audit_results=[])
    if resource.object is None:
        return result

    if not is_supported_resource_type(resource.object):
        result.audit_results.append(
            AuditResult(
                name=ERROR_UNSUPPORTED_RESOURCE,
                severity=SeverityLevel.WARN,
                message="Resource is not currently supported.",
            )
        )
        return result

    context = unwrap_resources(resources)
    for auditable in auditables:
        result.audit_results.extend(auditable.audit(resource.object, context) or [])
    return result


def audit_resources(
    resources: Sequence[KubeResource], auditables: Sequence[Any]
) -> list[WorkloadResult]:
    """Run every auditor on every resource."""
    return [audit_resource(resource, resources, auditables) for resource in resources]