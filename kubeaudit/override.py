"""Override labels that disable auditors for containers, pods or namespaces."""

from __future__ import annotations

from kubeaudit.k8stypes import Resource
from kubeaudit.result import REDUNDANT_AUDITOR_OVERRIDE, AuditResult, SeverityLevel
from kubeaudit.runtime import get_labels

# Disables an auditor for a specific container.
CONTAINER_OVERRIDE_LABEL_PREFIX = "container.audit.kubernetes.io/"
# Disables an auditor for a pod and all its containers.
POD_OVERRIDE_LABEL_PREFIX = "audit.kubernetes.io/pod."
# Disables an auditor for a namespace resource.
NAMESPACE_OVERRIDE_LABEL_PREFIX = "audit.kubernetes.io/namespace."


def get_overridden_result_name(result_name: str) -> str:
    """Return the result name marking an issue as ignored by an override label."""
    return result_name + "Allowed"


def new_redundant_override_result(
    container_name: str, override_reason: str, override_label: str
) -> AuditResult:
    """Return a warning that an override label is present but finds nothing to override."""
    return AuditResult(
        name=REDUNDANT_AUDITOR_OVERRIDE,
        severity=SeverityLevel.WARN,
        message=(
            "Auditor is disabled via label but there were no security issues found by "
            "the auditor. The label should be removed."
        ),
        metadata={"Container": container_name, "OverrideLabel": override_label},
    )


def apply_override(
    audit_result: AuditResult | None,
    container_name: str,
    resource: Resource,
    override_label: str,
) -> AuditResult | None:
    """Downgrade an audit result if an override label disables its auditor.

    Without an override the result is returned unchanged. With one, a missing
    result becomes a redundant-override warning and an existing result becomes
    informational, loses its pending fix and records the override reason.
    """
    has_override, reason = get_container_override_reason(container_name, resource, override_label)
    if not has_override:
        return audit_result
    if audit_result is None:
        return new_redundant_override_result(container_name, reason, override_label)

    audit_result.name = get_overridden_result_name(audit_result.name)
    audit_result.pending_fix = None
    audit_result.severity = SeverityLevel.INFO
    audit_result.message = "Audit result overridden: " + audit_result.message

    if reason and reason.lower() != "true":
        if audit_result.metadata is None:
            audit_result.metadata = {}
        audit_result.metadata["OverrideReason"] = reason
    return audit_result


def get_container_override_reason(
    container_name: str, resource: Resource, override_label: str
) -> tuple[bool, str]:
    """Return whether the auditor is disabled for the container, and the reason.

    Falls back to pod and namespace override labels.
    """
    labels = get_labels(resource) or {}
    if container_name:
        label = get_container_override_label(container_name, override_label)
        if label in labels:
            return True, labels[label]
    return get_resource_override_reason(resource, override_label)


def get_resource_override_reason(
    resource: Resource, auditor_override_label: str
) -> tuple[bool, str]:
    """Return whether a pod or namespace label disables the auditor, and the reason."""
    labels = get_labels(resource) or {}
    for make_label in (get_pod_override_label, get_namespace_override_label):
        label = make_label(auditor_override_label)
        if label in labels:
            return True, labels[label]
    return False, ""


def get_pod_override_label(override_label: str) -> str:
    return POD_OVERRIDE_LABEL_PREFIX + override_label


def get_namespace_override_label(override_label: str) -> str:
    return NAMESPACE_OVERRIDE_LABEL_PREFIX + override_label


def get_container_override_label(container_name: str, override_label: str) -> str:
    return CONTAINER_OVERRIDE_LABEL_PREFIX + container_name + "." + override_label