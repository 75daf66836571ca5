"""Registry of the API group versions and kinds that can be decoded."""

from __future__ import annotations

_META_KINDS = frozenset(
    {
        "Status",
        "WatchEvent",
        "ListOptions",
        "GetOptions",
        "DeleteOptions",
        "CreateOptions",
        "UpdateOptions",
        "PatchOptions",
        "ExportOptions",
    }
)

_RBAC_KINDS = frozenset({"Role", "RoleBinding", "ClusterRole", "ClusterRoleBinding"})
_AUTHZ_KINDS = frozenset(
    {
        "SelfSubjectAccessReview",
        "SelfSubjectRulesReview",
        "SubjectAccessReview",
        "LocalSubjectAccessReview",
    }
)

_KINDS: dict[str, frozenset[str]] = {
    "admissionregistration.k8s.io/v1beta1": frozenset(
        {"ValidatingWebhookConfiguration", "MutatingWebhookConfiguration"}
    ),
    "cert-manager.io/v1alpha2": frozenset(
        {"Certificate", "CertificateRequest", "Issuer", "ClusterIssuer"}
    ),
    "apps/v1": frozenset(
        {"Deployment", "StatefulSet", "DaemonSet", "ReplicaSet", "ControllerRevision"}
    ),
    "apps/v1beta1": frozenset(
        {"Deployment", "DeploymentRollback", "Scale", "StatefulSet", "ControllerRevision"}
    ),
    "apps/v1beta2": frozenset(
        {"Deployment", "Scale", "StatefulSet", "DaemonSet", "ReplicaSet", "ControllerRevision"}
    ),
    "authentication.k8s.io/v1": frozenset({"TokenReview", "TokenRequest"}),
    "authentication.k8s.io/v1beta1": frozenset({"TokenReview"}),
    "authorization.k8s.io/v1": _AUTHZ_KINDS,
    "authorization.k8s.io/v1beta1": _AUTHZ_KINDS,
    "autoscaling/v1": frozenset({"HorizontalPodAutoscaler", "Scale"}),
    "autoscaling/v2beta1": frozenset({"HorizontalPodAutoscaler"}),
    "autoscaling/v2beta2": frozenset({"HorizontalPodAutoscaler"}),
    "batch/v1": frozenset({"Job"}),
    "batch/v1beta1": frozenset({"CronJob", "JobTemplate"}),
    "batch/v2alpha1": frozenset({"CronJob", "JobTemplate"}),
    "certificates.k8s.io/v1beta1": frozenset({"CertificateSigningRequest"}),
    "coordination.k8s.io/v1beta1": frozenset({"Lease"}),
    "coordination.k8s.io/v1": frozenset({"Lease"}),
    "v1": frozenset(
        {
            "Pod",
            "PodStatusResult",
            "PodTemplate",
            "ReplicationController",
            "Service",
            "ServiceProxyOptions",
            "NodeProxyOptions",
            "PodAttachOptions",
            "PodLogOptions",
            "PodExecOptions",
            "PodPortForwardOptions",
            "PodProxyOptions",
            "Endpoints",
            "Node",
            "Binding",
            "Event",
            "LimitRange",
            "ResourceQuota",
            "Secret",
            "ServiceAccount",
            "Namespace",
            "PersistentVolume",
            "PersistentVolumeClaim",
            "RangeAllocation",
            "ConfigMap",
            "ComponentStatus",
            "SerializedReference",
            "EphemeralContainers",
            "List",
        }
    ),
    "events.k8s.io/v1beta1": frozenset({"Event"}),
    "apiextensions.k8s.io/v1beta1": frozenset(
        {"CustomResourceDefinition", "ConversionReview"}
    ),
    "extensions/v1beta1": frozenset(
        {
            "Deployment",
            "DeploymentRollback",
            "Scale",
            "DaemonSet",
            "Ingress",
            "ReplicaSet",
            "PodSecurityPolicy",
            "NetworkPolicy",
        }
    ),
    "networking.k8s.io/v1": frozenset({"NetworkPolicy"}),
    "networking.k8s.io/v1beta1": frozenset({"Ingress", "IngressClass"}),
    "node.k8s.io/v1alpha1": frozenset({"RuntimeClass"}),
    "node.k8s.io/v1beta1": frozenset({"RuntimeClass"}),
    "policy/v1beta1": frozenset({"PodDisruptionBudget", "PodSecurityPolicy", "Eviction"}),
    "rbac.authorization.k8s.io/v1": _RBAC_KINDS,
    "rbac.authorization.k8s.io/v1beta1": _RBAC_KINDS,
    "rbac.authorization.k8s.io/v1alpha1": _RBAC_KINDS,
    "scheduling.k8s.io/v1alpha1": frozenset({"PriorityClass"}),
    "scheduling.k8s.io/v1beta1": frozenset({"PriorityClass"}),
    "scheduling.k8s.io/v1": frozenset({"PriorityClass"}),
    "settings.k8s.io/v1alpha1": frozenset({"PodPreset"}),
    "storage.k8s.io/v1beta1": frozenset(
        {"StorageClass", "VolumeAttachment", "CSIDriver", "CSINode", "CSIStorageCapacity"}
    ),
    "storage.k8s.io/v1": frozenset({"StorageClass", "VolumeAttachment", "CSINode", "CSIDriver"}),
    "storage.k8s.io/v1alpha1": frozenset({"VolumeAttachment", "CSIStorageCapacity"}),
}


def is_registered(api_version: str, kind: str) -> bool:
    """Return True if the kind is known for the given apiVersion."""
    kinds = _KINDS.get(api_version)
    if kinds is None or not kind:
        return False
    if kind in kinds or kind in _META_KINDS:
        return True
    return kind.endswith("List") and kind[: -len("List")] in kinds


def registered_group_versions() -> frozenset[str]:
    """Return every apiVersion that has registered kinds."""
    return frozenset(_KINDS)