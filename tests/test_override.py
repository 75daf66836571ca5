from kubeaudit.fix import ByAddingPodAnnotation
from kubeaudit.k8stypes import new_deployment, new_namespace
from kubeaudit.override import (
    CONTAINER_OVERRIDE_LABEL_PREFIX,
    NAMESPACE_OVERRIDE_LABEL_PREFIX,
    POD_OVERRIDE_LABEL_PREFIX,
    apply_override,
    get_container_override_label,
    get_container_override_reason,
    get_namespace_override_label,
    get_overridden_result_name,
    get_pod_override_label,
    get_resource_override_reason,
    new_redundant_override_result,
)
from kubeaudit.result import REDUNDANT_AUDITOR_OVERRIDE, AuditResult, SeverityLevel
from kubeaudit.runtime import get_object_meta, get_pod_object_meta

LABEL = "allow-thing"


def _deployment_with_labels(labels):
    resource = new_deployment()
    get_pod_object_meta(resource)["labels"] = labels
    return resource


def _result():
    return AuditResult(
        name="Thing",
        severity=SeverityLevel.ERROR,
        message="msg",
        pending_fix=ByAddingPodAnnotation(key="k", value="v"),
    )


def test_label_builders():
    assert get_pod_override_label(LABEL) == POD_OVERRIDE_LABEL_PREFIX + LABEL
    assert get_namespace_override_label(LABEL) == NAMESPACE_OVERRIDE_LABEL_PREFIX + LABEL
    assert (
        get_container_override_label("c1", LABEL)
        == CONTAINER_OVERRIDE_LABEL_PREFIX + "c1." + LABEL
    )
    assert get_pod_override_label(LABEL) == "audit.kubernetes.io/pod.allow-thing"


def test_overridden_name():
    assert get_overridden_result_name("Thing") == "ThingAllowed"


def test_no_override_returns_result_unchanged():
    resource = _deployment_with_labels({})
    result = _result()
    assert apply_override(result, "c1", resource, LABEL) is result
    assert result.severity is SeverityLevel.ERROR
    assert result.pending_fix is not None
    assert apply_override(None, "c1", resource, LABEL) is None


def test_container_override_downgrades_result():
    resource = _deployment_with_labels({get_container_override_label("c1", LABEL): "because"})
    result = apply_override(_result(), "c1", resource, LABEL)
    assert result.name == "ThingAllowed"
    assert result.severity is SeverityLevel.INFO
    assert result.pending_fix is None
    assert result.message == "Audit result overridden: msg"
    assert result.metadata["OverrideReason"] == "because"


def test_container_override_for_other_container_does_not_apply():
    resource = _deployment_with_labels({get_container_override_label("c2", LABEL): "x"})
    assert get_container_override_reason("c1", resource, LABEL) == (False, "")


def test_true_reason_not_recorded():
    resource = _deployment_with_labels({get_pod_override_label(LABEL): "True"})
    result = apply_override(_result(), "c1", resource, LABEL)
    assert result.severity is SeverityLevel.INFO
    assert "OverrideReason" not in result.metadata


def test_pod_override_applies_to_any_container():
    resource = _deployment_with_labels({get_pod_override_label(LABEL): "reason"})
    assert get_container_override_reason("anything", resource, LABEL) == (True, "reason")
    assert get_container_override_reason("", resource, LABEL) == (True, "reason")


def test_namespace_override():
    resource = new_namespace()
    get_object_meta(resource)["labels"] = {get_namespace_override_label(LABEL): "ok"}
    assert get_resource_override_reason(resource, LABEL) == (True, "ok")


def test_redundant_override_result():
    resource = _deployment_with_labels({get_container_override_label("c1", LABEL): "r"})
    result = apply_override(None, "c1", resource, LABEL)
    assert result.name == REDUNDANT_AUDITOR_OVERRIDE
    assert result.severity is SeverityLevel.WARN
    assert result.metadata == {"Container": "c1", "OverrideLabel": LABEL}
    assert result == new_redundant_override_result("c1", "r", LABEL)