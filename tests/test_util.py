import pytest

from kubeaudit import k8stypes
from kubeaudit.client import ClientOptions
from kubeaudit.result import (
    ERROR_UNSUPPORTED_RESOURCE,
    AuditResult,
    KubeResource,
    SeverityLevel,
)
from kubeaudit.util import (
    audit_resource,
    audit_resources,
    get_resources_from_clientset,
    get_resources_from_manifest,
    unwrap_resources,
)


class FakeClientset:
    def __init__(self, *resources):
        self.items = {}
        plurals = {
            "Deployment": ("apps/v1", "deployments"),
            "Namespace": ("v1", "namespaces"),
            "Pod": ("v1", "pods"),
        }
        for resource in resources:
            key = plurals[resource["kind"]]
            item = {k: v for k, v in resource.items() if k not in ("apiVersion", "kind")}
            self.items.setdefault(key, []).append(item)

    def list(self, group_version, plural, namespace="", field_selector=""):
        items = self.items.get((group_version, plural), [])
        if namespace:
            items = [i for i in items if i.get("metadata", {}).get("namespace") == namespace]
        return items


class RecordingAuditor:
    def __init__(self):
        self.calls = []

    def audit(self, resource, resources):
        self.calls.append((resource, resources))
        return [AuditResult(name="Found", severity=SeverityLevel.ERROR, message="m")]


def test_get_resources_from_clientset():
    clientset = FakeClientset(k8stypes.new_deployment(), k8stypes.new_namespace())
    got = get_resources_from_clientset(clientset, ClientOptions())
    assert [r.object["kind"] for r in got] == ["Deployment", "Namespace"]


def test_manifest_with_leading_separator():
    data = b"---\napiVersion: v1\nkind: Pod\nmetadata:\n  name: p\n"
    resources = get_resources_from_manifest(data)
    assert len(resources) == 2
    assert resources[0].object is None
    assert resources[0].raw == b""
    assert resources[1].object["metadata"]["name"] == "p"
    assert resources[1].raw == b"\napiVersion: v1\nkind: Pod\nmetadata:\n  name: p\n"


def test_manifest_accepts_text():
    resources = get_resources_from_manifest("apiVersion: v1\nkind: Namespace\n")
    assert len(resources) == 1
    assert resources[0].object["kind"] == "Namespace"


def test_manifest_unknown_kind_kept_raw():
    resources = get_resources_from_manifest(b"apiVersion: v1\nkind: Mystery\n")
    assert resources[0].object is None
    assert resources[0].raw == b"apiVersion: v1\nkind: Mystery\n"


def test_manifest_invalid_yaml():
    with pytest.raises(ValueError, match="Invalid yaml"):
        get_resources_from_manifest(b"a: b: c")


def test_unwrap_resources():
    pod = k8stypes.new_pod()
    assert unwrap_resources([KubeResource(object=pod), KubeResource()]) == [pod, None]


def test_audit_resource_without_object():
    auditor = RecordingAuditor()
    result = audit_resource(KubeResource(raw=b"x"), [], [auditor])
    assert result.audit_results == []
    assert auditor.calls == []


def test_audit_resource_unsupported():
    binding = {"apiVersion": "v1", "kind": "Binding", "metadata": {}}
    result = audit_resource(KubeResource(object=binding), [], [RecordingAuditor()])
    assert [r.name for r in result.audit_results] == [ERROR_UNSUPPORTED_RESOURCE]
    assert result.audit_results[0].severity == SeverityLevel.WARN


def test_audit_resources_passes_context():
    auditor = RecordingAuditor()
    pod = k8stypes.new_pod()
    resources = [KubeResource(object=pod), KubeResource()]
    results = audit_resources(resources, [auditor])
    assert len(results) == 2
    assert [r.name for r in results[0].audit_results] == ["Found"]
    assert results[1].audit_results == []
    assert auditor.calls == [(pod, [pod, None])]


def test_audit_resource_error_propagates():
    class Broken:
        def audit(self, resource, resources):
            raise RuntimeError("boom")

    with pytest.raises(RuntimeError, match="boom"):
        audit_resources([KubeResource(object=k8stypes.new_pod())], [Broken()])