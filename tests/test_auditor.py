import io
import json

import pytest

from kubeaudit import k8stypes
from kubeaudit.auditor import Auditable, Kubeaudit, Report
from kubeaudit.client import ClientOptions, NoReadableKubeConfigError
from kubeaudit.printer import JsonFormatter, with_formatter, with_min_severity, with_writer
from kubeaudit.result import (
    ERROR_UNSUPPORTED_RESOURCE,
    AuditResult,
    KubeResource,
    PendingFix,
    SeverityLevel,
    WorkloadResult,
)

MANIFEST = """
apiVersion: apps/v1
kind: Deployment
metadata:
  name: myAuditor
  labels: {}
spec:
  template:
    spec:
      containers:
      - name: myContainer
"""


class MyAuditorFix(PendingFix):
    def __init__(self, new_val):
        self.new_val = new_val

    def plan(self):
        return f"Set label 'hi' to '{self.new_val}'"

    def apply(self, resource):
        resource["metadata"].setdefault("labels", {})["hi"] = self.new_val
        return []


class MyAuditor(Auditable):
    def audit(self, resource, resources):
        return [
            AuditResult(
                name="MyAudit",
                severity=SeverityLevel.ERROR,
                message="My custom error",
                pending_fix=MyAuditorFix("bye"),
            )
        ]


def test_new():
    auditor = Kubeaudit([MyAuditor()])
    assert len(auditor.auditors) == 1
    with pytest.raises(ValueError, match="no auditors enabled"):
        Kubeaudit(None)
    with pytest.raises(ValueError):
        Kubeaudit([])


def test_custom_auditor():
    report = Kubeaudit([MyAuditor()]).audit_manifest(io.StringIO(MANIFEST))
    results = report.results()
    assert len(results) == 1
    assert [r.name for r in results[0].audit_results] == ["MyAudit"]
    assert report.has_errors() is True

    out = io.StringIO()
    report.print_plan(out)
    assert out.getvalue() == "*  Set label 'hi' to 'bye'\n"

    resource = results[0].resource.object
    results[0].audit_results[0].fix(resource)
    assert resource["metadata"]["labels"]["hi"] == "bye"


def test_print_results_pretty():
    report = Kubeaudit([MyAuditor()]).audit_manifest(MANIFEST.encode())
    out = io.StringIO()
    report.print_results(with_writer(out))
    text = out.getvalue()
    assert "  kind: Deployment\n" in text
    assert "    name: myAuditor\n" in text
    assert "-- [error] MyAudit\n" in text
    assert "   Message: My custom error\n" in text


def test_audit_manifest_invalid_yaml():
    with pytest.raises(ValueError, match="failed to get resources from manifest"):
        Kubeaudit([MyAuditor()]).audit_manifest(b"a: b: c")


@pytest.mark.parametrize(
    "manifest",
    [
        "apiVersion: v1\nkind: Binding\nmetadata:\n  name: b\n",
        "apiVersion: apiextensions.k8s.io/v1beta1\nkind: CustomResourceDefinition\n"
        "metadata:\n  name: crd\n",
    ],
)
def test_unknown_resource(manifest):
    report = Kubeaudit([MyAuditor()]).audit_manifest(manifest)
    results = report.results()
    assert len(results) == 1
    for result in results:
        for audit_result in result.audit_results:
            assert audit_result.severity == SeverityLevel.WARN
            assert audit_result.name == ERROR_UNSUPPORTED_RESOURCE
    assert report.has_errors() is False


def test_raw_results_include_empty():
    report = Kubeaudit([MyAuditor()]).audit_manifest("---\n" + MANIFEST)
    assert len(report.raw_results()) == 2
    assert len(report.results()) == 1


def test_audit_local_invalid_path(tmp_path):
    auditor = Kubeaudit([MyAuditor()])
    missing = str(tmp_path / "invalid_path")
    with pytest.raises(NoReadableKubeConfigError, match="failed to open kubeconfig file"):
        auditor.audit_local(missing, ClientOptions())


def test_audit_cluster_not_in_cluster(monkeypatch):
    monkeypatch.delenv("KUBERNETES_SERVICE_HOST", raising=False)
    monkeypatch.delenv("KUBERNETES_SERVICE_PORT", raising=False)
    with pytest.raises(RuntimeError, match="not running in cluster"):
        Kubeaudit([MyAuditor()]).audit_cluster(ClientOptions())


def _test_result(severity):
    return AuditResult(name="MyAuditResult", severity=severity, metadata={"Foo": "bar"})


def _severity_report():
    return Report(
        [
            WorkloadResult(
                resource=KubeResource(object=k8stypes.new_pod()),
                audit_results=[
                    _test_result(SeverityLevel.ERROR),
                    _test_result(SeverityLevel.WARN),
                    _test_result(SeverityLevel.INFO),
                ],
            )
        ]
    )


@pytest.mark.parametrize(
    "severity, lines",
    [(SeverityLevel.ERROR, 1), (SeverityLevel.WARN, 2), (SeverityLevel.INFO, 3)],
)
def test_print_results_min_severity(severity, lines):
    out = io.StringIO()
    _severity_report().print_results(
        with_writer(out), with_min_severity(severity), with_formatter(JsonFormatter())
    )
    assert out.getvalue().count("\n") == lines


def test_results_with_min_severity():
    results = _severity_report().results_with_min_severity(SeverityLevel.WARN)
    assert len(results) == 1
    assert [r.severity for r in results[0].audit_results] == [
        SeverityLevel.ERROR,
        SeverityLevel.WARN,
    ]
    assert Report([]).results_with_min_severity(SeverityLevel.INFO) == []


@pytest.mark.parametrize(
    "severity", [SeverityLevel.ERROR, SeverityLevel.WARN, SeverityLevel.INFO]
)
def test_log_audit_result(severity):
    resource = k8stypes.new_deployment()
    resource["metadata"]["name"] = "mydeployment"
    resource["metadata"]["namespace"] = "mynamespace"
    report = Report(
        [
            WorkloadResult(
                resource=KubeResource(object=resource),
                audit_results=[_test_result(severity)],
            )
        ]
    )
    out = io.StringIO()
    report.print_results(with_writer(out), with_formatter(JsonFormatter()))
    got = json.loads(out.getvalue())
    assert got["AuditResultName"] == "MyAuditResult"
    assert got["level"] == str(severity)
    assert got["Foo"] == "bar"
    assert got["ResourceKind"] == "Deployment"
    assert got["ResourceApiVersion"] == "apps/v1"
    assert got["ResourceName"] == "mydeployment"
    assert got["ResourceNamespace"] == "mynamespace"


def test_print_plan_skips_results_without_fix():
    out = io.StringIO()
    _severity_report().print_plan(out)
    assert out.getvalue() == ""