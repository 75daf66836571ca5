"""Auditing Kubernetes resources from manifests, kubeconfigs or the cluster."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Iterable, Sequence

from kubeaudit.client import (
    DEFAULT_CLIENT,
    ClientOptions,
    NoReadableKubeConfigError,
    is_running_in_cluster,
    new_kube_client_cluster,
    new_kube_client_local,
)
from kubeaudit.k8stypes import Resource
from kubeaudit.options import Option, apply_options
from kubeaudit.printer import PrintOption, new_printer
from kubeaudit.result import AuditResult, SeverityLevel, WorkloadResult
from kubeaudit.util import (
    audit_resources,
    get_resources_from_clientset,
    get_resources_from_manifest,
)


class Auditable(ABC):
    """An auditor that looks for one kind of security issue."""

    @abstractmethod
    def audit(
        self, resource: Resource, resources: Sequence[Resource | None]
    ) -> list[AuditResult]:
        """Return the audit results for a resource; ``resources`` is context."""


class Report:
    """The results of an audit run."""

    def __init__(self, results: Iterable[WorkloadResult]) -> None:
        self._results = list(results)

    def raw_results(self) -> list[WorkloadResult]:
        """Return the results for every resource, including those with none."""
        return self._results

    def results(self) -> list[WorkloadResult]:
        """Return the results for resources that have audit results."""
        return [result for result in self._results if result.audit_results]

    def results_with_min_severity(self, min_severity: SeverityLevel) -> list[WorkloadResult]:
        """Return the results at or above a severity, dropping empty resources."""
        filtered = []
        for result in self._results:
            kept = [item for item in result.audit_results if item.severity >= min_severity]
            if kept:
                filtered.append(WorkloadResult(resource=result.resource, audit_results=kept))
        return filtered

    def has_errors(self) -> bool:
        """Return True if any audit result has error severity."""
        return any(
            item.severity >= SeverityLevel.ERROR
            for result in self.results()
            for item in result.audit_results
        )

    def print_results(self, *args: PrintOption) -> None:
        """Print the results; standard output unless a writer option is given."""
        new_printer(*args).print_report(self)

    def print_plan(self, writer: Any) -> None:
        """Write one line for each pending fix describing what it will do."""
        for result in self.results():
            for item in result.audit_results:
                plan = item.fix_plan()
                if plan is not None:
                    writer.write(f"*  {plan}\n")


class Kubeaudit:
    """Runs a set of auditors over Kubernetes resources."""

    def __init__(self, auditors: Sequence[Auditable] | None, *opts: Option) -> None:
        if not auditors:
            raise ValueError("no auditors enabled")
        self.auditors = list(auditors)
        apply_options(self, opts)

    def audit_manifest(self, manifest: Any) -> Report:
        """Audit the resources in a manifest given as a stream, bytes or text."""
        data = manifest.read() if hasattr(manifest, "read") else manifest
        if data is None:
            data = b""
        try:
            resources = get_resources_from_manifest(data)
        except ValueError as err:
            raise ValueError(f"failed to get resources from manifest: {err}") from err
        return Report(audit_resources(resources, self.auditors))

    def audit_cluster(self, options: ClientOptions | None = None) -> Report:
        """Audit the resources of the cluster this process runs in."""
        if not is_running_in_cluster(DEFAULT_CLIENT):
            raise RuntimeError(
                "failed to audit resources in cluster mode: not running in cluster"
            )
        clientset = new_kube_client_cluster(DEFAULT_CLIENT)
        resources = get_resources_from_clientset(clientset, options or ClientOptions())
        return Report(audit_resources(resources, self.auditors))

    def audit_local(self, configpath: str, options: ClientOptions | None = None) -> Report:
        """Audit the resources of the cluster named in a kubeconfig file."""
        try:
            clientset = new_kube_client_local(configpath)
        except NoReadableKubeConfigError as err:
            raise NoReadableKubeConfigError(
                f"failed to open kubeconfig file {configpath}"
            ) from err
        resources = get_resources_from_clientset(clientset, options or ClientOptions())
        return Report(audit_resources(resources, self.auditors))