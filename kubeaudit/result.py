"""Audit results, pending fixes and the resources they belong to."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import IntEnum

from kubeaudit.k8stypes import Resource

# Audit result name for resources the auditors do not know how to audit.
ERROR_UNSUPPORTED_RESOURCE = "Unsupported resource"

# Audit result name for an override label on an auditor that found nothing.
REDUNDANT_AUDITOR_OVERRIDE = "RedundantAuditorOverride"

Metadata = dict[str, str]


class SeverityLevel(IntEnum):
    """How serious an audit result is; also used as its log level."""

    INFO = 0
    WARN = 1
    ERROR = 2

    def __str__(self) -> str:
        return {
            SeverityLevel.INFO: "info",
            SeverityLevel.WARN: "warning",
            SeverityLevel.ERROR: "error",
        }[self]


class PendingFix(ABC):
    """A fix that can be applied automatically to a resource."""

    @abstractmethod
    def plan(self) -> str:
        """Return a human-readable description of what apply() will do."""

    @abstractmethod
    def apply(self, resource: Resource) -> list[Resource]:
        """Modify the resource in place and return any newly created resources."""


@dataclass
class AuditResult:
    """A potential security issue found in a resource."""

    name: str
    severity: SeverityLevel
    message: str = ""
    pending_fix: PendingFix | None = None
    metadata: Metadata = field(default_factory=dict)

    def fix(self, resource: Resource) -> list[Resource]:
        """Apply the pending fix, returning new resources it created."""
        if self.pending_fix is None:
            return []
        return list(self.pending_fix.apply(resource) or [])

    def fix_plan(self) -> str | None:
        """Return the plan of the pending fix, or None if there is none."""
        if self.pending_fix is None:
            return None
        return self.pending_fix.plan()


@dataclass(frozen=True)
class KubeResource:
    """A decoded Kubernetes object and the raw bytes it came from."""

    object: Resource | None = None
    raw: bytes = b""


@dataclass
class WorkloadResult:
    """The audit results for a single resource."""

    resource: KubeResource
    audit_results: list[AuditResult] = field(default_factory=list)