"""Pending fixes that change pod-level annotations."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from kubeaudit.k8stypes import Resource
from kubeaudit.result import PendingFix
from kubeaudit.runtime import get_pod_object_meta


def _pod_meta(resource: Resource) -> dict[str, Any]:
    meta = get_pod_object_meta(resource)
    if meta is None:
        raise TypeError("resource has no pod-level metadata")
    return meta


def _set_annotation(resource: Resource, key: str, value: str) -> None:
    meta = _pod_meta(resource)
    annotations = meta.get("annotations")
    if annotations is None:
        annotations = {}
        meta["annotations"] = annotations
    annotations[key] = value


@dataclass
class BySettingPodAnnotation(PendingFix):
    """Set a pod-level annotation to a value."""

    key: str
    value: str

    def apply(self, resource: Resource) -> list[Resource]:
        """Set the annotation on the resource."""
        _set_annotation(resource, self.key, self.value)
        return []

    def plan(self) -> str:
        return f"Set pod-level annotation '{self.key}' to '{self.value}'"


@dataclass
class ByAddingPodAnnotation(PendingFix):
    """Add a pod-level annotation."""

    key: str
    value: str

    def apply(self, resource: Resource) -> list[Resource]:
        """Add the annotation to the resource."""
        _set_annotation(resource, self.key, self.value)
        return []

    def plan(self) -> str:
        return f"Add pod-level annotation '{self.key}: {self.value}'"


@dataclass
class ByRemovingPodAnnotation(PendingFix):
    """Remove a pod-level annotation."""

    key: str

    def apply(self, resource: Resource) -> list[Resource]:
        """Remove the annotation from the resource if present."""
        annotations = _pod_meta(resource).get("annotations")
        if annotations is not None:
            annotations.pop(self.key, None)
        return []

    def plan(self) -> str:
        return f"Remove pod-level annotation '{self.key}'"