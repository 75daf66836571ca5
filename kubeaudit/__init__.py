"""Find security issues in Kubernetes resources with pluggable auditors."""

__version__ = "0.11.0"