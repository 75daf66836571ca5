"""Printing audit reports as readable text or structured log lines."""

from __future__ import annotations

import json
import logging
import sys
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable

from kubeaudit import color
from kubeaudit.k8stypes import Resource, api_version_and_kind
from kubeaudit.result import AuditResult, SeverityLevel
from kubeaudit.runtime import get_object_meta

_RESERVED_KEYS = ("level", "msg", "time")

_LOG_LEVELS = {
    SeverityLevel.INFO: logging.INFO,
    SeverityLevel.WARN: logging.WARNING,
    SeverityLevel.ERROR: logging.ERROR,
}


class JsonFormatter(logging.Formatter):
    """Format log records as one JSON object per line, fields included."""

    def format(self, record: logging.LogRecord) -> str:
        data: dict[str, Any] = {}
        for key, value in (getattr(record, "fields", None) or {}).items():
            data[f"fields.{key}" if key in _RESERVED_KEYS else key] = value
        data["level"] = record.levelname.lower()
        data["msg"] = record.getMessage()
        data["time"] = datetime.fromtimestamp(record.created).astimezone().isoformat(
            timespec="seconds"
        )
        return json.dumps(data, default=str)


@dataclass
class Printer:
    """Writes reports to a stream, either pretty-printed or through a log formatter."""

    writer: Any = None
    min_severity: SeverityLevel = SeverityLevel.INFO
    formatter: logging.Formatter | None = None
    color: bool = False

    def print_report(self, report: Any) -> None:
        """Write the results of the report at or above the minimum severity."""
        if self.formatter is None:
            self._pretty_print_report(report)
        else:
            self._log_report(report)

    def _print(self, s: str) -> None:
        self.writer.write(s)

    def _print_color(self, code: str, s: str) -> None:
        self._print(color.colored(code, s) if self.color else s)

    def _pretty_print_report(self, report: Any) -> None:
        for workload_result in report.results_with_min_severity(self.min_severity):
            resource = workload_result.resource.object
            meta = get_object_meta(resource) or {}
            api_version, kind = api_version_and_kind(resource)
            name = meta.get("name") or ""
            namespace = meta.get("namespace") or ""

            self._print_color(color.CYAN_COLOR, "\n---------------- Results for ---------------\n\n")
            self._print_color(color.CYAN_COLOR, f"  apiVersion: {api_version}\n")
            self._print_color(color.CYAN_COLOR, f"  kind: {kind}\n")
            if name or namespace:
                self._print_color(color.CYAN_COLOR, "  metadata:\n")
                if name:
                    self._print_color(color.CYAN_COLOR, f"    name: {name}\n")
                if namespace:
                    self._print_color(color.CYAN_COLOR, f"    namespace: {namespace}\n")
            self._print_color(color.CYAN_COLOR, "\n--------------------------------------------\n\n")

            for audit_result in workload_result.audit_results:
                severity_color = {
                    SeverityLevel.INFO: color.CYAN_COLOR,
                    SeverityLevel.WARN: color.YELLOW_COLOR,
                    SeverityLevel.ERROR: color.RED_COLOR,
                }.get(audit_result.severity, color.YELLOW_COLOR)
                self._print("-- ")
                self._print_color(severity_color, f"[{audit_result.severity}] ")
                self._print(audit_result.name + "\n")
                self._print(f"   Message: {audit_result.message}\n")
                if audit_result.metadata:
                    self._print("   Metadata:\n")
                    for key, value in audit_result.metadata.items():
                        self._print(f"      {key}: {value}\n")
                self._print("\n")

    def _log_report(self, report: Any) -> None:
        logger = logging.Logger("kubeaudit.results", logging.DEBUG)
        logger.propagate = False
        handler = logging.StreamHandler(self.writer)
        handler.setFormatter(self.formatter)
        logger.addHandler(handler)
        try:
            for workload_result in report.results_with_min_severity(self.min_severity):
                for audit_result in workload_result.audit_results:
                    self._log_audit_result(workload_result.resource.object, audit_result, logger)
        finally:
            handler.flush()
            logger.removeHandler(handler)

    def _log_audit_result(
        self, resource: Resource | None, result: AuditResult, logger: logging.Logger
    ) -> None:
        level = _LOG_LEVELS.get(result.severity)
        if level is None:
            return
        logger.log(level, result.message, extra={"fields": self._log_fields(resource, result)})

    @staticmethod
    def _log_fields(resource: Resource | None, result: AuditResult) -> dict[str, str]:
        api_version, kind = api_version_and_kind(resource)
        fields = {
            "AuditResultName": result.name,
            "ResourceKind": kind,
            "ResourceApiVersion": api_version,
        }
        meta = get_object_meta(resource)
        if meta is not None:
            if meta.get("namespace"):
                fields["ResourceNamespace"] = meta["namespace"]
            if meta.get("name"):
                fields["ResourceName"] = meta["name"]
        fields.update(result.metadata or {})
        return fields


PrintOption = Callable[[Printer], None]


def with_min_severity(min_severity: SeverityLevel) -> PrintOption:
    """Only print results at or above the given severity."""

    def option(printer: Printer) -> None:
        printer.min_severity = min_severity

    return option


def with_writer(writer: Any) -> PrintOption:
    """Write to the given text stream instead of standard output."""

    def option(printer: Printer) -> None:
        printer.writer = writer

    return option


def with_formatter(formatter: logging.Formatter) -> PrintOption:
    """Write results as log lines through the given formatter."""

    def option(printer: Printer) -> None:
        printer.formatter = formatter

    return option


def new_printer(*args: PrintOption) -> Printer:
    """Return a printer; colour is used only when writing to standard output."""
    printer = Printer(writer=sys.stdout)
    for option in args:
        option(printer)
    printer.color = printer.writer is sys.stdout
    return printer