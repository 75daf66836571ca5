"""Options that configure an auditor when it is created."""

from __future__ import annotations

import logging
from typing import Any, Callable, Iterable

Option = Callable[[Any], None]

_LOGGER_NAME = "kubeaudit"
_handler = logging.StreamHandler()


def package_logger() -> logging.Logger:
    """Return the logger the package writes its own messages to."""
    return logging.getLogger(_LOGGER_NAME)


def with_logger(formatter: logging.Formatter) -> Option:
    """Use the given formatter for the package's log output."""

    def option(_auditor: Any) -> None:
        logger = package_logger()
        if _handler not in logger.handlers:
            logger.addHandler(_handler)
        _handler.setFormatter(formatter)

    return option


def apply_options(auditor: Any, opts: Iterable[Option]) -> None:
    """Apply each option to the auditor in order; errors propagate."""
    for option in opts:
        option(auditor)