"""ANSI terminal colours; all codes are empty strings on Windows."""

from __future__ import annotations

import sys

_ENABLED = sys.platform != "win32"


def _code(sequence: str) -> str:
    return sequence if _ENABLED else ""


RESET = _code("\033[0m")
RED_COLOR = _code("\033[31m")
GREEN_COLOR = _code("\033[32m")
YELLOW_COLOR = _code("\033[33m")
BLUE_COLOR = _code("\033[34m")
PURPLE_COLOR = _code("\033[35m")
CYAN_COLOR = _code("\033[36m")
GRAY_COLOR = _code("\033[37m")
WHITE_COLOR = _code("\033[97m")


def colored(color: str, s: str) -> str:
    """Wrap ``s`` in the given colour code followed by a reset."""
    return color + s + RESET


def red(s: str) -> str:
    return colored(RED_COLOR, s)


def green(s: str) -> str:
    return colored(GREEN_COLOR, s)


def yellow(s: str) -> str:
    return colored(YELLOW_COLOR, s)


def blue(s: str) -> str:
    return colored(BLUE_COLOR, s)


def purple(s: str) -> str:
    return colored(PURPLE_COLOR, s)


def cyan(s: str) -> str:
    return colored(CYAN_COLOR, s)


def gray(s: str) -> str:
    return colored(GRAY_COLOR, s)


def white(s: str) -> str:
    return colored(WHITE_COLOR, s)