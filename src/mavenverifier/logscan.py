from __future__ import annotations

import re
from collections.abc import Iterable

ERROR_MARKER = "[ERROR]"

# lazy on purpose: first digit-dot token after the last "Maven", matching the mvn banner parser
_MAVEN_VERSION = re.compile(r".*Maven.*? ([0-9]\.\S*).*", re.IGNORECASE)
_ANSI_ESCAPE = re.compile(r"\x1b\[[;\d]*[ -/]*[@-~]")


def extract_maven_version(lines: Iterable[str]) -> str | None:
    """Return the version token of the first line that looks like a Maven banner."""
    for line in lines:
        match = _MAVEN_VERSION.fullmatch(line)
        if match:
            return match.group(1)
    return None


def strip_ansi(text: str) -> str:
    return _ANSI_ESCAPE.sub("", text)


def is_velocity_error(line: str) -> bool:
    # Old Doxia releases ship a very noisy Velocity resource loader.
    return "VM_global_library.vm" in line or ("VM #" in line and "macro" in line)


def is_error_line(line: str) -> bool:
    return ERROR_MARKER in strip_ansi(line) and not is_velocity_error(line)


def find_error_line(lines: Iterable[str]) -> str | None:
    for line in lines:
        if is_error_line(line):
            return line
    return None


def contains_text(lines: Iterable[str], text: str) -> bool:
    return any(text in strip_ansi(line) for line in lines)
