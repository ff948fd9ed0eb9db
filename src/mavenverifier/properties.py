from __future__ import annotations

import re
from collections.abc import Iterable

_ESCAPES = {"t": "\t", "n": "\n", "r": "\r", "f": "\f"}
_HEX = re.compile(r"[0-9a-fA-F]{4}")


def _logical_lines(lines: Iterable[str]) -> Iterable[str]:
    pending = ""
    for raw in lines:
        line = raw.rstrip("\r\n").lstrip() if pending else raw.rstrip("\r\n")
        if not pending and line.lstrip()[:1] in ("#", "!"):
            continue
        trailing = len(line) - len(line.rstrip("\\"))
        if trailing % 2 == 1:
            pending += line[:-1]
            continue
        yield pending + line
        pending = ""
    if pending:
        yield pending


def _unescape(text: str) -> str:
    chars: list[str] = []
    index = 0
    while index < len(text):
        char = text[index]
        if char == "\\" and index + 1 < len(text):
            index += 1
            escaped = text[index]
            digits = text[index + 1 : index + 5]
            if escaped == "u" and _HEX.fullmatch(digits):
                chars.append(chr(int(digits, 16)))
                index += 4
            else:
                chars.append(_ESCAPES.get(escaped, escaped))
        else:
            chars.append(char)
        index += 1
    return "".join(chars)


def _split(line: str) -> tuple[str, str]:
    index = 0
    while index < len(line):
        char = line[index]
        if char == "\\":
            index += 2
            continue
        if char in "=: \t\f":
            break
        index += 1
    key = line[:index]
    rest = line[index:].lstrip(" \t\f")
    if rest[:1] in ("=", ":"):
        rest = rest[1:].lstrip(" \t\f")
    return key, rest


def parse_properties(lines: Iterable[str]) -> dict[str, str]:
    """Parse text in the ``java.util.Properties`` format."""
    properties: dict[str, str] = {}
    for line in _logical_lines(lines):
        stripped = line.lstrip(" \t\f")
        if not stripped:
            continue
        key, value = _split(stripped)
        properties[_unescape(key)] = _unescape(value)
    return properties
