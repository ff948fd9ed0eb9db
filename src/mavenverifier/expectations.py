from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from mavenverifier.errors import ConfigurationError, VerificationFailure
from mavenverifier.repository import (
    ArtifactCoordinate,
    RepositoryLayout,
    list_metadata_files,
    resolve_artifact_path,
)

ARTIFACT_MARKER = "${artifact:"
NEGATION = "!"


@dataclass(frozen=True, slots=True)
class ExpectationLine:
    path: str
    wanted: bool = True

    @classmethod
    def parse(cls, line: str) -> ExpectationLine:
        if line.startswith(NEGATION):
            return cls(path=line[len(NEGATION):], wanted=False)
        return cls(path=line)


def expand_artifact_marker(
    line: str,
    *,
    layout: RepositoryLayout | str,
    repo_root: str | os.PathLike[str],
    has_command: bool = False,
) -> list[str]:
    """Replace an embedded ``${artifact:g:a:v:ext}`` and add the metadata around it.

    With ``has_command`` the line reads ``<command> <path>``; the command is
    repeated in front of every metadata path found.
    """
    start = line.find(ARTIFACT_MARKER)
    if start < 0:
        return [line]
    end = line.find("}", start)
    if end < 0:
        raise ConfigurationError(f"line does not contain ending artifact marker: '{line}'")

    coordinate = ArtifactCoordinate.parse(line[start + len(ARTIFACT_MARKER):end])
    expanded = line[:start] + resolve_artifact_path(layout, repo_root, coordinate) + line[end + 1:]

    if has_command:
        command, sep, filespec = expanded.partition(" ")
        if not sep:
            raise ConfigurationError(f"line does not contain a command and a path: '{line}'")
        prefix = f"{command} "
    elif expanded.startswith(NEGATION):
        # metadata is shared across versions, so an unwanted artifact says nothing about it
        return [expanded]
    else:
        prefix = ""
        filespec = expanded
    directory = filespec[: filespec.rfind("/")]

    result = [expanded]
    for metadata_dir in (directory, os.path.dirname(directory)):
        for metadata in list_metadata_files(metadata_dir):
            result.append(f"{prefix}{metadata}")
    return result


def load_file_lines(
    path: str | os.PathLike[str],
    *,
    layout: RepositoryLayout | str,
    repo_root: str | os.PathLike[str],
    has_command: bool = False,
) -> list[str]:
    """Non-blank, non-comment lines of ``path`` with artifact markers expanded.

    A missing file yields no lines.
    """
    file = Path(path)
    if not file.exists():
        return []
    lines: list[str] = []
    try:
        with file.open(encoding="utf-8", errors="replace") as handle:
            for raw in handle:
                line = raw.strip()
                if not line or line.startswith("#"):
                    continue
                lines.extend(
                    expand_artifact_marker(
                        line, layout=layout, repo_root=repo_root, has_command=has_command
                    )
                )
    except OSError as exc:
        raise VerificationFailure(f"Unable to read {file}: {exc}", path=str(file)) from exc
    return lines
