from __future__ import annotations

import os
from dataclasses import dataclass, replace
from enum import Enum
from pathlib import Path

from mavenverifier.errors import ConfigurationError

METADATA_PREFIX = "maven-metadata"
METADATA_SUFFIX = ".xml"
LOCAL_METADATA_FILENAME = "maven-metadata-local.xml"

# extension alias -> (extension, classifier); a None classifier keeps the caller's
EXTENSION_ALIASES: dict[str, tuple[str, str | None]] = {
    "maven-plugin": ("jar", None),
    "coreit-artifact": ("jar", "it"),
    "test-jar": ("jar", "tests"),
}


class RepositoryLayout(str, Enum):
    DEFAULT = "default"
    LEGACY = "legacy"

    @classmethod
    def parse(cls, value: str | RepositoryLayout) -> RepositoryLayout:
        if isinstance(value, RepositoryLayout):
            return value
        try:
            return cls(value)
        except ValueError as exc:
            raise ConfigurationError(f"Unknown layout: {value}") from exc


@dataclass(frozen=True, slots=True)
class ArtifactCoordinate:
    group_id: str
    artifact_id: str
    version: str
    extension: str
    classifier: str | None = None

    @classmethod
    def parse(cls, spec: str) -> ArtifactCoordinate:
        """Parse ``groupId:artifactId:version:extension``."""
        tokens = [token for token in spec.split(":") if token]
        if len(tokens) != 4:
            raise ConfigurationError(f"Artifact must have 4 tokens: '{spec}'")
        return cls(*tokens)

    def normalized(self) -> ArtifactCoordinate:
        classifier = self.classifier or None
        extension = self.extension
        alias = EXTENSION_ALIASES.get(extension)
        if alias is not None:
            extension, alias_classifier = alias
            if alias_classifier is not None:
                classifier = alias_classifier
        return replace(self, extension=extension, classifier=classifier)


def _join(repo_root: str | os.PathLike[str], relative: str) -> str:
    return f"{os.fspath(repo_root)}/{relative}"


def relative_artifact_path(
    layout: RepositoryLayout | str, coordinate: ArtifactCoordinate
) -> str:
    layout = RepositoryLayout.parse(layout)
    coord = coordinate.normalized()
    if layout is RepositoryLayout.LEGACY:
        return (
            f"{coord.group_id}/{coord.extension}s/"
            f"{coord.artifact_id}-{coord.version}.{coord.extension}"
        )
    path = (
        f"{coord.group_id.replace('.', '/')}/{coord.artifact_id}/{coord.version}/"
        f"{coord.artifact_id}-{coord.version}"
    )
    if coord.classifier is not None:
        path += f"-{coord.classifier}"
    return f"{path}.{coord.extension}"


def resolve_artifact_path(
    layout: RepositoryLayout | str,
    repo_root: str | os.PathLike[str],
    coordinate: ArtifactCoordinate,
) -> str:
    return _join(repo_root, relative_artifact_path(layout, coordinate))


def artifact_metadata_path(
    layout: RepositoryLayout | str,
    repo_root: str | os.PathLike[str],
    group_id: str,
    artifact_id: str | None = None,
    version: str | None = None,
    filename: str = LOCAL_METADATA_FILENAME,
) -> str:
    """Path to a file in the local metadata directory; existence is not checked."""
    if RepositoryLayout.parse(layout) is not RepositoryLayout.DEFAULT:
        raise ConfigurationError(f"Unsupported repository layout: {layout}")
    parts = [group_id.replace(".", "/")]
    if artifact_id is not None:
        parts.append(artifact_id)
        if version is not None:
            parts.append(version)
    parts.append(filename)
    return _join(repo_root, "/".join(parts))


def group_directory(
    layout: RepositoryLayout | str,
    repo_root: str | os.PathLike[str],
    group_id: str,
    artifact_id: str | None = None,
    version: str | None = None,
) -> Path:
    layout = RepositoryLayout.parse(layout)
    if artifact_id is None and version is None:
        if layout is RepositoryLayout.LEGACY:
            return Path(repo_root) / group_id
        return Path(repo_root) / group_id.replace(".", "/")
    if layout is not RepositoryLayout.DEFAULT or artifact_id is None or version is None:
        raise ConfigurationError(f"Unsupported repository layout: {layout.value}")
    return Path(repo_root) / group_id.replace(".", "/") / artifact_id / version


def list_metadata_files(directory: str | os.PathLike[str]) -> list[str]:
    """Paths of ``maven-metadata*.xml`` files directly inside ``directory``."""
    root = Path(directory)
    if not root.is_dir():
        return []
    return [
        os.path.join(os.fspath(directory), name)
        for name in sorted(os.listdir(root))
        if name.startswith(METADATA_PREFIX) and name.endswith(METADATA_SUFFIX)
    ]


def artifact_file_list(
    layout: RepositoryLayout | str,
    repo_root: str | os.PathLike[str],
    coordinate: ArtifactCoordinate,
) -> list[str]:
    """The artifact itself plus the metadata next to it and one directory up."""
    artifact_path = resolve_artifact_path(layout, repo_root, coordinate)
    directory = os.path.dirname(artifact_path)
    files = [artifact_path]
    files.extend(list_metadata_files(directory))
    files.extend(list_metadata_files(os.path.dirname(directory)))
    return files
