from pathlib import Path

import pytest

from mavenverifier.errors import ConfigurationError
from mavenverifier.repository import (
    ArtifactCoordinate,
    RepositoryLayout,
    artifact_file_list,
    artifact_metadata_path,
    group_directory,
    list_metadata_files,
    relative_artifact_path,
    resolve_artifact_path,
)


def test_default_layout_path() -> None:
    coordinate = ArtifactCoordinate("org.apache.maven", "maven-core", "3.9.6", "jar")

    assert (
        resolve_artifact_path("default", "/repo", coordinate)
        == "/repo/org/apache/maven/maven-core/3.9.6/maven-core-3.9.6.jar"
    )


def test_default_layout_path_with_classifier() -> None:
    coordinate = ArtifactCoordinate("org.example", "lib", "1.0", "jar", "sources")

    assert relative_artifact_path(RepositoryLayout.DEFAULT, coordinate) == (
        "org/example/lib/1.0/lib-1.0-sources.jar"
    )


def test_legacy_layout_keeps_dotted_group() -> None:
    coordinate = ArtifactCoordinate("org.example", "lib", "1.0", "pom")

    assert resolve_artifact_path("legacy", "/repo", coordinate) == "/repo/org.example/poms/lib-1.0.pom"


@pytest.mark.parametrize(
    ("extension", "expected"),
    [
        ("maven-plugin", "org/example/lib/1.0/lib-1.0.jar"),
        ("coreit-artifact", "org/example/lib/1.0/lib-1.0-it.jar"),
        ("test-jar", "org/example/lib/1.0/lib-1.0-tests.jar"),
    ],
)
def test_extension_aliases(extension: str, expected: str) -> None:
    coordinate = ArtifactCoordinate("org.example", "lib", "1.0", extension)

    assert relative_artifact_path("default", coordinate) == expected


def test_maven_plugin_alias_keeps_explicit_classifier() -> None:
    coordinate = ArtifactCoordinate("org.example", "lib", "1.0", "maven-plugin", "shaded")

    assert relative_artifact_path("default", coordinate) == "org/example/lib/1.0/lib-1.0-shaded.jar"


def test_empty_classifier_is_ignored() -> None:
    coordinate = ArtifactCoordinate("org.example", "lib", "1.0", "jar", "")

    assert relative_artifact_path("default", coordinate) == "org/example/lib/1.0/lib-1.0.jar"


def test_unknown_layout_is_rejected() -> None:
    with pytest.raises(ConfigurationError, match="Unknown layout: flat"):
        resolve_artifact_path("flat", "/repo", ArtifactCoordinate("g", "a", "1", "jar"))


def test_coordinate_parse_requires_four_tokens() -> None:
    assert ArtifactCoordinate.parse("org.example:lib:1.0:jar") == ArtifactCoordinate(
        "org.example", "lib", "1.0", "jar"
    )
    with pytest.raises(ConfigurationError, match="4 tokens"):
        ArtifactCoordinate.parse("org.example:lib:1.0")
    with pytest.raises(ConfigurationError):
        ArtifactCoordinate.parse("org.example:lib:1.0:jar:sources")


def test_metadata_path_levels() -> None:
    assert artifact_metadata_path("default", "/repo", "org.example") == (
        "/repo/org/example/maven-metadata-local.xml"
    )
    assert artifact_metadata_path("default", "/repo", "org.example", "lib") == (
        "/repo/org/example/lib/maven-metadata-local.xml"
    )
    assert artifact_metadata_path(
        "default", "/repo", "org.example", "lib", "1.0", "maven-metadata-central.xml"
    ) == "/repo/org/example/lib/1.0/maven-metadata-central.xml"


def test_metadata_path_rejects_legacy_layout() -> None:
    with pytest.raises(ConfigurationError, match="Unsupported repository layout"):
        artifact_metadata_path("legacy", "/repo", "org.example")


def test_group_directory(tmp_path: Path) -> None:
    assert group_directory("default", tmp_path, "org.example") == tmp_path / "org" / "example"
    assert group_directory("legacy", tmp_path, "org.example") == tmp_path / "org.example"
    assert group_directory("default", tmp_path, "org.example", "lib", "1.0") == (
        tmp_path / "org" / "example" / "lib" / "1.0"
    )
    with pytest.raises(ConfigurationError):
        group_directory("legacy", tmp_path, "org.example", "lib", "1.0")


def test_list_metadata_files_filters_and_sorts(tmp_path: Path) -> None:
    (tmp_path / "maven-metadata-local.xml").write_text("", encoding="utf-8")
    (tmp_path / "maven-metadata-central.xml").write_text("", encoding="utf-8")
    (tmp_path / "lib-1.0.jar").write_text("", encoding="utf-8")
    (tmp_path / "maven-metadata.xml.sha1").write_text("", encoding="utf-8")

    assert list_metadata_files(tmp_path) == [
        str(tmp_path / "maven-metadata-central.xml"),
        str(tmp_path / "maven-metadata-local.xml"),
    ]
    assert list_metadata_files(tmp_path / "missing") == []


def test_artifact_file_list_includes_surrounding_metadata(tmp_path: Path) -> None:
    version_dir = tmp_path / "org" / "example" / "lib" / "1.0"
    version_dir.mkdir(parents=True)
    (version_dir / "maven-metadata-local.xml").write_text("", encoding="utf-8")
    (version_dir.parent / "maven-metadata-local.xml").write_text("", encoding="utf-8")

    files = artifact_file_list("default", str(tmp_path), ArtifactCoordinate("org.example", "lib", "1.0", "jar"))

    assert files == [
        f"{tmp_path}/org/example/lib/1.0/lib-1.0.jar",
        str(version_dir / "maven-metadata-local.xml"),
        str(version_dir.parent / "maven-metadata-local.xml"),
    ]
