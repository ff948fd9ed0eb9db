from pathlib import Path

import pytest

from mavenverifier.errors import ConfigurationError
from mavenverifier.expectations import ExpectationLine, expand_artifact_marker, load_file_lines


def _seed_metadata(repo: Path) -> Path:
    version_dir = repo / "org" / "example" / "lib" / "1.0"
    version_dir.mkdir(parents=True)
    (version_dir / "maven-metadata-local.xml").write_text("", encoding="utf-8")
    (version_dir.parent / "maven-metadata-local.xml").write_text("", encoding="utf-8")
    return version_dir


def test_expectation_line_parse() -> None:
    assert ExpectationLine.parse("target/app.jar") == ExpectationLine("target/app.jar", True)
    assert ExpectationLine.parse("!target/app.war") == ExpectationLine("target/app.war", False)


def test_line_without_marker_is_returned_unchanged(tmp_path: Path) -> None:
    assert expand_artifact_marker("target/app.jar", layout="default", repo_root=tmp_path) == [
        "target/app.jar"
    ]


def test_marker_expands_to_artifact_and_metadata(tmp_path: Path) -> None:
    version_dir = _seed_metadata(tmp_path)

    lines = expand_artifact_marker(
        "${artifact:org.example:lib:1.0:jar}", layout="default", repo_root=str(tmp_path)
    )

    assert lines == [
        f"{tmp_path}/org/example/lib/1.0/lib-1.0.jar",
        str(version_dir / "maven-metadata-local.xml"),
        str(version_dir.parent / "maven-metadata-local.xml"),
    ]


def test_negated_marker_leaves_metadata_alone(tmp_path: Path) -> None:
    _seed_metadata(tmp_path)

    lines = expand_artifact_marker(
        "!${artifact:org.example:lib:1.0:jar}", layout="default", repo_root=str(tmp_path)
    )

    assert lines == [f"!{tmp_path}/org/example/lib/1.0/lib-1.0.jar"]


def test_command_without_path_is_rejected(tmp_path: Path) -> None:
    with pytest.raises(ConfigurationError, match="command and a path"):
        expand_artifact_marker(
            "${artifact:org.example:lib:1.0:jar}",
            layout="default",
            repo_root=str(tmp_path),
            has_command=True,
        )


def test_command_is_repeated_for_metadata(tmp_path: Path) -> None:
    version_dir = _seed_metadata(tmp_path)

    lines = expand_artifact_marker(
        "rm ${artifact:org.example:lib:1.0:jar}",
        layout="default",
        repo_root=str(tmp_path),
        has_command=True,
    )

    assert lines[0] == f"rm {tmp_path}/org/example/lib/1.0/lib-1.0.jar"
    assert lines[1] == "rm " + str(version_dir / "maven-metadata-local.xml")


def test_unterminated_marker_is_rejected(tmp_path: Path) -> None:
    with pytest.raises(ConfigurationError, match="ending artifact marker"):
        expand_artifact_marker("${artifact:org.example:lib:1.0:jar", layout="default", repo_root=tmp_path)


def test_load_file_lines_skips_comments_and_blanks(tmp_path: Path) -> None:
    listing = tmp_path / "expected-results.txt"
    listing.write_text(
        "# built outputs\n\n  target/app.jar  \n!target/app.war\n${artifact:org.example:lib:1.0:pom}\n",
        encoding="utf-8",
    )
    repo = tmp_path / "repo"

    lines = load_file_lines(listing, layout="default", repo_root=str(repo))

    assert lines == [
        "target/app.jar",
        "!target/app.war",
        f"{repo}/org/example/lib/1.0/lib-1.0.pom",
    ]


def test_load_file_lines_missing_file(tmp_path: Path) -> None:
    assert load_file_lines(tmp_path / "nope.txt", layout="default", repo_root=tmp_path) == []
