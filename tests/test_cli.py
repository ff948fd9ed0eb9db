import stat
import sys
import textwrap
from pathlib import Path

import pytest
from click.testing import CliRunner

from mavenverifier.cli import cli
from mavenverifier.config import VerifierConfig, load_config, save_config

posix_only = pytest.mark.skipif(sys.platform.startswith("win"), reason="uses a POSIX shell script")


def _project(tmp_path: Path, **execution: object) -> Path:
    project = tmp_path / "project"
    project.mkdir()
    config = VerifierConfig.default()
    config.repository.local = str(tmp_path / "repo")
    config.properties = {"user.home": str(tmp_path)}
    for key, value in execution.items():
        setattr(config.execution, key, value)
    save_config(project / "verifier.toml", config)
    return project


def _fake_maven(tmp_path: Path) -> Path:
    home = tmp_path / "maven"
    (home / "bin").mkdir(parents=True)
    script = home / "bin" / "mvn"
    script.write_text(
        "#!/bin/sh\n"
        + textwrap.dedent(
            """\
            if [ "$1" = "--version" ]; then
              echo "Apache Maven 3.9.6"
              exit 0
            fi
            echo "[INFO] args: $*"
            echo "[INFO] flavour: $FLAVOUR"
            case " $* " in
              *" fail "*) echo "[ERROR] BUILD FAILURE"; exit 1 ;;
            esac
            echo "[INFO] BUILD SUCCESS"
            """
        ),
        encoding="utf-8",
    )
    script.chmod(script.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return home


def test_init_writes_default_config(tmp_path: Path) -> None:
    runner = CliRunner()

    result = runner.invoke(cli, ["init", "--basedir", str(tmp_path)])

    assert result.exit_code == 0, result.output
    assert (tmp_path / "verifier.toml").exists()
    assert load_config(tmp_path / "verifier.toml").execution.log_file_name == "log.txt"


def test_artifact_path_command(tmp_path: Path) -> None:
    runner = CliRunner()

    result = runner.invoke(
        cli,
        [
            "artifact-path",
            "org.example",
            "lib",
            "1.0",
            "test-jar",
            "--repo",
            str(tmp_path),
        ],
    )

    assert result.exit_code == 0, result.output
    assert result.output.strip() == f"{tmp_path}/org/example/lib/1.0/lib-1.0-tests.jar"


def test_artifact_path_legacy_layout(tmp_path: Path) -> None:
    result = CliRunner().invoke(
        cli, ["artifact-path", "org.example", "lib", "1.0", "pom", "--layout", "legacy", "--repo", "/r"]
    )

    assert result.exit_code == 0, result.output
    assert result.output.strip() == "/r/org.example/poms/lib-1.0.pom"


def test_verify_command_reports_missing_file(tmp_path: Path) -> None:
    project = _project(tmp_path)
    (project / "expected-results.txt").write_text("target/app.jar\n", encoding="utf-8")

    result = CliRunner().invoke(cli, ["verify", "--basedir", str(project), "--no-choke"])

    assert result.exit_code != 0
    assert "Expected file was not found" in result.output


def test_verify_and_text_in_log_commands(tmp_path: Path) -> None:
    project = _project(tmp_path)
    (project / "target").mkdir()
    (project / "target" / "app.jar").write_text("x", encoding="utf-8")
    (project / "expected-results.txt").write_text("target/app.jar\n", encoding="utf-8")
    (project / "log.txt").write_text("[INFO] BUILD SUCCESS\n", encoding="utf-8")
    runner = CliRunner()

    verified = runner.invoke(cli, ["verify", "--basedir", str(project)])
    found = runner.invoke(cli, ["text-in-log", "BUILD SUCCESS", "--basedir", str(project)])
    missing = runner.invoke(cli, ["text-in-log", "BUILD FAILURE", "--basedir", str(project)])

    assert verified.exit_code == 0, verified.output
    assert "Verification passed." in verified.output
    assert found.exit_code == 0, found.output
    assert missing.exit_code != 0
    assert "Text not found in log: BUILD FAILURE" in missing.output


@posix_only
def test_run_command_with_forked_maven(tmp_path: Path) -> None:
    project = _project(tmp_path, autoclean=False)
    home = _fake_maven(tmp_path)
    config = load_config(project / "verifier.toml")
    config.launcher.maven_home = str(home)
    save_config(project / "verifier.toml", config)

    result = CliRunner().invoke(
        cli,
        [
            "run",
            "install",
            "--basedir",
            str(project),
            "-D",
            "skipTests",
            "--env",
            "FLAVOUR=vanilla",
            "--fork",
        ],
    )

    assert result.exit_code == 0, result.output
    log = (project / "log.txt").read_text(encoding="utf-8")
    assert "args: -DskipTests=true -e --batch-mode" in log
    assert log.rstrip().endswith("[INFO] BUILD SUCCESS")
    assert "flavour: vanilla" in log


@posix_only
def test_run_command_failure_and_version(tmp_path: Path) -> None:
    project = _project(tmp_path)
    home = _fake_maven(tmp_path)
    config = load_config(project / "verifier.toml")
    config.launcher.maven_home = str(home)
    save_config(project / "verifier.toml", config)
    runner = CliRunner()

    failed = runner.invoke(cli, ["run", "fail", "--basedir", str(project), "--fork"])
    version = runner.invoke(cli, ["version", "--basedir", str(project)])

    assert failed.exit_code != 0
    assert "Exit code was non-zero: 1" in failed.output
    assert version.exit_code == 0, version.output
    assert version.output.strip() == "3.9.6"


def test_run_rejects_malformed_pairs(tmp_path: Path) -> None:
    project = _project(tmp_path)

    result = CliRunner().invoke(cli, ["run", "install", "--basedir", str(project), "--env", "=x"])

    assert result.exit_code != 0
    assert "expected KEY=VALUE" in result.output
