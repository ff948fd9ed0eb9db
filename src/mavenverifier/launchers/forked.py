from __future__ import annotations

import os
import subprocess
import sys
import tempfile
from collections.abc import Mapping, Sequence
from pathlib import Path

from mavenverifier.errors import LaunchFailure
from mavenverifier.launchers.base import (
    InvocationRequest,
    LauncherEventHook,
    MavenLauncher,
    render_arguments,
)
from mavenverifier.logscan import extract_maven_version

HOME_ENV_VAR = "M2_HOME"
TERMINATE_ENV_VAR = "MAVEN_TERMINATE_CMD"
# keeps the EMMA runtime controller off its fixed port
VERSION_ENV_OVERRIDE = {"MAVEN_OPTS": "-Demma.rt.control=false"}


def is_windows() -> bool:
    return sys.platform.startswith("win")


def script_name(*, debug_jvm: bool = False, wrapper: bool = False, windows: bool | None = None) -> str:
    windows = is_windows() if windows is None else windows
    script = "mvnw" if wrapper else "mvn"
    if debug_jvm:
        script += "Debug"
    if windows:
        return f"{script}.cmd"
    return f"./{script}" if wrapper else script


class ForkedLauncher(MavenLauncher):
    name = "forked"
    supports_environment = True

    def __init__(
        self,
        maven_home: str | os.PathLike[str] | None = None,
        env_vars: Mapping[str, str] | None = None,
        *,
        debug_jvm: bool = False,
        wrapper: bool = False,
        event_hook: LauncherEventHook | None = None,
    ) -> None:
        super().__init__(event_hook)
        self.maven_home = os.fspath(maven_home) if maven_home is not None else None
        self.env_vars = dict(env_vars or {})
        self.debug_jvm = debug_jvm
        self.wrapper = wrapper
        self.executable = self._resolve_executable()

    def _resolve_executable(self) -> str:
        script = script_name(debug_jvm=self.debug_jvm, wrapper=self.wrapper)
        if self.wrapper or self.maven_home is None:
            return script
        return os.path.join(self.maven_home, "bin", script)

    def build_command(
        self, cli_args: Sequence[str], system_properties: Mapping[str, str]
    ) -> list[str]:
        return [self.executable, *render_arguments(cli_args, system_properties)]

    def build_environment(self, env_vars: Mapping[str, str] | None = None) -> dict[str, str]:
        env = os.environ.copy()
        if self.maven_home is not None:
            env[HOME_ENV_VAR] = self.maven_home
        env.update(self.env_vars if env_vars is None else env_vars)
        env[TERMINATE_ENV_VAR] = "on"
        return env

    def run(
        self,
        cli_args: Sequence[str],
        system_properties: Mapping[str, str],
        working_directory: str | os.PathLike[str] | None,
        log_file: str | os.PathLike[str],
        *,
        env_vars: Mapping[str, str] | None = None,
    ) -> int:
        command = self.build_command(cli_args, system_properties)
        env = self.build_environment(env_vars)
        self._emit(
            {
                "event": "forked_start",
                "command": command,
                "working_directory": os.fspath(working_directory) if working_directory else None,
                "log_file": os.fspath(log_file),
            }
        )
        try:
            # POSIX resolves a relative "./mvnw" against cwd, i.e. the project
            with open(log_file, "w", encoding="utf-8") as log:
                completed = subprocess.run(
                    command,
                    cwd=os.fspath(working_directory) if working_directory else None,
                    env=env,
                    stdin=subprocess.DEVNULL,
                    stdout=log,
                    stderr=subprocess.STDOUT,
                    check=False,
                )
        except OSError as exc:
            raise LaunchFailure(
                f"Failed to run Maven: {' '.join(command)} ({exc})",
                launcher=self.name,
                command=command,
            ) from exc
        self._emit({"event": "forked_exit", "exit_code": completed.returncode})
        return completed.returncode

    def invoke(self, request: InvocationRequest) -> int:
        if request.log_file is None:
            raise ValueError("InvocationRequest.log_file is required to invoke a launcher.")
        return self.run(
            list(request.cli_args),
            request.system_properties,
            request.working_directory,
            request.log_file,
            env_vars={**self.env_vars, **request.env_vars},
        )

    def get_maven_version(self) -> str:
        try:
            handle, name = tempfile.mkstemp(prefix="maven", suffix="log")
            os.close(handle)
        except OSError as exc:
            raise LaunchFailure("Error creating temp file", launcher=self.name) from exc
        log_file = Path(name)
        try:
            self.run(["--version"], {}, None, log_file, env_vars=VERSION_ENV_OVERRIDE)
            lines = log_file.read_text(encoding="utf-8", errors="replace").splitlines()
        except OSError as exc:
            raise LaunchFailure(
                f"Unable to read Maven version output: {exc}", launcher=self.name
            ) from exc
        finally:
            log_file.unlink(missing_ok=True)

        version = extract_maven_version(lines)
        if version is None:
            raise LaunchFailure(
                "Illegal Maven output: String 'Maven' not found in the following output:\n"
                + "\n".join(lines),
                launcher=self.name,
            )
        return version
