from __future__ import annotations

import importlib
import importlib.machinery
import importlib.util
import io
import logging
import os
import sys
import threading
from collections.abc import Callable, Mapping, Sequence
from types import ModuleType
from typing import Any, TextIO

from mavenverifier.errors import LaunchFailure
from mavenverifier.launchers.base import LauncherEventHook, MavenLauncher, render_arguments
from mavenverifier.logscan import extract_maven_version

logger = logging.getLogger(__name__)

# main(argv, working_directory, stdout, stderr) -> exit code
EmbeddedEntryPoint = Callable[[list[str], str | None, TextIO, TextIO], int | None]


def _load_module(module_name: str, locators: Sequence[str | os.PathLike[str]]) -> ModuleType:
    if not locators:
        return importlib.import_module(module_name)
    top_level, _, _ = module_name.partition(".")
    if top_level not in sys.modules:
        search_path = [os.fspath(locator) for locator in locators]
        spec = importlib.machinery.PathFinder.find_spec(top_level, search_path)
        if spec is None or spec.loader is None:
            raise ModuleNotFoundError(
                f"No module named '{top_level}' in {', '.join(search_path)}", name=top_level
            )
        module = importlib.util.module_from_spec(spec)
        sys.modules[top_level] = module
        try:
            spec.loader.exec_module(module)
        except BaseException:
            del sys.modules[top_level]
            raise
    return importlib.import_module(module_name)


def _exit_code(exc: SystemExit, stderr: TextIO) -> int:
    if exc.code is None:
        return 0
    if isinstance(exc.code, int):
        return exc.code
    stderr.write(f"{exc.code}\n")
    return 1


class EmbeddedLauncher(MavenLauncher):
    """Runs Maven in-process through a single entry point callable."""

    name = "embedded"

    def __init__(
        self,
        entry_point: EmbeddedEntryPoint,
        *,
        event_hook: LauncherEventHook | None = None,
    ) -> None:
        super().__init__(event_hook)
        self.entry_point = entry_point

    @classmethod
    def from_locators(
        cls,
        entry_point: str,
        locators: Sequence[str | os.PathLike[str]] = (),
        *,
        event_hook: LauncherEventHook | None = None,
    ) -> EmbeddedLauncher:
        """Load ``module:function`` searching ``locators`` (directories or zips) first."""
        module_name, _, attribute = entry_point.partition(":")
        if not module_name or not attribute:
            raise LaunchFailure(
                f"Invalid embedded entry point '{entry_point}', expected 'module:function'",
                launcher=cls.name,
            )
        try:
            module = _load_module(module_name, locators)
            target: Any = module
            for part in attribute.split("."):
                target = getattr(target, part)
        except (ImportError, AttributeError) as exc:
            raise LaunchFailure(
                f"Unable to load embedded entry point '{entry_point}': {exc}", launcher=cls.name
            ) from exc
        if not callable(target):
            raise LaunchFailure(
                f"Embedded entry point '{entry_point}' is not callable", launcher=cls.name
            )
        return cls(target, event_hook=event_hook)

    def _call(self, argv: list[str], working_directory: str | None, out: TextIO) -> int:
        try:
            code = self.entry_point(argv, working_directory, out, out)
        except SystemExit as exc:
            return _exit_code(exc, out)
        except Exception as exc:
            raise LaunchFailure(
                f"Failed to run Maven: {exc}", launcher=self.name, command=argv
            ) from exc
        return int(code or 0)

    def run(
        self,
        cli_args: Sequence[str],
        system_properties: Mapping[str, str],
        working_directory: str | os.PathLike[str] | None,
        log_file: str | os.PathLike[str],
    ) -> int:
        argv = render_arguments(cli_args, system_properties)
        cwd = os.fspath(working_directory) if working_directory is not None else None
        self._emit({"event": "embedded_start", "command": argv, "working_directory": cwd})
        try:
            with open(log_file, "w", encoding="utf-8") as log:
                exit_code = self._call(argv, cwd, log)
        except OSError as exc:
            raise LaunchFailure(
                f"Unable to write build log {os.fspath(log_file)}: {exc}", launcher=self.name
            ) from exc
        self._emit({"event": "embedded_exit", "exit_code": exit_code})
        return exit_code

    def get_maven_version(self) -> str:
        buffer = io.StringIO()
        self._call(["--version"], None, buffer)
        lines = buffer.getvalue().splitlines()
        version = extract_maven_version(lines)
        if version is None:
            raise LaunchFailure(
                "Illegal Maven output: String 'Maven' not found in the following output:\n"
                + "\n".join(lines),
                launcher=self.name,
            )
        return version


class EmbeddedRuntimeCache:
    """Process-wide holder of the embedded launcher.

    Initialisation runs at most once; the first successful caller wins and later
    callers get the same instance. Nothing is ever torn down.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._launcher: MavenLauncher | None = None

    @property
    def launcher(self) -> MavenLauncher | None:
        return self._launcher

    def get_or_create(self, factory: Callable[[], MavenLauncher]) -> MavenLauncher:
        launcher = self._launcher
        if launcher is not None:
            return launcher
        with self._lock:
            if self._launcher is None:
                self._launcher = factory()
                logger.debug("Embedded Maven runtime initialised: %r", self._launcher)
            return self._launcher


default_embedded_cache = EmbeddedRuntimeCache()
