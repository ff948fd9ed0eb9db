from __future__ import annotations

import os
from abc import ABC, abstractmethod
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from mavenverifier.errors import ConfigurationError

LauncherEventHook = Callable[[dict[str, Any]], None]


def render_property_flags(system_properties: Mapping[str, str]) -> list[str]:
    return [f"-D{key}={value}" for key, value in system_properties.items()]


def render_arguments(
    cli_args: Sequence[str], system_properties: Mapping[str, str]
) -> list[str]:
    """Property flags in mapping order, then the positional arguments in order."""
    return [*render_property_flags(system_properties), *cli_args]


@dataclass(frozen=True, slots=True)
class InvocationRequest:
    cli_args: tuple[str, ...]
    system_properties: Mapping[str, str] = field(default_factory=dict)
    env_vars: Mapping[str, str] = field(default_factory=dict)
    working_directory: str | None = None
    log_file: Path | None = None

    def arguments(self) -> list[str]:
        return render_arguments(self.cli_args, self.system_properties)


class MavenLauncher(ABC):
    name: str = "launcher"
    supports_environment: bool = False

    def __init__(self, event_hook: LauncherEventHook | None = None) -> None:
        self.event_hook = event_hook

    def _emit(self, payload: dict[str, Any]) -> None:
        if self.event_hook is not None:
            self.event_hook(payload)

    @abstractmethod
    def run(
        self,
        cli_args: Sequence[str],
        system_properties: Mapping[str, str],
        working_directory: str | os.PathLike[str] | None,
        log_file: str | os.PathLike[str],
    ) -> int:
        """Run one build and return its exit code; output goes to ``log_file``."""

    @abstractmethod
    def get_maven_version(self) -> str:
        """Return the version of the Maven this launcher runs."""

    def invoke(self, request: InvocationRequest) -> int:
        if request.log_file is None:
            raise ValueError("InvocationRequest.log_file is required to invoke a launcher.")
        if request.env_vars and not self.supports_environment:
            raise ConfigurationError(
                f"Environment variables are not supported by the {self.name} launcher"
            )
        return self.run(
            list(request.cli_args),
            request.system_properties,
            request.working_directory,
            request.log_file,
        )
