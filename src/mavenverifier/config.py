from __future__ import annotations

import json
import tomllib
from dataclasses import dataclass, field
from pathlib import Path

from mavenverifier.errors import ConfigurationError

DEFAULT_CLI_ARGUMENTS = ["-e", "--batch-mode"]


def _flatten(table: dict, prefix: str = "") -> dict[str, str]:
    # an unquoted `user.home = ...` arrives as nested tables
    flat: dict[str, str] = {}
    for key, value in table.items():
        name = f"{prefix}{key}"
        if isinstance(value, dict):
            flat.update(_flatten(value, f"{name}."))
        else:
            flat[name] = str(value)
    return flat


@dataclass(slots=True)
class LauncherConfig:
    fork_mode: str = ""
    maven_home: str = ""
    debug_jvm: bool = False
    maven_debug: bool = False
    embedded_entry_point: str = ""
    embedded_locators: list[str] = field(default_factory=list)


@dataclass(slots=True)
class RepositoryConfig:
    local: str = ""
    layout: str = ""
    settings_file: str = ""


@dataclass(slots=True)
class ExecutionConfig:
    autoclean: bool = True
    log_file_name: str = "log.txt"
    default_cli_arguments: list[str] = field(default_factory=lambda: list(DEFAULT_CLI_ARGUMENTS))
    use_maven_repo_local: bool = True


@dataclass(slots=True)
class VerifierConfig:
    launcher: LauncherConfig = field(default_factory=LauncherConfig)
    repository: RepositoryConfig = field(default_factory=RepositoryConfig)
    execution: ExecutionConfig = field(default_factory=ExecutionConfig)
    properties: dict[str, str] = field(default_factory=dict)

    @classmethod
    def default(cls) -> VerifierConfig:
        return cls()

    @classmethod
    def from_dict(cls, data: dict) -> VerifierConfig:
        try:
            return cls(
                launcher=LauncherConfig(**data.get("launcher", {})),
                repository=RepositoryConfig(**data.get("repository", {})),
                execution=ExecutionConfig(**data.get("execution", {})),
                properties=_flatten(data.get("properties", {})),
            )
        except TypeError as exc:
            raise ConfigurationError(f"Invalid verifier configuration: {exc}") from exc

    def to_dict(self) -> dict:
        return {
            "launcher": {
                "fork_mode": self.launcher.fork_mode,
                "maven_home": self.launcher.maven_home,
                "debug_jvm": self.launcher.debug_jvm,
                "maven_debug": self.launcher.maven_debug,
                "embedded_entry_point": self.launcher.embedded_entry_point,
                "embedded_locators": list(self.launcher.embedded_locators),
            },
            "repository": {
                "local": self.repository.local,
                "layout": self.repository.layout,
                "settings_file": self.repository.settings_file,
            },
            "execution": {
                "autoclean": self.execution.autoclean,
                "log_file_name": self.execution.log_file_name,
                "default_cli_arguments": list(self.execution.default_cli_arguments),
                "use_maven_repo_local": self.execution.use_maven_repo_local,
            },
            "properties": dict(self.properties),
        }


def _toml_value(value: object) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, list):
        return "[" + ", ".join(_toml_value(item) for item in value) + "]"
    return json.dumps(str(value), ensure_ascii=False)


def dumps_toml(config: VerifierConfig) -> str:
    data = config.to_dict()
    lines: list[str] = []
    for section in ("launcher", "repository", "execution", "properties"):
        lines.append(f"[{section}]")
        for key, value in data[section].items():
            # property names are dotted (user.home), so they are always quoted
            rendered_key = json.dumps(key) if section == "properties" else key
            lines.append(f"{rendered_key} = {_toml_value(value)}")
        lines.append("")
    return "\n".join(lines).strip() + "\n"


def load_config(path: Path) -> VerifierConfig:
    if not path.exists():
        return VerifierConfig.default()
    try:
        data = tomllib.loads(path.read_text(encoding="utf-8"))
    except tomllib.TOMLDecodeError as exc:
        raise ConfigurationError(f"Malformed configuration file {path}: {exc}") from exc
    return VerifierConfig.from_dict(data)


def save_config(path: Path, config: VerifierConfig) -> None:
    path.write_text(dumps_toml(config), encoding="utf-8")
