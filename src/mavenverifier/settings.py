from __future__ import annotations

import logging
import os
import re
import xml.etree.ElementTree as ET
from collections.abc import Mapping
from pathlib import Path

from mavenverifier.errors import ConfigurationError

logger = logging.getLogger(__name__)

REPO_LOCAL_PROPERTY = "maven.repo.local"
REPO_LAYOUT_PROPERTY = "maven.repo.local.layout"
USER_HOME_PROPERTY = "user.home"

_PLACEHOLDER = re.compile(r"\$\{([^}]+)\}")


def read_local_repository(settings_path: str | os.PathLike[str]) -> str | None:
    """Return the trimmed ``<localRepository>`` of a settings file, if declared."""
    path = Path(settings_path)
    try:
        root = ET.fromstring(path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise ConfigurationError(f"Unable to read settings file: {path} ({exc})") from exc
    except ET.ParseError as exc:
        raise ConfigurationError(f"Malformed settings file: {path} ({exc})") from exc

    for element in root.iter():
        # settings files are usually namespaced; only the local name matters
        if element.tag.rsplit("}", 1)[-1] != "localRepository":
            continue
        text = (element.text or "").strip()
        if not text:
            raise ConfigurationError(
                f"Invalid settings entry in {path}. Missing one or more fields: "
                "{localRepository}."
            )
        return text
    return None


def interpolate(
    value: str,
    *,
    environ: Mapping[str, str],
    properties: Mapping[str, str],
) -> str:
    """Expand ``${env.NAME}`` from the environment and ``${name}`` from host properties."""

    def _lookup(match: re.Match[str]) -> str:
        expression = match.group(1)
        if expression.startswith("env."):
            resolved = environ.get(expression[len("env."):])
        else:
            resolved = properties.get(expression)
        if resolved is None:
            raise ConfigurationError(
                f"Unresolved placeholder '${{{expression}}}' in settings value: {value}"
            )
        return resolved

    return _PLACEHOLDER.sub(_lookup, value)


def _user_home(properties: Mapping[str, str]) -> str:
    user_home = properties.get(USER_HOME_PROPERTY)
    if not user_home:
        raise ConfigurationError(f"Host property '{USER_HOME_PROPERTY}' is not set.")
    return user_home


def _from_settings(
    settings_file: str | os.PathLike[str] | None,
    *,
    environ: Mapping[str, str],
    properties: Mapping[str, str],
) -> str | None:
    if settings_file is not None:
        logger.info("Using settings from %s", settings_file)
        settings_path = Path(settings_file)
    else:
        settings_path = Path(_user_home(properties)) / ".m2" / "settings.xml"
    if not settings_path.exists():
        return None
    local_repository = read_local_repository(settings_path)
    if local_repository is None:
        return None
    return interpolate(local_repository, environ=environ, properties=properties)


def resolve_local_repository(
    *,
    explicit: str | os.PathLike[str] | None = None,
    settings_file: str | os.PathLike[str] | None = None,
    environ: Mapping[str, str] | None = None,
    properties: Mapping[str, str] | None = None,
) -> str:
    """Resolve the local repository root, create it, and return it absolute."""
    environ = os.environ if environ is None else environ
    properties = {} if properties is None else properties

    repo: str | None = os.fspath(explicit) if explicit else None
    if repo is None:
        repo = properties.get(REPO_LOCAL_PROPERTY) or None
    if repo is None:
        repo = _from_settings(settings_file, environ=environ, properties=properties)
    if repo is None:
        repo = f"{_user_home(properties)}/.m2/repository"

    repo_dir = Path(repo)
    repo_dir.mkdir(parents=True, exist_ok=True)
    return os.path.abspath(repo_dir)


def resolve_layout(properties: Mapping[str, str] | None = None) -> str:
    return (properties or {}).get(REPO_LAYOUT_PROPERTY, "default")
