from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any

from mavenverifier.errors import ConfigurationError
from mavenverifier.launchers.base import LauncherEventHook, MavenLauncher
from mavenverifier.launchers.embedded import EmbeddedRuntimeCache
from mavenverifier.launchers.forked import ForkedLauncher

logger = logging.getLogger(__name__)

FORK_MODE_AUTO = "auto"
FORK_MODE_EMBEDDED = "embedded"


@dataclass(slots=True)
class LaunchOptions:
    maven_home: str | None = None
    fork_jvm: bool | None = None
    fork_mode: str | None = None
    use_wrapper: bool = False
    debug_jvm: bool = False


def _prefers_embedded(env_vars: Mapping[str, str], fork_mode: str | None) -> bool:
    mode = (fork_mode or "").lower()
    return (not env_vars and mode == FORK_MODE_AUTO) or mode == FORK_MODE_EMBEDDED


def choose_fork(
    *,
    env_vars: Mapping[str, str],
    options: LaunchOptions,
    init_embedded: Callable[[], Any],
    event_hook: LauncherEventHook | None = None,
) -> bool:
    """Decide between forking and the embedded runtime; first matching rule wins."""
    if options.use_wrapper:
        return True
    if options.fork_jvm is not None:
        return options.fork_jvm
    if _prefers_embedded(env_vars, options.fork_mode):
        try:
            init_embedded()
        except Exception as exc:
            # also swallows errors caused by a broken configuration
            logger.debug("Embedded Maven unavailable, forking instead: %s", exc)
            if event_hook is not None:
                event_hook({"event": "embedded_init_failed", "error": str(exc)})
            return True
        return False
    return True


def select_launcher(
    *,
    env_vars: Mapping[str, str],
    options: LaunchOptions,
    embedded_cache: EmbeddedRuntimeCache,
    embedded_factory: Callable[[], MavenLauncher],
    event_hook: LauncherEventHook | None = None,
) -> MavenLauncher:
    def _init_embedded() -> MavenLauncher:
        return embedded_cache.get_or_create(embedded_factory)

    fork = choose_fork(
        env_vars=env_vars,
        options=options,
        init_embedded=_init_embedded,
        event_hook=event_hook,
    )
    if fork:
        launcher: MavenLauncher = ForkedLauncher(
            options.maven_home,
            env_vars,
            debug_jvm=options.debug_jvm,
            wrapper=options.use_wrapper,
            event_hook=event_hook,
        )
    else:
        if env_vars:
            raise ConfigurationError("Environment variables are not supported in embedded runtime")
        launcher = _init_embedded()

    if event_hook is not None:
        event_hook({"event": "launcher_selected", "mode": launcher.name})
    return launcher
