from mavenverifier.launchers.base import InvocationRequest, MavenLauncher, render_arguments
from mavenverifier.launchers.embedded import (
    EmbeddedLauncher,
    EmbeddedRuntimeCache,
    default_embedded_cache,
)
from mavenverifier.launchers.forked import ForkedLauncher
from mavenverifier.launchers.selection import LaunchOptions, choose_fork, select_launcher

__all__ = [
    "EmbeddedLauncher",
    "EmbeddedRuntimeCache",
    "ForkedLauncher",
    "InvocationRequest",
    "LaunchOptions",
    "MavenLauncher",
    "choose_fork",
    "default_embedded_cache",
    "render_arguments",
    "select_launcher",
]
