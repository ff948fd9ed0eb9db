from __future__ import annotations

from collections.abc import Sequence


class VerifierError(RuntimeError):
    """Base class for every error raised by the verifier."""


class ConfigurationError(VerifierError):
    """Raised for caller configuration bugs; never degraded gracefully."""


class LaunchFailure(VerifierError):
    """Raised when Maven could not be started or the embedded runtime is unusable."""

    def __init__(
        self,
        message: str,
        *,
        launcher: str | None = None,
        command: Sequence[str] | None = None,
    ) -> None:
        super().__init__(message)
        self.launcher = launcher
        self.command = list(command) if command is not None else None


class BuildFailure(VerifierError):
    """Raised when the build returned a non-zero exit code."""

    def __init__(
        self,
        message: str,
        *,
        exit_code: int,
        command_line: str,
        log: str,
    ) -> None:
        super().__init__(message)
        self.exit_code = exit_code
        self.command_line = command_line
        self.log = log


class VerificationFailure(VerifierError):
    """Raised when an expectation about files, archives or logs does not hold."""

    def __init__(
        self,
        message: str,
        *,
        path: str | None = None,
        wanted: bool | None = None,
    ) -> None:
        super().__init__(message)
        self.path = path
        self.wanted = wanted
