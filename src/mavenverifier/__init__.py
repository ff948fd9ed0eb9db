from mavenverifier.errors import (
    BuildFailure,
    ConfigurationError,
    LaunchFailure,
    VerificationFailure,
    VerifierError,
)
from mavenverifier.logscan import extract_maven_version, is_error_line, strip_ansi
from mavenverifier.repository import ArtifactCoordinate, RepositoryLayout, resolve_artifact_path
from mavenverifier.verifier import Verifier

__version__ = "0.1.0"

__all__ = [
    "ArtifactCoordinate",
    "BuildFailure",
    "ConfigurationError",
    "LaunchFailure",
    "RepositoryLayout",
    "VerificationFailure",
    "Verifier",
    "VerifierError",
    "__version__",
    "extract_maven_version",
    "is_error_line",
    "resolve_artifact_path",
    "strip_ansi",
]
