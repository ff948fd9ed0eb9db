from __future__ import annotations

import logging
import os
import shutil
from collections.abc import Iterable, Mapping, Sequence
from pathlib import Path
from typing import Any

from mavenverifier import checks
from mavenverifier.config import VerifierConfig
from mavenverifier.errors import (
    BuildFailure,
    ConfigurationError,
    LaunchFailure,
    VerificationFailure,
)
from mavenverifier.expectations import ExpectationLine, load_file_lines
from mavenverifier.launchers import (
    EmbeddedLauncher,
    EmbeddedRuntimeCache,
    InvocationRequest,
    LaunchOptions,
    MavenLauncher,
    default_embedded_cache,
    select_launcher,
)
from mavenverifier.launchers.base import LauncherEventHook
from mavenverifier.properties import parse_properties
from mavenverifier.repository import (
    LOCAL_METADATA_FILENAME,
    ArtifactCoordinate,
    RepositoryLayout,
    artifact_file_list,
    artifact_metadata_path,
    group_directory,
    resolve_artifact_path,
)
from mavenverifier.settings import (
    USER_HOME_PROPERTY,
    resolve_layout,
    resolve_local_repository,
)

logger = logging.getLogger(__name__)

LOG_FILENAME = "log.txt"
EXPECTATIONS_FILENAME = "expected-results.txt"
CLEAN_GOAL = "org.apache.maven.plugins:maven-clean-plugin:clean"
FORK_MODE_PROPERTY = "verifier.forkMode"
MAVEN_HOME_PROPERTY = "maven.home"
BOOTCLASSPATH_PROPERTY = "maven.bootclasspath"
USE_REPO_LOCAL_PROPERTY = "use.mavenRepoLocal"


def default_host_properties() -> dict[str, str]:
    return {USER_HOME_PROPERTY: str(Path.home())}


class Verifier:
    """One verification session rooted at a project directory.

    The local repository and its layout are resolved once, at construction,
    and only change through the ``local_repository`` / ``local_repo_layout``
    setters.
    """

    def __init__(
        self,
        basedir: str | os.PathLike[str],
        *,
        settings_file: str | os.PathLike[str] | None = None,
        maven_home: str | os.PathLike[str] | None = None,
        fork_jvm: bool | None = None,
        default_cli_arguments: Sequence[str] | None = None,
        config: VerifierConfig | None = None,
        host_properties: Mapping[str, str] | None = None,
        environ: Mapping[str, str] | None = None,
        embedded_cache: EmbeddedRuntimeCache | None = None,
        event_hook: LauncherEventHook | None = None,
    ) -> None:
        self.config = config or VerifierConfig.default()
        self.basedir = os.fspath(basedir)
        self.environ = dict(os.environ if environ is None else environ)
        self.host_properties = {
            **default_host_properties(),
            **self.config.properties,
            **(host_properties or {}),
        }
        self.embedded_cache = embedded_cache or default_embedded_cache
        self.event_hook = event_hook

        self.fork_jvm = fork_jvm
        self.fork_mode: str | None = (
            self.host_properties.get(FORK_MODE_PROPERTY) or self.config.launcher.fork_mode or None
        )

        settings = settings_file or self.config.repository.settings_file or None
        self._local_repository = resolve_local_repository(
            explicit=self.config.repository.local or None,
            settings_file=settings,
            environ=self.environ,
            properties=self.host_properties,
        )
        self._local_repo_layout = RepositoryLayout.parse(
            self.config.repository.layout or resolve_layout(self.host_properties)
        )

        explicit_home = os.fspath(maven_home) if maven_home else self.config.launcher.maven_home
        if explicit_home:
            self.maven_home: str | None = explicit_home
            self.use_wrapper = False
        else:
            self.maven_home = self._default_maven_home()
            self.use_wrapper = (Path(self.basedir) / "mvnw").exists()
        if not explicit_home and not self.fork_mode:
            self.fork_mode = "auto"

        self.default_cli_arguments = list(
            self.config.execution.default_cli_arguments
            if default_cli_arguments is None
            else default_cli_arguments
        )
        self.cli_arguments: list[str] = []
        self.system_properties: dict[str, str] = {}
        self.environment_variables: dict[str, str] = {}
        self.verifier_properties: dict[str, str] = {
            USE_REPO_LOCAL_PROPERTY: "true" if self.config.execution.use_maven_repo_local else "false"
        }
        self.autoclean = self.config.execution.autoclean
        self.maven_debug = self.config.launcher.maven_debug
        self.debug_jvm = self.config.launcher.debug_jvm
        self._log_file_name = LOG_FILENAME
        self.log_file_name = self.config.execution.log_file_name or LOG_FILENAME

    def _emit(self, payload: dict[str, Any]) -> None:
        if self.event_hook is not None:
            self.event_hook(payload)

    def _default_maven_home(self) -> str | None:
        home = self.host_properties.get(MAVEN_HOME_PROPERTY) or self.environ.get("M2_HOME")
        if home:
            return home
        user_home = self.host_properties.get(USER_HOME_PROPERTY)
        if user_home:
            candidate = Path(user_home) / "m2"
            if (candidate / "bin" / "mvn").is_file():
                return str(candidate.resolve())
        return None

    @property
    def local_repository(self) -> str:
        return self._local_repository

    @local_repository.setter
    def local_repository(self, value: str | os.PathLike[str]) -> None:
        self._local_repository = os.fspath(value)

    @property
    def local_repo_layout(self) -> RepositoryLayout:
        return self._local_repo_layout

    @local_repo_layout.setter
    def local_repo_layout(self, value: RepositoryLayout | str) -> None:
        self._local_repo_layout = RepositoryLayout.parse(value)

    @property
    def log_file_name(self) -> str:
        return self._log_file_name

    @log_file_name.setter
    def log_file_name(self, value: str) -> None:
        if not value:
            raise ConfigurationError("log file name unspecified")
        self._log_file_name = value

    @property
    def log_file(self) -> Path:
        return Path(self.basedir) / self.log_file_name

    def add_cli_argument(self, argument: str) -> None:
        """``${basedir}`` inside the argument is replaced when the build runs."""
        self.cli_arguments.append(argument)

    def add_cli_arguments(self, *arguments: str) -> None:
        self.cli_arguments.extend(arguments)

    def set_system_property(self, key: str, value: str | None) -> None:
        if value is None:
            self.system_properties.pop(key, None)
        else:
            self.system_properties[key] = value

    def set_environment_variable(self, key: str, value: str | None) -> None:
        if value is None:
            self.environment_variables.pop(key, None)
        else:
            self.environment_variables[key] = value

    def get_executable(self) -> str:
        if self.maven_home is not None:
            return f"{self.maven_home}/bin/mvn"
        user_home = self.host_properties.get(USER_HOME_PROPERTY)
        if user_home:
            candidate = Path(user_home) / "m2" / "bin" / "mvn"
            if candidate.exists():
                return str(candidate.resolve())
        return "mvn"

    def build_arguments(self, goals: Iterable[str]) -> list[str]:
        args = [argument.replace("${basedir}", self.basedir) for argument in self.cli_arguments]
        args.extend(self.default_cli_arguments)
        if self.maven_debug:
            args.append("--debug")
        if self.verifier_properties.get(USE_REPO_LOCAL_PROPERTY, "true").lower() == "true":
            args.append(f"-Dmaven.repo.local={self._local_repository}")
        if self.autoclean:
            args.append(CLEAN_GOAL)
        args.extend(goals)
        return args

    def _embedded_locators(self) -> list[str]:
        locators = list(self.config.launcher.embedded_locators)
        if not locators:
            bootclasspath = self.host_properties.get(BOOTCLASSPATH_PROPERTY)
            if bootclasspath:
                locators = [entry for entry in bootclasspath.split(os.pathsep) if entry]
        return locators

    def _create_embedded_launcher(self) -> MavenLauncher:
        entry_point = self.config.launcher.embedded_entry_point
        if not entry_point:
            raise LaunchFailure("No embedded Maven entry point configured", launcher="embedded")
        return EmbeddedLauncher.from_locators(
            entry_point, self._embedded_locators(), event_hook=self.event_hook
        )

    def get_maven_launcher(self, env_vars: Mapping[str, str]) -> MavenLauncher:
        return select_launcher(
            env_vars=env_vars,
            options=LaunchOptions(
                maven_home=self.maven_home,
                fork_jvm=self.fork_jvm,
                fork_mode=self.fork_mode,
                use_wrapper=self.use_wrapper,
                debug_jvm=self.debug_jvm,
            ),
            embedded_cache=self.embedded_cache,
            embedded_factory=self._create_embedded_launcher,
            event_hook=self.event_hook,
        )

    def execute(self) -> None:
        """Run the build with the accumulated CLI arguments and no extra goals."""
        self.execute_goals([])

    def execute_goal(self, goal: str, env_vars: Mapping[str, str] | None = None) -> None:
        self.execute_goals([goal], env_vars)

    def execute_goals(
        self, goals: Sequence[str], env_vars: Mapping[str, str] | None = None
    ) -> None:
        env = dict(self.environment_variables if env_vars is None else env_vars)
        args = self.build_arguments(goals)
        request = InvocationRequest(
            cli_args=tuple(args),
            system_properties=dict(self.system_properties),
            env_vars=env,
            working_directory=self.basedir,
            log_file=self.log_file,
        )
        launcher = self.get_maven_launcher(env)
        exit_code = launcher.invoke(request)
        if exit_code != 0:
            command_line = " ".join([self.get_executable(), *args])
            log = self._log_contents()
            logger.error("Exit code: %s", exit_code)
            self._emit({"event": "build_failed", "exit_code": exit_code, "command": command_line})
            raise BuildFailure(
                f"Exit code was non-zero: {exit_code}; command line and log = \n"
                f"{command_line}\n{log}",
                exit_code=exit_code,
                command_line=command_line,
                log=log,
            )

    def _log_contents(self) -> str:
        try:
            return self.log_file.read_text(encoding="utf-8", errors="replace")
        except OSError as exc:
            return f"(Error reading log contents: {exc})"

    def get_maven_version(self) -> str:
        return self.get_maven_launcher({}).get_maven_version()

    def load_file(self, filename: str, has_command: bool = False) -> list[str]:
        return load_file_lines(
            Path(self.basedir) / filename,
            layout=self._local_repo_layout,
            repo_root=self._local_repository,
            has_command=has_command,
        )

    def load_log_lines(self) -> list[str]:
        return self.load_file(self.log_file_name)

    def verify(self, choke_on_error_output: bool) -> None:
        """Check ``expected-results.txt`` line by line; the first failure stops the run."""
        for line in self.load_file(EXPECTATIONS_FILENAME):
            expectation = ExpectationLine.parse(line)
            checks.verify_file_presence(self.basedir, expectation.path, expectation.wanted)
        if choke_on_error_output:
            self.verify_error_free_log()

    def verify_error_free_log(self) -> None:
        checks.verify_error_free_log(self.load_log_lines())

    def verify_text_in_log(self, text: str) -> None:
        checks.verify_text_in_log(self.load_log_lines(), text)

    def verify_file_present(self, file: str) -> None:
        checks.verify_file_presence(self.basedir, file, True)

    def verify_file_not_present(self, file: str) -> None:
        checks.verify_file_presence(self.basedir, file, False)

    def verify_file_content_matches(self, file: str, regex: str) -> None:
        self.verify_file_present(file)
        checks.verify_content_matches(checks.resolve_against(self.basedir, file), regex)

    def _verify_artifact_presence(
        self, wanted: bool, group_id: str, artifact_id: str, version: str, ext: str
    ) -> None:
        for file_name in self.get_artifact_file_name_list(group_id, artifact_id, version, ext):
            checks.verify_file_presence(self.basedir, file_name, wanted)

    def verify_artifact_present(
        self, group_id: str, artifact_id: str, version: str, ext: str
    ) -> None:
        self._verify_artifact_presence(True, group_id, artifact_id, version, ext)

    def verify_artifact_not_present(
        self, group_id: str, artifact_id: str, version: str, ext: str
    ) -> None:
        self._verify_artifact_presence(False, group_id, artifact_id, version, ext)

    def verify_artifact_content(
        self, group_id: str, artifact_id: str, version: str, ext: str, content: str
    ) -> None:
        checks.verify_content_equals(
            self.get_artifact_path(group_id, artifact_id, version, ext), content
        )

    def get_artifact_path(
        self,
        group_id: str,
        artifact_id: str,
        version: str,
        ext: str,
        classifier: str | None = None,
    ) -> str:
        return resolve_artifact_path(
            self._local_repo_layout,
            self._local_repository,
            ArtifactCoordinate(group_id, artifact_id, version, ext, classifier),
        )

    def get_artifact_file_name_list(
        self, group_id: str, artifact_id: str, version: str, ext: str
    ) -> list[str]:
        return artifact_file_list(
            self._local_repo_layout,
            self._local_repository,
            ArtifactCoordinate(group_id, artifact_id, version, ext),
        )

    def get_artifact_metadata_path(
        self,
        group_id: str,
        artifact_id: str | None = None,
        version: str | None = None,
        filename: str = LOCAL_METADATA_FILENAME,
    ) -> str:
        return artifact_metadata_path(
            self._local_repo_layout,
            self._local_repository,
            group_id,
            artifact_id,
            version,
            filename,
        )

    def delete_artifact(self, group_id: str, artifact_id: str, version: str, ext: str) -> None:
        for file_name in self.get_artifact_file_name_list(group_id, artifact_id, version, ext):
            path = Path(file_name)
            if path.is_dir():
                shutil.rmtree(path)
            else:
                path.unlink(missing_ok=True)

    def delete_artifacts(
        self, group_id: str, artifact_id: str | None = None, version: str | None = None
    ) -> None:
        directory = group_directory(
            self._local_repo_layout, self._local_repository, group_id, artifact_id, version
        )
        if directory.exists():
            shutil.rmtree(directory)

    def load_properties(self, filename: str) -> dict[str, str]:
        path = Path(self.basedir) / filename
        try:
            with path.open(encoding="latin-1") as handle:
                return parse_properties(handle)
        except OSError as exc:
            raise VerificationFailure("Error reading properties file", path=str(path)) from exc

    def load_lines(self, filename: str, encoding: str | None = None) -> list[str]:
        """Non-empty lines of a workspace file, untrimmed."""
        path = Path(self.basedir) / filename
        try:
            with path.open(encoding=encoding or None) as handle:
                return [line for line in handle.read().splitlines() if line]
        except OSError as exc:
            raise VerificationFailure(f"Unable to read {path}: {exc}", path=str(path)) from exc

    def write_file(self, path: str, contents: str) -> None:
        target = Path(self.basedir) / path
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(contents, encoding="utf-8")

    def delete_directory(self, path: str) -> None:
        target = Path(self.basedir) / path
        if target.exists():
            shutil.rmtree(target)

    def new_default_filter_map(self) -> dict[str, str]:
        """``@basedir@`` and ``@baseurl@`` mapped to the project directory."""
        basedir = os.path.abspath(self.basedir)
        baseurl = basedir.replace("\\", "/")
        if not baseurl.startswith("/"):
            baseurl = "/" + baseurl
        return {"@basedir@": basedir, "@baseurl@": f"file://{baseurl}"}

    def filter_file(
        self,
        src_path: str,
        dst_path: str,
        file_encoding: str | None = None,
        filter_map: Mapping[str, str] | None = None,
    ) -> Path:
        src = Path(self.basedir) / src_path
        data = src.read_text(encoding=file_encoding or None)
        if filter_map is None:
            filter_map = self.new_default_filter_map()
        for token, replacement in filter_map.items():
            data = data.replace(token, replacement)
        dst = Path(self.basedir) / dst_path
        dst.parent.mkdir(parents=True, exist_ok=True)
        dst.write_text(data, encoding=file_encoding or None)
        return dst
