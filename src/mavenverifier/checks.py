from __future__ import annotations

import os
import re
import zipfile
from collections.abc import Iterable
from pathlib import Path

from mavenverifier.errors import VerificationFailure
from mavenverifier.logscan import contains_text, find_error_line

ARCHIVE_SEPARATOR = "!/"


def resolve_against(basedir: str | os.PathLike[str], file_path: str) -> Path:
    """Relative paths are taken from ``basedir``; absolute or rooted ones are kept."""
    candidate = Path(file_path)
    # On Windows a leading separator is rooted on the current drive, not relative.
    if candidate.is_absolute() or file_path.startswith(os.sep):
        return candidate
    return Path(basedir) / file_path


def archive_entry_exists(archive: Path, entry: str) -> bool:
    """Open ``entry`` inside ``archive``; missing entries read as absent."""
    with zipfile.ZipFile(archive) as zip_file:
        try:
            with zip_file.open(entry) as stream:
                return stream is not None
        except KeyError:
            return False


def glob_matches(pattern_path: Path) -> bool | None:
    """``None`` when the parent directory is missing, else whether any entry matches."""
    parent = pattern_path.parent
    if not parent.exists():
        return None
    name_pattern = re.compile(".*".join(re.escape(part) for part in pattern_path.name.split("*")))
    return any(name_pattern.fullmatch(candidate) for candidate in os.listdir(parent))


def _verify_archive_presence(basedir: str | os.PathLike[str], file_path: str, wanted: bool) -> None:
    archive_name, _, entry = file_path.partition(ARCHIVE_SEPARATOR)
    archive = resolve_against(basedir, archive_name)
    try:
        found = archive_entry_exists(archive, entry)
    except (OSError, zipfile.BadZipFile) as exc:
        if wanted:
            raise VerificationFailure(
                f"Error looking for JAR resource: {file_path}", path=file_path, wanted=wanted
            ) from exc
        return

    if wanted and not found:
        raise VerificationFailure(
            f"Expected JAR resource was not found: {file_path}", path=file_path, wanted=wanted
        )
    if found and not wanted:
        raise VerificationFailure(
            f"Unwanted JAR resource was found: {file_path}", path=file_path, wanted=wanted
        )


def verify_file_presence(basedir: str | os.PathLike[str], file_path: str, wanted: bool) -> None:
    if file_path.find(ARCHIVE_SEPARATOR) > 0:
        _verify_archive_presence(basedir, file_path, wanted)
        return

    expected = resolve_against(basedir, file_path)
    if "*" in file_path:
        found = glob_matches(expected)
        if not found and wanted:
            raise VerificationFailure(
                f"Expected file pattern was not found: {expected}", path=str(expected), wanted=wanted
            )
        if found and not wanted:
            raise VerificationFailure(
                f"Unwanted file pattern was found: {expected}", path=str(expected), wanted=wanted
            )
        return

    exists = expected.exists()
    if not exists and wanted:
        raise VerificationFailure(
            f"Expected file was not found: {expected}", path=str(expected), wanted=wanted
        )
    if exists and not wanted:
        raise VerificationFailure(
            f"Unwanted file was found: {expected}", path=str(expected), wanted=wanted
        )


def verify_error_free_log(lines: Iterable[str]) -> None:
    offending = find_error_line(lines)
    if offending is not None:
        raise VerificationFailure(f"Error in execution: {offending}")


def verify_text_in_log(lines: Iterable[str], text: str) -> None:
    if not contains_text(lines, text):
        raise VerificationFailure(f"Text not found in log: {text}")


def read_text(path: str | os.PathLike[str], encoding: str | None = None) -> str:
    try:
        with open(path, encoding=encoding or "utf-8", newline="") as handle:
            return handle.read()
    except OSError as exc:
        raise VerificationFailure(f"Could not read from {path}: {exc}", path=os.fspath(path)) from exc


def verify_content_matches(path: str | os.PathLike[str], regex: str) -> None:
    """The whole file has to match ``regex``, not just a part of it."""
    content = read_text(path)
    if re.fullmatch(regex, content) is None:
        raise VerificationFailure(f"Content of {path} does not match {regex}", path=os.fspath(path))


def verify_content_equals(path: str | os.PathLike[str], expected: str) -> None:
    if read_text(path) != expected:
        raise VerificationFailure(
            f"Content of {path} does not equal {expected}", path=os.fspath(path)
        )
