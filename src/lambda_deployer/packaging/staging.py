"""
File selection and staging.

Copies a source tree into the staging directory (.lambda) while applying
exclude patterns. Symlinks are resolved to their targets.

Pattern rules:
    - "*.log", ".git*", "test"   no slash: matched against the basename at any depth
    - "/build/", "/.venv"        leading slash: anchored to the source root
    - "lib/*.js"                 inner slash: matched against trailing path segments
    - a trailing slash restricts the pattern to directories

"*" and "?" never match a "/"; a "**" segment matches any number of
directories, so "/lib/**/*.py" covers every .py file below lib.

requirements.txt is always copied when building from source, even if an
exclude pattern matches it. In prebuilt mode it is treated like any other file.
"""

import fnmatch
import logging
import os
import shutil
from pathlib import Path
from typing import Iterable, Optional, Sequence

from lambda_deployer import constants as CONSTANTS
from lambda_deployer.core.context import DeployOptions, StagingSpec

logger = logging.getLogger(__name__)


def code_directory(cwd: Optional[str] = None) -> Path:
    """Path of the staging directory for a project rooted at cwd."""
    return Path(cwd or os.getcwd()).resolve() / CONSTANTS.CODE_DIRECTORY_NAME


def build_excludes(exclude_globs: Optional[str], exclude_dependencies: bool) -> tuple:
    """
    Combine the built-in excludes with user globs.

    Args:
        exclude_globs: Space-separated user patterns (may be None)
        exclude_dependencies: Also exclude the local dependency directory
    """
    excludes = list(CONSTANTS.BUILTIN_EXCLUDES)
    if exclude_globs:
        excludes.extend(exclude_globs.split())
    if exclude_dependencies:
        excludes.append(CONSTANTS.DEPENDENCY_DIRECTORY)
    return tuple(excludes)


def build_staging_spec(
    options: DeployOptions,
    source: Path,
    destination: Path,
    exclude_dependencies: bool
) -> StagingSpec:
    """Create the StagingSpec for copying source into destination."""
    return StagingSpec(
        source_root=Path(source).resolve(),
        destination_root=Path(destination).resolve(),
        excludes=build_excludes(options.exclude_globs, exclude_dependencies),
        include_manifest=not options.prebuilt_directory,
    )


def _match_segments(parts: Sequence[str], segments: Sequence[str]) -> bool:
    if not segments:
        return not parts
    head, rest = segments[0], segments[1:]
    if head == "**":
        return any(_match_segments(parts[start:], rest) for start in range(len(parts) + 1))
    return bool(parts) and fnmatch.fnmatchcase(parts[0], head) and _match_segments(parts[1:], rest)


def is_excluded(relative_path: str, is_dir: bool, patterns: Iterable[str]) -> bool:
    """
    Check a path (relative to the source root, "/" separated) against patterns.
    """
    parts = relative_path.split("/")
    basename = parts[-1]

    for pattern in patterns:
        directory_only = pattern.endswith("/")
        pattern = pattern.rstrip("/")
        if not pattern or (directory_only and not is_dir):
            continue

        if pattern.startswith("/"):
            if _match_segments(parts, pattern.lstrip("/").split("/")):
                return True
        elif "/" in pattern:
            segments = pattern.split("/")
            if any(_match_segments(parts[start:], segments) for start in range(len(parts))):
                return True
        elif fnmatch.fnmatchcase(basename, pattern):
            return True

    return False


def _ignore_callback(spec: StagingSpec):
    root = spec.source_root

    def _ignore(directory: str, names: Sequence[str]) -> set:
        ignored = set()
        rel_dir = Path(os.path.relpath(directory, root)).as_posix()
        for name in names:
            full_path = os.path.join(directory, name)
            is_dir = os.path.isdir(full_path)
            if spec.include_manifest and not is_dir and name == CONSTANTS.PACKAGE_MANIFEST_FILE:
                continue
            relative = name if rel_dir == "." else f"{rel_dir}/{name}"
            if is_excluded(relative, is_dir, spec.excludes):
                ignored.add(name)
        return ignored

    return _ignore


def clean_directory(path: Path, skip_install: bool = False) -> None:
    """
    Remove and recreate the staging directory.

    Does nothing when skip_install is set, so the previous staging result
    is reused as-is.
    """
    if skip_install:
        return
    path = Path(path)
    if path.exists():
        shutil.rmtree(path)
    path.mkdir(parents=True)


def stage_files(spec: StagingSpec) -> Path:
    """
    Copy the filtered source tree into the staging directory.

    Any filesystem error aborts the copy and propagates; callers re-run from
    a clean destination.

    Returns:
        The staging directory
    """
    spec.destination_root.mkdir(parents=True, exist_ok=True)
    logger.debug(f"Staging {spec.source_root} -> {spec.destination_root} (excludes: {list(spec.excludes)})")

    shutil.copytree(
        spec.source_root,
        spec.destination_root,
        symlinks=False,
        ignore=_ignore_callback(spec),
        dirs_exist_ok=True,
    )
    return spec.destination_root
