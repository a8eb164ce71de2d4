"""
Deployment archive builder.

Produces the zip payload uploaded to Lambda. The payload comes from one of
three places, checked in order:

    1. deploy_zipfile  - an existing archive on disk is read as-is
    2. prebuilt_directory - copied to the staging directory and zipped
    3. the project source - staged, pip-installed, post-install hook, zipped

A deploy_zipfile path that does not exist is a cache miss, not an error.

Zip strategies:
    native_zip   shells out to `zip -r` (keeps file permissions)
    zip_directory  in-process zipfile writer (portable fallback)
Both produce the same entry set with paths relative to the staging root.
"""

import io
import logging
import os
import shutil
import sys
import tempfile
import time
import zipfile
from pathlib import Path
from typing import Optional

from lambda_deployer import constants as CONSTANTS
from lambda_deployer.core.context import DeployOptions
from lambda_deployer.core.exceptions import ArchiveNotFoundError, ConfigurationError
from . import builder, staging

logger = logging.getLogger(__name__)


def zipfile_tmp_path(function_name: str) -> Path:
    """Temporary path for a native zip run, unique per call."""
    filename = f"{function_name}-{int(time.time() * 1000)}.zip"
    return Path(tempfile.gettempdir()) / filename


def zip_directory(code_dir: Path) -> bytes:
    """
    Zip every file under code_dir in-process.

    Returns:
        Bytes of the deflate-compressed archive
    """
    code_dir = Path(code_dir)
    zip_buffer = io.BytesIO()
    with zipfile.ZipFile(zip_buffer, "w", zipfile.ZIP_DEFLATED) as zf:
        for root, dirs, files in os.walk(code_dir):
            dirs.sort()
            for file in sorted(files):
                full_path = os.path.join(root, file)
                arcname = os.path.relpath(full_path, start=code_dir)
                zf.write(full_path, Path(arcname).as_posix())
    return zip_buffer.getvalue()


def native_zip(code_dir: Path, function_name: str) -> bytes:
    """
    Zip code_dir with the system `zip` tool.

    Raises:
        ExternalToolError: If zip fails
    """
    zip_path = zipfile_tmp_path(function_name)
    try:
        builder.run_command(
            [CONSTANTS.NATIVE_ZIP_EXECUTABLE, "-r", "-q", str(zip_path), "."],
            cwd=code_dir,
        )
        return zip_path.read_bytes()
    finally:
        if zip_path.exists():
            zip_path.unlink()


def native_zip_available() -> bool:
    return sys.platform != "win32" and shutil.which(CONSTANTS.NATIVE_ZIP_EXECUTABLE) is not None


def zip_payload(code_dir: Path, function_name: str) -> bytes:
    """Zip the staging directory, preferring the native archiver."""
    logger.info("=> Zipping deployment package")
    if native_zip_available():
        return native_zip(code_dir, function_name)
    return zip_directory(code_dir)


def read_archive(path: Optional[str]) -> bytes:
    """
    Read an existing deployment zipfile.

    Raises:
        ArchiveNotFoundError: If path is empty or does not exist
        OSError: If the file exists but cannot be read
    """
    if not path or not os.path.exists(path):
        raise ArchiveNotFoundError(path)
    with open(path, "rb") as f:
        return f.read()


def _after_install(options: DeployOptions, code_dir: Path) -> bytes:
    builder.run_post_install_script(code_dir, options.environment)
    return zip_payload(code_dir, options.function_name)


def archive_prebuilt(options: DeployOptions, cwd: Path) -> bytes:
    """Copy the prebuilt directory to the staging directory and zip it."""
    code_dir = staging.code_directory(cwd)
    staging.clean_directory(code_dir, options.skip_install)

    if not options.skip_install:
        logger.info("=> Moving files to temporary directory")
        spec = staging.build_staging_spec(
            options,
            source=Path(cwd) / options.prebuilt_directory,
            destination=code_dir,
            exclude_dependencies=False,
        )
        staging.stage_files(spec)

    return zip_payload(code_dir, options.function_name)


def build_and_archive(options: DeployOptions, cwd: Path) -> bytes:
    """Stage the project source, install dependencies, run the hook and zip."""
    code_dir = staging.code_directory(cwd)
    staging.clean_directory(code_dir, options.skip_install)

    if options.skip_install:
        return _after_install(options, code_dir)

    logger.info("=> Moving files to temporary directory")
    spec = staging.build_staging_spec(
        options,
        source=Path(cwd),
        destination=code_dir,
        exclude_dependencies=True,
    )
    staging.stage_files(spec)

    builder.install_dependencies(code_dir, options.docker_image)
    return _after_install(options, code_dir)


def archive(options: DeployOptions, cwd: Optional[Path] = None) -> bytes:
    """
    Produce the deployment payload.

    Args:
        options: Deployment options
        cwd: Project root (defaults to the current directory)

    Returns:
        Bytes of the zip archive
    """
    cwd = Path(cwd or os.getcwd())
    if options.deploy_zipfile and os.path.exists(options.deploy_zipfile):
        logger.info(f"=> Reading existing zipfile {options.deploy_zipfile}")
        return read_archive(options.deploy_zipfile)

    if options.prebuilt_directory:
        return archive_prebuilt(options, cwd)
    return build_and_archive(options, cwd)


def package(options: DeployOptions, cwd: Optional[Path] = None) -> Path:
    """
    Build the payload and write it to the package directory without deploying.

    Returns:
        Path of the written zip ({function_name}[-{environment}].zip)

    Raises:
        ConfigurationError: If no package directory is set
        NotADirectoryError: If the package directory path is a file
    """
    if not options.package_directory:
        raise ConfigurationError("packageDirectory not specified!")

    package_dir = Path(options.package_directory)
    if package_dir.exists() and not package_dir.is_dir():
        raise NotADirectoryError(f"{package_dir} is not a directory!")
    if not package_dir.exists():
        logger.info("=> Creating package directory")
        package_dir.mkdir(parents=True)

    payload = archive(options, cwd)

    basename = options.function_name
    if options.environment:
        basename += f"-{options.environment}"
    zip_path = package_dir / f"{basename}.zip"

    logger.info("=> Writing packaged zip")
    zip_path.write_bytes(payload)
    logger.info(f"Packaged zip created: {zip_path}")
    return zip_path
