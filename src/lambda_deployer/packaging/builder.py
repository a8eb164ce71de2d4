"""
Dependency install and post-install hook.

Runs the external tools that turn the staging directory into a deployable
tree:

    1. pip install -r requirements.txt --target <staging>   (host), or the
       same command inside a container image mounted at /var/task
    2. <staging>/post_install.sh <environment>              (if present)

Every tool invocation goes through run_command, which raises
ExternalToolError carrying the captured stdout/stderr on failure.
"""

import logging
import os
import platform
import subprocess
import sys
from pathlib import Path
from typing import Optional, Sequence

from lambda_deployer import constants as CONSTANTS
from lambda_deployer.core.exceptions import ExternalToolError

logger = logging.getLogger(__name__)


def _truncate(output: Optional[str]) -> str:
    if not output:
        return ""
    return output[-CONSTANTS.MAX_BUFFER_SIZE:]


def run_command(
    cmd: Sequence[str],
    cwd: Optional[Path] = None,
    timeout: Optional[float] = None
) -> subprocess.CompletedProcess:
    """
    Run an external command and capture its output.

    Args:
        cmd: Command and arguments
        cwd: Working directory
        timeout: Seconds before the process is killed (None waits forever)

    Returns:
        CompletedProcess with stdout/stderr captured as text

    Raises:
        ExternalToolError: If the command exits non-zero, cannot be started,
            or times out
    """
    command = " ".join(str(part) for part in cmd)
    logger.debug(f"Running: {command}")

    try:
        result = subprocess.run(
            [str(part) for part in cmd],
            cwd=str(cwd) if cwd else None,
            capture_output=True,
            text=True,
            check=False,
            timeout=timeout,
            env=os.environ.copy(),
        )
    except OSError as e:
        raise ExternalToolError(command, None, "", str(e))
    except subprocess.TimeoutExpired as e:
        raise ExternalToolError(
            command,
            None,
            _truncate(e.stdout if isinstance(e.stdout, str) else None),
            f"Timed out after {timeout} seconds",
        )

    stdout = _truncate(result.stdout)
    stderr = _truncate(result.stderr)
    if result.returncode != 0:
        raise ExternalToolError(command, result.returncode, stdout, stderr)

    return subprocess.CompletedProcess(result.args, result.returncode, stdout, stderr)


def warn_if_foreign_platform(docker_image: Optional[str]) -> None:
    """Warn when native extensions may not match the Lambda runtime."""
    arch = f"{platform.system().lower()}.{platform.machine().lower()}"
    if arch not in ("linux.x86_64", "linux.amd64") and not docker_image:
        logger.warning(
            f"You are building on a platform that is not 64-bit Linux ({arch}). "
            "If any of your dependencies include C-extensions, they may not work "
            "as expected in the Lambda environment."
        )


def install_command(code_dir: Path, docker_image: Optional[str] = None) -> list:
    """Build the dependency install command for the staging directory."""
    if docker_image:
        return [
            "docker", "run", "--rm",
            "-v", f"{code_dir}:{CONSTANTS.DOCKER_TASK_ROOT}",
            "-w", CONSTANTS.DOCKER_TASK_ROOT,
            docker_image,
            "pip", "install",
            "-r", CONSTANTS.PACKAGE_MANIFEST_FILE,
            "--target", CONSTANTS.DOCKER_TASK_ROOT,
            "--quiet",
        ]
    return [
        sys.executable, "-m", "pip", "install",
        "-r", str(Path(code_dir) / CONSTANTS.PACKAGE_MANIFEST_FILE),
        "--target", str(code_dir),
        "--upgrade",
        "--quiet",
    ]


def install_dependencies(code_dir: Path, docker_image: Optional[str] = None) -> bool:
    """
    Install production dependencies into the staging directory.

    Returns:
        True if an install ran, False if there is no requirements.txt

    Raises:
        ExternalToolError: If pip (or docker) fails
    """
    manifest = Path(code_dir) / CONSTANTS.PACKAGE_MANIFEST_FILE
    if not manifest.is_file():
        logger.info(f"=> No {CONSTANTS.PACKAGE_MANIFEST_FILE} found, skipping dependency install")
        return False

    warn_if_foreign_platform(docker_image)
    logger.info("=> Running pip install")
    run_command(install_command(Path(code_dir), docker_image), cwd=code_dir)
    return True


def run_post_install_script(code_dir: Path, environment: Optional[str]) -> Optional[str]:
    """
    Run post_install.sh from the staging directory if it exists.

    The script receives the deployment environment as its only argument.

    Returns:
        The script's stdout, or None if there is no script

    Raises:
        ExternalToolError: If the script exits non-zero or cannot be executed
    """
    script = Path(code_dir) / CONSTANTS.POST_INSTALL_SCRIPT
    if not script.exists():
        return None

    logger.info(f"=> Running post install script {CONSTANTS.POST_INSTALL_SCRIPT}")
    result = run_command([str(script), environment or ""], cwd=code_dir)
    if result.stdout:
        logger.info(f"\t\t{result.stdout.rstrip()}")
    return result.stdout
