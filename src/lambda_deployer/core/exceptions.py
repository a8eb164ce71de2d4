"""
Custom exceptions for the Lambda deployer.

This module defines a hierarchy of exceptions used throughout the packaging
and deployment pipeline to provide clear, actionable error messages.

Exception Hierarchy:
    DeploymentError (base)
    ├── ConfigurationError - Invalid or missing declarative input
    ├── ExternalToolError - pip, docker, post_install.sh or zip exited non-zero
    ├── ArchiveNotFoundError - A payload path that should be read does not exist
    ├── RemoteOperationError - An AWS API call failed
    └── RegionDeploymentError - One or more regions failed to deploy
"""

from typing import Optional


class DeploymentError(Exception):
    """
    Base exception for all deployment-related errors.

    Attributes:
        message: Human-readable error description
        region: Optional AWS region where the error occurred
    """

    def __init__(self, message: str, region: Optional[str] = None):
        self.message = message
        self.region = region

        if region:
            full_message = f"{message} [region={region}]"
        else:
            full_message = message

        super().__init__(full_message)


class ConfigurationError(DeploymentError):
    """
    Raised when declarative input is invalid or missing required fields.

    This typically occurs when:
    - The event source file cannot be read
    - The event source file has invalid JSON or an unexpected shape
    - A required option (function name, handler, role) is missing
    - A local run is requested for an unsupported runtime

    Example:
        >>> load_event_sources("nonexistent.json")
        ConfigurationError: Cannot read event source file (file: nonexistent.json)
    """

    def __init__(self, message: str, config_file: Optional[str] = None):
        self.config_file = config_file
        if config_file:
            message = f"{message} (file: {config_file})"
        super().__init__(message)


class ExternalToolError(DeploymentError):
    """
    Raised when an external command exits non-zero.

    The captured stdout and stderr are kept on the exception and embedded
    in the message so the caller sees the tool's own diagnostics.

    Attributes:
        command: The command that was executed
        return_code: Process exit status (None if it never started)
        stdout: Captured standard output
        stderr: Captured standard error
    """

    def __init__(
        self,
        command: str,
        return_code: Optional[int],
        stdout: str = "",
        stderr: str = ""
    ):
        self.command = command
        self.return_code = return_code
        self.stdout = stdout or ""
        self.stderr = stderr or ""

        message = (
            f"Command failed (exit {return_code}): {command}"
            f" stdout: {self.stdout} stderr: {self.stderr}"
        )
        super().__init__(message)


class ArchiveNotFoundError(DeploymentError):
    """Raised when a deployment zipfile is read but does not exist."""

    def __init__(self, path: Optional[str]):
        self.path = path
        super().__init__(f"No such Zipfile [{path}]")


class RemoteOperationError(DeploymentError):
    """
    Raised when an AWS API call fails.

    Wraps the botocore error with the operation and resource that failed.

    Attributes:
        operation: API operation name (e.g., "create_event_source_mapping")
        resource: Function name, rule name or mapping UUID
        original_error: The underlying SDK exception
    """

    def __init__(
        self,
        operation: str,
        resource: str,
        region: Optional[str] = None,
        original_error: Optional[Exception] = None
    ):
        self.operation = operation
        self.resource = resource
        self.original_error = original_error

        message = f"{operation} failed for '{resource}'"
        if original_error:
            message += f": {original_error}"

        super().__init__(message, region=region)


class RegionDeploymentError(DeploymentError):
    """
    Raised after a multi-region deploy when at least one region failed.

    Attributes:
        errors: Mapping of region name to the error that region surfaced
        results: Every region's RegionResult, successful ones included
    """

    def __init__(self, errors: dict, results: Optional[list] = None):
        self.errors = errors
        self.results = list(results or [])
        details = "; ".join(f"{region}: {err}" for region, err in errors.items())
        super().__init__(f"Deployment failed in {len(errors)} region(s): {details}")
