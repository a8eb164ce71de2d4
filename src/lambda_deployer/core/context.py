"""
Deployment records.

This module holds the immutable records that flow through the packaging
and deployment pipeline. They are built once per invocation from
declarative input and passed explicitly to every function that needs them.

Records:
    DeployOptions: Raw declarative input (what the CLI or a caller supplies)
    StagingSpec: Which files go into the staging directory
    VpcConfig: Network placement of the function
    DeploymentConfig: The synthesized function settings sent to Lambda
    LocalContext: The context object handed to a locally-run handler
"""

import time
import uuid
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional, Tuple, Union

from lambda_deployer import constants as CONSTANTS


class _Unset:
    """Marker for a field the caller never touched."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False


UNSET = _Unset()


@dataclass(frozen=True)
class DeployOptions:
    """
    Declarative input for one invocation.

    String-list options (regions, VPC ids, exclude globs) are kept in the
    same delimited form the command line and deploy.env use; they are split
    where they are consumed.

    Attributes:
        function_name: Base name of the Lambda function
        environment: Optional deployment environment, appended as "-<env>"
        lambda_version: Optional version, appended as "-<version>"
        dead_letter_target_arn: UNSET, "" (explicitly cleared) or an ARN
        regions: Comma-separated target regions
        exclude_globs: Space-separated extra exclude patterns
        prebuilt_directory: Ready-to-deploy tree that bypasses install
        deploy_zipfile: Pre-built archive to reuse when it exists
        skip_install: Reuse the staging directory as-is
    """

    function_name: str
    handler: str = CONSTANTS.DEFAULT_HANDLER
    role: str = ""
    runtime: str = CONSTANTS.DEFAULT_RUNTIME
    memory_size: int = CONSTANTS.DEFAULT_MEMORY_SIZE
    timeout: int = CONSTANTS.DEFAULT_TIMEOUT
    description: str = ""
    publish: bool = False
    environment: Optional[str] = None
    lambda_version: Optional[str] = None

    vpc_subnets: Optional[str] = None
    vpc_security_groups: Optional[str] = None
    config_file: Optional[str] = None
    dead_letter_target_arn: Union[str, _Unset] = UNSET
    tracing_config: Optional[str] = None

    regions: str = CONSTANTS.DEFAULT_REGION
    profile: Optional[str] = None
    access_key: Optional[str] = None
    secret_key: Optional[str] = None
    session_token: Optional[str] = None

    exclude_globs: Optional[str] = None
    docker_image: Optional[str] = None
    prebuilt_directory: Optional[str] = None
    deploy_zipfile: Optional[str] = None
    package_directory: Optional[str] = None
    skip_install: bool = False

    event_source_file: Optional[str] = None
    event_file: str = CONSTANTS.DEFAULT_EVENT_FILE
    context_file: str = CONSTANTS.DEFAULT_CONTEXT_FILE

    def region_list(self) -> list[str]:
        """Split the comma-separated region option, dropping blanks."""
        return [r.strip() for r in (self.regions or "").split(",") if r.strip()]


@dataclass(frozen=True)
class StagingSpec:
    """
    Describes how a source tree is copied into the staging directory.

    Attributes:
        source_root: Directory being copied
        destination_root: Staging directory that receives the copy
        excludes: Built-in patterns, then user globs, then the dependency dir
        include_manifest: Force-include requirements.txt (never in prebuilt mode)
    """

    source_root: Path
    destination_root: Path
    excludes: Tuple[str, ...]
    include_manifest: bool = True


@dataclass(frozen=True)
class VpcConfig:
    """Ordered subnet and security group ids. Both empty means no VPC."""

    subnet_ids: Tuple[str, ...] = ()
    security_group_ids: Tuple[str, ...] = ()

    def to_params(self) -> dict:
        return {
            "SubnetIds": list(self.subnet_ids),
            "SecurityGroupIds": list(self.security_group_ids),
        }


@dataclass(frozen=True)
class DeploymentConfig:
    """
    Synthesized Lambda function settings.

    Absence is kept distinct from emptiness: environment is None unless a
    config file was supplied, tracing_mode is None unless a mode was given,
    and dead_letter_target_arn stays UNSET unless explicitly set (an empty
    string is an explicit value that clears the dead-letter queue).
    """

    function_name: str
    handler: str
    role: str
    runtime: str
    memory_size: int
    timeout: int
    description: str = ""
    publish: bool = False
    vpc: VpcConfig = field(default_factory=VpcConfig)
    environment: Optional[Dict[str, str]] = None
    dead_letter_target_arn: Union[str, _Unset] = UNSET
    tracing_mode: Optional[str] = None

    @property
    def local_timeout(self) -> int:
        """Timeout in seconds used when running the handler locally."""
        return min(self.timeout, CONSTANTS.MAX_LOCAL_TIMEOUT_SECONDS)


@dataclass
class LocalContext:
    """
    Context object passed to a handler run on this machine.

    The configured environment is carried here instead of being written
    into os.environ.
    """

    function_name: str
    memory_limit_in_mb: int
    timeout_seconds: int
    environment: Dict[str, str] = field(default_factory=dict)
    function_version: str = "$LATEST"
    aws_request_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    start_time: float = field(default_factory=time.monotonic)
    extra: Dict[str, object] = field(default_factory=dict)

    def get_remaining_time_in_millis(self) -> int:
        elapsed_ms = int((time.monotonic() - self.start_time) * 1000)
        return self.timeout_seconds * 1000 - elapsed_ms
