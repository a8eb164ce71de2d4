"""
Core records and utilities for the Lambda deployer.

Modules:
    context: Immutable records (DeployOptions, StagingSpec, DeploymentConfig)
    schemas: Event source file models and normalization
    config_loader: Config file and event source file loading
    params: Function name and settings synthesis
    exceptions: Custom exception types for deployment operations

Usage:
    from lambda_deployer.core import DeployOptions, build_deployment_config

    options = DeployOptions(function_name="my-fn", environment="prod")
    config = build_deployment_config(options)
"""

from .context import UNSET, DeployOptions, DeploymentConfig, LocalContext, StagingSpec, VpcConfig
from .schemas import EventSourceList, EventSourceMapping, ScheduleEvent, normalize_event_sources
from .config_loader import load_event_sources, parse_env_file
from .params import build_deployment_config, function_name
from .exceptions import (
    ArchiveNotFoundError,
    ConfigurationError,
    DeploymentError,
    ExternalToolError,
    RegionDeploymentError,
    RemoteOperationError,
)

__all__ = [
    # Context
    "UNSET",
    "DeployOptions",
    "DeploymentConfig",
    "LocalContext",
    "StagingSpec",
    "VpcConfig",
    # Schemas
    "EventSourceList",
    "EventSourceMapping",
    "ScheduleEvent",
    "normalize_event_sources",
    # Loading
    "load_event_sources",
    "parse_env_file",
    "build_deployment_config",
    "function_name",
    # Exceptions
    "ArchiveNotFoundError",
    "ConfigurationError",
    "DeploymentError",
    "ExternalToolError",
    "RegionDeploymentError",
    "RemoteOperationError",
]
