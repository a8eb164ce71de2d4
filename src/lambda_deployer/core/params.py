"""
Lambda function settings synthesis.

Builds the DeploymentConfig for a deployment from DeployOptions and turns it
into boto3 request parameters.

Naming Convention:
    {function_name}[-{environment}][-{lambda_version}]

    Examples:
        - fn                  (no environment, no version)
        - fn-prod             (environment only)
        - fn-prod-v1          (environment and version)

Omission rules:
    Environment, DeadLetterConfig and TracingConfig are only sent when the
    caller set them, so an update never overwrites settings made elsewhere
    with empty values. VpcConfig is always sent; two empty lists detach the
    function from any VPC.
"""

from typing import Any, Dict

from .config_loader import parse_env_file
from .context import UNSET, DeployOptions, DeploymentConfig, VpcConfig


def function_name(options: DeployOptions) -> str:
    """
    Build the remote function name.

    Example:
        >>> function_name(DeployOptions(function_name="fn", environment="prod", lambda_version="v1"))
        'fn-prod-v1'
    """
    name = options.function_name
    if options.environment:
        name += f"-{options.environment}"
    if options.lambda_version:
        name += f"-{options.lambda_version}"
    return name


def _split_ids(value: str) -> tuple:
    return tuple(part for part in value.split(",") if part)


def vpc_config(options: DeployOptions) -> VpcConfig:
    """Both subnets and security groups, or nothing at all."""
    if options.vpc_subnets and options.vpc_security_groups:
        return VpcConfig(
            subnet_ids=_split_ids(options.vpc_subnets),
            security_group_ids=_split_ids(options.vpc_security_groups),
        )
    return VpcConfig()


def build_deployment_config(options: DeployOptions) -> DeploymentConfig:
    """
    Synthesize the function settings for a deployment.

    The only I/O is reading options.config_file when it is set.

    Args:
        options: Declarative deployment input

    Returns:
        DeploymentConfig ready to be turned into request parameters
    """
    environment = None
    if options.config_file:
        environment = parse_env_file(options.config_file)

    return DeploymentConfig(
        function_name=function_name(options),
        handler=options.handler,
        role=options.role,
        runtime=options.runtime,
        memory_size=options.memory_size,
        timeout=options.timeout,
        description=options.description or "",
        publish=options.publish,
        vpc=vpc_config(options),
        environment=environment,
        dead_letter_target_arn=options.dead_letter_target_arn,
        tracing_mode=options.tracing_config or None,
    )


def _optional_settings(config: DeploymentConfig) -> Dict[str, Any]:
    settings = {}
    if config.environment is not None:
        settings["Environment"] = {"Variables": dict(config.environment)}
    if config.dead_letter_target_arn is not UNSET:
        settings["DeadLetterConfig"] = {"TargetArn": config.dead_letter_target_arn}
    if config.tracing_mode:
        settings["TracingConfig"] = {"Mode": config.tracing_mode}
    return settings


def create_function_params(config: DeploymentConfig, payload: bytes) -> Dict[str, Any]:
    """Parameters for lambda_client.create_function."""
    params = {
        "FunctionName": config.function_name,
        "Code": {"ZipFile": payload},
        "Handler": config.handler,
        "Role": config.role,
        "Runtime": config.runtime,
        "Description": config.description,
        "MemorySize": config.memory_size,
        "Timeout": config.timeout,
        "Publish": config.publish,
        "VpcConfig": config.vpc.to_params(),
    }
    params.update(_optional_settings(config))
    return params


def update_code_params(config: DeploymentConfig, payload: bytes) -> Dict[str, Any]:
    """Parameters for lambda_client.update_function_code."""
    return {
        "FunctionName": config.function_name,
        "ZipFile": payload,
        "Publish": config.publish,
    }


def update_configuration_params(config: DeploymentConfig) -> Dict[str, Any]:
    """Parameters for lambda_client.update_function_configuration."""
    params = {
        "FunctionName": config.function_name,
        "Description": config.description,
        "Handler": config.handler,
        "MemorySize": config.memory_size,
        "Role": config.role,
        "Timeout": config.timeout,
        "Runtime": config.runtime,
        "VpcConfig": config.vpc.to_params(),
    }
    params.update(_optional_settings(config))
    return params
