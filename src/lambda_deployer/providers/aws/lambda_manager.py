"""
AWS Lambda Manager - Lambda Function Operations.

This module provides the function-level calls used by the deployer:
probing for an existing function, creating it, updating its code and
configuration, and listing its event source mappings.
"""

import logging
from typing import Any, Dict, List

from botocore.exceptions import ClientError, WaiterError

from lambda_deployer.core.context import DeploymentConfig
from lambda_deployer.core.exceptions import RemoteOperationError
from lambda_deployer.core.params import (
    create_function_params,
    update_code_params,
    update_configuration_params,
)
from lambda_deployer.core.schemas import EventSourceMapping

logger = logging.getLogger(__name__)


def _region(lambda_client) -> str:
    return getattr(getattr(lambda_client, "meta", None), "region_name", None)


def function_exists(lambda_client, function_name: str) -> bool:
    """
    Check whether a Lambda function exists.

    Returns:
        True if get_function succeeds, False on ResourceNotFoundException

    Raises:
        RemoteOperationError: For any other error (e.g. access denied)
    """
    try:
        lambda_client.get_function(FunctionName=function_name)
        return True
    except ClientError as e:
        if e.response["Error"]["Code"] == "ResourceNotFoundException":
            return False
        raise RemoteOperationError("get_function", function_name, _region(lambda_client), e) from e


def upload_new(lambda_client, config: DeploymentConfig, payload: bytes) -> Dict[str, Any]:
    """
    Create the function with its full configuration and code in one call.

    Returns:
        The create_function response (includes FunctionArn)
    """
    try:
        return lambda_client.create_function(**create_function_params(config, payload))
    except ClientError as e:
        raise RemoteOperationError("create_function", config.function_name, _region(lambda_client), e) from e


def upload_existing(lambda_client, config: DeploymentConfig, payload: bytes) -> Dict[str, Any]:
    """
    Update an existing function's code, then its configuration.

    The configuration update waits until the code update has finished,
    since Lambda rejects concurrent updates to the same function.

    Returns:
        The update_function_configuration response (includes FunctionArn)
    """
    function_name = config.function_name

    try:
        lambda_client.update_function_code(**update_code_params(config, payload))
    except ClientError as e:
        raise RemoteOperationError("update_function_code", function_name, _region(lambda_client), e) from e

    try:
        waiter = lambda_client.get_waiter("function_updated")
        waiter.wait(FunctionName=function_name)
    except WaiterError as e:
        raise RemoteOperationError("wait_function_updated", function_name, _region(lambda_client), e) from e

    try:
        return lambda_client.update_function_configuration(**update_configuration_params(config))
    except ClientError as e:
        raise RemoteOperationError(
            "update_function_configuration", function_name, _region(lambda_client), e
        ) from e


def list_event_source_mappings(lambda_client, function_name: str) -> List[EventSourceMapping]:
    """
    Fetch the event source mappings currently bound to a function.

    Returns:
        EventSourceMapping list, each carrying its remote UUID
    """
    mappings = []
    try:
        paginator = lambda_client.get_paginator("list_event_source_mappings")
        for page in paginator.paginate(FunctionName=function_name):
            for item in page.get("EventSourceMappings", []):
                # Self-managed Kafka sources have no ARN and cannot be declared
                if "EventSourceArn" not in item:
                    continue
                mappings.append(EventSourceMapping.model_validate(item))
    except ClientError as e:
        raise RemoteOperationError(
            "list_event_source_mappings", function_name, _region(lambda_client), e
        ) from e
    return mappings
