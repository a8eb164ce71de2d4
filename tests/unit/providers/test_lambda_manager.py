from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError, WaiterError

from lambda_deployer.core.context import DeployOptions
from lambda_deployer.core.exceptions import RemoteOperationError
from lambda_deployer.core.params import build_deployment_config
from lambda_deployer.providers.aws import lambda_manager


def _error(code):
    return ClientError({"Error": {"Code": code, "Message": code}}, "GetFunction")


@pytest.fixture
def config():
    return build_deployment_config(DeployOptions(function_name="fn", role="arn:aws:iam::123456789012:role/r"))


def test_function_exists_true():
    client = MagicMock()
    assert lambda_manager.function_exists(client, "fn") is True


def test_function_exists_false_on_not_found():
    client = MagicMock()
    client.get_function.side_effect = _error("ResourceNotFoundException")
    assert lambda_manager.function_exists(client, "fn") is False


def test_probe_error_is_not_treated_as_absent():
    client = MagicMock()
    client.get_function.side_effect = _error("AccessDeniedException")

    with pytest.raises(RemoteOperationError) as exc:
        lambda_manager.function_exists(client, "fn")

    assert exc.value.operation == "get_function"


def test_upload_existing_updates_code_then_configuration(config):
    client = MagicMock()
    client.update_function_configuration.return_value = {"FunctionArn": "arn:fn"}

    response = lambda_manager.upload_existing(client, config, b"zip")

    assert response == {"FunctionArn": "arn:fn"}
    client.update_function_code.assert_called_once_with(FunctionName="fn", ZipFile=b"zip", Publish=False)
    client.get_waiter.assert_called_once_with("function_updated")
    client.update_function_configuration.assert_called_once()


def test_upload_existing_stops_when_code_update_fails(config):
    client = MagicMock()
    client.update_function_code.side_effect = _error("CodeStorageExceededException")

    with pytest.raises(RemoteOperationError) as exc:
        lambda_manager.upload_existing(client, config, b"zip")

    assert exc.value.operation == "update_function_code"
    client.update_function_configuration.assert_not_called()


def test_upload_existing_wraps_waiter_failure(config):
    client = MagicMock()
    client.get_waiter.return_value.wait.side_effect = WaiterError("FunctionUpdated", "Max attempts exceeded", {})

    with pytest.raises(RemoteOperationError):
        lambda_manager.upload_existing(client, config, b"zip")


def test_list_event_source_mappings_skips_arnless():
    client = MagicMock()
    client.get_paginator.return_value.paginate.return_value = [
        {"EventSourceMappings": [
            {"UUID": "1", "EventSourceArn": "arn:aws:sqs:us-east-1:123456789012:q", "BatchSize": 10},
            {"UUID": "2", "SelfManagedEventSource": {}},
        ]},
        {"EventSourceMappings": []},
    ]

    mappings = lambda_manager.list_event_source_mappings(client, "fn")

    assert [m.uuid for m in mappings] == ["1"]
    assert mappings[0].batch_size == 10
