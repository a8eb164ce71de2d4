import json
import os
from unittest.mock import patch

import pytest

from lambda_deployer.core.config_loader import parse_env_file
from lambda_deployer.core.context import DeployOptions, LocalContext
from lambda_deployer.core.exceptions import ConfigurationError
from lambda_deployer.local_runner import build_context, load_handler, run_handler


@pytest.fixture
def handler_project(tmp_path):
    (tmp_path / "lambda_function.py").write_text(
        "def lambda_handler(event, context):\n"
        "    return {\n"
        "        'event': event,\n"
        "        'name': context.function_name,\n"
        "        'env': context.environment,\n"
        "        'remaining': context.get_remaining_time_in_millis(),\n"
        "        'extra': context.extra,\n"
        "    }\n"
        "\n"
        "def failing_handler(event, context):\n"
        "    raise ValueError('handler failed')\n"
    )
    (tmp_path / "event.json").write_text(json.dumps({"key": "value"}))
    (tmp_path / "deploy.env").write_text("GREETING=hello\n")
    return tmp_path


def test_runs_handler_with_event_and_context(handler_project):
    options = DeployOptions(function_name="fn", environment="dev", timeout=900,
                            config_file=str(handler_project / "deploy.env"))

    result = run_handler(options, handler_project)

    assert result["event"] == {"key": "value"}
    assert result["name"] == "fn-dev"
    assert result["env"] == {"GREETING": "hello"}
    assert 0 < result["remaining"] <= 300 * 1000


def test_process_environment_is_untouched(handler_project, monkeypatch):
    monkeypatch.delenv("GREETING", raising=False)
    options = DeployOptions(function_name="fn", config_file=str(handler_project / "deploy.env"))

    run_handler(options, handler_project)

    assert "GREETING" not in os.environ


def test_config_file_is_read_once(handler_project):
    options = DeployOptions(function_name="fn", config_file=str(handler_project / "deploy.env"))

    with patch("lambda_deployer.core.params.parse_env_file", wraps=parse_env_file) as mock_parse:
        context = build_context(options)

    mock_parse.assert_called_once_with(options.config_file)
    assert context.environment == {"GREETING": "hello"}


def test_context_file_is_merged(handler_project):
    (handler_project / "context.json").write_text(json.dumps({"invokedFunctionArn": "arn:local"}))

    result = run_handler(DeployOptions(function_name="fn"), handler_project)

    assert result["extra"] == {"invokedFunctionArn": "arn:local"}
    assert result["env"] == {}


def test_handler_exception_propagates(handler_project):
    options = DeployOptions(function_name="fn", handler="lambda_function.failing_handler")
    with pytest.raises(ValueError, match="handler failed"):
        run_handler(options, handler_project)


def test_unsupported_runtime(handler_project):
    with pytest.raises(ConfigurationError) as exc:
        run_handler(DeployOptions(function_name="fn", runtime="nodejs20.x"), handler_project)
    assert "nodejs20.x" in str(exc.value)


def test_missing_event_file(tmp_path):
    with pytest.raises(ConfigurationError):
        run_handler(DeployOptions(function_name="fn"), tmp_path)


def test_load_handler_errors(handler_project):
    with pytest.raises(ConfigurationError):
        load_handler("no_module_separator", handler_project)
    with pytest.raises(ConfigurationError):
        load_handler("missing_module.handler", handler_project)
    with pytest.raises(ConfigurationError):
        load_handler("lambda_function.not_there", handler_project)


def test_local_context_defaults():
    context = LocalContext(function_name="fn", memory_limit_in_mb=256, timeout_seconds=10)
    assert context.function_version == "$LATEST"
    assert context.aws_request_id
