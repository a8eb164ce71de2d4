"""
Local handler runner.

Runs a handler from the project directory against a JSON event, the way
Lambda would call it: handler(event, context). The context carries the
function settings and the config-file environment; os.environ is left
untouched.

Usage:
    from lambda_deployer.local_runner import run_handler

    result = run_handler(DeployOptions(function_name="my-fn", config_file="deploy.env"))
"""

import importlib.util
import logging
import time
from pathlib import Path
from typing import Any, Callable, Optional

from lambda_deployer import constants as CONSTANTS
from lambda_deployer.core.config_loader import load_json_file
from lambda_deployer.core.context import DeployOptions, LocalContext
from lambda_deployer.core.exceptions import ConfigurationError
from lambda_deployer.core.params import build_deployment_config

logger = logging.getLogger(__name__)


def load_handler(handler: str, cwd: Path) -> Callable:
    """
    Resolve "package.module.function" to a callable under cwd.

    Raises:
        ConfigurationError: If the handler string, module file or function is invalid
    """
    module_path, _, function_name = handler.rpartition(".")
    if not module_path or not function_name:
        raise ConfigurationError(f"Invalid handler '{handler}', expected <module>.<function>")

    module_file = Path(cwd) / (module_path.replace(".", "/") + ".py")
    if not module_file.is_file():
        raise ConfigurationError(f"Handler module not found: {module_file}")

    spec = importlib.util.spec_from_file_location(module_path, module_file)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)

    func = getattr(module, function_name, None)
    if not callable(func):
        raise ConfigurationError(f"Handler function '{function_name}' not found in {module_file}")
    return func


def build_context(options: DeployOptions, context_data: Optional[dict] = None) -> LocalContext:
    """Build the LocalContext for a run from the options and context.json contents."""
    config = build_deployment_config(options)
    environment = dict(config.environment or {})
    return LocalContext(
        function_name=config.function_name,
        memory_limit_in_mb=config.memory_size,
        timeout_seconds=config.local_timeout,
        environment=environment,
        extra=dict(context_data or {}),
    )


def run_handler(options: DeployOptions, cwd: Optional[Path] = None) -> Any:
    """
    Run the configured handler once on this machine.

    Args:
        options: Handler, runtime, timeout, event/context/config files
        cwd: Project root (defaults to the current directory)

    Returns:
        Whatever the handler returns

    Raises:
        ConfigurationError: Unsupported runtime, bad handler or unreadable input files
        Exception: Anything the handler raises propagates unchanged
    """
    if options.runtime not in CONSTANTS.SUPPORTED_LOCAL_RUNTIMES:
        raise ConfigurationError(
            f"Runtime [{options.runtime}] is not supported for local runs. "
            f"Supported: {', '.join(CONSTANTS.SUPPORTED_LOCAL_RUNTIMES)}"
        )

    cwd = Path(cwd) if cwd else Path.cwd()
    event = load_json_file(cwd / options.event_file)
    context_path = cwd / options.context_file
    context_data = load_json_file(context_path) if context_path.is_file() else {}

    context = build_context(options, context_data)
    func = load_handler(options.handler, cwd)

    logger.info(f"=> Running {options.handler} locally (timeout {context.timeout_seconds}s)")
    started = time.monotonic()
    result = func(event, context)
    elapsed = time.monotonic() - started

    if elapsed > context.timeout_seconds:
        logger.warning(f"Handler ran {elapsed:.2f}s, longer than the {context.timeout_seconds}s timeout")
    logger.info("=> Handler finished. Result follows: ")
    logger.info(result)
    return result
