"""
Lambda Deployer - CLI Entry Point.

Commands:
    deploy   Package the project and deploy it to every target region
    package  Package the project into <package-directory>/<name>[-<env>].zip
    run      Run the handler locally against event.json

Defaults for most flags come from the process environment, after ./.env
has been loaded (e.g. AWS_FUNCTION_NAME, AWS_ROLE_ARN, AWS_REGION).
"""

import argparse
import dataclasses
import json
import os
import sys
from typing import List, Optional

from dotenv import load_dotenv

from lambda_deployer import __version__
from lambda_deployer import constants as CONSTANTS
from lambda_deployer.core.context import UNSET, DeployOptions
from lambda_deployer.core.exceptions import DeploymentError
from lambda_deployer.logger import logger, print_stack_trace, setup_logger


def _env(name: str, default=None):
    return os.environ.get(name, default)


def _env_int(name: str, default: int) -> int:
    value = os.environ.get(name)
    return int(value) if value else default


def _env_bool(name: str) -> bool:
    return os.environ.get(name, "").strip().lower() in ("1", "true", "yes")


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    parser.add_argument("-n", "--function-name", default=_env("AWS_FUNCTION_NAME"),
                        help="Lambda function name")
    parser.add_argument("-e", "--environment", default=_env("AWS_ENVIRONMENT"),
                        help="Deployment environment, appended to the function name")
    parser.add_argument("-H", "--handler", default=_env("AWS_HANDLER", CONSTANTS.DEFAULT_HANDLER),
                        help="Handler as <module>.<function>")
    parser.add_argument("-u", "--runtime", default=_env("AWS_RUNTIME", CONSTANTS.DEFAULT_RUNTIME),
                        help="Lambda runtime")
    parser.add_argument("-m", "--memory-size", type=int,
                        default=_env_int("AWS_MEMORY_SIZE", CONSTANTS.DEFAULT_MEMORY_SIZE),
                        help="Memory size in MB")
    parser.add_argument("-t", "--timeout", type=int,
                        default=_env_int("AWS_TIMEOUT", CONSTANTS.DEFAULT_TIMEOUT),
                        help="Timeout in seconds")
    parser.add_argument("-f", "--config-file", default=_env("CONFIG_FILE"),
                        help="KEY=VALUE file with the function's environment variables")


def _add_build_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("-x", "--exclude-globs", default=_env("EXCLUDE_GLOBS"),
                        help="Space-separated glob patterns to leave out of the package")
    parser.add_argument("-D", "--prebuilt-directory", default=_env("PREBUILT_DIRECTORY"),
                        help="Ready-to-deploy directory that skips the install step")
    parser.add_argument("-I", "--docker-image", default=_env("DOCKER_IMAGE"),
                        help="Container image to run pip install in")
    parser.add_argument("-S", "--skip-install", action="store_true",
                        default=_env_bool("SKIP_INSTALL"),
                        help="Zip the existing staging directory without re-installing")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="lambda-deployer",
        description="Package Python projects and deploy them to AWS Lambda"
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    subparsers = parser.add_subparsers(dest="command", required=True)

    deploy_parser = subparsers.add_parser("deploy", help="Deploy the project to AWS Lambda")
    _add_common_arguments(deploy_parser)
    _add_build_arguments(deploy_parser)
    deploy_parser.add_argument("-r", "--region", dest="regions",
                               default=_env("AWS_REGION", CONSTANTS.DEFAULT_REGION),
                               help="Comma-separated target regions")
    deploy_parser.add_argument("-p", "--profile", default=_env("AWS_PROFILE"), help="AWS profile")
    deploy_parser.add_argument("-a", "--access-key", default=_env("AWS_ACCESS_KEY_ID"))
    deploy_parser.add_argument("-s", "--secret-key", default=_env("AWS_SECRET_ACCESS_KEY"))
    deploy_parser.add_argument("-k", "--session-token", default=_env("AWS_SESSION_TOKEN"))
    deploy_parser.add_argument("-o", "--role", default=_env("AWS_ROLE_ARN", ""), help="Execution role ARN")
    deploy_parser.add_argument("-d", "--description", default=_env("AWS_DESCRIPTION", ""))
    deploy_parser.add_argument("-v", "--lambda-version", default=_env("AWS_FUNCTION_VERSION"),
                               help="Version suffix appended to the function name")
    deploy_parser.add_argument("-P", "--publish", action="store_true", default=_env_bool("AWS_PUBLISH"),
                               help="Publish a new version")
    deploy_parser.add_argument("-g", "--vpc-subnets", default=_env("AWS_VPC_SUBNETS"),
                               help="Comma-separated subnet ids")
    deploy_parser.add_argument("-G", "--vpc-security-groups", default=_env("AWS_VPC_SECURITY_GROUPS"),
                               help="Comma-separated security group ids")
    deploy_parser.add_argument("-Q", "--dead-letter-target-arn", default=_env("AWS_DLQ_TARGET_ARN", UNSET),
                               help="Dead-letter queue or topic ARN (empty string clears it)")
    deploy_parser.add_argument("-c", "--tracing-config", default=_env("AWS_TRACING_CONFIG"),
                               help="X-Ray tracing mode (Active or PassThrough)")
    deploy_parser.add_argument("-b", "--event-source-file", default=_env("EVENT_SOURCE_FILE"),
                               help="JSON file with event source mappings and scheduled events")
    deploy_parser.add_argument("-z", "--deploy-zipfile", default=_env("DEPLOY_ZIPFILE"),
                               help="Existing zip to deploy instead of building one")

    package_parser = subparsers.add_parser("package", help="Build the deployment zip only")
    _add_common_arguments(package_parser)
    _add_build_arguments(package_parser)
    package_parser.add_argument("-A", "--package-directory", default=_env("PACKAGE_DIRECTORY"),
                                help="Directory the zip is written to")

    run_parser = subparsers.add_parser("run", help="Run the handler locally")
    _add_common_arguments(run_parser)
    run_parser.add_argument("-j", "--event-file", default=_env("EVENT_FILE", CONSTANTS.DEFAULT_EVENT_FILE),
                            help="Event JSON passed to the handler")
    run_parser.add_argument("-x", "--context-file",
                            default=_env("CONTEXT_FILE", CONSTANTS.DEFAULT_CONTEXT_FILE),
                            help="Context JSON merged into the handler context")

    return parser


def options_from_args(args: argparse.Namespace) -> DeployOptions:
    """Map parsed arguments onto DeployOptions, ignoring flags a command does not have."""
    values = {
        field.name: getattr(args, field.name)
        for field in dataclasses.fields(DeployOptions)
        if hasattr(args, field.name)
    }
    return DeployOptions(**values)


def handle_deploy(options: DeployOptions) -> None:
    from lambda_deployer.deployer import deploy
    deploy(options)


def handle_package(options: DeployOptions) -> None:
    from lambda_deployer.packaging.archive import package
    zip_path = package(options)
    logger.info(f"=> Package written to {zip_path}")


def handle_run(options: DeployOptions) -> None:
    from lambda_deployer.local_runner import run_handler
    result = run_handler(options)
    print(json.dumps(result, indent=1, default=str))


COMMAND_HANDLERS = {
    "deploy": handle_deploy,
    "package": handle_package,
    "run": handle_run,
}


def main(argv: Optional[List[str]] = None) -> int:
    load_dotenv(CONSTANTS.DEFAULT_ENV_FILE)

    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logger(debug_mode=args.debug)

    if not args.function_name:
        parser.error("a function name is required (--function-name or AWS_FUNCTION_NAME)")

    try:
        COMMAND_HANDLERS[args.command](options_from_args(args))
    except DeploymentError as e:
        print_stack_trace()
        logger.error(f"Error during '{args.command}': {e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
