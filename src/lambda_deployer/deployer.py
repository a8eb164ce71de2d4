"""
Multi-region deployment orchestrator.

Deploys one payload and configuration to every target region concurrently.
Per region:

    1. Probe    - get_function on the synthesized name
    2a. Create  - create_function, then (concurrently) create all event source
                  mappings and apply the scheduled events
    2b. Update  - concurrently: (update code + configuration, then scheduled
                  events) and (list + reconcile event source mappings)
    3. Collect  - the region's outcome is recorded whether it succeeded or not

Regions share no state; each gets its own boto3 clients. A failure in one
region never stops another.

Usage:
    from lambda_deployer.deployer import deploy

    results = deploy(DeployOptions(function_name="my-fn", regions="us-east-1,eu-west-1"))
"""

import asyncio
import json
import logging
from dataclasses import dataclass, field
from functools import partial
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Sequence

from lambda_deployer.core.config_loader import load_event_sources
from lambda_deployer.core.context import DeployOptions, DeploymentConfig
from lambda_deployer.core.exceptions import ConfigurationError, DeploymentError, RegionDeploymentError
from lambda_deployer.core.params import build_deployment_config, create_function_params
from lambda_deployer.core.schemas import EventSourceList
from lambda_deployer.packaging.archive import archive
from lambda_deployer.providers.aws import lambda_manager
from lambda_deployer.providers.aws.clients import create_aws_clients
from lambda_deployer.providers.aws.event_sources import update_event_sources
from lambda_deployer.providers.aws.results import ReconcileResult, strip_metadata
from lambda_deployer.providers.aws.schedule_events import update_schedule_events

logger = logging.getLogger(__name__)

ClientFactory = Callable[[str], Dict[str, Any]]


@dataclass
class RegionResult:
    """
    Outcome of deploying to one region.

    Attributes:
        region: Target region
        function_arn: ARN returned by create/update (None if that step failed)
        created: True when the function did not exist and was created
        event_sources: Outcomes of the event source mapping operations
        schedules: Outcomes of the scheduled event upserts
        error: First error the region surfaced, if any
    """

    region: str
    function_arn: Optional[str] = None
    created: bool = False
    event_sources: ReconcileResult = field(default_factory=ReconcileResult)
    schedules: ReconcileResult = field(default_factory=ReconcileResult)
    error: Optional[BaseException] = None

    @property
    def failed(self) -> bool:
        return self.error is not None

    @property
    def is_empty(self) -> bool:
        return len(self.event_sources) == 0 and len(self.schedules) == 0

    def to_dict(self) -> dict:
        data = {
            "region": self.region,
            "functionArn": self.function_arn,
            "created": self.created,
            "eventSourceMappings": self.event_sources.to_list(),
            "scheduleEvents": self.schedules.to_list(),
        }
        if self.error is not None:
            data["error"] = str(self.error)
        return data


def describe_config(config: DeploymentConfig) -> dict:
    """Request parameters without the code payload, for logging."""
    params = create_function_params(config, b"")
    params.pop("Code")
    return params


async def _deploy_new(
    result: RegionResult,
    clients: Dict[str, Any],
    config: DeploymentConfig,
    payload: bytes,
    event_sources: EventSourceList
) -> None:
    lambda_client = clients["lambda"]

    response = await asyncio.to_thread(lambda_manager.upload_new, lambda_client, config, payload)
    result.created = True
    result.function_arn = response["FunctionArn"]
    logger.info(f"=> Zip file(s) done uploading to {result.region}. Results follow: ")
    logger.info(strip_metadata(response))

    result.event_sources, result.schedules = await asyncio.gather(
        update_event_sources(lambda_client, config.function_name, [], event_sources.event_source_mappings),
        update_schedule_events(clients, result.function_arn, event_sources.schedule_events),
    )


async def _deploy_existing(
    result: RegionResult,
    clients: Dict[str, Any],
    config: DeploymentConfig,
    payload: bytes,
    event_sources: EventSourceList
) -> None:
    lambda_client = clients["lambda"]

    async def _update_code_and_schedules():
        response = await asyncio.to_thread(lambda_manager.upload_existing, lambda_client, config, payload)
        result.function_arn = response["FunctionArn"]
        logger.info(f"=> Zip file(s) done uploading to {result.region}. Results follow: ")
        logger.info(strip_metadata(response))
        result.schedules = await update_schedule_events(
            clients, result.function_arn, event_sources.schedule_events
        )

    async def _reconcile_mappings():
        existing = await asyncio.to_thread(
            lambda_manager.list_event_source_mappings, lambda_client, config.function_name
        )
        result.event_sources = await update_event_sources(
            lambda_client, config.function_name, existing, event_sources.event_source_mappings
        )

    outcomes = await asyncio.gather(
        _update_code_and_schedules(),
        _reconcile_mappings(),
        return_exceptions=True
    )
    for outcome in outcomes:
        if isinstance(outcome, BaseException):
            result.error = outcome
            break


async def deploy_region(
    region: str,
    clients: Dict[str, Any],
    config: DeploymentConfig,
    payload: bytes,
    event_sources: EventSourceList
) -> RegionResult:
    """
    Deploy to one region and collect everything that happened there.

    Remote errors are recorded on the RegionResult rather than raised, so
    partial results (e.g. mappings created before a schedule failed) are
    kept.
    """
    result = RegionResult(region=region)
    lambda_client = clients["lambda"]

    try:
        exists = await asyncio.to_thread(lambda_manager.function_exists, lambda_client, config.function_name)
        if exists:
            await _deploy_existing(result, clients, config, payload, event_sources)
        else:
            await _deploy_new(result, clients, config, payload, event_sources)
    except DeploymentError as e:
        result.error = e

    if result.error is None:
        result.error = result.event_sources.first_error or result.schedules.first_error
    return result


async def deploy_regions(
    regions: Sequence[str],
    config: DeploymentConfig,
    payload: bytes,
    event_sources: EventSourceList,
    client_factory: ClientFactory
) -> List[RegionResult]:
    """
    Deploy to all regions concurrently.

    Returns:
        One RegionResult per region, in the order the regions were given
    """

    async def _deploy_one(region: str) -> RegionResult:
        logger.info(f"=> Uploading zip file to AWS Lambda {region} with parameters:")
        logger.info(describe_config(config))
        clients = client_factory(region)
        return await deploy_region(region, clients, config, payload, event_sources)

    outcomes = await asyncio.gather(
        *(_deploy_one(region) for region in regions),
        return_exceptions=True
    )

    results = []
    for region, outcome in zip(regions, outcomes):
        if isinstance(outcome, BaseException):
            logger.error(f"Deployment to {region} failed: {outcome}")
            results.append(RegionResult(region=region, error=outcome))
        else:
            results.append(outcome)
    return results


def default_client_factory(options: DeployOptions) -> ClientFactory:
    return partial(
        create_aws_clients,
        profile=options.profile,
        access_key=options.access_key,
        secret_key=options.secret_key,
        session_token=options.session_token,
    )


def deploy(
    options: DeployOptions,
    cwd: Optional[Path] = None,
    client_factory: Optional[ClientFactory] = None
) -> List[RegionResult]:
    """
    Build the payload and deploy it to every configured region.

    Args:
        options: Deployment options
        cwd: Project root (defaults to the current directory)
        client_factory: region -> clients dict (defaults to boto3 clients)

    Returns:
        One RegionResult per region

    Raises:
        ConfigurationError: If no region is configured or input files are invalid
        ExternalToolError: If building the payload fails
        RegionDeploymentError: If any region failed (after all regions finished);
            its results attribute carries every RegionResult
    """
    regions = options.region_list()
    if not regions:
        raise ConfigurationError("No target region configured")

    payload = archive(options, cwd)

    logger.info("=> Reading zip file to memory")
    config = build_deployment_config(options)

    logger.info("=> Reading event source file to memory")
    event_sources = load_event_sources(options.event_source_file)

    factory = client_factory or default_client_factory(options)
    results = asyncio.run(deploy_regions(regions, config, payload, event_sources, factory))

    if not all(result.is_empty for result in results):
        logger.info("=> All tasks done. Results follow: ")
        logger.info(json.dumps([result.to_dict() for result in results], indent=1, default=str))

    errors = {result.region: result.error for result in results if result.failed}
    if errors:
        raise RegionDeploymentError(errors, results)
    return results
