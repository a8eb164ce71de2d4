"""
Event source mapping reconciliation.

Brings a function's event source mappings in line with the desired list
from event_sources.json. Mappings are matched by EventSourceArn:

    desired only   -> create (Enabled=False, BatchSize=100, StartingPosition=LATEST
                      when the desired entry leaves them out)
    in both        -> update (UUID of the existing mapping, desired Enabled/BatchSize;
                      StartingPosition cannot change after creation)
    existing only  -> delete (UUID only)

All operations run concurrently. A failed operation does not stop its
siblings; every outcome is returned in a ReconcileResult.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Sequence

from botocore.exceptions import ClientError

from lambda_deployer import constants as CONSTANTS
from lambda_deployer.core.exceptions import RemoteOperationError
from lambda_deployer.core.schemas import EventSourceMapping
from .results import OperationOutcome, ReconcileResult, strip_metadata

logger = logging.getLogger(__name__)

CREATE = "create"
UPDATE = "update"
DELETE = "delete"

_OPERATION_METHODS = {
    CREATE: "create_event_source_mapping",
    UPDATE: "update_event_source_mapping",
    DELETE: "delete_event_source_mapping",
}


@dataclass(frozen=True)
class EventSourceOperation:
    """A single planned call against the Lambda event source mapping API."""

    kind: str
    params: Dict[str, Any]

    @property
    def method_name(self) -> str:
        return _OPERATION_METHODS[self.kind]


def _find_by_arn(mappings: Sequence[EventSourceMapping], arn: str):
    for mapping in mappings:
        if mapping.event_source_arn == arn:
            return mapping
    return None


def _create_params(function_name: str, desired: EventSourceMapping) -> Dict[str, Any]:
    return {
        "FunctionName": function_name,
        "EventSourceArn": desired.event_source_arn,
        "Enabled": desired.enabled if desired.enabled else False,
        "BatchSize": desired.batch_size if desired.batch_size else CONSTANTS.DEFAULT_BATCH_SIZE,
        "StartingPosition": desired.starting_position or CONSTANTS.DEFAULT_STARTING_POSITION,
    }


def _update_params(
    function_name: str,
    existing: EventSourceMapping,
    desired: EventSourceMapping
) -> Dict[str, Any]:
    params = {"FunctionName": function_name, "UUID": existing.uuid}
    if desired.enabled is not None:
        params["Enabled"] = desired.enabled
    if desired.batch_size is not None:
        params["BatchSize"] = desired.batch_size
    return params


def plan_event_source_operations(
    function_name: str,
    existing: Sequence[EventSourceMapping],
    desired: Sequence[EventSourceMapping]
) -> List[EventSourceOperation]:
    """
    Diff desired mappings against the mappings already bound to the function.

    Arns are assumed unique within each list; the first match wins.

    Args:
        function_name: Function the mappings belong to
        existing: Mappings fetched from Lambda (with UUIDs)
        desired: Mappings declared locally

    Returns:
        Creates and updates in desired order, then deletes in existing order
    """
    operations = []

    for want in desired:
        have = _find_by_arn(existing, want.event_source_arn)
        if have is not None:
            operations.append(EventSourceOperation(UPDATE, _update_params(function_name, have, want)))
        else:
            operations.append(EventSourceOperation(CREATE, _create_params(function_name, want)))

    for have in existing:
        if _find_by_arn(desired, have.event_source_arn) is None:
            operations.append(EventSourceOperation(DELETE, {"UUID": have.uuid}))

    return operations


def _resource_of(operation: EventSourceOperation) -> str:
    return operation.params.get("UUID") or operation.params.get("EventSourceArn", "")


async def _run_operation(lambda_client, operation: EventSourceOperation) -> dict:
    method = getattr(lambda_client, operation.method_name)
    try:
        response = await asyncio.to_thread(method, **operation.params)
    except ClientError as e:
        region = getattr(getattr(lambda_client, "meta", None), "region_name", None)
        raise RemoteOperationError(operation.method_name, _resource_of(operation), region, e) from e
    return strip_metadata(response)


async def apply_event_source_operations(
    lambda_client,
    operations: Sequence[EventSourceOperation]
) -> ReconcileResult:
    """
    Run all operations concurrently and collect every outcome.

    Returns:
        ReconcileResult with one outcome per operation, in operation order
    """
    responses = await asyncio.gather(
        *(_run_operation(lambda_client, operation) for operation in operations),
        return_exceptions=True
    )

    result = ReconcileResult()
    for operation, response in zip(operations, responses):
        if isinstance(response, BaseException):
            logger.error(f"Event source {operation.kind} failed: {response}")
            result.outcomes.append(OperationOutcome(operation.kind, operation.params, error=response))
        else:
            result.outcomes.append(OperationOutcome(operation.kind, operation.params, response=response))
    return result


async def update_event_sources(
    lambda_client,
    function_name: str,
    existing: Sequence[EventSourceMapping],
    desired: Sequence[EventSourceMapping]
) -> ReconcileResult:
    """Plan and apply the event source mapping changes for one function."""
    operations = plan_event_source_operations(function_name, existing, desired)
    if not operations:
        return ReconcileResult()

    counts = {kind: sum(1 for op in operations if op.kind == kind) for kind in _OPERATION_METHODS}
    logger.info(
        f"=> Updating event sources for {function_name}: "
        f"{counts[CREATE]} create, {counts[UPDATE]} update, {counts[DELETE]} delete"
    )
    return await apply_event_source_operations(lambda_client, operations)
