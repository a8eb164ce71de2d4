"""
Scheduled events (EventBridge rules) for a Lambda function.

Each ScheduleEvent is upserted by rule name:

    1. put_rule       - create or replace the rule (expression, state)
    2. add_permission - let events.amazonaws.com invoke the function
                        (an existing grant is not an error)
    3. put_targets    - point the rule at the function

Schedules are applied in declared order. The first failure stops the
remaining schedules for that region.
"""

import asyncio
import logging
from typing import Any, Dict, Sequence

from botocore.exceptions import BotoCoreError, ClientError

from lambda_deployer import constants as CONSTANTS
from lambda_deployer.core.exceptions import RemoteOperationError
from lambda_deployer.core.schemas import ScheduleEvent
from .results import OperationOutcome, ReconcileResult

logger = logging.getLogger(__name__)

SCHEDULE = "schedule"


def function_name_from_arn(function_arn: str) -> str:
    """
    Extract the function name from a function ARN.

    Example:
        >>> function_name_from_arn("arn:aws:lambda:us-west-2:123456789012:function:my-fn:3")
        'my-fn'
    """
    parts = function_arn.split(":")
    if len(parts) >= 7:
        return parts[6]
    return parts[-1]


def _put_rule(events_client, schedule: ScheduleEvent) -> Dict[str, Any]:
    params = {
        "Name": schedule.schedule_name,
        "ScheduleExpression": schedule.schedule_expression,
        "State": schedule.schedule_state,
    }
    if schedule.schedule_description:
        params["Description"] = schedule.schedule_description
    return events_client.put_rule(**params)


def _add_permission(lambda_client, schedule: ScheduleEvent, rule_arn: str) -> None:
    try:
        lambda_client.add_permission(
            FunctionName=function_name_from_arn(schedule.function_arn),
            StatementId=schedule.schedule_name,
            Action=CONSTANTS.INVOKE_ACTION,
            Principal=CONSTANTS.SCHEDULER_PRINCIPAL,
            SourceArn=rule_arn,
        )
    except ClientError as e:
        if e.response["Error"]["Code"] != "ResourceConflictException":
            raise
        logger.debug(f"Permission already set for {schedule.schedule_name}")


def _put_targets(events_client, schedule: ScheduleEvent) -> None:
    events_client.put_targets(
        Rule=schedule.schedule_name,
        Targets=[{
            "Id": function_name_from_arn(schedule.function_arn),
            "Arn": schedule.function_arn,
        }]
    )


def add_schedule(clients: Dict[str, Any], schedule: ScheduleEvent) -> ScheduleEvent:
    """
    Upsert one scheduled event bound to schedule.function_arn.

    Args:
        clients: Region clients with "events" and "lambda"
        schedule: ScheduleEvent with function_arn set

    Returns:
        The schedule that was applied

    Raises:
        RemoteOperationError: If any of the three calls fails
    """
    events_client = clients["events"]
    lambda_client = clients["lambda"]
    region = getattr(getattr(events_client, "meta", None), "region_name", None)

    try:
        rule = _put_rule(events_client, schedule)
        _add_permission(lambda_client, schedule, rule["RuleArn"])
        _put_targets(events_client, schedule)
    except (ClientError, BotoCoreError) as e:
        raise RemoteOperationError("put_schedule", schedule.schedule_name, region, e) from e

    logger.info(f"Linked EventBridge rule {schedule.schedule_name} to {schedule.function_arn}")
    return schedule


async def update_schedule_events(
    clients: Dict[str, Any],
    function_arn: str,
    schedules: Sequence[ScheduleEvent]
) -> ReconcileResult:
    """
    Apply scheduled events one after another.

    Returns:
        ReconcileResult whose successful outcomes carry the resolved schedule
        (including FunctionArn); at most one failed outcome, after which
        nothing else was attempted
    """
    result = ReconcileResult()

    for schedule in schedules:
        resolved = schedule.model_copy(update={"function_arn": function_arn})
        params = resolved.to_dict()
        try:
            await asyncio.to_thread(add_schedule, clients, resolved)
        except RemoteOperationError as e:
            logger.error(f"Scheduled event failed: {e}")
            result.outcomes.append(OperationOutcome(SCHEDULE, params, error=e))
            break
        result.outcomes.append(OperationOutcome(SCHEDULE, params, response=params))

    return result
