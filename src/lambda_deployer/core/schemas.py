"""
Schemas for the event source file (event_sources.json).

Two document shapes are accepted and normalized here, right after parsing:

    Legacy (bare array, mappings only):
        [{"EventSourceArn": "arn:aws:kinesis:...", "BatchSize": 50}]

    Structured:
        {
            "EventSourceMappings": [...],
            "ScheduleEvents": [{"ScheduleName": "...", "ScheduleState": "ENABLED",
                                "ScheduleExpression": "rate(1 hour)"}]
        }

Both become an EventSourceList; missing sub-lists default to empty.
"""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from lambda_deployer.core.exceptions import ConfigurationError


class EventSourceMapping(BaseModel):
    """
    A binding from a stream or queue to the function.

    Desired bindings come from the event source file and may omit
    enabled/batch_size/starting_position. Existing bindings come from
    list_event_source_mappings and carry the remote uuid.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    event_source_arn: str = Field(..., alias="EventSourceArn")
    enabled: Optional[bool] = Field(None, alias="Enabled")
    batch_size: Optional[int] = Field(None, alias="BatchSize")
    starting_position: Optional[str] = Field(None, alias="StartingPosition")
    uuid: Optional[str] = Field(None, alias="UUID")


class ScheduleEvent(BaseModel):
    """A scheduled trigger keyed by its rule name."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    schedule_name: str = Field(..., alias="ScheduleName")
    schedule_state: str = Field("ENABLED", alias="ScheduleState")
    schedule_expression: str = Field(..., alias="ScheduleExpression")
    schedule_description: Optional[str] = Field(None, alias="ScheduleDescription")
    function_arn: Optional[str] = Field(None, alias="FunctionArn")

    def to_dict(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)


class EventSourceList(BaseModel):
    """Canonical desired state: mappings and schedules."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    event_source_mappings: list[EventSourceMapping] = Field(
        default_factory=list, alias="EventSourceMappings"
    )
    schedule_events: list[ScheduleEvent] = Field(
        default_factory=list, alias="ScheduleEvents"
    )


def normalize_event_sources(document: Any, source: Optional[str] = None) -> EventSourceList:
    """
    Normalize a parsed event source document into an EventSourceList.

    Args:
        document: Result of json.load on the event source file
        source: File name used in error messages

    Returns:
        EventSourceList with both sub-lists populated (possibly empty)

    Raises:
        ConfigurationError: If the document is neither a list nor an object,
            or an entry does not match the schema
    """
    if document is None:
        return EventSourceList()

    try:
        if isinstance(document, list):
            return EventSourceList(event_source_mappings=[
                EventSourceMapping.model_validate(item) for item in document
            ])
        if isinstance(document, dict):
            return EventSourceList.model_validate({
                "EventSourceMappings": document.get("EventSourceMappings") or [],
                "ScheduleEvents": document.get("ScheduleEvents") or [],
            })
    except ValidationError as e:
        raise ConfigurationError(f"Invalid event source definition: {e}", config_file=source)

    raise ConfigurationError(
        f"Event source document must be a list or an object, got {type(document).__name__}",
        config_file=source
    )
