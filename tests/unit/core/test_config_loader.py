import json

import pytest

from lambda_deployer.core.config_loader import load_event_sources, load_json_file, parse_env_file
from lambda_deployer.core.exceptions import ConfigurationError
from lambda_deployer.core.schemas import EventSourceMapping, ScheduleEvent, normalize_event_sources

KINESIS_ARN = "arn:aws:kinesis:us-west-2:123456789012:stream/events"
SQS_ARN = "arn:aws:sqs:us-west-2:123456789012:queue"


@pytest.fixture
def event_source_file(tmp_path):
    def _write(document):
        path = tmp_path / "event_sources.json"
        path.write_text(json.dumps(document) if not isinstance(document, str) else document)
        return str(path)
    return _write


def test_no_file_configured_gives_empty_lists():
    result = load_event_sources(None)
    assert result.event_source_mappings == []
    assert result.schedule_events == []

    assert load_event_sources("").event_source_mappings == []


def test_legacy_array_becomes_mappings(event_source_file):
    path = event_source_file([{"EventSourceArn": KINESIS_ARN, "BatchSize": 50}])
    result = load_event_sources(path)

    assert len(result.event_source_mappings) == 1
    assert result.event_source_mappings[0].event_source_arn == KINESIS_ARN
    assert result.event_source_mappings[0].batch_size == 50
    assert result.schedule_events == []


def test_structured_document(event_source_file):
    path = event_source_file({
        "EventSourceMappings": [{"EventSourceArn": SQS_ARN, "Enabled": True}],
        "ScheduleEvents": [{
            "ScheduleName": "nightly",
            "ScheduleState": "ENABLED",
            "ScheduleExpression": "cron(0 3 * * ? *)",
        }],
    })
    result = load_event_sources(path)

    assert result.event_source_mappings[0].enabled is True
    assert result.schedule_events[0].schedule_name == "nightly"
    assert result.schedule_events[0].schedule_expression == "cron(0 3 * * ? *)"


def test_missing_sub_lists_default_to_empty(event_source_file):
    result = load_event_sources(event_source_file({"ScheduleEvents": []}))
    assert result.event_source_mappings == []

    result = load_event_sources(event_source_file({}))
    assert result.event_source_mappings == []
    assert result.schedule_events == []


def test_unknown_keys_are_ignored():
    result = normalize_event_sources({
        "EventSourceMappings": [{"EventSourceArn": SQS_ARN, "Extra": "ignored"}],
        "Comment": "not part of the schema",
    })
    assert result.event_source_mappings[0].event_source_arn == SQS_ARN


def test_invalid_json_raises(event_source_file):
    path = event_source_file("{not json")
    with pytest.raises(ConfigurationError) as exc:
        load_event_sources(path)
    assert "Invalid JSON" in str(exc.value)
    assert "event_sources.json" in str(exc.value)


def test_missing_file_raises(tmp_path):
    with pytest.raises(ConfigurationError) as exc:
        load_event_sources(str(tmp_path / "nope.json"))
    assert "nope.json" in str(exc.value)


def test_scalar_document_raises():
    with pytest.raises(ConfigurationError) as exc:
        normalize_event_sources("just a string", source="event_sources.json")
    assert "must be a list or an object" in str(exc.value)


def test_mapping_without_arn_raises(event_source_file):
    path = event_source_file([{"BatchSize": 10}])
    with pytest.raises(ConfigurationError):
        load_event_sources(path)


def test_schedule_defaults_to_enabled():
    schedule = ScheduleEvent.model_validate({"ScheduleName": "s", "ScheduleExpression": "rate(1 hour)"})
    assert schedule.schedule_state == "ENABLED"
    assert schedule.to_dict() == {
        "ScheduleName": "s",
        "ScheduleState": "ENABLED",
        "ScheduleExpression": "rate(1 hour)",
    }


def test_mapping_reads_remote_uuid():
    mapping = EventSourceMapping.model_validate({"EventSourceArn": SQS_ARN, "UUID": "abc", "State": "Enabled"})
    assert mapping.uuid == "abc"


def test_parse_env_file_bare_key(tmp_path):
    path = tmp_path / "deploy.env"
    path.write_text("FLAG\nNAME=value\n")
    assert parse_env_file(str(path)) == {"FLAG": "", "NAME": "value"}


def test_load_json_file(tmp_path):
    path = tmp_path / "event.json"
    path.write_text('{"key": "value"}')
    assert load_json_file(str(path)) == {"key": "value"}
