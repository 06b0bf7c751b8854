"""Tests for structured logging."""

import json
import logging

from forgekit.logger import JsonFormatter, get_logger


def test_json_formatter_includes_extra_fields():
    record = logging.LogRecord("forgekit", logging.INFO, __file__, 1, "Merged pull request", None, None)
    record.component = "github"
    record.number = 5
    record.payload = object()

    data = json.loads(JsonFormatter().format(record))

    assert data["level"] == "INFO"
    assert data["message"] == "Merged pull request"
    assert data["component"] == "github"
    assert data["number"] == 5
    assert isinstance(data["payload"], str)


def test_component_logger_passes_provider(caplog):
    log = get_logger("resolver")
    with caplog.at_level(logging.INFO, logger="forgekit"):
        log.info("Resolved project", provider="gitlab", project_id=7)

    record = caplog.records[-1]
    assert record.component == "resolver"
    assert record.provider == "gitlab"
    assert record.project_id == 7
