"""
Tests for the logging helpers.
"""

import json
import logging

import pytest

from cefr_backend.common.logger import (
    JsonFormatter,
    LoggerAdapter,
    configure_logger,
    log_execution_time,
    with_context,
)


def _record(logger_name="cefr_backend.test", msg="scored", data=None):
    record = logging.LogRecord(logger_name, logging.INFO, __file__, 10, msg, None, None)
    if data is not None:
        record.data = data
    return record


def test_json_formatter_merges_context():
    output = json.loads(JsonFormatter().format(_record(data={"attempt_id": "a-1"})))

    assert output["message"] == "scored"
    assert output["level"] == "INFO"
    assert output["attempt_id"] == "a-1"


def test_adapter_attaches_context_under_data():
    adapter = LoggerAdapter(logging.getLogger("cefr_backend.test"), {"user_id": "u-1"})

    msg, kwargs = adapter.process("hello", {})

    assert msg == "hello"
    assert kwargs["extra"]["data"] == {"user_id": "u-1"}


def test_with_context_merges_into_new_adapter():
    adapter = with_context("cefr_backend.test", attempt_id="a-1").with_context(user_id="u-1")

    assert adapter.extra == {"attempt_id": "a-1", "user_id": "u-1"}


def test_configure_logger_accepts_level_names():
    logger = configure_logger(name="cefr_backend.test.configured", level="debug", console_output=False)

    assert logger.level == logging.DEBUG
    assert logger.handlers == []


def test_log_execution_time_sync_and_failure(caplog):
    logger = logging.getLogger("cefr_backend.test.timing")

    @log_execution_time(logger)
    def add(a, b):
        return a + b

    @log_execution_time(logger)
    def fail():
        raise RuntimeError("boom")

    with caplog.at_level(logging.DEBUG, logger="cefr_backend.test.timing"):
        assert add(2, 3) == 5
        with pytest.raises(RuntimeError):
            fail()

    assert any("add executed in" in message for message in caplog.messages)
    assert any("fail failed after" in message for message in caplog.messages)


@pytest.mark.asyncio
async def test_log_execution_time_async():
    @log_execution_time()
    async def double(value):
        return value * 2

    assert await double(21) == 42
