# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""Tests for structured logging helpers."""

from __future__ import annotations

import json
import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from io import StringIO

import pytest

from buildgate.runtime.logging import (
    StructuredLogger,
    _coerce_level,
    _JsonFormatter,
    _TextFormatter,
    configure_logging,
    get_logger,
)


class _CaptureHandler(logging.Handler):
    def __init__(self) -> None:
        super().__init__()
        self.records: list[logging.LogRecord] = []

    def emit(self, record: logging.LogRecord) -> None:
        self.records.append(record)


@contextmanager
def _capture(logger: logging.Logger) -> Iterator[list[logging.LogRecord]]:
    handler = _CaptureHandler()
    logger.addHandler(handler)
    try:
        yield handler.records
    finally:
        logger.removeHandler(handler)
        handler.close()


@pytest.fixture(autouse=True)
def reset_logging_state() -> Iterator[None]:
    root = logging.getLogger()
    original_handlers = list(root.handlers)
    original_level = root.level
    try:
        yield
    finally:
        for handler in root.handlers:
            if handler not in original_handlers:
                handler.close()
        root.handlers = original_handlers
        root.setLevel(original_level)


def test_structured_logger_emits_structured_records() -> None:
    logger = get_logger("tests.logging", context={"component": "unit-test"})
    base_logger = logger.logger
    base_logger.setLevel(logging.INFO)

    with _capture(base_logger) as records:
        logger.info("structured", event="tests.event", context={"attempt": 1})

    assert len(records) == 1
    record = records[0]
    assert record.getMessage() == "structured"
    assert getattr(record, "event") == "tests.event"
    assert getattr(record, "context") == {"component": "unit-test", "attempt": 1}


def test_bind_merges_context() -> None:
    logger = get_logger("tests.logging.bind", context={"component": "a"})
    bound = logger.bind(run_id="r1")
    base_logger = bound.logger
    base_logger.setLevel(logging.INFO)

    with _capture(base_logger) as records:
        bound.warning("bound", event="tests.bound", context={"component": "b"})

    assert isinstance(bound, StructuredLogger)
    assert getattr(records[0], "context") == {"component": "b", "run_id": "r1"}
    assert logger.extra == {"component": "a"}


def test_event_is_required() -> None:
    logger = get_logger("tests.logging.required")
    logger.logger.setLevel(logging.INFO)

    with pytest.raises(TypeError, match="event"):
        logger.info("no event")


def test_context_must_be_a_mapping() -> None:
    logger = get_logger("tests.logging.context")
    logger.logger.setLevel(logging.INFO)

    with pytest.raises(TypeError, match="mapping"):
        logger.info("bad", event="tests.bad", context=["x"])


def test_configure_logging_json_output(monkeypatch: pytest.MonkeyPatch) -> None:
    stream = StringIO()
    monkeypatch.setattr(sys, "stderr", stream)

    configure_logging(level="DEBUG", json_mode=True, env={}, force=True)
    get_logger("tests.logging.json").debug(
        "hello", event="tests.json", context={"n": 2}
    )

    payload = json.loads(stream.getvalue().strip().splitlines()[-1])
    assert payload["event"] == "tests.json"
    assert payload["context"] == {"n": 2}
    assert payload["level"] == "DEBUG"
    assert payload["logger"] == "tests.logging.json"


def test_configure_logging_reads_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    stream = StringIO()
    monkeypatch.setattr(sys, "stderr", stream)

    configure_logging(
        env={"BUILDGATE_LOG_LEVEL": "warning", "BUILDGATE_LOG_FORMAT": "text"},
        force=True,
    )
    logger = get_logger("tests.logging.env")
    logger.info("hidden", event="tests.hidden")
    logger.warning("shown", event="tests.shown", context={"k": "v"})

    output = stream.getvalue()
    assert logging.getLogger().level == logging.WARNING
    assert "hidden" not in output
    assert "tests.shown shown" in output


def test_configure_logging_respects_existing_handlers() -> None:
    root = logging.getLogger()
    handler = _CaptureHandler()
    root.addHandler(handler)

    configure_logging(level=logging.ERROR, env={})

    assert handler in root.handlers
    assert root.level == logging.ERROR


def test_json_formatter_includes_exceptions() -> None:
    formatter = _JsonFormatter()
    try:
        raise ValueError("bad")
    except ValueError:
        record = logging.LogRecord(
            "x", logging.ERROR, __file__, 1, "failed", None, sys.exc_info()
        )

    payload = json.loads(formatter.format(record))

    assert "ValueError: bad" in payload["exc_info"]
    assert "event" not in payload


def test_coerce_level() -> None:
    assert _coerce_level("info") == logging.INFO
    assert _coerce_level(logging.DEBUG) == logging.DEBUG
    assert _coerce_level(None) == logging.INFO
    with pytest.raises(TypeError):
        _ = _coerce_level("LOUD")


def test_json_formatter_promotes_run_identifiers() -> None:
    record = logging.LogRecord("x", logging.INFO, __file__, 1, "turn", None, None)
    record.event = "driver.turn.reply"
    record.context = {"run_id": "abc", "component": "driver", "turn": 3}

    payload = json.loads(_JsonFormatter().format(record))

    assert payload["run_id"] == "abc"
    assert payload["component"] == "driver"
    assert payload["context"]["turn"] == 3


def test_text_formatter_renders_sorted_context_pairs() -> None:
    record = logging.LogRecord("x", logging.WARNING, __file__, 1, "nudged", None, None)
    record.event = "driver.truncated"
    record.context = {"turn": 2, "run_id": "r"}

    line = _TextFormatter().format(record)

    assert line.endswith("WARNING x driver.truncated nudged run_id=r turn=2")
