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

"""Structured logging helpers for :mod:`buildgate`.

Every record carries an ``event`` name and a ``context`` mapping. Bound
context (component, run id, project type) is merged with per-call context so
a whole run can be filtered from a JSON log stream by its ``run_id``.
"""

from __future__ import annotations

import json
import logging
import logging.config
import os
from collections.abc import Mapping, MutableMapping
from datetime import UTC, datetime
from typing import Any, cast, override

__all__ = [
    "StructuredLogger",
    "configure_logging",
    "get_logger",
]

LOG_LEVEL_ENV = "BUILDGATE_LOG_LEVEL"
LOG_FORMAT_ENV = "BUILDGATE_LOG_FORMAT"

# Context keys lifted to the top level of JSON records.
_PROMOTED_KEYS = ("run_id", "component")


class StructuredLogger(logging.LoggerAdapter[logging.Logger]):
    """Logger adapter that requires ``event=`` and accepts ``context=``.

    Keys passed through ``extra`` are folded into the context so callers
    never have to know which attributes the formatters read.
    """

    def __init__(
        self,
        logger: logging.Logger,
        *,
        context: Mapping[str, object] | None = None,
    ) -> None:
        super().__init__(logger, dict(context or {}))

    @property
    def context(self) -> Mapping[str, object]:
        return cast(Mapping[str, object], self.extra)

    def bind(self, **context: object) -> StructuredLogger:
        """Return a sibling adapter whose baseline context includes ``context``."""

        return StructuredLogger(self.logger, context={**self.context, **context})

    @override
    def process(
        self, msg: Any, kwargs: MutableMapping[str, Any]
    ) -> tuple[Any, MutableMapping[str, Any]]:
        extra = _as_dict(kwargs.get("extra"))
        event = kwargs.pop("event", None) or extra.pop("event", None)
        if not isinstance(event, str):
            raise TypeError("Structured logs require an 'event' field.")

        merged = {**self.context, **_as_dict(kwargs.pop("context", None), strict=True)}
        merged.update(extra)
        kwargs["extra"] = {"event": event, "context": merged}
        return msg, kwargs


def _as_dict(value: object, *, strict: bool = False) -> dict[str, object]:
    if value is None:
        return {}
    if isinstance(value, Mapping):
        return dict(cast(Mapping[str, object], value))
    if strict:
        raise TypeError("context must be a mapping when provided.")
    return {}


def get_logger(
    name: str,
    *,
    context: Mapping[str, object] | None = None,
) -> StructuredLogger:
    """Return a :class:`StructuredLogger` scoped to ``name``."""

    return StructuredLogger(logging.getLogger(name), context=context)


def configure_logging(
    *,
    level: int | str | None = None,
    json_mode: bool | None = None,
    env: Mapping[str, str] | None = None,
    force: bool = False,
) -> None:
    """Install a single stderr handler on the root logger.

    Explicit arguments win over ``BUILDGATE_LOG_LEVEL`` and
    ``BUILDGATE_LOG_FORMAT`` (``json`` or ``text``). When the host application
    already installed handlers only the level is adjusted, unless ``force``.
    """

    env = os.environ if env is None else env
    resolved_level = _coerce_level(level if level is not None else env.get(LOG_LEVEL_ENV))
    if json_mode is None:
        json_mode = env.get(LOG_FORMAT_ENV, "text").strip().lower() == "json"

    root = logging.getLogger()
    if root.handlers and not force:
        root.setLevel(resolved_level)
        return

    logging.config.dictConfig(
        _dict_config(resolved_level, formatter="json" if json_mode else "text")
    )


def _dict_config(level: int, *, formatter: str) -> dict[str, Any]:
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "text": {"()": "buildgate.runtime.logging._TextFormatter"},
            "json": {"()": "buildgate.runtime.logging._JsonFormatter"},
        },
        "handlers": {
            "stderr": {
                "class": "logging.StreamHandler",
                "stream": "ext://sys.stderr",
                "formatter": formatter,
            }
        },
        "root": {"handlers": ["stderr"], "level": level},
    }


class _TextFormatter(logging.Formatter):
    """One line per record: time, level, logger, event, message, ``key=value`` context."""

    def __init__(self) -> None:
        super().__init__(datefmt="%Y-%m-%d %H:%M:%S")

    @override
    def format(self, record: logging.LogRecord) -> str:
        parts = [
            self.formatTime(record, self.datefmt),
            record.levelname,
            record.name,
            str(getattr(record, "event", "-")),
            record.getMessage(),
        ]
        context = getattr(record, "context", None)
        if isinstance(context, Mapping):
            parts.extend(
                f"{key}={value}"
                for key, value in sorted(cast(Mapping[str, object], context).items())
            )
        line = " ".join(parts)
        if record.exc_info:
            line = f"{line}\n{self.formatException(record.exc_info)}"
        return line


class _JsonFormatter(logging.Formatter):
    """Compact JSON records with run identifiers promoted to the top level."""

    @override
    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        event = getattr(record, "event", None)
        if event is not None:
            payload["event"] = event
        context = getattr(record, "context", None)
        if isinstance(context, Mapping) and context:
            context_map = cast(Mapping[str, object], context)
            for key in _PROMOTED_KEYS:
                if key in context_map:
                    payload[key] = context_map[key]
            payload["context"] = dict(context_map)
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=repr, separators=(",", ":"))


def _coerce_level(level: int | str | None) -> int:
    if level is None:
        return logging.INFO
    if isinstance(level, int):
        return level
    try:
        return logging.getLevelNamesMapping()[level.strip().upper()]
    except KeyError:
        raise TypeError(f"Unknown log level: {level!r}") from None
