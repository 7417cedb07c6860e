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

"""Base exception hierarchy for :mod:`buildgate`."""

from __future__ import annotations

from typing import ClassVar, Literal

ErrorKind = Literal[
    "PathEscape",
    "OversizeWrite",
    "OversizeChunk",
    "OversizeFile",
    "UnknownTool",
    "NotFound",
    "InvalidArguments",
    "InvalidTarget",
    "ManifestMissing",
    "ManifestPending",
    "ManifestInvalid",
    "ProtocolViolation",
    "CircuitBroken",
    "ValidationFailed",
    "TurnBudgetExceeded",
    "TransientRateLimit",
    "OracleFailure",
    "Internal",
]
"""Stable error codes surfaced to the oracle and in run reports."""


class BuildGateError(Exception):
    """Base class for all buildgate exceptions.

    Every subclass carries a stable :data:`ErrorKind` code so callers can
    branch on the failure without matching message text. Subclasses may also
    inherit from a builtin exception type (``PermissionError``,
    ``ValueError``, ...) so generic handlers keep working.

    Example:
        Catch any buildgate-specific error::

            try:
                gateway.write("index.html", html)
            except BuildGateError as e:
                logger.error("write failed: %s", e.kind)
    """

    kind: ClassVar[ErrorKind] = "Internal"


class ToolArgumentsError(BuildGateError, ValueError):
    """Raised when a tool call's arguments do not match its schema.

    Typical causes are a missing ``path`` or a ``content`` value that is
    absent or not a string, which is what a reply truncated in the middle of
    a tool call looks like on ingress.
    """

    kind: ClassVar[ErrorKind] = "InvalidArguments"


class UnknownToolError(BuildGateError, LookupError):
    """Raised when the oracle requests an operation outside the tool schema."""

    kind: ClassVar[ErrorKind] = "UnknownTool"


class ConfigError(BuildGateError, ValueError):
    """Raised when run configuration is missing or invalid."""

    kind: ClassVar[ErrorKind] = "Internal"


__all__ = [
    "BuildGateError",
    "ConfigError",
    "ErrorKind",
    "ToolArgumentsError",
    "UnknownToolError",
]
