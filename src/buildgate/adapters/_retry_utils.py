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

"""Pull retry hints and payloads out of provider SDK exceptions."""

from __future__ import annotations

from collections.abc import Mapping
from datetime import timedelta
from typing import Any, cast


def coerce_retry_after(value: object) -> timedelta | None:
    """Return a positive duration from seconds, digit strings or a timedelta."""

    if isinstance(value, timedelta):
        return value if value > timedelta(0) else None
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return timedelta(seconds=float(value)) if value > 0 else None
    if isinstance(value, str) and value.strip().isdigit():
        seconds = int(value.strip())
        return timedelta(seconds=seconds) if seconds > 0 else None
    return None


def retry_after_from_headers(headers: object) -> timedelta | None:
    if not isinstance(headers, Mapping):
        return None
    normalized = {
        str(key).lower(): value
        for key, value in cast(Mapping[object, object], headers).items()
    }
    return coerce_retry_after(normalized.get("retry-after"))


def retry_after_from_error(error: object) -> timedelta | None:
    """Look for a retry-after hint on the error, its headers, or its response."""

    direct = coerce_retry_after(getattr(error, "retry_after", None))
    if direct is not None:
        return direct

    from_headers = retry_after_from_headers(getattr(error, "headers", None))
    if from_headers is not None:
        return from_headers

    response = cast(object | None, getattr(error, "response", None))
    if isinstance(response, Mapping):
        response_mapping = cast(Mapping[str, object], response)
        return retry_after_from_headers(
            response_mapping.get("headers")
        ) or coerce_retry_after(response_mapping.get("retry_after"))
    return retry_after_from_headers(getattr(response, "headers", None))


def extract_error_payload(error: object) -> dict[str, Any] | None:
    """Return the error body attached to an SDK exception, if any."""

    for attribute in ("response", "body"):
        candidate = getattr(error, attribute, None)
        if isinstance(candidate, Mapping):
            mapping = cast(Mapping[object, Any], candidate)
            return {str(key): value for key, value in mapping.items()}
    return None


__all__ = [
    "coerce_retry_after",
    "extract_error_payload",
    "retry_after_from_error",
    "retry_after_from_headers",
]
