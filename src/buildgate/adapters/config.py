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

"""Typed configuration for the Anthropic oracle."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Final

from ..dataclasses import FrozenDataclass

__all__ = ["AnthropicClientConfig", "AnthropicModelConfig"]

# Attribute name -> Messages API parameter.
_REQUEST_PARAMS: Final = (
    ("temperature", "temperature"),
    ("top_p", "top_p"),
    ("top_k", "top_k"),
    ("stop", "stop_sequences"),
    ("metadata", "metadata"),
)


def _present(config: object, names: tuple[str, ...]) -> dict[str, Any]:
    return {
        name: getattr(config, name)
        for name in names
        if getattr(config, name) is not None
    }


@FrozenDataclass()
class AnthropicClientConfig:
    """Constructor arguments for ``anthropic.Anthropic``.

    ``max_retries`` defaults to 0 so rate limits reach the driver, which owns
    the wait policy and the turn accounting. ``None`` fields are left to the
    SDK defaults (``api_key`` then comes from ``ANTHROPIC_API_KEY``).
    """

    api_key: str | None = None
    base_url: str | None = None
    timeout: float | None = None
    max_retries: int | None = 0

    def __post_init__(self) -> None:
        if self.timeout is not None and self.timeout <= 0:
            raise ValueError("timeout must be positive.")
        if self.max_retries is not None and self.max_retries < 0:
            raise ValueError("max_retries must be non-negative.")

    def to_client_kwargs(self) -> dict[str, Any]:
        return _present(self, ("api_key", "base_url", "timeout", "max_retries"))


@FrozenDataclass()
class AnthropicModelConfig:
    """Sampling parameters merged into every Messages API request.

    The reply-length cap is not configured here; each request carries it.
    """

    temperature: float | None = None
    top_p: float | None = None
    top_k: int | None = None
    stop: tuple[str, ...] | None = None
    metadata: Mapping[str, str] | None = None

    def __post_init__(self) -> None:
        for name in ("temperature", "top_p"):
            value = getattr(self, name)
            if value is not None and not 0.0 <= value <= 1.0:
                raise ValueError(f"{name} must be between 0 and 1.")
        if self.top_k is not None and self.top_k < 1:
            raise ValueError("top_k must be at least 1.")

    def to_request_params(self) -> dict[str, Any]:
        params: dict[str, Any] = {}
        for name, wire in _REQUEST_PARAMS:
            value = getattr(self, name)
            if value is None:
                continue
            if name == "stop":
                value = list(value)
            elif name == "metadata":
                value = dict(value)
            params[wire] = value
        return params
