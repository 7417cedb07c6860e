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

"""Run configuration and its layered loading.

Values are resolved from a config file (TOML or YAML), then environment
variables, then CLI overrides; later layers win.
"""

from __future__ import annotations

import os
import tomllib
from collections.abc import Mapping, MutableMapping
from dataclasses import fields
from datetime import timedelta
from pathlib import Path
from typing import Any, Final, cast

import yaml

from .adapters import ThrottlePolicy, new_throttle_policy
from .adapters.anthropic import DEFAULT_MODEL
from .breaker import DEFAULT_FAILURE_THRESHOLD
from .contracts import parse_project_type
from .dataclasses import FrozenDataclass
from .errors import ConfigError
from .manifest import DEFAULT_PROJECT_BUDGET_BYTES
from .report import DEFAULT_INPUT_COST_PER_MTOK, DEFAULT_OUTPUT_COST_PER_MTOK
from .workspace import MAX_CHUNK_BYTES, MAX_FILE_BYTES, WARN_FILE_BYTES

ENV_PREFIX: Final[str] = "BUILDGATE_"
DEFAULT_WORKSPACE_ROOT: Final[Path] = Path("/workspace")

# Variables understood for compatibility with container entrypoints.
_LEGACY_ENV: Final[dict[str, str]] = {
    "PROMPT": "request",
    "OUTPUT_DIR": "workspace_root",
    "PROJECT_TYPE": "project_type",
}

_SECTIONS: Final[dict[str, dict[str, str]]] = {
    "limits": {
        "max_file_bytes": "max_file_bytes",
        "max_chunk_bytes": "max_chunk_bytes",
        "warn_file_bytes": "warn_file_bytes",
        "project_budget_bytes": "project_budget_bytes",
        "max_turns": "max_turns",
        "max_reply_tokens": "max_reply_tokens",
        "failure_threshold": "failure_threshold",
    },
    "rate_limit": {
        "wait_seconds": "rate_limit_wait_seconds",
        "max_retries": "rate_limit_max_retries",
        "consumes_turn": "rate_limit_consumes_turn",
    },
    "cost": {
        "input_per_mtok": "input_cost_per_mtok",
        "output_per_mtok": "output_cost_per_mtok",
    },
}


@FrozenDataclass()
class RunConfig:
    """Every tunable of one generation run.

    The Anthropic API key is deliberately absent; the client reads
    ``ANTHROPIC_API_KEY`` itself.
    """

    request: str
    workspace_root: Path = DEFAULT_WORKSPACE_ROOT
    project_type: str | None = None
    model: str = DEFAULT_MODEL
    max_turns: int = 50
    max_reply_tokens: int = 4096
    max_file_bytes: int = MAX_FILE_BYTES
    max_chunk_bytes: int = MAX_CHUNK_BYTES
    warn_file_bytes: int = WARN_FILE_BYTES
    project_budget_bytes: int = DEFAULT_PROJECT_BUDGET_BYTES
    failure_threshold: int = DEFAULT_FAILURE_THRESHOLD
    rate_limit_wait_seconds: float = 10.0
    rate_limit_max_retries: int = 5
    rate_limit_consumes_turn: bool = True
    contracts_dir: Path | None = None
    input_cost_per_mtok: float = DEFAULT_INPUT_COST_PER_MTOK
    output_cost_per_mtok: float = DEFAULT_OUTPUT_COST_PER_MTOK

    def __post_init__(self) -> None:
        if not self.request.strip():
            raise ConfigError("A generation request is required (PROMPT or --request).")
        if self.project_type is not None and self.project_type.strip():
            _ = parse_project_type(self.project_type)
        for name in (
            "max_turns",
            "max_reply_tokens",
            "max_file_bytes",
            "max_chunk_bytes",
            "warn_file_bytes",
            "project_budget_bytes",
            "failure_threshold",
        ):
            if getattr(self, name) < 1:
                raise ConfigError(f"{name} must be at least 1.")
        if self.max_chunk_bytes > self.max_file_bytes:
            raise ConfigError("max_chunk_bytes must not exceed max_file_bytes.")
        if self.warn_file_bytes > self.max_file_bytes:
            raise ConfigError("warn_file_bytes must not exceed max_file_bytes.")
        if self.rate_limit_wait_seconds <= 0:
            raise ConfigError("rate_limit_wait_seconds must be positive.")
        if self.rate_limit_max_retries < 0:
            raise ConfigError("rate_limit_max_retries must not be negative.")
        if self.input_cost_per_mtok < 0 or self.output_cost_per_mtok < 0:
            raise ConfigError("Token prices must not be negative.")

    def throttle_policy(self) -> ThrottlePolicy:
        wait = timedelta(seconds=self.rate_limit_wait_seconds)
        return new_throttle_policy(
            max_retries=self.rate_limit_max_retries,
            base_delay=wait,
            max_delay=wait * 6,
            consumes_turn=self.rate_limit_consumes_turn,
        )


def load_run_config(
    source: Path | Mapping[str, Any] | None = None,
    cli_overrides: object | None = None,
    *,
    env: Mapping[str, str] | None = None,
) -> RunConfig:
    """Resolve a :class:`RunConfig` from file, environment and CLI layers.

    Parameters
    ----------
    source:
        Path to a ``.toml``/``.yaml`` file, an in-memory mapping (tests), or
        ``None`` for no file layer.
    cli_overrides:
        Mapping or namespace whose non-``None`` values win over every other
        layer. Keys mirror ``RunConfig`` field names.
    env:
        Optional environment mapping. Defaults to :data:`os.environ`.
    """

    env_map = dict(os.environ if env is None else env)

    if isinstance(source, Mapping):
        raw: dict[str, object] = dict(cast(Mapping[str, object], source))
    elif source is not None:
        raw = _load_config_file(source)
    else:
        raw = {}

    config = _normalise_config(raw)
    config = _apply_environment_overrides(config=config, env=env_map)
    config = _apply_cli_overrides(config=config, overrides=cli_overrides)
    return _build_config(config)


def _load_config_file(path: Path) -> dict[str, object]:
    if not path.exists():
        msg = f"Configuration file not found: {path}"
        raise ConfigError(msg)

    suffix = path.suffix.lower()
    data: object
    try:
        if suffix == ".toml" or not suffix:
            with path.open("rb") as handle:
                data = tomllib.load(handle)
        elif suffix in {".yaml", ".yml"}:
            with path.open("r", encoding="utf-8") as handle:
                data = yaml.safe_load(handle) or {}
        else:
            msg = f"Unsupported configuration format: {path.suffix}"
            raise ConfigError(msg)
    except (tomllib.TOMLDecodeError, yaml.YAMLError) as error:
        msg = f"Invalid configuration file {path}: {error}"
        raise ConfigError(msg) from error

    if not isinstance(data, MutableMapping):
        msg = "Configuration file must contain a mapping at the root."
        raise ConfigError(msg)

    typed_data: dict[str, object] = {}
    for key, value in cast(MutableMapping[object, object], data).items():
        if not isinstance(key, str):
            msg = f"Configuration keys must be strings (got {key!r})."
            raise ConfigError(msg)
        typed_data[key] = value
    return typed_data


def _normalise_config(raw: Mapping[str, object]) -> dict[str, object]:
    known = {field.name for field in fields(RunConfig)}
    config: dict[str, object] = {}
    for key, value in raw.items():
        if key in _SECTIONS:
            if not isinstance(value, Mapping):
                msg = f"[{key}] must be a table."
                raise ConfigError(msg)
            section_fields = _SECTIONS[key]
            for section_key, section_value in cast(Mapping[str, object], value).items():
                if section_key not in section_fields:
                    msg = f"Unknown setting {key}.{section_key}."
                    raise ConfigError(msg)
                config[section_fields[section_key]] = section_value
        elif key in known:
            config[key] = value
        else:
            msg = f"Unknown setting {key!r}."
            raise ConfigError(msg)
    return config


def _apply_environment_overrides(
    *, config: dict[str, object], env: Mapping[str, str]
) -> dict[str, object]:
    for variable, name in _LEGACY_ENV.items():
        if env.get(variable):
            config[name] = env[variable]
    for field in fields(RunConfig):
        variable = f"{ENV_PREFIX}{field.name.upper()}"
        if variable in env:
            config[field.name] = env[variable]
    return config


def _apply_cli_overrides(
    *, config: dict[str, object], overrides: object | None
) -> dict[str, object]:
    if overrides is None:
        return config

    if isinstance(overrides, Mapping):
        materialised = dict(cast(Mapping[str, object], overrides))
    elif hasattr(overrides, "__dict__"):
        materialised = {key: getattr(overrides, key) for key in vars(overrides)}
    else:
        msg = "CLI overrides must be a mapping or support attribute access."
        raise TypeError(msg)

    known = {field.name for field in fields(RunConfig)}
    for key, value in materialised.items():
        if value is None or key not in known:
            continue
        config[key] = value
    return config


def _build_config(config: Mapping[str, object]) -> RunConfig:
    kwargs: dict[str, Any] = {}
    for field in fields(RunConfig):
        if field.name not in config:
            continue
        value = _coerce(field.name, config[field.name])
        if value is None and field.name == "workspace_root":
            continue
        kwargs[field.name] = value
    if "request" not in kwargs:
        raise ConfigError("A generation request is required (PROMPT or --request).")
    return RunConfig(**kwargs)


_INT_FIELDS: Final = frozenset(
    {
        "max_turns",
        "max_reply_tokens",
        "max_file_bytes",
        "max_chunk_bytes",
        "warn_file_bytes",
        "project_budget_bytes",
        "failure_threshold",
        "rate_limit_max_retries",
    }
)
_FLOAT_FIELDS: Final = frozenset(
    {"rate_limit_wait_seconds", "input_cost_per_mtok", "output_cost_per_mtok"}
)
_PATH_FIELDS: Final = frozenset({"workspace_root", "contracts_dir"})


def _coerce(name: str, value: object) -> object:
    if name in _INT_FIELDS:
        return _coerce_int(name, value)
    if name in _FLOAT_FIELDS:
        return _coerce_float(name, value)
    if name in _PATH_FIELDS:
        return _coerce_path(name, value)
    if name == "rate_limit_consumes_turn":
        return _coerce_bool(name, value)
    if name == "project_type" and value == "":
        return None
    if not isinstance(value, str):
        msg = f"{name} must be a string."
        raise ConfigError(msg)
    return value


def _coerce_int(name: str, value: object) -> int:
    if isinstance(value, bool):
        msg = f"{name} must be an integer."
        raise ConfigError(msg)
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError as exc:
            msg = f"{name} must be an integer: {value!r}"
            raise ConfigError(msg) from exc
    msg = f"{name} must be an integer."
    raise ConfigError(msg)


def _coerce_float(name: str, value: object) -> float:
    if isinstance(value, bool):
        msg = f"{name} must be a number."
        raise ConfigError(msg)
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError as exc:
            msg = f"{name} must be a number: {value!r}"
            raise ConfigError(msg) from exc
    msg = f"{name} must be a number."
    raise ConfigError(msg)


def _coerce_bool(name: str, value: object) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"1", "true", "yes", "on"}:
            return True
        if lowered in {"0", "false", "no", "off"}:
            return False
    msg = f"{name} must be a boolean: {value!r}"
    raise ConfigError(msg)


def _coerce_path(name: str, value: object) -> Path | None:
    if value is None or value == "":
        return None
    if isinstance(value, Path):
        return value.expanduser()
    if isinstance(value, str):
        return Path(value).expanduser()
    msg = f"{name} must be a path-like value."
    raise ConfigError(msg)


__all__ = ["DEFAULT_WORKSPACE_ROOT", "ENV_PREFIX", "RunConfig", "load_run_config"]
