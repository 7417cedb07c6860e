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

"""Frozen dataclass helpers."""

from __future__ import annotations

import dataclasses
from collections.abc import Callable
from typing import Any, TypedDict, TypeVar, Unpack, cast, dataclass_transform

__all__ = ["FrozenDataclass"]

T = TypeVar("T")


class DataclassOptions(TypedDict, total=False):
    init: bool
    repr: bool
    eq: bool
    order: bool
    unsafe_hash: bool
    frozen: bool
    match_args: bool
    kw_only: bool
    slots: bool


@dataclass_transform(frozen_default=True)
def FrozenDataclass(
    **dataclass_kwargs: Unpack[DataclassOptions],
) -> Callable[[type[T]], type[T]]:
    """Dataclass decorator with frozen, slotted defaults plus an update helper.

    The decorator mirrors :func:`dataclasses.dataclass` while defaulting to
    ``frozen=True`` and ``slots=True``. An ``update(**changes)`` method is
    injected that returns a modified copy via :func:`dataclasses.replace`, so
    ``__post_init__`` validation runs again on the copy.
    """

    options: DataclassOptions = {
        "frozen": True,
        "slots": True,
        **dataclass_kwargs,
    }

    def decorator(cls: type[T]) -> type[T]:
        dataclass_cls = cast(
            Callable[[type[T]], type[T]], dataclasses.dataclass(**options)
        )(cls)
        dataclass_cls.update = _update  # type: ignore[attr-defined]
        return dataclass_cls

    return decorator


def _update(self: Any, **changes: object) -> Any:  # noqa: ANN401
    known = {field.name for field in dataclasses.fields(self)}
    unknown = set(changes) - known
    if unknown:
        joined = ", ".join(sorted(unknown))
        raise TypeError(f"{type(self).__name__}() got unexpected field(s): {joined}")
    return dataclasses.replace(self, **changes)
