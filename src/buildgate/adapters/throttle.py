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

"""Rate-limit wait policy for oracle exchanges.

Waiting and retrying the same turn after a :class:`RateLimitError` is the
only automatic retry in the system. The sleeper and jitter are
injectable so tests never actually sleep.
"""

from __future__ import annotations

import random
import time
from datetime import timedelta
from typing import Protocol

from ..dataclasses import FrozenDataclass


class SleeperProvider(Protocol):
    def __call__(self, delay: timedelta) -> None: ...


class JitterProvider(Protocol):
    def __call__(self, low: float, high: float) -> float: ...


def _default_sleeper(delay: timedelta) -> None:
    time.sleep(delay.total_seconds())


def _default_jitter(low: float, high: float) -> float:
    return random.uniform(low, high)  # nosec B311


_DEFAULT_MAX_RETRIES = 5
_DEFAULT_BASE_DELAY = timedelta(seconds=10)
_DEFAULT_MAX_DELAY = timedelta(seconds=60)


@FrozenDataclass()
class ThrottleProviders:
    """Injectable time primitives used while waiting out a rate limit."""

    sleeper: SleeperProvider = _default_sleeper
    jitter: JitterProvider = _default_jitter


def new_throttle_providers(
    *,
    sleeper: SleeperProvider | None = None,
    jitter: JitterProvider | None = None,
) -> ThrottleProviders:
    """Return providers with any ``None`` argument replaced by the default."""

    return ThrottleProviders(
        sleeper=sleeper or _default_sleeper,
        jitter=jitter or _default_jitter,
    )


DEFAULT_THROTTLE_PROVIDERS = ThrottleProviders()


@FrozenDataclass()
class ThrottlePolicy:
    """How the driver reacts to a rate-limited exchange.

    Attributes:
        max_retries: Retries allowed for one turn before the run fails.
        base_delay: Minimum wait before retrying.
        max_delay: Upper bound of the exponential wait.
        consumes_turn: Whether a rate-limited attempt spends a turn of the
            run's turn budget.
    """

    max_retries: int = _DEFAULT_MAX_RETRIES
    base_delay: timedelta = _DEFAULT_BASE_DELAY
    max_delay: timedelta = _DEFAULT_MAX_DELAY
    consumes_turn: bool = True


def new_throttle_policy(
    *,
    max_retries: int = _DEFAULT_MAX_RETRIES,
    base_delay: timedelta = _DEFAULT_BASE_DELAY,
    max_delay: timedelta = _DEFAULT_MAX_DELAY,
    consumes_turn: bool = True,
) -> ThrottlePolicy:
    """Return a validated throttle policy."""

    if max_retries < 0:
        msg = "Throttle max_retries must not be negative."
        raise ValueError(msg)
    if base_delay <= timedelta(0):
        msg = "Throttle base_delay must be positive."
        raise ValueError(msg)
    if max_delay < base_delay:
        msg = "Throttle max_delay must be at least base_delay."
        raise ValueError(msg)
    return ThrottlePolicy(
        max_retries=max_retries,
        base_delay=base_delay,
        max_delay=max_delay,
        consumes_turn=consumes_turn,
    )


def sleep_for(delay: timedelta, *, providers: ThrottleProviders | None = None) -> None:
    (providers or DEFAULT_THROTTLE_PROVIDERS).sleeper(delay)


def jittered_backoff(
    *,
    policy: ThrottlePolicy,
    attempt: int,
    retry_after: timedelta | None,
    providers: ThrottleProviders | None = None,
) -> timedelta:
    """Return the wait before retry number ``attempt`` (1-indexed).

    The wait is never shorter than ``policy.base_delay`` nor than a
    server-provided ``retry_after``.
    """

    jitter_fn = (providers or DEFAULT_THROTTLE_PROVIDERS).jitter

    capped = min(policy.max_delay, policy.base_delay * 2 ** max(attempt - 1, 0))
    base = max(capped, retry_after or timedelta(0))

    delay = timedelta(seconds=jitter_fn(0, base.total_seconds()))
    delay = max(delay, policy.base_delay)
    if retry_after is not None and delay < retry_after:
        return retry_after
    return delay


__all__ = [
    "DEFAULT_THROTTLE_PROVIDERS",
    "JitterProvider",
    "SleeperProvider",
    "ThrottlePolicy",
    "ThrottleProviders",
    "jittered_backoff",
    "new_throttle_policy",
    "new_throttle_providers",
    "sleep_for",
]
