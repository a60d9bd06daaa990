"""Poll-until-visible helpers for eventually consistent sinks.

Every downstream store in the stack (Iceberg through Trino, Elasticsearch,
Redis) only reflects a source write after an unknown propagation delay. The
helpers here repeatedly run a read probe at a fixed interval until it
returns a match or a deadline passes.

``poll_until_found`` never raises for the "not visible yet" case: it returns
a :class:`PollResult` whose ``found`` flag is false. Probe errors listed in
``transient`` (by default any ``Exception``) are treated as "not found yet",
because the read surface itself may not exist during a cold start. Anything
else propagates immediately.

``wait_until`` is the raising flavour used by readiness gates.
"""

from __future__ import annotations
import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Generic, List, Optional, Tuple, Type, TypeVar

from .exceptions import PollTimeoutError

logger = logging.getLogger(__name__)

T = TypeVar("T")

TransientErrors = Tuple[Type[BaseException], ...]
DEFAULT_TRANSIENT: TransientErrors = (Exception,)


def has_matches(value: Any) -> bool:
    """Default match predicate: non-empty collections and positive counts."""
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value > 0
    try:
        return len(value) > 0
    except TypeError:
        return True


@dataclass(frozen=True)
class PollAttempt:
    """One execution of a probe."""

    timestamp: float
    found: bool
    error: Optional[str] = None


@dataclass(frozen=True)
class PollResult(Generic[T]):
    """Outcome of a poll loop: ``Found(value)`` when ``found`` else ``NotFound``."""

    found: bool
    value: Optional[T] = None
    attempts: Tuple[PollAttempt, ...] = ()
    elapsed: float = 0.0
    last_error: Optional[BaseException] = None

    def __bool__(self) -> bool:
        return self.found

    @property
    def attempt_count(self) -> int:
        return len(self.attempts)


class _PollLoop:
    """Bookkeeping shared by the sync and async loops."""

    def __init__(
        self,
        max_wait: float,
        interval: float,
        predicate: Callable[[Any], bool],
        target: str,
        start: float,
    ):
        if max_wait < 0:
            raise ValueError("max_wait must be non-negative")
        if interval <= 0:
            raise ValueError("interval must be positive")
        self.max_wait = max_wait
        self.interval = interval
        self.predicate = predicate
        self.target = target
        self.start = start
        self.attempts: List[PollAttempt] = []
        self.last_error: Optional[BaseException] = None

    def record(self, now: float, value: Any, error: Optional[BaseException]) -> Optional[PollResult]:
        """Store an attempt; return the final result if polling should stop."""
        if error is not None:
            self.last_error = error
            logger.debug(f"Probe for {self.target} failed transiently: {error!r}")
        found = error is None and self.predicate(value)
        self.attempts.append(PollAttempt(
            timestamp=now,
            found=found,
            error=repr(error) if error is not None else None,
        ))
        elapsed = now - self.start

        if found:
            logger.debug(
                f"{self.target} visible after {len(self.attempts)} attempt(s), {elapsed:.1f}s")
            return self._result(True, value, elapsed)
        if elapsed >= self.max_wait:
            logger.info(
                f"{self.target} not visible after {len(self.attempts)} attempt(s), {elapsed:.1f}s")
            return self._result(False, None, elapsed)
        return None

    def delay(self, now: float) -> float:
        """Sleep before the next attempt, never overshooting the deadline."""
        remaining = self.max_wait - (now - self.start)
        return max(0.0, min(self.interval, remaining))

    def _result(self, found: bool, value: Any, elapsed: float) -> PollResult:
        return PollResult(
            found=found,
            value=value,
            attempts=tuple(self.attempts),
            elapsed=elapsed,
            last_error=self.last_error,
        )


def _target_name(probe: Callable[..., Any], target: Optional[str]) -> str:
    return target or getattr(probe, "__name__", "probe")


def poll_until_found(
    probe: Callable[[], T],
    max_wait: float,
    interval: float = 2.0,
    *,
    predicate: Callable[[Any], bool] = has_matches,
    transient: TransientErrors = DEFAULT_TRANSIENT,
    target: Optional[str] = None,
    clock: Optional[Callable[[], float]] = None,
    sleep: Optional[Callable[[float], Any]] = None,
) -> PollResult[T]:
    """Run ``probe`` every ``interval`` seconds until it matches or ``max_wait`` elapses.

    Args:
        probe: Zero-argument read returning a count, a list of matches or a value
        max_wait: Deadline in seconds, measured from the first attempt
        interval: Fixed delay between attempts in seconds
        predicate: Decides whether a probe value is a match
        transient: Exception types treated as "not found yet"
        target: Name used in log messages
        clock: Monotonic clock, injectable for tests
        sleep: Sleep function, injectable for tests

    Returns:
        PollResult with ``found=True`` and the matching value, or ``found=False``
        once the deadline has passed. At least one attempt is always made.
    """
    clock = clock or time.monotonic
    sleep = sleep or time.sleep
    loop = _PollLoop(max_wait, interval, predicate, _target_name(probe, target), clock())
    while True:
        value = None
        error = None
        try:
            value = probe()
        except transient as e:
            error = e
        now = clock()
        result = loop.record(now, value, error)
        if result is not None:
            return result
        sleep(loop.delay(now))


async def apoll_until_found(
    probe: Callable[[], Awaitable[T]],
    max_wait: float,
    interval: float = 2.0,
    *,
    predicate: Callable[[Any], bool] = has_matches,
    transient: TransientErrors = DEFAULT_TRANSIENT,
    target: Optional[str] = None,
) -> PollResult[T]:
    """Coroutine flavour of :func:`poll_until_found`.

    Suspends on ``asyncio.sleep`` between attempts so several independent
    pollers can share one event loop. An in-flight probe is never cancelled;
    the deadline only stops further attempts from being scheduled.
    """
    clock = asyncio.get_running_loop().time
    loop = _PollLoop(max_wait, interval, predicate, _target_name(probe, target), clock())
    while True:
        value = None
        error = None
        try:
            value = await probe()
        except transient as e:
            error = e
        now = clock()
        result = loop.record(now, value, error)
        if result is not None:
            return result
        await asyncio.sleep(loop.delay(now))


def wait_until(
    probe: Callable[[], T],
    timeout: float,
    interval: float = 1.0,
    *,
    target: str,
    predicate: Callable[[Any], bool] = has_matches,
    transient: TransientErrors = DEFAULT_TRANSIENT,
    clock: Optional[Callable[[], float]] = None,
    sleep: Optional[Callable[[float], Any]] = None,
) -> T:
    """Like :func:`poll_until_found` but raise ``PollTimeoutError`` on deadline.

    Returns:
        The first probe value accepted by ``predicate``

    Raises:
        PollTimeoutError: If nothing matched within ``timeout`` seconds
    """
    result = poll_until_found(
        probe,
        timeout,
        interval,
        predicate=predicate,
        transient=transient,
        target=target,
        clock=clock,
        sleep=sleep,
    )
    if not result.found:
        raise PollTimeoutError(target, timeout, result.last_error)
    return result.value
