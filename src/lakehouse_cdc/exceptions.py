"""Exceptions raised by the lakehouse CDC harness.

Each error keeps its constructor arguments in ``args`` so it survives
pickling, e.g. when pytest-xdist ships a failure back from a worker.
"""

from __future__ import annotations
from typing import Any, Dict, Optional, Sequence


class HarnessError(Exception):
    """Base class for harness errors."""


class PollTimeoutError(HarnessError):
    """A target did not become visible within its deadline."""

    def __init__(self, target: str, timeout: float, last_error: Optional[BaseException] = None):
        super().__init__(target, timeout, last_error)
        self.target = target
        self.timeout = timeout
        self.last_error = last_error

    def __str__(self) -> str:
        return f"{self.target} was not satisfied within {self.timeout:g}s"


class ConnectorTimeoutError(PollTimeoutError):
    """A connector did not reach the RUNNING state in time."""

    @property
    def name(self) -> str:
        return self.target

    def __str__(self) -> str:
        return f"Connector {self.target} did not reach RUNNING state within {self.timeout:g}s"


class UnexpectedResponseError(HarnessError):
    """The control plane answered with a status code outside the expected set."""

    def __init__(self, method: str, url: str, status_code: int, body: str = ""):
        super().__init__(method, url, status_code, body)
        self.method = method
        self.url = url
        self.status_code = status_code
        self.body = body

    def __str__(self) -> str:
        return f"{self.method} {self.url} returned HTTP {self.status_code}: {self.body[:200]}"


class WarmupError(HarnessError):
    """A pipeline warm-up record never reached its sink."""

    def __init__(self, sink: str, timeout: float):
        super().__init__(sink, timeout)
        self.sink = sink
        self.timeout = timeout

    def __str__(self) -> str:
        return (
            f"Pipeline warmup failed: warmup record did not appear in {self.sink} "
            f"within {self.timeout:g}s"
        )


class PartialWarmupError(HarnessError):
    """One or more sinks failed while others may have warmed up.

    Attributes:
        failures: Error per failed sink, keyed by sink label
        reports: Reports of the sinks that did warm up
    """

    def __init__(self, failures: Dict[str, BaseException], reports: Sequence[Any] = ()):
        super().__init__(failures, reports)
        self.failures = dict(failures)
        self.reports = list(reports)

    @property
    def sinks(self) -> list:
        return list(self.failures)

    def __str__(self) -> str:
        return "Warmup failed for " + "; ".join(
            f"{sink}: {error}" for sink, error in self.failures.items())
