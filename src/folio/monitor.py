"""
Folio monitor module.

Paginators measure each page fetch: a "page_fetches" counter and a "page_fetch_duration"
gauge, both tagged with the fetch status. Measurements are recorded to the global "monitors"
object unless a paginator is given a monitor of its own. Applications add their own monitors
to "monitors" to forward measurements elsewhere.
"""

import asyncio
import time

from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Literal


# type aliases
Type = Literal["counter", "gauge"]
Tags = dict[str, str]
Value = int | float


_now = lambda: datetime.now(tz=timezone.utc)


@dataclass(kw_only=True)
class Measurement:
    """
    An individual measurement.

    Parameters and attributes:
    • name: name of the measurement, in snake_case
    • tags: key-value pairs that qualify the measurement
    • timestamp: date and time of the measurement  [now]
    • type: type of measurement
    • value: measured value
    • unit: unit of measure
    """

    name: str
    tags: Tags | None = None
    timestamp: datetime = field(default_factory=_now)
    type: Type
    value: Value
    unit: str | None = None

    def __post_init__(self):
        if not self.name:
            raise ValueError("measurement name is required")


class Monitor:
    """Base class for a monitor that records measurements."""

    async def record(self, measurement: Measurement) -> None:
        raise NotImplementedError


class Monitors(Monitor, list[Monitor]):
    """Monitor that records each measurement to every monitor it contains."""

    async def record(self, measurement: Measurement):
        await asyncio.gather(*(monitor.record(measurement) for monitor in self))


monitors = Monitors()


async def record(measurement: Measurement, monitor: Monitor | None = None):
    """Record a measurement to a monitor, or to the global monitors if none is given."""
    await (monitor if monitor is not None else monitors).record(measurement)


@asynccontextmanager
async def measure_fetch(*, tags: Tags | None = None, monitor: Monitor | None = None):
    """
    An asynchronous context manager that measures a page fetch performed within it.

    Parameters:
    • tags: key-value pairs that qualify the measurements
    • monitor: monitor to record measurements  [global monitors]

    On exit, a "page_fetches" counter and a "page_fetch_duration" gauge in seconds are recorded,
    with a "status" tag of "success", or "failure" if an exception was raised. The exception is
    then re-raised. A cancelled fetch is not measured.
    """
    begin = time.perf_counter()
    try:
        yield
    except Exception:
        await _record_fetch(tags, "failure", time.perf_counter() - begin, monitor)
        raise
    await _record_fetch(tags, "success", time.perf_counter() - begin, monitor)


async def _record_fetch(tags: Tags | None, status: str, duration: float, monitor: Monitor | None):
    tags = {**(tags or {}), "status": status}
    await record(Measurement(name="page_fetches", type="counter", value=1, tags=tags), monitor)
    await record(
        Measurement(name="page_fetch_duration", type="gauge", value=duration, unit="s", tags=tags),
        monitor,
    )
