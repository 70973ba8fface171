import asyncio
import folio.monitor
import pytest

from datetime import datetime
from folio.monitor import Measurement, Monitor, Monitors


pytestmark = pytest.mark.asyncio


class MyMonitor(Monitor):
    def __init__(self):
        self.measurements = []

    async def record(self, measurement: Measurement):
        self.measurements.append(measurement)


async def test_measure_fetch_success():
    monitor = MyMonitor()
    async with folio.monitor.measure_fetch(tags={"paginator": "games"}, monitor=monitor):
        await asyncio.sleep(0.01)
    counter, duration = monitor.measurements
    assert counter.name == "page_fetches"
    assert counter.type == "counter"
    assert counter.value == 1
    assert counter.tags == {"paginator": "games", "status": "success"}
    assert isinstance(counter.timestamp, datetime)
    assert duration.name == "page_fetch_duration"
    assert duration.type == "gauge"
    assert duration.unit == "s"
    assert duration.value > 0
    assert duration.tags == {"paginator": "games", "status": "success"}


async def test_measure_fetch_failure():
    monitor = MyMonitor()
    with pytest.raises(TypeError):
        async with folio.monitor.measure_fetch(monitor=monitor):
            raise TypeError
    assert [m.tags for m in monitor.measurements] == [{"status": "failure"}] * 2


async def test_measure_fetch_cancelled():
    monitor = MyMonitor()

    async def fetch():
        async with folio.monitor.measure_fetch(monitor=monitor):
            await asyncio.Event().wait()

    task = asyncio.create_task(fetch())
    await asyncio.sleep(0)
    task.cancel()
    await asyncio.wait({task})
    assert task.cancelled()
    assert monitor.measurements == []


async def test_monitors_record_to_all():
    first, second = MyMonitor(), MyMonitor()
    monitors = Monitors([first, second])
    await folio.monitor.record(Measurement(name="n", type="counter", value=1), monitors)
    assert len(first.measurements) == len(second.measurements) == 1


async def test_record_to_global_monitors():
    monitor = MyMonitor()
    folio.monitor.monitors.append(monitor)
    try:
        await folio.monitor.record(Measurement(name="n", type="gauge", value=0.5))
    finally:
        folio.monitor.monitors.remove(monitor)
    assert len(monitor.measurements) == 1


async def test_measurement_requires_name():
    with pytest.raises(ValueError):
        Measurement(name="", type="counter", value=1)
