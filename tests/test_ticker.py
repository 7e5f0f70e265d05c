"""Tests for the fixed-period tick."""

import asyncio
import random

import pytest

from iotdash.domain.models import AlarmRule, Device, MetricSample
from iotdash.realtime import AlarmEngine, DeviceStore, Ticker


def _store():
    return DeviceStore(
        [
            Device(
                id="DEV-1",
                name="Gateway",
                metrics={"cpu": [MetricSample(timestamp="10:00", value=95.0)]},
            ),
            Device(
                id="DEV-2",
                name="Sensor",
                metrics={"cpu": [MetricSample(timestamp="10:00", value=10.0)]},
            ),
        ]
    )


def _alarms():
    return AlarmEngine([AlarmRule(id="R1", metric_key="cpu", operator=">", threshold=80)])


@pytest.mark.asyncio
async def test_tick_updates_then_evaluates():
    """Alarms see the values written by the same tick."""
    store = _store()
    ticker = Ticker(store, _alarms(), rng=random.Random(42))
    fired = await ticker.tick_once()
    assert store.version == 1
    assert len(store.get("DEV-1").metrics["cpu"]) == 2
    assert [e.device_id for e in fired] == ["DEV-1"]
    assert fired[0].value == store.get("DEV-1").metrics["cpu"][-1].value


@pytest.mark.asyncio
async def test_two_ticks_keep_one_active_event():
    """A device staying above threshold does not refire."""
    alarms = _alarms()
    ticker = Ticker(_store(), alarms, rng=random.Random(1))
    await ticker.tick_once()
    await ticker.tick_once()
    assert ticker.ticks == 2
    assert len(alarms.active_events()) == 1


@pytest.mark.asyncio
async def test_start_and_stop_are_idempotent():
    """The loop ticks in the background and stops cleanly."""
    ticker = Ticker(_store(), _alarms(), interval_seconds=0.01, rng=random.Random(3))
    ticker.start()
    ticker.start()
    assert ticker.running is True
    await asyncio.sleep(0.05)
    await ticker.stop()
    await ticker.stop()
    assert ticker.running is False
    assert ticker.ticks >= 1
