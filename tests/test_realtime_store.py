"""Tests for the device store and the per-tick metric update."""

import random
from datetime import datetime

from iotdash.domain.models import Device, MetricSample
from iotdash.realtime import DeviceStore, advance_devices


class FixedDrift:
    """Random source returning a constant drift."""

    def __init__(self, drift):
        self.drift = drift

    def uniform(self, low, high):
        return self.drift


NOW = datetime(2024, 5, 1, 14, 7)


def _device(device_id="A", status="online", values=(10.0,), key="cpu"):
    return Device(
        id=device_id,
        name=device_id,
        status=status,
        metrics={key: [MetricSample(timestamp="14:00", value=v) for v in values]},
    )


def test_advance_appends_drifted_sample():
    """Online devices gain one sample stamped HH:MM."""
    (device,) = advance_devices([_device()], rng=FixedDrift(1.0), now=NOW)
    history = device.metrics["cpu"]
    assert len(history) == 2
    assert history[-1].value == 11.0
    assert history[-1].timestamp == "14:07"


def test_advance_clamps_at_zero():
    """Drift never pushes a value below zero."""
    (device,) = advance_devices([_device(values=(1.0,))], rng=FixedDrift(-2.0), now=NOW)
    assert device.metrics["cpu"][-1].value == 0.0


def test_advance_skips_offline_devices():
    """Offline devices are returned untouched."""
    offline = _device(status="offline")
    (device,) = advance_devices([offline], rng=FixedDrift(1.0), now=NOW)
    assert device is offline


def test_advance_caps_history():
    """Only the newest samples up to capacity are kept."""
    (device,) = advance_devices(
        [_device(values=[float(i) for i in range(20)])], rng=FixedDrift(0.0), now=NOW
    )
    history = device.metrics["cpu"]
    assert len(history) == 20
    assert history[0].value == 1.0
    assert history[-1].value == 19.0


def test_advance_keeps_empty_histories():
    """Empty histories stay empty."""
    device = Device(id="A", name="A", metrics={"cpu": []})
    (advanced,) = advance_devices([device], rng=FixedDrift(1.0), now=NOW)
    assert advanced.metrics["cpu"] == []


def test_advance_does_not_mutate_input():
    """Inputs are left unchanged."""
    original = _device()
    advance_devices([original], rng=random.Random(7), now=NOW)
    assert len(original.metrics["cpu"]) == 1


def test_store_versions_every_write():
    """Each write bumps the version used for render caching."""
    store = DeviceStore([_device("A")])
    assert store.version == 0
    assert store.upsert(_device("B")) == 1
    assert len(store) == 2
    assert store.upsert(_device("A", values=(50.0,))) == 2
    assert store.get("A").metrics["cpu"][0].value == 50.0
    assert store.remove("B") is True
    assert store.remove("B") is False
    assert store.version == 3
    assert [d.id for d in store.snapshot()] == ["A"]


def test_snapshot_is_immutable_sequence():
    """Readers get a tuple that later writes do not touch."""
    store = DeviceStore([_device("A")])
    before = store.snapshot()
    store.replace([])
    assert isinstance(before, tuple)
    assert len(before) == 1
    assert store.get("A") is None
