"""
Versioned device store and the per-tick metric update.

The store holds an immutable tuple of devices and a version counter. Every
write swaps the whole snapshot in one assignment, so readers (the render
pipeline) never observe a partially updated collection, and the version
doubles as the render-cache key.
"""

from __future__ import annotations

import logging
import random
from datetime import datetime
from typing import Iterable, List, Optional, Sequence, Tuple

from ..domain.models import HISTORY_CAPACITY, Device, DeviceStatus, MetricSample
from ..domain.utils.validation import clamp_reading

logger = logging.getLogger(__name__)

DRIFT = 2.0
TIMESTAMP_FORMAT = "%H:%M"


class DeviceStore:
    """Single-writer snapshot of the device catalog."""

    def __init__(self, devices: Iterable[Device] = ()) -> None:
        self._devices: Tuple[Device, ...] = tuple(devices)
        self._version = 0

    @property
    def version(self) -> int:
        return self._version

    def snapshot(self) -> Tuple[Device, ...]:
        return self._devices

    def get(self, device_id: str) -> Optional[Device]:
        for device in self._devices:
            if device.id == device_id:
                return device
        return None

    def replace(self, devices: Iterable[Device]) -> int:
        """Swap in a new snapshot and return the new version."""
        self._devices = tuple(devices)
        self._version += 1
        return self._version

    def upsert(self, device: Device) -> int:
        devices = list(self._devices)
        for i, existing in enumerate(devices):
            if existing.id == device.id:
                devices[i] = device
                break
        else:
            devices.append(device)
        return self.replace(devices)

    def remove(self, device_id: str) -> bool:
        devices = [d for d in self._devices if d.id != device_id]
        if len(devices) == len(self._devices):
            return False
        self.replace(devices)
        return True

    def __len__(self) -> int:
        return len(self._devices)


def _next_sample(
    history: Sequence[MetricSample], rng: random.Random, timestamp: str
) -> MetricSample:
    last = history[-1]
    drifted = last.value + rng.uniform(-DRIFT, DRIFT)
    value = clamp_reading(drifted, min_value=0.0)
    return last.model_copy(update={"value": round(value, 1), "timestamp": timestamp})


def advance_devices(
    devices: Sequence[Device],
    rng: Optional[random.Random] = None,
    now: Optional[datetime] = None,
    capacity: int = HISTORY_CAPACITY,
) -> List[Device]:
    """Append one drifted sample to every history of every online device.

    Non-online devices and empty histories are left as they are; histories
    longer than ``capacity`` lose their oldest samples.
    """
    rng = rng or random.Random()
    timestamp = (now or datetime.now()).strftime(TIMESTAMP_FORMAT)
    advanced: List[Device] = []
    for device in devices:
        if device.status != DeviceStatus.ONLINE:
            advanced.append(device)
            continue
        metrics = {}
        for key, history in device.metrics.items():
            if not history:
                metrics[key] = history
                continue
            updated = [*history, _next_sample(history, rng, timestamp)]
            metrics[key] = updated[-capacity:]
        advanced.append(device.model_copy(update={"metrics": metrics}))
    return advanced
