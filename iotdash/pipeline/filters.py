"""
Filter engine: reduce a device collection to the subset matching a filter
state, and window metric histories by the reserved time-range key.

Both operations return new collections; input devices are never mutated.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, List, Mapping, Optional, Sequence

from ..domain.models import ALL, TIME_RANGE_KEY, Device

logger = logging.getLogger(__name__)

TIME_RANGE_POINTS = {"1h": 5, "6h": 10}
DEFAULT_TIME_RANGE_POINTS = 20


def is_active(value: Any) -> bool:
    """Return True when a filter value restricts anything."""
    if value is None or value == ALL:
        return False
    if isinstance(value, str) and not value:
        return False
    return True


def _property_value(device: Device, key: str) -> Any:
    value = getattr(device, key, None)
    if isinstance(value, Enum):
        return value.value
    return value


def _device_matches(device: Device, key: str, filter_value: Any) -> bool:
    prop = _property_value(device, key)
    if isinstance(prop, str) and isinstance(filter_value, str):
        if filter_value.lower() in prop.lower():
            return True
    return str(prop) == str(filter_value) or device.name == filter_value


def apply_filters(
    devices: Sequence[Device], filters: Mapping[str, Any]
) -> List[Device]:
    """Keep devices passing every active filter key.

    Within one key a device passes on a case-insensitive substring match of a
    string property, an exact match of the stringified property, or an exact
    match of its display name. Keys are combined with AND. The
    ``_time_range`` key is ignored here; see :func:`apply_time_range`.
    """
    result = list(devices)
    for key, value in filters.items():
        if key == TIME_RANGE_KEY or not is_active(value):
            continue
        result = [d for d in result if _device_matches(d, key, value)]
    logger.debug(
        "filters.applied",
        extra={"input": len(devices), "output": len(result), "keys": list(filters)},
    )
    return result


def time_range_points(value: Any) -> Optional[int]:
    """Number of trailing points kept for a time-range filter value.

    Returns None when the time range is absent or inactive.
    """
    if not is_active(value):
        return None
    return TIME_RANGE_POINTS.get(str(value), DEFAULT_TIME_RANGE_POINTS)


def apply_time_range(
    devices: Sequence[Device], filters: Mapping[str, Any]
) -> List[Device]:
    """Keep only the trailing window of every metric history."""
    limit = time_range_points(filters.get(TIME_RANGE_KEY))
    if limit is None:
        return list(devices)
    return [
        device.model_copy(
            update={
                "metrics": {
                    key: list(history[-limit:])
                    for key, history in device.metrics.items()
                }
            }
        )
        for device in devices
    ]
