"""
Series shaping: turn filtered, enriched devices into the numbers a chart
draws.

Shaping modes
-------------
single metric per device
    One scalar per device for the first metric (bar, pie, radar, gauge, kpi).
rows
    One row per device with one column per metric (table).
aligned series
    One cross-device line per metric, right-aligning shorter histories
    (line, area).
scalar
    Aggregate of the per-device scalars (gauge, kpi).

All functions are pure and never mutate their inputs.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from ..domain.models import Aggregation, DataView, Device, MetricSample
from ..domain.utils.aggregation import (
    MissingDataStrategy,
    aggregate_samples,
    coerce_aggregation,
)

logger = logging.getLogger(__name__)

ROW_IDENTITY_FIELDS = ("id", "name", "type", "status", "location", "ip")


@dataclass(frozen=True)
class DeviceScalar:
    """Single aggregated value of one device."""

    device_id: str
    name: str
    value: float
    history_length: int


@dataclass(frozen=True)
class AlignedSeries:
    """Cross-device aggregated line for one metric."""

    metric: str
    aggregation: Aggregation
    data: List[float]


def field_meta(view: Optional[DataView], key: str) -> Tuple[str, str]:
    """Return ``(label, unit)`` for a field from the view model."""
    if view is not None:
        meta = view.model.get(key)
        if meta is not None:
            return meta.alias or key, meta.unit or ""
    return key, ""


def is_status_metric(key: str) -> bool:
    """Status-like metrics carry boolean/state signals, not magnitudes."""
    return "status" in key.lower()


def reduce_history(
    history: Sequence[MetricSample], aggregation: Aggregation
) -> Optional[float]:
    """Reduce one history; LAST reads the final point directly."""
    if not history:
        return None
    if aggregation == Aggregation.LAST:
        return history[-1].value
    return aggregate_samples([s.value for s in history], aggregation)


def shape_single_metric(
    devices: Sequence[Device], metric: Optional[str], aggregation: Aggregation
) -> List[DeviceScalar]:
    """One scalar per device for ``metric``; empty histories are dropped."""
    if not metric:
        return []
    result: List[DeviceScalar] = []
    for device in devices:
        history = device.metrics.get(metric) or []
        value = reduce_history(history, aggregation)
        if value is None:
            continue
        result.append(
            DeviceScalar(
                device_id=device.id,
                name=device.name,
                value=value,
                history_length=len(history),
            )
        )
    return result


def shape_scalar(
    scalars: Sequence[DeviceScalar], aggregation: Aggregation
) -> Optional[float]:
    """Aggregate per-device scalars a second time with the same policy.

    Returns None when there are no scalars; callers render that as "no data".
    """
    if not scalars:
        return None
    return aggregate_samples([s.value for s in scalars], aggregation)


def shape_rows(
    devices: Sequence[Device],
    metrics: Sequence[str],
    aggregations: Mapping[str, Any],
) -> List[Dict[str, Any]]:
    """Build one row per device; a missing metric yields a None cell."""
    rows: List[Dict[str, Any]] = []
    for device in devices:
        row: Dict[str, Any] = {}
        for field in ROW_IDENTITY_FIELDS:
            value = getattr(device, field)
            row[field] = getattr(value, "value", value)
        for metric in metrics:
            aggregation = coerce_aggregation(aggregations.get(metric), Aggregation.LAST)
            row[metric] = reduce_history(device.metrics.get(metric) or [], aggregation)
        rows.append(row)
    return rows


def shape_aligned_series(
    devices: Sequence[Device],
    metrics: Sequence[str],
    aggregations: Mapping[str, Any],
) -> List[AlignedSeries]:
    """One aggregated line per metric across devices.

    Shorter histories are right-aligned against the longest one: index ``i``
    of a device with ``n`` points reads ``history[n - (max_len - i)]``, and
    positions before its first point count as 0.
    """
    bundle: List[AlignedSeries] = []
    for metric in metrics:
        aggregation = coerce_aggregation(aggregations.get(metric), Aggregation.AVG)
        histories = [d.metrics[metric] for d in devices if d.metrics.get(metric)]
        if not histories:
            logger.debug("shaping.series.no_history", extra={"metric": metric})
            continue
        max_len = max(len(h) for h in histories)
        data: List[float] = []
        for i in range(max_len):
            column: List[Optional[float]] = []
            for history in histories:
                idx = len(history) - (max_len - i)
                column.append(history[idx].value if idx >= 0 else None)
            value = aggregate_samples(column, aggregation, MissingDataStrategy.ZERO)
            data.append(value if value is not None else 0.0)
        bundle.append(AlignedSeries(metric=metric, aggregation=aggregation, data=data))
    return bundle


def series_labels(devices: Sequence[Device], metrics: Sequence[str]) -> List[str]:
    """X-axis labels: the first metric's timeline on the first device having it."""
    if not metrics:
        return []
    first = metrics[0]
    for device in devices:
        history = device.metrics.get(first)
        if history:
            return [s.timestamp for s in history]
    return []


def _sort_key(value: Any) -> Tuple[int, Any]:
    if value is None:
        return (2, "")
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return (0, value)
    return (1, str(value))


def sort_rows(
    rows: Sequence[Dict[str, Any]], key: Optional[str], direction: str = "asc"
) -> List[Dict[str, Any]]:
    """Stable sort by column; None cells always sort last."""
    if not key:
        return list(rows)
    present = [r for r in rows if r.get(key) is not None]
    missing = [r for r in rows if r.get(key) is None]
    ordered = sorted(present, key=lambda r: _sort_key(r.get(key)), reverse=direction == "desc")
    return ordered + missing


def paginate(
    rows: Sequence[Dict[str, Any]], page: int, page_size: int
) -> Tuple[List[Dict[str, Any]], int, int]:
    """Return ``(page_rows, page, page_count)`` with ``page`` clamped."""
    page_size = max(1, page_size)
    page_count = max(1, math.ceil(len(rows) / page_size))
    page = min(max(1, page), page_count)
    start = (page - 1) * page_size
    return list(rows[start : start + page_size]), page, page_count
