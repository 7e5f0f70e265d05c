"""Calculated-field materialization.

Derives one synthetic metric history per calculated field on every device,
aligned to the device's base metric timeline.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Sequence

from ..domain.models import CalculatedField, Device, MetricSample
from ..domain.utils.expression import evaluate_expression

logger = logging.getLogger(__name__)


def _context_at(device: Device, index: int) -> Dict[str, float]:
    context: Dict[str, float] = {}
    for key, history in device.metrics.items():
        context[key] = history[index].value if index < len(history) else 0.0
    return context


def materialize_device(
    device: Device, calculated_fields: Sequence[CalculatedField]
) -> Device:
    """Return ``device`` enriched with one metric per calculated field.

    The base timeline is the first metric present on the device. A device
    without metrics is returned unchanged. Evaluation failures yield 0.
    """
    if not calculated_fields or not device.metrics:
        return device
    base_key = next(iter(device.metrics))
    base_history = device.metrics[base_key]
    contexts = [_context_at(device, i) for i in range(len(base_history))]

    metrics = dict(device.metrics)
    for field in calculated_fields:
        history: List[MetricSample] = [
            MetricSample(
                timestamp=sample.timestamp,
                value=evaluate_expression(field.expression, contexts[i]),
                label=field.name,
            )
            for i, sample in enumerate(base_history)
        ]
        metrics[field.name] = history
    return device.model_copy(update={"metrics": metrics})


def materialize(
    devices: Sequence[Device], calculated_fields: Sequence[CalculatedField]
) -> List[Device]:
    """Materialize calculated fields for every device."""
    if not calculated_fields:
        return list(devices)
    logger.debug(
        "calculated.materialize",
        extra={"devices": len(devices), "fields": [f.name for f in calculated_fields]},
    )
    return [materialize_device(d, calculated_fields) for d in devices]
