"""
Data aggregation utilities for metric histories.

Provides the chart aggregation policies, handling of missing samples when
histories of different lengths are aligned, and the trailing moving average
used for trend overlays.
"""

import logging
import statistics
from enum import Enum
from typing import List, Optional, Sequence

from ..models import Aggregation

logger = logging.getLogger(__name__)


class MissingDataStrategy(Enum):
    """Strategy for handling missing data points."""

    SKIP = "skip"  # Skip missing values, aggregate remaining
    ZERO = "zero"  # Treat missing values as zero


def coerce_aggregation(value: object, default: Aggregation = Aggregation.AVG) -> Aggregation:
    """
    Resolve a configured aggregation, falling back to ``default``.

    Examples
    --------
    >>> coerce_aggregation("sum")
    <Aggregation.SUM: 'SUM'>
    >>> coerce_aggregation(None, Aggregation.LAST)
    <Aggregation.LAST: 'LAST'>
    """
    if isinstance(value, Aggregation):
        return value
    if isinstance(value, str):
        try:
            return Aggregation(value.upper())
        except ValueError:
            logger.warning("aggregation.unknown_policy", extra={"policy": value})
    return default


def aggregate_samples(
    samples: Sequence[Optional[float]],
    strategy: Aggregation = Aggregation.AVG,
    missing_strategy: MissingDataStrategy = MissingDataStrategy.SKIP,
) -> Optional[float]:
    """
    Aggregate samples using the specified policy.

    Parameters
    ----------
    samples : Sequence[Optional[float]]
        Values to reduce, may contain None for missing values
    strategy : Aggregation, default=AVG
        Aggregation policy
    missing_strategy : MissingDataStrategy, default=SKIP
        How to handle missing data

    Returns
    -------
    float or None
        Aggregated value, or None when there is nothing to aggregate

    Examples
    --------
    >>> aggregate_samples([1.0, 2.0, 3.0, 4.0, 5.0], Aggregation.AVG)
    3.0
    >>> aggregate_samples([1.0, None, 3.0], Aggregation.COUNT)
    2.0
    >>> aggregate_samples([None, 10.0], Aggregation.AVG, MissingDataStrategy.ZERO)
    5.0
    """
    if not samples:
        return None

    if missing_strategy == MissingDataStrategy.ZERO:
        processed = [s if s is not None else 0.0 for s in samples]
    else:
        processed = [s for s in samples if s is not None]
    if not processed:
        return None

    try:
        if strategy == Aggregation.AVG:
            return statistics.fmean(processed)
        if strategy == Aggregation.SUM:
            return float(sum(processed))
        if strategy == Aggregation.MAX:
            return max(processed)
        if strategy == Aggregation.MIN:
            return min(processed)
        if strategy == Aggregation.COUNT:
            return float(len(processed))
        if strategy == Aggregation.LAST:
            return processed[-1]

        logger.warning(
            "aggregation.invalid_strategy",
            extra={"strategy": str(strategy)},
        )
        return None
    except (ValueError, TypeError, statistics.StatisticsError) as e:
        logger.warning(
            "aggregation.failed",
            extra={"error": str(e), "strategy": str(strategy)},
        )
        return None


def moving_average(data: Sequence[float], window: int) -> List[Optional[float]]:
    """
    Trailing arithmetic mean over ``window`` points.

    Positions before the window is full are None, not zero.

    Parameters
    ----------
    data : Sequence[float]
        Series values
    window : int
        Window size; ``<= 1`` returns the data unchanged

    Examples
    --------
    >>> moving_average([1.0, 2.0, 3.0, 4.0, 5.0], 3)
    [None, None, 2.0, 3.0, 4.0]
    """
    if window <= 1:
        return list(data)
    result: List[Optional[float]] = []
    for i in range(len(data)):
        if i < window - 1:
            result.append(None)
            continue
        result.append(sum(data[i - window + 1 : i + 1]) / window)
    return result
