"""
Numeric validation for metric readings.

Readings reach the pipeline from device histories, click payloads and table
cells. Only finite, non-boolean numbers count as numeric: anything else is
treated as missing data instead of raising.
"""

import math
from typing import Any, Optional


def is_valid_float(value: float) -> bool:
    """
    Check if a float value is finite.

    Examples
    --------
    >>> is_valid_float(42.5)
    True
    >>> is_valid_float(float('nan'))
    False
    """
    return math.isfinite(value)


def to_finite_float(value: Any) -> Optional[float]:
    """
    Coerce ``value`` to a finite float, or None.

    Booleans and strings are rejected: a table cell holding ``"online"`` or
    ``True`` is not numeric for formatting or threshold purposes.

    Examples
    --------
    >>> to_finite_float(3)
    3.0
    >>> to_finite_float("3") is None
    True
    >>> to_finite_float(float('inf')) is None
    True
    """
    if value is None or isinstance(value, bool):
        return None
    if not isinstance(value, (int, float)):
        return None
    result = float(value)
    if not is_valid_float(result):
        return None
    return result


def clamp_reading(
    value: float,
    min_value: Optional[float] = None,
    max_value: Optional[float] = None,
    default: float = 0.0,
) -> float:
    """
    Clamp a simulated or received reading into ``[min_value, max_value]``.

    Parameters
    ----------
    value : float
        Raw reading
    min_value, max_value : float, optional
        Inclusive bounds; None leaves that side open
    default : float
        Returned for NaN or infinite readings

    Examples
    --------
    >>> clamp_reading(-0.7, min_value=0.0)
    0.0
    >>> clamp_reading(float('nan'), default=1.5)
    1.5
    >>> clamp_reading(120.0, max_value=100.0)
    100.0
    """
    if not is_valid_float(value):
        return default
    if min_value is not None and value < min_value:
        return min_value
    if max_value is not None and value > max_value:
        return max_value
    return value
