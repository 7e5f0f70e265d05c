"""
Display formatting for numeric values.

Renders values the way chart labels, tooltips, KPI cards and table cells
show them: fixed precision, optional percent sign, optional unit suffix, and
a dash placeholder for anything that is not a finite number.
"""

import logging
from typing import Any, Optional

from ..models import FormatConfig
from .validation import to_finite_float

logger = logging.getLogger(__name__)

PLACEHOLDER = "-"
DEFAULT_PRECISION = 1


def format_value(value: Any, config: Optional[FormatConfig] = None) -> str:
    """
    Format a value for display.

    Parameters
    ----------
    value : Any
        Value to render; None, NaN, inf and non-numeric values render as
        the placeholder
    config : FormatConfig, optional
        Precision, type ("number" or "percent") and unit suffix

    Returns
    -------
    str
        Display string

    Examples
    --------
    >>> format_value(12.345)
    '12.3'
    >>> format_value(12.5, FormatConfig(type="percent", precision=2))
    '12.50%'
    >>> format_value(3, FormatConfig(precision=0, unit_suffix="kWh"))
    '3 kWh'
    >>> format_value(float("nan"))
    '-'
    """
    number = to_finite_float(value)
    if number is None:
        return PLACEHOLDER
    if config is None:
        return f"{number:.{DEFAULT_PRECISION}f}"

    precision = config.precision if config.precision is not None else DEFAULT_PRECISION
    if precision < 0:
        logger.debug("formatting.negative_precision", extra={"precision": precision})
        precision = 0
    formatted = f"{number:.{precision}f}"

    if config.type == "percent":
        formatted += "%"
    if config.unit_suffix:
        formatted += f" {config.unit_suffix}"
    return formatted
