"""Style resolution: threshold colors, category colors and reference lines.

All functions are pure. Threshold rules are evaluated in declaration order
and the first matching rule wins; a malformed rule is skipped rather than
raising, so a bad rule degrades to the default color.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from pydantic import BaseModel

from ..domain.models import ReferenceLine, ThresholdRule
from ..domain.utils.expression import COMPARISON_OPERATORS, compare
from ..domain.utils.validation import to_finite_float

logger = logging.getLogger(__name__)

DEFAULT_COLORS: List[str] = [
    "#6366f1",  # Indigo
    "#10b981",  # Emerald
    "#f59e0b",  # Amber
    "#ef4444",  # Rose
    "#8b5cf6",  # Violet
    "#06b6d4",  # Cyan
    "#ec4899",  # Pink
    "#84cc16",  # Lime
]
DEFAULT_COLOR = DEFAULT_COLORS[0]
DEFAULT_REFERENCE_LINE_COLOR = "#ef4444"

STATUS_COLORS: Dict[str, str] = {
    "online": "#10b981",
    "healthy": "#10b981",
    "normal": "#10b981",
    "warning": "#f59e0b",
    "risk": "#f59e0b",
    "critical": "#ef4444",
    "error": "#ef4444",
    "offline": "#94a3b8",
    "inactive": "#cbd5e1",
}


def palette(colors: Optional[Sequence[str]]) -> List[str]:
    """Configured colors, or the default palette when none are configured."""
    return list(colors) if colors else list(DEFAULT_COLORS)


def matching_rule(value: Any, rules: Iterable[ThresholdRule]) -> Optional[ThresholdRule]:
    """Return the first rule whose comparison holds for ``value``."""
    number = to_finite_float(value)
    if number is None:
        return None
    for rule in rules:
        if rule.operator not in COMPARISON_OPERATORS:
            logger.debug(
                "styles.threshold.unknown_operator",
                extra={"operator": rule.operator, "rule_id": rule.id},
            )
            continue
        limit = to_finite_float(rule.value)
        if limit is None:
            continue
        if compare(number, rule.operator, limit):
            return rule
    return None


def threshold_color(
    value: Any,
    rules: Optional[Iterable[ThresholdRule]],
    default: Optional[str] = None,
) -> str:
    """Color of the first matching threshold rule, else ``default``.

    Examples
    --------
    >>> rules = [ThresholdRule(operator=">", value=80, color="red"),
    ...          ThresholdRule(operator=">", value=50, color="amber")]
    >>> threshold_color(90, rules)
    'red'
    >>> threshold_color(10, rules, "green")
    'green'
    """
    rule = matching_rule(value, rules or [])
    if rule is not None:
        return rule.color
    return default or DEFAULT_COLOR


def palette_color_map(names: Iterable[str], colors: Sequence[str]) -> Dict[str, str]:
    """Stable category → color map built from the sorted distinct names.

    The same category gets the same color on every chart sharing a palette.
    """
    colors = palette(colors)
    ordered = sorted(set(names))
    return {name: colors[i % len(colors)] for i, name in enumerate(ordered)}


def status_color(name: str) -> Optional[str]:
    """Semantic color for a status-like category name, if any."""
    return STATUS_COLORS.get(str(name).lower())


def category_color(
    name: str,
    value: Any,
    rules: Optional[Sequence[ThresholdRule]],
    color_map: Mapping[str, str],
    colors: Sequence[str],
    index: int,
) -> str:
    """Resolve a categorical color: threshold, semantic status, palette."""
    rule = matching_rule(value, rules or [])
    if rule is not None:
        return rule.color
    semantic = status_color(name)
    if semantic is not None:
        return semantic
    if name in color_map:
        return color_map[name]
    colors = palette(colors)
    return colors[index % len(colors)]


class ReferenceLineSpec(BaseModel):
    """Render-ready reference line.

    Constant lines carry ``y``; ``average``/``min``/``max`` lines carry only
    their ``type`` and are computed by the renderer over the drawn series.
    """

    name: str = ""
    type: str
    y: Optional[float] = None
    color: str = DEFAULT_REFERENCE_LINE_COLOR


def build_reference_lines(lines: Optional[Sequence[ReferenceLine]]) -> List[ReferenceLineSpec]:
    """Translate configured reference lines into render-ready specs."""
    specs: List[ReferenceLineSpec] = []
    for line in lines or []:
        color = line.color or DEFAULT_REFERENCE_LINE_COLOR
        if line.type == "constant":
            if line.value is None:
                logger.debug("styles.reference_line.missing_value", extra={"id": line.id})
                continue
            specs.append(
                ReferenceLineSpec(
                    name=line.name or "", type="constant", y=line.value, color=color
                )
            )
        elif line.type in ("average", "min", "max"):
            specs.append(ReferenceLineSpec(name=line.name or "", type=line.type, color=color))
        else:
            logger.debug("styles.reference_line.unknown_type", extra={"type": line.type})
    return specs
