"""KPI and gauge charts: one number for the whole chart."""

from __future__ import annotations

from typing import Tuple

from ..domain.models import ChartType, FormatConfig
from ..domain.utils.formatting import format_value
from ..pipeline.shaping import shape_scalar, shape_single_metric
from ..pipeline.styles import matching_rule
from .context import ShapingContext
from .results import ChartResult


class ScalarShaper:
    """Aggregate of per-device aggregates, accented by threshold color.

    Gauges display the value without decimals; KPI cards use the chart's
    format configuration as-is.
    """

    id = "scalar"
    chart_types: Tuple[ChartType, ...] = (ChartType.KPI, ChartType.GAUGE)
    needs_data = True

    def shape(self, ctx: ShapingContext) -> ChartResult:
        metric = ctx.primary_metric
        aggregation = ctx.aggregation_for(metric)
        value = shape_scalar(shape_single_metric(ctx.devices, metric, aggregation), aggregation)
        if value is None:
            return ctx.empty()

        fmt = ctx.chart.format
        if ctx.chart.type == ChartType.GAUGE:
            fmt = (fmt or FormatConfig()).model_copy(update={"precision": 0})

        rule = matching_rule(value, ctx.chart.style.thresholds)
        label, unit = ctx.meta(metric or "")
        return ctx.base_result(
            "scalar",
            scalar=value,
            formatted=format_value(value, fmt),
            color=rule.color if rule is not None else ctx.colors[0],
            threshold_active=rule is not None,
            unit=unit,
            label=f"{aggregation.value} {label}",
        )
