"""Line and area charts: cross-device aligned series with trend overlays."""

from __future__ import annotations

import logging
from typing import List, Tuple

from ..domain.models import ChartType
from ..domain.utils.aggregation import moving_average
from ..pipeline.shaping import is_status_metric, series_labels, shape_aligned_series
from ..pipeline.styles import build_reference_lines, threshold_color
from .context import ShapingContext
from .results import ChartResult, SeriesResult

logger = logging.getLogger(__name__)

DEFAULT_TREND_COLOR = "#ffffff"


class AlignedSeriesShaper:
    """One aggregated line per metric, colored by its latest value."""

    id = "aligned-series"
    chart_types: Tuple[ChartType, ...] = (ChartType.LINE, ChartType.AREA)
    needs_data = True

    def shape(self, ctx: ShapingContext) -> ChartResult:
        chart = ctx.chart
        bundle = shape_aligned_series(ctx.devices, chart.metrics, chart.aggregations)
        if not bundle:
            return ctx.empty()

        colors = ctx.colors
        analysis = chart.analysis
        window = analysis.moving_average_window or 0
        series: List[SeriesResult] = []
        for aligned in bundle:
            index = chart.metrics.index(aligned.metric)
            label, unit = ctx.meta(aligned.metric)
            key = f"{label} ({aligned.aggregation.value})"
            latest = aligned.data[-1] if aligned.data else None
            color = threshold_color(
                latest, chart.style.thresholds, colors[index % len(colors)]
            )
            status = is_status_metric(aligned.metric)
            series.append(
                SeriesResult(
                    key=key,
                    metric=aligned.metric,
                    aggregation=aligned.aggregation.value,
                    unit=unit,
                    data=list(aligned.data),
                    color=color,
                    is_status=status,
                    step=status,
                    smooth=not status,
                    area=chart.type == ChartType.AREA or status,
                )
            )
            if analysis.enable_moving_average and window and not status:
                trend_color = analysis.trend_line_color or DEFAULT_TREND_COLOR
                series.append(
                    SeriesResult(
                        key=f"{key} (MA-{window})",
                        metric=aligned.metric,
                        aggregation=aligned.aggregation.value,
                        unit=unit,
                        data=moving_average(aligned.data, window),
                        color=trend_color,
                        is_trend=True,
                        dashed=True,
                    )
                )

        return ctx.base_result(
            "series",
            labels=series_labels(ctx.devices, chart.metrics),
            series=series,
            reference_lines=build_reference_lines(chart.style.reference_lines),
        )
