"""Bar, pie and radar charts: one aggregated value per category."""

from __future__ import annotations

from typing import List, Optional, Tuple

from ..domain.models import ChartType
from ..domain.utils.formatting import format_value
from ..pipeline.shaping import DeviceScalar, shape_single_metric
from ..pipeline.styles import build_reference_lines, category_color
from .context import ShapingContext
from .results import CategoryPoint, ChartResult

PIE_MAX_SLICES = 8
RADAR_MAX_INDICATORS = 6
RADAR_HEADROOM = 1.2


def _scalars(ctx: ShapingContext) -> List[DeviceScalar]:
    metric = ctx.primary_metric
    return shape_single_metric(ctx.devices, metric, ctx.aggregation_for(metric))


def _series_name(ctx: ShapingContext) -> str:
    metric = ctx.primary_metric or ""
    label, _ = ctx.meta(metric)
    return f"{label} ({ctx.aggregation_for(ctx.primary_metric).value})"


def _categories(
    ctx: ShapingContext,
    scalars: List[DeviceScalar],
    use_thresholds: bool,
    limit: Optional[int] = None,
) -> List[CategoryPoint]:
    color_map = ctx.color_map()
    rules = ctx.chart.style.thresholds if use_thresholds else None
    selected = scalars if limit is None else scalars[:limit]
    return [
        CategoryPoint(
            name=s.name,
            value=s.value,
            formatted=format_value(s.value, ctx.chart.format),
            color=category_color(s.name, s.value, rules, color_map, ctx.colors, i),
        )
        for i, s in enumerate(selected)
    ]


class BarShaper:
    """Bars colored by threshold, then status semantics, then palette."""

    id = "bar"
    chart_types: Tuple[ChartType, ...] = (ChartType.BAR,)
    needs_data = True

    def shape(self, ctx: ShapingContext) -> ChartResult:
        scalars = _scalars(ctx)
        if not scalars:
            return ctx.empty()
        _, unit = ctx.meta(ctx.primary_metric or "")
        return ctx.base_result(
            "categories",
            series_name=_series_name(ctx),
            categories=_categories(ctx, scalars, use_thresholds=True),
            unit=unit,
            reference_lines=build_reference_lines(ctx.chart.style.reference_lines),
        )


class PieShaper:
    """Slices for the first eight categories."""

    id = "pie"
    chart_types: Tuple[ChartType, ...] = (ChartType.PIE,)
    needs_data = True

    def shape(self, ctx: ShapingContext) -> ChartResult:
        scalars = _scalars(ctx)
        if not scalars:
            return ctx.empty()
        return ctx.base_result(
            "categories",
            series_name=_series_name(ctx),
            categories=_categories(
                ctx, scalars, use_thresholds=False, limit=PIE_MAX_SLICES
            ),
        )


class RadarShaper:
    """Radar over the first six categories, scaled with 20% headroom."""

    id = "radar"
    chart_types: Tuple[ChartType, ...] = (ChartType.RADAR,)
    needs_data = True

    def shape(self, ctx: ShapingContext) -> ChartResult:
        scalars = _scalars(ctx)
        if not scalars:
            return ctx.empty()
        primary = ctx.colors[0]
        categories = [
            point.model_copy(update={"color": primary})
            for point in _categories(
                ctx, scalars, use_thresholds=False, limit=RADAR_MAX_INDICATORS
            )
        ]
        return ctx.base_result(
            "categories",
            series_name=_series_name(ctx),
            categories=categories,
            indicator_max=max(s.value for s in scalars) * RADAR_HEADROOM,
        )
