"""Inputs handed to a chart shaper."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Mapping, Optional, Sequence

from ..domain.models import Aggregation, ChartConfig, DataView, Device
from ..domain.utils.aggregation import coerce_aggregation
from ..pipeline.shaping import field_meta
from ..pipeline.styles import palette, palette_color_map
from .results import ChartResult


@dataclass(frozen=True)
class TableQuery:
    """Interactive table state: sort column/direction and requested page."""

    sort_key: Optional[str] = None
    sort_direction: str = "asc"
    page: int = 1


@dataclass(frozen=True)
class ShapingContext:
    """Everything a shaper may read.

    Attributes
    ----------
    devices: Sequence[Device]
        Filtered, time-windowed devices enriched with calculated fields.
    category_names: Sequence[str]
        Names of every device in the unfiltered snapshot; the palette map is
        built from them so a category keeps its color under any filter.
    render_child: Callable[[str], Optional[ChartResult]] or None
        Renders another chart by id through the same pipeline (containers).
    elapsed_seconds: float
        Time since the dashboard was opened; drives container rotation.
    """

    chart: ChartConfig
    devices: Sequence[Device]
    view: Optional[DataView] = None
    filters: Mapping[str, Any] = field(default_factory=dict)
    render_child: Optional[Callable[[str], Optional[ChartResult]]] = None
    elapsed_seconds: float = 0.0
    table_query: TableQuery = field(default_factory=TableQuery)
    category_names: Optional[Sequence[str]] = None

    @property
    def primary_metric(self) -> Optional[str]:
        return self.chart.metrics[0] if self.chart.metrics else None

    def aggregation_for(self, metric: Optional[str], default: Aggregation = Aggregation.AVG) -> Aggregation:
        if metric is None:
            return default
        return coerce_aggregation(self.chart.aggregations.get(metric), default)

    def meta(self, key: str) -> tuple[str, str]:
        return field_meta(self.view, key)

    @property
    def colors(self) -> list[str]:
        return palette(self.chart.style.colors)

    def color_map(self) -> Dict[str, str]:
        names = self.category_names
        if names is None:
            names = [d.name for d in self.devices]
        return palette_color_map(names, self.colors)

    def base_result(self, kind: str, **values: Any) -> ChartResult:
        return ChartResult(
            chart_id=self.chart.id,
            chart_type=self.chart.type.value,
            title=self.chart.name,
            kind=kind,
            **values,
        )

    def empty(self) -> ChartResult:
        return self.base_result("empty", no_data=True)
