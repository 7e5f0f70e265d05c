"""Render-ready chart results.

A :class:`ChartResult` is what the rendering layer consumes: an aligned
series bundle, a set of categories, a scalar, a row collection, static
content, or an explicit empty state. An empty state is distinct from a zero
value and must be rendered as "no data".
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from ..pipeline.styles import ReferenceLineSpec


class CategoryPoint(BaseModel):
    """One category (usually one device) of a bar/pie/radar chart."""

    name: str
    value: float
    formatted: str
    color: str


class SeriesResult(BaseModel):
    """One rendered line of a line/area chart.

    Attributes
    ----------
    key: str
        Legend key, e.g. "Temperature (AVG)" or "Temperature (AVG) (MA-3)".
    metric: str
        Metric key the series was computed from.
    data: List[Optional[float]]
        Index-aligned values; None marks an absent point (moving average
        warm-up), never zero.
    color: str
        Threshold color of the latest point, else the palette color.
    step: bool
        Render as a step line (status-like metrics).
    """

    key: str
    metric: str
    aggregation: str
    unit: str = ""
    data: List[Optional[float]] = Field(default_factory=list)
    color: str
    is_status: bool = False
    step: bool = False
    smooth: bool = True
    area: bool = False
    is_trend: bool = False
    dashed: bool = False


class TableResult(BaseModel):
    """Row collection for table charts, with cell badge colors."""

    columns: List[str] = Field(default_factory=list)
    headers: Dict[str, str] = Field(default_factory=dict)
    rows: List[Dict[str, Any]] = Field(default_factory=list)
    cell_colors: List[Dict[str, str]] = Field(default_factory=list)
    total_rows: int = 0
    page: int = 1
    page_count: int = 1
    page_size: Optional[int] = None
    show_row_number: bool = False


class ChartResult(BaseModel):
    """Render-ready result of one chart.

    ``kind`` is one of ``series``, ``categories``, ``scalar``, ``table``,
    ``content``, ``container`` or ``empty``.
    """

    chart_id: str
    chart_type: str
    title: str = ""
    kind: str
    no_data: bool = False
    labels: List[str] = Field(default_factory=list)
    series: List[SeriesResult] = Field(default_factory=list)
    categories: List[CategoryPoint] = Field(default_factory=list)
    series_name: Optional[str] = None
    indicator_max: Optional[float] = None
    scalar: Optional[float] = None
    formatted: Optional[str] = None
    color: Optional[str] = None
    threshold_active: bool = False
    unit: str = ""
    label: Optional[str] = None
    table: Optional[TableResult] = None
    reference_lines: List[ReferenceLineSpec] = Field(default_factory=list)
    content: Optional[str] = None
    child_ids: List[str] = Field(default_factory=list)
    active_child_id: Optional[str] = None
    child: Optional["ChartResult"] = None


ChartResult.model_rebuild()
