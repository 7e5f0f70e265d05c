"""Canonical domain data model for devices, views, charts and dashboards.

These Pydantic models are the shapes collaborators hand to the pipeline
(device catalog, view/chart/dashboard definitions, alarm rules) and the
shapes the interaction engine produces (click payloads, drill-down frames).
Configuration models accept both the camelCase keys emitted by the
dashboard editor and snake_case keys, and are frozen: the pipeline derives
new snapshots instead of mutating its inputs.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

ALL = "ALL"
"""Filter sentinel meaning "this filter is inactive"."""

TIME_RANGE_KEY = "_time_range"
"""Reserved filter key selecting a point-count window instead of devices."""

HISTORY_CAPACITY = 20


class _ConfigModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


class DeviceStatus(str, Enum):
    """Operational status of a device."""

    ONLINE = "online"
    OFFLINE = "offline"
    WARNING = "warning"
    CRITICAL = "critical"


class MetricSample(_ConfigModel):
    """Single observation in a device metric history.

    Attributes
    ----------
    timestamp: str
        Display timestamp of the sample (e.g., "10:35").
    value: float
        Numeric value of the observation.
    label: Optional[str]
        Optional label (calculated samples carry the field name).
    """

    timestamp: str
    value: float
    label: Optional[str] = None


class Device(_ConfigModel):
    """Monitored unit emitting one or more metric histories.

    Attributes
    ----------
    id: str
        Unique device identifier (e.g., "DEV-001").
    name: str
        Display name, also used as the categorical dimension of charts.
    type: str
        Classification type (e.g., "Gateway", "Sensor").
    status: DeviceStatus
        Current operational status.
    metrics: Dict[str, List[MetricSample]]
        Time-ordered histories keyed by metric key, at most
        ``HISTORY_CAPACITY`` samples each.
    """

    id: str
    name: str
    type: str = ""
    status: DeviceStatus = DeviceStatus.ONLINE
    location: str = ""
    ip: str = ""
    category_id: Optional[str] = None
    last_active: Optional[str] = None
    metrics: Dict[str, List[MetricSample]] = Field(default_factory=dict)


class FieldModel(_ConfigModel):
    """Display semantics for a view field."""

    alias: Optional[str] = None
    unit: Optional[str] = None
    type: Optional[str] = None


class CalculatedField(_ConfigModel):
    """Synthetic metric derived from other fields by an arithmetic expression."""

    name: str
    expression: str


class DataView(_ConfigModel):
    """Named projection over raw metric/dimension fields.

    Attributes
    ----------
    fields: List[str]
        Raw metric and dimension keys exposed by the view.
    model: Dict[str, FieldModel]
        Optional per-field alias/unit/type used for labels and units.
    calculated_fields: List[CalculatedField]
        Derived metrics materialized per device before shaping.
    """

    id: str
    name: str = ""
    source_id: Optional[str] = None
    table_name: Optional[str] = None
    fields: List[str] = Field(default_factory=list)
    model: Dict[str, FieldModel] = Field(default_factory=dict)
    calculated_fields: List[CalculatedField] = Field(default_factory=list)


class ChartType(str, Enum):
    """Closed set of chart types; each has exactly one registered shaper."""

    LINE = "line"
    AREA = "area"
    BAR = "bar"
    PIE = "pie"
    RADAR = "radar"
    KPI = "kpi"
    GAUGE = "gauge"
    TABLE = "table"
    TEXT = "text"
    IMAGE = "image"
    CONTAINER = "container"


class Aggregation(str, Enum):
    """Reduction policy applied to a set of numeric values."""

    AVG = "AVG"
    SUM = "SUM"
    MAX = "MAX"
    MIN = "MIN"
    COUNT = "COUNT"
    LAST = "LAST"


class ThresholdRule(_ConfigModel):
    """Ordered comparison-to-color mapping; the first matching rule wins."""

    id: Optional[str] = None
    operator: str = ">"
    value: float = 0.0
    color: str = "#ef4444"


class ReferenceLine(_ConfigModel):
    """Horizontal reference line; only ``constant`` lines carry a value."""

    id: Optional[str] = None
    name: Optional[str] = None
    type: str = "constant"
    value: Optional[float] = None
    color: Optional[str] = None


class FormatConfig(_ConfigModel):
    """Numeric formatting: fixed precision, optional percent and unit suffix."""

    type: str = "number"
    precision: int = 1
    unit_suffix: Optional[str] = None


class AnalysisConfig(_ConfigModel):
    """Moving-average overlay settings for line/area charts."""

    enable_moving_average: bool = False
    moving_average_window: Optional[int] = None
    trend_line_color: Optional[str] = None


class ContainerConfig(_ConfigModel):
    """Rotating container of child charts."""

    child_chart_ids: List[str] = Field(default_factory=list)
    interval: int = 5


class ChartStyle(_ConfigModel):
    """Style options that influence data decorations (not pixel layout)."""

    colors: List[str] = Field(default_factory=list)
    show_grid: bool = True
    show_legend: bool = True
    legend_position: str = "top"
    thresholds: List[ThresholdRule] = Field(default_factory=list)
    reference_lines: List[ReferenceLine] = Field(default_factory=list)
    enable_pagination: bool = False
    page_size: int = 10
    show_row_number: bool = False
    col_span: int = 1


class ParamMapping(_ConfigModel):
    """Maps one part of a click payload onto a target filter key."""

    source_key: str = "name"
    source_field: Optional[str] = None
    target_key: str


class InteractionType(str, Enum):
    """Click behaviors a chart can be configured with."""

    NONE = "none"
    NAVIGATE_DASHBOARD = "navigate_dashboard"
    OPEN_MODAL = "open_modal"
    EXTERNAL_LINK = "external_link"


class InteractionConfig(_ConfigModel):
    """Click-behavior descriptor of a chart."""

    type: InteractionType = InteractionType.NONE
    target_id: Optional[str] = None
    url: Optional[str] = None
    params: List[ParamMapping] = Field(default_factory=list)


class ChartConfig(_ConfigModel):
    """Declarative description of one visualization.

    Attributes
    ----------
    type: ChartType
        Selects the shaper used to produce render-ready data.
    metrics: List[str]
        Value fields; single-metric charts use the first one.
    dimensions: List[str]
        Categorical fields; the first one is the click dimension key.
    aggregations: Dict[str, Aggregation]
        Per-metric aggregation policy.
    """

    id: str
    view_id: Optional[str] = None
    name: str = ""
    type: ChartType
    metrics: List[str] = Field(default_factory=list)
    dimensions: List[str] = Field(default_factory=list)
    aggregations: Dict[str, Aggregation] = Field(default_factory=dict)
    style: ChartStyle = Field(default_factory=ChartStyle)
    format: Optional[FormatConfig] = None
    analysis: AnalysisConfig = Field(default_factory=AnalysisConfig)
    container: Optional[ContainerConfig] = None
    interaction: Optional[InteractionConfig] = None
    content: Optional[str] = None


class ControllerConfig(_ConfigModel):
    """Filter widget bound to a filter-state key."""

    id: str
    label: str = ""
    type: str = "SELECT"
    key: str
    options: List[str] = Field(default_factory=list)
    default_value: Any = None


class GridLayoutItem(_ConfigModel):
    """Grid placement of one chart on a dashboard (12 columns)."""

    i: str
    x: int = 0
    y: int = 0
    w: int = 4
    h: int = 4
    static: bool = False


class Dashboard(_ConfigModel):
    """Arrangement of charts with shared filter controllers."""

    id: str
    name: str = ""
    charts: List[str] = Field(default_factory=list)
    controllers: List[ControllerConfig] = Field(default_factory=list)
    layout: List[GridLayoutItem] = Field(default_factory=list)


class ChartInteractionPayload(_ConfigModel):
    """Normalized click on a rendered data point."""

    name: str
    value: Any = None
    series: Optional[str] = None
    dimension_key: Optional[str] = None
    row: Optional[Dict[str, Any]] = None
    chart_id: Optional[str] = None


class DrillDownFrame(_ConfigModel):
    """Drill-down stack entry: target dashboard plus seeded filters."""

    target_dashboard_id: str
    label: str = ""
    filters: Dict[str, Any] = Field(default_factory=dict)


class AlarmRule(_ConfigModel):
    """Threshold rule evaluated against the latest value after each tick."""

    id: str
    name: str = ""
    device_type: str = ALL
    metric_key: str
    operator: str = ">"
    threshold: float
    severity: str = "warning"
    enabled: bool = True


class AlarmEvent(_ConfigModel):
    """Firing of an alarm rule for one device."""

    id: str
    rule_id: str
    rule_name: str = ""
    device_id: str
    device_name: str = ""
    metric_key: str
    value: float
    threshold: float
    severity: str = "warning"
    timestamp: str
    status: str = "active"
