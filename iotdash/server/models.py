"""Request and response models of the dashboard server.

Render responses wrap the chart results produced by the pipeline together
with the navigation context the rendering layer needs (breadcrumbs,
effective filters, grid layout).
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from ..charts import ChartResult
from ..domain.models import ControllerConfig, DrillDownFrame, GridLayoutItem


class DashboardRender(BaseModel):
    """Render-ready dashboard.

    Attributes
    ----------
    drilled_in: bool
        True when the dashboard is the target of the top drill-down frame;
        the client then renders it alone with a back action.
    breadcrumbs: List[str]
        Labels of the drill-down frames, outermost first.
    version: int
        Device-store version the charts were computed from.
    """

    dashboard_id: str
    name: str = ""
    drilled_in: bool = False
    breadcrumbs: List[str] = Field(default_factory=list)
    filters: Dict[str, Any] = Field(default_factory=dict)
    controllers: List[ControllerConfig] = Field(default_factory=list)
    layout: List[GridLayoutItem] = Field(default_factory=list)
    charts: List[ChartResult] = Field(default_factory=list)
    version: int = 0


class NavigationSnapshot(BaseModel):
    """Current navigation context."""

    active_dashboard_id: Optional[str] = None
    menu_section: Optional[str] = None
    depth: int = 0
    frames: List[DrillDownFrame] = Field(default_factory=list)


class FilterUpdateRequest(BaseModel):
    """Filter-widget event: set ``key`` to ``value`` ('ALL' clears it)."""

    key: str = Field(..., min_length=1)
    value: Any = None


class FilterUpdateResponse(BaseModel):
    dashboard_id: str
    filters: Dict[str, Any] = Field(default_factory=dict)


class InteractionRequest(BaseModel):
    """Raw click forwarded by the rendering layer."""

    chart_id: str
    payload: Dict[str, Any] = Field(default_factory=dict)


class MenuRequest(BaseModel):
    """Primary-menu navigation; always clears the drill-down stack."""

    section: str
    dashboard_id: Optional[str] = None
