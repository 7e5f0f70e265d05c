"""
Interaction engine: resolve a chart click into exactly one outcome.

Resolution order
----------------
1. Table page-size change (``name='resize'``, ``dimension_key='pageSize'``)
   updates the height of one layout item and nothing else.
2. No interaction configured (or ``none``) and no parent handler: toggle the
   clicked dashboard's filter on the click dimension.
3. ``navigate_dashboard``: mapped params seed a new drill-down frame.
4. ``open_modal`` / ``external_link``: the same params feed a modal request
   or a URL template.
"""

from __future__ import annotations

import logging
import re
from enum import Enum
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence

from pydantic import BaseModel, Field

from ..domain.models import (
    ALL,
    ChartConfig,
    ChartInteractionPayload,
    Dashboard,
    DrillDownFrame,
    GridLayoutItem,
    InteractionType,
    ParamMapping,
)
from .drilldown import NavigationError, NavigationState
from .layout import resize_layout

logger = logging.getLogger(__name__)

RESIZE_EVENT = "resize"
PAGE_SIZE_KEY = "pageSize"
DEFAULT_DIMENSION_KEY = "name"

_PLACEHOLDER_RE = re.compile(r"\{(\w+)\}")


class OutcomeKind(str, Enum):
    LAYOUT = "layout"
    FILTER = "filter"
    NAVIGATE = "navigate"
    MODAL = "modal"
    LINK = "link"
    DELEGATED = "delegated"


class ModalRequest(BaseModel):
    """Request to open a detail modal seeded with mapped params."""

    title: str
    chart_id: Optional[str] = None
    target_id: Optional[str] = None
    params: Dict[str, Any] = Field(default_factory=dict)


class InteractionOutcome(BaseModel):
    """What a click did; exactly one of the optional parts is populated."""

    kind: OutcomeKind
    dashboard_id: str
    filters: Optional[Dict[str, Any]] = None
    frame: Optional[DrillDownFrame] = None
    modal: Optional[ModalRequest] = None
    url: Optional[str] = None
    layout: Optional[List[GridLayoutItem]] = None
    changed: bool = True


ParentHandler = Callable[[str, ChartInteractionPayload], InteractionOutcome]


def normalize_click(raw: Mapping[str, Any], chart: Optional[ChartConfig] = None) -> ChartInteractionPayload:
    """Build a payload from a raw renderer click event.

    Array values (e.g. ``[timestamp, value]`` points) collapse to their last
    element. Without an explicit dimension key the chart's first dimension is
    used, else ``"name"``.

    Examples
    --------
    >>> normalize_click({"name": "Gateway", "value": [3, 45]}).value
    45
    """
    value = raw.get("value")
    if isinstance(value, (list, tuple)):
        value = value[-1] if value else None
    dimension_key = raw.get("dimension_key") or raw.get("dimensionKey")
    if not dimension_key:
        if chart is not None and chart.dimensions:
            dimension_key = chart.dimensions[0]
        else:
            dimension_key = DEFAULT_DIMENSION_KEY
    series = raw.get("series")
    if series is None:
        series = raw.get("seriesName")
    row = raw.get("row")
    if row is None:
        row = raw.get("data")
    return ChartInteractionPayload(
        name=str(raw.get("name", "")),
        value=value,
        series=series,
        dimension_key=dimension_key,
        row=row if isinstance(row, dict) else None,
        chart_id=raw.get("chart_id") or raw.get("chartId") or (chart.id if chart is not None else None),
    )


def _param_value(mapping: ParamMapping, payload: ChartInteractionPayload) -> Any:
    if mapping.source_key == "row_field":
        if not payload.row or not mapping.source_field:
            return None
        return payload.row.get(mapping.source_field)
    if mapping.source_key in ("name", "value", "series"):
        return getattr(payload, mapping.source_key)
    return None


def resolve_params(
    mappings: Sequence[ParamMapping], payload: ChartInteractionPayload
) -> Dict[str, Any]:
    """Map payload parts onto target keys; unresolved values are skipped."""
    params: Dict[str, Any] = {}
    for mapping in mappings:
        value = _param_value(mapping, payload)
        if value is None or value == "":
            continue
        params[mapping.target_key] = value
    return params


def substitute_url(template: str, values: Mapping[str, Any]) -> str:
    """Fill ``{placeholder}`` tokens; unknown placeholders stay untouched."""

    def _replace(match: "re.Match[str]") -> str:
        key = match.group(1)
        if key in values and values[key] is not None:
            return str(values[key])
        return match.group(0)

    return _PLACEHOLDER_RE.sub(_replace, template)


def is_resize(payload: ChartInteractionPayload) -> bool:
    return payload.name == RESIZE_EVENT and payload.dimension_key == PAGE_SIZE_KEY


class InteractionEngine:
    """Apply clicks to the navigation state.

    Parameters
    ----------
    navigation: NavigationState
        Owner of the filter state and the drill-down stack.
    resolve_dashboard: callable
        Looks up a dashboard by id; returns None for unknown ids.
    parent_handler: callable, optional
        Receives clicks on charts without an interaction config instead of
        the local filter toggle.
    update_layout, resolve_layout: callable, optional
        Persist and read the current grid layout of a dashboard; without a
        resolver the configured layout is used.
    """

    def __init__(
        self,
        navigation: NavigationState,
        resolve_dashboard: Callable[[str], Optional[Dashboard]],
        parent_handler: Optional[ParentHandler] = None,
        update_layout: Optional[Callable[[str, List[GridLayoutItem]], None]] = None,
        resolve_layout: Optional[Callable[[str], List[GridLayoutItem]]] = None,
    ) -> None:
        self.navigation = navigation
        self._resolve_dashboard = resolve_dashboard
        self._parent_handler = parent_handler
        self._update_layout = update_layout
        self._resolve_layout = resolve_layout

    def handle(
        self, dashboard_id: str, chart: ChartConfig, payload: ChartInteractionPayload
    ) -> InteractionOutcome:
        """Resolve one click on ``chart`` rendered inside ``dashboard_id``.

        Raises
        ------
        NavigationError
            If a navigation target or the resized chart's dashboard is unknown.
        """
        if is_resize(payload):
            return self._resize(dashboard_id, payload)

        config = chart.interaction
        if config is None or config.type == InteractionType.NONE:
            if self._parent_handler is not None:
                return self._parent_handler(dashboard_id, payload)
            return self._toggle(dashboard_id, payload)

        params = resolve_params(config.params, payload)
        if config.type == InteractionType.NAVIGATE_DASHBOARD:
            return self._navigate(dashboard_id, config.target_id, params)
        if config.type == InteractionType.OPEN_MODAL:
            modal = ModalRequest(
                title=chart.name or payload.name,
                chart_id=chart.id,
                target_id=config.target_id,
                params=params,
            )
            logger.info("interaction.modal", extra={"chart_id": chart.id, "params": list(params)})
            return InteractionOutcome(kind=OutcomeKind.MODAL, dashboard_id=dashboard_id, modal=modal)

        values: Dict[str, Any] = {
            "name": payload.name,
            "value": payload.value,
            "series": payload.series,
        }
        values.update(params)
        url = substitute_url(config.url or "", values)
        logger.info("interaction.link", extra={"chart_id": chart.id})
        return InteractionOutcome(kind=OutcomeKind.LINK, dashboard_id=dashboard_id, url=url)

    def _toggle(self, dashboard_id: str, payload: ChartInteractionPayload) -> InteractionOutcome:
        key = payload.dimension_key or DEFAULT_DIMENSION_KEY
        current = self.navigation.effective_filters(dashboard_id).get(key)
        value = ALL if current == payload.name else payload.name
        filters = self.navigation.set_filter(dashboard_id, key, value)
        logger.debug(
            "interaction.toggle",
            extra={"dashboard_id": dashboard_id, "key": key, "value": value},
        )
        return InteractionOutcome(kind=OutcomeKind.FILTER, dashboard_id=dashboard_id, filters=filters)

    def _navigate(
        self, dashboard_id: str, target_id: Optional[str], params: Dict[str, Any]
    ) -> InteractionOutcome:
        target = self._resolve_dashboard(target_id) if target_id else None
        if target is None:
            logger.warning(
                "interaction.navigate.unknown_target",
                extra={"dashboard_id": dashboard_id, "target_id": target_id},
            )
            raise NavigationError(target_id)
        frame = DrillDownFrame(
            target_dashboard_id=target.id,
            label=target.name or target.id,
            filters=params,
        )
        self.navigation.drill_into(frame)
        return InteractionOutcome(kind=OutcomeKind.NAVIGATE, dashboard_id=dashboard_id, frame=frame)

    def _resize(self, dashboard_id: str, payload: ChartInteractionPayload) -> InteractionOutcome:
        dashboard = self._resolve_dashboard(dashboard_id)
        if dashboard is None:
            raise NavigationError(dashboard_id)
        current = (
            self._resolve_layout(dashboard_id)
            if self._resolve_layout is not None
            else list(dashboard.layout)
        )
        chart_id = payload.series or payload.chart_id or ""
        try:
            page_size = int(payload.value)
        except (TypeError, ValueError):
            logger.debug("interaction.resize.invalid", extra={"value": payload.value})
            return InteractionOutcome(
                kind=OutcomeKind.LAYOUT,
                dashboard_id=dashboard_id,
                layout=current,
                changed=False,
            )
        layout, changed = resize_layout(current, chart_id, page_size)
        if changed and self._update_layout is not None:
            self._update_layout(dashboard_id, layout)
        logger.debug(
            "interaction.resize",
            extra={"chart_id": chart_id, "page_size": page_size, "changed": changed},
        )
        return InteractionOutcome(
            kind=OutcomeKind.LAYOUT, dashboard_id=dashboard_id, layout=layout, changed=changed
        )
