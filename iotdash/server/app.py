"""Dashboard server: owns the live state and exposes the core operations.

The server wires the device store, the tick loop, the alarm engine, the
navigation state and the chart renderer together. Transports (HTTP, CLI)
call into it; it holds no transport-specific logic.
"""

from __future__ import annotations

import logging
import random
import time
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from ..charts import ChartResult, TableQuery
from ..config.models import AppConfig, EnvSettings
from ..domain.models import (
    AlarmEvent,
    ChartConfig,
    Dashboard,
    DataView,
    Device,
    GridLayoutItem,
)
from ..interaction import (
    InteractionEngine,
    InteractionOutcome,
    NavigationState,
    normalize_click,
)
from ..interaction.layout import default_layout
from ..pipeline.render import ChartRenderer
from ..realtime import AlarmEngine, DeviceStore, Ticker
from .models import DashboardRender, NavigationSnapshot

logger = logging.getLogger(__name__)


class DashboardServer:  # pylint: disable=too-many-instance-attributes
    """Async host of one dashboard workspace.

    Parameters
    ----------
    config: AppConfig, optional
        Device catalog and dashboard definitions.
    settings: EnvSettings, optional
        Runtime settings; read from the environment when omitted.
    rng: random.Random, optional
        Drift source of the tick loop.
    monotonic: callable, optional
        Clock driving container rotation.
    """

    def __init__(
        self,
        config: Optional[AppConfig] = None,
        settings: Optional[EnvSettings] = None,
        rng: Optional[random.Random] = None,
        monotonic: Optional[Callable[[], float]] = None,
    ) -> None:
        self.config = config or AppConfig()
        self.settings = settings or EnvSettings()
        self._views: Dict[str, DataView] = self.config.view_index()
        self._charts: Dict[str, ChartConfig] = self.config.chart_index()
        self._dashboards: Dict[str, Dashboard] = self.config.dashboard_index()
        self._layouts: Dict[str, List[GridLayoutItem]] = {}

        self.store = DeviceStore(self.config.devices)
        self.alarms = AlarmEngine(
            self.config.alarm_rules, capacity=self.settings.event_capacity
        )
        self.ticker = Ticker(
            self.store,
            self.alarms,
            interval_seconds=self.settings.tick_interval_seconds,
            rng=rng,
            history_capacity=self.settings.history_capacity,
        )
        self.navigation = NavigationState(self.config.default_dashboard_id())
        self.renderer = ChartRenderer(
            cache_size=self.settings.render_cache_size,
            resolve_chart=self.get_chart,
            resolve_view=self.get_view,
        )
        self.interactions = InteractionEngine(
            self.navigation,
            resolve_dashboard=self._dashboards.get,
            update_layout=self._set_layout,
            resolve_layout=self.layout,
        )
        self._monotonic = monotonic or time.monotonic
        self._opened_at = self._monotonic()
        self._started: bool = False

    # ----------------------------------------------------------- lifecycle

    @property
    def started(self) -> bool:
        return self._started

    async def start(self, run_ticker: bool = True) -> None:
        """Start the tick loop. Idempotent."""
        if self._started:
            logger.debug("server.start no-op: already started")
            return
        self._started = True
        if run_ticker:
            self.ticker.start()
        logger.info(
            "server.started",
            extra={
                "devices": len(self.store),
                "dashboards": len(self._dashboards),
                "charts": len(self._charts),
                "alarm_rules": len(self.alarms.rules),
            },
        )

    async def stop(self) -> None:
        """Stop the tick loop. Idempotent."""
        if not self._started:
            logger.debug("server.stop no-op: not started")
            return
        await self.ticker.stop()
        self._started = False
        logger.info("server.stopped")

    # ------------------------------------------------------------- lookups

    def get_view(self, view_id: Optional[str]) -> Optional[DataView]:
        if view_id is None:
            return None
        view = self._views.get(view_id)
        if view is None:
            logger.debug("server.view.unresolved", extra={"view_id": view_id})
        return view

    def get_chart(self, chart_id: str) -> Optional[ChartConfig]:
        return self._charts.get(chart_id)

    def get_dashboard(self, dashboard_id: str) -> Dashboard:
        """Return a dashboard by id.

        Raises
        ------
        KeyError
            If the dashboard is unknown.
        """
        return self._dashboards[dashboard_id]

    def dashboard_ids(self) -> List[str]:
        return list(self._dashboards)

    def chart_ids(self) -> List[str]:
        return list(self._charts)

    def devices(self) -> Tuple[Device, ...]:
        return self.store.snapshot()

    def layout(self, dashboard_id: str) -> List[GridLayoutItem]:
        if dashboard_id in self._layouts:
            return list(self._layouts[dashboard_id])
        return default_layout(self.get_dashboard(dashboard_id), self.get_chart)

    def _set_layout(self, dashboard_id: str, layout: List[GridLayoutItem]) -> None:
        self._layouts[dashboard_id] = list(layout)
        logger.info("server.layout.updated", extra={"dashboard_id": dashboard_id})

    # ------------------------------------------------------------ rendering

    def elapsed_seconds(self) -> float:
        return max(0.0, self._monotonic() - self._opened_at)

    def render_chart(
        self,
        chart_id: str,
        dashboard_id: Optional[str] = None,
        table_query: Optional[TableQuery] = None,
    ) -> ChartResult:
        """Render one chart with the effective filters of ``dashboard_id``.

        Raises
        ------
        KeyError
            If the chart is unknown.
        """
        chart = self._charts[chart_id]
        filters: Mapping[str, Any] = (
            self.navigation.effective_filters(dashboard_id) if dashboard_id else {}
        )
        return self.renderer.render(
            chart,
            self.store.snapshot(),
            filters=filters,
            version=self.store.version,
            elapsed_seconds=self.elapsed_seconds(),
            table_query=table_query,
        )

    def render_dashboard(
        self,
        dashboard_id: Optional[str] = None,
        table_queries: Optional[Mapping[str, TableQuery]] = None,
    ) -> DashboardRender:
        """Render every chart of a dashboard.

        Without an explicit id the active dashboard is rendered: the top
        drill-down target when drilled in, otherwise the home dashboard.

        Raises
        ------
        KeyError
            If no dashboard is active or the id is unknown.
        """
        target = dashboard_id or self.navigation.active_dashboard_id()
        if target is None:
            raise KeyError("no active dashboard")
        dashboard = self.get_dashboard(target)
        queries = table_queries or {}
        devices = self.store.snapshot()
        version = self.store.version
        filters = self.navigation.effective_filters(target)
        elapsed = self.elapsed_seconds()

        results: List[ChartResult] = []
        for chart_id in dashboard.charts:
            chart = self._charts.get(chart_id)
            if chart is None:
                logger.warning(
                    "server.render.unknown_chart",
                    extra={"dashboard_id": target, "chart_id": chart_id},
                )
                continue
            results.append(
                self.renderer.render(
                    chart,
                    devices,
                    filters=filters,
                    version=version,
                    elapsed_seconds=elapsed,
                    table_query=queries.get(chart_id),
                )
            )

        top = self.navigation.stack.peek()
        return DashboardRender(
            dashboard_id=dashboard.id,
            name=dashboard.name,
            drilled_in=top is not None and top.target_dashboard_id == dashboard.id,
            breadcrumbs=[f.label for f in self.navigation.stack.frames],
            filters=filters,
            controllers=list(dashboard.controllers),
            layout=self.layout(dashboard.id),
            charts=results,
            version=version,
        )

    # ---------------------------------------------------------- interaction

    def set_filter(self, dashboard_id: str, key: str, value: Any) -> Dict[str, Any]:
        """Apply a filter-widget event and return the effective filters."""
        self.get_dashboard(dashboard_id)
        return self.navigation.set_filter(dashboard_id, key, value)

    def handle_interaction(
        self, dashboard_id: str, chart_id: str, raw: Mapping[str, Any]
    ) -> InteractionOutcome:
        """Resolve a raw click on ``chart_id``.

        Raises
        ------
        KeyError
            If the dashboard or chart is unknown.
        NavigationError
            If the chart navigates to a missing dashboard.
        """
        self.get_dashboard(dashboard_id)
        chart = self._charts[chart_id]
        payload = normalize_click(raw, chart)
        outcome = self.interactions.handle(dashboard_id, chart, payload)
        logger.info(
            "server.interaction",
            extra={"dashboard_id": dashboard_id, "chart_id": chart_id, "kind": outcome.kind.value},
        )
        return outcome

    def back(self) -> NavigationSnapshot:
        self.navigation.back()
        return self.navigation_snapshot()

    def select_menu(self, section: str, dashboard_id: Optional[str] = None) -> NavigationSnapshot:
        if dashboard_id is not None:
            self.get_dashboard(dashboard_id)
        self.navigation.select_menu(section, dashboard_id)
        return self.navigation_snapshot()

    def navigation_snapshot(self) -> NavigationSnapshot:
        return NavigationSnapshot(
            active_dashboard_id=self.navigation.active_dashboard_id(),
            menu_section=self.navigation.menu_section,
            depth=self.navigation.stack.depth,
            frames=list(self.navigation.stack.frames),
        )

    # --------------------------------------------------------------- alarms

    def alarm_events(self, status: Optional[str] = None) -> List[AlarmEvent]:
        events = self.alarms.events
        if status:
            events = [e for e in events if e.status == status]
        return events

    def acknowledge_alarm(self, event_id: str) -> AlarmEvent:
        return self.alarms.acknowledge(event_id)
