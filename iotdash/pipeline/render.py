"""Pipeline entry point: filter, enrich, shape and memoize one chart.

Rendering is a pure function of (device snapshot, filters, view, chart), so
results are cached on a key built from the device-store version and the
serialized configuration. Callers that do not pass a store version bypass
the cache.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Callable, FrozenSet, Hashable, List, Mapping, Optional, Sequence, Tuple

from ..charts import ChartResult, ShapingContext, TableQuery, get
from ..domain.models import ChartConfig, ChartType, DataView, Device
from ..utils.cache import Cache
from .calculated import materialize
from .filters import apply_filters, apply_time_range

logger = logging.getLogger(__name__)

DEFAULT_RENDER_CACHE_SIZE = 256

ChartResolver = Callable[[str], Optional[ChartConfig]]
ViewResolver = Callable[[Optional[str]], Optional[DataView]]


def prepare_devices(
    devices: Sequence[Device],
    filters: Mapping[str, Any],
    view: Optional[DataView] = None,
) -> List[Device]:
    """Filter by state, window by time range, then add calculated fields."""
    selected = apply_time_range(apply_filters(devices, filters), filters)
    if view is not None and view.calculated_fields:
        selected = materialize(selected, view.calculated_fields)
    return selected


def _filters_key(filters: Mapping[str, Any]) -> str:
    return json.dumps(dict(filters), sort_keys=True, default=str)


class ChartRenderer:
    """Render charts through the registered shapers with LRU memoization.

    Parameters
    ----------
    cache_size: int
        Maximum number of memoized chart results.
    resolve_chart: callable, optional
        Looks up a chart by id (container children).
    resolve_view: callable, optional
        Looks up a data view by id.
    """

    def __init__(
        self,
        cache_size: int = DEFAULT_RENDER_CACHE_SIZE,
        resolve_chart: Optional[ChartResolver] = None,
        resolve_view: Optional[ViewResolver] = None,
    ) -> None:
        self._cache: Cache[Hashable, ChartResult] = Cache(maxsize=cache_size)
        self._resolve_chart = resolve_chart
        self._resolve_view = resolve_view

    @property
    def hits(self) -> int:
        return self._cache.hits

    @property
    def misses(self) -> int:
        return self._cache.misses

    def clear(self) -> None:
        self._cache.clear()

    def _view_for(self, chart: ChartConfig) -> Optional[DataView]:
        if self._resolve_view is None:
            return None
        return self._resolve_view(chart.view_id)

    def _key(
        self,
        version: int,
        chart: ChartConfig,
        view: Optional[DataView],
        filters: Mapping[str, Any],
        table_query: TableQuery,
    ) -> Tuple[Hashable, ...]:
        return (
            version,
            _filters_key(filters),
            view.model_dump_json() if view is not None else None,
            chart.model_dump_json(),
            table_query,
        )

    def render(
        self,
        chart: ChartConfig,
        devices: Sequence[Device],
        filters: Optional[Mapping[str, Any]] = None,
        view: Optional[DataView] = None,
        version: Optional[int] = None,
        elapsed_seconds: float = 0.0,
        table_query: Optional[TableQuery] = None,
        ancestors: FrozenSet[str] = frozenset(),
    ) -> ChartResult:
        """Produce the render-ready result of ``chart``.

        ``view`` defaults to the resolver's view for ``chart.view_id``.
        Container charts are never cached themselves; their children are.
        ``ancestors`` holds the ids of the containers being rendered above
        ``chart``; a child already among them renders as missing.
        """
        filters = dict(filters or {})
        if view is None:
            view = self._view_for(chart)
        query = table_query or TableQuery()
        key: Optional[Tuple[Hashable, ...]] = None
        if version is not None and chart.type != ChartType.CONTAINER:
            key = self._key(version, chart, view, filters, query)
            cached = self._cache.get(key)
            if cached is not None:
                return cached

        result = self._shape(
            chart, devices, filters, view, version, elapsed_seconds, query, ancestors | {chart.id}
        )
        if key is not None:
            self._cache.set(key, result)
        return result

    def _shape(
        self,
        chart: ChartConfig,
        devices: Sequence[Device],
        filters: Mapping[str, Any],
        view: Optional[DataView],
        version: Optional[int],
        elapsed_seconds: float,
        query: TableQuery,
        ancestors: FrozenSet[str],
    ) -> ChartResult:
        shaper = get(chart.type)
        prepared = prepare_devices(devices, filters, view) if shaper.needs_data else []

        def render_child(child_id: str) -> Optional[ChartResult]:
            if self._resolve_chart is None:
                return None
            child = self._resolve_chart(child_id)
            if child is None:
                return None
            if child.id in ancestors:
                logger.warning(
                    "pipeline.render.container_cycle",
                    extra={"chart_id": chart.id, "child_id": child.id},
                )
                return None
            return self.render(
                child,
                devices,
                filters=filters,
                version=version,
                elapsed_seconds=elapsed_seconds,
                ancestors=ancestors,
            )

        ctx = ShapingContext(
            chart=chart,
            devices=prepared,
            view=view,
            filters=filters,
            render_child=render_child,
            elapsed_seconds=elapsed_seconds,
            table_query=query,
            category_names=[d.name for d in devices],
        )
        if shaper.needs_data and not prepared:
            logger.debug(
                "pipeline.render.no_data",
                extra={"chart_id": chart.id, "input_devices": len(devices)},
            )
            return ctx.empty()
        result = shaper.shape(ctx)
        logger.debug(
            "pipeline.render",
            extra={"chart_id": chart.id, "shaper": shaper.id, "kind": result.kind},
        )
        return result
